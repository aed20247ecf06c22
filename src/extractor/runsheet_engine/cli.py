"""Command-line interface for run-sheet extraction."""

import argparse
import json
import logging
import os
import sys
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv
from sqlalchemy.orm import Session

from .config import ExtractionConfig
from .database import create_tables, get_db_engine, save_run_sheet
from .main import load_ocr_json, print_document_summary, process_ocr_result, process_screenshot, save_to_json
from .utils import ValidationError, format_confidence_report, is_supported_file, validate_run_sheet


def _env_flag(name: str) -> bool:
    return os.getenv(name, '').strip().lower() in ('1', 'true', 'yes', 'on')


def _read_json_arg(value: Optional[str]):
    """Inline JSON, or ``@path`` to read it from a file."""
    if value is None:
        return None
    if value.startswith('@'):
        return Path(value[1:]).read_text(encoding='utf-8')
    return value


def _build_arg_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="runsheet-extract",
        description="Extract appointments from a run-sheet screenshot.",
    )
    p.add_argument("file_path", help="Screenshot image, or OCR JSON with --ocr-json.")
    p.add_argument("--ocr-json", action="store_true", help="Treat file_path as saved OCR output (skips OCR).")
    p.add_argument("--clinician", help="Parse as a single-column crop for this clinician.")
    p.add_argument("--time-data", help="Shared time labels as JSON, or @file.")
    p.add_argument("--columns", help="Edited columns as a JSON list, or @file.")
    p.add_argument("--config", type=Path, help="JSON file with ExtractionConfig overrides.")
    p.add_argument("--output", help="Output JSON path (default: <stem>_extracted.json).")
    p.add_argument("--db", help="SQLite file to persist the results into.")
    p.add_argument("--debug", action="store_true", help="Enable debug logging.")
    return p


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for command-line execution."""
    load_dotenv()
    args = _build_arg_parser().parse_args(argv)

    debug = args.debug or _env_flag('OCR_DEBUG_LOGGING')
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logger = logging.getLogger("runsheet_engine")

    output_path = args.output or Path(args.file_path).stem + "_extracted.json"

    if not args.ocr_json and not is_supported_file(args.file_path):
        print("\n✗ Error: Unsupported file format")
        print("  Supported formats: PNG, JPG, JPEG, BMP, TIFF, WEBP")
        return 1

    try:
        config = ExtractionConfig()
        if args.config:
            config = ExtractionConfig.from_dict(json.loads(args.config.read_text(encoding='utf-8')))

        time_data = _read_json_arg(args.time_data)
        columns = None
        columns_raw = _read_json_arg(args.columns)
        if columns_raw is not None:
            columns = json.loads(columns_raw)
            if not isinstance(columns, list):
                raise ValueError("--columns must be a JSON list")
            if not all(isinstance(column, dict) for column in columns):
                raise ValueError("--columns entries must be objects")

        if args.ocr_json:
            print(f"▶ Parsing OCR output: {Path(args.file_path).name}")
            document = process_ocr_result(
                load_ocr_json(args.file_path),
                file_path=str(Path(args.file_path).absolute()),
                clinician_name=args.clinician,
                time_data=time_data,
                columns=columns,
                config=config,
                logger=logger,
            )
            print(f"✓ Extracted {len(document)} appointments ({document.layout.value} layout)")
        else:
            document = process_screenshot(
                args.file_path,
                clinician_name=args.clinician,
                time_data=time_data,
                columns=columns,
                config=config,
                logger=logger,
            )

        print(f"\n{'─' * 60}")
        print_document_summary(document, config.review_threshold)

        warnings = validate_run_sheet(document, config.review_threshold)
        if warnings:
            print("\n" + "=" * 70)
            print("VALIDATION WARNINGS")
            print("=" * 70)
            for warning in warnings:
                print(f"⚠ {warning}")

        print("\n" + "=" * 70)
        print("CONFIDENCE ANALYSIS")
        print("=" * 70)
        print(format_confidence_report(document))

        print("\n" + "=" * 70)
        print("SAVING RESULTS")
        print("=" * 70)
        save_to_json(document, output_path)

        if args.db:
            engine = get_db_engine(args.db)
            create_tables(engine)
            with Session(engine) as session:
                screenshot_id = save_run_sheet(session, document)
                session.commit()
            print(json.dumps({"runsheet_screenshot_id": screenshot_id}))

        print("\n✓ Processing completed successfully!")
        return 0

    except FileNotFoundError as e:
        print(f"\n✗ File Error: {e}")
        return 1
    except (ValidationError, ValueError) as e:
        print(f"\n✗ Validation Error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
