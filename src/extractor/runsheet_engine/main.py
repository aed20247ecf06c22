"""Core execution logic for run-sheet extraction."""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional, Sequence, Union

from .config import ExtractionConfig
from .models import DetectedColumn, OCRResult, RunSheetDocument
from .parser import ExternalTimes, RunSheetParser
from .utils import validate_file_path

Columns = Optional[Sequence[Union[DetectedColumn, Dict[str, Any]]]]


def load_ocr_json(path: Union[str, Path]) -> OCRResult:
    """
    Load OCR output saved as JSON.

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If the file is not a JSON object
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"File not found: {path}")
    with open(path, 'r', encoding='utf-8') as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise ValueError(f"OCR JSON must be an object, got {type(data).__name__}")
    return OCRResult.from_dict(data)


def process_ocr_result(
    ocr_result: OCRResult,
    file_path: str = "<ocr>",
    clinician_name: Optional[str] = None,
    time_data: ExternalTimes = None,
    columns: Columns = None,
    config: Optional[ExtractionConfig] = None,
    logger: Optional[logging.Logger] = None,
) -> RunSheetDocument:
    """
    Parse an OCR result that was produced elsewhere.

    Args:
        ocr_result: OCR output for one screenshot
        file_path: Source path recorded on the document
        clinician_name: Parse as a single-column crop for this clinician
        time_data: Shared time labels from an earlier time-column extraction
        columns: Edited column boundaries to parse with
        config: Extraction thresholds
        logger: Logger injected into the pipeline

    Returns:
        RunSheetDocument with scored appointments
    """
    parser = RunSheetParser(config, logger)
    return parser.parse_document(
        file_path=file_path,
        ocr_result=ocr_result,
        clinician_name=clinician_name,
        external_times=time_data,
        columns=columns,
    )


def process_screenshot(
    file_path: str,
    clinician_name: Optional[str] = None,
    time_data: ExternalTimes = None,
    columns: Columns = None,
    config: Optional[ExtractionConfig] = None,
    logger: Optional[logging.Logger] = None,
) -> RunSheetDocument:
    """
    Process a single run-sheet screenshot and extract appointments.

    Args:
        file_path: Absolute or relative path to the screenshot
        clinician_name: Parse as a single-column crop for this clinician
        time_data: Shared time labels from an earlier time-column extraction
        columns: Edited column boundaries to parse with
        config: Extraction thresholds
        logger: Logger injected into the pipeline

    Returns:
        RunSheetDocument containing extracted appointments

    Raises:
        FileNotFoundError: If the file does not exist
        ValidationError: If the path is not a file or its format is not supported
        ValueError: If the image cannot be read
    """
    if not Path(file_path).exists():
        raise FileNotFoundError(f"File not found: {file_path}")
    path = validate_file_path(file_path)

    from .ocr_extractor import OCRExtractor
    from .preprocessor import DocumentPreprocessor

    print(f"▶ Processing Run Sheet: {path.name}")

    print("\n[1/3] Preprocessing screenshot...")
    image = DocumentPreprocessor(logger=logger).process(path)
    print(f"✓ Preprocessed to {image.shape[1]}x{image.shape[0]}")

    print("\n[2/3] Extracting text with PaddleOCR...")
    ocr_result = OCRExtractor(logger=logger).extract(image)
    print(f"✓ OCR completed ({len(ocr_result.fragments)} fragments)")

    print("\n[3/3] Parsing appointments...")
    document = process_ocr_result(
        ocr_result,
        file_path=str(path.absolute()),
        clinician_name=clinician_name,
        time_data=time_data,
        columns=columns,
        config=config,
        logger=logger,
    )
    print(f"✓ Extracted {len(document)} appointments ({document.layout.value} layout)")

    return document


def document_to_dict(document: RunSheetDocument) -> Dict[str, Any]:
    return {
        'file_path': document.file_path,
        'metadata': {
            'layout': document.layout.value,
            'image_width': document.image_width,
            'image_height': document.image_height,
            'extraction_timestamp': document.extraction_timestamp,
        },
        'columns': [c.to_dict() for c in document.columns],
        'time_column': document.time_column.to_dict() if document.time_column else None,
        'time_labels': [t.to_dict() for t in document.time_labels],
        'appointments': [a.to_dict() for a in document.appointments],
    }


def save_to_json(document: RunSheetDocument, output_path: str) -> None:
    """
    Save extracted run-sheet data to a JSON file.

    Args:
        document: RunSheetDocument to save
        output_path: Path to output JSON file
    """
    with open(output_path, 'w', encoding='utf-8') as f:
        json.dump(document_to_dict(document), f, indent=2, ensure_ascii=False)

    print(f"✓ Saved to: {output_path}")


def print_document_summary(document: RunSheetDocument, review_threshold: float = 0.6) -> None:
    """Print a summary of the extracted document."""
    print(f"  Layout: {document.layout.value}")
    print(f"\n  Total Appointments: {len(document)}")

    clinicians = []
    for appointment in document.appointments:
        if appointment.clinician_name not in clinicians:
            clinicians.append(appointment.clinician_name)
    for clinician in clinicians:
        count = len(document.get_appointments_by_clinician(clinician))
        print(f"    {clinician or 'Unassigned'}: {count} appointments")

    if document.appointments:
        print("\n  Sample Appointments:")
        for i, appointment in enumerate(document.appointments[:5], 1):
            flag = " ⚠ review" if appointment.needs_review(review_threshold) else ""
            print(f"    {i}. {appointment}{flag}")

        if len(document) > 5:
            print(f"    ... and {len(document) - 5} more appointments")
