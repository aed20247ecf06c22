"""Run-sheet screenshot extraction engine."""

__version__ = "0.1.0"

from .config import ExtractionConfig
from .main import process_ocr_result, process_screenshot, save_to_json
from .models import (
    ColumnDetectionResult,
    DetectedColumn,
    Layout,
    OCRResult,
    ParsedAppointment,
    RunSheetDocument,
    TextFragment,
    TimeLabel,
)
from .parser import RunSheetParser
from .column_detector import detect_columns
from .time_resolver import extract_time_labels
from .utils import validate_run_sheet, format_confidence_report, is_supported_file

__all__ = [
    'ExtractionConfig',
    'process_ocr_result',
    'process_screenshot',
    'save_to_json',
    'ColumnDetectionResult',
    'DetectedColumn',
    'Layout',
    'OCRResult',
    'ParsedAppointment',
    'RunSheetDocument',
    'TextFragment',
    'TimeLabel',
    'RunSheetParser',
    'detect_columns',
    'extract_time_labels',
    'validate_run_sheet',
    'format_confidence_report',
    'is_supported_file',
]
