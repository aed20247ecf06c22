from runsheet_engine.merger import merge_fragments
from runsheet_engine.models import Layout, OCRResult
from runsheet_engine.parser import RunSheetParser
from runsheet_engine.tabular_view import TabularViewStrategy
from runsheet_engine.utils import group_by_rows


def test_tabular_rows_under_header(tabular_ocr):
    appointments = RunSheetParser().parse_screenshot(tabular_ocr)

    assert len(appointments) == 2
    first, second = appointments

    assert first.appointment_time == "09:30"
    assert first.patient_name == "Jane Doe"
    assert first.patient_phone == "0412 345 678"
    assert first.appointment_type == "New Patient"
    assert first.clinician_name == "Dr Lee"
    assert first.confidence == 1.0

    assert second.appointment_time == "14:05"
    assert second.patient_name == "Bob Stone"
    assert second.appointment_type == "Review"
    assert second.clinician_name is None
    assert second.confidence == 0.71


def test_header_row_detection(tabular_ocr):
    strategy = TabularViewStrategy()
    rows = group_by_rows(merge_fragments(tabular_ocr.fragments), 15, strict=False)
    header = strategy.detect_header_row(rows)

    assert header.index == 0
    assert header.keyword_x["patient"] == 120
    assert header.keyword_x["doctor"] == 620

    columns = strategy.detect_columns(rows, header)
    assert columns.time_x == 20
    assert [role for _, role in columns.bands] == ["time", "name", "phone", "type", "clinician"]


def test_header_needs_two_keywords(frag):
    strategy = TabularViewStrategy()
    rows = [[frag("Patient", 0, 0), frag("list", 100, 0)], [frag("9am", 0, 40), frag("Ann", 100, 40)]]
    assert strategy.detect_header_row(rows) is None


def test_without_header_time_column_comes_from_mode(frag):
    fragments = [
        frag("9am", 22, 100), frag("Smith", 120, 100), frag("Ann", 190, 100), frag("Ref", 300, 100),
        frag("10am", 18, 140), frag("Jones", 120, 140), frag("Bob", 190, 140),
        frag("11am", 21, 180), frag("Lee", 120, 180), frag("Cy", 190, 180), frag("2pm", 400, 180),
        frag("Total", 120, 220),
    ]
    strategy = TabularViewStrategy()
    rows = group_by_rows(fragments, 15, strict=False)
    columns = strategy.detect_columns(rows, None)
    assert columns.time_x == 20
    assert columns.bands == ()

    appointments = RunSheetParser().parse_screenshot(OCRResult(fragments=fragments, image_width=600, image_height=400))
    assert [a.appointment_time for a in appointments] == ["09:00", "10:00", "11:00"]
    assert [a.patient_name for a in appointments] == ["Smith Ann Ref", "Jones Bob", "Lee Cy"]


def test_rows_without_time_are_skipped(frag):
    fragments = [frag("Closed", 0, 100), frag("Smith", 0, 200)]
    result = TabularViewStrategy().parse(fragments, 500, 500)
    assert result.layout is Layout.TABULAR
    assert result.appointments == []


def test_twelve_hour_time_wins_over_twenty_four_hour(frag):
    fragments = [frag("2:30", 20, 100, 40), frag("pm", 62, 100, 20), frag("Ann", 120, 100)]
    appointments = RunSheetParser().parse_screenshot(OCRResult(fragments=fragments, image_width=400, image_height=400))
    assert appointments[0].appointment_time == "14:30"
