from runsheet_engine.calendar_view import CalendarViewStrategy
from runsheet_engine.models import Layout, OCRResult, ParsedAppointment
from runsheet_engine.parser import RunSheetParser


def test_calendar_end_to_end(calendar_ocr):
    appointments = RunSheetParser().parse_screenshot(calendar_ocr)

    assert appointments == [
        ParsedAppointment(
            patient_name="Smith John",
            patient_phone="0412 345 678",
            appointment_time="09:00",
            appointment_type="Follow Up",
            clinician_name="Dr Smith",
            confidence=1.0,
        )
    ]


def test_parsing_is_idempotent(calendar_ocr, tabular_ocr):
    parser = RunSheetParser()
    assert parser.parse_screenshot(calendar_ocr) == parser.parse_screenshot(calendar_ocr)
    assert parser.parse_screenshot(tabular_ocr) == parser.parse_screenshot(tabular_ocr)


def test_external_times_override_local_labels(calendar_ocr):
    appointments = RunSheetParser().parse_screenshot(
        calendar_ocr, external_times='[{"time": "10:15", "yPercent": 20.5}]'
    )
    assert appointments[0].appointment_time == "10:15"


def test_malformed_external_times_fall_back_to_local_labels(calendar_ocr):
    appointments = RunSheetParser().parse_screenshot(calendar_ocr, external_times="{broken")
    assert appointments[0].appointment_time == "09:00"


def test_empty_input_gives_no_appointments():
    assert RunSheetParser().parse_screenshot(OCRResult()) == []


def test_missing_dimensions_are_estimated(calendar_ocr):
    estimated = OCRResult(fragments=calendar_ocr.fragments)
    width, height = estimated.resolve_dimensions()
    assert (width, height) == (980, 420)


def test_calendar_output_is_column_major(frag):
    fragments = [
        frag("Dr", 500, 20, 20), frag("Ng", 530, 20, 20),
        frag("Dr", 900, 20, 20), frag("Ho", 930, 20, 20),
        frag("9am", 100, 200, 30), frag("10am", 100, 400, 40),
        frag("Late", 920, 205, 40),
        frag("Early", 520, 405, 50),
        frag("First", 520, 200, 50),
    ]
    appointments = RunSheetParser().parse_screenshot(OCRResult(fragments=fragments, image_width=1200, image_height=1000))

    assert [(a.clinician_name, a.patient_name) for a in appointments] == [
        ("Dr Ng", "First"),
        ("Dr Ng", "Early"),
        ("Dr Ho", "Late"),
    ]


def test_navigation_clusters_are_skipped(calendar_ocr, frag):
    fragments = list(calendar_ocr.fragments) + [frag("Today", 520, 600), frag("Print", 600, 600)]
    ocr = OCRResult(fragments=fragments, image_width=1200, image_height=1000)
    assert len(RunSheetParser().parse_screenshot(ocr)) == 1


def test_cluster_without_name_or_time_is_dropped(frag):
    strategy = CalendarViewStrategy()
    assert strategy.parse_column([frag("123", 50, 500), frag("|", 60, 510)], "Dr A", [], 100) == []


def test_cluster_with_name_but_no_time_is_kept(frag):
    strategy = CalendarViewStrategy()
    [appointment] = strategy.parse_column([frag("Walker", 50, 500)], "Dr A", [], 100)
    assert appointment.patient_name == "Walker"
    assert appointment.appointment_time is None


def test_parse_single_column_with_external_times(frag):
    ocr = OCRResult(
        fragments=[
            frag("Dr", 10, 50, 20), frag("Smith", 40, 50, 50),
            frag("Brown", 10, 210, 50), frag("Alice", 70, 210, 50),
            frag("Review", 10, 240, 60),
        ],
        image_width=300,
        image_height=1000,
    )
    appointments = RunSheetParser().parse_single_column(
        ocr, "Dr Smith", external_times=[{"time": "09:00", "yPercent": 20}]
    )

    assert len(appointments) == 1
    appointment = appointments[0]
    assert appointment.patient_name == "Brown Alice"
    assert appointment.appointment_time == "09:00"
    assert appointment.appointment_type == "Review"
    assert appointment.clinician_name == "Dr Smith"
    assert appointment.confidence == 0.71


def test_parse_single_column_ignores_null_external_time(frag):
    ocr = OCRResult(fragments=[frag("Hart", 60, 320, 40)], image_width=300, image_height=1000)

    [appointment] = RunSheetParser().parse_single_column(
        ocr, external_times=[{"time": None, "yPercent": 32}]
    )

    assert appointment.patient_name == "Hart"
    assert appointment.appointment_time is None


def test_parse_single_column_uses_local_labels(frag):
    ocr = OCRResult(
        fragments=[frag("2pm", 5, 300, 30), frag("Hart", 60, 320, 40)],
        image_width=300,
        image_height=1000,
    )
    [appointment] = RunSheetParser().parse_single_column(ocr)
    assert appointment.appointment_time == "14:00"
    assert appointment.clinician_name is None


def test_parse_columns_with_edited_columns(calendar_ocr):
    columns = [
        {"id": "time-col", "clinicianName": None, "xStart": 90, "xEnd": 160, "isTimeColumn": True},
        {"id": "col-1", "clinicianName": "Dr Smith", "xStartPercent": 40, "xEndPercent": 60},
    ]
    appointments = RunSheetParser().parse_columns(calendar_ocr, columns)

    assert len(appointments) == 1
    assert appointments[0].clinician_name == "Dr Smith"
    assert appointments[0].appointment_time == "09:00"


def test_edited_column_excluding_card_yields_nothing(calendar_ocr):
    columns = [{"id": "col-1", "clinicianName": "Dr Smith", "xStart": 700, "xEnd": 1200}]
    assert RunSheetParser().parse_columns(calendar_ocr, columns) == []


def test_parser_detect_columns_and_time_labels(calendar_ocr):
    parser = RunSheetParser()
    detection = parser.detect_columns(calendar_ocr)
    assert [c.id for c in detection.columns] == ["col-1", "col-2"]

    labels = parser.extract_time_labels(calendar_ocr)
    assert [label.time for label in labels] == ["09:00", "10:00"]
    assert labels[0].y_percent == 20.0


def test_parse_document_records_layout_metadata(calendar_ocr, tabular_ocr):
    parser = RunSheetParser()

    calendar_doc = parser.parse_document("cal.png", calendar_ocr)
    assert calendar_doc.layout is Layout.CALENDAR
    assert len(calendar_doc.columns) == 2
    assert calendar_doc.time_column is not None
    assert [label.time for label in calendar_doc.time_labels] == ["09:00", "10:00"]
    assert calendar_doc.extraction_timestamp
    assert len(calendar_doc) == 1

    table_doc = parser.parse_document("table.png", tabular_ocr)
    assert table_doc.layout is Layout.TABULAR
    assert table_doc.columns == []
    assert len(table_doc.get_appointments_by_clinician("Dr Lee")) == 1
