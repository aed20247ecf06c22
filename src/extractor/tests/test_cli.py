import json

import pytest

from runsheet_engine.cli import main
from runsheet_engine.main import document_to_dict, load_ocr_json, process_ocr_result, process_screenshot
from runsheet_engine.utils import ValidationError


@pytest.fixture
def ocr_json(tmp_path, calendar_ocr):
    path = tmp_path / "calendar_ocr.json"
    path.write_text(json.dumps(calendar_ocr.to_dict()), encoding="utf-8")
    return path


def test_load_ocr_json(ocr_json, calendar_ocr):
    assert load_ocr_json(ocr_json) == calendar_ocr


def test_load_ocr_json_errors(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_ocr_json(tmp_path / "missing.json")

    not_object = tmp_path / "list.json"
    not_object.write_text("[]", encoding="utf-8")
    with pytest.raises(ValueError):
        load_ocr_json(not_object)


def test_process_ocr_result_document(calendar_ocr):
    document = process_ocr_result(calendar_ocr, file_path="cal.png")
    data = document_to_dict(document)

    assert data["file_path"] == "cal.png"
    assert data["metadata"]["layout"] == "calendar"
    assert len(data["columns"]) == 2
    assert data["appointments"][0]["patientName"] == "Smith John"
    json.dumps(data)


def test_process_screenshot_validates_path(tmp_path):
    with pytest.raises(FileNotFoundError):
        process_screenshot(str(tmp_path / "missing.png"))

    pdf = tmp_path / "sheet.pdf"
    pdf.write_bytes(b"%PDF")
    with pytest.raises(ValidationError, match="Unsupported"):
        process_screenshot(str(pdf))

    with pytest.raises(ValidationError, match="not a file"):
        process_screenshot(str(tmp_path))


def test_cli_parses_ocr_json_and_writes_output(ocr_json, tmp_path, capsys):
    output = tmp_path / "out.json"
    db_path = tmp_path / "runsheet.db"

    code = main([str(ocr_json), "--ocr-json", "--output", str(output), "--db", str(db_path)])

    assert code == 0
    data = json.loads(output.read_text(encoding="utf-8"))
    assert data["appointments"][0]["appointmentTime"] == "09:00"
    assert db_path.exists()
    stdout = capsys.readouterr().out
    assert "✓ Processing completed successfully!" in stdout
    assert '"runsheet_screenshot_id": 1' in stdout


def test_cli_single_column_with_time_file(tmp_path, frag):
    from runsheet_engine.models import OCRResult

    crop = OCRResult(
        fragments=[frag("Brown", 10, 210, 50), frag("Alice", 70, 210, 50)],
        image_width=300,
        image_height=1000,
    )
    ocr_path = tmp_path / "crop.json"
    ocr_path.write_text(json.dumps(crop.to_dict()), encoding="utf-8")
    times_path = tmp_path / "times.json"
    times_path.write_text('[{"time": "11:00", "yPercent": 21}]', encoding="utf-8")
    output = tmp_path / "out.json"

    code = main([
        str(ocr_path), "--ocr-json", "--clinician", "Dr Ho",
        "--time-data", f"@{times_path}", "--output", str(output),
    ])

    assert code == 0
    [appointment] = json.loads(output.read_text(encoding="utf-8"))["appointments"]
    assert appointment["clinicianName"] == "Dr Ho"
    assert appointment["appointmentTime"] == "11:00"


def test_cli_applies_config_overrides(ocr_json, tmp_path):
    config_path = tmp_path / "config.json"
    config_path.write_text(json.dumps({"shared_time_distance": 2}), encoding="utf-8")
    output = tmp_path / "out.json"

    assert main([str(ocr_json), "--ocr-json", "--config", str(config_path), "--output", str(output)]) == 0
    [appointment] = json.loads(output.read_text(encoding="utf-8"))["appointments"]
    assert appointment["appointmentTime"] is None


def test_cli_rejects_bad_config(ocr_json, tmp_path, capsys):
    config_path = tmp_path / "config.json"
    config_path.write_text(json.dumps({"unknown": 1}), encoding="utf-8")

    assert main([str(ocr_json), "--ocr-json", "--config", str(config_path)]) == 1
    assert "✗ Validation Error" in capsys.readouterr().out


def test_cli_rejects_unsupported_image(capsys):
    assert main(["notes.txt"]) == 1
    assert "Unsupported file format" in capsys.readouterr().out


def test_cli_missing_ocr_json(tmp_path, capsys):
    assert main([str(tmp_path / "missing.json"), "--ocr-json"]) == 1
    assert "✗ File Error" in capsys.readouterr().out


def test_cli_rejects_non_object_columns(ocr_json, capsys):
    assert main([str(ocr_json), "--ocr-json", "--columns", '["oops"]']) == 1
    assert "--columns entries must be objects" in capsys.readouterr().out
