import logging

import pytest

np = pytest.importorskip("numpy")
pytest.importorskip("paddleocr")

from runsheet_engine.ocr_extractor import OCRExtractor, split_line  # noqa: E402


class FakeEngine:
    def __init__(self, result):
        self.result = result

    def ocr(self, image):
        return self.result


def make_extractor(result):
    # Bypass __init__ so no OCR models are loaded
    extractor = OCRExtractor.__new__(OCRExtractor)
    extractor.logger = logging.getLogger("test_ocr")
    extractor.ocr = FakeEngine(result)
    return extractor


def test_split_line_apportions_width_by_characters():
    fragments = split_line("SMITH John", (100, 200, 200, 220))
    assert [(f.text, f.x, f.width) for f in fragments] == [("SMITH", 100, 50), ("John", 160, 40)]
    assert all(f.y == 200 and f.height == 20 for f in fragments)


def test_split_line_keeps_repeated_words_in_order():
    fragments = split_line("0412 0412", (0, 0, 90, 10))
    assert [f.x for f in fragments] == [0, 50]


def test_extract_from_legacy_line_output():
    result = [[
        [[[500, 50], [560, 50], [560, 70], [500, 70]], ("Dr Smith", 0.98)],
        [[[100, 200], [130, 200], [130, 220], [100, 220]], ("9am", 0.95)],
    ]]
    image = np.zeros((1000, 1200, 3), dtype=np.uint8)

    ocr_result = make_extractor(result).extract(image)

    assert (ocr_result.image_width, ocr_result.image_height) == (1200, 1000)
    assert [f.text for f in ocr_result.fragments] == ["Dr", "Smith", "9am"]
    assert ocr_result.fragments[1].x == 522.5
    assert ocr_result.full_text == "Dr Smith\n9am"


def test_extract_from_pipeline_dict_output():
    result = [{
        "rec_texts": ["Follow Up", ""],
        "rec_scores": [0.9, 0.1],
        "rec_polys": [
            np.array([[520, 255], [600, 255], [600, 275], [520, 275]]),
            np.array([[0, 0], [1, 0], [1, 1], [0, 1]]),
        ],
    }]
    image = np.zeros((400, 800, 3), dtype=np.uint8)

    ocr_result = make_extractor(result).extract(image)

    assert [f.text for f in ocr_result.fragments] == ["Follow", "Up"]
    assert ocr_result.fragments[0].x == 520


def test_extract_rejects_empty_image():
    with pytest.raises(ValueError):
        make_extractor([]).extract(np.zeros((0, 0, 3), dtype=np.uint8))


def test_malformed_lines_are_skipped(caplog):
    result = [[None, [[[0, 0], [10, 0], [10, 10], [0, 10]], ("ok", 0.9)]]]
    with caplog.at_level(logging.WARNING):
        ocr_result = make_extractor(result).extract(np.zeros((20, 20, 3), dtype=np.uint8))
    assert [f.text for f in ocr_result.fragments] == ["ok"]
    assert "malformed" in caplog.text
