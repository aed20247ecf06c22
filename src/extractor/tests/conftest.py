import pytest

from runsheet_engine.models import OCRResult, TextFragment


def _frag(text, x, y, width=None, height=20):
    return TextFragment(text, x, y, width if width is not None else 10 * len(text), height)


@pytest.fixture
def frag():
    """Factory for fragments; width defaults to 10px per character."""
    return _frag


@pytest.fixture
def calendar_ocr():
    """Two-clinician calendar view with one appointment card under Dr Smith at 9am."""
    fragments = [
        _frag("Dr", 500, 50, 20),
        _frag("Smith", 530, 50, 50),
        _frag("Dr", 900, 50, 20),
        _frag("Jones", 930, 50, 50),
        _frag("9am", 100, 200, 30),
        _frag("10am", 100, 400, 40),
        _frag("SMITH", 520, 205, 50),
        _frag("John", 580, 205, 40),
        _frag("0412", 520, 230, 40),
        _frag("345", 565, 230, 30),
        _frag("678", 600, 230, 30),
        _frag("Follow", 520, 255, 55),
        _frag("Up", 580, 255, 20),
    ]
    return OCRResult(
        full_text=" ".join(f.text for f in fragments),
        fragments=fragments,
        image_width=1200,
        image_height=1000,
    )


@pytest.fixture
def tabular_ocr():
    """A table with a header row, two appointment rows and a trailing note row."""
    fragments = [
        _frag("Time", 20, 20),
        _frag("Patient", 120, 20),
        _frag("Phone", 320, 20),
        _frag("Type", 480, 20),
        _frag("Doctor", 620, 20),
        _frag("9:30am", 20, 60, 60),
        _frag("Jane", 120, 60, 40),
        _frag("Doe", 170, 60, 30),
        _frag("0412", 320, 60, 40),
        _frag("345", 365, 60, 30),
        _frag("678", 400, 60, 30),
        _frag("New", 480, 60, 30),
        _frag("Patient", 520, 60, 70),
        _frag("Dr", 620, 60, 20),
        _frag("Lee", 650, 60, 30),
        _frag("14:05", 20, 100, 50),
        _frag("Bob", 120, 100, 30),
        _frag("Stone", 160, 100, 50),
        _frag("Review", 480, 100, 60),
        _frag("Notes", 120, 140, 50),
    ]
    return OCRResult(
        full_text=" ".join(f.text for f in fragments),
        fragments=fragments,
        image_width=800,
        image_height=600,
    )
