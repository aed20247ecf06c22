import pytest

from runsheet_engine.config import DEFAULT_TYPE_PHRASES, ExtractionConfig


def test_defaults():
    config = ExtractionConfig()
    assert config.cluster_y_tolerance == 70
    assert config.single_column_time_distance == 100
    assert config.shared_time_distance == 80
    assert config.review_threshold == 0.6
    assert config.type_phrases == DEFAULT_TYPE_PHRASES


def test_more_specific_type_phrases_come_first():
    patterns = [pattern for pattern, _ in DEFAULT_TYPE_PHRASES]
    assert patterns.index("post operative") < patterns.index("post op")
    assert patterns.index("pre operative") < patterns.index("pre op")
    assert patterns.index("consulting") < patterns.index("consult")


@pytest.mark.parametrize("overrides", [
    {"cluster_y_tolerance": 0},
    {"header_band_ratio": 1.5},
    {"review_threshold": -0.1},
    {"min_clinician_headers": 0},
    {"mode_bucket_px": 0},
    {"time_column_left_padding": -1},
    {"type_phrases": (("", "Blank"),)},
])
def test_invalid_values_are_rejected(overrides):
    with pytest.raises(ValueError):
        ExtractionConfig(**overrides)


def test_from_dict_converts_lists_to_tuples():
    config = ExtractionConfig.from_dict({
        "cluster_y_tolerance": 60,
        "navigation_words": ["print", "today"],
        "type_phrases": [["dressing", "Dressing"]],
    })
    assert config.cluster_y_tolerance == 60
    assert config.navigation_words == ("print", "today")
    assert config.type_phrases == (("dressing", "Dressing"),)
    hash(config)


def test_from_dict_rejects_unknown_keys():
    with pytest.raises(ValueError, match="cluster_tolerance"):
        ExtractionConfig.from_dict({"cluster_tolerance": 60})
