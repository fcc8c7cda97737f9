"""
Tests for the Suggestion record.

Tests cover:
- Wire shape: camelCase keys in and out
- Validation: missing keys, wrong types, unknown parameters
- Parameter label normalization
"""

import pytest
from envmonitor.suggestion import Suggestion, as_number, normalize_parameter

WIRE = {
    "stationName": "S1",
    "area": "A",
    "parameter": "Temperature",
    "value": 32,
    "threshold": 30,
    "suggestion": "Deploy cooling systems or improve ventilation.",
}


class TestSuggestion:
    """Test suite for Suggestion."""

    def test_to_dict_uses_wire_keys(self):
        suggestion = Suggestion("S1", "A", "Temperature", 32, 30, "Deploy cooling systems or improve ventilation.")
        assert suggestion.to_dict() == WIRE

    def test_from_dict_strips_text(self):
        suggestion = Suggestion.from_dict(dict(WIRE, stationName="  S1 ", suggestion=" Do it. "))
        assert suggestion.station_name == "S1"
        assert suggestion.suggestion == "Do it."

    @pytest.mark.parametrize("key", ["stationName", "area", "parameter", "value", "threshold", "suggestion"])
    def test_from_dict_missing_key(self, key):
        raw = {k: v for k, v in WIRE.items() if k != key}
        with pytest.raises(ValueError, match=key):
            Suggestion.from_dict(raw)

    def test_from_dict_rejects_non_string_name(self):
        with pytest.raises(ValueError):
            Suggestion.from_dict(dict(WIRE, stationName=7))

    def test_from_dict_rejects_blank_suggestion(self):
        with pytest.raises(ValueError):
            Suggestion.from_dict(dict(WIRE, suggestion="   "))

    def test_from_dict_rejects_non_object(self):
        with pytest.raises(ValueError):
            Suggestion.from_dict(["S1"])


class TestNormalization:
    """Test suite for parameter and number coercion helpers."""

    @pytest.mark.parametrize("label,expected", [
        ("Temperature", "Temperature"),
        ("temperature", "Temperature"),
        ("PM2.5 Emissions", "PM2.5 Emissions"),
        ("PM 2.5 Emissions", "PM2.5 Emissions"),
        ("pm2.5_emissions", "PM2.5 Emissions"),
        (" NOISE ", "Noise"),
    ])
    def test_known_labels(self, label, expected):
        assert normalize_parameter(label) == expected

    @pytest.mark.parametrize("label", ["Humidity", "", None, 3])
    def test_unknown_labels(self, label):
        with pytest.raises(ValueError):
            normalize_parameter(label)

    def test_as_number(self):
        assert as_number(32.0) == 32
        assert isinstance(as_number(32.0), int)
        assert as_number(92.5) == 92.5
        assert as_number(" 150 ") == 150

    @pytest.mark.parametrize("value", [True, "hot", None, float("nan"), float("inf"), [1]])
    def test_as_number_rejects(self, value):
        with pytest.raises(ValueError):
            as_number(value)
