"""
Suggestion module for the EnvMonitor system.

This module defines the Suggestion dataclass, the record the suggestion
service hands to the presentation layer. A record names the station, the
violated parameter, the observed value, the threshold it exceeded and a
free-text mitigation step. Records look the same whether they came from the
LLM provider or from the local fallback generator.
"""

import math
import re
from dataclasses import dataclass
from typing import Any, Union

# Parameter labels shown to the user and required in provider output
TEMPERATURE = "Temperature"
EMISSIONS = "PM2.5 Emissions"
NOISE = "Noise"
PARAMETERS = (TEMPERATURE, EMISSIONS, NOISE)

_PARAMETER_ALIASES = {re.sub(r"[\s_]+", "", label).lower(): label for label in PARAMETERS}

Number = Union[int, float]

WIRE_KEYS = ("stationName", "area", "parameter", "value", "threshold", "suggestion")


def normalize_parameter(label: Any) -> str:
    """
    Map a provider's parameter label onto one of the canonical labels.

    Case, spaces and underscores are ignored, so "PM 2.5 Emissions" and
    "pm2.5_emissions" both map to "PM2.5 Emissions".

    Raises:
        ValueError: If the label matches no known parameter
    """
    if not isinstance(label, str):
        raise ValueError(f"parameter must be a string, got {type(label).__name__}")
    key = re.sub(r"[\s_]+", "", label).lower()
    if key not in _PARAMETER_ALIASES:
        raise ValueError(f"unknown parameter {label!r}")
    return _PARAMETER_ALIASES[key]


def as_number(value: Any, name: str = "value") -> Number:
    """
    Coerce a numeric field to int or float; integral floats become int.

    Raises:
        ValueError: If the value is a bool, non-numeric or not finite
    """
    if isinstance(value, bool):
        raise ValueError(f"{name} must be numeric, got bool")
    if isinstance(value, (int, float)):
        number = value
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            raise ValueError(f"{name} must be numeric, got {value!r}") from None
    else:
        raise ValueError(f"{name} must be numeric, got {type(value).__name__}")

    if isinstance(number, float):
        if not math.isfinite(number):
            raise ValueError(f"{name} must be finite")
        if number.is_integer():
            return int(number)
    return number


@dataclass(frozen=True)
class Suggestion:
    """
    A mitigation suggestion for one violated parameter at one station.

    Attributes:
        station_name: Name of the station the reading came from
        area: Area the station monitors
        parameter: One of "Temperature", "PM2.5 Emissions", "Noise"
        value: Observed value that exceeded the threshold
        threshold: Threshold that was exceeded
        suggestion: Free-text remediation advice
    """

    station_name: str
    area: str
    parameter: str
    value: Number
    threshold: Number
    suggestion: str

    @classmethod
    def from_dict(cls, raw: Any) -> "Suggestion":
        """
        Validate one provider record and convert it to a Suggestion.

        Args:
            raw: Decoded record, expected to carry every key in WIRE_KEYS

        Returns:
            The validated Suggestion

        Raises:
            ValueError: If a key is missing, a text field is empty or not a
                string, value/threshold are not numeric, or the parameter is
                unknown
        """
        if not isinstance(raw, dict):
            raise ValueError(f"record must be an object, got {type(raw).__name__}")

        missing = [key for key in WIRE_KEYS if key not in raw]
        if missing:
            raise ValueError(f"record missing keys: {', '.join(missing)}")

        for key in ("stationName", "area", "suggestion"):
            if not isinstance(raw[key], str):
                raise ValueError(f"{key} must be a string")
        if not raw["suggestion"].strip():
            raise ValueError("suggestion must not be empty")

        return cls(
            station_name=raw["stationName"].strip(),
            area=raw["area"].strip(),
            parameter=normalize_parameter(raw["parameter"]),
            value=as_number(raw["value"], "value"),
            threshold=as_number(raw["threshold"], "threshold"),
            suggestion=raw["suggestion"].strip(),
        )

    def to_dict(self) -> dict[str, Any]:
        """Return the record in its wire shape (camelCase keys)."""
        return {
            "stationName": self.station_name,
            "area": self.area,
            "parameter": self.parameter,
            "value": self.value,
            "threshold": self.threshold,
            "suggestion": self.suggestion,
        }
