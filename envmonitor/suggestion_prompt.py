"""
Prompt construction for the LLM provider.

Renders the violating stations into a single user message together with an
explicit output contract: a bare JSON array of suggestion records, nothing
else.
"""

from typing import Iterable, Optional

from .anomaly_detector import EMISSIONS_THRESHOLD, NOISE_THRESHOLD, TEMPERATURE_THRESHOLD
from .station_data import Station
from .suggestion import PARAMETERS

SYSTEM_PROMPT = (
    "You are an environmental specialist analyzing live sensor station data. "
    "You give specific, actionable and locally applicable mitigation advice "
    "for urban infrastructure."
)

OUTPUT_CONTRACT = """Respond with ONLY a valid JSON array, no prose, no markdown and no code fences.
Each element must have exactly these keys, with double-quoted keys and strings:
[
  {{
    "stationName": "<station name>",
    "area": "<station area>",
    "parameter": {parameters},
    "value": <observed reading as a number>,
    "threshold": <exceeded threshold as a number>,
    "suggestion": "<one concise mitigation step>"
  }}
]
Emit one element for every parameter that exceeds its threshold."""


def _format_value(value: Optional[float], unit: str) -> str:
    if value is None:
        return "not reported"
    if float(value).is_integer():
        return f"{int(value)}{unit}"
    return f"{value}{unit}"


def build_user_prompt(stations: Iterable[Station]) -> str:
    """
    Renders the violating stations and the output contract.

    Args:
        stations: Stations already flagged by the AnomalyDetector

    Returns:
        The user-role prompt text
    """
    blocks = []
    for station in stations:
        reading = station.latest_reading
        blocks.append(
            f"- Station: {station.name}\n"
            f"  Area: {station.area}\n"
            f"  Temperature: {_format_value(reading.temperature if reading else None, '°C')}\n"
            f"  PM2.5 Emissions: {_format_value(reading.emissions if reading else None, ' ppm')}\n"
            f"  Noise: {_format_value(reading.noise if reading else None, ' dB')}"
        )

    parameters = " | ".join(f'"{label}"' for label in PARAMETERS)
    return (
        "Analyze the following live sensor data and provide mitigation suggestions "
        "for every parameter that exceeds its threshold.\n"
        f"Thresholds: Temperature > {TEMPERATURE_THRESHOLD}°C, "
        f"PM2.5 Emissions > {EMISSIONS_THRESHOLD} ppm, Noise > {NOISE_THRESHOLD} dB.\n\n"
        "Data:\n" + "\n".join(blocks) + "\n\n" + OUTPUT_CONTRACT.format(parameters=parameters)
    )


def build_messages(stations: Iterable[Station]) -> list[dict[str, str]]:
    """Return the role-tagged system/user message pair for a chat completion."""
    return [
        {"role": "system", "content": SYSTEM_PROMPT},
        {"role": "user", "content": build_user_prompt(stations)},
    ]
