"""
Fallback suggestion generator for the EnvMonitor system.

Produces deterministic, canned suggestions when the LLM provider cannot be
used or trusted. Each violating station yields at most one record: the first
violated parameter in priority order (temperature, then emissions, then
noise). A station that violates both temperature and noise therefore only
reports temperature, whereas the provider path may return one record per
violated parameter.
"""

from typing import Iterable, Optional, Union

from .anomaly_detector import AnomalyDetector, THRESHOLDS
from .station_data import Station
from .suggestion import EMISSIONS, NOISE, TEMPERATURE, Suggestion


def _reported_value(value: float) -> Union[int, float]:
    # Readings are passed through as measured, including non-finite ones
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value


class FallbackSuggestionGenerator:
    """Rule-based substitute for the LLM provider (offline, always available)."""

    REMEDIATIONS = {
        TEMPERATURE: "Deploy cooling systems or improve ventilation.",
        EMISSIONS: "Implement carbon capture or reduce operational hours.",
        NOISE: "Install noise barriers or schedule loud activities off-peak.",
    }

    def __init__(self, detector: Optional[AnomalyDetector] = None):
        self.detector = detector or AnomalyDetector()

    def generate(self, violating_stations: Iterable[Station]) -> list[Suggestion]:
        """
        Builds one suggestion per violating station for its top-priority violation.

        Args:
            violating_stations: Stations already filtered by the detector;
                stations without a violation are skipped

        Returns:
            Suggestions in input order
        """
        thresholds = {label: (field, threshold) for label, field, threshold in THRESHOLDS}

        suggestions = []
        for station in violating_stations:
            violated = self.detector.violated_parameters(station.latest_reading)
            if not violated:
                continue

            # First match wins; lower-priority violations are not reported
            parameter = violated[0]
            field, threshold = thresholds[parameter]
            suggestions.append(
                Suggestion(
                    station_name=station.name,
                    area=station.area,
                    parameter=parameter,
                    value=_reported_value(getattr(station.latest_reading, field)),
                    threshold=threshold,
                    suggestion=self.REMEDIATIONS[parameter],
                )
            )
        return suggestions
