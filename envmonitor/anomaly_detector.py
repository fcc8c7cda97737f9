"""
Anomaly detector module for the EnvMonitor system.

This module contains the AnomalyDetector class which is a pure classifier for
station readings. It compares each station's latest reading against fixed
per-parameter ceilings and reports which stations are problematic, but does
not produce suggestions itself; those come from the SuggestionService.
"""

from typing import Iterable, Optional

from .station_data import Reading, Station
from .suggestion import EMISSIONS, NOISE, TEMPERATURE

# Fixed ceilings; a reading strictly above one of these is a violation
TEMPERATURE_THRESHOLD = 30  # °C
EMISSIONS_THRESHOLD = 150  # ppm (PM2.5)
NOISE_THRESHOLD = 85  # dB

# Priority order: temperature first, then emissions, then noise
THRESHOLDS = (
    (TEMPERATURE, "temperature", TEMPERATURE_THRESHOLD),
    (EMISSIONS, "emissions", EMISSIONS_THRESHOLD),
    (NOISE, "noise", NOISE_THRESHOLD),
)


class AnomalyDetector:
    """
    Pure classifier for threshold violations.

    A station is problematic when its latest reading exists and any single
    parameter exceeds its threshold. Stations that have not reported are
    excluded rather than flagged.
    """

    def violated_parameters(self, reading: Optional[Reading]) -> list[str]:
        """
        Lists the parameters of a reading that exceed their thresholds.

        Args:
            reading: The reading to classify, or None

        Returns:
            Violated parameter labels in priority order (Temperature,
            PM2.5 Emissions, Noise); empty if nothing is violated
        """
        if reading is None:
            return []

        violated = []
        for label, field, threshold in THRESHOLDS:
            value = getattr(reading, field)
            # Missing values never count as violations
            if value is not None and value > threshold:
                violated.append(label)
        return violated

    def is_problematic(self, station: Station) -> bool:
        """True if the station's latest reading violates at least one threshold."""
        return bool(self.violated_parameters(station.latest_reading))

    def detect(self, stations: Iterable[Station]) -> list[Station]:
        """
        Filters a batch of stations down to the problematic ones.

        Args:
            stations: Stations with optional latest readings

        Returns:
            The problematic stations, in input order
        """
        return [station for station in stations if self.is_problematic(station)]
