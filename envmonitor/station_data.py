"""
Station data module for the EnvMonitor system.

This module defines the Reading and Station dataclasses which represent what
the sensor data store exposes: static station information plus the most recent
reading (temperature, PM2.5 emissions, noise). It also defines the read-only
store interface the dashboard polls, a JSON snapshot implementation of it, and
the size-bounded reading history kept by the presentation layer.
"""

import json
from abc import ABC, abstractmethod
from collections import deque
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional, Union

from loguru import logger

from .errors import StationStoreError

# Epoch values above this are taken to be milliseconds
_MILLISECOND_EPOCH_CUTOFF = 10_000_000_000


def _to_float(value: Any) -> Optional[float]:
    """Convert a raw reading field to float, or None if absent or non-numeric."""
    if value is None or isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _to_timestamp(raw: dict[str, Any]) -> Optional[datetime]:
    epoch = _to_float(raw.get("timestamp"))
    if epoch is not None:
        if epoch > _MILLISECOND_EPOCH_CUTOFF:
            epoch = epoch / 1000.0
        try:
            return datetime.fromtimestamp(epoch, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None

    text = raw.get("datetime")
    if isinstance(text, str) and text:
        try:
            return datetime.fromisoformat(text)
        except ValueError:
            return None
    return None


@dataclass(frozen=True)
class Reading:
    """
    Immutable snapshot of one station's sensors.

    Any field may be missing in the data store; a missing value is never
    treated as a threshold violation.

    Attributes:
        temperature: Air temperature in °C
        emissions: PM2.5 concentration in ppm
        noise: Sound level in dB
        timestamp: When the reading was taken, if the store recorded it
    """

    temperature: Optional[float] = None
    emissions: Optional[float] = None
    noise: Optional[float] = None
    timestamp: Optional[datetime] = None

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> "Reading":
        """
        Build a Reading from the data store's wire shape.

        Accepts ``timestamp`` as epoch seconds or milliseconds and falls back
        to an ISO ``datetime`` string when no epoch is present.
        """
        return cls(
            temperature=_to_float(raw.get("temperature")),
            emissions=_to_float(raw.get("emissions")),
            noise=_to_float(raw.get("noise")),
            timestamp=_to_timestamp(raw),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "temperature": self.temperature,
            "emissions": self.emissions,
            "noise": self.noise,
            "timestamp": self.timestamp.timestamp() if self.timestamp else None,
        }


@dataclass
class Station:
    """
    A sensor station as exposed by the data store.

    Attributes:
        id: Data store key of the station
        name: Human-readable station name
        area: Area or district the station monitors
        latitude: Geographic latitude, if known
        longitude: Geographic longitude, if known
        device_id: Identifier of the sensor device, if known
        latest_reading: Most recent reading, or None if the station has not reported
    """

    id: str
    name: str
    area: str
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    device_id: Optional[str] = None
    latest_reading: Optional[Reading] = None

    @classmethod
    def from_dict(cls, raw: dict[str, Any], station_id: Optional[str] = None) -> "Station":
        """
        Build a Station from either the flat shape or the data store shape.

        The data store nests static fields under ``info`` and uses camelCase
        (``deviceId``, ``latestReading``); the flat shape puts ``name`` and
        ``area`` at the top level.

        Args:
            raw: Station dictionary
            station_id: Key to use when ``raw`` carries no ``id`` of its own

        Returns:
            The parsed Station
        """
        info = raw.get("info") or raw
        reading_raw = raw.get("latestReading", raw.get("latest_reading", raw.get("reading")))
        identifier = raw.get("id", station_id)
        name = str(info.get("name", ""))

        return cls(
            id=str(identifier if identifier is not None else name),
            name=name,
            area=str(info.get("area", "")),
            latitude=_to_float(info.get("latitude")),
            longitude=_to_float(info.get("longitude")),
            device_id=info.get("deviceId", info.get("device_id")),
            latest_reading=Reading.from_dict(reading_raw) if isinstance(reading_raw, dict) else None,
        )

    def with_reading(self, reading: Optional[Reading]) -> "Station":
        """Return a copy of this station carrying ``reading`` as its latest reading."""
        return Station(
            id=self.id,
            name=self.name,
            area=self.area,
            latitude=self.latitude,
            longitude=self.longitude,
            device_id=self.device_id,
            latest_reading=reading,
        )


class StationStore(ABC):
    """Read-only view of the sensor data store."""

    @abstractmethod
    def list_stations(self) -> list[Station]:
        """Return every known station with its latest reading attached."""

    @abstractmethod
    def latest_reading(self, station_id: str) -> Optional[Reading]:
        """Return the most recent reading of ``station_id``, or None."""


class SnapshotStationStore(StationStore):
    """
    Station store backed by a JSON export of the data store.

    The snapshot has the data store's layout::

        {
          "stations": {"<id>": {"info": {"name": ..., "area": ..., ...}}},
          "readings": {"<id>": {"<key>": {"temperature": ..., ...}}}
        }

    Reading keys are numeric (insertion timestamps); the latest reading is the
    one under the numerically largest key. The file is re-read on every call so
    that a polling caller sees new exports.
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    def _load(self) -> dict[str, Any]:
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError as e:
            raise StationStoreError(f"Station snapshot not found: {self.path}") from e
        except (OSError, json.JSONDecodeError) as e:
            raise StationStoreError(f"Station snapshot unreadable: {self.path}: {e}") from e

        if not isinstance(data, dict):
            raise StationStoreError(f"Station snapshot must be a JSON object: {self.path}")
        return data

    @staticmethod
    def _pick_latest(readings: Any) -> Optional[Reading]:
        if not isinstance(readings, dict) or not readings:
            return None

        def sort_key(key: str) -> float:
            value = _to_float(key)
            return value if value is not None else float("-inf")

        latest_key = max(readings.keys(), key=sort_key)
        latest = readings[latest_key]
        return Reading.from_dict(latest) if isinstance(latest, dict) else None

    def list_stations(self) -> list[Station]:
        data = self._load()
        stations_raw = data.get("stations") or {}
        readings_raw = data.get("readings") or {}

        stations = []
        for station_id, raw in stations_raw.items():
            if not isinstance(raw, dict):
                logger.debug(f"Skipping malformed station entry {station_id!r}")
                continue
            station = Station.from_dict(raw, station_id=station_id)
            stations.append(station.with_reading(self._pick_latest(readings_raw.get(station_id))))
        return stations

    def latest_reading(self, station_id: str) -> Optional[Reading]:
        readings_raw = self._load().get("readings") or {}
        return self._pick_latest(readings_raw.get(station_id))


class ReadingHistory:
    """
    Rolling, size-bounded history of readings per station.

    Owned by the presentation layer; the suggestion service only ever looks at
    the latest reading.
    """

    DEFAULT_MAX_SIZE = 5

    def __init__(self, max_size: int = DEFAULT_MAX_SIZE):
        if max_size < 1:
            raise ValueError("max_size must be >= 1")
        self.max_size = max_size
        self._history: dict[str, deque[Reading]] = {}

    def record(self, station: Station) -> None:
        """Append the station's latest reading unless it repeats the last one."""
        reading = station.latest_reading
        if reading is None:
            return
        history = self._history.setdefault(station.id, deque(maxlen=self.max_size))
        # The store is polled faster than stations report
        if history and history[-1] == reading:
            return
        history.append(reading)

    def readings(self, station_id: str) -> list[Reading]:
        """Return recorded readings for ``station_id``, oldest first."""
        return list(self._history.get(station_id, ()))
