"""
Tests for station data: Reading, Station, SnapshotStationStore and ReadingHistory.

Tests cover:
- Wire shape parsing: flat and data store shapes, timestamps in s and ms
- Snapshot store: latest reading selection, missing readings, bad files
- Reading history: bounded size, duplicate suppression
"""

import json
from datetime import datetime, timezone

import pytest
from envmonitor.errors import StationStoreError
from envmonitor.station_data import (
    Reading,
    ReadingHistory,
    SnapshotStationStore,
    Station,
)


class TestReading:
    """Test suite for Reading."""

    def test_from_dict_full(self):
        reading = Reading.from_dict({"temperature": 31, "emissions": "160", "noise": 70.5, "timestamp": 1700000000})
        assert reading.temperature == 31.0
        assert reading.emissions == 160.0
        assert reading.noise == 70.5
        assert reading.timestamp == datetime.fromtimestamp(1700000000, tz=timezone.utc)

    def test_from_dict_millisecond_timestamp(self):
        reading = Reading.from_dict({"timestamp": 1700000000123})
        assert reading.timestamp == datetime.fromtimestamp(1700000000.123, tz=timezone.utc)

    @pytest.mark.parametrize("epoch", [1e20, "1e400", -1e20])
    def test_from_dict_out_of_range_timestamp(self, epoch):
        """Corrupt epochs are dropped instead of failing the whole reading."""
        reading = Reading.from_dict({"temperature": 35, "timestamp": epoch})
        assert reading.temperature == 35.0
        assert reading.timestamp is None

    def test_from_dict_iso_datetime(self):
        reading = Reading.from_dict({"datetime": "2024-10-19T10:30:00"})
        assert reading.timestamp == datetime(2024, 10, 19, 10, 30)

    def test_from_dict_missing_and_invalid_fields(self):
        reading = Reading.from_dict({"temperature": "n/a", "noise": True, "datetime": "yesterday"})
        assert reading == Reading()

    def test_to_dict(self):
        assert Reading(temperature=30.0).to_dict() == {
            "temperature": 30.0,
            "emissions": None,
            "noise": None,
            "timestamp": None,
        }


class TestStation:
    """Test suite for Station."""

    def test_from_dict_flat_shape(self):
        station = Station.from_dict({"name": "S1", "area": "A", "reading": {"temperature": 32, "emissions": 100, "noise": 50}})
        assert station.id == "S1"
        assert station.name == "S1"
        assert station.area == "A"
        assert station.latest_reading == Reading(temperature=32, emissions=100, noise=50)

    def test_from_dict_store_shape(self):
        raw = {
            "id": "st-1",
            "info": {"name": "Anand Vihar", "area": "East", "deviceId": "dev-9", "latitude": 28.6, "longitude": 77.3},
            "latestReading": {"noise": 91},
        }
        station = Station.from_dict(raw)
        assert station.id == "st-1"
        assert station.device_id == "dev-9"
        assert station.latitude == 28.6
        assert station.latest_reading.noise == 91

    def test_from_dict_without_reading(self):
        station = Station.from_dict({"info": {"name": "S1", "area": "A"}}, station_id="k1")
        assert station.id == "k1"
        assert station.latest_reading is None

    def test_with_reading_returns_copy(self):
        station = Station(id="1", name="S1", area="A")
        updated = station.with_reading(Reading(noise=90))
        assert station.latest_reading is None
        assert updated.latest_reading.noise == 90


class TestSnapshotStationStore:
    """Test suite for SnapshotStationStore."""

    @pytest.fixture
    def snapshot(self, tmp_path):
        """Writes a small data store snapshot and returns its path."""
        data = {
            "stations": {
                "a": {"info": {"name": "Alpha", "area": "North"}},
                "b": {"info": {"name": "Beta", "area": "South"}},
                "c": "corrupt",
            },
            "readings": {
                "a": {
                    "9": {"temperature": 20},
                    "10": {"temperature": 33},
                    "2": {"temperature": 25},
                },
            },
        }
        path = tmp_path / "snapshot.json"
        path.write_text(json.dumps(data), encoding="utf-8")
        return path

    def test_latest_reading_uses_largest_numeric_key(self, snapshot):
        """Key "10" is newer than "9" even though it sorts first as text."""
        store = SnapshotStationStore(snapshot)
        assert store.latest_reading("a").temperature == 33

    def test_station_without_readings(self, snapshot):
        store = SnapshotStationStore(snapshot)
        assert store.latest_reading("b") is None
        assert store.latest_reading("unknown") is None

    def test_list_stations(self, snapshot):
        stations = SnapshotStationStore(snapshot).list_stations()
        assert [(s.id, s.name) for s in stations] == [("a", "Alpha"), ("b", "Beta")]
        assert stations[0].latest_reading.temperature == 33
        assert stations[1].latest_reading is None

    def test_corrupt_timestamp_does_not_break_listing(self, tmp_path):
        data = {
            "stations": {"s1": {"info": {"name": "Alpha", "area": "North"}}},
            "readings": {"s1": {"1": {"temperature": 35, "timestamp": 1e20}}},
        }
        path = tmp_path / "snapshot.json"
        path.write_text(json.dumps(data), encoding="utf-8")

        [station] = SnapshotStationStore(path).list_stations()

        assert station.latest_reading.temperature == 35.0
        assert station.latest_reading.timestamp is None

    def test_missing_file(self, tmp_path):
        with pytest.raises(StationStoreError, match="not found"):
            SnapshotStationStore(tmp_path / "missing.json").list_stations()

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(StationStoreError, match="unreadable"):
            SnapshotStationStore(path).list_stations()

    def test_non_object_snapshot(self, tmp_path):
        path = tmp_path / "list.json"
        path.write_text("[]", encoding="utf-8")
        with pytest.raises(StationStoreError):
            SnapshotStationStore(path).list_stations()


class TestReadingHistory:
    """Test suite for ReadingHistory."""

    def test_keeps_most_recent_readings(self):
        history = ReadingHistory(max_size=3)
        station = Station(id="1", name="S1", area="A")
        for value in range(5):
            history.record(station.with_reading(Reading(noise=value)))

        assert [r.noise for r in history.readings("1")] == [2, 3, 4]

    def test_repeated_reading_recorded_once(self):
        history = ReadingHistory()
        station = Station(id="1", name="S1", area="A", latest_reading=Reading(noise=60))
        history.record(station)
        history.record(station)
        assert len(history.readings("1")) == 1

    def test_station_without_reading_ignored(self):
        history = ReadingHistory()
        history.record(Station(id="1", name="S1", area="A"))
        assert history.readings("1") == []

    def test_default_size_is_five(self):
        assert ReadingHistory().max_size == 5

    def test_invalid_size(self):
        with pytest.raises(ValueError):
            ReadingHistory(max_size=0)
