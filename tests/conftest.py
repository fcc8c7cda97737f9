"""
Pytest configuration for EnvMonitor tests.

Registers custom markers and provides shared fixtures.
"""

import pytest
from loguru import logger

from envmonitor.station_data import Reading, Station


def pytest_configure(config):
    """Register custom pytest markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )


@pytest.fixture
def make_station():
    """Factory fixture building a Station with an optional reading."""
    def _make(name="S1", area="A", temperature=None, emissions=None, noise=None, reading=True, station_id=None):
        latest = Reading(temperature=temperature, emissions=emissions, noise=noise) if reading else None
        return Station(id=station_id or name, name=name, area=area, latest_reading=latest)
    return _make


@pytest.fixture
def log_messages():
    """Collects Loguru messages emitted during a test."""
    messages = []
    handler_id = logger.add(lambda message: messages.append(message.record["message"]), level="DEBUG")
    yield messages
    logger.remove(handler_id)
