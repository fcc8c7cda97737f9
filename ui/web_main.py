"""
Web UI module for the EnvMonitor system.

This module provides a Streamlit-based dashboard over the station data store.
It polls a data store snapshot at a fixed interval, shows the latest readings
and a short per-station history, and hosts the AI assistant panel, which asks
the shared SuggestionService for mitigation suggestions.
"""

import os
import sys
from pathlib import Path
from typing import Any

# Add project root to Python path to enable imports
project_root = Path(__file__).parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

import pandas as pd
import streamlit as st
from loguru import logger
from streamlit_autorefresh import st_autorefresh

from envmonitor.anomaly_detector import (
    AnomalyDetector,
    EMISSIONS_THRESHOLD,
    NOISE_THRESHOLD,
    TEMPERATURE_THRESHOLD,
)
from envmonitor.errors import StationStoreError
from envmonitor.llm_client import LLMClient, env_number
from envmonitor.logging_config import configure_logging
from envmonitor.station_data import ReadingHistory, SnapshotStationStore, Station
from envmonitor.suggestion import Suggestion
from envmonitor.suggestion_service import SuggestionService

DEFAULT_SNAPSHOT_PATH = project_root / "data" / "stations_snapshot.json"
DEFAULT_POLL_SECONDS = 10
ALL_AREAS = "All Areas"


@st.cache_resource
def get_suggestion_service() -> SuggestionService:
    """One SuggestionService per process, shared by every session."""
    configure_logging()
    logger.info("Starting EnvMonitor dashboard")
    return SuggestionService(LLMClient())


# Rolling reading history is per browser session
if "reading_history" not in st.session_state:
    st.session_state.reading_history = ReadingHistory()

if "suggestions" not in st.session_state:
    st.session_state.suggestions = []


def _format(value: Any, unit: str) -> str:
    return f"{value:g} {unit}" if value is not None else "n/a"


def readings_table(stations: list[Station], detector: AnomalyDetector) -> pd.DataFrame:
    """Tabulates the latest reading of each station with its violated parameters."""
    rows = []
    for station in stations:
        reading = station.latest_reading
        rows.append({
            "Station": station.name,
            "Area": station.area,
            "Temperature (°C)": reading.temperature if reading else None,
            "PM2.5 (ppm)": reading.emissions if reading else None,
            "Noise (dB)": reading.noise if reading else None,
            "Updated": reading.timestamp.strftime("%H:%M:%S") if reading and reading.timestamp else "",
            "Violations": ", ".join(detector.violated_parameters(reading)) or "None",
        })
    return pd.DataFrame(rows)


def group_by_station(suggestions: list[Suggestion]) -> dict[str, list[Suggestion]]:
    grouped: dict[str, list[Suggestion]] = {}
    for suggestion in suggestions:
        grouped.setdefault(f"{suggestion.station_name} ({suggestion.area})", []).append(suggestion)
    return grouped


def main() -> None:
    """
    Main function that runs the Streamlit dashboard.

    Loads stations from the snapshot on every refresh, renders readings and
    history in the left column and the AI assistant in the right column.
    """
    st.set_page_config(page_title="Environmental Monitoring", layout="wide")
    st.title("Environmental Monitoring")

    snapshot_path = st.sidebar.text_input(
        "Data store snapshot",
        value=os.getenv("ENVMONITOR_SNAPSHOT_PATH", str(DEFAULT_SNAPSHOT_PATH)),
    )
    poll_seconds = max(1, int(env_number("ENVMONITOR_POLL_SECONDS", DEFAULT_POLL_SECONDS)))
    st_autorefresh(interval=poll_seconds * 1000, limit=None, key="station_poll")
    st.sidebar.info(f"🔄 Polling the data store every {poll_seconds} seconds")

    service = get_suggestion_service()
    if st.sidebar.button("Clear suggestion cache"):
        service.clear_cache()
        st.sidebar.success("Cache cleared")

    store = SnapshotStationStore(snapshot_path)
    try:
        stations = store.list_stations()
    except StationStoreError as e:
        logger.error(f"Could not load stations: {e}")
        st.error(str(e))
        return

    history: ReadingHistory = st.session_state.reading_history
    for station in stations:
        history.record(station)

    areas = sorted({station.area for station in stations})
    selected_area = st.sidebar.selectbox("Area", [ALL_AREAS] + areas)
    if selected_area != ALL_AREAS:
        stations = [station for station in stations if station.area == selected_area]

    detector = service.detector
    left_col, right_col = st.columns([3, 2])

    with left_col:
        st.header("Live Readings")
        st.caption(
            f"Thresholds: Temperature > {TEMPERATURE_THRESHOLD} °C, "
            f"PM2.5 > {EMISSIONS_THRESHOLD} ppm, Noise > {NOISE_THRESHOLD} dB"
        )
        if not stations:
            st.info("No stations reported yet.")
        else:
            st.dataframe(readings_table(stations, detector), use_container_width=True)

        for station in stations:
            reading = station.latest_reading
            if reading is None:
                continue
            with st.expander(f"{station.name} ({station.area})"):
                col_t, col_e, col_n = st.columns(3)
                col_t.metric("🌡️ Temperature", _format(reading.temperature, "°C"))
                col_e.metric("🌫️ PM2.5", _format(reading.emissions, "ppm"))
                col_n.metric("🔊 Noise", _format(reading.noise, "dB"))

                recent = history.readings(station.id)
                if len(recent) > 1:
                    st.line_chart(pd.DataFrame(
                        [{"Temperature": r.temperature, "PM2.5": r.emissions, "Noise": r.noise} for r in recent]
                    ))

    with right_col:
        st.header("AI Assistant")
        problematic = detector.detect(stations)
        st.caption(f"⚠️ Stations above thresholds: {len(problematic)}")

        if st.button("Analyze", help="Get mitigation suggestions for stations above thresholds"):
            st.session_state.suggestions = service.get_suggestions(stations)

        suggestions: list[Suggestion] = st.session_state.suggestions
        if not suggestions:
            st.info('Click "Analyze" to get mitigation strategies and suggestions.')
        for station_label, items in group_by_station(suggestions).items():
            st.subheader(station_label)
            for item in items:
                st.write(f"**{item.parameter}:** {item.value:g} (threshold {item.threshold:g})")
                st.write(f"**Suggestion:** {item.suggestion}")


if __name__ == "__main__":
    main()
