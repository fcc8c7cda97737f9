"""
EnvMonitor: environmental monitoring with AI mitigation suggestions.

The package's core is the SuggestionService, which turns a batch of station
readings into mitigation suggestions using an LLM provider when it can and a
deterministic local fallback when it cannot.
"""

from .anomaly_detector import AnomalyDetector
from .fallback_generator import FallbackSuggestionGenerator
from .llm_client import LLMClient
from .response_parser import SuggestionResponseParser
from .station_data import Reading, ReadingHistory, SnapshotStationStore, Station, StationStore
from .suggestion import Suggestion
from .suggestion_service import SuggestionService

__all__ = [
    'AnomalyDetector',
    'FallbackSuggestionGenerator',
    'LLMClient',
    'Reading',
    'ReadingHistory',
    'SnapshotStationStore',
    'Station',
    'StationStore',
    'Suggestion',
    'SuggestionResponseParser',
    'SuggestionService',
]
