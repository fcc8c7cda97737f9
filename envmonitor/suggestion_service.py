"""
Suggestion service module for the EnvMonitor system.

This module contains the SuggestionService class, the orchestrator behind the
dashboard's AI assistant. It coordinates anomaly detection, a short-lived
result cache, single-flight access to the LLM provider, response parsing and
the deterministic local fallback, and always hands the caller a usable list of
suggestions: failures are logged, never raised.

One instance is meant to live for the whole process and be shared by every
request; the cache entry and the in-flight lock are instance state.
"""

import threading
import time
from typing import Callable, Iterable, Optional

from loguru import logger

from .anomaly_detector import AnomalyDetector
from .cache_entry import CacheEntry
from .errors import (
    MalformedPayloadError,
    ProviderRejectedError,
    ProviderTransportError,
)
from .fallback_generator import FallbackSuggestionGenerator
from .llm_client import LLMClient
from .response_parser import SuggestionResponseParser
from .station_data import Station
from .suggestion import Suggestion
from .suggestion_outcome import (
    REASON_CONTENDED,
    REASON_MALFORMED_PAYLOAD,
    REASON_NO_CREDENTIAL,
    REASON_PROVIDER_REJECTED,
    REASON_TRANSPORT_ERROR,
    REASON_UNEXPECTED_ERROR,
    SOURCE_CACHE,
    SOURCE_FALLBACK,
    SOURCE_NONE,
    SOURCE_PROVIDER,
    StageResult,
    SuggestionOutcome,
)
from .suggestion_prompt import build_messages


class SuggestionService:
    """
    Core orchestrator for AI mitigation suggestions.

    For each invocation, in order:

    1. Detect problematic stations; none means an empty result.
    2. Serve the cached provider result while it is fresh, without
       re-checking it against the current readings.
    3. Compute the local fallback.
    4. Serve the fallback when no provider credential is configured.
    5. Serve the fallback when another invocation holds the in-flight slot;
       nobody waits for the running call.
    6. Otherwise call the provider (no retries), parse its reply, cache it on
       success, and serve the fallback on any failure.

    Concurrency: the in-flight slot is a non-blocking lock acquire, so at most
    one provider call is outstanding per instance. Cache reads and writes take
    a separate short lock.
    """

    # Provider results are reused for two minutes
    CACHE_TTL_SECONDS = 120

    def __init__(
        self,
        llm_client: LLMClient,
        detector: Optional[AnomalyDetector] = None,
        fallback_generator: Optional[FallbackSuggestionGenerator] = None,
        parser: Optional[SuggestionResponseParser] = None,
        cache_ttl_seconds: float = CACHE_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Initialize the service with its collaborators.

        Args:
            llm_client: Provider adapter; its ``is_configured`` decides whether
                the provider is ever called
            detector: Threshold classifier (default AnomalyDetector)
            fallback_generator: Local suggestion generator
            parser: Provider response parser
            cache_ttl_seconds: How long a provider result is served from cache
            clock: Monotonic time source in seconds
        """
        self.llm_client = llm_client
        self.detector = detector or AnomalyDetector()
        self.fallback_generator = fallback_generator or FallbackSuggestionGenerator(self.detector)
        self.parser = parser or SuggestionResponseParser()
        self.cache_ttl_seconds = cache_ttl_seconds
        self._clock = clock

        self._cache: Optional[CacheEntry] = None
        self._cache_lock = threading.Lock()
        self._in_flight = threading.Lock()

    def clear_cache(self) -> None:
        """Drop the cached provider result so the next call re-evaluates."""
        with self._cache_lock:
            self._cache = None

    def get_suggestions(self, stations: Iterable[Station]) -> list[Suggestion]:
        """
        Returns mitigation suggestions for the given stations.

        Never raises. An empty list means no station currently violates a
        threshold.

        Args:
            stations: Current stations with their latest readings

        Returns:
            Suggestions from the cache, the provider or the local fallback
        """
        try:
            return self.evaluate(stations).suggestions
        except Exception:
            logger.exception("Suggestion service failed unexpectedly, returning no suggestions")
            return []

    def evaluate(self, stations: Iterable[Station]) -> SuggestionOutcome:
        """
        Runs one invocation and reports where the suggestions came from.

        Same algorithm as ``get_suggestions``; the outcome's source and reason
        tags are meant for diagnostics and tests.
        """
        # Step 1: Detection
        violating = self.detector.detect(stations)
        if not violating:
            return self._finish(SuggestionOutcome([], SOURCE_NONE))

        # Step 2: Fresh cache wins over the current input
        cached = self._read_fresh_cache()
        if cached is not None:
            return self._finish(SuggestionOutcome(list(cached.suggestions), SOURCE_CACHE))

        # Step 3: Fallback is needed on every remaining failure branch
        fallback = self.fallback_generator.generate(violating)

        # Step 4: No credential
        if not self.llm_client.is_configured:
            logger.debug("No LLM provider credential configured, serving fallback suggestions")
            return self._finish(SuggestionOutcome(fallback, SOURCE_FALLBACK, REASON_NO_CREDENTIAL))

        # Step 5: Single flight, never wait
        if not self._in_flight.acquire(blocking=False):
            logger.info("Provider call already in flight, serving fallback suggestions")
            return self._finish(SuggestionOutcome(fallback, SOURCE_FALLBACK, REASON_CONTENDED))

        # Step 6: Provider pipeline; the slot is released on every exit path
        try:
            result = self._run_provider_pipeline(violating)
            if result.ok:
                self._store(result.value)
                outcome = SuggestionOutcome(list(result.value), SOURCE_PROVIDER)
            else:
                logger.debug(f"Provider pipeline stopped at {result.failure}: {result.detail}")
                outcome = SuggestionOutcome(fallback, SOURCE_FALLBACK, result.failure)
        finally:
            self._in_flight.release()

        return self._finish(outcome)

    def _read_fresh_cache(self) -> Optional[CacheEntry]:
        with self._cache_lock:
            entry = self._cache
        if entry is None:
            return None

        now = self._clock()
        if entry.is_fresh(now, self.cache_ttl_seconds):
            logger.debug(
                f"Using cached suggestions (age: {entry.age(now):.1f}s, TTL: {self.cache_ttl_seconds}s)"
            )
            return entry
        logger.debug(f"Cached suggestions expired (age: {entry.age(now):.1f}s)")
        return None

    def _store(self, suggestions: list[Suggestion]) -> None:
        entry = CacheEntry(created_at=self._clock(), suggestions=tuple(suggestions))
        with self._cache_lock:
            self._cache = entry

    def _provider_stages(self) -> tuple[Callable[..., StageResult], ...]:
        """Ordered provider stages; each feeds its value to the next."""
        return (self._request_completion, self._parse_completion)

    def _run_provider_pipeline(self, violating: list[Station]) -> StageResult:
        value = violating
        for stage in self._provider_stages():
            result = stage(value)
            if not result.ok:
                return result
            value = result.value
        return StageResult.success(value)

    def _request_completion(self, violating: list[Station]) -> StageResult:
        try:
            raw = self.llm_client.complete(build_messages(violating))
        except ProviderRejectedError as e:
            if e.is_rate_limited:
                logger.warning("LLM provider rate limited the request (429), serving fallback without retry")
            else:
                logger.warning(f"LLM provider rejected the request (status {e.status_code}), serving fallback")
            return StageResult.failed(REASON_PROVIDER_REJECTED, str(e))
        except ProviderTransportError as e:
            logger.warning(f"LLM provider transport failure, serving fallback: {e}")
            return StageResult.failed(REASON_TRANSPORT_ERROR, str(e))
        except MalformedPayloadError as e:
            logger.warning(f"LLM provider returned an unusable reply, serving fallback: {e}")
            return StageResult.failed(REASON_MALFORMED_PAYLOAD, str(e))
        except Exception as e:
            logger.exception("LLM provider call failed unexpectedly, serving fallback")
            return StageResult.failed(REASON_UNEXPECTED_ERROR, str(e))
        return StageResult.success(raw)

    def _parse_completion(self, raw: str) -> StageResult:
        try:
            return StageResult.success(self.parser.parse(raw))
        except MalformedPayloadError as e:
            logger.warning(f"Could not parse LLM suggestions, serving fallback: {e}")
            return StageResult.failed(REASON_MALFORMED_PAYLOAD, str(e))
        except Exception as e:
            logger.exception("Parsing LLM suggestions failed unexpectedly, serving fallback")
            return StageResult.failed(REASON_UNEXPECTED_ERROR, str(e))

    def _finish(self, outcome: SuggestionOutcome) -> SuggestionOutcome:
        logger.debug(
            f"Suggestions served: {len(outcome.suggestions)} | source={outcome.source}"
            + (f" | reason={outcome.reason}" if outcome.reason else "")
        )
        return outcome
