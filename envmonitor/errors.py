"""
Error types for the EnvMonitor suggestion service.

The suggestion service never lets these escape to its callers; they travel
between the provider adapter, the response parser and the orchestrator, which
turns each of them into a logged fallback.
"""

from typing import Optional


class EnvMonitorError(Exception):
    """Base class for all EnvMonitor errors."""


class ProviderError(EnvMonitorError):
    """The external LLM provider could not produce a usable completion."""


class ProviderTransportError(ProviderError):
    """The provider was unreachable: connection refused, DNS failure or timeout."""


class ProviderRejectedError(ProviderError):
    """
    The provider answered with a non-success status.

    Attributes:
        status_code: HTTP status returned by the provider, if known
    """

    RATE_LIMIT_STATUS = 429

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code

    @property
    def is_rate_limited(self) -> bool:
        return self.status_code == self.RATE_LIMIT_STATUS


class MalformedPayloadError(EnvMonitorError):
    """The provider's payload could not be turned into suggestion records."""


class StationStoreError(EnvMonitorError):
    """The station data store snapshot is missing or unreadable."""
