"""
Cache entry module for the EnvMonitor system.

This module defines the CacheEntry dataclass which holds the last suggestions
obtained from the LLM provider together with the time they were stored.
"""

from dataclasses import dataclass

from .suggestion import Suggestion


@dataclass(frozen=True)
class CacheEntry:
    """
    Provider suggestions and the clock reading at which they were stored.

    Entries are replaced wholesale, never mutated, so a reader holding a
    reference always sees a consistent pair.

    Attributes:
        created_at: Clock value (seconds) when the entry was stored
        suggestions: The provider's parsed suggestions
    """

    created_at: float
    suggestions: tuple[Suggestion, ...]

    def age(self, now: float) -> float:
        """Seconds elapsed since the entry was stored."""
        return now - self.created_at

    def is_fresh(self, now: float, ttl_seconds: float) -> bool:
        """True while the entry is younger than ``ttl_seconds``."""
        return self.age(now) < ttl_seconds
