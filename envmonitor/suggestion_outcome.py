"""
Suggestion outcome module for the EnvMonitor system.

This module defines the tagged results passed along the suggestion pipeline.
StageResult is what each provider stage returns; SuggestionOutcome is what the
SuggestionService produces for one invocation. Neither is visible through
``get_suggestions``: callers only ever see the suggestion list, and the tags
exist for logging and diagnostics.
"""

from dataclasses import dataclass, field
from typing import Any, Optional

from .suggestion import Suggestion

# Where the returned suggestions came from
SOURCE_NONE = "NONE"
SOURCE_CACHE = "CACHE"
SOURCE_PROVIDER = "PROVIDER"
SOURCE_FALLBACK = "FALLBACK"

# Why a fallback was served
REASON_NO_CREDENTIAL = "NO_CREDENTIAL"
REASON_CONTENDED = "CONTENDED"
REASON_TRANSPORT_ERROR = "TRANSPORT_ERROR"
REASON_PROVIDER_REJECTED = "PROVIDER_REJECTED"
REASON_MALFORMED_PAYLOAD = "MALFORMED_PAYLOAD"
REASON_UNEXPECTED_ERROR = "UNEXPECTED_ERROR"


@dataclass
class StageResult:
    """
    Result of one provider pipeline stage.

    Attributes:
        ok: True if the stage produced a value the next stage can use
        value: The stage's output when ok
        failure: One of the REASON_* tags when not ok
        detail: Human-readable description of the failure, for logs
    """

    ok: bool
    value: Any = None
    failure: Optional[str] = None
    detail: str = ""

    @classmethod
    def success(cls, value: Any) -> "StageResult":
        return cls(ok=True, value=value)

    @classmethod
    def failed(cls, failure: str, detail: str = "") -> "StageResult":
        return cls(ok=False, failure=failure, detail=detail)


@dataclass
class SuggestionOutcome:
    """
    Result of one SuggestionService invocation.

    Attributes:
        suggestions: What the caller receives
        source: One of "NONE", "CACHE", "PROVIDER", "FALLBACK"
        reason: Why the fallback was used (REASON_* tag), None otherwise
    """

    suggestions: list[Suggestion] = field(default_factory=list)
    source: str = SOURCE_NONE
    reason: Optional[str] = None
