"""
Response parser module for the EnvMonitor system.

Turns the LLM provider's raw completion text into Suggestion records. The
provider is asked for a bare JSON array but regularly wraps it in markdown
fences, sprinkles emphasis markers into it, or emits near-JSON (trailing
commas, comments, single quotes). Parsing is therefore done in two stages:

1. ``clean_payload`` strips the known presentation artifacts.
2. A fixed sequence of parser strategies is tried in order, strict JSON first
   and JSON5 second. The first strategy that decodes the text wins.

Each strategy is a small class with a ``parse(text)`` method that raises
``ValueError`` on failure, so each can be tested on its own.
"""

import json
import re
from typing import Any, Optional, Sequence

import json5
from loguru import logger

from .errors import MalformedPayloadError
from .suggestion import Suggestion

_FENCE_RE = re.compile(r"```[ \t]*[A-Za-z0-9_+-]*[ \t]*")
_EMPHASIS_RE = re.compile(r"\*\*")


def clean_payload(raw: str) -> str:
    """
    Remove non-data artifacts around a JSON array.

    Strips fenced code-block delimiters (``` or ```json), bold markers (**)
    and any prose before the first '[' or after the last ']'.

    Args:
        raw: Raw completion text from the provider

    Returns:
        The cleaned text (may still be invalid JSON)
    """
    text = _FENCE_RE.sub("", raw or "")
    text = _EMPHASIS_RE.sub("", text).strip()

    start = text.find("[")
    end = text.rfind("]")
    if start != -1 and end > start:
        text = text[start:end + 1]
    return text


class StrictJsonParser:
    """Standard JSON, nothing tolerated."""

    name = "json"

    def parse(self, text: str) -> Any:
        # json.JSONDecodeError is a ValueError
        return json.loads(text)


class RelaxedJsonParser:
    """JSON5: trailing commas, comments, single quotes and unquoted keys."""

    name = "json5"

    def parse(self, text: str) -> Any:
        try:
            return json5.loads(text)
        except ValueError:
            raise
        except Exception as e:
            # json5 reports some malformed input with other exception types
            raise ValueError(f"json5 could not parse payload: {e}") from e


class SuggestionResponseParser:
    """
    Converts a provider completion into validated Suggestion records.

    Records that decode but fail validation (missing keys, unknown parameter,
    non-numeric value) are dropped individually. The payload as a whole is
    rejected only if no strategy can decode it, it is not an array, or no
    valid record survives.
    """

    def __init__(self, parsers: Optional[Sequence[Any]] = None):
        self.parsers = tuple(parsers) if parsers is not None else (StrictJsonParser(), RelaxedJsonParser())

    def decode(self, raw: str) -> Any:
        """
        Runs the cleaned payload through each parser strategy in order.

        Raises:
            MalformedPayloadError: If every strategy fails
        """
        text = clean_payload(raw)
        if not text:
            raise MalformedPayloadError("Provider returned an empty payload")

        errors = []
        for parser in self.parsers:
            try:
                return parser.parse(text)
            except ValueError as e:
                errors.append(f"{parser.name}: {e}")
        raise MalformedPayloadError("Payload is not parseable (" + "; ".join(errors) + ")")

    def parse(self, raw: str) -> list[Suggestion]:
        """
        Decodes and validates a completion.

        Args:
            raw: Raw completion text from the provider

        Returns:
            The valid suggestion records, in payload order (never empty)

        Raises:
            MalformedPayloadError: If the payload cannot be decoded, is not an
                array, or contains no valid record
        """
        decoded = self.decode(raw)
        if not isinstance(decoded, list):
            raise MalformedPayloadError(f"Expected a JSON array, got {type(decoded).__name__}")

        suggestions = []
        for index, record in enumerate(decoded):
            try:
                suggestions.append(Suggestion.from_dict(record))
            except ValueError as e:
                logger.debug(f"Dropping provider record {index}: {e}")

        if not suggestions:
            raise MalformedPayloadError(f"No valid suggestion records among {len(decoded)} returned")
        return suggestions
