"""
LLM client module for the EnvMonitor system.

This module contains the LLMClient class, a thin adapter over the Groq
chat-completions API. It owns credential lookup and SDK client construction,
and translates SDK errors into the package's provider error types so that the
SuggestionService can tell transport failures from provider rejections.

The SDK client is built with retries disabled: a failed call is reported once
and the caller falls back, rather than hammering a provider that is already
rate limiting or down.
"""

import math
import os
from typing import Optional

import groq
from dotenv import load_dotenv
from groq import Groq
from loguru import logger

from .errors import MalformedPayloadError, ProviderRejectedError, ProviderTransportError

load_dotenv()


def env_number(name: str, default: float) -> float:
    """Read a numeric environment variable, falling back to the default on bad input."""
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError:
        value = None
    if value is None or not math.isfinite(value):
        logger.warning(f"Ignoring non-numeric {name}={raw!r}, using {default}")
        return default
    return value


class LLMClient:
    """
    Client for obtaining chat completions from the Groq API.

    Configuration comes from constructor arguments or, when omitted, from the
    environment (a ``.env`` file is honoured):

    - ``GROQ_API_KEY``: provider credential; when absent the client is simply
      not configured and never calls out
    - ``ENVMONITOR_LLM_MODEL``: model name
    - ``ENVMONITOR_LLM_TIMEOUT``: per-request timeout in seconds
    - ``ENVMONITOR_LLM_MAX_TOKENS``: completion size bound
    """

    DEFAULT_MODEL = "llama-3.3-70b-versatile"
    DEFAULT_TIMEOUT_SECONDS = 20.0
    DEFAULT_MAX_TOKENS = 1024
    TEMPERATURE = 0.3

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        timeout: Optional[float] = None,
        max_tokens: Optional[int] = None,
    ):
        """
        Initialize the client.

        Args:
            api_key: Provider credential; read from GROQ_API_KEY if None
            model: Model name; read from ENVMONITOR_LLM_MODEL if None
            timeout: Request timeout in seconds; read from ENVMONITOR_LLM_TIMEOUT if None
            max_tokens: Completion size bound; read from ENVMONITOR_LLM_MAX_TOKENS if None
        """
        self.api_key = api_key if api_key is not None else os.getenv("GROQ_API_KEY", "")
        self.model = model or os.getenv("ENVMONITOR_LLM_MODEL") or self.DEFAULT_MODEL
        self.timeout = timeout if timeout is not None else env_number(
            "ENVMONITOR_LLM_TIMEOUT", self.DEFAULT_TIMEOUT_SECONDS
        )
        self.max_tokens = max_tokens if max_tokens is not None else int(
            env_number("ENVMONITOR_LLM_MAX_TOKENS", self.DEFAULT_MAX_TOKENS)
        )

        self._client: Optional[Groq] = None
        if self.is_configured:
            self._client = Groq(api_key=self.api_key, timeout=self.timeout, max_retries=0)
        else:
            logger.info("LLMClient: GROQ_API_KEY not set, AI suggestions will use local fallback")

    @property
    def is_configured(self) -> bool:
        """True if a provider credential is available."""
        return bool(self.api_key and self.api_key.strip())

    def complete(self, messages: list[dict[str, str]]) -> str:
        """
        Sends one chat completion request and returns the reply text.

        Args:
            messages: Role-tagged chat messages

        Returns:
            The first choice's message content, stripped

        Raises:
            ProviderTransportError: Connection failure or timeout
            ProviderRejectedError: Non-success status, including rate limiting
            MalformedPayloadError: The reply carried no text
        """
        if self._client is None:
            raise ProviderTransportError("LLM client is not configured")

        try:
            completion = self._client.chat.completions.create(
                messages=messages,
                model=self.model,
                temperature=self.TEMPERATURE,
                max_tokens=self.max_tokens,
            )
        except groq.APIStatusError as e:
            raise ProviderRejectedError(
                f"Provider returned status {e.status_code}", status_code=e.status_code
            ) from e
        except groq.APIConnectionError as e:
            # APITimeoutError is a subclass
            raise ProviderTransportError(f"Provider unreachable: {e}") from e

        choices = getattr(completion, "choices", None) or []
        content = choices[0].message.content if choices else None
        if not content or not content.strip():
            raise MalformedPayloadError("Provider returned no completion text")
        return content.strip()
