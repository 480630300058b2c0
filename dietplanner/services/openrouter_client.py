# dietplanner/services/openrouter_client.py
# Purpose: Single place for OpenRouter chat completions with an explicit
# timeout and a minimal circuit breaker. Keeps Flask routes thin and testable.
# Notes:
# - Accepts an already-configured OpenAI SDK client pointed at OpenRouter.
# - No automatic retries: a failed turn is retried by the user, not by us.
# - Every failure surfaces as UpstreamUnavailableError (502 to the client).

from __future__ import annotations

import logging
import time
from typing import Any, Dict, List, Optional

import openai
from openai import OpenAI

from ..errors import UpstreamUnavailableError


def build_openrouter_client(api_key: Optional[str], base_url: str, timeout: float) -> Optional[OpenAI]:
    """OpenAI SDK client aimed at OpenRouter's OpenAI-compatible API (None without a key)."""
    if not api_key:
        return None
    return OpenAI(api_key=api_key, base_url=base_url, timeout=timeout, max_retries=0)


class CompletionService:
    """Typed façade around the chat completions endpoint.

    Features:
    - Per-call timeout, always applied
    - Minimal circuit breaker (opens after N consecutive failures)
    - SDK errors mapped to UpstreamUnavailableError with the upstream status
    """

    def __init__(
        self,
        client: Any,  # OpenAI() instance or None when no API key is configured
        logger: Optional[logging.Logger] = None,
        *,
        timeout: float = 30.0,
        breaker_threshold: int = 3,
        breaker_cooldown: float = 20.0,
    ) -> None:
        self._client = client
        self._logger = logger or logging.getLogger(__name__)
        self._timeout = timeout
        self._breaker_threshold = breaker_threshold
        self._breaker_cooldown = breaker_cooldown
        self._consecutive_failures = 0
        self._breaker_open_until = 0.0

    # ---- Circuit breaker helpers -------------------------------------------------

    def _check_breaker(self) -> None:
        if time.monotonic() < self._breaker_open_until:
            raise UpstreamUnavailableError("circuit open", upstream_status=503)

    def _record_success(self) -> None:
        self._consecutive_failures = 0

    def _record_failure(self) -> None:
        self._consecutive_failures += 1
        if self._consecutive_failures >= self._breaker_threshold:
            self._breaker_open_until = time.monotonic() + self._breaker_cooldown
            self._logger.error(
                "circuit opened",
                extra={
                    "event": "breaker.open",
                    "cooldown_s": self._breaker_cooldown,
                    "failures": self._consecutive_failures,
                },
            )

    def _fail(self, model: str, message: str, status: int) -> UpstreamUnavailableError:
        self._record_failure()
        self._logger.warning(
            "openrouter chat error",
            extra={
                "event": "openrouter.chat.error",
                "model": model,
                "status": status,
                "error": message,
            },
        )
        return UpstreamUnavailableError(message, upstream_status=status)

    # ---- Public API --------------------------------------------------------------

    def complete(self, model: str, messages: List[Dict[str, str]]) -> str:
        """Non-streaming completion: returns the assistant text."""
        if self._client is None:
            self._logger.error(
                "openrouter api key missing",
                extra={"event": "openrouter.config.error", "model": model},
            )
            raise UpstreamUnavailableError("OpenRouter API key is not configured", upstream_status=500)

        self._check_breaker()
        try:
            resp = self._client.chat.completions.create(
                model=model,
                messages=messages,
                timeout=self._timeout,
            )
        except openai.APITimeoutError as exc:
            raise self._fail(model, f"Request timed out after {self._timeout:g}s", 504) from exc
        except openai.APIConnectionError as exc:
            raise self._fail(model, f"Network error: {exc}", 503) from exc
        except openai.APIStatusError as exc:
            raise self._fail(model, f"OpenRouter API error: {exc.status_code}", exc.status_code) from exc
        except openai.OpenAIError as exc:
            raise self._fail(model, str(exc), 502) from exc

        choices = getattr(resp, "choices", None) or []
        message = getattr(choices[0], "message", None) if choices else None
        content = getattr(message, "content", None)
        if not isinstance(content, str) or not content.strip():
            raise self._fail(model, "Invalid response format from OpenRouter API", 502)

        self._record_success()
        usage = getattr(resp, "usage", None)
        extra = {"event": "openrouter.chat.complete", "model": model}
        if usage:
            extra.update(
                {
                    "prompt_tokens": getattr(usage, "prompt_tokens", None),
                    "completion_tokens": getattr(usage, "completion_tokens", None),
                    "total_tokens": getattr(usage, "total_tokens", None),
                }
            )
        self._logger.info("openrouter chat complete", extra=extra)
        return content.strip()

    # ---- Introspection (optional) -----------------------------------------------

    @property
    def breaker_open(self) -> bool:
        """True if the breaker is currently open (cooling down)."""
        return time.monotonic() < self._breaker_open_until
