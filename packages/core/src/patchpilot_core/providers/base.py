"""Base completion client implementing the Template Method pattern.

All providers share the same request algorithm:
    complete() → _call_api()   ← only this differs per provider
               → classify failure → back off and retry, or raise

Subclasses implement two things only:
  - __init__: build and store the SDK client
  - _call_api: make one raw API call and return the text response, translating
    SDK exceptions with classify_failure()

Retry policy, backoff and the failure taxonomy live here so every provider
behaves identically under rate limiting.
"""

from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod

from patchpilot_core.errors import (
    CompletionError,
    FatalAPIError,
    FatalQuotaError,
    RetriesExhaustedError,
    RetryableError,
)
from patchpilot_core.providers.ratelimit import wait_seconds

logger = logging.getLogger(__name__)

QUOTA_EXHAUSTED_CODE = "insufficient_quota"

# Shared defaults; subclasses may override as class attributes if needed.
_MAX_ATTEMPTS = 6
_MAX_TOKENS = 2000
_REQUEST_TIMEOUT_SECONDS = 20.0


def classify_failure(
    message: str,
    status: int | None = None,
    code: str | None = None,
    headers: dict[str, str] | None = None,
) -> CompletionError:
    """Turn a raw service failure into the matching CompletionError subclass.

    The quota code is checked first: OpenAI reports an exhausted quota as a 429,
    and waiting will not refill it.
    """
    if code == QUOTA_EXHAUSTED_CODE:
        return FatalQuotaError(
            f"{message} (quota exhausted: check billing and API key quota)",
            status=status,
            code=code,
            headers=headers,
        )
    if status is not None and (status == 429 or 500 <= status < 600):
        return RetryableError(message, status=status, code=code, headers=headers)
    return FatalAPIError(message, status=status, code=code, headers=headers)


def lowercase_headers(headers) -> dict[str, str]:
    if not headers:
        return {}
    return {str(k).lower(): str(v) for k, v in headers.items()}


class BaseCompletionClient(ABC):
    MAX_ATTEMPTS: int = _MAX_ATTEMPTS
    MAX_TOKENS: int = _MAX_TOKENS
    TIMEOUT: float = _REQUEST_TIMEOUT_SECONDS

    def __init__(self, model: str, temperature: float):
        self.model = model
        self.temperature = temperature

    # ------------------------------------------------------------------ #
    # Public interface                                                     #
    # ------------------------------------------------------------------ #

    def complete(self, messages: list[dict], max_tokens: int | None = None) -> str:
        """Send ``messages`` in strict-JSON mode and return the raw response text.

        Retryable failures (429, 5xx) are retried up to MAX_ATTEMPTS times in
        total; quota and other failures raise immediately. The caller either
        gets the text exactly as the service returned it or a CompletionError.
        """
        max_tokens = max_tokens or self.MAX_TOKENS
        name = self.__class__.__name__
        last_error: RetryableError | None = None

        for attempt in range(1, self.MAX_ATTEMPTS + 1):
            try:
                content = self._call_api(messages, max_tokens)
            except RetryableError as e:
                last_error = e
                logger.warning("%s error status %s code %s: %s", name, e.status, e.code, e)
                if attempt == self.MAX_ATTEMPTS:
                    break
                delay = wait_seconds(e.headers, attempt)
                logger.warning("Retrying in ~%.1fs attempt %d/%d", delay, attempt, self.MAX_ATTEMPTS)
                time.sleep(delay)
                continue

            if not content:
                raise FatalAPIError(f"{name}: empty response content")
            return content

        logger.error("%s failed after %d attempts", name, self.MAX_ATTEMPTS)
        raise RetriesExhaustedError(
            f"{name}: exhausted retries after {self.MAX_ATTEMPTS} attempts",
            status=last_error.status if last_error else None,
            code=last_error.code if last_error else None,
            headers=last_error.headers if last_error else None,
        ) from last_error

    # ------------------------------------------------------------------ #
    # Abstract: implement in each provider                                #
    # ------------------------------------------------------------------ #

    @abstractmethod
    def _call_api(self, messages: list[dict], max_tokens: int) -> str:
        """Make a single API call and return the raw text response.

        Must raise a CompletionError (via classify_failure) on failure so that
        complete() can decide whether to retry.
        """
