"""Exception hierarchy for the review pipeline.

Every fatal condition raised by patchpilot_core derives from PatchPilotError so
the CLI can report it uniformly and exit non-zero. Exceptions that are part of
a designed recovery path (RetryableError, PublishRejected) are caught inside
the core and never reach the caller unless recovery itself fails.
"""

from __future__ import annotations


class PatchPilotError(Exception):
    """Base class for all patchpilot errors."""


class PullRequestContextError(PatchPilotError):
    """The repository or pull request number could not be determined."""


# --------------------------------------------------------------------------- #
# Completion service                                                          #
# --------------------------------------------------------------------------- #


class CompletionError(PatchPilotError):
    """A call to the completion service failed.

    ``status`` is the HTTP status when the service answered at all, ``code`` the
    service's own error code (e.g. ``insufficient_quota``), and ``headers`` the
    response headers, lower-cased, used to compute rate-limit backoff.
    """

    def __init__(
        self,
        message: str,
        status: int | None = None,
        code: str | None = None,
        headers: dict[str, str] | None = None,
    ):
        super().__init__(message)
        self.status = status
        self.code = code
        self.headers = headers or {}


class RetryableError(CompletionError):
    """429 or 5xx. Retried with backoff until the attempt budget runs out."""


class FatalQuotaError(CompletionError):
    """The account has no quota left. Retrying cannot help."""


class FatalAPIError(CompletionError):
    """Any other non-retryable failure."""


class RetriesExhaustedError(CompletionError):
    """Every attempt failed with a retryable error."""


# --------------------------------------------------------------------------- #
# Output validation                                                           #
# --------------------------------------------------------------------------- #


class SchemaValidationError(PatchPilotError):
    """No stage of the validator produced output matching the review schema."""

    def __init__(self, message: str, reasons: list[str] | None = None):
        super().__init__(message)
        self.reasons = reasons or []


# --------------------------------------------------------------------------- #
# Publishing                                                                  #
# --------------------------------------------------------------------------- #


class PublishRejected(PatchPilotError):
    """The host refused the batched inline review (HTTP 422)."""


class RefUpdateConflictError(PatchPilotError):
    """The branch moved underneath us; the non-forced ref update was refused."""
