"""Exception hierarchy for diffgate."""

from __future__ import annotations


class DiffgateError(Exception):
    pass


class ConfigurationError(DiffgateError):
    """Raised before any work starts when the configuration is unusable."""


# ---------------------------------------------------------------------------
# Upstream (Gemini) failures
# ---------------------------------------------------------------------------

class ReviewClientError(DiffgateError):
    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class UpstreamError(ReviewClientError):
    """Non-retryable HTTP status from the model endpoint."""


class TransientError(ReviewClientError):
    """Rate limiting, server overload or a network failure; worth retrying."""


class MalformedResponseError(ReviewClientError):
    """A successful HTTP response whose body or model text could not be parsed."""
