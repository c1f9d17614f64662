"""
Fetcher Errors
==============

Exception hierarchy raised by the job history fetcher.  Every error
derives from ``FetcherError`` so callers can treat a failed fetch
uniformly and simply re‑invoke ``fetch_data`` for transient problems;
nothing is retried internally.

Diagnostic extraction problems are not represented here: the extractor
returns ``None`` instead of raising.
"""

from __future__ import annotations

from typing import Optional


class FetcherError(RuntimeError):
    """Base error for all fetcher failures."""


class ServiceUnavailableError(FetcherError):
    """Raised at construction time when the history server cannot be reached."""


class RemoteServiceError(FetcherError):
    """Raised when a request fails at the transport level or returns a non‑2xx status."""

    def __init__(self, message: str, url: str = "", status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.url = url
        self.status_code = status_code


class AuthenticationError(RemoteServiceError):
    """Raised when the history server rejects the worker's credentials (401/403)."""


class DecodeError(FetcherError):
    """Raised when a required field is missing or malformed in a JSON payload."""


class UnsupportedJobStateError(FetcherError):
    """Raised when a job finished in a state other than SUCCEEDED or FAILED."""

    def __init__(self, job_id: str, state: str) -> None:
        super().__init__(
            f"Job {job_id} is in state {state!r}; only SUCCEEDED and FAILED are supported"
        )
        self.job_id = job_id
        self.state = state
