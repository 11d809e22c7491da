"""
Error taxonomy for the check pipeline.

Client, store and fetch engine raise these; the check driver decides which ones abort a tick
(primary fetch, primary store) and which are logged and skipped (backfill, deliveries).
"""
from __future__ import annotations


class RainwatchError(Exception):
    """Base for all rainwatch errors."""


class TransportError(RainwatchError):
    """Network/connection failure or a non-2xx response from the rain area API."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class DomainError(RainwatchError):
    """Well-formed response that signals an upstream data error (body has 'error', or is missing coverage)."""


class FetchError(RainwatchError):
    """A logical fetch of one slice failed. cause is the last attempt's error."""

    def __init__(self, message: str, *, cause: Exception | None = None, attempts_used: int = 0) -> None:
        super().__init__(message)
        self.cause = cause
        self.attempts_used = attempts_used


class FetchExhausted(FetchError):
    """Every attempt in the retry budget failed."""


class StoreError(RainwatchError):
    """Persistence failure (ingestion store or state store)."""
