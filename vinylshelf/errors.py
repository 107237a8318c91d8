"""Error taxonomy and exit code mapping for the shelf sorter."""

from __future__ import annotations

from typing import Optional


class VinylShelfError(Exception):
    """Base error carrying a deterministic CLI exit code."""

    exit_code: int = 1


class ConfigError(VinylShelfError):
    """Missing credentials or invalid settings."""

    exit_code = 2


class ApiError(VinylShelfError):
    """Discogs answered with an HTTP error status."""

    exit_code = 3

    def __init__(self, status: int, message: str = "") -> None:
        self.status = status
        super().__init__(message or f"Discogs API error {status}")

    @property
    def transient(self) -> bool:
        return self.status == 429 or 500 <= self.status < 600


class FetchFailed(VinylShelfError):
    """Collection ingestion aborted.

    ``fetched`` counts the entries handed to the consumer before the failure,
    so callers can tell an empty failure from a partial one.
    """

    exit_code = 3

    def __init__(
        self,
        message: str,
        cause: Optional[BaseException] = None,
        page: Optional[int] = None,
        fetched: int = 0,
    ) -> None:
        super().__init__(message)
        self.cause = cause
        self.page = page
        self.fetched = fetched

    @property
    def partial(self) -> bool:
        return self.fetched > 0

    def describe(self) -> str:
        where = f" on page {self.page}" if self.page else ""
        if self.partial:
            return f"Fetch failed{where} after {self.fetched} entries: {self}"
        return f"Fetch failed{where} before any entries were received: {self}"


def exit_code_for_exception(exc: BaseException) -> int:
    """Resolve a deterministic exit code for an exception."""
    if isinstance(exc, VinylShelfError):
        return exc.exit_code
    if isinstance(exc, OSError):
        return 4
    return 1
