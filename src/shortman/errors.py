from __future__ import annotations

from enum import StrEnum


class ErrorCode(StrEnum):
    TRANSPORT_FAILED = "TRANSPORT_FAILED"
    INVALID_ARCHIVE = "INVALID_ARCHIVE"
    UNSAFE_ARCHIVE_ENTRY = "UNSAFE_ARCHIVE_ENTRY"
    UNSUPPORTED_ENTRY_TYPE = "UNSUPPORTED_ENTRY_TYPE"
    CACHE_IO_FAILED = "CACHE_IO_FAILED"


class ShortmanError(Exception):
    """Base class for every expected failure of the cache and update flows.

    Caught by the update flows (which turn it into a failed UpdateOutcome)
    and by the CLI (which prints ``message`` and ``suggestion``). A missing
    page is not an error and never raises; see ``resolver.PageNotFound``.
    """

    code: ErrorCode = ErrorCode.CACHE_IO_FAILED

    def __init__(
        self,
        message: str,
        suggestion: str = "",
        recoverable: bool = False,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.suggestion = suggestion
        self.recoverable = recoverable


class TransportError(ShortmanError):
    """The archive could not be downloaded completely."""

    code = ErrorCode.TRANSPORT_FAILED

    def __init__(self, message: str, suggestion: str = "", recoverable: bool = True) -> None:
        super().__init__(message, suggestion or "Check your network connection and retry.", recoverable)


class InvalidArchive(ShortmanError):
    code = ErrorCode.INVALID_ARCHIVE


class UnsafeArchiveEntry(ShortmanError):
    """An archive member would land outside the extraction root."""

    code = ErrorCode.UNSAFE_ARCHIVE_ENTRY


class UnsupportedEntryType(ShortmanError):
    """An archive member is neither a regular file nor a directory."""

    code = ErrorCode.UNSUPPORTED_ENTRY_TYPE


class CacheIOError(ShortmanError):
    code = ErrorCode.CACHE_IO_FAILED
