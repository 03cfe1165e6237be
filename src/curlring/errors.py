"""Exceptions raised (or carried) by the curlring adapter."""

from __future__ import annotations

from typing import Any

ERRORS_DOC_URL = "https://curl.se/libcurl/c/libcurl-errors.html"


class CurlRingError(Exception):
    """Base error for all adapter failures."""

    def __init__(self, message: str, *, context: Any | None = None) -> None:
        super().__init__(message)
        self.context = context


class InvalidBodyError(CurlRingError, TypeError):
    """Raised when a request body has a shape the adapter cannot send."""


class InvalidOptionError(CurlRingError, ValueError):
    """Raised when a client setting cannot be applied to the transfer."""


class TransferError(CurlRingError):
    """Describes a failed transfer.

    Instances are stored on ``Response.error`` rather than raised, so network
    failures stay on the normal data path.
    """

    def __init__(self, message: str, *, errno: int = 0, context: Any | None = None) -> None:
        super().__init__(message, context=context)
        self.errno = errno

    @classmethod
    def from_engine(cls, errno: int, text: str | None = None) -> "TransferError":
        detail = text or f"See {ERRORS_DOC_URL}"
        return cls(f"cURL error {errno}: {detail}", errno=errno)


__all__ = [
    "CurlRingError",
    "ERRORS_DOC_URL",
    "InvalidBodyError",
    "InvalidOptionError",
    "TransferError",
]
