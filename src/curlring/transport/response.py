"""Turns raw transfer output into a ``Response``."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from ..core import headers_from_lines
from ..errors import TransferError
from ..types import Request, Response, TransferInfo


def parse_status_line(line: str) -> tuple[int | None, str | None]:
    """Split ``HTTP/1.1 200 OK`` into ``(200, "OK")``; missing parts are None."""
    parts = line.split(" ", 2)
    status: int | None = None
    if len(parts) > 1:
        try:
            status = int(parts[1])
        except ValueError:
            status = None
    reason = parts[2] if len(parts) > 2 else None
    return status, reason


def _rewind(body: Any) -> None:
    seek = getattr(body, "seek", None)
    if callable(seek) and not getattr(body, "closed", False):
        seek(0)


def create_response(
    _request: Request,
    info: TransferInfo,
    headers: Sequence[str],
    body: Any,
) -> Response:
    """Build the response for one transfer.

    Engine failures and missing status lines are reported through
    ``Response.error``; this function never raises for them.
    """
    response = Response(
        transfer_stats=dict(info.transfer_stats),
        curl={"errno": info.errno, "error": info.error},
    )
    if "url" in info.transfer_stats:
        response.effective_url = info.transfer_stats["url"]

    if body is not None:
        _rewind(body)
    response.body = body

    lines = list(headers)
    if lines:
        response.status, response.reason = parse_status_line(lines[0])
        response.headers = headers_from_lines(lines[1:])

    if info.errno or response.status is None:
        return create_error_response(response, info)
    if response.headers is None:
        response.headers = {}
    return response


def create_error_response(response: Response, info: TransferInfo) -> Response:
    error = TransferError.from_engine(info.errno, info.error)
    response.status = None
    response.reason = None
    response.body = None
    response.headers = {}
    response.error = error
    return response


__all__ = ["create_error_response", "create_response", "parse_status_line"]
