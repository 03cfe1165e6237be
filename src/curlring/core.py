"""Request/response helpers shared by the factory, the normalizer and the transports."""

from __future__ import annotations

import io
from collections.abc import Iterable, Mapping, Sequence
from typing import Any

import httpx

from .types import Headers, Request, Response, StreamInterface


def build_url(request: Request) -> str:
    """Return the URL to transfer, with ``request.query`` merged into it."""
    if not request.query:
        return request.url
    url = httpx.URL(request.url).copy_merge_params(dict(request.query))
    return str(url)


def _header_view(request: Request) -> httpx.Headers:
    return httpx.Headers(
        [(name, str(value)) for name, values in request.headers.items() for value in values]
    )


def has_header(request: Request, name: str) -> bool:
    return name in _header_view(request)


def first_header(request: Request, name: str) -> str | None:
    values = _header_view(request).get_list(name)
    return values[0] if values else None


def headers_from_lines(lines: Sequence[str]) -> Headers:
    """Parse ``Name: value`` lines, grouping repeated names in arrival order."""
    headers: Headers = {}
    for line in lines:
        name, sep, value = line.partition(":")
        headers.setdefault(name.strip(), []).append(value.strip() if sep else "")
    return headers


def body_to_bytes(body: Any) -> bytes:
    """Coerce any supported request body into the bytes it would send."""
    if body is None:
        return b""
    if isinstance(body, str):
        return body.encode("utf-8")
    if isinstance(body, (bytes, bytearray)):
        return bytes(body)
    if isinstance(body, (StreamInterface, io.IOBase)):
        data = body.read()
        return data.encode("utf-8") if isinstance(data, str) else data
    if isinstance(body, Iterable) and not isinstance(body, Mapping):
        return b"".join(
            chunk.encode("utf-8") if isinstance(chunk, str) else bytes(chunk) for chunk in body
        )
    return str(body).encode("utf-8")


def add_missing(response: Response | Mapping[str, Any]) -> Response:
    """Fill status, reason, headers, body and effective_url without overwriting."""
    if isinstance(response, Mapping):
        response = Response.from_mapping(response)
    if response.headers is None:
        response.headers = {}
    return response


def call_then(request: Request, response: Response | Mapping[str, Any]) -> Response:
    """Apply ``request.then``; a falsy return keeps the original response."""
    assert request.then is not None
    if isinstance(response, Mapping):
        response = Response.from_mapping(response)
    result = request.then(response) or response
    return add_missing(result)


__all__ = [
    "add_missing",
    "body_to_bytes",
    "build_url",
    "call_then",
    "first_header",
    "has_header",
    "headers_from_lines",
]
