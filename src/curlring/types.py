"""Request/response shapes shared by the factory, the normalizer and the transports."""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from typing import Any, Callable, Iterator, Mapping, Protocol, runtime_checkable

import httpx

from .errors import TransferError

Headers = dict[str, list[str]]


@runtime_checkable
class StreamInterface(Protocol):
    """Stream objects accepted as request bodies and ``save_to`` targets."""

    def read(self, length: int = -1) -> bytes: ...

    def get_size(self) -> int | None: ...


@dataclass
class Request:
    method: str
    url: str
    headers: Headers = field(default_factory=dict)
    body: Any = None
    client: dict[str, Any] | None = None
    then: Callable[["Response"], "Response | None"] | None = None
    query: Mapping[str, Any] | None = None
    future: bool = False

    def __post_init__(self) -> None:
        self.method = self.method.upper()
        self.headers = {
            name: [values] if isinstance(values, str) else list(values)
            for name, values in (self.headers or {}).items()
        }

    @property
    def scheme(self) -> str:
        return httpx.URL(self.url).scheme


@dataclass
class Response:
    status: int | None = None
    reason: str | None = None
    headers: Headers | None = None
    body: Any = None
    effective_url: str | None = None
    error: TransferError | None = None
    transfer_stats: dict[str, Any] = field(default_factory=dict)
    curl: dict[str, Any] = field(default_factory=dict)
    extra: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "Response":
        """Build a response from a plain dict, keeping unknown keys in ``extra``."""
        known = {f.name for f in fields(cls)} - {"extra"}
        values = {key: value for key, value in data.items() if key in known}
        extra = {key: value for key, value in data.items() if key not in known}
        return cls(**values, extra=extra)

    @property
    def ok(self) -> bool:
        return self.error is None

    def raise_for_error(self) -> "Response":
        if self.error is not None:
            raise self.error
        return self

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": self.status,
            "reason": self.reason,
            "headers": self.headers,
            "body": self.body,
            "effective_url": self.effective_url,
            "error": self.error,
        }


class TransportOptions(dict):
    """Engine option set keyed by ``pycurl`` option constants.

    The outgoing header lines live under ``header_key`` as an ordered list that
    several build steps append to.
    """

    def __init__(self, *args: Any, header_key: int, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.header_key = header_key
        self.owned_body: Any = None

    def add_header_line(self, line: str) -> None:
        self.setdefault(self.header_key, []).append(line)

    def suppress_header(self, name: str) -> None:
        """Send ``Name:`` so the engine drops its own default for that header."""
        self.add_header_line(f"{name}:")

    @property
    def header_lines(self) -> list[str]:
        return list(self.get(self.header_key, []))


class HeaderSink:
    """Ordered output channel receiving response header lines from the engine."""

    def __init__(self) -> None:
        self._lines: list[str] = []

    def collect(self, line: bytes | str) -> None:
        text = line.decode("iso-8859-1") if isinstance(line, (bytes, bytearray)) else line
        value = text.strip()
        if value:
            self._lines.append(value)

    @property
    def lines(self) -> list[str]:
        return list(self._lines)

    def __iter__(self) -> Iterator[str]:
        return iter(self._lines)

    def __len__(self) -> int:
        return len(self._lines)

    def __repr__(self) -> str:
        return f"HeaderSink({self._lines!r})"


@dataclass
class TransferInfo:
    """Raw engine outcome handed to the response normalizer."""

    errno: int = 0
    error: str | None = None
    transfer_stats: dict[str, Any] = field(default_factory=dict)


__all__ = [
    "HeaderSink",
    "Headers",
    "Request",
    "Response",
    "StreamInterface",
    "TransferInfo",
    "TransportOptions",
]
