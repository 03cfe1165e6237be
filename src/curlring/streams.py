"""Stream helpers and the bridge from request bodies to engine read callbacks."""

from __future__ import annotations

import enum
import io
import os
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass
from typing import IO, Any, Callable

from .errors import InvalidBodyError
from .types import StreamInterface


class BytesStream:
    """In-memory ``StreamInterface`` over a fixed payload."""

    def __init__(self, data: bytes | str = b"") -> None:
        self._buffer = io.BytesIO(data.encode("utf-8") if isinstance(data, str) else data)

    def read(self, length: int = -1) -> bytes:
        return self._buffer.read(length)

    def write(self, data: bytes) -> int:
        return self._buffer.write(data)

    def get_size(self) -> int | None:
        return len(self._buffer.getbuffer())

    def seek(self, offset: int, whence: int = io.SEEK_SET) -> int:
        return self._buffer.seek(offset, whence)

    def tell(self) -> int:
        return self._buffer.tell()

    def getvalue(self) -> bytes:
        return self._buffer.getvalue()

    def close(self) -> None:
        self._buffer.close()


class LazyOpenStream:
    """File-backed stream that only opens ``path`` on first use."""

    def __init__(self, path: str | os.PathLike[str], mode: str = "r+b") -> None:
        self.path = os.fspath(path)
        self.mode = mode
        self._handle: IO[bytes] | None = None

    @property
    def opened(self) -> bool:
        return self._handle is not None

    def _stream(self) -> IO[bytes]:
        if self._handle is None:
            self._handle = open(self.path, self.mode)
        return self._handle

    def read(self, length: int = -1) -> bytes:
        return self._stream().read(length)

    def write(self, data: bytes) -> int:
        return self._stream().write(data)

    def get_size(self) -> int | None:
        if self._handle is not None:
            self._handle.flush()
        try:
            return os.path.getsize(self.path)
        except OSError:
            return None

    def seek(self, offset: int, whence: int = io.SEEK_SET) -> int:
        return self._stream().seek(offset, whence)

    def tell(self) -> int:
        return self._stream().tell()

    def close(self) -> None:
        if self._handle is not None:
            self._handle.close()
            self._handle = None

    def __repr__(self) -> str:
        return f"LazyOpenStream({self.path!r}, {self.mode!r})"


class ReaderState(enum.Enum):
    BUFFERED = "buffered"
    NEEDS_MORE = "needs_more"
    EXHAUSTED = "exhausted"


class IteratorReader:
    """Pull-based reader over an iterator of byte chunks.

    Chunks are pulled into an internal buffer until ``max_len`` bytes are
    available or the source runs dry; each read slices off at most
    ``max_len`` bytes. The reader cannot be restarted.
    """

    def __init__(self, chunks: Iterable[bytes | str]) -> None:
        self._source: Iterator[bytes | str] = iter(chunks)
        self._buffer = bytearray()
        self.state = ReaderState.NEEDS_MORE

    def read(self, max_len: int) -> bytes:
        while self.state is not ReaderState.EXHAUSTED and len(self._buffer) < max_len:
            self._pull()
        chunk = bytes(self._buffer[:max_len])
        del self._buffer[:max_len]
        if self.state is not ReaderState.EXHAUSTED:
            self.state = ReaderState.BUFFERED if self._buffer else ReaderState.NEEDS_MORE
        return chunk

    def _pull(self) -> None:
        try:
            chunk = next(self._source)
        except StopIteration:
            self.state = ReaderState.EXHAUSTED
            return
        self._buffer += chunk.encode("utf-8") if isinstance(chunk, str) else chunk
        self.state = ReaderState.BUFFERED


@dataclass
class BodyReader:
    """What the engine needs to upload a body: a read callback or a raw handle."""

    read: Callable[[int], bytes] | None = None
    size: int | None = None
    handle: IO[Any] | None = None


def is_string_body(body: Any) -> bool:
    return isinstance(body, (str, bytes, bytearray))


def bridge_body(body: Any) -> BodyReader:
    if isinstance(body, StreamInterface):
        return BodyReader(read=body.read, size=body.get_size())
    if isinstance(body, io.IOBase):
        return BodyReader(handle=body)
    if isinstance(body, Iterable) and not is_string_body(body) and not isinstance(body, Mapping):
        return BodyReader(read=IteratorReader(body).read)
    raise InvalidBodyError(
        f"Invalid request body provided: {type(body).__name__}",
        context=body,
    )


__all__ = [
    "BodyReader",
    "BytesStream",
    "IteratorReader",
    "LazyOpenStream",
    "ReaderState",
    "bridge_body",
    "is_string_body",
]
