"""Public surface for the curlring transport adapter."""

from .errors import (
    CurlRingError,
    InvalidBodyError,
    InvalidOptionError,
    TransferError,
)
from .future import Future, deref
from .streams import BytesStream, LazyOpenStream
from .transport import CurlFactory, CurlTransport, MockTransport, create_response
from .types import HeaderSink, Request, Response, StreamInterface, TransferInfo, TransportOptions
from .version import __version__

__all__ = [
    "__version__",
    "BytesStream",
    "CurlFactory",
    "CurlRingError",
    "CurlTransport",
    "Future",
    "HeaderSink",
    "InvalidBodyError",
    "InvalidOptionError",
    "LazyOpenStream",
    "MockTransport",
    "Request",
    "Response",
    "StreamInterface",
    "TransferError",
    "TransferInfo",
    "TransportOptions",
    "create_response",
    "deref",
]
