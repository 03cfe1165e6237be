"""Transport implementations exposed to users."""

from .base import Transport, TransportConfig, TransportKind, TransportResult
from .curl import CurlTransport
from .factory import CurlFactory, Transfer
from .mock import MockTransport
from .response import create_response

__all__ = [
    "CurlFactory",
    "CurlTransport",
    "MockTransport",
    "Transfer",
    "Transport",
    "TransportConfig",
    "TransportKind",
    "TransportResult",
    "create_response",
]
