"""Common transport abstractions."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal, Mapping, Protocol, Union, runtime_checkable

from ..future import Future
from ..logger import LogLevel
from ..types import Request, Response

TransportKind = Literal["curl", "mock"]

TransportResult = Union[Response, Future]


@dataclass
class TransportConfig:
    defaults: Mapping[str, Any] = field(default_factory=dict)
    logger: object | None = None
    log_level: LogLevel = "info"


@runtime_checkable
class Transport(Protocol):
    Kind = TransportKind

    @property
    def kind(self) -> TransportKind: ...

    def execute(self, request: Request) -> TransportResult: ...

    def __call__(self, request: Request) -> TransportResult: ...

    def close(self) -> None: ...


__all__ = ["Transport", "TransportConfig", "TransportKind", "TransportResult"]
