"""Transport returning canned or computed responses without any network I/O."""

from __future__ import annotations

import copy
import dataclasses
from typing import Any, Callable, Mapping, Union

from ..core import add_missing, call_then
from ..future import Future, deref, is_future
from ..logger import BoundLogger, LogLevel, for_component
from ..types import Request, Response
from .base import Transport, TransportResult

MockResult = Union[Response, Mapping[str, Any], Future]
MockSource = Union[MockResult, Callable[[Request], MockResult]]


def _copy_headers(headers: Any) -> Any:
    if headers is None:
        return None
    return {name: list(values) for name, values in headers.items()}


def _fresh(result: MockResult) -> MockResult:
    """Copy a literal result so callers of one request cannot leak into the next."""
    if isinstance(result, Response):
        return dataclasses.replace(
            result,
            headers=_copy_headers(result.headers),
            transfer_stats=copy.deepcopy(result.transfer_stats),
            curl=dict(result.curl),
            extra=copy.deepcopy(result.extra),
        )
    if isinstance(result, Mapping):
        fresh = {key: copy.deepcopy(value) for key, value in result.items() if key != "body"}
        if "body" in result:
            fresh["body"] = result["body"]
        return fresh
    return result


class MockTransport:
    """Returns ``result`` for every request while still honoring ``request.then``.

    ``result`` may be a response (or plain dict), a future of one, or a
    callable taking the request and returning either.
    """

    kind: Transport.Kind = "mock"

    def __init__(
        self,
        result: MockSource,
        *,
        logger: Any | None = None,
        log_level: LogLevel = "info",
    ) -> None:
        self._result = result
        self._logger: BoundLogger = for_component("mock", logger, log_level)

    def execute(self, request: Request) -> TransportResult:
        response = self._result(request) if callable(self._result) else _fresh(self._result)
        self._logger.debug("Mock %s %s -> %s", request.method, request.url, type(response).__name__)

        if request.then is not None:
            if is_future(response):
                inner = response
                return Future(lambda: call_then(request, deref(inner)))
            return call_then(request, response)

        if is_future(response):
            return response
        return add_missing(response)

    __call__ = execute

    def close(self) -> None:
        pass


__all__ = ["MockTransport"]
