"""Lazy deferred values used for in-flight or not-yet-computed responses."""

from __future__ import annotations

import concurrent.futures
import threading
from typing import Any, Callable, Generic, TypeVar

T = TypeVar("T")

_UNSET = object()


class Future(Generic[T]):
    """Runs its thunk on first dereference and memoizes the outcome.

    Nothing is evaluated at construction time. Errors raised by the thunk are
    re-raised on every dereference.
    """

    def __init__(self, thunk: Callable[[], T]) -> None:
        self._thunk = thunk
        self._lock = threading.Lock()
        self._value: Any = _UNSET
        self._exc: BaseException | None = None

    @property
    def realized(self) -> bool:
        return self._value is not _UNSET or self._exc is not None

    def result(self) -> T:
        with self._lock:
            if not self.realized:
                try:
                    self._value = self._thunk()
                except BaseException as exc:
                    self._exc = exc
        if self._exc is not None:
            raise self._exc
        return self._value

    deref = result

    def __repr__(self) -> str:
        state = "realized" if self.realized else "pending"
        return f"<Future {state}>"


def is_future(value: Any) -> bool:
    return isinstance(value, (Future, concurrent.futures.Future))


def deref(value: Any) -> Any:
    """Return the concrete value behind ``value``; non-futures pass through."""
    if is_future(value):
        return value.result()
    return value


__all__ = ["Future", "deref", "is_future"]
