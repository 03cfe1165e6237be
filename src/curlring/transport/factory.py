"""Translates a ``Request`` into the ``pycurl`` options that perform it."""

from __future__ import annotations

import tempfile
from typing import Any, NamedTuple

import pycurl

from ..core import body_to_bytes, build_url, first_header, has_header
from ..logger import BoundLogger, LogLevel, for_component
from ..streams import bridge_body, is_string_body
from ..types import HeaderSink, Request, TransportOptions
from .settings import BuildContext, apply_client_settings


class Transfer(NamedTuple):
    """Everything one transfer needs: engine options, header sink and output body."""

    options: TransportOptions
    headers: HeaderSink
    body: Any


def _curl_settings(request: Request) -> dict[Any, Any]:
    return (request.client or {}).get("curl") or {}


class CurlFactory:
    """Builds a fresh option set per request; holds no per-request state."""

    STRING_BODY_LIMIT = 1_000_000
    DEFAULT_CONNECT_TIMEOUT = 150
    BODY_OPTIONS = (
        pycurl.WRITEFUNCTION,
        pycurl.READFUNCTION,
        pycurl.WRITEDATA,
        pycurl.READDATA,
    )

    def __init__(self, *, logger: Any | None = None, log_level: LogLevel = "info") -> None:
        self._logger: BoundLogger = for_component("factory", logger, log_level)

    def build(self, request: Request) -> Transfer:
        sink = HeaderSink()
        context = BuildContext(request=request, logger=self._logger, headers=dict(request.headers))
        options = self._default_options(request, sink)

        self._apply_method(context, options)
        self._apply_headers(context, options)
        if request.client is not None:
            options = apply_client_settings(context, options)
        self._apply_raw_overrides(request, options)
        body = self._output_body(context, options)

        self._logger.debug(
            "Built %s %s options=%d header_lines=%d",
            request.method,
            options[pycurl.URL],
            len(options),
            len(options.header_lines),
        )
        return Transfer(options, sink, body)

    __call__ = build

    def _default_options(self, request: Request, sink: HeaderSink) -> TransportOptions:
        options = TransportOptions(header_key=pycurl.HTTPHEADER)
        options[pycurl.URL] = build_url(request)
        options[pycurl.HEADER] = False
        options[pycurl.CONNECTTIMEOUT] = self.DEFAULT_CONNECT_TIMEOUT
        options[pycurl.HEADERFUNCTION] = sink.collect
        options[pycurl.HTTPHEADER] = []
        if hasattr(pycurl, "PROTOCOLS"):
            options[pycurl.PROTOCOLS] = pycurl.PROTO_HTTP | pycurl.PROTO_HTTPS
        return options

    def _apply_method(self, context: BuildContext, options: TransportOptions) -> None:
        request = context.request
        if request.method == "HEAD":
            options[pycurl.NOBODY] = True
            self._strip_body_options(options)
            return

        options[pycurl.CUSTOMREQUEST] = request.method
        if request.body is not None:
            self._apply_body(context, options)

    def _apply_body(self, context: BuildContext, options: TransportOptions) -> None:
        request = context.request
        size = self._declared_size(request)

        if (
            (size is not None and size < self.STRING_BODY_LIMIT)
            or _curl_settings(request).get("body_as_string")
            or is_string_body(request.body)
        ):
            options[pycurl.POSTFIELDS] = body_to_bytes(request.body)
            # The engine computes the length of an in-memory body itself
            self._remove_header(context, "Content-Length")
            self._remove_header(context, "Transfer-Encoding")
        else:
            reader = bridge_body(request.body)
            options[pycurl.UPLOAD] = True
            if size is not None:
                options[pycurl.INFILESIZE] = size
                self._remove_header(context, "Content-Length")
            if reader.handle is not None:
                options[pycurl.READDATA] = reader.handle
            else:
                options[pycurl.READFUNCTION] = reader.read
                if pycurl.INFILESIZE not in options and reader.size:
                    options[pycurl.INFILESIZE] = reader.size

        if not has_header(request, "Expect"):
            options.suppress_header("Expect")
        if not has_header(request, "Content-Type"):
            options.suppress_header("Content-Type")

    def _declared_size(self, request: Request) -> int | None:
        content_length = first_header(request, "Content-Length")
        if content_length is None:
            return None
        try:
            return int(content_length)
        except ValueError:
            self._logger.warn("Ignoring malformed Content-Length %r", content_length)
            return None

    def _apply_headers(self, context: BuildContext, options: TransportOptions) -> None:
        for name, values in context.headers.items():
            for value in values:
                options.add_header_line(f"{name}: {value}")

        if not has_header(context.request, "Accept"):
            options.suppress_header("Accept")

    def _apply_raw_overrides(self, request: Request, options: TransportOptions) -> None:
        for key, value in _curl_settings(request).items():
            if isinstance(key, int) and not isinstance(key, bool):
                options[key] = value

    def _output_body(self, context: BuildContext, options: TransportOptions) -> Any:
        if context.request.method == "HEAD":
            self._strip_body_options(options)
            return None
        if pycurl.WRITEFUNCTION in options:
            return context.output
        if pycurl.WRITEDATA in options:
            return options[pycurl.WRITEDATA]

        body = tempfile.TemporaryFile("w+b")
        options[pycurl.WRITEDATA] = body
        options.owned_body = body
        return body

    def _strip_body_options(self, options: TransportOptions) -> None:
        for key in self.BODY_OPTIONS:
            options.pop(key, None)

    @staticmethod
    def _remove_header(context: BuildContext, name: str) -> None:
        lowered = name.lower()
        for key in [key for key in context.headers if key.lower() == lowered]:
            del context.headers[key]


__all__ = ["CurlFactory", "Transfer"]
