"""Client-setting handlers, one per ``request.client`` key.

Each handler takes ``(value, context, options)`` and returns the updated
options, or raises ``InvalidOptionError``. New settings only need a new
registered handler.
"""

from __future__ import annotations

import io
import os
import sys
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any, Callable

import pycurl

from ..core import first_header
from ..errors import InvalidOptionError
from ..logger import BoundLogger
from ..streams import LazyOpenStream
from ..types import Headers, Request, TransportOptions


@dataclass
class BuildContext:
    """Per-build state the handlers may read or record into."""

    request: Request
    logger: BoundLogger
    headers: Headers = field(default_factory=dict)
    output: Any = None


SettingHandler = Callable[[Any, BuildContext, TransportOptions], TransportOptions]

CLIENT_SETTINGS: dict[str, SettingHandler] = {}

# Keys read directly by the factory (body_as_string and raw option overrides)
FACTORY_SETTINGS = frozenset({"curl"})


def client_setting(name: str) -> Callable[[SettingHandler], SettingHandler]:
    def register(handler: SettingHandler) -> SettingHandler:
        CLIENT_SETTINGS[name] = handler
        return handler

    return register


def apply_client_settings(context: BuildContext, options: TransportOptions) -> TransportOptions:
    for key, value in (context.request.client or {}).items():
        if key in FACTORY_SETTINGS:
            continue
        handler = CLIENT_SETTINGS.get(key)
        if handler is None:
            context.logger.trace("Ignoring unknown client setting %r", key)
            continue
        options = handler(value, context, options)
    return options


def _existing_path(value: Any, label: str) -> str:
    path = os.fspath(value)
    if not os.path.exists(path):
        raise InvalidOptionError(f"{label} not found: {path}", context=path)
    return path


@client_setting("verify")
def apply_verify(value: Any, context: BuildContext, options: TransportOptions) -> TransportOptions:
    if value is False:
        options.pop(pycurl.CAINFO, None)
        options[pycurl.SSL_VERIFYHOST] = 0
        options[pycurl.SSL_VERIFYPEER] = 0
        return options

    options[pycurl.SSL_VERIFYHOST] = 2
    options[pycurl.SSL_VERIFYPEER] = 1
    if isinstance(value, (str, os.PathLike)):
        options[pycurl.CAINFO] = _existing_path(value, "SSL CA bundle")
    return options


@client_setting("decode_content")
def apply_decode_content(value: Any, context: BuildContext, options: TransportOptions) -> TransportOptions:
    if value is False:
        return options

    accept = first_header(context.request, "Accept-Encoding")
    if accept:
        options[pycurl.ENCODING] = accept
    else:
        options[pycurl.ENCODING] = ""
        # Decode whatever comes back but keep the header off the wire
        options.suppress_header("Accept-Encoding")
    return options


@client_setting("save_to")
def apply_save_to(value: Any, context: BuildContext, options: TransportOptions) -> TransportOptions:
    if isinstance(value, (str, os.PathLike)):
        value = LazyOpenStream(value, "w+b")

    if isinstance(value, io.IOBase):
        options[pycurl.WRITEDATA] = value
    elif callable(getattr(value, "write", None)):
        options[pycurl.WRITEFUNCTION] = value.write
        context.output = value
    else:
        raise InvalidOptionError(
            "save_to must be a path, an open file object or a stream with write()",
            context=value,
        )
    return options


@client_setting("timeout")
def apply_timeout(value: Any, context: BuildContext, options: TransportOptions) -> TransportOptions:
    options[pycurl.TIMEOUT_MS] = int(value * 1000)
    return options


@client_setting("connect_timeout")
def apply_connect_timeout(value: Any, context: BuildContext, options: TransportOptions) -> TransportOptions:
    options[pycurl.CONNECTTIMEOUT_MS] = int(value * 1000)
    return options


@client_setting("proxy")
def apply_proxy(value: Any, context: BuildContext, options: TransportOptions) -> TransportOptions:
    if not isinstance(value, Mapping):
        options[pycurl.PROXY] = value
        return options

    scheme = context.request.scheme
    if scheme in value:
        options[pycurl.PROXY] = value[scheme]
    return options


def _tls_file(value: Any, label: str, option: int, options: TransportOptions) -> TransportOptions:
    if isinstance(value, Sequence) and not isinstance(value, str):
        path, passphrase = value[0], value[1]
        options[pycurl.KEYPASSWD] = passphrase
    else:
        path = value
    options[option] = _existing_path(path, label)
    return options


@client_setting("cert")
def apply_cert(value: Any, context: BuildContext, options: TransportOptions) -> TransportOptions:
    return _tls_file(value, "SSL certificate", pycurl.SSLCERT, options)


@client_setting("ssl_key")
def apply_ssl_key(value: Any, context: BuildContext, options: TransportOptions) -> TransportOptions:
    return _tls_file(value, "SSL private key", pycurl.SSLKEY, options)


@client_setting("progress")
def apply_progress(value: Any, context: BuildContext, options: TransportOptions) -> TransportOptions:
    if not callable(value):
        raise InvalidOptionError("progress client option must be callable", context=value)

    def report(download_total: float, downloaded: float, upload_total: float, uploaded: float) -> None:
        value(download_total, downloaded, upload_total, uploaded)

    options[pycurl.NOPROGRESS] = False
    options[pycurl.PROGRESSFUNCTION] = report
    return options


_DEBUG_PREFIXES = {
    pycurl.INFOTYPE_TEXT: "* ",
    pycurl.INFOTYPE_HEADER_IN: "< ",
    pycurl.INFOTYPE_HEADER_OUT: "> ",
}


@client_setting("debug")
def apply_debug(value: Any, context: BuildContext, options: TransportOptions) -> TransportOptions:
    if not value:
        return options

    stream = value if callable(getattr(value, "write", None)) else sys.stderr
    binary = not isinstance(stream, io.TextIOBase) and stream not in (sys.stdout, sys.stderr)

    def trace(debug_type: int, data: bytes) -> None:
        prefix = _DEBUG_PREFIXES.get(debug_type)
        if prefix is None:
            return
        text = prefix + data.decode("iso-8859-1").rstrip("\r\n") + "\n"
        stream.write(text.encode("iso-8859-1") if binary else text)

    options[pycurl.VERBOSE] = True
    options[pycurl.DEBUGFUNCTION] = trace
    return options


__all__ = [
    "BuildContext",
    "CLIENT_SETTINGS",
    "FACTORY_SETTINGS",
    "SettingHandler",
    "apply_client_settings",
    "client_setting",
]
