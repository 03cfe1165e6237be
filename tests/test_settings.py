import io

import pycurl
import pytest

from curlring import BytesStream, InvalidOptionError, LazyOpenStream, Request, TransportOptions
from curlring.logger import create_logger
from curlring.transport.settings import (
    CLIENT_SETTINGS,
    BuildContext,
    apply_client_settings,
)

URL = "https://example.com/"


def make_context(request: Request | None = None) -> BuildContext:
    return BuildContext(request=request or Request("GET", URL), logger=create_logger())


def make_options() -> TransportOptions:
    return TransportOptions(header_key=pycurl.HTTPHEADER)


def apply(key: str, value, request: Request | None = None, options: TransportOptions | None = None):
    return CLIENT_SETTINGS[key](value, make_context(request), options if options is not None else make_options())


def test_registry_covers_documented_settings() -> None:
    assert {
        "verify",
        "decode_content",
        "save_to",
        "timeout",
        "connect_timeout",
        "proxy",
        "cert",
        "ssl_key",
        "progress",
        "debug",
    } <= set(CLIENT_SETTINGS)


def test_verify_false_disables_checks_and_drops_ca_bundle() -> None:
    options = make_options()
    options[pycurl.CAINFO] = "/etc/ssl/ca.pem"
    options = apply("verify", False, options=options)
    assert options[pycurl.SSL_VERIFYHOST] == 0
    assert options[pycurl.SSL_VERIFYPEER] == 0
    assert pycurl.CAINFO not in options


def test_verify_true_uses_engine_defaults() -> None:
    options = apply("verify", True)
    assert options[pycurl.SSL_VERIFYHOST] == 2
    assert options[pycurl.SSL_VERIFYPEER] == 1
    assert pycurl.CAINFO not in options


def test_verify_path_sets_ca_bundle(tmp_path) -> None:
    bundle = tmp_path / "ca.pem"
    bundle.write_text("cert")
    options = apply("verify", str(bundle))
    assert options[pycurl.CAINFO] == str(bundle)
    assert options[pycurl.SSL_VERIFYPEER] == 1


def test_verify_missing_path_fails(tmp_path) -> None:
    with pytest.raises(InvalidOptionError, match="SSL CA bundle not found"):
        apply("verify", str(tmp_path / "missing.pem"))


def test_decode_content_without_header_suppresses_it() -> None:
    options = apply("decode_content", True)
    assert options[pycurl.ENCODING] == ""
    assert options.header_lines == ["Accept-Encoding:"]


def test_decode_content_uses_explicit_accept_encoding() -> None:
    request = Request("GET", URL, headers={"accept-encoding": "gzip"})
    options = apply("decode_content", True, request=request)
    assert options[pycurl.ENCODING] == "gzip"
    assert options.header_lines == []


def test_decode_content_false_is_a_no_op() -> None:
    options = apply("decode_content", False)
    assert pycurl.ENCODING not in options


def test_timeouts_are_converted_to_milliseconds() -> None:
    options = apply("timeout", 0.5)
    options = apply("connect_timeout", 2, options=options)
    assert options[pycurl.TIMEOUT_MS] == 500
    assert options[pycurl.CONNECTTIMEOUT_MS] == 2000


def test_proxy_string() -> None:
    options = apply("proxy", "http://proxy:3128")
    assert options[pycurl.PROXY] == "http://proxy:3128"


def test_proxy_mapping_selects_request_scheme() -> None:
    proxies = {"http": "http://plain:80", "https": "http://secure:443"}
    options = apply("proxy", proxies)
    assert options[pycurl.PROXY] == "http://secure:443"

    options = apply("proxy", {"http": "http://plain:80"})
    assert pycurl.PROXY not in options


def test_cert_with_passphrase(tmp_path) -> None:
    cert = tmp_path / "client.pem"
    cert.write_text("pem")
    options = apply("cert", [str(cert), "secret"])
    assert options[pycurl.SSLCERT] == str(cert)
    assert options[pycurl.KEYPASSWD] == "secret"


def test_ssl_key_path(tmp_path) -> None:
    key = tmp_path / "client.key"
    key.write_text("key")
    options = apply("ssl_key", key)
    assert options[pycurl.SSLKEY] == str(key)
    assert pycurl.KEYPASSWD not in options


@pytest.mark.parametrize(
    ("key", "message"),
    [("cert", "SSL certificate not found"), ("ssl_key", "SSL private key not found")],
)
def test_missing_tls_files_fail(tmp_path, key: str, message: str) -> None:
    with pytest.raises(InvalidOptionError, match=message):
        apply(key, (str(tmp_path / "nope"), "pass"))


def test_progress_forwards_transfer_counters() -> None:
    calls = []
    options = apply("progress", lambda *args: calls.append(args))
    assert options[pycurl.NOPROGRESS] is False
    options[pycurl.PROGRESSFUNCTION](100, 10, 50, 5)
    assert calls == [(100, 10, 50, 5)]


def test_progress_must_be_callable() -> None:
    with pytest.raises(InvalidOptionError):
        apply("progress", "not callable")


def test_debug_writes_trace_to_given_text_stream() -> None:
    stream = io.StringIO()
    options = apply("debug", stream)
    assert options[pycurl.VERBOSE] is True
    trace = options[pycurl.DEBUGFUNCTION]
    trace(pycurl.INFOTYPE_TEXT, b"Connected\n")
    trace(pycurl.INFOTYPE_HEADER_OUT, b"GET / HTTP/1.1\r\n")
    trace(pycurl.INFOTYPE_DATA_IN, b"body bytes")
    assert stream.getvalue() == "* Connected\n> GET / HTTP/1.1\n"


def test_debug_writes_bytes_to_binary_stream() -> None:
    stream = io.BytesIO()
    options = apply("debug", stream)
    options[pycurl.DEBUGFUNCTION](pycurl.INFOTYPE_HEADER_IN, b"HTTP/1.1 200 OK\r\n")
    assert stream.getvalue() == b"< HTTP/1.1 200 OK\n"


def test_debug_falsy_leaves_options_alone() -> None:
    options = apply("debug", False)
    assert pycurl.VERBOSE not in options


def test_save_to_rejects_unknown_types() -> None:
    with pytest.raises(InvalidOptionError):
        apply("save_to", 42)


def test_unknown_settings_are_ignored() -> None:
    request = Request("GET", URL, client={"allow_redirects": True, "timeout": 3})
    options = apply_client_settings(make_context(request), make_options())
    assert options[pycurl.TIMEOUT_MS] == 3000
    assert "allow_redirects" not in options


def test_debug_writes_bytes_to_package_streams(tmp_path) -> None:
    stream = BytesStream()
    options = apply("debug", stream)
    options[pycurl.DEBUGFUNCTION](pycurl.INFOTYPE_TEXT, b"Connected\n")
    assert stream.getvalue() == b"* Connected\n"

    lazy = LazyOpenStream(tmp_path / "trace.log", "w+b")
    options = apply("debug", lazy)
    options[pycurl.DEBUGFUNCTION](pycurl.INFOTYPE_HEADER_OUT, b"GET / HTTP/1.1\r\n")
    lazy.close()
    assert (tmp_path / "trace.log").read_bytes() == b"> GET / HTTP/1.1\n"


class TraceRecorder:
    def __init__(self) -> None:
        self.messages: list[str] = []

    def trace(self, msg: str, *args) -> None:
        self.messages.append(msg % args)


def test_factory_settings_are_skipped_without_a_handler() -> None:
    recorder = TraceRecorder()
    request = Request("GET", URL, client={"curl": {"body_as_string": True}, "mystery": 1})
    context = BuildContext(request=request, logger=create_logger(logger=recorder, level="trace"))
    options = apply_client_settings(context, make_options())
    assert "curl" not in CLIENT_SETTINGS
    assert recorder.messages == ["Ignoring unknown client setting 'mystery'"]
    assert dict(options) == {}
