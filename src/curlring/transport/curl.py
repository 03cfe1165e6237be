"""Transport performing transfers with libcurl through pycurl."""

from __future__ import annotations

import dataclasses
from typing import Any, Mapping

import pycurl

from ..core import call_then
from ..future import Future
from ..logger import BoundLogger, LogLevel, for_component
from ..types import Request, Response, TransferInfo, TransportOptions
from .base import Transport, TransportConfig, TransportResult
from .factory import CurlFactory, Transfer
from .response import create_response

# Transfer stats gathered after every perform(), keyed by response stat name
TRANSFER_STATS: dict[str, int] = {
    "url": pycurl.EFFECTIVE_URL,
    "http_code": pycurl.RESPONSE_CODE,
    "total_time": pycurl.TOTAL_TIME,
    "namelookup_time": pycurl.NAMELOOKUP_TIME,
    "connect_time": pycurl.CONNECT_TIME,
    "size_download": pycurl.SIZE_DOWNLOAD,
    "size_upload": pycurl.SIZE_UPLOAD,
    "primary_ip": pycurl.PRIMARY_IP,
}


class CurlTransport:
    kind: Transport.Kind = "curl"

    def __init__(
        self,
        *,
        defaults: Mapping[str, Any] | None = None,
        factory: CurlFactory | None = None,
        logger: Any | None = None,
        log_level: LogLevel = "info",
    ) -> None:
        self.config = TransportConfig(defaults=dict(defaults or {}), logger=logger, log_level=log_level)
        self._factory = factory or CurlFactory(logger=self.config.logger, log_level=self.config.log_level)
        self._logger: BoundLogger = for_component("curl", self.config.logger, self.config.log_level)

    def execute(self, request: Request) -> TransportResult:
        request = self._with_defaults(request)
        # Build errors surface here, even for deferred transfers
        transfer = self._factory.build(request)
        if request.future:
            return Future(lambda: self._complete(request, transfer))
        return self._complete(request, transfer)

    __call__ = execute

    def close(self) -> None:
        pass

    def _with_defaults(self, request: Request) -> Request:
        if not self.config.defaults:
            return request
        client = {**self.config.defaults, **(request.client or {})}
        return dataclasses.replace(request, client=client)

    def _complete(self, request: Request, transfer: Transfer) -> Response:
        response = self._transfer(request, transfer)
        if request.then is not None:
            return call_then(request, response)
        return response

    def _transfer(self, request: Request, transfer: Transfer) -> Response:
        options, headers, body = transfer

        handle = pycurl.Curl()
        info = TransferInfo()
        try:
            try:
                for option, value in options.items():
                    handle.setopt(option, value)
            except Exception:
                self._close_owned_body(options)
                raise
            self._logger.debug("curl %s %s", request.method, options[pycurl.URL])
            try:
                handle.perform()
            except pycurl.error as exc:
                info.errno, info.error = self._error_details(exc)
                self._logger.warn("curl %s %s failed: %s", request.method, options[pycurl.URL], info.error)
            info.transfer_stats = self._transfer_stats(handle)
        finally:
            handle.close()

        response = create_response(request, info, headers.lines, body)
        if response.error is not None:
            self._close_owned_body(options)
        self._logger.debug(
            "curl <- %s status=%s error=%s",
            response.effective_url or options[pycurl.URL],
            response.status,
            response.error,
        )
        return response

    @staticmethod
    def _close_owned_body(options: TransportOptions) -> None:
        if options.owned_body is not None:
            options.owned_body.close()

    @staticmethod
    def _error_details(exc: pycurl.error) -> tuple[int, str | None]:
        args = exc.args
        errno = int(args[0]) if args else 0
        message = str(args[1]) if len(args) > 1 and args[1] else None
        return errno, message

    def _transfer_stats(self, handle: Any) -> dict[str, Any]:
        stats: dict[str, Any] = {}
        for name, info in TRANSFER_STATS.items():
            try:
                stats[name] = handle.getinfo(info)
            except (pycurl.error, ValueError) as exc:
                self._logger.trace("Transfer stat %s unavailable: %s", name, exc)
        return stats


__all__ = ["CurlTransport", "TRANSFER_STATS"]
