"""Synchronous and asynchronous HTTP request execution.

A call normalizes the URL, resolves its options, encodes the request payload,
sends it under the configured timeout, judges the status code and finally
decodes the response body into the requested shape.

Payload shapes: ``bytes``-like values are sent verbatim, ``str`` as UTF-8 and
anything else goes through the marshal function. On the way back the
``response`` argument names the shape wanted: ``bytes``, ``str`` or any type
the unmarshal function understands (``dict[str, Any]``, a pydantic model...).
``None`` on either side means no body.
"""

from __future__ import annotations

import asyncio
import logging
import re
import socket
import threading
import time
from contextlib import contextmanager
from typing import Any, Iterator

import httpx

from .dump import curl_like_dump_request, curl_like_dump_response
from .exceptions import RequestError
from .request_options import PrintfFunc, RequestOption, RequestOptions, resolve_options


logger = logging.getLogger(__name__)

_RAW_PAYLOAD_TYPES = (bytes, bytearray, memoryview)
_SCHEME_RE = re.compile(r"^[A-Za-z][A-Za-z0-9+.\-]*://")


def _normalize_url(addr: str) -> httpx.URL:
    if not _SCHEME_RE.match(addr):
        addr = "http://" + addr.removeprefix("//")
    try:
        url = httpx.URL(addr)
    except httpx.InvalidURL as exc:
        raise ValueError(f"bad request url: {exc}") from exc
    if not url.host:
        raise ValueError(f"bad request url: missing host in {addr!r}")
    return url


def _encode_payload(payload: Any, opt: RequestOptions) -> bytes | None:
    if payload is None:
        return None
    if isinstance(payload, _RAW_PAYLOAD_TYPES):
        return bytes(payload)
    if isinstance(payload, str):
        return payload.encode()
    data = opt.marshal(payload)
    if isinstance(data, str):
        return data.encode()
    if isinstance(data, _RAW_PAYLOAD_TYPES):
        return bytes(data)
    raise TypeError(f"marshal function returned {type(data).__name__}, expected bytes or str")


def _decode_payload(response: httpx.Response, target: Any, opt: RequestOptions) -> Any:
    if target is None:
        return None
    if target is bytes or target is bytearray:
        return target(response.content)
    if target is str:
        return response.text
    try:
        return opt.unmarshal(response.content, target)
    except Exception as exc:
        raise ValueError(f"unmarshal {response.text} failed: {exc}") from exc


def _build_request(
    client: httpx.Client | httpx.AsyncClient,
    method: str,
    url: httpx.URL,
    content: bytes | None,
    opt: RequestOptions,
) -> httpx.Request:
    request = client.build_request(method, url, content=content, timeout=opt.timeout)
    for key, value in opt.headers.items():
        request.headers[key] = value
    if opt.dump_request:
        curl_like_dump_request(request)
    return request


def _handle_response(response: httpx.Response, target: Any, opt: RequestOptions) -> Any:
    status_code = response.status_code
    opt.status_code.value = status_code
    if opt.dump_response:
        curl_like_dump_response(response)
    if not opt.code_judge(status_code):
        raise RequestError(status_code, response.text)
    return _decode_payload(response, target, opt)


def _format_cost(seconds: float) -> str:
    if seconds < 1e-3:
        return f"{seconds * 1e6:.3f}µs"
    if seconds < 1:
        return f"{seconds * 1e3:.3f}ms"
    return f"{seconds:.3f}s"


def _request_log(printf: PrintfFunc, status_code: int, cost: float, method: str, url: str) -> None:
    try:
        printf("REQUEST | %3d | %13s | %-7s %s", status_code, _format_cost(cost), method, url)
    except Exception:
        logger.debug("time cost logging failed", exc_info=True)


@contextmanager
def _time_cost(opt: RequestOptions, method: str, url: str) -> Iterator[None]:
    if not opt.log_time_cost:
        yield
        return
    start = time.perf_counter()
    try:
        yield
    finally:
        _request_log(opt.printf, opt.status_code.value, time.perf_counter() - start, method, url)


class _Exchange:
    """One blocking ``client.send`` bounded by a wall-clock deadline.

    httpx applies its timeout to each connect/read/write step, so a server
    trickling bytes never trips it. The send runs on a worker thread instead
    and the caller stops waiting when the deadline passes. Sockets the send
    opened are shut down at that point so the worker unblocks too.
    """

    def __init__(self, client: httpx.Client, request: httpx.Request) -> None:
        self._client = client
        self._request = request
        self._done = threading.Event()
        self._lock = threading.Lock()
        self._abandoned = False
        self._streams: list[Any] = []
        self._response: httpx.Response | None = None
        self._error: Exception | None = None
        self._caller_trace = request.extensions.get("trace")
        request.extensions["trace"] = self._trace

    def _trace(self, event_name: str, info: dict[str, Any]) -> None:
        if event_name in ("connection.connect_tcp.complete", "connection.connect_unix_socket.complete"):
            self._streams.append(info.get("return_value"))
        if self._caller_trace is not None:
            self._caller_trace(event_name, info)

    def _run(self) -> None:
        try:
            response = self._client.send(self._request)
        except Exception as exc:
            self._error = exc
        else:
            with self._lock:
                self._response = response
                if self._abandoned:
                    response.close()
        finally:
            self._done.set()

    def _abort(self) -> None:
        with self._lock:
            self._abandoned = True
            if self._response is not None:
                self._response.close()
        for stream in self._streams:
            sock = stream.get_extra_info("socket") if stream is not None else None
            if sock is None:
                continue
            try:
                sock.shutdown(socket.SHUT_RDWR)
            except OSError:
                logger.debug("socket shutdown after deadline failed", exc_info=True)

    def run(self, timeout: float) -> httpx.Response:
        threading.Thread(target=self._run, name="httpcall-send", daemon=True).start()
        if not self._done.wait(timeout):
            self._abort()
            raise httpx.ReadTimeout(f"request exceeded the {timeout}s deadline", request=self._request)
        if self._error is not None:
            raise self._error
        assert self._response is not None
        return self._response


def _send(
    client: httpx.Client,
    method: str,
    url: httpx.URL,
    content: bytes | None,
    target: Any,
    opt: RequestOptions,
) -> Any:
    request = _build_request(client, method, url, content, opt)
    response = _Exchange(client, request).run(opt.timeout)
    try:
        return _handle_response(response, target, opt)
    finally:
        response.close()


async def _asend(
    client: httpx.AsyncClient,
    method: str,
    url: httpx.URL,
    content: bytes | None,
    target: Any,
    opt: RequestOptions,
) -> Any:
    request = _build_request(client, method, url, content, opt)
    response = await asyncio.wait_for(client.send(request), opt.timeout)
    try:
        return _handle_response(response, target, opt)
    finally:
        await response.aclose()


def request(
    method: str,
    url: str,
    payload: Any = None,
    response: Any = None,
    *options: RequestOption,
) -> Any:
    """Perform one HTTP round trip and return the decoded response payload.

    Raises ``RequestError`` when the status judge rejects the response code,
    ``ValueError`` for a malformed URL or an undecodable body. Marshal errors
    and httpx transport errors propagate unchanged. The configured timeout
    bounds the whole exchange; running past it raises ``httpx.ReadTimeout``.
    """
    target_url = _normalize_url(url)
    method = method.upper()
    opt = resolve_options(*options)
    if opt.client is not None and not isinstance(opt.client, httpx.Client):
        raise TypeError("synchronous requests need an httpx.Client")

    with _time_cost(opt, method, url):
        content = _encode_payload(payload, opt)
        if opt.client is None:
            with httpx.Client() as client:
                return _send(client, method, target_url, content, response, opt)
        return _send(opt.client, method, target_url, content, response, opt)


async def arequest(
    method: str,
    url: str,
    payload: Any = None,
    response: Any = None,
    *options: RequestOption,
) -> Any:
    """Asynchronous ``request``.

    The round trip is bounded by the configured timeout and aborted when the
    calling task is cancelled, whichever comes first. The timeout surfaces as
    ``TimeoutError`` or ``httpx.TimeoutException``.
    """
    target_url = _normalize_url(url)
    method = method.upper()
    opt = resolve_options(*options)
    if opt.client is not None and not isinstance(opt.client, httpx.AsyncClient):
        raise TypeError("asynchronous requests need an httpx.AsyncClient")

    with _time_cost(opt, method, url):
        content = _encode_payload(payload, opt)
        if opt.client is None:
            async with httpx.AsyncClient() as client:
                return await _asend(client, method, target_url, content, response, opt)
        return await _asend(opt.client, method, target_url, content, response, opt)


def get(url: str, response: Any = None, *options: RequestOption) -> Any:
    return request("GET", url, None, response, *options)


def post(url: str, payload: Any = None, response: Any = None, *options: RequestOption) -> Any:
    return request("POST", url, payload, response, *options)


def put(url: str, payload: Any = None, response: Any = None, *options: RequestOption) -> Any:
    return request("PUT", url, payload, response, *options)


def patch(url: str, payload: Any = None, response: Any = None, *options: RequestOption) -> Any:
    return request("PATCH", url, payload, response, *options)


def delete(url: str, response: Any = None, *options: RequestOption) -> Any:
    return request("DELETE", url, None, response, *options)


async def aget(url: str, response: Any = None, *options: RequestOption) -> Any:
    return await arequest("GET", url, None, response, *options)


async def apost(url: str, payload: Any = None, response: Any = None, *options: RequestOption) -> Any:
    return await arequest("POST", url, payload, response, *options)


async def aput(url: str, payload: Any = None, response: Any = None, *options: RequestOption) -> Any:
    return await arequest("PUT", url, payload, response, *options)


async def apatch(url: str, payload: Any = None, response: Any = None, *options: RequestOption) -> Any:
    return await arequest("PATCH", url, payload, response, *options)


async def adelete(url: str, response: Any = None, *options: RequestOption) -> Any:
    return await arequest("DELETE", url, None, response, *options)
