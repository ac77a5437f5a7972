"""Curl-like wire dumps of request and response heads."""

from __future__ import annotations

import logging
import sys
from typing import TextIO

import httpx


logger = logging.getLogger(__name__)

REQUEST_LINE_START = "> "
RESPONSE_LINE_START = "< "


def _header_lines(headers: httpx.Headers) -> bytes:
    return b"".join(key + b": " + value + b"\r\n" for key, value in headers.raw)


def format_request_head(request: httpx.Request) -> bytes:
    """Render the request line and headers as they go on the wire, without body."""
    target = request.url.raw_path or b"/"
    start_line = request.method.encode("ascii") + b" " + target + b" HTTP/1.1\r\n"
    return start_line + _header_lines(request.headers) + b"\r\n"


def format_response_head(response: httpx.Response) -> bytes:
    """Render the status line and headers of a response, without body."""
    http_version = response.http_version or "HTTP/1.1"
    status_line = f"{http_version} {response.status_code} {response.reason_phrase}".rstrip()
    return status_line.encode("ascii") + b"\r\n" + _header_lines(response.headers) + b"\r\n"


def print_curl_like_dump(data: bytes, line_start: str, file: TextIO | None = None) -> None:
    """Write ``data`` with every line prefixed by ``line_start``."""
    prefix = line_start.encode()
    body = data.replace(b"\n", b"\n" + prefix).rstrip(prefix)
    out = file if file is not None else sys.stdout
    out.write(line_start + body.decode("latin-1"))
    out.flush()


def curl_like_dump_request(request: httpx.Request, file: TextIO | None = None) -> None:
    try:
        print_curl_like_dump(format_request_head(request), REQUEST_LINE_START, file)
    except Exception:
        logger.debug("request dump failed", exc_info=True)


def curl_like_dump_response(response: httpx.Response, file: TextIO | None = None) -> None:
    try:
        print_curl_like_dump(format_response_head(response), RESPONSE_LINE_START, file)
    except Exception:
        logger.debug("response dump failed", exc_info=True)
