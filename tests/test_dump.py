from __future__ import annotations

import io

import httpx

from httpcall.dump import (
    curl_like_dump_request,
    curl_like_dump_response,
    format_request_head,
    format_response_head,
    print_curl_like_dump,
)


def test_print_curl_like_dump_prefixes_every_line() -> None:
    out = io.StringIO()
    print_curl_like_dump(b"GET / HTTP/1.1\r\nHost: a\r\n\r\n", "> ", out)

    assert out.getvalue() == "> GET / HTTP/1.1\r\n> Host: a\r\n> \r\n"


def test_print_curl_like_dump_defaults_to_stdout(capsys) -> None:
    print_curl_like_dump(b"HTTP/1.1 200 OK\r\n\r\n", "< ")

    assert capsys.readouterr().out == "< HTTP/1.1 200 OK\r\n< \r\n"


def test_format_request_head_has_no_body() -> None:
    request = httpx.Request(
        "POST",
        "http://example.com/path?q=1",
        headers={"X-Test": "1"},
        content=b"payload",
    )

    head = format_request_head(request)

    assert head.startswith(b"POST /path?q=1 HTTP/1.1\r\n")
    assert b"X-Test: 1\r\n" in head
    assert b"payload" not in head
    assert head.endswith(b"\r\n\r\n")


def test_format_response_head_has_no_body() -> None:
    response = httpx.Response(404, headers={"X-Reason": "gone"}, text="missing")

    head = format_response_head(response)

    assert head.startswith(b"HTTP/1.1 404 Not Found\r\n")
    assert b"X-Reason: gone\r\n" in head
    assert b"missing" not in head


def test_curl_like_dumps_write_with_direction_prefix() -> None:
    out = io.StringIO()
    curl_like_dump_request(httpx.Request("GET", "http://example.com/"), out)
    curl_like_dump_response(httpx.Response(200), out)

    lines = out.getvalue().split("\n")
    assert lines[0] == "> GET / HTTP/1.1\r"
    assert any(line.startswith("< HTTP/1.1 200 OK") for line in lines)


def test_dump_failure_is_swallowed() -> None:
    class Broken:
        method = "GET"

        @property
        def url(self):
            raise RuntimeError("no url")

    out = io.StringIO()
    curl_like_dump_request(Broken(), out)

    assert out.getvalue() == ""


def test_dump_write_failure_is_swallowed() -> None:
    closed = io.StringIO()
    closed.close()

    curl_like_dump_request(httpx.Request("GET", "http://example.com/"), closed)
    curl_like_dump_response(httpx.Response(200), closed)
