"""Configurable HTTP request execution on top of httpx."""

from .client import (
    adelete,
    aget,
    apatch,
    apost,
    aput,
    arequest,
    delete,
    get,
    patch,
    post,
    put,
    request,
)
from .dump import (
    curl_like_dump_request,
    curl_like_dump_response,
    format_request_head,
    format_response_head,
    print_curl_like_dump,
)
from .exceptions import (
    RequestError,
    find_request_error,
    get_error_code,
    get_error_message,
    is_error_code,
)
from .request_options import (
    DEFAULT_REQUEST_OPTIONS,
    RequestOption,
    RequestOptions,
    StatusCode,
    default_code_judge,
    json_marshal,
    json_unmarshal,
    resolve_options,
    store_status_code,
    with_client,
    with_dump_request,
    with_header,
    with_log_time_cost,
    with_marshal,
    with_status_code_judge,
    with_timeout,
    with_trace_headers,
    with_unmarshal,
)
from .trace import TRACE_HEADERS, forward_headers

__all__ = [
    "DEFAULT_REQUEST_OPTIONS",
    "RequestError",
    "RequestOption",
    "RequestOptions",
    "StatusCode",
    "TRACE_HEADERS",
    "adelete",
    "aget",
    "apatch",
    "apost",
    "aput",
    "arequest",
    "curl_like_dump_request",
    "curl_like_dump_response",
    "default_code_judge",
    "delete",
    "find_request_error",
    "format_request_head",
    "format_response_head",
    "forward_headers",
    "get",
    "get_error_code",
    "get_error_message",
    "is_error_code",
    "json_marshal",
    "json_unmarshal",
    "patch",
    "post",
    "print_curl_like_dump",
    "put",
    "request",
    "resolve_options",
    "store_status_code",
    "with_client",
    "with_dump_request",
    "with_header",
    "with_log_time_cost",
    "with_marshal",
    "with_status_code_judge",
    "with_timeout",
    "with_trace_headers",
    "with_unmarshal",
]
