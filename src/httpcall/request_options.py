"""Per-request options and the option functions that build them.

Every call starts from a private copy of ``DEFAULT_REQUEST_OPTIONS`` and then
applies the caller's option functions in order, so a later option wins over an
earlier one touching the same field.

``with_trace_headers`` merges into whatever header mapping is current when it
runs. Passing ``with_header`` after it replaces the mapping and drops the
forwarded entries; pass ``with_header`` first to keep them.
"""

from __future__ import annotations

import copy
import functools
import logging
import sys
from dataclasses import dataclass, field
from typing import Any, Callable, Mapping, Union

import httpx
from pydantic import TypeAdapter

from .trace import HeaderSource, forward_headers


PrintfFunc = Callable[..., None]
StatusCodeJudgeFunc = Callable[[int], bool]
MarshalFunc = Callable[[Any], Union[bytes, str]]
UnmarshalFunc = Callable[[bytes, Any], Any]
RequestOption = Callable[["RequestOptions"], None]

_ANY_ADAPTER: TypeAdapter[Any] = TypeAdapter(Any)


def json_marshal(value: Any) -> bytes:
    return _ANY_ADAPTER.dump_json(value)


@functools.lru_cache(maxsize=256)
def _cached_adapter(target: Any) -> TypeAdapter[Any]:
    return TypeAdapter(target)


def _adapter_for(target: Any) -> TypeAdapter[Any]:
    try:
        hash(target)
    except TypeError:
        # Unhashable targets (e.g. Annotated metadata holding a dict) skip the cache.
        return TypeAdapter(target)
    return _cached_adapter(target)


def json_unmarshal(data: bytes, target: Any) -> Any:
    return _adapter_for(target).validate_json(data)


def default_code_judge(status_code: int) -> bool:
    return 200 <= status_code < 300


def _build_request_logger() -> logging.Logger:
    # Not registered with the logging manager, so the global config stays untouched.
    request_logger = logging.Logger("httpcall.request", logging.INFO)
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter("%(levelname)s %(asctime)s %(message)s", "%Y/%m/%d %H:%M:%S"))
    request_logger.addHandler(handler)
    request_logger.propagate = False
    return request_logger


default_printf: PrintfFunc = _build_request_logger().info


class StatusCode:
    """Mutable cell receiving the status code observed by one call."""

    __slots__ = ("value",)

    def __init__(self, value: int = 0) -> None:
        self.value = value

    def __int__(self) -> int:
        return self.value

    def __eq__(self, other: object) -> bool:
        if isinstance(other, StatusCode):
            return self.value == other.value
        if isinstance(other, int):
            return self.value == other
        return NotImplemented

    def __repr__(self) -> str:
        return f"StatusCode({self.value})"


@dataclass
class RequestOptions:
    default_timeout = 30.0

    client: httpx.Client | httpx.AsyncClient | None = None
    timeout: float = default_timeout
    headers: dict[str, str] = field(
        default_factory=lambda: {
            "Accept": "application/json",
            "Content-Type": "application/json;charset=UTF-8",
        }
    )
    marshal: MarshalFunc = json_marshal
    unmarshal: UnmarshalFunc = json_unmarshal
    log_time_cost: bool = False
    dump_request: bool = False
    dump_response: bool = False
    printf: PrintfFunc = default_printf
    code_judge: StatusCodeJudgeFunc = default_code_judge
    status_code: StatusCode | None = None


DEFAULT_REQUEST_OPTIONS = RequestOptions()


def resolve_options(*options: RequestOption | None) -> RequestOptions:
    """Copy the defaults and apply ``options`` in order."""
    resolved = copy.copy(DEFAULT_REQUEST_OPTIONS)
    resolved.headers = dict(DEFAULT_REQUEST_OPTIONS.headers)
    for option in options:
        if option is None:
            continue
        option(resolved)
    if resolved.status_code is None:
        resolved.status_code = StatusCode()
    return resolved


def with_client(client: httpx.Client | httpx.AsyncClient | None) -> RequestOption:
    """Send through ``client``. It is shared with the caller and never closed here."""

    def apply(opt: RequestOptions) -> None:
        if opt is None or client is None:
            return
        opt.client = client

    return apply


def with_timeout(timeout: float | None) -> RequestOption:
    def apply(opt: RequestOptions) -> None:
        if opt is None or timeout is None:
            return
        opt.timeout = float(timeout)

    return apply


def with_header(headers: Mapping[str, str] | None) -> RequestOption:
    """Replace the whole header mapping."""

    def apply(opt: RequestOptions) -> None:
        if opt is None or headers is None:
            return
        opt.headers = {str(key): str(value) for key, value in headers.items()}

    return apply


def with_trace_headers(headers: HeaderSource | None) -> RequestOption:
    """Merge the forwardable trace headers of an inbound request.

    Must come after ``with_header`` or its entries are overwritten.
    """

    def apply(opt: RequestOptions) -> None:
        if opt is None or headers is None:
            return
        if opt.headers is None:
            opt.headers = {}
        opt.headers.update(forward_headers(headers))

    return apply


def with_marshal(marshal: MarshalFunc | None) -> RequestOption:
    def apply(opt: RequestOptions) -> None:
        if opt is None or marshal is None:
            return
        opt.marshal = marshal

    return apply


def with_unmarshal(unmarshal: UnmarshalFunc | None) -> RequestOption:
    def apply(opt: RequestOptions) -> None:
        if opt is None or unmarshal is None:
            return
        opt.unmarshal = unmarshal

    return apply


def with_log_time_cost(printf: PrintfFunc | None = None) -> RequestOption:
    """Log status, elapsed time, method and URL once per call.

    ``printf`` is called like ``logging.Logger.info``: a format string followed
    by its arguments.
    """

    def apply(opt: RequestOptions) -> None:
        if opt is None:
            return
        opt.log_time_cost = True
        if printf is not None:
            opt.printf = printf

    return apply


def with_dump_request(dump_request: bool, dump_response: bool) -> RequestOption:
    def apply(opt: RequestOptions) -> None:
        if opt is None:
            return
        opt.dump_request = dump_request
        opt.dump_response = dump_response

    return apply


def with_status_code_judge(code_judge: StatusCodeJudgeFunc | None) -> RequestOption:
    def apply(opt: RequestOptions) -> None:
        if opt is None or code_judge is None:
            return
        opt.code_judge = code_judge

    return apply


def store_status_code(cell: StatusCode | None) -> RequestOption:
    """Record the observed status code into ``cell``."""

    def apply(opt: RequestOptions) -> None:
        if opt is None or cell is None:
            return
        opt.status_code = cell

    return apply
