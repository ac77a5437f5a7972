"""Trace header forwarding between inbound and outbound requests."""

from __future__ import annotations

from typing import Iterable, Mapping, Sequence, Union

import httpx


HeaderSource = Union[
    httpx.Headers,
    Mapping[str, str],
    Mapping[str, Sequence[str]],
    Iterable[tuple[str, str]],
]


TRACE_HEADERS: tuple[str, ...] = (
    # Request identity, used for consistent trace and log sampling in Istio.
    "x-request-id",
    # Lightstep.
    "x-ot-span-context",
    # Datadog.
    "x-datadog-trace-id",
    "x-datadog-parent-id",
    "x-datadog-sampling-priority",
    # W3C Trace Context.
    "traceparent",
    "tracestate",
    # Cloud trace context.
    "x-cloud-trace-context",
    # gRPC binary trace context.
    "grpc-trace-bin",
    # B3 (Zipkin).
    "x-b3-traceid",
    "x-b3-spanid",
    "x-b3-parentspanid",
    "x-b3-sampled",
    "x-b3-flags",
    # SkyWalking.
    "sw8",
    "user-agent",
    # Context and session.
    "cookie",
    "authorization",
    "jwt",
)


def _as_headers(headers: HeaderSource) -> httpx.Headers:
    if isinstance(headers, httpx.Headers):
        return headers
    items = headers.items() if isinstance(headers, Mapping) else headers
    pairs: list[tuple[str, str]] = []
    for key, value in items:
        if isinstance(value, (list, tuple)):
            pairs.extend((str(key), str(v)) for v in value)
        else:
            pairs.append((str(key), str(value)))
    return httpx.Headers(pairs)


def forward_headers(headers: HeaderSource) -> dict[str, str]:
    """Pick the propagatable trace and session headers out of an inbound set.

    Lookup is case-insensitive. Only the first value of each header counts and
    headers whose first value is empty are left out. Keys in the result are the
    lowercase names from ``TRACE_HEADERS``.
    """
    inbound = _as_headers(headers)
    forwarded: dict[str, str] = {}
    for key in TRACE_HEADERS:
        values = inbound.get_list(key)
        if values and values[0]:
            forwarded[key] = values[0]
    return forwarded
