# © Copyright 2025-2026, Query.Farm LLC - https://query.farm
# SPDX-License-Identifier: Apache-2.0

"""OpenTelemetry client-side instrumentation for restcall.

Provides ``OtelConfig`` and ``instrument()`` for adding distributed tracing
(one CLIENT span per attempt, W3C trace-context propagation on the outgoing
request) and metrics (counter, histogram) to ``RequestBuilder.send()``.

Requires ``pip install restcall[otel]`` (opentelemetry-api).

Usage::

    from restcall.otel import OtelConfig, instrument

    builder = instrument(create("GET", "https://example.test/items"))
    builder.send()  # uses global TracerProvider / MeterProvider
"""

from __future__ import annotations

import time
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

import httpx
from opentelemetry import propagate, trace
from opentelemetry.metrics import Counter, Histogram, MeterProvider, get_meter_provider
from opentelemetry.trace import SpanKind, StatusCode, Tracer, TracerProvider, get_tracer_provider

from restcall._common import Response, RestError
from restcall._retry import HookToken

if TYPE_CHECKING:
    from restcall._builder import RequestBuilder

__all__ = ["OtelConfig", "instrument"]


@dataclass(frozen=True)
class OtelConfig:
    """Configuration for OpenTelemetry instrumentation.

    Attributes:
        tracer_provider: Custom ``TracerProvider``; uses the global provider when ``None``.
        meter_provider: Custom ``MeterProvider``; uses the global provider when ``None``.
        enable_tracing: Enable span creation (default ``True``).
        enable_metrics: Enable counter/histogram recording (default ``True``).
        propagate_context: Inject W3C trace headers into outgoing requests.
        record_exceptions: Record exceptions on error spans (default ``True``).
        custom_attributes: Extra span/metric attributes merged into every attempt.

    """

    tracer_provider: TracerProvider | None = None
    meter_provider: MeterProvider | None = None
    enable_tracing: bool = True
    enable_metrics: bool = True
    propagate_context: bool = True
    record_exceptions: bool = True
    custom_attributes: Mapping[str, str] = field(default_factory=dict)


def instrument(builder: RequestBuilder, config: OtelConfig | None = None) -> RequestBuilder:
    """Attach OpenTelemetry tracing and metrics to a builder.

    Args:
        builder: The ``RequestBuilder`` to instrument.
        config: Optional configuration; uses global providers and defaults when ``None``.

    Returns:
        The same *builder* instance (for chaining).

    """
    if config is None:
        config = OtelConfig()
    builder._attempt_hook = _OtelAttemptHook(config)
    return builder


@dataclass
class _OtelHookToken:
    """Internal token carrying span + timing for on_attempt_end."""

    span: trace.Span | None
    start_time: float
    method: str
    host: str


class _OtelAttemptHook:
    """Implements ``_AttemptHook`` with OpenTelemetry spans and metrics."""

    __slots__ = ("_config", "_counter", "_histogram", "_tracer")

    def __init__(self, config: OtelConfig) -> None:
        self._config = config

        tp = config.tracer_provider or get_tracer_provider()
        self._tracer: Tracer = tp.get_tracer("restcall", "0.1.0")

        mp: MeterProvider = config.meter_provider or get_meter_provider()
        meter = mp.get_meter("restcall", "0.1.0")
        self._counter: Counter = meter.create_counter(
            "restcall.client.requests",
            unit="{request}",
            description="Number of HTTP request attempts sent",
        )
        self._histogram: Histogram = meter.create_histogram(
            "restcall.client.duration",
            unit="s",
            description="Duration of HTTP request attempts",
        )

    def on_attempt_start(self, builder: RequestBuilder, request: httpx.Request, attempt: int) -> HookToken:
        """Start a CLIENT span and inject its context into *request*."""
        span: trace.Span | None = None
        if self._config.enable_tracing:
            attrs: dict[str, str | int] = {
                "http.request.method": request.method,
                "url.full": str(request.url),
                "server.address": request.url.host,
                "restcall.attempt": attempt + 1,
            }
            if request.url.port is not None:
                attrs["server.port"] = request.url.port
            attrs.update(self._config.custom_attributes)
            span = self._tracer.start_span(request.method, kind=SpanKind.CLIENT, attributes=attrs)
            if self._config.propagate_context:
                carrier: dict[str, str] = {}
                propagate.inject(carrier, context=trace.set_span_in_context(span))
                for name, value in carrier.items():
                    request.headers[name] = value
        return _OtelHookToken(span=span, start_time=time.monotonic(), method=request.method, host=request.url.host)

    def on_attempt_end(self, token: HookToken, response: Response | None, error: RestError | None) -> None:
        """End the span and record metrics."""
        if not isinstance(token, _OtelHookToken):
            return

        duration = time.monotonic() - token.start_time

        if token.span is not None:
            if response is not None:
                token.span.set_attribute("http.response.status_code", response.status_code)
                if response.status_code >= 500:
                    token.span.set_status(StatusCode.ERROR, f"HTTP {response.status_code}")
                else:
                    token.span.set_status(StatusCode.OK)
            elif error is not None:
                token.span.set_status(StatusCode.ERROR, str(error))
                token.span.set_attribute("error.type", type(error.cause).__name__)
                if self._config.record_exceptions:
                    token.span.record_exception(error)
            token.span.end()

        if self._config.enable_metrics:
            metric_attrs: dict[str, str | int] = {
                "http.request.method": token.method,
                "server.address": token.host,
                "status": "ok" if response is not None else "error",
            }
            if response is not None:
                metric_attrs["http.response.status_code"] = response.status_code
            self._counter.add(1, metric_attrs)
            self._histogram.record(duration, metric_attrs)
