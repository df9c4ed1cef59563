# © Copyright 2025-2026, Query.Farm LLC - https://query.farm
# SPDX-License-Identifier: Apache-2.0

"""Fluent HTTP request builder with bounded, predicate-driven retry."""

import contextlib

from restcall._builder import RequestBuilder, create
from restcall._common import (
    DEFAULT_TIMEOUT,
    ReadError,
    Response,
    RestError,
    TransportError,
    UrlParseError,
)
from restcall._predicates import (
    DEFAULT_RETRYABLE_STATUS,
    any_of,
    retry_on_error,
    retry_on_status,
    retry_on_transport_error,
)
from restcall._retry import RetryPolicy, RetryPredicate
from restcall._testing import ScriptedHandler, failing_body, make_stub_transport, slow_body
from restcall._transport import HttpxTransport, Transport

# OpenTelemetry instrumentation (optional, requires `pip install restcall[otel]`)
with contextlib.suppress(ImportError):
    from restcall.otel import OtelConfig, instrument  # noqa: F401

__all__ = [
    # Core
    "RequestBuilder",
    "create",
    "Response",
    "DEFAULT_TIMEOUT",
    # Errors
    "RestError",
    "UrlParseError",
    "TransportError",
    "ReadError",
    # Retry
    "RetryPolicy",
    "RetryPredicate",
    "DEFAULT_RETRYABLE_STATUS",
    "any_of",
    "retry_on_error",
    "retry_on_status",
    "retry_on_transport_error",
    # Transport
    "Transport",
    "HttpxTransport",
    # Testing
    "ScriptedHandler",
    "failing_body",
    "make_stub_transport",
    "slow_body",
]
