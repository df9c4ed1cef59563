# © Copyright 2025-2026, Query.Farm LLC - https://query.farm
# SPDX-License-Identifier: Apache-2.0

"""Fluent request builder.

``RequestBuilder`` accumulates everything needed for one outbound request
and sends it with ``send()``.  Every setter mutates the builder in place and
returns it, so configuration reads as a chain::

    response = (
        create("GET", "https://example.test/items")
        .add_query("id", 42)
        .add_header("Accept", "application/json")
        .set_timeout(0.5)
        .send()
    )

A builder is owned by whoever created it: it is not safe to configure or
send from several threads, and is meant to be discarded after one
``send()``.  Create one builder per request.
"""

from __future__ import annotations

import time
from collections.abc import Callable, Mapping
from types import MappingProxyType

from ._common import DEFAULT_TIMEOUT, Response, _copy_multi, _render, _render_all
from ._retry import RetryPolicy, RetryPredicate, _AttemptHook, execute
from ._transport import HttpxTransport, Transport

__all__ = ["RequestBuilder", "create"]


class RequestBuilder:
    """Mutable accumulator of request intent with a terminal ``send()``."""

    __slots__ = (
        "_attempt_hook",
        "_body",
        "_form",
        "_headers",
        "_method",
        "_params",
        "_query",
        "_records",
        "_retry",
        "_timeout",
        "_transport",
        "_url",
    )

    def __init__(self, method: str, url: str, *, transport: Transport | None = None) -> None:
        """Start a request for *method* on *url*.

        Args:
            method: HTTP method, fixed for the builder's life.
            url: Base URL without a query string; query parameters come
                from ``add_query`` / ``set_query``.
            transport: Transport collaborator; a default ``HttpxTransport``
                when ``None``.

        """
        self._method = method
        self._url = url
        self._transport: Transport = transport if transport is not None else HttpxTransport()
        self._timeout = DEFAULT_TIMEOUT
        self._retry = RetryPolicy()
        self._params: dict[str, str] = {}
        self._query: dict[str, list[str]] = {}
        self._headers: dict[str, list[str]] = {}
        self._form: dict[str, list[str]] = {}
        self._body: bytes | None = None
        self._records: object = None
        self._attempt_hook: _AttemptHook | None = None

    def __repr__(self) -> str:
        """Return ``RequestBuilder('GET', 'https://...')``."""
        return f"{type(self).__name__}({self._method!r}, {self._url!r})"

    # -- Read-only view ------------------------------------------------------

    @property
    def method(self) -> str:
        """HTTP method."""
        return self._method

    @property
    def url(self) -> str:
        """Base URL as given at construction."""
        return self._url

    @property
    def timeout(self) -> float:
        """Per-attempt timeout in seconds."""
        return self._timeout

    @property
    def retry(self) -> RetryPolicy:
        """Current retry policy."""
        return self._retry

    @property
    def params(self) -> Mapping[str, str]:
        """Single-valued parameters (merged into the query string)."""
        return MappingProxyType(self._params)

    @property
    def query(self) -> Mapping[str, list[str]]:
        """Multi-valued query parameters."""
        return MappingProxyType(self._query)

    @property
    def headers(self) -> Mapping[str, list[str]]:
        """Multi-valued headers."""
        return MappingProxyType(self._headers)

    @property
    def form(self) -> Mapping[str, list[str]]:
        """Multi-valued form fields."""
        return MappingProxyType(self._form)

    @property
    def body(self) -> bytes | None:
        """Raw payload, or ``None`` when unset."""
        return self._body

    @property
    def records(self) -> object:
        """Opaque caller annotation attached with ``set_records``."""
        return self._records

    # -- Configuration -------------------------------------------------------

    def set_timeout(self, seconds: float) -> RequestBuilder:
        """Replace the per-attempt timeout."""
        self._timeout = seconds
        return self

    def set_retry(self, attempts: int, delay: float, retry_if: RetryPredicate | None) -> RequestBuilder:
        """Replace the whole retry policy.

        Args:
            attempts: Additional tries beyond the first.
            delay: Seconds to sleep before each retry.
            retry_if: ``(builder, response, error) -> bool``, called after
                every attempt that still has attempts left.

        Raises:
            ValueError: If the policy is invalid (see ``RetryPolicy``).

        """
        self._retry = RetryPolicy(attempts=attempts, delay=delay, retry_if=retry_if)
        return self

    def set_params(self, params: Mapping[str, object]) -> RequestBuilder:
        """Replace all single-valued parameters."""
        self._params = {name: _render(value) for name, value in params.items()}
        return self

    def add_param(self, name: str, value: object) -> RequestBuilder:
        """Set one single-valued parameter, replacing any previous value."""
        self._params[name] = _render(value)
        return self

    def set_query(self, query: Mapping[str, object]) -> RequestBuilder:
        """Replace all query parameters."""
        self._query = _copy_multi(query)
        return self

    def add_query(self, name: str, *values: object) -> RequestBuilder:
        """Append *values* under query parameter *name*."""
        self._query.setdefault(name, []).extend(_render_all(values))
        return self

    def set_headers(self, headers: Mapping[str, object]) -> RequestBuilder:
        """Replace all headers."""
        self._headers = _copy_multi(headers)
        return self

    def add_header(self, name: str, *values: object) -> RequestBuilder:
        """Append *values* under header *name*."""
        self._headers.setdefault(name, []).extend(_render_all(values))
        return self

    def set_form(self, form: Mapping[str, object]) -> RequestBuilder:
        """Replace all form fields."""
        self._form = _copy_multi(form)
        return self

    def add_form(self, name: str, *values: object) -> RequestBuilder:
        """Append *values* under form field *name*."""
        self._form.setdefault(name, []).extend(_render_all(values))
        return self

    def set_body(self, body: bytes | None) -> RequestBuilder:
        """Replace the raw payload; takes precedence over form fields."""
        self._body = body
        return self

    def set_records(self, records: object) -> RequestBuilder:
        """Attach an opaque annotation for the caller's own bookkeeping."""
        self._records = records
        return self

    # -- Execution -----------------------------------------------------------

    def send(self, *, _sleep: Callable[[float], object] = time.sleep) -> Response:
        """Send the request, retrying per the retry policy.

        Args:
            _sleep: Sleep function (injectable for tests).

        Returns:
            The final attempt's response, whatever its status code.

        Raises:
            UrlParseError: If the URL cannot be parsed; never retried.
            TransportError: If the final attempt got no response.
            ReadError: If the final attempt could not drain the body.

        """
        return execute(self, transport=self._transport, hook=self._attempt_hook, _sleep=_sleep)


def create(method: str, url: str, *, transport: Transport | None = None) -> RequestBuilder:
    """Start a new ``RequestBuilder`` for *method* on *url*."""
    return RequestBuilder(method, url, transport=transport)
