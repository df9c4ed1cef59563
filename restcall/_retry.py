# © Copyright 2025-2026, Query.Farm LLC - https://query.farm
# SPDX-License-Identifier: Apache-2.0

"""Retry policy and the attempt loop behind ``RequestBuilder.send()``.

Provides ``RetryPolicy`` (attempt count, fixed delay, caller predicate) and
``execute`` which performs up to ``attempts + 1`` transport calls, handing
each attempt's outcome to the predicate while attempts remain.

Logger: ``restcall.retry``: retry decisions are logged at DEBUG level.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, TypeAlias

import httpx

from ._assembly import build_request, parse_url
from ._common import ReadError, Response, RestError, TransportError
from ._debug import fmt_body, fmt_headers, wire_request_logger, wire_response_logger

if TYPE_CHECKING:
    from ._builder import RequestBuilder
    from ._transport import Transport

_logger = logging.getLogger("restcall.retry")

RetryPredicate: TypeAlias = Callable[["RequestBuilder", Response | None, RestError | None], bool]
"""Decides after an attempt whether to try again: ``(builder, response, error) -> bool``."""

HookToken: TypeAlias = object
"""Opaque token returned by ``_AttemptHook.on_attempt_start``."""


@dataclass(frozen=True)
class RetryPolicy:
    """How many extra attempts to make, how long to wait, and when.

    Attributes:
        attempts: Additional tries beyond the first (total calls =
            attempts + 1).
        delay: Fixed sleep in seconds before each retry.
        retry_if: Predicate consulted after every attempt that still has
            attempts left.  Required when *attempts* > 0.

    Raises:
        ValueError: If *attempts* < 0, *delay* < 0, or *attempts* > 0
            without *retry_if*.

    """

    attempts: int = 0
    delay: float = 0.0
    retry_if: RetryPredicate | None = None

    def __post_init__(self) -> None:
        """Validate configuration values."""
        if self.attempts < 0:
            raise ValueError(f"attempts must be >= 0, got {self.attempts}")
        if self.delay < 0:
            raise ValueError(f"delay must be >= 0, got {self.delay}")
        if self.attempts > 0 and self.retry_if is None:
            raise ValueError(f"retry_if is required when attempts > 0, got attempts={self.attempts}")

    def should_retry(self, builder: RequestBuilder, response: Response | None, error: RestError | None) -> bool:
        """Ask the predicate whether the given outcome warrants another attempt."""
        if self.retry_if is None:
            raise ValueError("retry_if is required to decide on a retry")
        return bool(self.retry_if(builder, response, error))


class _AttemptHook(Protocol):
    """Internal protocol for observability hooks called around each attempt."""

    def on_attempt_start(self, builder: RequestBuilder, request: httpx.Request, attempt: int) -> HookToken:
        """Start observability for an attempt; may add headers to *request*."""
        ...

    def on_attempt_end(self, token: HookToken, response: Response | None, error: RestError | None) -> None:
        """Finalize observability once the attempt's outcome is known."""
        ...


def _drain(raw: httpx.Response, *, deadline: float, timeout: float) -> bytes:
    """Read the whole body of *raw*, giving up once *deadline* passes.

    Raises:
        httpx.ReadTimeout: If the attempt outlives its timeout.
        httpx.HTTPError: If reading the body fails.

    """
    request = raw.request
    remaining = deadline - time.monotonic()
    if remaining <= 0:
        raise httpx.ReadTimeout(f"no body read within the {timeout}s attempt timeout", request=request)
    timeouts = request.extensions.get("timeout")
    if isinstance(timeouts, dict):
        # The connection looks up the read timeout when the body stream starts
        timeouts["read"] = remaining
    chunks: list[bytes] = []
    for chunk in raw.iter_bytes():
        chunks.append(chunk)
        if time.monotonic() > deadline:
            raise httpx.ReadTimeout(f"body still arriving after the {timeout}s attempt timeout", request=request)
    return b"".join(chunks)


def _exchange(
    transport: Transport,
    request: httpx.Request,
    *,
    timeout: float,
    method: str,
    url: str,
) -> tuple[Response | None, RestError | None]:
    """Perform one transport round trip and drain the body within *timeout*.

    Each blocking step is capped by the per-phase httpx timeout; the
    attempt as a whole is capped by a deadline checked between body chunks.

    Returns:
        ``(response, None)`` on success, otherwise ``(None, error)``.

    """
    deadline = time.monotonic() + timeout
    try:
        with transport.open(request, timeout=timeout) as raw:
            try:
                content = _drain(raw, deadline=deadline, timeout=timeout)
            except httpx.HTTPError as exc:
                return None, ReadError(exc, method=method, url=url)
            return Response.from_httpx(raw, content), None
    except httpx.HTTPError as exc:
        return None, TransportError(exc, method=method, url=url)


def _log_request(request: httpx.Request, attempt: int) -> None:
    wire_request_logger.debug(
        "Request attempt=%d: %s %s headers=%s body=%s",
        attempt + 1,
        request.method,
        request.url,
        fmt_headers(request.headers.multi_items()),
        fmt_body(request.content),
    )


def _log_outcome(response: Response | None, error: RestError | None, attempt: int) -> None:
    if response is not None:
        wire_response_logger.debug(
            "Response attempt=%d: status=%d headers=%s body=%s",
            attempt + 1,
            response.status_code,
            fmt_headers((name, value) for name, values in response.headers.items() for value in values),
            fmt_body(response.content),
        )
    else:
        wire_response_logger.debug("Failure attempt=%d: %s", attempt + 1, error)


def execute(
    builder: RequestBuilder,
    *,
    transport: Transport,
    hook: _AttemptHook | None = None,
    _sleep: Callable[[float], object] = time.sleep,
) -> Response:
    """Send the builder's request, retrying while its policy allows.

    The request is re-assembled from the builder before every attempt, so a
    predicate may adjust headers or query between attempts.  Only the last
    attempt's outcome reaches the caller.

    Args:
        builder: The configured request.
        transport: Transport collaborator performing each round trip.
        hook: Optional observability hook.
        _sleep: Sleep function (injectable for tests).

    Returns:
        The response of the final attempt.

    Raises:
        UrlParseError: If the URL cannot be parsed (before any attempt).
        TransportError: If the final attempt failed to get a response.
        ReadError: If the final attempt failed to drain the body.

    """
    url = parse_url(builder.method, builder.url)
    remaining = builder.retry.attempts
    attempt = 0

    while True:
        request = build_request(
            builder.method,
            url,
            query=builder.query,
            params=builder.params,
            headers=builder.headers,
            form=builder.form,
            body=builder.body,
        )
        token = hook.on_attempt_start(builder, request, attempt) if hook is not None else None
        if wire_request_logger.isEnabledFor(logging.DEBUG):
            _log_request(request, attempt)

        response, error = _exchange(
            transport,
            request,
            timeout=builder.timeout,
            method=builder.method,
            url=builder.url,
        )

        if wire_response_logger.isEnabledFor(logging.DEBUG):
            _log_outcome(response, error, attempt)
        if hook is not None:
            hook.on_attempt_end(token, response, error)

        if remaining <= 0 or not builder.retry.should_retry(builder, response, error):
            break

        delay = builder.retry.delay
        _logger.debug(
            "%s on %s %s (attempt %d/%d), retrying in %.2fs",
            f"HTTP {response.status_code}" if response is not None else type(error).__name__,
            builder.method,
            builder.url,
            attempt + 1,
            attempt + remaining + 1,
            delay,
        )
        _sleep(delay)
        remaining -= 1
        attempt += 1

    if error is not None:
        raise error from error.cause
    assert response is not None
    return response
