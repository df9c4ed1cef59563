# © Copyright 2025-2026, Query.Farm LLC - https://query.farm
# SPDX-License-Identifier: Apache-2.0

"""Scripted stub transport for testing code that sends requests.

Provides ``ScriptedHandler`` and ``make_stub_transport`` which run the real
``HttpxTransport`` over ``httpx.MockTransport``, so no network is needed.  Each
step of the script is one attempt's outcome: a response, an exception to
raise, or a callable producing a response from the request.
"""

from __future__ import annotations

import time
from typing import TypeAlias
from collections.abc import Callable, Iterator

import httpx

from ._transport import HttpxTransport

__all__ = ["ScriptedHandler", "failing_body", "make_stub_transport", "slow_body"]

Step: TypeAlias = httpx.Response | BaseException | Callable[[httpx.Request], httpx.Response]
"""One scripted attempt outcome."""


class _FailingStream(httpx.SyncByteStream):
    """Response stream that raises while the body is being drained."""

    def __init__(self, exc: BaseException, prefix: bytes = b"") -> None:
        self._exc = exc
        self._prefix = prefix

    def __iter__(self) -> Iterator[bytes]:
        if self._prefix:
            yield self._prefix
        raise self._exc


def failing_body(
    status_code: int = 200,
    exc: BaseException | None = None,
    *,
    headers: dict[str, str] | None = None,
    prefix: bytes = b"",
) -> httpx.Response:
    """Build a response whose body read fails.

    Args:
        status_code: Status line of the response.
        exc: Exception raised mid-body; ``httpx.ReadError`` by default.
        headers: Response headers.
        prefix: Bytes delivered before the failure.

    """
    stream = _FailingStream(exc if exc is not None else httpx.ReadError("connection reset mid-body"), prefix)
    return httpx.Response(status_code, headers=headers, stream=stream)


class _SlowStream(httpx.SyncByteStream):
    """Response stream that pauses before every chunk."""

    def __init__(self, chunks: tuple[bytes, ...], interval: float) -> None:
        self._chunks = chunks
        self._interval = interval

    def __iter__(self) -> Iterator[bytes]:
        for chunk in self._chunks:
            time.sleep(self._interval)
            yield chunk


def slow_body(
    *chunks: bytes,
    interval: float,
    status_code: int = 200,
    headers: dict[str, str] | None = None,
) -> httpx.Response:
    """Build a response that delivers *chunks* one by one, *interval* seconds apart."""
    return httpx.Response(status_code, headers=headers, stream=_SlowStream(chunks, interval))


class ScriptedHandler:
    """``httpx.MockTransport`` handler replaying a fixed script of outcomes.

    The last step repeats once the script runs out.  Every request seen is
    kept in ``requests`` (body already read) for assertions.
    """

    def __init__(self, *steps: Step) -> None:
        if not steps:
            raise ValueError("at least one step is required")
        self._steps = list(steps)
        self.requests: list[httpx.Request] = []

    @property
    def call_count(self) -> int:
        """Number of requests handled so far."""
        return len(self.requests)

    def __call__(self, request: httpx.Request) -> httpx.Response:
        """Record *request* and play the next step."""
        step = self._steps[min(len(self.requests), len(self._steps) - 1)]
        self.requests.append(request)
        if isinstance(step, BaseException):
            raise step
        if isinstance(step, httpx.Response):
            # Fresh response per call; a response object can only be read once
            return httpx.Response(step.status_code, headers=step.headers, stream=step.stream)
        return step(request)


def make_stub_transport(*steps: Step, follow_redirects: bool = True) -> tuple[HttpxTransport, ScriptedHandler]:
    """Create an ``HttpxTransport`` that plays *steps* instead of using the network.

    Returns:
        The transport to pass to ``create(..., transport=...)`` and the
        handler that records requests.

    """
    handler = ScriptedHandler(*steps)
    transport = HttpxTransport(follow_redirects=follow_redirects, base_transport=httpx.MockTransport(handler))
    return transport, handler
