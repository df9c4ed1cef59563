# © Copyright 2025-2026, Query.Farm LLC - https://query.farm
# SPDX-License-Identifier: Apache-2.0

"""Transport collaborator: the httpx boundary.

``Transport`` is the seam the retry loop talks to; ``HttpxTransport`` is the
default implementation.  It builds a fresh ``httpx.Client`` for every attempt
with a direct connection strategy (``trust_env=False``: no proxy variables,
no ``.netrc``), so nothing is pooled across attempts or builders.  Callers
issuing many retries can mount their own ``httpx.BaseTransport`` via
``base_transport`` to reuse connections; a mounted transport is never closed
here.
"""

from __future__ import annotations

import contextlib
from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Protocol, runtime_checkable

import httpx

__all__ = ["HttpxTransport", "Transport"]


@runtime_checkable
class Transport(Protocol):
    """Sends one assembled request and exposes the streaming response."""

    def open(self, request: httpx.Request, *, timeout: float) -> contextlib.AbstractContextManager[httpx.Response]:
        """Send *request* and return a context manager yielding the response.

        The response body must not have been read yet.  Leaving the context
        closes the response stream and releases any per-attempt resources.

        Args:
            request: The fully assembled request.
            timeout: Per-attempt timeout in seconds.

        Raises:
            httpx.HTTPError: If no response could be obtained.

        """
        ...


@dataclass(frozen=True)
class HttpxTransport:
    """Default transport backed by a per-attempt ``httpx.Client``.

    Attributes:
        follow_redirects: Follow 3xx responses.
        max_redirects: Redirect hops before ``httpx.TooManyRedirects``.
        verify: TLS certificate verification (ignored with ``base_transport``).
        base_transport: Optional ``httpx.BaseTransport`` to send through
            instead of a fresh connection pool.  Owned by the caller.

    Raises:
        ValueError: If *max_redirects* < 0.

    """

    follow_redirects: bool = True
    max_redirects: int = 10
    verify: bool = True
    base_transport: httpx.BaseTransport | None = field(default=None, repr=False, compare=False)

    def __post_init__(self) -> None:
        """Validate configuration values."""
        if self.max_redirects < 0:
            raise ValueError(f"max_redirects must be >= 0, got {self.max_redirects}")

    def _make_client(self, timeout: float) -> httpx.Client:
        return httpx.Client(
            timeout=timeout,
            trust_env=False,
            follow_redirects=self.follow_redirects,
            max_redirects=self.max_redirects,
            verify=self.verify,
            transport=self.base_transport,
        )

    @contextlib.contextmanager
    def open(self, request: httpx.Request, *, timeout: float) -> Iterator[httpx.Response]:
        """Send *request* on a fresh client and yield the unread response."""
        # The timeout travels in the request extensions so redirect hops inherit it
        request.extensions = {**request.extensions, "timeout": httpx.Timeout(timeout).as_dict()}
        client = self._make_client(timeout)
        try:
            response = client.send(request, stream=True)
            try:
                yield response
            finally:
                response.close()
        finally:
            # Client.close() also closes its transport, which the caller owns when mounted
            if self.base_transport is None:
                client.close()
