# © Copyright 2025-2026, Query.Farm LLC - https://query.farm
# SPDX-License-Identifier: Apache-2.0

"""Shared constants, the ``Response`` value, and the exception hierarchy."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import ClassVar

import httpx

DEFAULT_TIMEOUT = 2.0
"""Per-attempt timeout in seconds when ``set_timeout`` is never called."""


# ---------------------------------------------------------------------------
# Response
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Response:
    """A fully drained HTTP response.

    Only produced when both the transport call and the body read
    succeeded.

    Attributes:
        status_code: HTTP status code.
        headers: Received headers keyed by lower-cased name, values in
            the order they arrived.
        body: The payload decoded as text (charset from ``Content-Type``,
            falling back to UTF-8).
        content: The raw payload bytes.

    """

    status_code: int
    headers: dict[str, list[str]] = field(default_factory=dict)
    body: str = ""
    content: bytes = b""

    def header(self, name: str) -> str | None:
        """Return the first value of header *name* (case-insensitive), or ``None``."""
        values = self.headers.get(name.lower())
        return values[0] if values else None

    def header_values(self, name: str) -> list[str]:
        """Return every value of header *name* (case-insensitive)."""
        return list(self.headers.get(name.lower(), []))

    @classmethod
    def from_httpx(cls, response: httpx.Response, content: bytes) -> Response:
        """Build a ``Response`` from httpx response metadata and its drained *content*."""
        headers: dict[str, list[str]] = {}
        for name, value in response.headers.multi_items():
            headers.setdefault(name, []).append(value)
        return cls(
            status_code=response.status_code,
            headers=headers,
            body=content.decode(response.encoding or "utf-8", errors="replace"),
            content=content,
        )


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class RestError(Exception):
    """Base class for failures of a ``send()`` call.

    Attributes:
        cause: The underlying exception (usually from httpx).
        method: HTTP method of the failed request.
        url: URL as configured on the builder.

    """

    stage: ClassVar[str] = "request"

    def __init__(self, cause: BaseException, *, method: str, url: str) -> None:
        """Initialize with the underlying exception and request identity."""
        self.cause = cause
        self.method = method
        self.url = url
        super().__init__(f"{self.stage}: {method} {url}: {cause}")


class UrlParseError(RestError):
    """The configured URL could not be parsed. Never retried."""

    stage = "url parse"


class TransportError(RestError):
    """The transport failed before a response arrived (connect, DNS, timeout, protocol)."""

    stage = "transport"


class ReadError(RestError):
    """A response arrived but draining its body failed."""

    stage = "read"


# ---------------------------------------------------------------------------
# Value rendering
# ---------------------------------------------------------------------------


def _render(value: object) -> str:
    """Render a value as text the way httpx renders primitive query values."""
    if value is True:
        return "true"
    if value is False:
        return "false"
    if value is None:
        return ""
    if isinstance(value, bytes):
        return value.decode("utf-8")
    return str(value)


def _render_all(values: object) -> list[str]:
    """Render a scalar or an iterable of values as a list of strings."""
    if isinstance(values, (str, bytes)) or not isinstance(values, Iterable):
        return [_render(values)]
    return [_render(v) for v in values]


def _copy_multi(mapping: Mapping[str, object]) -> dict[str, list[str]]:
    """Copy a multi-valued mapping, rendering every value."""
    return {name: _render_all(values) for name, values in mapping.items()}
