# © Copyright 2025-2026, Query.Farm LLC - https://query.farm
# SPDX-License-Identifier: Apache-2.0

"""Debug logging infrastructure for request/response diagnostics.

Provides logger instances under the ``restcall.wire.*`` hierarchy and
formatting helpers for httpx objects.  Enabling
``logging.getLogger("restcall.wire").setLevel(logging.DEBUG)`` shows every
assembled request and every drained response.

All formatting helpers return ``str`` and never log directly.
They are designed to be called inside ``isEnabledFor`` guards so
there is zero overhead when debug logging is disabled.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

# ---------------------------------------------------------------------------
# Logger hierarchy: restcall.wire.*
# ---------------------------------------------------------------------------

wire_request_logger = logging.getLogger("restcall.wire.request")
"""Assembled outgoing requests."""

wire_response_logger = logging.getLogger("restcall.wire.response")
"""Drained responses and per-attempt failures."""

# ---------------------------------------------------------------------------
# Formatting helpers
# ---------------------------------------------------------------------------

_MAX_VALUE_LEN = 80
"""Maximum length for individual header values and body previews."""

_REDACTED_HEADERS: frozenset[str] = frozenset({"authorization", "proxy-authorization", "cookie", "set-cookie"})


def _truncate(text: str) -> str:
    if len(text) > _MAX_VALUE_LEN:
        return text[:_MAX_VALUE_LEN] + "..."
    return text


def fmt_headers(items: Iterable[tuple[str, str]]) -> str:
    """Format header pairs compactly, redacting credentials.

    Returns:
        ``"{accept='text/plain', authorization=<redacted>}"`` or ``"{}"``.

    """
    parts: list[str] = []
    for name, value in items:
        if name.lower() in _REDACTED_HEADERS:
            parts.append(f"{name}=<redacted>")
        else:
            parts.append(f"{name}={_truncate(value)!r}")
    return "{" + ", ".join(parts) + "}"


def fmt_body(content: bytes) -> str:
    """Format a payload as its size plus a short decoded preview.

    Returns:
        ``"12 bytes 'hello world!'"`` or ``"0 bytes"``.

    """
    if not content:
        return "0 bytes"
    preview = _truncate(content[: _MAX_VALUE_LEN + 1].decode(errors="replace"))
    return f"{len(content)} bytes {preview!r}"
