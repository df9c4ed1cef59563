# © Copyright 2025-2026, Query.Farm LLC - https://query.farm
# SPDX-License-Identifier: Apache-2.0

"""Turn accumulated builder state into an ``httpx.Request``."""

from __future__ import annotations

import re
from collections.abc import Mapping, Sequence
from urllib.parse import urlencode

import httpx

from ._common import UrlParseError


_SCHEME = re.compile(r"[A-Za-z][A-Za-z0-9+.\-]*")
_BAD_ESCAPE = re.compile(r"%(?![0-9A-Fa-f]{2})")
_AUTHORITY_END = re.compile(r"[/?#]")


def _malformed(url: str, parsed: httpx.URL) -> str | None:
    """Return why *url* is unusable as an absolute URL, or ``None`` if it is fine."""
    scheme, sep, rest = url.partition(":")
    if not sep or not _SCHEME.fullmatch(scheme):
        return f"missing or invalid scheme in {url!r}"
    if _BAD_ESCAPE.search(url):
        return f"invalid percent-escape in {url!r}"
    authority = _AUTHORITY_END.split(rest.removeprefix("//"), maxsplit=1)[0] if rest.startswith("//") else ""
    if not parsed.host or any(ch.isspace() for ch in authority):
        return f"missing or invalid host in {url!r}"
    return None


def parse_url(method: str, url: str) -> httpx.URL:
    """Parse *url*, wrapping any failure as ``UrlParseError``.

    httpx is lenient about schemes, hosts and escapes, so the raw text is
    also required to have a valid scheme, a host without whitespace, and
    only well-formed ``%XX`` escapes.

    Raises:
        UrlParseError: If httpx rejects the URL (bad port, non-printable
            characters, unsupported IDNA, ...) or it fails the checks above.

    """
    try:
        parsed = httpx.URL(url)
    except (httpx.InvalidURL, ValueError, TypeError) as exc:
        raise UrlParseError(exc, method=method, url=url) from exc
    reason = _malformed(url, parsed)
    if reason is not None:
        cause = httpx.InvalidURL(reason)
        raise UrlParseError(cause, method=method, url=url) from cause
    return parsed


def encode_query(query: Mapping[str, Sequence[str]], params: Mapping[str, str] | None = None) -> str:
    """Encode multi-valued query parameters as a query string.

    Keys are sorted; values under one key keep their insertion order and
    become repeated ``key=value`` pairs.  Each entry of *params* whose key
    has no ``query`` entry contributes one more pair.

    Returns:
        ``"a=1&x=a&x=b"`` (no leading ``?``), or ``""`` when empty.

    """
    merged: dict[str, Sequence[str]] = {name: [value] for name, value in (params or {}).items() if name not in query}
    merged.update(query)
    return urlencode(sorted(merged.items()), doseq=True)


def build_request(
    method: str,
    url: httpx.URL,
    *,
    query: Mapping[str, Sequence[str]],
    params: Mapping[str, str],
    headers: Mapping[str, Sequence[str]],
    form: Mapping[str, Sequence[str]],
    body: bytes | None,
) -> httpx.Request:
    """Assemble the outgoing request.

    The encoded query replaces whatever query component *url* carried.
    Header values are appended under their names, never replacing one
    another, and go out as UTF-8 bytes.  Form fields are encoded as the
    payload only when *body* is ``None``; a set body is sent verbatim and
    the form is ignored.

    Args:
        method: HTTP method.
        url: Parsed base URL.
        query: Multi-valued query parameters.
        params: Single-valued parameters merged into the query.
        headers: Multi-valued headers.
        form: Multi-valued form fields.
        body: Raw payload, or ``None``.

    Returns:
        An unsent ``httpx.Request``.

    """
    encoded = encode_query(query, params)
    # None rather than b"" so an empty query does not leave a trailing "?"
    full_url = url.copy_with(query=encoded.encode("ascii") if encoded else None)
    # httpx encodes str header values as ASCII; non-ASCII text goes out as UTF-8 obs-text
    header_items = [(name.encode(), value.encode()) for name, values in headers.items() for value in values]
    if body is None and form:
        return httpx.Request(method, full_url, headers=header_items, data={k: list(v) for k, v in form.items()})
    return httpx.Request(method, full_url, headers=header_items, content=body)
