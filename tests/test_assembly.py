# © Copyright 2025-2026, Query.Farm LLC - https://query.farm
# SPDX-License-Identifier: Apache-2.0

"""Tests for request assembly (URL parsing, query encoding, headers, body, form)."""

from __future__ import annotations

import httpx
import pytest

from restcall import UrlParseError
from restcall._assembly import build_request, encode_query, parse_url

from .conftest import ITEMS_URL


def _build(
    url: str = ITEMS_URL,
    *,
    method: str = "GET",
    query: dict[str, list[str]] | None = None,
    params: dict[str, str] | None = None,
    headers: dict[str, list[str]] | None = None,
    form: dict[str, list[str]] | None = None,
    body: bytes | None = None,
) -> httpx.Request:
    return build_request(
        method,
        parse_url(method, url),
        query=query or {},
        params=params or {},
        headers=headers or {},
        form=form or {},
        body=body,
    )


# ---------------------------------------------------------------------------
# parse_url
# ---------------------------------------------------------------------------


class TestParseUrl:
    """Tests for URL parsing."""

    def test_valid(self) -> None:
        """A well-formed URL parses."""
        url = parse_url("GET", ITEMS_URL)
        assert url.host == "example.test"
        assert url.path == "/items"

    @pytest.mark.parametrize(
        "bad",
        [
            "http://example.test:notaport/items",
            "https://example.test/\x00items",
        ],
    )
    def test_invalid_wrapped(self, bad: str) -> None:
        """httpx rejections become UrlParseError with the cause attached."""
        with pytest.raises(UrlParseError) as exc_info:
            parse_url("GET", bad)
        err = exc_info.value
        assert isinstance(err.cause, httpx.InvalidURL)
        assert err.__cause__ is err.cause
        assert err.method == "GET"
        assert err.url == bad
        assert str(err).startswith("url parse: GET ")

    @pytest.mark.parametrize(
        ("bad", "reason"),
        [
            ("ht tp://example.test/items", "invalid scheme"),
            ("1http://example.test/", "invalid scheme"),
            ("%zz://x", "invalid scheme"),
            ("example.test/items", "invalid scheme"),
            ("http://example.test/%zz", "invalid percent-escape"),
            ("http://example.test/%4", "invalid percent-escape"),
            ("http://exa mple.test/", "invalid host"),
        ],
    )
    def test_malformed_rejected(self, bad: str, reason: str) -> None:
        """URLs httpx tolerates but that are not usable absolute URLs are rejected."""
        with pytest.raises(UrlParseError, match=reason) as exc_info:
            parse_url("GET", bad)
        assert isinstance(exc_info.value.cause, httpx.InvalidURL)
        assert exc_info.value.__cause__ is exc_info.value.cause

    @pytest.mark.parametrize(
        "good",
        [
            "https://user:pw@example.test:8443/items",
            "http://[::1]:8080/",
            "svn+ssh://example.test/repo",
            "https://example.test/a%20b",
        ],
    )
    def test_unusual_but_valid(self, good: str) -> None:
        """Userinfo, IPv6 hosts, compound schemes and valid escapes are accepted."""
        assert parse_url("GET", good).host


# ---------------------------------------------------------------------------
# encode_query
# ---------------------------------------------------------------------------


class TestEncodeQuery:
    """Tests for query string encoding."""

    def test_empty(self) -> None:
        """No parameters encode to the empty string."""
        assert encode_query({}) == ""

    def test_repeated_values_keep_order(self) -> None:
        """Values under one key become repeated pairs in insertion order."""
        assert encode_query({"x": ["a", "b"]}) == "x=a&x=b"

    def test_keys_sorted(self) -> None:
        """Keys are emitted in sorted order regardless of insertion order."""
        assert encode_query({"z": ["1"], "a": ["2"], "m": ["3"]}) == "a=2&m=3&z=1"

    def test_values_not_sorted(self) -> None:
        """Sorting applies to keys only."""
        assert encode_query({"x": ["b", "a"]}) == "x=b&x=a"

    def test_escaping(self) -> None:
        """Spaces become '+', reserved characters are percent-escaped."""
        assert encode_query({"q": ["a b", "c&d", "é"]}) == "q=a+b&q=c%26d&q=%C3%A9"

    def test_params_merged(self) -> None:
        """Params without a query entry add one pair each."""
        assert encode_query({"x": ["1"]}, {"page": "2"}) == "page=2&x=1"

    def test_query_wins_over_params(self) -> None:
        """A key present in both keeps only the query values."""
        assert encode_query({"x": ["1", "2"]}, {"x": "9"}) == "x=1&x=2"


# ---------------------------------------------------------------------------
# build_request
# ---------------------------------------------------------------------------


class TestBuildRequest:
    """Tests for the assembled httpx.Request."""

    def test_method_and_url(self) -> None:
        """Method and URL carry over; query is appended."""
        request = _build(method="DELETE", query={"id": ["42"]})
        assert request.method == "DELETE"
        assert str(request.url) == f"{ITEMS_URL}?id=42"

    def test_no_trailing_question_mark(self) -> None:
        """An empty query leaves no '?' on the URL."""
        assert str(_build().url) == ITEMS_URL

    def test_query_replaces_url_query(self) -> None:
        """The encoded query replaces any query string in the base URL."""
        request = _build(f"{ITEMS_URL}?stale=1", query={"fresh": ["2"]})
        assert request.url.params.get("fresh") == "2"
        assert "stale" not in request.url.params

    def test_escaped_query_preserved(self) -> None:
        """Escaping from encode_query survives URL construction."""
        request = _build(query={"q": ["a b", "c&d"]})
        assert request.url.query == b"q=a+b&q=c%26d"
        assert request.url.params.get_list("q") == ["a b", "c&d"]

    def test_headers_accumulate(self) -> None:
        """Every header value is present, none replaced."""
        request = _build(headers={"X": ["1", "2"], "Accept": ["text/plain"]})
        assert request.headers.get_list("X") == ["1", "2"]
        assert request.headers["Accept"] == "text/plain"
        assert request.headers["Host"] == "example.test"

    def test_body_verbatim(self) -> None:
        """The body is sent byte for byte."""
        request = _build(method="POST", body=b"\x00\x01payload")
        assert request.content == b"\x00\x01payload"
        assert request.headers["Content-Length"] == "9"

    def test_form_encoded_when_no_body(self) -> None:
        """Form fields become a urlencoded body when no body is set."""
        request = _build(method="POST", form={"name": ["a b"], "tag": ["x", "y"]})
        assert request.content == b"name=a+b&tag=x&tag=y"
        assert request.headers["Content-Type"] == "application/x-www-form-urlencoded"

    def test_body_wins_over_form(self) -> None:
        """A set body is transmitted and the form is ignored."""
        request = _build(method="POST", form={"name": ["ignored"]}, body=b"raw")
        assert request.content == b"raw"
        assert "Content-Type" not in request.headers

    def test_explicit_content_type_kept_for_form(self) -> None:
        """A caller-supplied Content-Type is not overridden by form encoding."""
        request = _build(
            method="POST",
            headers={"Content-Type": ["application/x-www-form-urlencoded; charset=utf-8"]},
            form={"a": ["1"]},
        )
        assert request.headers.get_list("Content-Type") == ["application/x-www-form-urlencoded; charset=utf-8"]

    def test_non_ascii_header_encoded_as_utf8(self) -> None:
        """Non-ASCII header text is carried as UTF-8 bytes."""
        request = _build(headers={"X-Name": ["café"]})
        assert (b"X-Name", "café".encode()) in request.headers.raw
        assert request.headers["x-name"] == "café"

    def test_no_body_no_form(self) -> None:
        """Without body or form the payload is empty."""
        assert _build().content == b""
