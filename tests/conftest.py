# © Copyright 2025-2026, Query.Farm LLC - https://query.farm
# SPDX-License-Identifier: Apache-2.0

"""Shared test fixtures for restcall tests."""

from __future__ import annotations

import httpx
import pytest

from restcall import HttpxTransport, ScriptedHandler, make_stub_transport

ITEMS_URL = "https://example.test/items"


@pytest.fixture
def sleeps() -> list[float]:
    """Collect delays passed to the injectable sleep (``send(_sleep=sleeps.append)``)."""
    return []


@pytest.fixture
def ok_stub() -> tuple[HttpxTransport, ScriptedHandler]:
    """Stub transport that always answers ``200 ok``."""
    return make_stub_transport(httpx.Response(200, text="ok"))
