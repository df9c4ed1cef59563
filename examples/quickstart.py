"""Build and send a request with the fluent builder.

Uses ``make_stub_transport`` so the example runs without network access;
drop the ``transport=`` argument to talk to a real server.

Run::

    python examples/quickstart.py
"""

from __future__ import annotations

import httpx

from restcall import create, make_stub_transport


def _inventory(request: httpx.Request) -> httpx.Response:
    """Pretend inventory service echoing the ids it was asked for."""
    ids = request.url.params.get_list("id")
    return httpx.Response(200, json={"items": ids, "accept": request.headers.get("Accept")})


def main() -> None:
    """Run the quickstart."""
    transport, handler = make_stub_transport(_inventory)

    # --- GET with query parameters and headers -------------------------------
    response = (
        create("GET", "https://inventory.example/items", transport=transport)
        .add_query("id", 42)
        .add_query("id", 43)
        .add_header("Accept", "application/json")
        .set_timeout(0.5)
        .send()
    )
    print(f"GET {handler.requests[0].url} -> {response.status_code}")
    print(f"body: {response.body}")
    print(f"content-type: {response.header('Content-Type')}")

    # --- POST a form ---------------------------------------------------------
    (
        create("POST", "https://inventory.example/items", transport=transport)
        .add_form("name", "widget")
        .add_form("tag", "blue", "small")
        .send()
    )
    print(f"form body: {handler.requests[1].content.decode()}")


if __name__ == "__main__":
    main()
