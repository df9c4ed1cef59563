"""Retry transient failures with a caller-supplied predicate.

The stub transport refuses the first connection and answers ``503`` once
before succeeding.  ``any_of`` combines two ready-made predicates; a custom
predicate can close over state to record every attempt.

Run::

    python examples/retry.py
"""

from __future__ import annotations

import httpx

from restcall import (
    RequestBuilder,
    Response,
    RestError,
    any_of,
    create,
    make_stub_transport,
    retry_on_status,
    retry_on_transport_error,
)


def main() -> None:
    """Run the retry example."""
    transport, handler = make_stub_transport(
        httpx.ConnectError("Connection refused"),
        httpx.Response(503, text="busy"),
        httpx.Response(200, text="done"),
    )

    should_retry = any_of(retry_on_transport_error, retry_on_status())
    history: list[str] = []

    def record_and_decide(builder: RequestBuilder, response: Response | None, error: RestError | None) -> bool:
        history.append(f"HTTP {response.status_code}" if response is not None else f"error: {error}")
        return should_retry(builder, response, error)

    response = (
        create("GET", "https://jobs.example/status", transport=transport)
        .set_retry(3, 0.05, record_and_decide)
        .set_records({"job": "nightly"})
        .send()
    )

    for number, outcome in enumerate(history, start=1):
        print(f"attempt {number}: {outcome}")
    print(f"final: HTTP {response.status_code} {response.body!r} after {handler.call_count} calls")


if __name__ == "__main__":
    main()
