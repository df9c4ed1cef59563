# © Copyright 2025-2026, Query.Farm LLC - https://query.farm
# SPDX-License-Identifier: Apache-2.0

"""Ready-made retry predicates for ``RequestBuilder.set_retry``."""

from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING

from ._common import Response, RestError, TransportError

if TYPE_CHECKING:
    from ._builder import RequestBuilder
    from ._retry import RetryPredicate

__all__ = [
    "DEFAULT_RETRYABLE_STATUS",
    "any_of",
    "retry_on_error",
    "retry_on_status",
    "retry_on_transport_error",
]

# Status codes produced by reverse proxies and rate limiters that indicate
# transient failures safe to retry.
DEFAULT_RETRYABLE_STATUS: frozenset[int] = frozenset({429, 502, 503, 504})


def retry_on_error(builder: RequestBuilder, response: Response | None, error: RestError | None) -> bool:
    """Retry whenever the attempt failed, whatever the stage."""
    return error is not None


def retry_on_transport_error(builder: RequestBuilder, response: Response | None, error: RestError | None) -> bool:
    """Retry only when no response arrived at all."""
    return isinstance(error, TransportError)


def retry_on_status(statuses: Iterable[int] = DEFAULT_RETRYABLE_STATUS) -> RetryPredicate:
    """Build a predicate that retries on the given response status codes.

    Args:
        statuses: Status codes that warrant another attempt.

    Returns:
        A predicate that is true for a response with one of *statuses*.

    """
    codes = frozenset(statuses)

    def predicate(builder: RequestBuilder, response: Response | None, error: RestError | None) -> bool:
        return response is not None and response.status_code in codes

    return predicate


def any_of(*predicates: RetryPredicate) -> RetryPredicate:
    """Combine predicates; retry when any of them says so."""

    def predicate(builder: RequestBuilder, response: Response | None, error: RestError | None) -> bool:
        return any(p(builder, response, error) for p in predicates)

    return predicate
