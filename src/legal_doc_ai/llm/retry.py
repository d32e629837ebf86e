"""Rate-limit aware retry for calls to hosted model APIs.

Only HTTP 429 responses are retried.  The wait before attempt *n* (0-based)
is::

    min(max(suggested, base_delay * 2**n) + jitter, max_delay)

where *suggested* is the delay the provider asked for (a google.rpc
``RetryInfo`` detail or a ``Retry-After`` header), falling back to
``default_delay`` when the error carries none, and *jitter* is uniform in
``[0, 1]`` seconds.  Any other exception propagates untouched.
"""

from __future__ import annotations

import logging
import math
import random
import time
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from legal_doc_ai.config import settings
from legal_doc_ai.errors import RateLimitExhaustedError

logger = logging.getLogger(__name__)

T = TypeVar("T")

RETRY_INFO_TYPE = "type.googleapis.com/google.rpc.RetryInfo"
_STATUS_ATTRS = ("status_code", "status", "code", "http_status")


@dataclass
class BackoffResult(Generic[T]):
    """Value returned by the wrapped call plus how many retries it took."""

    value: T
    retries: int = 0


def parse_retry_delay(value: Any, default: float | None = None) -> float:
    """Parse a provider delay such as ``"52s"``, ``"1.2s"`` or ``7`` into seconds."""
    default = settings.retry_default_delay if default is None else default
    if isinstance(value, bool):
        return default
    if isinstance(value, (int, float)):
        seconds = float(value)
    elif isinstance(value, str):
        try:
            seconds = float(value.strip().removesuffix("s"))
        except ValueError:
            return default
    elif isinstance(value, dict) and "seconds" in value:
        try:
            seconds = float(value["seconds"]) + float(value.get("nanos") or 0) / 1e9
        except (TypeError, ValueError):
            return default
    else:
        return default
    if math.isnan(seconds) or seconds < 0:
        return default
    return seconds


def _status_of(exc: BaseException) -> int | None:
    candidates = [getattr(exc, attr, None) for attr in _STATUS_ATTRS]
    response = getattr(exc, "response", None)
    if response is not None:
        candidates.append(getattr(response, "status_code", None))
    for value in candidates:
        if value is None or callable(value) or isinstance(value, bool):
            continue
        try:
            return int(value)
        except (TypeError, ValueError):
            continue
    return None


def is_rate_limit_error(exc: BaseException) -> bool:
    """``True`` when *exc* reports HTTP 429 (Too Many Requests)."""
    return _status_of(exc) == 429


def _iter_error_details(exc: BaseException) -> Iterable[dict[str, Any]]:
    for attr in ("error_details", "errorDetails", "details"):
        details = getattr(exc, attr, None)
        if isinstance(details, list):
            yield from (d for d in details if isinstance(d, dict))

    body = getattr(exc, "body", None)
    if isinstance(body, dict):
        error = body.get("error", body)
        details = error.get("details") if isinstance(error, dict) else None
        if isinstance(details, list):
            yield from (d for d in details if isinstance(d, dict))


def _retry_after_header(exc: BaseException) -> str | None:
    response = getattr(exc, "response", None)
    headers = getattr(response, "headers", None)
    if headers is None:
        return None
    try:
        return headers.get("retry-after") or headers.get("Retry-After")
    except AttributeError:
        return None


def suggested_retry_delay(exc: BaseException, default: float | None = None) -> float:
    """Delay (seconds) the provider asked for in a 429 error, or *default*."""
    default = settings.retry_default_delay if default is None else default
    for detail in _iter_error_details(exc):
        if detail.get("@type") == RETRY_INFO_TYPE and "retryDelay" in detail:
            return parse_retry_delay(detail["retryDelay"], default)

    header = _retry_after_header(exc)
    if header is not None:
        return parse_retry_delay(header, default)
    return default


def compute_backoff_delay(
    attempt: int,
    suggested: float,
    *,
    base_delay: float | None = None,
    max_delay: float | None = None,
    jitter: float = 0.0,
) -> float:
    """Wait before retrying after the rate-limited *attempt* (0-based)."""
    base_delay = settings.retry_base_delay if base_delay is None else base_delay
    max_delay = settings.retry_max_delay if max_delay is None else max_delay
    exponential = base_delay * (2**attempt)
    return min(max(suggested, exponential) + jitter, max_delay)


def invoke_with_backoff(
    call: Callable[[], T],
    *,
    max_retries: int | None = None,
    base_delay: float | None = None,
    default_delay: float | None = None,
    max_delay: float | None = None,
    sleep: Callable[[float], None] | None = None,
    jitter: Callable[[], float] = lambda: random.uniform(0.0, 1.0),
    label: str = "model call",
) -> BackoffResult[T]:
    """Run *call*, retrying on HTTP 429 with exponential backoff.

    Parameters
    ----------
    call:
        Zero-argument callable performing one API request.
    max_retries:
        Total number of attempts before giving up (default 10).
    base_delay, default_delay, max_delay:
        Backoff tuning in seconds; default to the ``retry_*`` settings.
    sleep, jitter:
        Injection points for tests.
    label:
        Name used in log messages.

    Returns
    -------
    BackoffResult
        The call's return value and the number of retries performed.

    Raises
    ------
    RateLimitExhaustedError
        When every attempt was rate limited; chained to the last 429 error.
    """
    max_retries = settings.retry_max_attempts if max_retries is None else max_retries
    attempt = 0
    while True:
        try:
            return BackoffResult(value=call(), retries=attempt)
        except Exception as exc:
            if not is_rate_limit_error(exc):
                raise

            suggested = suggested_retry_delay(exc, default_delay)
            delay = compute_backoff_delay(
                attempt,
                suggested,
                base_delay=base_delay,
                max_delay=max_delay,
                jitter=jitter(),
            )
            attempt += 1
            if attempt >= max_retries:
                logger.error("%s still rate limited after %d attempt(s); giving up", label, attempt)
                raise RateLimitExhaustedError(attempt) from exc

            logger.warning(
                "%s rate limited (429). Attempt %d/%d. Retrying in %.2fs (suggested %.1fs)",
                label,
                attempt,
                max_retries,
                delay,
                suggested,
            )
            (sleep or time.sleep)(delay)
