"""
Fetch one rain area slice: single attempt (backfill) or fixed-interval retry inside a budget (primary).

Both a transport failure and a body with an 'error' field count as a failed attempt and get the
same wait. No exponential backoff: the budget is sized so the tick finishes before the next slot.
"""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Callable

from tenacity import (
    RetryCallState,
    RetryError,
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    stop_after_delay,
    wait_fixed,
)

from rainwatch.core.check_config import CheckConfig
from rainwatch.core.errors import DomainError, FetchExhausted, TransportError
from rainwatch.services.rainarea.client import RainAreaClient
from rainwatch.services.rainarea.types import CoverageReading

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RetryPolicy:
    max_attempts: int = 27
    interval_seconds: float = 10.0
    # Wall-clock ceiling across all attempts; None = attempts only
    deadline_seconds: float | None = None

    @classmethod
    def from_config(cls, config: CheckConfig) -> "RetryPolicy":
        return cls(
            max_attempts=config.max_attempts,
            interval_seconds=float(config.retry_interval_seconds),
            deadline_seconds=float(config.timeout_seconds + 1),
        )


def fetch_once(client: RainAreaClient, slot: int) -> CoverageReading:
    """One GET for `slot`. Raises TransportError or DomainError."""
    resp = client.get_slice(slot)
    if not resp.status_ok:
        if resp.body.get("error"):
            raise DomainError(f"HTTP {resp.status_code}: {resp.body['error']}")
        raise TransportError(f"HTTP {resp.status_code} for slot {slot}", status_code=resp.status_code)
    return CoverageReading.from_body(resp.body)


def fetch_slice(
    client: RainAreaClient,
    slot: int,
    policy: RetryPolicy | None = None,
    *,
    sleep: Callable[[float], None] = time.sleep,
) -> CoverageReading:
    """
    Fetch `slot` with up to policy.max_attempts attempts, policy.interval_seconds apart.
    Raises FetchExhausted (cause = last error, attempts_used) when the budget runs out.
    """
    policy = policy or RetryPolicy()

    def _log_failed_attempt(retry_state: RetryCallState) -> None:
        logger.info(
            "Failed attempt %s/%s for slot %s: %s",
            retry_state.attempt_number,
            policy.max_attempts,
            slot,
            retry_state.outcome.exception() if retry_state.outcome else None,
        )

    stop = stop_after_attempt(policy.max_attempts)
    if policy.deadline_seconds:
        stop = stop | stop_after_delay(policy.deadline_seconds)
    retrying = Retrying(
        stop=stop,
        wait=wait_fixed(policy.interval_seconds),
        retry=retry_if_exception_type((TransportError, DomainError)),
        after=_log_failed_attempt,
        sleep=sleep,
    )
    try:
        return retrying(fetch_once, client, slot)
    except RetryError as e:
        last = e.last_attempt
        cause = last.exception()
        raise FetchExhausted(
            f"Slot {slot}: all {last.attempt_number} attempts failed ({cause})",
            cause=cause,
            attempts_used=last.attempt_number,
        ) from cause
