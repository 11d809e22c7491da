"""
Rain alert hysteresis: decide notify / reset / no-op for each new reading.

State is one record (last notified sg coverage + when). A notification needs rain above a threshold,
the cooldown elapsed since the last one, and a big enough change (or a crossing of a boundary:
from dry, to 99%, to 100%). Once Singapore coverage drops below the threshold the state resets to
{0, 0}, so the next small rise notifies right away.

evaluate() is pure; the check driver applies the decision (deliveries, persistence).
"""
from __future__ import annotations

import math
import re
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum

from rainwatch.core.check_config import CheckConfig
from rainwatch.core.constants import COVERAGE_GLYPH_STEP, RAIN_GLYPH
from rainwatch.services.rainarea.types import CoverageReading

_TRAILING_ZEROS_RE = re.compile(r"\.?0+$")


class AlertAction(str, Enum):
    NOTIFY = "notify"
    RESET = "reset"
    NOOP = "noop"


@dataclass(frozen=True)
class AlertState:
    last_notified_coverage: float = 0.0
    last_notified_at_ms: int = 0  # 0 = never notified or reset


@dataclass(frozen=True)
class AlertThresholds:
    sg_threshold: float = 5
    all_threshold: float = 50
    cooldown_ms: int = 30 * 60 * 1000
    delta_threshold: float = 15

    @classmethod
    def from_config(cls, config: CheckConfig) -> "AlertThresholds":
        return cls(
            sg_threshold=config.sg_threshold,
            all_threshold=config.all_threshold,
            cooldown_ms=config.cooldown_minutes * 60 * 1000,
            delta_threshold=config.delta_threshold,
        )


@dataclass(frozen=True)
class AlertMessage:
    title: str
    body: str


@dataclass(frozen=True)
class AlertDecision:
    action: AlertAction
    state: AlertState  # state after applying the action (unchanged for NOOP)
    message: AlertMessage | None = None


def format_percentage(value: float) -> str:
    """One decimal, trailing zeros and point stripped: 12.34 -> '12.3', 40.0 -> '40', 100 -> '100'."""
    rounded = Decimal(str(value)).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP)
    return _TRAILING_ZEROS_RE.sub("", f"{rounded:.1f}")


def compose_message(reading: CoverageReading) -> AlertMessage:
    glyphs = RAIN_GLYPH * math.ceil(reading.all_coverage / COVERAGE_GLYPH_STEP)
    title = f"{glyphs} Rain coverage: {format_percentage(reading.all_coverage)}%"
    body = f"Rain coverage over Singapore: {format_percentage(reading.sg_coverage)}%"
    return AlertMessage(title=title, body=body)


def cooldown_elapsed(state: AlertState, now_ms: int, cooldown_ms: int) -> bool:
    if not state.last_notified_at_ms:
        return True
    return now_ms - state.last_notified_at_ms >= cooldown_ms


def is_significant_change(sg: float, last: float, delta_threshold: float, sg_threshold: float) -> bool:
    return (
        abs(last - sg) > delta_threshold
        or last <= sg_threshold
        or (sg == 100 and last < 100)
        or (sg >= 99 and last < 99)
    )


def evaluate(
    reading: CoverageReading,
    state: AlertState,
    now_ms: int,
    thresholds: AlertThresholds | None = None,
) -> AlertDecision:
    t = thresholds or AlertThresholds()
    sg = reading.sg_coverage
    last = state.last_notified_coverage
    raining = sg >= t.sg_threshold or reading.all_coverage >= t.all_threshold
    if (
        raining
        and cooldown_elapsed(state, now_ms, t.cooldown_ms)
        and is_significant_change(sg, last, t.delta_threshold, t.sg_threshold)
    ):
        return AlertDecision(
            action=AlertAction.NOTIFY,
            state=AlertState(last_notified_coverage=sg, last_notified_at_ms=now_ms),
            message=compose_message(reading),
        )
    if sg < t.sg_threshold and last >= t.sg_threshold:
        return AlertDecision(action=AlertAction.RESET, state=AlertState())
    return AlertDecision(action=AlertAction.NOOP, state=state)
