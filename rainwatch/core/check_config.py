"""
Check workload config. .env is the source of truth; these defaults apply only when
the env var is unset. All values read at import time.

Env vars: CHECK_TIMEOUT_SECONDS, CHECK_RETRY_INTERVAL_SECONDS, CHECK_FILL_BACK_LIMIT,
CHECK_RETENTION_MINUTES, SLOT_UTC_OFFSET_HOURS, ALERT_SG_THRESHOLD, ALERT_ALL_THRESHOLD,
ALERT_COOLDOWN_MINUTES, ALERT_DELTA_THRESHOLD.

Verify with GET /status (includes effective check config).
"""
import logging
import os
from dataclasses import asdict, dataclass
from pathlib import Path

from dotenv import load_dotenv

# Load project .env so scripts/tests that import check_config see env vars too
_root_dir = Path(__file__).resolve().parent.parent.parent
load_dotenv(_root_dir / ".env", override=False)  # no-op if file missing

_log = logging.getLogger(__name__)


def _int(key: str, default: int, min_val: int | None = None, max_val: int | None = None) -> int:
    raw = os.environ.get(key)
    if raw is None:
        v = default
    else:
        try:
            v = int(raw.strip())
        except ValueError:
            v = default
    if min_val is not None and v < min_val:
        v = min_val
    if max_val is not None and v > max_val:
        v = max_val
    return v


# -----------------------------------------------------------------------------
# Primary fetch: fixed interval retry inside a total budget
# -----------------------------------------------------------------------------
CHECK_TIMEOUT_SECONDS = _int("CHECK_TIMEOUT_SECONDS", 270, min_val=10, max_val=290)
CHECK_RETRY_INTERVAL_SECONDS = _int("CHECK_RETRY_INTERVAL_SECONDS", 10, min_val=1, max_val=60)

# -----------------------------------------------------------------------------
# Slots, backfill, retention
# -----------------------------------------------------------------------------
SLOT_UTC_OFFSET_HOURS = _int("SLOT_UTC_OFFSET_HOURS", 8, min_val=-12, max_val=14)
CHECK_FILL_BACK_LIMIT = _int("CHECK_FILL_BACK_LIMIT", 5, min_val=0, max_val=24)
# Slices older than this are deleted on the hourly sweep (720 = 12 hours)
CHECK_RETENTION_MINUTES = _int("CHECK_RETENTION_MINUTES", 720, min_val=60, max_val=7 * 24 * 60)

# -----------------------------------------------------------------------------
# Alerting: thresholds in percent, cooldown in minutes
# -----------------------------------------------------------------------------
ALERT_SG_THRESHOLD = _int("ALERT_SG_THRESHOLD", 5, min_val=0, max_val=100)
ALERT_ALL_THRESHOLD = _int("ALERT_ALL_THRESHOLD", 50, min_val=0, max_val=100)
ALERT_COOLDOWN_MINUTES = _int("ALERT_COOLDOWN_MINUTES", 30, min_val=0, max_val=24 * 60)
ALERT_DELTA_THRESHOLD = _int("ALERT_DELTA_THRESHOLD", 15, min_val=0, max_val=100)

_log.info(
    "Check config (from env): timeout_sec=%s retry_interval_sec=%s fill_back_limit=%s "
    "retention_min=%s sg_threshold=%s all_threshold=%s cooldown_min=%s",
    CHECK_TIMEOUT_SECONDS,
    CHECK_RETRY_INTERVAL_SECONDS,
    CHECK_FILL_BACK_LIMIT,
    CHECK_RETENTION_MINUTES,
    ALERT_SG_THRESHOLD,
    ALERT_ALL_THRESHOLD,
    ALERT_COOLDOWN_MINUTES,
)


@dataclass(frozen=True)
class CheckConfig:
    """Snapshot of check config for passing around (e.g. tests)."""
    timeout_seconds: int = 270
    retry_interval_seconds: int = 10
    utc_offset_hours: int = 8
    fill_back_limit: int = 5
    retention_minutes: int = 720
    sg_threshold: float = 5
    all_threshold: float = 50
    cooldown_minutes: int = 30
    delta_threshold: float = 15

    @property
    def max_attempts(self) -> int:
        """Attempts that fit in the budget at a fixed interval (270 / 10 = 27)."""
        return max(1, self.timeout_seconds // self.retry_interval_seconds)

    def as_dict(self) -> dict:
        return {**asdict(self), "max_attempts": self.max_attempts}


def get_check_config() -> CheckConfig:
    return CheckConfig(
        timeout_seconds=CHECK_TIMEOUT_SECONDS,
        retry_interval_seconds=CHECK_RETRY_INTERVAL_SECONDS,
        utc_offset_hours=SLOT_UTC_OFFSET_HOURS,
        fill_back_limit=CHECK_FILL_BACK_LIMIT,
        retention_minutes=CHECK_RETENTION_MINUTES,
        sg_threshold=ALERT_SG_THRESHOLD,
        all_threshold=ALERT_ALL_THRESHOLD,
        cooldown_minutes=ALERT_COOLDOWN_MINUTES,
        delta_threshold=ALERT_DELTA_THRESHOLD,
    )
