"""
Centralized constants for the scheduler, state documents and notifications.

Change job IDs or schedules here instead of scattering literals across main and routes.
Tuning knobs (thresholds, budgets) come from check_config (env-driven).
"""

# Scheduler job id (must match id used in main.py add_job)
CHECK_JOB_ID = "scheduled_check"
# One minute after each 5-minute slot, so the radar API has the slice ready
CHECK_CRON_MINUTES = "1,6,11,16,21,26,31,36,41,46,51,56"
CHECK_TIMEZONE = "Asia/Singapore"
# A scheduled run that starts later than this is skipped (next slot will pick it up)
CHECK_MISFIRE_GRACE_SECONDS = 60

# Fixed acknowledgement for the HTTP trigger
CHECK_ACK = "DONE"

# State document holding the alert state (last notified sg coverage + timestamp)
ALERT_STATE_KEY = "sg-coverage"

# Push: replace the previous radar notification instead of stacking, expire after 2 minutes
PUSH_COLLAPSE_KEY = "latest-radar"
PUSH_TTL_SECONDS = 120

# Notification title glyph, repeated ceil(all / 20) times
RAIN_GLYPH = "\U0001F327"
COVERAGE_GLYPH_STEP = 20

# Background task group: backfill fetch/store + deliveries
BACKGROUND_MAX_WORKERS = 6
