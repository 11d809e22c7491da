from rainwatch.services.check import CheckContext, CheckOutcome, CheckResult, TickState, load_tick_state, run_check

__all__ = ["CheckContext", "CheckOutcome", "CheckResult", "TickState", "load_tick_state", "run_check"]
