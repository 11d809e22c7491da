"""
Supervised background work for side effects the check does not wait on: backfill
fetch/store, push notification, webhook. Every task is named; failures are logged and
kept in `failures` so tests (and /status) can observe them. wait() drains pending work.
"""
from __future__ import annotations

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor, wait as wait_futures
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable

from rainwatch.core.constants import BACKGROUND_MAX_WORKERS

logger = logging.getLogger(__name__)

_MAX_KEPT_FAILURES = 50


@dataclass(frozen=True)
class TaskFailure:
    name: str
    error: Exception
    failed_at: datetime


class BackgroundTasks:
    def __init__(self, max_workers: int = BACKGROUND_MAX_WORKERS, *, thread_name_prefix: str = "rainwatch_bg") -> None:
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix=thread_name_prefix)
        self._lock = threading.Lock()
        self._pending: set[Future] = set()
        self.failures: list[TaskFailure] = []
        self.completed = 0

    def submit(self, name: str, fn: Callable[..., Any], *args: Any, **kwargs: Any) -> Future:
        with self._lock:
            future = self._executor.submit(self._run, name, fn, args, kwargs)
            self._pending.add(future)
        # Outside the lock: runs inline if the future is already done
        future.add_done_callback(self._discard)
        return future

    def _discard(self, future: Future) -> None:
        with self._lock:
            self._pending.discard(future)

    def _run(self, name: str, fn: Callable[..., Any], args: tuple, kwargs: dict) -> Any:
        # Bookkeeping happens before the future resolves, so wait() callers see it
        try:
            result = fn(*args, **kwargs)
        except Exception as e:
            logger.warning("Background task %s failed: %s", name, e, exc_info=True)
            with self._lock:
                self.failures.append(TaskFailure(name=name, error=e, failed_at=datetime.now(timezone.utc)))
                del self.failures[:-_MAX_KEPT_FAILURES]
            return None
        with self._lock:
            self.completed += 1
        return result

    @property
    def pending_count(self) -> int:
        with self._lock:
            return sum(1 for f in self._pending if not f.done())

    def wait(self, timeout: float | None = None) -> bool:
        """Block until everything submitted so far is done. Returns False on timeout."""
        with self._lock:
            pending = list(self._pending)
        if not pending:
            return True
        _done, not_done = wait_futures(pending, timeout=timeout)
        return not not_done

    def shutdown(self, wait: bool = False) -> None:
        self._executor.shutdown(wait=wait)
