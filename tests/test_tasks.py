"""Background task group: completion, failure capture, draining."""
import threading
import time

from rainwatch.services.tasks import BackgroundTasks


def test_completed_and_failed_tasks_are_counted(tasks):
    def boom():
        raise ValueError("push failed")

    tasks.submit("ok", lambda: 1)
    tasks.submit("push:202610191405", boom)
    assert tasks.wait(timeout=5)
    assert tasks.completed == 1
    assert [f.name for f in tasks.failures] == ["push:202610191405"]
    assert isinstance(tasks.failures[0].error, ValueError)
    assert tasks.pending_count == 0


def test_failure_does_not_affect_siblings(tasks):
    results = []
    tasks.submit("bad", lambda: 1 / 0)
    tasks.submit("good", results.append, "webhook")
    assert tasks.wait(timeout=5)
    assert results == ["webhook"]


def test_wait_times_out_while_work_is_blocked():
    group = BackgroundTasks(max_workers=1)
    gate = threading.Event()
    try:
        group.submit("blocked", gate.wait)
        assert group.wait(timeout=0.05) is False
        assert group.pending_count == 1
    finally:
        gate.set()
        group.shutdown(wait=True)
    assert group.wait(timeout=1)


def test_wait_with_nothing_submitted(tasks):
    assert tasks.wait(timeout=0) is True


def test_finished_futures_are_released_without_wait(tasks):
    futures = [tasks.submit(f"backfill:{i}", lambda: None) for i in range(200)]
    for f in futures:
        f.result(timeout=5)
    assert tasks.pending_count == 0
    # Done callbacks run right after the result is set
    deadline = time.monotonic() + 5
    while tasks._pending and time.monotonic() < deadline:
        time.sleep(0.01)
    assert tasks._pending == set()
    assert tasks.completed == 200
