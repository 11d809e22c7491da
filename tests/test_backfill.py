"""Backfill planning and the fire-and-forget backfill jobs."""
from rainwatch.core.errors import TransportError
from rainwatch.services.backfill import backfill_one, plan_backfill, run_backfill
from tests.fakes import FakeRainAreaClient, InMemoryIngestionStore, rain_body

TARGET = 202610191405


class TestPlanBackfill:
    def test_nothing_stored_yet(self):
        assert plan_backfill(TARGET, None) == []

    def test_adjacent_slot_is_not_a_gap(self):
        assert plan_backfill(TARGET, 202610191400) == []

    def test_one_missing_slot(self):
        assert plan_backfill(TARGET, 202610191355) == [202610191400]

    def test_missing_slots_newest_first_excluding_last(self):
        assert plan_backfill(TARGET, 202610191340) == [
            202610191400,
            202610191355,
            202610191350,
            202610191345,
        ]

    def test_capped_at_limit(self):
        assert plan_backfill(TARGET, 202610191205) == [
            202610191400,
            202610191355,
            202610191350,
            202610191345,
            202610191340,
        ]
        assert plan_backfill(TARGET, 202610191205, fill_back_limit=2) == [202610191400, 202610191355]
        assert plan_backfill(TARGET, 202610191205, fill_back_limit=0) == []

    def test_no_backfill_right_after_midnight(self):
        # HHmm-only gap is negative across midnight
        assert plan_backfill(202610200005, 202610192340) == []

    def test_stored_ahead_of_target(self):
        assert plan_backfill(TARGET, 202610191415) == []


class TestBackfillOne:
    def test_stores_clean_slice(self):
        store = InMemoryIngestionStore()
        client = FakeRainAreaClient({202610191400: rain_body(202610191400, 5, 1)})
        assert backfill_one(client, store, 202610191400) is True
        assert store.upserts == [202610191400]

    def test_single_attempt_and_skip_on_error(self):
        store = InMemoryIngestionStore()
        client = FakeRainAreaClient({202610191400: TransportError("timeout")})
        assert backfill_one(client, store, 202610191400) is False
        assert client.calls == [202610191400]
        assert store.rows == {}

    def test_skip_on_error_body(self):
        store = InMemoryIngestionStore()
        assert backfill_one(FakeRainAreaClient(), store, 202610191400) is False
        assert store.rows == {}

    def test_store_failure_is_swallowed(self):
        store = InMemoryIngestionStore()
        store.fail_upsert = True
        client = FakeRainAreaClient({202610191400: rain_body(202610191400)})
        assert backfill_one(client, store, 202610191400) is False


def test_run_backfill_stores_what_it_can(tasks):
    store = InMemoryIngestionStore()
    client = FakeRainAreaClient(
        {
            202610191400: rain_body(202610191400, 10, 2),
            202610191355: {"error": "No data"},
            202610191350: rain_body(202610191350, 8, 1),
        }
    )
    planned = run_backfill(TARGET, 202610191345, client=client, store=store, tasks=tasks)
    assert planned == [202610191400, 202610191355, 202610191350]
    assert tasks.wait(timeout=5)
    assert sorted(store.rows) == [202610191350, 202610191400]
    assert sorted(client.calls) == sorted(planned)
    assert tasks.failures == []
