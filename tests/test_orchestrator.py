"""Tests for the debounced profile orchestrator."""

from __future__ import annotations

import asyncio
import logging
from datetime import date, datetime
from typing import Optional

import pytest

from goalfit.db.queries import DailyGoalsQueries, ProfileQueries
from goalfit.errors import InvalidDomainValue, NonFiniteValue, PersistenceError
from goalfit.profiles.records import DailyGoalsRecord, ProfileRecord
from goalfit.session import OrchestratorState, ProfileOrchestrator, SQLiteRecordStore

TODAY = date(2024, 1, 1)
NOW = datetime(2024, 1, 1, 8, 0)


class FakeStore:
    """In-memory async record store with optional latency and failures."""

    def __init__(
        self,
        record: Optional[ProfileRecord] = None,
        delay: float = 0.0,
        fail_times: int = 0,
        fail_load: bool = False,
    ):
        self.record = record
        self.delay = delay
        self.fail_times = fail_times
        self.fail_load = fail_load
        self.saved: list[ProfileRecord] = []
        self.daily: list[DailyGoalsRecord] = []
        self.attempts = 0
        self.in_flight = 0
        self.max_in_flight = 0

    async def load_profile(self, user_id: int) -> Optional[ProfileRecord]:
        if self.fail_load:
            raise OSError("connection refused")
        return self.record

    async def load_current_body_fat(self, user_id: int) -> Optional[float]:
        return None

    async def save_profile(self, record: ProfileRecord) -> None:
        self.attempts += 1
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.delay)
            if self.fail_times > 0:
                self.fail_times -= 1
                raise OSError("disk full")
            self.saved.append(record)
        finally:
            self.in_flight -= 1

    async def upsert_daily_goals(self, record: DailyGoalsRecord) -> None:
        self.daily.append(record)


def make_orchestrator(store, **kwargs) -> ProfileOrchestrator:
    kwargs.setdefault("debounce_seconds", 0.01)
    return ProfileOrchestrator(
        store, user_id=1, today=lambda: TODAY, clock=lambda: NOW, **kwargs
    )


class TestLifecycle:
    """Tests for load/close state transitions."""

    def test_load_existing_profile(self, sample_profile):
        async def scenario():
            orchestrator = make_orchestrator(FakeStore(sample_profile))
            assert orchestrator.state == OrchestratorState.IDLE
            plan = await orchestrator.load()
            return orchestrator, plan

        orchestrator, plan = asyncio.run(scenario())
        assert orchestrator.state == OrchestratorState.READY
        assert orchestrator.inputs.weight == 90.0
        assert plan.target_calories == 1814
        assert orchestrator.missing_fields == []
        assert not orchestrator.is_dirty

    def test_load_new_user(self):
        async def scenario():
            orchestrator = make_orchestrator(FakeStore())
            await orchestrator.load()
            return orchestrator

        orchestrator = asyncio.run(scenario())
        assert orchestrator.state == OrchestratorState.READY
        assert "weight" in orchestrator.missing_fields
        assert orchestrator.plan.macros is None

    def test_load_failure(self):
        async def scenario():
            orchestrator = make_orchestrator(FakeStore(fail_load=True))
            with pytest.raises(PersistenceError):
                await orchestrator.load()
            return orchestrator

        assert asyncio.run(scenario()).state == OrchestratorState.IDLE

    def test_update_requires_ready(self):
        orchestrator = make_orchestrator(FakeStore())
        with pytest.raises(RuntimeError):
            orchestrator.update(weight=80.0)

    def test_close_cancels_pending_save(self, sample_profile):
        """Closing with a pending timer never fires it."""
        store = FakeStore(sample_profile)

        async def scenario():
            orchestrator = make_orchestrator(store, debounce_seconds=0.05)
            await orchestrator.load()
            orchestrator.update(weight=89.0)
            assert orchestrator.has_pending_save
            await orchestrator.close()
            await asyncio.sleep(0.1)
            return orchestrator

        orchestrator = asyncio.run(scenario())
        assert store.attempts == 0
        assert not orchestrator.has_pending_save
        assert orchestrator.state == OrchestratorState.IDLE

    def test_close_waits_for_in_flight_save(self, sample_profile):
        store = FakeStore(sample_profile, delay=0.05)

        async def scenario():
            orchestrator = make_orchestrator(store, debounce_seconds=0)
            await orchestrator.load()
            orchestrator.update(weight=89.0)
            await asyncio.sleep(0.01)
            assert orchestrator.saving
            await orchestrator.close()
            return orchestrator

        orchestrator = asyncio.run(scenario())
        assert len(store.saved) == 1
        assert not orchestrator.saving


class TestEdits:
    """Tests for update validation and debouncing."""

    def test_invalid_value_is_rejected_eagerly(self, sample_profile):
        async def scenario():
            orchestrator = make_orchestrator(FakeStore(sample_profile))
            await orchestrator.load()
            with pytest.raises(InvalidDomainValue):
                orchestrator.update(activity_level="extreme")
            return orchestrator

        orchestrator = asyncio.run(scenario())
        assert orchestrator.inputs.activity_level == "moderate"
        assert not orchestrator.has_pending_save
        assert not orchestrator.is_dirty

    @pytest.mark.parametrize("weight", [float("nan"), float("inf")])
    def test_non_finite_value_is_rejected_eagerly(self, sample_profile, weight):
        store = FakeStore(sample_profile)

        async def scenario():
            orchestrator = make_orchestrator(store)
            await orchestrator.load()
            with pytest.raises(NonFiniteValue):
                orchestrator.update(weight=weight)
            await asyncio.sleep(0.05)
            return orchestrator

        orchestrator = asyncio.run(scenario())
        assert orchestrator.inputs.weight == 90.0
        assert not orchestrator.has_pending_save
        assert store.attempts == 0

    def test_rapid_edits_coalesce_into_one_save(self, sample_profile):
        store = FakeStore(sample_profile)

        async def scenario():
            orchestrator = make_orchestrator(store, debounce_seconds=0.05)
            await orchestrator.load()
            for weight in (89.5, 89.0, 88.5):
                orchestrator.update(weight=weight)
                await asyncio.sleep(0.01)
            await asyncio.sleep(0.2)
            return orchestrator

        orchestrator = asyncio.run(scenario())
        assert len(store.saved) == 1
        assert store.saved[0].weight == 88.5
        assert store.saved[0].updated_at == NOW
        assert orchestrator.last_saved_at == NOW
        assert not orchestrator.is_dirty

    def test_saves_are_serialized(self, sample_profile):
        """An edit during an in-flight save is saved afterwards, never concurrently."""
        store = FakeStore(sample_profile, delay=0.1)

        async def scenario():
            orchestrator = make_orchestrator(store, debounce_seconds=0.01)
            await orchestrator.load()
            orchestrator.update(weight=89.0)
            await asyncio.sleep(0.03)
            assert orchestrator.saving
            orchestrator.update(weight=88.0)
            await asyncio.sleep(0.5)
            return orchestrator

        orchestrator = asyncio.run(scenario())
        assert store.max_in_flight == 1
        assert [r.weight for r in store.saved] == [89.0, 88.0]
        assert not orchestrator.is_dirty

    def test_complete_plan_upserts_daily_goals(self, sample_profile):
        store = FakeStore(sample_profile)

        async def scenario():
            orchestrator = make_orchestrator(store, debounce_seconds=10)
            await orchestrator.load()
            orchestrator.update(macro_strategy="high_carb")
            saved = await orchestrator.flush()
            await orchestrator.close()
            return saved

        assert asyncio.run(scenario()) is True
        assert store.saved[0].macro_strategy == "rookie"
        assert store.saved[0].daily_calorie_target == 1814
        assert len(store.daily) == 1
        assert store.daily[0].goal_date == TODAY
        assert store.daily[0].calories == 1814

    def test_incomplete_plan_skips_daily_goals(self):
        store = FakeStore()

        async def scenario():
            orchestrator = make_orchestrator(store, debounce_seconds=10)
            await orchestrator.load()
            orchestrator.update(weight=80.0, height=180.0)
            await orchestrator.flush()
            await orchestrator.close()
            return orchestrator

        orchestrator = asyncio.run(scenario())
        assert store.saved[0].weight == 80.0
        assert store.saved[0].bmr is None
        assert store.daily == []
        assert "age" in orchestrator.missing_fields


class TestSaveFailures:
    """Tests for failure reporting and retries."""

    def test_failure_is_reported_and_retried(self, sample_profile):
        store = FakeStore(sample_profile, fail_times=1)
        errors: list[Exception] = []
        saved: list[ProfileRecord] = []

        async def scenario():
            orchestrator = make_orchestrator(
                store, on_error=errors.append, on_saved=saved.append
            )
            await orchestrator.load()
            orchestrator.update(weight=89.0)
            await asyncio.sleep(0.2)
            return orchestrator

        orchestrator = asyncio.run(scenario())
        assert len(errors) == 1
        assert isinstance(errors[0], OSError)
        assert store.attempts == 2
        assert [r.weight for r in saved] == [89.0]
        assert orchestrator.last_error is None
        # Local edits survive the failed attempt
        assert orchestrator.inputs.weight == 89.0

    def test_retries_stop_after_limit(self, sample_profile):
        store = FakeStore(sample_profile, fail_times=100)

        async def scenario():
            orchestrator = make_orchestrator(store, max_save_retries=2)
            await orchestrator.load()
            orchestrator.update(weight=89.0)
            await asyncio.sleep(0.3)
            return orchestrator

        orchestrator = asyncio.run(scenario())
        assert store.attempts == 3
        assert orchestrator.is_dirty
        assert not orchestrator.has_pending_save
        assert isinstance(orchestrator.last_error, OSError)

    def test_new_edit_resets_retry_budget(self, sample_profile):
        store = FakeStore(sample_profile, fail_times=2)

        async def scenario():
            orchestrator = make_orchestrator(store, max_save_retries=1)
            await orchestrator.load()
            orchestrator.update(weight=89.0)
            await asyncio.sleep(0.2)
            assert store.attempts == 2
            orchestrator.update(weight=88.0)
            await asyncio.sleep(0.2)
            return orchestrator

        orchestrator = asyncio.run(scenario())
        assert [r.weight for r in store.saved] == [88.0]
        assert not orchestrator.is_dirty


    def test_recompute_failure_counts_against_retries(self, sample_profile):
        """Errors before the store is reached are reported like store errors."""
        store = FakeStore(sample_profile)
        errors: list[Exception] = []

        def broken_recompute(inputs=None):
            raise OverflowError("cannot convert float infinity to integer")

        async def scenario():
            orchestrator = make_orchestrator(store, max_save_retries=1, on_error=errors.append)
            await orchestrator.load()
            orchestrator.recompute = broken_recompute
            orchestrator.update(weight=89.0)
            await asyncio.sleep(0.3)
            return orchestrator

        orchestrator = asyncio.run(scenario())
        assert len(errors) == 2
        assert all(isinstance(e, OverflowError) for e in errors)
        assert isinstance(orchestrator.last_error, OverflowError)
        assert store.attempts == 0
        assert not orchestrator.saving
        assert not orchestrator.has_pending_save
        assert orchestrator.is_dirty

    def test_callback_error_is_logged(self, sample_profile, caplog):
        store = FakeStore(sample_profile)

        def broken_callback(record):
            raise RuntimeError("listener crashed")

        async def scenario():
            orchestrator = make_orchestrator(store, on_saved=broken_callback)
            await orchestrator.load()
            orchestrator.update(weight=89.0)
            await asyncio.sleep(0.1)
            return orchestrator

        with caplog.at_level(logging.ERROR, logger="goalfit.session.orchestrator"):
            orchestrator = asyncio.run(scenario())

        assert len(store.saved) == 1
        assert not orchestrator.is_dirty
        assert any(
            "Unexpected error in profile save" in r.getMessage()
            and isinstance(r.exc_info[1], RuntimeError)
            for r in caplog.records
        )


class TestSQLiteStore:
    """Tests for the orchestrator against the SQLite store."""

    def test_end_to_end(self, temp_db, sample_profile):
        async def scenario():
            orchestrator = make_orchestrator(SQLiteRecordStore(temp_db), debounce_seconds=10)
            await orchestrator.load()
            for name, value in sample_profile.user_values().items():
                if value is not None:
                    orchestrator.update(**{name: value})
            saved = await orchestrator.flush()
            await orchestrator.close()
            return saved

        assert asyncio.run(scenario()) is True

        with temp_db.get_connection() as conn:
            profile = ProfileQueries.get_profile(conn, 1)
            goals = DailyGoalsQueries.get_for_date(conn, 1, TODAY)

        assert profile.tdee == 2914
        assert profile.updated_at == NOW
        assert goals.calories == 1814
        assert goals.is_realistic_goal is False
