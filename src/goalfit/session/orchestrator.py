"""Profile editing session.

``ProfileOrchestrator`` owns the mutable profile form for one user. Edits
restart a debounce timer; when it expires the profile is recomputed and
saved. Saves are serialized: while one is in flight, further edits wait for
the next debounce cycle instead of starting a second save or being dropped.

    IDLE --load()--> LOADING --> READY --close()--> IDLE
                                   |
                             saving (flag)
"""

from __future__ import annotations

import asyncio
import inspect
from datetime import date, datetime
from enum import Enum
from typing import Any, Callable, Optional

from goalfit.config import get_settings
from goalfit.config.settings import Settings
from goalfit.errors import PersistenceError
from goalfit.profiles.planner import ProfileInputs, ProfilePlan, build_plan, missing_fields
from goalfit.profiles.records import ProfileRecord
from goalfit.session.store import RecordStore
from goalfit.utils.logger import setup_logger

logger = setup_logger(__name__)


class OrchestratorState(Enum):
    IDLE = "idle"
    LOADING = "loading"
    READY = "ready"


class ProfileOrchestrator:
    """Debounced, save-serializing view-model for one user's profile.

    Must be used from within a running asyncio event loop.

    Attributes:
        state: Lifecycle state
        saving: True while a save is in flight (only ever while READY)
        inputs: Current form values, including unsaved edits
        plan: Last computed plan
        last_saved_at: Timestamp of the last successful save
        last_error: Exception from the last failed save, cleared on success
    """

    def __init__(
        self,
        store: RecordStore,
        user_id: int,
        settings: Optional[Settings] = None,
        debounce_seconds: Optional[float] = None,
        max_save_retries: Optional[int] = None,
        today: Callable[[], date] = date.today,
        clock: Callable[[], datetime] = datetime.now,
        on_saved: Optional[Callable[[ProfileRecord], None]] = None,
        on_error: Optional[Callable[[Exception], None]] = None,
    ):
        self.store = store
        self.user_id = user_id
        self.settings = settings or get_settings()
        self.debounce_seconds = (
            debounce_seconds
            if debounce_seconds is not None
            else self.settings.session.debounce_seconds
        )
        self.max_save_retries = (
            max_save_retries
            if max_save_retries is not None
            else self.settings.session.max_save_retries
        )
        self._today = today
        self._clock = clock
        self._on_saved = on_saved
        self._on_error = on_error

        self.state = OrchestratorState.IDLE
        self.saving = False
        self.inputs = ProfileInputs()
        self.plan: Optional[ProfilePlan] = None
        self.last_saved_at: Optional[datetime] = None
        self.last_error: Optional[Exception] = None

        self._timer: Optional[asyncio.TimerHandle] = None
        self._save_task: Optional[asyncio.Task] = None
        self._generation = 0  # bumped on every edit
        self._saved_generation = 0  # generation covered by the last successful save
        self._failures = 0
        self._closed = False

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def is_dirty(self) -> bool:
        """True when edits exist that no successful save has covered yet."""
        return self._generation > self._saved_generation

    @property
    def has_pending_save(self) -> bool:
        """True while a debounce timer is waiting to fire."""
        return self._timer is not None

    @property
    def missing_fields(self) -> list[str]:
        return missing_fields(self.inputs)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def load(self) -> ProfilePlan:
        """Load the stored profile and compute the initial plan.

        Raises:
            PersistenceError: If the store fails
            InvalidDomainValue: If the stored profile holds unknown enum values
        """
        if self.state != OrchestratorState.IDLE or self._closed:
            raise RuntimeError(f"cannot load from state {self.state.value}")

        self.state = OrchestratorState.LOADING
        try:
            record = await self._call(self.store.load_profile, self.user_id)
            body_fat = await self._call(self.store.load_current_body_fat, self.user_id)
        except Exception as exc:
            self.state = OrchestratorState.IDLE
            raise PersistenceError(f"failed to load profile for user {self.user_id}") from exc

        try:
            if record is None:
                inputs = ProfileInputs(current_body_fat_percentage=body_fat)
            else:
                inputs = ProfileInputs.from_record(record, body_fat)
                self.last_saved_at = record.updated_at
            inputs.validate()
            self.plan = self.recompute(inputs)
        except Exception:
            self.state = OrchestratorState.IDLE
            raise

        self.inputs = inputs
        self.state = OrchestratorState.READY
        logger.debug("Loaded profile for user %s", self.user_id)
        return self.plan

    def recompute(self, inputs: Optional[ProfileInputs] = None) -> ProfilePlan:
        """Compute a plan for ``inputs`` (default: current form) without saving."""
        return build_plan(inputs or self.inputs, today=self._today(), settings=self.settings)

    def update(self, **changes: Any) -> None:
        """Apply form edits and restart the debounce timer.

        Raises:
            InvalidDomainValue: For unknown fields or enum values (nothing is applied)
            RuntimeError: If the profile has not been loaded
        """
        if self.state != OrchestratorState.READY or self._closed:
            raise RuntimeError("profile is not loaded")

        self.inputs = self.inputs.with_changes(**changes)
        self._generation += 1
        self._failures = 0
        self._restart_debounce()

    async def flush(self) -> bool:
        """Save pending edits now instead of waiting for the timer.

        Returns:
            True if every edit has been saved
        """
        if self.state != OrchestratorState.READY:
            return not self.is_dirty

        self._cancel_timer()
        if self._save_task is not None and not self._save_task.done():
            await self._save_task
            self._cancel_timer()

        if self.is_dirty:
            self._start_save()
            await self._save_task

        return not self.is_dirty

    async def close(self) -> None:
        """Tear down: cancel a pending timer and wait for an in-flight save."""
        if self._closed:
            return
        self._closed = True

        if self._timer is not None:
            logger.debug("Cancelled pending save for user %s", self.user_id)
        self._cancel_timer()

        if self._save_task is not None and not self._save_task.done():
            await self._save_task

        self.state = OrchestratorState.IDLE

    # ------------------------------------------------------------------
    # Debounce and save
    # ------------------------------------------------------------------

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _restart_debounce(self) -> None:
        self._cancel_timer()
        loop = asyncio.get_running_loop()
        self._timer = loop.call_later(self.debounce_seconds, self._on_debounce_expired)

    def _on_debounce_expired(self) -> None:
        self._timer = None
        if self._closed:
            return
        if self.saving:
            # Picked up by _after_save once the in-flight save finishes
            return
        self._start_save()

    def _start_save(self) -> None:
        self.saving = True
        self._save_task = asyncio.get_running_loop().create_task(self._save())
        self._save_task.add_done_callback(self._log_unexpected_error)

    def _log_unexpected_error(self, task: asyncio.Task) -> None:
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error(
                "Unexpected error in profile save for user %s",
                self.user_id,
                exc_info=exc,
            )

    async def _persist(self) -> ProfileRecord:
        plan = self.recompute(self.inputs)
        self.plan = plan
        record = plan.to_profile_record(self.user_id)
        record.updated_at = self._clock()
        daily_goals = plan.to_daily_goals(self.user_id, self._today())

        await self._call(self.store.save_profile, record)
        if daily_goals is not None:
            await self._call(self.store.upsert_daily_goals, daily_goals)
        return record

    async def _save(self) -> None:
        generation = self._generation
        try:
            record = await self._persist()
        except Exception as exc:
            self._failures += 1
            self.last_error = exc
            logger.warning(
                "Saving profile for user %s failed (attempt %d): %s",
                self.user_id,
                self._failures,
                exc,
            )
            self._notify(self._on_error, exc)
        else:
            self._saved_generation = max(self._saved_generation, generation)
            self._failures = 0
            self.last_error = None
            self.last_saved_at = record.updated_at
            logger.info("Saved profile for user %s", self.user_id)
            self._notify(self._on_saved, record)
        finally:
            self.saving = False
            self._after_save()

    def _after_save(self) -> None:
        if self._closed or not self.is_dirty or self._timer is not None:
            return
        if self._failures > self.max_save_retries:
            logger.error(
                "Giving up on saving profile for user %s after %d failures; "
                "waiting for the next edit",
                self.user_id,
                self._failures,
            )
            return
        self._restart_debounce()

    @staticmethod
    def _notify(callback: Optional[Callable[[Any], None]], value: Any) -> None:
        if callback is not None:
            callback(value)

    @staticmethod
    async def _call(fn: Callable[..., Any], *args: Any) -> Any:
        if inspect.iscoroutinefunction(fn):
            return await fn(*args)
        return await asyncio.to_thread(fn, *args)
