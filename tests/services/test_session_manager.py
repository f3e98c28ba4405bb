"""Tests for the SessionLifecycleManager state machine."""

import asyncio

import pytest

from routine_planner.db.repositories import InProgressRepository
from routine_planner.exceptions import (
    NoActiveSessionError,
    PersistenceError,
    SessionAlreadyActiveError,
    SessionBusyError,
    ValidationError,
)
from routine_planner.models.exercises import ExerciseEntry
from routine_planner.models.sessions import InProgressSession, SessionState, SessionType
from routine_planner.services.session_manager import SessionLifecycleManager

SLOT = "users/user-1/inProgressWorkout/current"


class TestStart:
    """Tests for starting a session."""

    @pytest.mark.asyncio
    async def test_start_persists_slot(self, manager, store, exercises):
        """Starting writes the whole session to the slot."""
        session = await manager.start(SessionType.AI, exercises)

        assert manager.state == SessionState.ACTIVE
        assert session.type == SessionType.AI
        assert len(session.exercises) == 3
        doc = await store.get(SLOT)
        assert doc["type"] == "ai"
        assert [e["name"] for e in doc["exercises"]] == [e.name for e in exercises]

    @pytest.mark.asyncio
    async def test_start_resets_completed(self, manager, exercises):
        """Every entry starts not completed."""
        exercises[0] = exercises[0].model_copy(update={"completed": True})
        session = await manager.start("manual", exercises)
        assert all(not e.completed for e in session.exercises)

    @pytest.mark.asyncio
    async def test_double_start_keeps_first_session(self, manager, exercises):
        """A second start observes the first session instead of overwriting it."""
        await manager.start(SessionType.AI, exercises)
        await manager.toggle_complete(0)

        with pytest.raises(SessionAlreadyActiveError) as exc_info:
            await manager.start(SessionType.MANUAL, exercises[:1])

        active = exc_info.value.active_session
        assert active.type == SessionType.AI
        assert active.exercises[0].completed is True
        assert manager.current.type == SessionType.AI
        assert len(manager.current.exercises) == 3

    @pytest.mark.asyncio
    async def test_start_sees_session_from_other_device(self, store, history, exercises):
        """A session written elsewhere is canonical for a fresh manager."""
        other = SessionLifecycleManager(InProgressRepository(store, "user-1"), history)
        await other.start(SessionType.AI, exercises)

        fresh = SessionLifecycleManager(InProgressRepository(store, "user-1"), history)
        with pytest.raises(SessionAlreadyActiveError):
            await fresh.start(SessionType.MANUAL, exercises[:1])
        assert fresh.is_active
        assert len(fresh.current.exercises) == 3

    @pytest.mark.asyncio
    async def test_failed_start_leaves_empty(self, manager, store, exercises):
        """A failed slot write leaves no active session."""
        store.inject_failure("put", SLOT)

        with pytest.raises(PersistenceError):
            await manager.start(SessionType.AI, exercises)

        assert manager.state == SessionState.EMPTY
        assert await store.get(SLOT) is None


class TestAbandon:
    """Tests for abandoning a session."""

    @pytest.mark.asyncio
    async def test_start_then_abandon(self, manager, history, store, exercises):
        """Abandon clears the slot and archives nothing."""
        await manager.start(SessionType.AI, exercises)

        assert await manager.abandon() is True

        assert manager.state == SessionState.EMPTY
        assert manager.last_outcome == SessionState.ABANDONED
        assert await store.get(SLOT) is None
        assert await history.list_records() == []

    @pytest.mark.asyncio
    async def test_abandon_after_interrupted_finish_keeps_record(
        self, manager, history, store, exercises, caplog
    ):
        """The record archived before the failed clear stays in history."""
        await manager.start(SessionType.AI, exercises)
        store.inject_failure("delete", SLOT)
        with pytest.raises(PersistenceError):
            await manager.finish()
        pending_id = manager.current.pending_record_id

        with caplog.at_level("WARNING", logger="routine_planner.services.session_manager"):
            assert await manager.abandon() is True

        assert await store.get(SLOT) is None
        assert [r.id for r in await history.list_records()] == [pending_id]
        assert pending_id in caplog.text

    @pytest.mark.asyncio
    async def test_abandon_is_idempotent(self, manager):
        """Abandoning an empty slot is a no-op."""
        assert await manager.abandon() is False
        assert await manager.abandon() is False
        assert manager.state == SessionState.EMPTY


class TestFinish:
    """Tests for finishing a session."""

    @pytest.mark.asyncio
    async def test_start_then_finish_archives_one_record(self, manager, history, store, exercises):
        """Finish appends one record equal to the exercises at finish time."""
        await manager.start(SessionType.AI, exercises)
        await manager.toggle_complete(1)
        await manager.update_exercise(0, "weight", "8 kg")
        expected = manager.current.exercises

        record = await manager.finish()

        records = await history.list_records()
        assert len(records) == 1
        assert records[0].id == record.id
        assert records[0].exercises == expected
        assert manager.state == SessionState.EMPTY
        assert manager.last_outcome == SessionState.ARCHIVED
        assert await store.get(SLOT) is None

    @pytest.mark.asyncio
    async def test_finish_without_session(self, manager):
        """Finish requires an active session."""
        with pytest.raises(NoActiveSessionError):
            await manager.finish()

    @pytest.mark.asyncio
    async def test_failed_archive_keeps_session_active(self, manager, history, store, exercises):
        """When the archive write fails the session stays active."""
        await manager.start(SessionType.AI, exercises)
        store.inject_failure("append")

        with pytest.raises(PersistenceError):
            await manager.finish()

        assert manager.state == SessionState.ACTIVE
        assert await store.get(SLOT) is not None
        assert await history.list_records() == []

    @pytest.mark.asyncio
    async def test_retry_after_failed_clear_does_not_duplicate(self, manager, history, store, exercises):
        """Archive succeeded but clear failed: a retry reuses the same record id."""
        await manager.start(SessionType.AI, exercises)
        store.inject_failure("delete", SLOT)

        with pytest.raises(PersistenceError):
            await manager.finish()
        assert manager.is_active
        pending_id = manager.current.pending_record_id
        assert pending_id is not None

        record = await manager.finish()

        records = await history.list_records()
        assert len(records) == 1
        assert record.id == pending_id
        assert manager.state == SessionState.EMPTY

    @pytest.mark.asyncio
    async def test_pending_finish_survives_reload(self, store, history, exercises):
        """A reloaded manager finishes under the pending id of the interrupted finish."""
        first = SessionLifecycleManager(InProgressRepository(store, "user-1"), history)
        await first.start(SessionType.MANUAL, exercises)
        store.inject_failure("delete", SLOT)
        with pytest.raises(PersistenceError):
            await first.finish()
        pending_id = (await store.get(SLOT))["pendingRecordId"]

        reloaded = SessionLifecycleManager(InProgressRepository(store, "user-1"), history)
        await reloaded.load()
        record = await reloaded.finish()

        assert record.id == pending_id
        assert len(await history.list_records()) == 1


class TestUpdate:
    """Tests for in-place edits."""

    @pytest.mark.asyncio
    async def test_update_persists_whole_list(self, manager, store, exercises):
        """Each edit writes the complete exercise list."""
        await manager.start(SessionType.AI, exercises)

        await manager.update_exercise(2, "reps", 15)

        doc = await store.get(SLOT)
        assert len(doc["exercises"]) == 3
        assert doc["exercises"][2]["reps"] == "15"

    @pytest.mark.asyncio
    async def test_failed_update_keeps_previous_state(self, manager, store, exercises):
        """The live session only changes after a successful write."""
        await manager.start(SessionType.AI, exercises)
        store.inject_failure("put", SLOT)

        with pytest.raises(PersistenceError):
            await manager.delete_exercise(0)

        assert len(manager.current.exercises) == 3

    @pytest.mark.asyncio
    async def test_add_and_delete(self, manager, exercises):
        """Adding appends a not completed entry; deleting removes by position."""
        await manager.start(SessionType.MANUAL, exercises[:1])

        await manager.add_exercise(ExerciseEntry(name="Plancha", completed=True))
        session = await manager.delete_exercise(0)

        assert [e.name for e in session.exercises] == ["Plancha"]
        assert session.exercises[0].completed is False

    @pytest.mark.asyncio
    async def test_update_rejects_bad_index(self, manager, exercises):
        """Out of range positions raise a validation error."""
        await manager.start(SessionType.AI, exercises)
        with pytest.raises(ValidationError):
            await manager.toggle_complete(10)

    @pytest.mark.asyncio
    async def test_update_requires_session(self, manager):
        """Edits need an active session."""
        with pytest.raises(NoActiveSessionError):
            await manager.update(lambda exercises: exercises)

    @pytest.mark.asyncio
    async def test_current_is_a_copy(self, manager, exercises):
        """Mutating the returned session does not touch the live one."""
        await manager.start(SessionType.AI, exercises)
        snapshot = manager.current
        snapshot.exercises.clear()
        assert len(manager.current.exercises) == 3


class TestBusyGuard:
    """Tests for overlapping lifecycle operations."""

    @pytest.mark.asyncio
    async def test_finish_while_start_outstanding(self, store, history, exercises):
        """A second operation is rejected while the first one is suspended."""
        gate = asyncio.Event()

        class SlowRepository(InProgressRepository):
            async def put(self, session: InProgressSession) -> None:
                await gate.wait()
                await super().put(session)

        manager = SessionLifecycleManager(SlowRepository(store, "user-1"), history)
        start_task = asyncio.create_task(manager.start(SessionType.AI, exercises))
        await asyncio.sleep(0)
        assert manager.is_busy

        with pytest.raises(SessionBusyError):
            await manager.abandon()

        gate.set()
        await start_task
        assert not manager.is_busy
        assert manager.is_active


class TestWatch:
    """Tests for following slot changes made elsewhere."""

    @pytest.mark.asyncio
    async def test_watch_follows_remote_clear(self, store, history, exercises):
        """A clear from another device empties the local session."""
        local = SessionLifecycleManager(InProgressRepository(store, "user-1"), history)
        remote = SessionLifecycleManager(InProgressRepository(store, "user-1"), history)
        await local.start(SessionType.AI, exercises)
        seen = []
        unsubscribe = local.watch(seen.append)

        await remote.load()
        await remote.abandon()

        assert local.state == SessionState.EMPTY
        assert seen[-1] is None
        unsubscribe()
