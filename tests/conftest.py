"""Shared fixtures: document stores, repositories, services and a scripted oracle."""

import os
import tempfile

import pytest

from routine_planner.db.repositories import (
    HistoryRepository,
    InProgressRepository,
    ProfileRepository,
)
from routine_planner.db.store import InMemoryDocumentStore, SQLiteDocumentStore
from routine_planner.models.exercises import ExerciseEntry, FavoriteExercise
from routine_planner.services.history_service import HistoryService
from routine_planner.services.session_manager import SessionLifecycleManager

USER_ID = "user-1"


class FakeOracle:
    """Scripted RoutineOracle: returns or raises the queued outcomes in order."""

    def __init__(self, routine_outcomes=None, calorie_outcomes=None):
        self.routine_outcomes = list(routine_outcomes or [])
        self.calorie_outcomes = list(calorie_outcomes or [])
        self.routine_calls = []
        self.calorie_calls = []

    async def generate_routine(self, context):
        self.routine_calls.append(context)
        outcome = self.routine_outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    async def recalculate_calories(self, entry):
        self.calorie_calls.append(entry)
        outcome = self.calorie_outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


async def no_sleep(delay):
    """Stand-in for asyncio.sleep so retry tests run instantly."""
    return None


@pytest.fixture
def store():
    """Fresh in-memory document store."""
    return InMemoryDocumentStore()


@pytest.fixture
def sqlite_store():
    """SQLite document store on a temporary file."""
    with tempfile.NamedTemporaryFile(suffix=".db", delete=False) as f:
        db_path = f.name

    yield SQLiteDocumentStore(db_path)

    try:
        os.unlink(db_path)
    except OSError:
        pass


@pytest.fixture
def profiles(store):
    return ProfileRepository(store, USER_ID)


@pytest.fixture
def history(store):
    return HistoryService(HistoryRepository(store, USER_ID))


@pytest.fixture
def manager(store, history):
    return SessionLifecycleManager(InProgressRepository(store, USER_ID), history)


@pytest.fixture
def exercises():
    """A small strength routine."""
    return [
        ExerciseEntry(
            name="Press de banca con mancuernas",
            sets="3",
            reps="10-12",
            weight="6 kg",
            equipment="Mancuernas",
            muscle_group="Pecho",
            calories_burned="40-60",
        ),
        ExerciseEntry(
            name="Remo con mancuerna",
            sets="3",
            reps="12",
            weight="6 kg",
            equipment="Mancuernas",
            muscle_group="Espalda",
            calories_burned="35",
        ),
        ExerciseEntry(
            name="Sentadilla goblet",
            sets="4",
            reps="12",
            weight="6 kg",
            equipment="Mancuernas",
            muscle_group="Piernas",
            calories_burned="50-70",
        ),
    ]


@pytest.fixture
def favorites():
    return [
        FavoriteExercise(name="Flexiones", sets="3", reps="15", weight="peso corporal", muscle_group="Pecho"),
        FavoriteExercise(name="Zancadas", sets="3", reps="10", weight="3 kg", muscle_group="Piernas"),
        FavoriteExercise(name="Plancha", sets="3", reps="30 s", weight="peso corporal", muscle_group="Core"),
    ]


@pytest.fixture
def fake_oracle():
    return FakeOracle()
