"""Tests for AI and manual routine acquisition."""

from datetime import date, datetime, timezone

import pytest

from conftest import FakeOracle, no_sleep
from routine_planner.config import Settings
from routine_planner.db.repositories import ProfileRepository
from routine_planner.exceptions import (
    LLMError,
    LLMServiceUnavailableError,
    RoutineValidationError,
)
from routine_planner.llm.context_builder import RoutineContext
from routine_planner.models.exercises import Equipment, ExerciseEntry
from routine_planner.models.sessions import SessionState, SessionType
from routine_planner.services.acquisition import (
    AIRoutineStrategy,
    ManualRoutineStrategy,
    prepare_context,
)
from routine_planner.services.favorites_service import FavoritesService
from routine_planner.services.schedule_service import ScheduleService
from routine_planner.utils.retry import RetryConfig

ROUTINE = {
    "routine": [
        {
            "name": "Press militar con mancuernas",
            "sets": "3",
            "reps": "10",
            "weight": "6 kg",
            "equipment": "Mancuernas",
            "muscleGroup": "Hombros",
            "caloriesBurned": "30-40",
            "videoSearchQuery": "press militar mancuernas técnica",
        },
        {"name": "Flexiones", "sets": 3, "reps": 12, "weight": "peso corporal"},
    ]
}


def strategy(oracle, attempts=3):
    return AIRoutineStrategy(oracle, RetryConfig(max_attempts=attempts), sleep=no_sleep)


class TestAIRoutineStrategy:
    """Tests for oracle-backed acquisition."""

    @pytest.mark.asyncio
    async def test_acquire_validates_payload(self):
        oracle = FakeOracle(routine_outcomes=[ROUTINE])
        entries = await strategy(oracle).acquire(RoutineContext())

        assert [e.name for e in entries] == ["Press militar con mancuernas", "Flexiones"]
        assert entries[0].muscle_group == "Hombros"
        assert entries[1].sets.raw == "3"
        assert entries[1].equipment == Equipment.BODYWEIGHT
        assert all(not e.completed for e in entries)

    @pytest.mark.asyncio
    async def test_retries_transient_failures(self):
        oracle = FakeOracle(routine_outcomes=[
            LLMServiceUnavailableError("overloaded"),
            LLMServiceUnavailableError("overloaded"),
            ROUTINE,
        ])
        entries = await strategy(oracle).acquire(RoutineContext())
        assert len(entries) == 2
        assert len(oracle.routine_calls) == 3

    @pytest.mark.asyncio
    async def test_gives_up_after_bounded_attempts(self, manager):
        oracle = FakeOracle(routine_outcomes=[LLMServiceUnavailableError("overloaded")] * 5)

        with pytest.raises(LLMServiceUnavailableError):
            await strategy(oracle).start(manager, RoutineContext())

        assert len(oracle.routine_calls) == 3
        assert manager.state == SessionState.EMPTY

    @pytest.mark.asyncio
    async def test_non_transient_error_not_retried(self):
        oracle = FakeOracle(routine_outcomes=[LLMError("bad request"), ROUTINE])
        with pytest.raises(LLMError):
            await strategy(oracle).acquire(RoutineContext())
        assert len(oracle.routine_calls) == 1

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "payload",
        [
            {"routine": []},
            {"routine": [{"sets": "3"}, {"name": "  "}]},
            {"message": "no puedo"},
            {"routine": "Flexiones"},
        ],
    )
    async def test_empty_or_malformed_payload(self, manager, payload):
        """No session is started from an unusable response."""
        oracle = FakeOracle(routine_outcomes=[payload])

        with pytest.raises(RoutineValidationError):
            await strategy(oracle).start(manager, RoutineContext())

        assert manager.state == SessionState.EMPTY

    @pytest.mark.asyncio
    async def test_drops_nameless_entries(self):
        payload = {"exercises": [{"name": "Plancha"}, {"reps": "10"}, "texto"]}
        entries = await strategy(FakeOracle(routine_outcomes=[payload])).acquire(RoutineContext())
        assert [e.name for e in entries] == ["Plancha"]

    @pytest.mark.asyncio
    async def test_unknown_equipment_is_inferred(self):
        payload = {"routine": [
            {"name": "Swing", "equipment": "kettlebell", "weight": "8 kg"},
            {"name": "Saltos", "equipment": "cajón"},
        ]}
        entries = await strategy(FakeOracle(routine_outcomes=[payload])).acquire(RoutineContext())
        assert entries[0].equipment == Equipment.DUMBBELL
        assert entries[1].equipment == Equipment.BODYWEIGHT

    @pytest.mark.asyncio
    async def test_start_creates_ai_session(self, manager):
        oracle = FakeOracle(routine_outcomes=[ROUTINE])
        session = await strategy(oracle).start(manager, RoutineContext(user_notes="hombros"))

        assert session.type == SessionType.AI
        assert manager.state == SessionState.ACTIVE
        assert oracle.routine_calls[0].focus_request == "hombros"


class TestPrepareContext:
    """Tests for gathering the oracle context."""

    @pytest.mark.asyncio
    async def test_context_from_profile_schedule_and_history(self, profiles, history, exercises):
        await history.archive(exercises)
        context = await prepare_context(
            profiles,
            ScheduleService(profiles),
            history,
            today=date(2024, 1, 16),
            fatigue_level=7,
        )

        assert context.today_scheduled_label == "Pesas - Tren Superior"
        assert context.fatigue_level == 7
        assert "Sentadilla goblet" in context.recent_history_summary
        assert context.objective
        assert not context.notes_take_precedence
        assert context.focus_request == "Pesas - Tren Superior"

    @pytest.mark.asyncio
    async def test_notes_override_schedule(self, profiles, history):
        context = await prepare_context(
            profiles,
            ScheduleService(profiles),
            history,
            today=date(2024, 1, 17),
            user_notes="  hoy quiero hombros ",
        )
        assert context.today_scheduled_label == "Pesas - Tren Inferior"
        assert context.notes_take_precedence
        assert context.focus_request == "hoy quiero hombros"

    @pytest.mark.asyncio
    async def test_rest_day_label(self, store, history):
        context = await prepare_context(
            ProfileRepository(store, "user-1"),
            ScheduleService(ProfileRepository(store, "user-1")),
            history,
            today=date(2024, 1, 20),
        )
        assert context.today_scheduled_label == "Descanso"


class TestSettingsDefaults:
    """Retry policy and history size come from settings when not given."""

    @pytest.mark.asyncio
    async def test_max_attempts_from_settings(self, monkeypatch):
        monkeypatch.setattr(
            "routine_planner.services.acquisition.get_settings",
            lambda: Settings(oracle_max_attempts=1),
        )
        oracle = FakeOracle(routine_outcomes=[LLMServiceUnavailableError("overloaded")] * 3)

        with pytest.raises(LLMServiceUnavailableError):
            await AIRoutineStrategy(oracle, sleep=no_sleep).acquire(RoutineContext())

        assert len(oracle.routine_calls) == 1

    @pytest.mark.asyncio
    async def test_history_size_from_settings(self, monkeypatch, profiles, history, exercises):
        monkeypatch.setattr(
            "routine_planner.services.acquisition.get_settings",
            lambda: Settings(history_context_size=1),
        )
        for day in (5, 6, 7):
            await history.archive(exercises, finished_at=datetime(2024, 5, day, 18, 0, tzinfo=timezone.utc))

        context = await prepare_context(profiles, ScheduleService(profiles), history, today=date(2024, 5, 8))

        assert context.recent_history_summary.count("\n- ") == 0
        assert "2024-05-07" in context.recent_history_summary
        assert "2024-05-06" not in context.recent_history_summary


class TestManualRoutineStrategy:
    """Tests for assembling a routine from favorites."""

    def test_empty_selection(self, favorites):
        assert ManualRoutineStrategy.assemble(set(), favorites) == []

    def test_selection_keeps_favorite_order_and_values(self, favorites):
        entries = ManualRoutineStrategy.assemble({"Zancadas", "Flexiones"}, favorites)

        assert [e.name for e in entries] == ["Flexiones", "Zancadas"]
        assert all(e.completed is False for e in entries)
        assert entries[1].weight.raw == "3 kg"
        assert entries[0].reps.raw == "15"

    def test_unknown_names_are_ignored(self, favorites):
        assert ManualRoutineStrategy.assemble({"Dominadas"}, favorites) == []

    def test_by_muscle_group(self, favorites):
        grouped = ManualRoutineStrategy.favorites_by_muscle_group(favorites)
        assert set(grouped) == {"Pecho", "Piernas", "Core"}

        only_legs = ManualRoutineStrategy.favorites_by_muscle_group(favorites, "piernas")
        assert [f.name for f in only_legs["Piernas"]] == ["Zancadas"]
        assert list(only_legs) == ["Piernas"]

    def test_selection_ignores_case_and_accents(self, favorites):
        entries = ManualRoutineStrategy.assemble({"zancadas", "PLANCHA"}, favorites)
        assert [e.name for e in entries] == ["Zancadas", "Plancha"]

    @pytest.mark.asyncio
    async def test_names_differing_in_case_are_one_favorite(self, profiles):
        """Toggling a differently cased name removes the favorite, so assembly sees one entry."""
        service = FavoritesService(profiles)
        assert await service.toggle(ExerciseEntry(name="Press banca")) is True
        assert await service.toggle(ExerciseEntry(name="press banca")) is False
        await service.toggle(ExerciseEntry(name="Press Banca", sets="4"))

        favorites = await service.list()
        entries = ManualRoutineStrategy.assemble({"Press banca"}, favorites)

        assert [f.name for f in favorites] == ["Press Banca"]
        assert len(entries) == 1
        assert entries[0].sets.raw == "4"

    @pytest.mark.asyncio
    async def test_stored_duplicates_collapse_on_read(self, store, profiles):
        await store.put("users/user-1/profile", {
            "favoriteExercises": [
                {"name": "Press banca", "sets": "3"},
                {"name": "press banca", "sets": "5"},
            ],
        })

        profile = await profiles.get()
        entries = ManualRoutineStrategy.assemble({"PRESS BANCA"}, profile.favorites)

        assert [e.sets.raw for e in entries] == ["3"]
        assert profile.favorite_named("press banca") is profile.favorites[0]

    @pytest.mark.asyncio
    async def test_start_creates_manual_session(self, manager, favorites):
        session = await ManualRoutineStrategy().start(manager, ["Plancha"], favorites)
        assert session.type == SessionType.MANUAL
        assert [e.name for e in session.exercises] == ["Plancha"]
