"""Tests for schedule models: weekdays, legacy documents and the session type vocabulary."""

import pytest
from pydantic import ValidationError as PydanticValidationError

from routine_planner.models.profile import UserProfile
from routine_planner.models.schedule import (
    Schedule,
    ScheduledSession,
    SessionTypeVocabulary,
    Weekday,
    default_schedule,
)


class TestWeekday:
    """Tests for weekday name resolution."""

    @pytest.mark.parametrize("name", ["miércoles", "Miércoles", "MIERCOLES", " miercoles ", "mié", "Wednesday"])
    def test_from_name_variants(self, name):
        assert Weekday.from_name(name) == Weekday.MIERCOLES

    def test_from_index_is_monday_first(self):
        assert Weekday.from_index(0) == Weekday.LUNES
        assert Weekday.from_index(6) == Weekday.DOMINGO

    def test_unknown_name(self):
        with pytest.raises(ValueError):
            Weekday.from_name("someday")

    def test_display_name_keeps_accents(self):
        assert Weekday.SABADO.display_name == "Sábado"


class TestSchedule:
    """Tests for the Schedule model."""

    def test_all_days_present(self):
        """Missing keys are filled with empty lists in canonical order."""
        schedule = Schedule.from_document({"jueves": [{"time": "20:00", "name": "Fútbol"}]})
        assert list(schedule.days.keys()) == Weekday.ordered()
        assert schedule.days[Weekday.LUNES] == []

    def test_legacy_single_label_days(self):
        """Old documents stored one label per day."""
        schedule = Schedule.from_document({
            "lunes": "Natación",
            "Miércoles": "Pesas - Tren Inferior",
            "sabado": "Descanso",
        })
        assert schedule.days[Weekday.LUNES] == [ScheduledSession(time="18:00", name="Natación")]
        assert schedule.days[Weekday.MIERCOLES][0].name == "Pesas - Tren Inferior"
        assert schedule.days[Weekday.SABADO] == []

    def test_document_round_trip(self):
        """The stored mapping uses plain weekday keys."""
        schedule = default_schedule()
        doc = schedule.to_document()
        assert set(doc.keys()) == {d.value for d in Weekday}
        assert doc["lunes"] == [{"time": "18:00", "name": "Natación"}]
        assert Schedule.from_document(doc) == schedule

    def test_default_week(self):
        """The starting week trains Monday to Friday."""
        schedule = default_schedule()
        trained = [d for d in Weekday.ordered() if schedule.days[d]]
        assert trained == Weekday.ordered()[:5]

    def test_invalid_time_rejected(self):
        with pytest.raises(PydanticValidationError):
            ScheduledSession(time="6pm", name="Natación")


class TestSessionTypeVocabulary:
    """Tests for the growable label set."""

    def test_add_new_label(self):
        vocabulary = SessionTypeVocabulary()
        assert vocabulary.add("Escalada") is True
        assert "Escalada" in vocabulary.labels

    def test_duplicates_ignore_case_and_accents(self):
        vocabulary = SessionTypeVocabulary()
        assert vocabulary.add("natacion") is False
        assert vocabulary.add("FÚTBOL") is False

    def test_rest_is_not_a_label(self):
        assert SessionTypeVocabulary().add("descanso") is False


class TestUserProfile:
    """Tests for the profile document."""

    def test_empty_document_gets_defaults(self):
        profile = UserProfile.from_document({})
        assert profile.schedule == default_schedule()
        assert profile.favorites == []
        assert "Natación" in profile.session_types.labels

    def test_duplicate_favorites_collapse(self):
        profile = UserProfile.from_document({
            "favoriteExercises": [
                {"name": "Flexiones", "sets": "3"},
                {"name": "Flexiones", "sets": "4"},
            ],
        })
        assert len(profile.favorites) == 1
        assert str(profile.favorites[0].sets) == "3"
