"""Calendar and analytics views over archived workouts."""

from collections import Counter, defaultdict
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Dict, List, Optional, Sequence

from .focus import FocusClassifierConfig, classify
from ..models.exercises import ExerciseEntry
from ..models.schedule import Schedule, Weekday
from ..models.sessions import CompletedWorkoutRecord, FocusLabel


def _records_by_day(records: Sequence[CompletedWorkoutRecord]) -> Dict[date, List[CompletedWorkoutRecord]]:
    grouped: Dict[date, List[CompletedWorkoutRecord]] = defaultdict(list)
    for record in records:
        grouped[record.date.date()].append(record)
    return grouped


def build_focus_calendar(
    records: Sequence[CompletedWorkoutRecord],
    start: date,
    end: date,
    config: Optional[FocusClassifierConfig] = None,
) -> Dict[date, FocusLabel]:
    """
    Map every day in ``[start, end]`` to a focus label.

    Days without a record are Descanso. Several records on one day are
    classified together as a single training day.
    """
    if end < start:
        start, end = end, start

    grouped = _records_by_day(records)
    calendar: Dict[date, FocusLabel] = {}
    day = start
    while day <= end:
        exercises: List[ExerciseEntry] = [
            exercise
            for record in grouped.get(day, [])
            for exercise in record.exercises
        ]
        calendar[day] = classify(exercises, config)
        day += timedelta(days=1)
    return calendar


def focus_distribution(
    records: Sequence[CompletedWorkoutRecord],
    config: Optional[FocusClassifierConfig] = None,
) -> Dict[FocusLabel, int]:
    """Count records per focus label."""
    counts = Counter(classify(record.exercises, config) for record in records)
    return {label: counts.get(label, 0) for label in FocusLabel}


@dataclass
class WeeklyAdherence:
    """Planned training days of a week versus days with an archived workout."""

    week_start: date
    planned_days: List[Weekday] = field(default_factory=list)
    trained_days: List[Weekday] = field(default_factory=list)

    @property
    def completed_planned_days(self) -> List[Weekday]:
        return [d for d in self.planned_days if d in self.trained_days]

    @property
    def unplanned_days(self) -> List[Weekday]:
        return [d for d in self.trained_days if d not in self.planned_days]

    @property
    def adherence_pct(self) -> Optional[float]:
        if not self.planned_days:
            return None
        return round(100.0 * len(self.completed_planned_days) / len(self.planned_days), 1)

    def to_dict(self) -> dict:
        return {
            "week_start": self.week_start.isoformat(),
            "planned_days": [d.value for d in self.planned_days],
            "trained_days": [d.value for d in self.trained_days],
            "adherence_pct": self.adherence_pct,
        }


def weekly_adherence(
    schedule: Schedule,
    records: Sequence[CompletedWorkoutRecord],
    week_start: date,
) -> WeeklyAdherence:
    """
    Compare the schedule with archived workouts for one week.

    ``week_start`` is moved back to the Monday of its week.
    """
    monday = week_start - timedelta(days=week_start.weekday())
    sunday = monday + timedelta(days=6)
    trained = {
        Weekday.from_index(d.weekday())
        for d in _records_by_day(records)
        if monday <= d <= sunday
    }
    return WeeklyAdherence(
        week_start=monday,
        planned_days=[d for d in Weekday.ordered() if schedule.days.get(d)],
        trained_days=[d for d in Weekday.ordered() if d in trained],
    )
