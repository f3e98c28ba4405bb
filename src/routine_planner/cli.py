#!/usr/bin/env python3
"""
routine-planner CLI.

Inspect the weekly schedule, the active session and the workout history
stored in the local database.

Usage:
    routine-planner today                # Today's plan and the active session
    routine-planner week                 # Weekly schedule
    routine-planner history --limit 10   # Recent workouts with their focus
    routine-planner calendar --days 14   # Focus per day
"""

import argparse
import asyncio
import logging
from datetime import date, timedelta

from rich.console import Console
from rich.table import Table
from rich.panel import Panel
from rich.text import Text
from rich import box

from .analysis import build_focus_calendar, classify, focus_distribution, weekly_adherence
from .config import get_settings
from .db import SQLiteDocumentStore
from .db.repositories import HistoryRepository, InProgressRepository, ProfileRepository
from .exceptions import RoutinePlannerError
from .models import FocusLabel, Weekday
from .services import HistoryService, ScheduleService, SessionLifecycleManager, week_overview

console = Console()


def get_focus_color(label: FocusLabel) -> str:
    """Get rich color for a focus label."""
    colors = {
        FocusLabel.UPPER: "cyan",
        FocusLabel.LOWER: "magenta",
        FocusLabel.CARDIO: "green",
        FocusLabel.FULL_BODY: "yellow",
        FocusLabel.GENERAL: "white",
        FocusLabel.REST: "dim",
    }
    return colors.get(label, "white")


class Context:
    """Services bound to the configured store and user."""

    def __init__(self, store: SQLiteDocumentStore, user_id: str):
        self.profiles = ProfileRepository(store, user_id)
        self.schedule = ScheduleService(self.profiles)
        self.history = HistoryService(HistoryRepository(store, user_id))
        self.sessions = SessionLifecycleManager(InProgressRepository(store, user_id), self.history)


async def cmd_today(args, ctx: Context):
    """Show today's plan and the active session."""
    today = date.today()
    plan = await ctx.schedule.plan_for(today)

    console.print()
    console.print(Panel(f"[bold]{plan.weekday.display_name} {today.isoformat()}[/bold]"))

    if plan.is_rest:
        console.print("[dim]Descanso[/dim]")
    else:
        for session in plan.sessions:
            console.print(f"  {session.time}  [cyan]{session.name}[/cyan]")

    active = await ctx.sessions.load()
    console.print()
    if active is None:
        console.print("[dim]No active session.[/dim]")
        return

    table = Table(
        title=f"Active {active.type.value} session ({active.completed_count}/{len(active.exercises)})",
        box=box.ROUNDED,
    )
    table.add_column("", width=2)
    table.add_column("Exercise", style="cyan")
    table.add_column("Sets", justify="right")
    table.add_column("Reps", justify="right")
    table.add_column("Weight")
    table.add_column("Kcal", justify="right")

    for exercise in active.exercises:
        table.add_row(
            "[green]✓[/green]" if exercise.completed else "",
            exercise.name,
            str(exercise.sets),
            str(exercise.reps),
            str(exercise.weight),
            str(exercise.calories_burned),
        )
    console.print(table)


async def cmd_week(args, ctx: Context):
    """Show the weekly schedule."""
    schedule = await ctx.schedule.get_schedule()
    today = Weekday.from_index(date.today().weekday())

    table = Table(title="Weekly Schedule", box=box.ROUNDED)
    table.add_column("Day", style="bold")
    table.add_column("Time")
    table.add_column("Session", style="cyan")

    for plan in week_overview(schedule):
        day = plan.weekday.display_name
        if plan.weekday == today:
            day = f"[green]{day}[/green]"
        if plan.is_rest:
            table.add_row(day, "", "[dim]Descanso[/dim]")
            continue
        for i, session in enumerate(plan.sessions):
            table.add_row(day if i == 0 else "", session.time, session.name)

    console.print()
    console.print(table)

    records = await ctx.history.list_records()
    adherence = weekly_adherence(schedule, records, date.today())
    if adherence.adherence_pct is not None:
        console.print(
            f"\nThis week: {len(adherence.completed_planned_days)}/{len(adherence.planned_days)} "
            f"planned days trained ({adherence.adherence_pct:.0f}%)"
        )


async def cmd_history(args, ctx: Context):
    """Show recent workouts with their focus."""
    records = await ctx.history.list_records(limit=args.limit)
    if not records:
        console.print("[yellow]No workouts recorded yet.[/yellow]")
        return

    table = Table(title=f"Last {len(records)} Workouts", box=box.ROUNDED)
    table.add_column("Date", style="cyan")
    table.add_column("Focus")
    table.add_column("Done", justify="right")
    table.add_column("Kcal", justify="right")
    table.add_column("Exercises")

    for record in records:
        label = classify(record.exercises)
        names = ", ".join(e.name for e in record.exercises[:4])
        if len(record.exercises) > 4:
            names += ", ..."
        table.add_row(
            record.date.strftime("%Y-%m-%d %H:%M"),
            Text(label.value, style=get_focus_color(label)),
            f"{record.completed_count}/{len(record.exercises)}",
            f"{record.estimated_calories:.0f}",
            names,
        )

    console.print()
    console.print(table)


async def cmd_calendar(args, ctx: Context):
    """Show the focus of each day."""
    end = date.today()
    start = end - timedelta(days=max(1, args.days) - 1)
    records = await ctx.history.list_records()
    in_range = [r for r in records if start <= r.date.date() <= end]
    calendar = build_focus_calendar(in_range, start, end)

    table = Table(title=f"Focus Calendar ({start.isoformat()} - {end.isoformat()})", box=box.ROUNDED)
    table.add_column("Date", style="cyan")
    table.add_column("Day")
    table.add_column("Focus")

    for day, label in calendar.items():
        table.add_row(
            day.isoformat(),
            Weekday.from_index(day.weekday()).display_name,
            Text(label.value, style=get_focus_color(label)),
        )

    console.print()
    console.print(table)

    distribution = focus_distribution(in_range)
    summary = ", ".join(f"{label.value}: {count}" for label, count in distribution.items() if count)
    if summary:
        console.print(f"\n{summary}")


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="routine-planner - Weekly workout planner",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--db", type=str, help="Path to the database file")
    parser.add_argument("--user", type=str, help="User id")
    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose logging")
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    subparsers.add_parser("today", help="Show today's plan and active session")
    subparsers.add_parser("week", help="Show the weekly schedule")

    history_p = subparsers.add_parser("history", help="Show recent workouts")
    history_p.add_argument(
        "--limit", type=int, default=10,
        help="Number of workouts to show (default: 10)"
    )

    calendar_p = subparsers.add_parser("calendar", help="Show the focus calendar")
    calendar_p.add_argument(
        "--days", type=int, default=14,
        help="Number of days to show (default: 14)"
    )

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    commands = {
        "today": cmd_today,
        "week": cmd_week,
        "history": cmd_history,
        "calendar": cmd_calendar,
    }
    command = commands.get(args.command)
    if command is None:
        parser.print_help()
        return

    settings = get_settings()
    ctx = Context(SQLiteDocumentStore(args.db), args.user or settings.user_id)
    try:
        asyncio.run(command(args, ctx))
    except RoutinePlannerError as e:
        console.print(f"[red]Error:[/red] {e.message}")
        raise SystemExit(1)


if __name__ == "__main__":
    main()
