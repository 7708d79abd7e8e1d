"""Tasky CLI - task ranking, recurrence and weekly review."""

import json
import logging
import sys
from datetime import datetime, time, timedelta
from zoneinfo import ZoneInfoNotFoundError

import click

from .config import load_config
from .core.recurrence import InvalidRule, WEEKDAY_NAMES
from .core.review import ReviewAction, ReviewStep
from .core.tasks import Priority
from .core.urgency import classify
from .ports.task_repo import StoreMutationFailed
from .workflows import (
    add_task,
    build_rule,
    complete_task,
    format_task_line,
    get_clock,
    get_scheduler,
    get_store,
    ranked_tasks,
    remove_task,
    start_review,
)

ACTION_KEYS = {
    "k": ReviewAction.KEEP,
    "t": ReviewAction.RESCHEDULE_TO_TOMORROW,
    "n": ReviewAction.MOVE_TO_NEXT_WEEK,
    "d": ReviewAction.DELETE,
}


def _parse_when(value: str | None, now: datetime) -> datetime | None:
    """'today', 'tomorrow', YYYY-MM-DD (midnight) or a full ISO datetime."""
    if value is None:
        return None
    lowered = value.strip().lower()
    if lowered == "today":
        return datetime.combine(now.date(), time.min)
    if lowered == "tomorrow":
        return datetime.combine(now.date() + timedelta(days=1), time.min)
    return datetime.fromisoformat(value)


def _parse_weekday(name: str) -> int:
    try:
        return [n.lower() for n in WEEKDAY_NAMES].index(name.strip()[:3].lower()) + 1
    except ValueError:
        raise click.BadParameter(f"unknown weekday {name!r}") from None


def _fail(e: Exception) -> None:
    click.echo(f"Error: {e}", err=True)
    sys.exit(1)


@click.group()
@click.version_option(package_name="tasky")
@click.option("--debug", is_flag=True, help="Enable debug logging")
@click.option("--as-of", "as_of", default=None, help="Pretend it is this ISO datetime")
@click.pass_context
def main(ctx, debug: bool, as_of: str | None):
    """Tasky - task ranking, recurrence and weekly review."""
    if debug:
        logging.basicConfig(
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            level=logging.DEBUG,
        )
    config = load_config()
    try:
        pinned = datetime.fromisoformat(as_of) if as_of else None
        clock = get_clock(config, pinned)
    except ZoneInfoNotFoundError:
        _fail(ValueError(f"unknown timezone {config.timezone!r}"))
    except ValueError as e:
        _fail(e)
    ctx.obj = {"config": config, "clock": clock}


@main.command("list")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.option("--all", "show_all", is_flag=True, help="Include completed tasks")
@click.pass_obj
def list_tasks(obj, as_json: bool, show_all: bool):
    """List tasks, most urgent first."""
    config, clock = obj["config"], obj["clock"]
    now = clock.now()
    try:
        tasks = ranked_tasks(get_store(config), now, config, include_completed=show_all)
    except StoreMutationFailed as e:
        _fail(e)

    if as_json:
        click.echo(
            json.dumps(
                [
                    {
                        **t.to_dict(),
                        "urgency": classify(t, now).kind.value,
                        "label": str(classify(t, now)),
                    }
                    for t in tasks
                ],
                indent=2,
            )
        )
        return

    if not tasks:
        click.echo("No tasks.")
        return

    for task in tasks:
        click.echo(format_task_line(task, now))


@main.command()
@click.argument("title")
@click.option("--due", default=None, help="Due date: today, tomorrow, YYYY-MM-DD or ISO datetime")
@click.option("--at", "scheduled", default=None, help="Scheduled ISO datetime")
@click.option(
    "--priority",
    type=click.Choice(["none", "medium", "high"]),
    default="none",
    show_default=True,
)
@click.option(
    "--repeat",
    "unit",
    type=click.Choice(["day", "week", "month", "year", "afterCompletion"]),
    default=None,
    help="Recurrence unit",
)
@click.option("--every", default=1, show_default=True, help="Recurrence interval")
@click.option("--on", "on_days", default="", help="Weekdays for weekly repeats, e.g. Mon,Wed")
@click.option("--day-of-month", type=int, default=None, help="Day for monthly repeats")
@click.option("--weekday", default=None, help="Weekday for relative monthly repeats, e.g. Mon")
@click.option("--ordinal", type=int, default=None, help="1..5 or -1 (last) for relative monthly repeats")
@click.option("--minutes", default=0, help="Estimated duration in minutes")
@click.option("--list", "list_name", default="", help="List name")
@click.pass_obj
def add(
    obj,
    title: str,
    due: str | None,
    scheduled: str | None,
    priority: str,
    unit: str | None,
    every: int,
    on_days: str,
    day_of_month: int | None,
    weekday: str | None,
    ordinal: int | None,
    minutes: int,
    list_name: str,
):
    """Add a task."""
    config, clock = obj["config"], obj["clock"]
    now = clock.now()
    try:
        rule = build_rule(
            unit,
            every=every,
            on_days=[_parse_weekday(d) for d in on_days.split(",") if d.strip()],
            day_of_month=day_of_month,
            weekday=_parse_weekday(weekday) if weekday else None,
            ordinal=ordinal,
        )
        task = add_task(
            get_store(config),
            clock,
            title,
            due_date=_parse_when(due, now),
            scheduled_time=_parse_when(scheduled, now),
            priority=Priority.parse(priority),
            recurrence=rule,
            estimated_minutes=minutes,
            list_name=list_name,
        )
    except (InvalidRule, StoreMutationFailed, ValueError) as e:
        _fail(e)

    click.echo(f"Added {task.id}: {task.title} ({classify(task, now)})")


@main.command()
@click.argument("task_id")
@click.pass_obj
def done(obj, task_id: str):
    """Complete a task; recurring tasks get their next instance."""
    config, clock = obj["config"], obj["clock"]
    try:
        task, successor = complete_task(get_store(config), clock, task_id)
    except StoreMutationFailed as e:
        _fail(e)

    click.echo(f"✓ {task.title}")
    if successor is not None:
        when = successor.when.strftime("%a %b %d") if successor.when else "undated"
        click.echo(f"  Next: {successor.id} on {when}")


@main.command()
@click.argument("task_id")
@click.pass_obj
def rm(obj, task_id: str):
    """Delete a task."""
    try:
        task = remove_task(get_store(obj["config"]), task_id)
    except StoreMutationFailed as e:
        _fail(e)
    click.echo(f"Deleted {task.title}")


def _triage(session, tasks: list, handle) -> bool:
    """Prompt for each task; returns False if the user asked to skip the rest."""
    now = session.clock.now()
    for task in list(tasks):
        click.echo(format_task_line(task, now))
        choice = click.prompt(
            "  [k]eep [t]omorrow [n]ext week [d]elete [s]kip rest",
            type=click.Choice(["k", "t", "n", "d", "s"]),
            default="k",
            show_choices=False,
        )
        if choice == "s":
            return False
        handle(task.id, ACTION_KEYS[choice])
    return True


@main.command()
@click.option("--skip", is_flag=True, help="Keep everything without prompting")
@click.pass_obj
def review(obj, skip: bool):
    """Walk through the weekly review."""
    config, clock = obj["config"], obj["clock"]
    try:
        session = start_review(config, get_store(config), clock)
    except (StoreMutationFailed, ValueError) as e:
        _fail(e)
    week = session.week

    click.echo(f"## {ReviewStep.CELEBRATE.title}")
    click.echo(
        f"{len(week.completed)} done this week ({week.completion_rate}% completion), "
        f"{week.created_count} created."
    )
    session.go_to_next_step()

    click.echo(f"\n## {ReviewStep.INCOMPLETE.title} ({len(session.incomplete_tasks)})")
    if skip or not _triage(session, session.incomplete_tasks, session.handle_incomplete):
        session.skip_incomplete()
    else:
        session.go_to_next_step()

    click.echo(f"\n## {ReviewStep.OVERDUE.title} ({len(session.overdue_tasks)})")
    if skip or not _triage(session, session.overdue_tasks, session.handle_overdue):
        session.skip_overdue()
    else:
        session.go_to_next_step()

    click.echo(f"\n## {ReviewStep.UPCOMING.title} ({len(session.upcoming_tasks)})")
    now = clock.now()
    for task in session.upcoming_tasks:
        click.echo(format_task_line(task, now))
    session.go_to_next_step()

    tally = session.tally
    click.echo(f"\n## {ReviewStep.SUMMARY.title}")
    click.echo(f"Deleted: {tally.deleted}  Rescheduled: {tally.rescheduled}  Kept: {tally.kept}")
    if session.failures:
        click.echo(f"({len(session.failures)} change(s) could not be saved)", err=True)

    streak = session.complete_review()
    if streak is not None:
        click.echo(f"Review streak: {streak.current} week(s)")


@main.command()
@click.pass_obj
def streak(obj):
    """Show review streak and next scheduled review."""
    config, clock = obj["config"], obj["clock"]
    try:
        scheduler = get_scheduler(config, clock)
    except ValueError as e:
        _fail(e)
    state = scheduler.state()
    last = state.last_review.strftime("%a %b %d") if state.last_review else "never"
    click.echo(f"Current streak: {state.current}")
    click.echo(f"Longest streak: {state.longest}")
    click.echo(f"Last review: {last}")
    click.echo(f"Next review: {scheduler.next_review().strftime('%A %b %d, %H:%M')}")


if __name__ == "__main__":
    main()
