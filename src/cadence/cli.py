"""Cadence CLI - recurring task tracker."""

import json
import logging
import sys
from datetime import date

import click

from .adapters.json_store import StoreError
from .config import load_config
from .core.pattern import FREQUENCIES, RecurrencePattern, describe_pattern, is_valid_recurrence
from .core.recurrence import generate_instances
from .core.tasks import PRIORITIES, Task, sort_by_due
from .core.timeline import date_from_ms, ms_from_date, now_ms
from .workflows import (
    NotRecurringError,
    TaskNotFoundError,
    create_task,
    delete_series,
    extend_lookahead,
    generate_instances_for_parent,
    get_store,
    toggle_complete,
    update_series,
    update_task,
)

WEEKDAYS = ["sun", "mon", "tue", "wed", "thu", "fri", "sat"]

FAILURES = (TaskNotFoundError, NotRecurringError, StoreError, ValueError)


def _fail(e: Exception) -> None:
    click.echo(f"Error: {e}", err=True)
    sys.exit(1)


def _parse_weekdays(value: str | None) -> list[int]:
    """'mon,wed' or '1,3' -> [1, 3] (Sunday=0)."""
    if not value:
        return []
    days = []
    for part in value.split(","):
        part = part.strip().lower()
        if not part:
            continue
        if part.isdigit():
            days.append(int(part))
        elif part[:3] in WEEKDAYS:
            days.append(WEEKDAYS.index(part[:3]))
        else:
            raise click.BadParameter(f"Unknown weekday: {part}", param_hint="--on")
    return sorted(set(days))


def _parse_date_ms(value: str | None) -> int | None:
    if not value:
        return None
    try:
        return ms_from_date(date.fromisoformat(value))
    except ValueError:
        raise click.BadParameter(f"Expected YYYY-MM-DD, got {value!r}")


def _fmt(timestamp_ms: int | None) -> str:
    return date_from_ms(timestamp_ms).isoformat() if timestamp_ms is not None else ""


def pattern_options(func):
    """Shared options describing a recurrence pattern."""
    options = [
        click.option("--every", "frequency", type=click.Choice(FREQUENCIES), default=None,
                     help="Repeat frequency"),
        click.option("--interval", type=int, default=1, show_default=True,
                     help="Repeat every N units"),
        click.option("--on", "weekdays", default=None,
                     help="Weekdays for weekly patterns, e.g. mon,wed"),
        click.option("--day-of-month", type=int, default=None,
                     help="Day of month for monthly patterns"),
        click.option("--until", default=None, help="Last date (YYYY-MM-DD), inclusive"),
        click.option("--count", type=int, default=None, help="Maximum number of occurrences"),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def _build_pattern(frequency, interval, weekdays, day_of_month, until, count) -> RecurrencePattern | None:
    if frequency is None:
        return None
    return RecurrencePattern(
        frequency=frequency,
        interval=interval,
        days_of_week=_parse_weekdays(weekdays),
        day_of_month=day_of_month,
        end_date_ms=_parse_date_ms(until),
        count=count,
    )


def _serialize(task: Task) -> dict:
    data = task.to_dict()
    data["due_date"] = _fmt(task.due_date_ms) or None
    return data


@click.group()
@click.version_option(package_name="cadence")
@click.option("--debug", is_flag=True, help="Enable debug logging")
def main(debug: bool):
    """Cadence - recurring task tracker."""
    if debug:
        logging.basicConfig(
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            level=logging.DEBUG,
        )


@main.command()
@click.argument("title")
@click.option("--priority", type=click.Choice(PRIORITIES), default="medium", show_default=True)
@click.option("--description", default=None)
@click.option("--due", default=None, help="Due date (YYYY-MM-DD); first occurrence for recurring tasks")
@click.option("--tag", "tags", multiple=True, help="Tag id (repeatable)")
@pattern_options
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def add(title, priority, description, due, tags, frequency, interval, weekdays, day_of_month, until, count, as_json):
    """Add a task, optionally recurring."""
    config = load_config()
    pattern = _build_pattern(frequency, interval, weekdays, day_of_month, until, count)
    if pattern is not None and not is_valid_recurrence(pattern):
        _fail(ValueError("Invalid recurrence pattern"))

    task = Task(
        title=title,
        priority=priority,
        description=description,
        due_date_ms=_parse_date_ms(due),
        tag_ids=list(tags),
        recurrence=pattern,
    )
    try:
        parent, instances = create_task(get_store(config), task, now_ms(), config.lookahead_days)
    except FAILURES as e:
        _fail(e)

    if as_json:
        click.echo(json.dumps({"task": _serialize(parent), "instances": [_serialize(i) for i in instances]}, indent=2))
        return

    click.echo(f"Added {parent.id}: {parent.title}")
    if pattern is not None:
        click.echo(f"  {describe_pattern(pattern)}, {len(instances)} occurrence(s) scheduled")


@main.command("list")
@click.option("--parent", "parent_id", default=None, help="Only instances of this series")
@click.option("--all", "show_all", is_flag=True, help="Include completed tasks")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def list_tasks(parent_id: str | None, show_all: bool, as_json: bool):
    """List tasks by due date."""
    config = load_config()
    store = get_store(config)
    try:
        tasks = store.list_by_parent(parent_id) if parent_id else store.list_all()
    except StoreError as e:
        _fail(e)

    if not show_all:
        tasks = [t for t in tasks if not t.completed]
    tasks = sort_by_due(tasks)

    if as_json:
        click.echo(json.dumps([_serialize(t) for t in tasks], indent=2))
        return

    if not tasks:
        click.echo("No tasks.")
        return

    for task in tasks:
        check = "x" if task.completed else " "
        due = _fmt(task.due_date_ms) or "-"
        extra = ""
        if task.is_recurring_parent and task.recurrence:
            extra = f" ({describe_pattern(task.recurrence)})"
        elif task.is_customized:
            extra = " (edited)"
        click.echo(f"[{check}] {due:10}  {task.title}{extra}  {task.id}")


@main.command()
@pattern_options
@click.option("--from", "start", default=None, help="Start date (YYYY-MM-DD), defaults to today")
@click.option("--days", type=int, default=None, help="Lookahead window in days")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def preview(frequency, interval, weekdays, day_of_month, until, count, start, days, as_json):
    """Show the dates a pattern would produce, without saving anything."""
    config = load_config()
    pattern = _build_pattern(frequency or "daily", interval, weekdays, day_of_month, until, count)
    if not is_valid_recurrence(pattern):
        _fail(ValueError("Invalid recurrence pattern"))

    start_ms = _parse_date_ms(start) if start else now_ms()
    lookahead = days if days is not None else config.lookahead_days
    occurrences = generate_instances(Task(title="preview", recurrence=pattern), start_ms, lookahead)

    if as_json:
        click.echo(json.dumps([_fmt(o.instance_date_ms) for o in occurrences], indent=2))
        return

    click.echo(f"{describe_pattern(pattern)}: {len(occurrences)} occurrence(s)")
    for o in occurrences:
        d = date_from_ms(o.instance_date_ms)
        click.echo(f"  {d.strftime('%a')} {d.isoformat()}")


@main.command()
@click.argument("parent_id")
@click.option("--days", type=int, default=None, help="Lookahead window in days")
def generate(parent_id: str, days: int | None):
    """Materialize upcoming occurrences of a series."""
    config = load_config()
    lookahead = days if days is not None else config.lookahead_days
    try:
        new = generate_instances_for_parent(get_store(config), parent_id, now_ms(), lookahead)
    except FAILURES as e:
        _fail(e)
    click.echo(f"Added {len(new)} occurrence(s).")


@main.command()
@click.option("--window", type=int, default=None, help="Extend series with fewer than N days scheduled")
def extend(window: int | None):
    """Top up every series whose scheduled window is running out."""
    config = load_config()
    window_days = window if window is not None else config.extension_window_days
    try:
        added = extend_lookahead(get_store(config), now_ms(), window_days, config.lookahead_days)
    except FAILURES as e:
        _fail(e)

    if not added:
        click.echo("All series are up to date.")
        return
    for parent_id, count in added.items():
        click.echo(f"{parent_id}: +{count}")


@main.command()
@click.argument("task_id")
@click.option("--title", default=None)
@click.option("--description", default=None)
@click.option("--priority", type=click.Choice(PRIORITIES), default=None)
@click.option("--due", default=None, help="Due date (YYYY-MM-DD)")
def edit(task_id, title, description, priority, due):
    """Edit one task. Edited occurrences stop following series updates."""
    updates = {"title": title, "description": description, "priority": priority}
    updates = {k: v for k, v in updates.items() if v is not None}
    if due:
        updates["due_date_ms"] = _parse_date_ms(due)
    if not updates:
        _fail(ValueError("Nothing to update"))

    config = load_config()
    try:
        task = update_task(get_store(config), task_id, updates, now_ms())
    except FAILURES as e:
        _fail(e)
    click.echo(f"Updated {task.id}: {task.title}")


@main.command()
@click.argument("task_id")
def done(task_id: str):
    """Toggle a task's completion."""
    config = load_config()
    try:
        was_completed = toggle_complete(get_store(config), task_id, now_ms())
    except FAILURES as e:
        _fail(e)
    click.echo("Reopened." if was_completed else "Completed.")


@main.command("update-series")
@click.argument("parent_id")
@click.option("--title", default=None)
@click.option("--description", default=None)
@click.option("--priority", type=click.Choice(PRIORITIES), default=None)
@click.option("--tag", "tags", multiple=True, help="Replace tags (repeatable)")
def update_series_cmd(parent_id, title, description, priority, tags):
    """Update a series and its future, unedited occurrences."""
    updates = {"title": title, "description": description, "priority": priority}
    updates = {k: v for k, v in updates.items() if v is not None}
    if tags:
        updates["tag_ids"] = list(tags)
    if not updates:
        _fail(ValueError("Nothing to update"))

    config = load_config()
    try:
        count = update_series(get_store(config), parent_id, updates, now_ms())
    except FAILURES as e:
        _fail(e)
    click.echo(f"Updated series and {count} occurrence(s).")


@main.command("delete-series")
@click.argument("parent_id")
@click.option("--yes", is_flag=True, help="Do not ask for confirmation")
def delete_series_cmd(parent_id: str, yes: bool):
    """Delete a recurring task and all of its occurrences."""
    if not yes and not click.confirm(f"Delete series {parent_id} and all occurrences?"):
        return

    config = load_config()
    try:
        removed = delete_series(get_store(config), parent_id)
    except FAILURES as e:
        _fail(e)
    click.echo(f"Deleted {removed} task(s).")


@main.command()
def watch():
    """Keep series topped up in the background."""
    from .scheduler import run_refresher

    config = load_config()
    click.echo(f"Refreshing lookahead daily at {config.refresh_time} UTC")
    click.echo("Press Ctrl+C to stop")
    try:
        run_refresher(get_store(config), config)
    except KeyboardInterrupt:
        click.echo("\nStopped.")


if __name__ == "__main__":
    main()
