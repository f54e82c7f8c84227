# src/edf_tracker/cli/commands.py

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import date
from pathlib import Path

from ..core.errors import TrackerError
from ..core.state import AppState
from ..tasks.task_models import RecurringTask, Task, TaskType
from ..tasks.task_scheduler import classify_urgency

CommandHandler = Callable[[AppState, list[str]], str]

logger = logging.getLogger(__name__)


class CommandRegistry:
    """Simple slash-command registry used by connectors (/help, /list, ...)."""

    def __init__(self) -> None:
        self._handlers: dict[str, CommandHandler] = {}
        self._help: dict[str, str] = {}

    def register(
        self,
        name: str,
        handler: CommandHandler,
        help_text: str,
        aliases: list[str] | None = None,
    ) -> None:
        aliases = aliases or []
        key = name.lower()
        self._handlers[key] = handler
        self._help[key] = help_text
        for alias in aliases:
            self._handlers[alias.lower()] = handler

    def handle(self, state: AppState, line: str) -> str | None:
        """
        Handle a string like "/command args".
        Returns a reply string or None if not a command.
        """
        if not line.startswith("/"):
            return None

        parts = line[1:].split()
        if not parts:
            return "Empty command. Use /help to list available commands."

        name = parts[0].lower()
        args = parts[1:]

        handler = self._handlers.get(name)
        if not handler:
            return f"Unknown command: /{name}. Use /help to list available commands."

        try:
            return handler(state, args)
        except TrackerError as e:
            # Validation / not-found / import errors are user-facing, not crashes.
            logger.info("/%s rejected: %s", name, e)
            return str(e)

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        return "\n".join(lines)


registry = CommandRegistry()


# ---- rendering ----


def format_date(d: date) -> str:
    return f"{d:%b} {d.day}, {d.year}"


def render_task(task: Task, index: int, today: date) -> str:
    urgency = classify_urgency(task.deadline, today)
    marker = "!" if urgency.is_critical else " "
    line = (
        f"{marker}{index:>2}. {task.title}  [{urgency.label}] "
        f"[{format_date(task.deadline)}] [{task.type_label}]  (id {task.id})"
    )
    if task.description:
        line += f"\n      {task.description}"
    return line


def render_task_list(title: str, tasks: list[Task], today: date) -> str:
    lines = [f"{title} ({len(tasks)}):"]
    if not tasks:
        lines.append("  No tasks yet. Add a new task to get started.")
        return "\n".join(lines)
    for i, task in enumerate(tasks, start=1):
        lines.append(render_task(task, i, today))
    return "\n".join(lines)


def render_overview(state: AppState) -> str:
    tracker = state.tracker
    view = tracker.projection()
    blocks = [
        f"Completion score: {tracker.completion_score}%  "
        f"(fixed {view.fixed_count} / recurring {view.recurring_count} / "
        f"critical {view.critical_count})"
    ]
    if state.show_critical and view.critical:
        blocks.append(render_task_list("Critical", view.critical, view.today))
    blocks.append(render_task_list("Fixed deadline tasks", view.fixed, view.today))
    blocks.append(render_task_list("Recurring tasks", view.recurring, view.today))
    return "\n\n".join(blocks)


# ---- argument helpers ----


def _parse_id(args: list[str]) -> int | None:
    if not args:
        return None
    try:
        return int(args[0])
    except ValueError:
        return None


def _parse_date(raw: str) -> date | None:
    try:
        return date.fromisoformat(raw)
    except ValueError:
        return None


def _split_title(words: list[str]) -> tuple[str, str]:
    """'Pay rent | by transfer' -> ('Pay rent', 'by transfer')."""
    text = " ".join(words)
    title, _, description = text.partition("|")
    return title.strip(), description.strip()


# ---- commands ----


def cmd_help(state: AppState, args: list[str]) -> str:
    return registry.build_help()


def cmd_status(state: AppState, args: list[str]) -> str:
    tracker = state.tracker
    stats = tracker.stats
    storage = "SQLite" if tracker.repo is not None else "memory only"
    return (
        "Status:\n"
        f"  Today: {tracker.clock.today().isoformat()}\n"
        f"  Storage: {storage} ({tracker.save_status or 'idle'})\n"
        f"  Tasks stored: {len(tracker.tasks)}\n"
        f"  Finished: {stats.total_finished} "
        f"(on time {stats.completed_on_time}, late/deleted/expired {stats.deleted_or_expired})\n"
        f"  Critical view: {'ON' if state.show_critical else 'OFF'}"
    )


def cmd_list(state: AppState, args: list[str]) -> str:
    return render_overview(state)


def cmd_critical(state: AppState, args: list[str]) -> str:
    state.show_critical = not state.show_critical
    if not state.show_critical:
        return "Critical view OFF."
    view = state.tracker.projection()
    if not view.critical:
        return "Critical view ON. Nothing due within 3 days."
    return "Critical view ON.\n" + render_task_list("Critical", view.critical, view.today)


def cmd_add(state: AppState, args: list[str]) -> str:
    """
    /add fixed 2024-01-10 Pay rent | optional description
    /add recurring weekly Water plants | optional description
    """
    usage = (
        "Usage:\n"
        "  /add fixed YYYY-MM-DD <title> [| description]\n"
        "  /add recurring daily|weekly|monthly <title> [| description]"
    )
    if len(args) < 2:
        return usage

    kind = args[0].lower()
    if kind == TaskType.FIXED:
        deadline = _parse_date(args[1])
        if deadline is None:
            return f"Invalid deadline {args[1]!r}, expected YYYY-MM-DD."
        title, description = _split_title(args[2:])
        task = state.tracker.create_task(
            title=title, description=description, task_type=TaskType.FIXED, deadline=deadline
        )
        return f"Task added (id {task.id}), due {format_date(task.deadline)}."

    if kind == TaskType.RECURRING:
        title, description = _split_title(args[2:])
        task = state.tracker.create_task(
            title=title,
            description=description,
            task_type=TaskType.RECURRING,
            recurrence_interval=args[1],
        )
        return f"Recurring task added (id {task.id}), first due {format_date(task.deadline)}."

    return usage


def cmd_edit(state: AppState, args: list[str]) -> str:
    """/edit <id> title|desc|deadline|interval <value>"""
    usage = "Usage: /edit <id> title|desc|deadline|interval <value>"
    task_id = _parse_id(args)
    if task_id is None or len(args) < 2:
        return usage

    field_name = args[1].lower()
    value = " ".join(args[2:]).strip()

    if field_name == "title":
        task = state.tracker.update_task(task_id, title=value)
    elif field_name in ("desc", "description"):
        task = state.tracker.update_task(task_id, description=value)
    elif field_name == "deadline":
        deadline = _parse_date(value)
        if deadline is None:
            return f"Invalid deadline {value!r}, expected YYYY-MM-DD."
        task = state.tracker.update_task(task_id, deadline=deadline)
    elif field_name == "interval":
        task = state.tracker.update_task(task_id, recurrence_interval=value)
    else:
        return usage

    return f"Task {task.id} updated: {task.title}, due {format_date(task.deadline)}."


def cmd_done(state: AppState, args: list[str]) -> str:
    task_id = _parse_id(args)
    if task_id is None:
        return "Usage: /done <id>"

    result = state.tracker.complete_task(task_id)
    timing = "on time" if result.on_time else "late"
    if isinstance(result.task, RecurringTask):
        return f"Task completed ({timing})! Will reappear {result.task.recurrence_interval.reappears}."
    return f"Task completed ({timing}) and removed!"


def cmd_delete(state: AppState, args: list[str]) -> str:
    task_id = _parse_id(args)
    if task_id is None:
        return "Usage: /del <id>"

    task = state.tracker.find(task_id)
    if task is None:
        return f"Task {task_id} not found"

    prompt = (
        "Delete this recurring task permanently? It will NOT reappear after deletion."
        if isinstance(task, RecurringTask)
        else "Are you sure you want to delete this task?"
    )
    if not state.confirm(prompt):
        return "Cancelled."

    state.tracker.delete_task(task_id)
    kind = "Recurring task" if isinstance(task, RecurringTask) else "Task"
    return f"{kind} permanently deleted!"


def cmd_score(state: AppState, args: list[str]) -> str:
    stats = state.tracker.stats
    return (
        f"On-time completion: {state.tracker.completion_score}% "
        f"({stats.completed_on_time} of {stats.total_finished})"
    )


def cmd_reset_stats(state: AppState, args: list[str]) -> str:
    if not state.confirm(
        "Are you sure you want to reset all completion statistics? "
        "This will reset your on-time completion rate to 0%."
    ):
        return "Cancelled."
    state.tracker.reset_stats()
    return "Completion statistics reset!"


def cmd_export(state: AppState, args: list[str]) -> str:
    directory = Path(args[0]) if args else Path(getattr(state.settings, "export_dir", "."))
    try:
        path = state.tracker.write_export(directory)
    except OSError as e:
        logger.exception("Export failed")
        return f"Export failed: {e}"
    return f"Data exported successfully to {path}"


def cmd_import(state: AppState, args: list[str]) -> str:
    if not args:
        return "Usage: /import <path-to-backup.json>"

    def confirm(count: int) -> bool:
        return state.confirm(f"This will replace your current data with {count} tasks. Continue?")

    try:
        imported = state.tracker.read_import(" ".join(args), confirm)
    except OSError as e:
        return f"Import failed: {e}"

    return "Data imported successfully!" if imported else "Cancelled."


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register("status", cmd_status, help_text="Show storage status and counters.")
registry.register("list", cmd_list, help_text="Show tasks in EDF order.", aliases=["ls"])
registry.register("critical", cmd_critical, help_text="Toggle the critical (< 3 days) section.")
registry.register(
    "add",
    cmd_add,
    help_text="Add a task: /add fixed YYYY-MM-DD <title> | /add recurring <interval> <title>.",
)
registry.register("edit", cmd_edit, help_text="Edit a task: /edit <id> title|desc|deadline|interval <value>.")
registry.register("done", cmd_done, help_text="Complete a task: /done <id>.", aliases=["complete"])
registry.register("del", cmd_delete, help_text="Delete a task: /del <id>.", aliases=["delete", "rm"])
registry.register("score", cmd_score, help_text="Show on-time completion score.")
registry.register("resetstats", cmd_reset_stats, help_text="Reset completion statistics.")
registry.register("export", cmd_export, help_text="Export a JSON backup: /export [dir].")
registry.register("import", cmd_import, help_text="Import a JSON backup: /import <path>.")
