# src/ai_diary/cli/commands.py

from __future__ import annotations

import inspect
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import date, datetime, time
from typing import cast

from ..core.errors import TaskError, friendly_task_error_message
from ..core.state import AppState
from ..tasks.deadline import DeadlineComposer
from ..tasks.task_models import Task, TaskStatus

CommandEmitter = Callable[[str], None]
CommandResult = str | Awaitable[str]
CommandHandler3 = Callable[[AppState, list[str], str], CommandResult]
CommandHandler4 = Callable[[AppState, list[str], str, CommandEmitter | None], CommandResult]
CommandHandler = CommandHandler3 | CommandHandler4

logger = logging.getLogger(__name__)


class CommandRegistry:
    """Slash-command registry used by the console connector (/help, /tasks, ...)."""

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

    async def handle(
        self,
        state: AppState,
        line: str,
        user_id: str | None = None,
        emit: CommandEmitter | None = None,
    ) -> str | None:
        """
        Handle a string like "/command args".
        Returns a reply string or None if not a command.

        Task errors become user-facing text here; anything else propagates.
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

        owner = user_id or state.user_id

        try:
            nparams = len(inspect.signature(handler).parameters)
        except (TypeError, ValueError):
            nparams = 4

        try:
            if nparams >= 4:
                result = cast(CommandHandler4, handler)(state, args, owner, emit)
            else:
                result = cast(CommandHandler3, handler)(state, args, owner)
            if inspect.isawaitable(result):
                result = await result
        except TaskError as e:
            logger.info("/%s failed: %s", name, e.message)
            return friendly_task_error_message(e)

        return cast(str, result)

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        return "\n".join(lines)


registry = CommandRegistry()


# ---- argument helpers ----


@dataclass(slots=True)
class TaskArgs:
    title: str
    description: str | None
    date_raw: str | None
    time_raw: str | None
    no_deadline: bool


def parse_task_args(args: list[str]) -> TaskArgs:
    """
    Split `<title> [| description] [--date YYYY-MM-DD] [--time HH:MM] [--no-deadline]`.
    """
    words: list[str] = []
    date_raw: str | None = None
    time_raw: str | None = None
    no_deadline = False

    it = iter(args)
    for tok in it:
        if tok == "--date":
            date_raw = next(it, None)
        elif tok == "--time":
            time_raw = next(it, None)
        elif tok == "--no-deadline":
            no_deadline = True
        else:
            words.append(tok)

    text = " ".join(words)
    title, sep, description = text.partition("|")
    return TaskArgs(
        title=title.strip(),
        description=description.strip() if sep else None,
        date_raw=date_raw,
        time_raw=time_raw,
        no_deadline=no_deadline,
    )


def compose_deadline(composer: DeadlineComposer, parsed: TaskArgs) -> datetime | None:
    """Drive the picker state machine the same way the editor screen would."""
    if parsed.no_deadline:
        composer.clear()

    if parsed.date_raw is not None:
        picked_date = date.fromisoformat(parsed.date_raw)
        composer.open_date_picker()
        composer.select_pending_date(picked_date)
        composer.confirm_date()

    if parsed.time_raw is not None:
        picked_time = time.fromisoformat(parsed.time_raw)
        composer.open_time_picker()
        composer.select_pending_time(picked_time)
        composer.confirm_time()

    return composer.commit()


def _fmt_deadline(dt: datetime | None) -> str:
    if dt is None:
        return ""
    return dt.astimezone().strftime("%Y-%m-%d %H:%M")


def _fmt_task(pos: int, task: Task, now: datetime) -> str:
    mark = "x" if task.status is TaskStatus.COMPLETED else " "
    line = f"{pos}. [{mark}] {task.title}"
    if task.deadline is not None:
        line += f" (due {_fmt_deadline(task.deadline)})"
        if task.is_overdue(now):
            line += " OVERDUE"
    if task.description:
        line += f"\n     {task.description}"
    return line


def _resolve(state: AppState, raw: str | None) -> Task | None:
    """Map a 1-based position from the last listing (or the cache order) to a task."""
    if raw is None:
        return None
    try:
        pos = int(raw)
    except ValueError:
        return state.task_store.get(raw)

    ids = state.last_listing or [t.id for t in state.task_store.tasks]
    if not 1 <= pos <= len(ids):
        return None
    return state.task_store.get(ids[pos - 1])


# ---- handlers ----


def cmd_help(state: AppState, args: list[str], user_id: str) -> str:
    return registry.build_help()


def cmd_status(state: AppState, args: list[str], user_id: str) -> str:
    offline = bool(getattr(state.settings, "offline", True))
    backend = "in-memory (offline)" if offline else str(getattr(state.settings, "supabase_url", ""))
    store = state.task_store
    return (
        "Status:\n"
        f"  User: {user_id}\n"
        f"  Backend: {backend}\n"
        f"  Tasks cached: {len(store)} ({len(store.active())} active, {len(store.completed())} completed)"
    )


def cmd_tasks(state: AppState, args: list[str], user_id: str) -> str:
    """
    /tasks         -> all cached tasks (newest first)
    /tasks active  -> active only
    /tasks done    -> completed only
    /tasks due     -> active tasks past their deadline
    """
    now = datetime.now().astimezone()
    sub = args[0].lower() if args else "all"
    store = state.task_store

    if sub == "all":
        tasks = list(store.tasks)
    elif sub == "active":
        tasks = store.active()
    elif sub in ("done", "completed"):
        tasks = store.completed()
    elif sub == "due":
        tasks = store.due(now)
    else:
        return "Usage: /tasks [all|active|done|due]"

    state.last_listing = [t.id for t in tasks]
    if not tasks:
        return "No tasks."
    return "\n".join(_fmt_task(i, t, now) for i, t in enumerate(tasks, start=1))


async def cmd_reload(state: AppState, args: list[str], user_id: str) -> str:
    tasks = await state.task_store.load(user_id)
    state.last_listing = []
    return f"Loaded {len(tasks)} task(s)."


async def cmd_add(
    state: AppState,
    args: list[str],
    user_id: str,
    emit: CommandEmitter | None = None,
) -> str:
    """/add <title> [| description] [--date YYYY-MM-DD] [--time HH:MM]"""
    parsed = parse_task_args(args)
    if not parsed.title:
        return "Usage: /add <title> [| description] [--date YYYY-MM-DD] [--time HH:MM]"

    try:
        deadline = compose_deadline(DeadlineComposer(), parsed)
    except ValueError:
        return "Bad date/time. Use --date YYYY-MM-DD and --time HH:MM."

    if emit:
        emit("Saving task...")
    task = await state.task_store.create(user_id, parsed.title, parsed.description, deadline)
    state.last_listing = []
    suffix = f" (due {_fmt_deadline(task.deadline)})" if task.deadline else ""
    return f"Added: {task.title}{suffix}"


async def cmd_edit(state: AppState, args: list[str], user_id: str) -> str:
    """/edit <n> <title> [| description] [--date ...] [--time ...] [--no-deadline]"""
    usage = "Usage: /edit <n> <title> [| description] [--date YYYY-MM-DD] [--time HH:MM] [--no-deadline]"
    if not args:
        return usage
    task = _resolve(state, args[0])
    if task is None:
        return f"No task #{args[0]}. Use /tasks to list."

    parsed = parse_task_args(args[1:])
    if not parsed.title:
        return usage

    try:
        deadline = compose_deadline(DeadlineComposer(initial=task.deadline), parsed)
    except ValueError:
        return "Bad date/time. Use --date YYYY-MM-DD and --time HH:MM."

    description = parsed.description if parsed.description is not None else task.description
    updated = await state.task_store.update(user_id, task.id, parsed.title, description, deadline)
    return f"Updated: {updated.title}"


async def cmd_done(state: AppState, args: list[str], user_id: str) -> str:
    """/done <n> -> toggle active/completed"""
    task = _resolve(state, args[0] if args else None)
    if task is None:
        return "Usage: /done <n> (see /tasks for numbers)"
    updated = await state.task_store.toggle_status(user_id, task.id)
    return f"{updated.title}: {updated.status.value}"


async def cmd_rm(state: AppState, args: list[str], user_id: str) -> str:
    task = _resolve(state, args[0] if args else None)
    if task is None:
        return "Usage: /rm <n> (see /tasks for numbers)"
    await state.task_store.delete(user_id, task.id)
    state.last_listing = []
    return f"Deleted: {task.title}"


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register("status", cmd_status, help_text="Show user, backend and cache totals.")
registry.register("tasks", cmd_tasks, help_text="List tasks: /tasks [all|active|done|due].", aliases=["ls"])
registry.register("reload", cmd_reload, help_text="Reload tasks from the server.")
registry.register(
    "add",
    cmd_add,
    help_text="Add a task: /add <title> [| description] [--date YYYY-MM-DD] [--time HH:MM].",
)
registry.register(
    "edit",
    cmd_edit,
    help_text="Edit a task: /edit <n> <title> [| description] [--date ...] [--time ...] [--no-deadline].",
)
registry.register("done", cmd_done, help_text="Toggle a task between active and completed.", aliases=["toggle"])
registry.register("rm", cmd_rm, help_text="Delete a task: /rm <n>.", aliases=["delete"])
