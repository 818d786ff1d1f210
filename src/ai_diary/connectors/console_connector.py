# src/ai_diary/connectors/console_connector.py

from __future__ import annotations

import asyncio
import logging
from datetime import datetime

from ..cli.commands import registry as command_registry
from ..core.ports import TaskSnapshot
from ..core.state import AppState

logger = logging.getLogger(__name__)


def _ts_local() -> str:
    return datetime.now().astimezone().strftime("%Y-%m-%d %H:%M:%S")


def _print_ts(text: str) -> None:
    print(f"[{_ts_local()}] {text}")


async def run_console_loop(state: AppState) -> None:
    """
    Interactive task console.

    input() runs in a worker thread so the event loop stays free while the
    user types; every command runs on the loop itself.
    """
    logger.info("Console connector started (user=%s).", state.user_id)
    _print_ts("[CONSOLE] Manage your tasks. Use /help for commands. Use /exit to quit.\n")

    def emit(text: str) -> None:
        # Immediate user-visible feedback while a remote call is in flight
        print(f"[{_ts_local()}] {text}", flush=True)

    def on_change(snapshot: TaskSnapshot) -> None:
        logger.debug("Task cache changed: %d task(s)", len(snapshot))

    unsubscribe = state.task_store.subscribe(on_change)
    try:
        while True:
            try:
                user_input = (await asyncio.to_thread(input, ">>> You: ")).strip()
            except EOFError:
                logger.info("Console EOF received, exiting.")
                break
            except KeyboardInterrupt:
                logger.info("Console KeyboardInterrupt, exiting.")
                print()
                break

            if not user_input:
                continue

            if user_input.lower() in ("/exit", "/quit"):
                logger.info("Console exit command received.")
                break

            if not user_input.startswith("/"):
                _print_ts("Commands start with '/'. Use /help to list them.")
                continue

            try:
                response = await command_registry.handle(state, user_input, emit=emit)
            except Exception:
                logger.exception("Command handler crashed.")
                response = "Internal error while handling a command."

            if response is not None:
                print(f"[{_ts_local()}] {response}")
    finally:
        unsubscribe()

    logger.info("Console connector finished.")
