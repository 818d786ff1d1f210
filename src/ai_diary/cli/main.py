# src/ai_diary/cli/main.py

"""
CLI entrypoint.

Initializes logging, builds AppState, loads the user's tasks once, then runs
the console connector until /exit, EOF or Ctrl+C.
"""

from __future__ import annotations

import asyncio
import logging

from ..cli.bootstrap import create_initial_state
from ..config import Settings, get_settings
from ..connectors.console_connector import run_console_loop
from ..core.errors import TaskError, friendly_task_error_message
from ..core.state import AppState
from ..logging_setup import setup_logging

logger = logging.getLogger(__name__)


async def _shutdown(state: AppState) -> None:
    """Best-effort shutdown (no exceptions should escape)."""
    try:
        await state.remote.aclose()
    except Exception:
        logger.debug("Remote close failed.", exc_info=True)


async def _run(settings: Settings) -> None:
    state = create_initial_state(settings=settings)
    try:
        try:
            await state.task_store.load(state.user_id)
        except TaskError as e:
            # Keep going with an empty cache; /reload retries.
            logger.warning("Initial task load failed: %s", friendly_task_error_message(e))

        await run_console_loop(state)
    finally:
        await _shutdown(state)


def main() -> None:
    settings = get_settings()

    log_file = setup_logging(log_dir=settings.data_dir, console_level=settings.log_level)

    logger.info("Starting %s...", settings.app_name)
    logger.debug("Full log: %s", log_file)

    try:
        asyncio.run(_run(settings))
    except KeyboardInterrupt:
        logger.info("Interrupted, shutting down...")

    logger.info("Bye.")


if __name__ == "__main__":
    main()
