# src/ai_diary/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

Design goals:
- One Settings object for the whole app.
- No secrets required at import time (missing Supabase config => offline mode).
- The Expo-era variable names (EXPO_PUBLIC_SUPABASE_*) are accepted as fallbacks.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

ENV_PREFIX = "AI_DIARY"


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


def _load_dotenv_if_available() -> None:
    """Load .env locally if python-dotenv is installed. Safe no-op otherwise."""
    try:
        from dotenv import load_dotenv  # type: ignore
    except ImportError:
        return
    load_dotenv(override=False)


_load_dotenv_if_available()


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _first_env(*names: str, default: str | None = None) -> str | None:
    for n in names:
        v = os.getenv(n)
        if v is not None and v.strip() != "":
            return v
    return default


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_path(name: str, default: Path) -> Path:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return Path(raw).expanduser()


@dataclass(frozen=True, slots=True)
class Settings:
    # ---- App / logging ----
    app_name: str
    log_level: str
    data_dir: Path

    # ---- Remote task store (Supabase / PostgREST) ----
    supabase_url: str
    supabase_anon_key: str | None
    access_token: str | None
    tasks_table: str
    remote_connect_timeout_seconds: float
    remote_read_timeout_seconds: float

    # ---- Session ----
    user_id: str
    offline: bool

    @staticmethod
    def from_env() -> "Settings":
        app_name = _first_env(_k("APP_NAME"), default="ai-diary") or "ai-diary"
        log_level = _env(_k("LOG_LEVEL"), "INFO")
        data_dir = _env_path(_k("DATA_DIR"), Path(".local/ai_diary"))

        supabase_url = (
            _first_env(_k("SUPABASE_URL"), "EXPO_PUBLIC_SUPABASE_URL", default="") or ""
        ).strip().rstrip("/")
        supabase_anon_key = _first_env(
            _k("SUPABASE_ANON_KEY"), "EXPO_PUBLIC_SUPABASE_ANON_KEY", default=None
        )
        access_token = _first_env(_k("ACCESS_TOKEN"), default=None)
        tasks_table = (_env(_k("TASKS_TABLE"), "tasks").strip() or "tasks")

        connect_timeout = _env_float(_k("REMOTE_CONNECT_TIMEOUT_SECONDS"), 5.0)
        read_timeout = _env_float(_k("REMOTE_READ_TIMEOUT_SECONDS"), 15.0)

        user_id = (_env(_k("USER_ID"), "local-user").strip() or "local-user")

        # No backend configured -> run against the in-memory service.
        offline = _env_bool(_k("OFFLINE"), False) or not supabase_url or not supabase_anon_key

        return Settings(
            app_name=app_name,
            log_level=log_level,
            data_dir=data_dir,
            supabase_url=supabase_url,
            supabase_anon_key=supabase_anon_key,
            access_token=access_token,
            tasks_table=tasks_table,
            remote_connect_timeout_seconds=max(0.1, connect_timeout),
            remote_read_timeout_seconds=max(0.1, read_timeout),
            user_id=user_id,
            offline=offline,
        )


SETTINGS = Settings.from_env()


def get_settings() -> Settings:
    return SETTINGS
