# src/taskboard/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

Design goals:
- One Settings object for the whole app (normal "settings layer").
- Nothing required at import time; every key has a default.
- Components get plain values from the composition root, never read env themselves.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

ENV_PREFIX = "TASKBOARD"


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


load_dotenv(override=False)


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


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

    # ---- Local data paths (ignored by git) ----
    data_dir: Path
    db_path: Path

    # ---- History ----
    history_max_size: int

    # ---- Confirmation API (mock backend) ----
    confirm_latency_seconds: float
    confirm_failure_rate: float
    rollback_strategy: str

    # ---- Realtime simulator ----
    sync_enabled: bool
    sync_min_interval_seconds: float
    sync_max_interval_seconds: float

    # ---- Notifications ----
    notification_limit: int

    @staticmethod
    def from_env() -> "Settings":
        app_name = _env(_k("APP_NAME"), "taskboard")
        log_level = _env(_k("LOG_LEVEL"), "INFO")

        data_dir = _env_path(_k("DATA_DIR"), Path(".local/taskboard"))
        db_path = _env_path(_k("DB_PATH"), data_dir / "taskboard.sqlite3")

        history_max_size = max(1, _env_int(_k("HISTORY_MAX_SIZE"), 50))

        confirm_latency_seconds = max(0.0, _env_float(_k("CONFIRM_LATENCY_SECONDS"), 2.0))
        confirm_failure_rate = min(1.0, max(0.0, _env_float(_k("CONFIRM_FAILURE_RATE"), 0.1)))
        rollback_strategy = _env(_k("ROLLBACK_STRATEGY"), "scoped").strip().lower() or "scoped"

        sync_enabled = _env_bool(_k("SYNC_ENABLED"), True)
        sync_min = max(0.0, _env_float(_k("SYNC_MIN_INTERVAL_SECONDS"), 15.0))
        sync_max = max(sync_min, _env_float(_k("SYNC_MAX_INTERVAL_SECONDS"), 25.0))

        notification_limit = max(1, _env_int(_k("NOTIFICATION_LIMIT"), 20))

        return Settings(
            app_name=app_name,
            log_level=log_level,
            data_dir=data_dir,
            db_path=db_path,
            history_max_size=history_max_size,
            confirm_latency_seconds=confirm_latency_seconds,
            confirm_failure_rate=confirm_failure_rate,
            rollback_strategy=rollback_strategy,
            sync_enabled=sync_enabled,
            sync_min_interval_seconds=sync_min,
            sync_max_interval_seconds=sync_max,
            notification_limit=notification_limit,
        )


SETTINGS = Settings.from_env()


def get_settings() -> Settings:
    return SETTINGS
