from __future__ import annotations

import json
import logging
import os
from pathlib import Path

from matchimport.db.database import get_app_data_dir

DEFAULT_MAX_UPLOAD_MB = 25
DEFAULT_LOG_LEVEL = "INFO"
DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 5001

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def _get_app_settings_path() -> Path:
    return get_app_data_dir() / "settings.json"


def _read_settings() -> dict[str, object]:
    path = _get_app_settings_path()
    if not path.exists():
        return {}
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError):
        return {}
    if isinstance(data, dict):
        return data
    return {}


def _write_settings(data: dict[str, object]) -> None:
    path = _get_app_settings_path()
    path.write_text(json.dumps(data, ensure_ascii=False, indent=2), encoding="utf-8")


def _setting(env_name: str, key: str, default: object) -> object:
    env_value = os.environ.get(env_name)
    if env_value:
        return env_value
    value = _read_settings().get(key)
    return default if value in (None, "") else value


def get_max_upload_bytes() -> int:
    raw = _setting("MATCHIMPORT_MAX_UPLOAD_MB", "max_upload_mb", DEFAULT_MAX_UPLOAD_MB)
    try:
        megabytes = int(raw)
    except (TypeError, ValueError):
        megabytes = DEFAULT_MAX_UPLOAD_MB
    if megabytes <= 0:
        megabytes = DEFAULT_MAX_UPLOAD_MB
    return megabytes * 1024 * 1024


def get_log_level() -> str:
    level = str(_setting("MATCHIMPORT_LOG_LEVEL", "log_level", DEFAULT_LOG_LEVEL)).upper()
    if level not in logging.getLevelNamesMapping():
        return DEFAULT_LOG_LEVEL
    return level


def get_server_address() -> tuple[str, int]:
    host = str(_setting("MATCHIMPORT_HOST", "host", DEFAULT_HOST))
    try:
        port = int(_setting("MATCHIMPORT_PORT", "port", DEFAULT_PORT))
    except (TypeError, ValueError):
        port = DEFAULT_PORT
    return host, port


def set_max_upload_mb(megabytes: int) -> None:
    if megabytes <= 0:
        raise ValueError("Upload limit must be a positive number of megabytes.")
    settings = _read_settings()
    settings["max_upload_mb"] = megabytes
    _write_settings(settings)


def configure_logging(level: str | None = None) -> None:
    logging.basicConfig(level=level or get_log_level(), format=LOG_FORMAT)
