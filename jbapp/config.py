"""
Runtime configuration for JBApp.

Settings come from environment variables (optionally seeded from a .env
file). Only the database path, the facade address and logging are
configurable.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .env import load_env

DEFAULT_DB_PATH = "./JBApp.db"
DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 7000


@dataclass(frozen=True)
class Settings:
    """Resolved configuration values."""

    db_path: Path
    host: str
    port: int
    base_url: str
    log_level: str
    log_dir: Optional[Path]


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}")


def load_settings(read_dotenv: bool = True) -> Settings:
    """
    Build Settings from the environment.

    Args:
        read_dotenv: Load .env from the working directory first

    Returns:
        Settings instance
    """
    if read_dotenv:
        load_env()

    host = os.getenv("JBAPP_HOST", DEFAULT_HOST).strip() or DEFAULT_HOST
    port = _int_env("JBAPP_PORT", DEFAULT_PORT)
    base_url = os.getenv("JBAPP_BASE_URL", "").strip() or f"http://localhost:{port}"
    log_dir = os.getenv("JBAPP_LOG_DIR", "").strip()

    return Settings(
        db_path=Path(os.getenv("JBAPP_DB_PATH", DEFAULT_DB_PATH).strip() or DEFAULT_DB_PATH),
        host=host,
        port=port,
        base_url=base_url.rstrip("/"),
        log_level=os.getenv("JBAPP_LOG_LEVEL", "INFO").strip().upper() or "INFO",
        log_dir=Path(log_dir) if log_dir else None,
    )
