"""Runtime configuration loaded from the environment (and an optional .env file)."""

import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv(override=True)

DEFAULT_DB_PATH = Path(__file__).parent / "clinic" / "procedure_scheduler.db"

DB_TIMEOUT_SECONDS = float(os.environ.get("SCHEDULER_DB_TIMEOUT", "5.0"))
LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")


def get_db_path() -> Path:
    """Path of the SQLite database file.

    Read on every call so the location can be switched at runtime (tests point
    it at a temporary file).
    """
    return Path(os.environ.get("SCHEDULER_DB_PATH", DEFAULT_DB_PATH))
