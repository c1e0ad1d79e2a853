import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

DEFAULT_DATABASE_URL = "sqlite:///data/jobly.db"


def load_env() -> None:
    """Load .env from the working directory if present."""
    env_path = Path.cwd() / ".env"
    if env_path.exists():
        load_dotenv(dotenv_path=env_path)


@dataclass(frozen=True)
class Settings:
    database_url: str = DEFAULT_DATABASE_URL
    log_level: str = "INFO"
    log_dir: Optional[Path] = None  # file logging only when set


def get_settings() -> Settings:
    """
    Read settings from the environment.

    JOBLY_DATABASE_URL, JOBLY_LOG_LEVEL and JOBLY_LOG_DIR override the
    defaults. Call load_env() first to pick up a .env file.
    """
    log_dir = os.getenv("JOBLY_LOG_DIR")
    return Settings(
        database_url=os.getenv("JOBLY_DATABASE_URL") or DEFAULT_DATABASE_URL,
        log_level=(os.getenv("JOBLY_LOG_LEVEL") or "INFO").upper(),
        log_dir=Path(log_dir) if log_dir else None,
    )
