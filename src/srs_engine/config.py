"""Runtime settings read from the environment."""
import os
from dataclasses import dataclass
from pathlib import Path

DEFAULT_DB_PATH = str(Path.home() / ".srs_engine" / "srs.db")
DEFAULT_DUE_LIMIT = 50


@dataclass
class Settings:
    db_path: str = DEFAULT_DB_PATH
    learner_id: str = "learner"
    due_limit: int = DEFAULT_DUE_LIMIT
    log_level: str = "WARNING"


def _int_env(environ, name: str, default: int) -> int:
    raw = environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None
    if value < 1:
        raise ValueError(f"{name} must be at least 1, got {value}")
    return value


def load_settings(environ=None) -> Settings:
    """Build Settings from SRS_ENGINE_* environment variables."""
    environ = os.environ if environ is None else environ
    return Settings(
        db_path=environ.get("SRS_ENGINE_DB") or DEFAULT_DB_PATH,
        learner_id=environ.get("SRS_ENGINE_LEARNER") or environ.get("USER") or "learner",
        due_limit=_int_env(environ, "SRS_ENGINE_DUE_LIMIT", DEFAULT_DUE_LIMIT),
        log_level=(environ.get("SRS_ENGINE_LOG_LEVEL") or "WARNING").upper(),
    )
