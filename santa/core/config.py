import os
from dataclasses import dataclass
from dotenv import load_dotenv

load_dotenv()


@dataclass(frozen=True)
class Settings:
    database_url: str
    log_level: str
    log_path: str
    max_attempts: int


def _positive_int(name: str, raw: str) -> int:
    try:
        value = int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}.") from None
    if value < 1:
        raise ValueError(f"{name} must be a positive integer, got {value}.")
    return value


def load_settings() -> Settings:
    database_url = os.getenv("DATABASE_URL", "sqlite+pysqlite:///santa.db")
    log_level = os.getenv("LOG_LEVEL", "INFO")
    log_path = os.getenv("LOG_PATH", "logs/santa.log")
    max_attempts = _positive_int(
        "ASSIGNMENT_MAX_ATTEMPTS", os.getenv("ASSIGNMENT_MAX_ATTEMPTS", "1000")
    )

    if not database_url:
        raise ValueError("DATABASE_URL is required. Set it in the environment or .env file.")

    return Settings(
        database_url=database_url,
        log_level=log_level,
        log_path=log_path,
        max_attempts=max_attempts,
    )
