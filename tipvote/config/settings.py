"""Application settings for the settlement job and the vote aggregator.

Environment variables are loaded from a ``.env`` file using ``python-dotenv``
and exposed through a Pydantic settings object.
"""

from __future__ import annotations

import os

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field

# Load environment variables from a .env file if present
load_dotenv()

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------
DEFAULT_DB_PATH = os.path.join("data", "tipvote.sqlite3")
DEFAULT_VOTE_READ_ATTEMPTS = 3
DEFAULT_VOTE_BACKOFF_SECONDS = 0.05
DEFAULT_SETTLEMENT_LOOKBACK_MINUTES = 10


class Settings(BaseModel):
    """Immutable settings object used across the application."""

    db_path: str = DEFAULT_DB_PATH
    vote_read_attempts: int = Field(DEFAULT_VOTE_READ_ATTEMPTS, ge=1)
    vote_backoff_seconds: float = Field(DEFAULT_VOTE_BACKOFF_SECONDS, ge=0)
    settlement_lookback_minutes: int = Field(DEFAULT_SETTLEMENT_LOOKBACK_MINUTES, ge=1)

    model_config = ConfigDict(frozen=True)


def _env_number(name: str, default: float, cast: type) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return cast(raw.strip())
    except ValueError:
        raise RuntimeError(f"{name} must be a number, got {raw!r}") from None


def _build_settings() -> Settings:
    """Construct the ``Settings`` instance based on environment variables."""

    try:
        return Settings(
            db_path=os.getenv("TIPVOTE_DB_PATH") or DEFAULT_DB_PATH,
            vote_read_attempts=_env_number(
                "TIPVOTE_VOTE_READ_ATTEMPTS", DEFAULT_VOTE_READ_ATTEMPTS, int
            ),
            vote_backoff_seconds=_env_number(
                "TIPVOTE_VOTE_BACKOFF_SECONDS", DEFAULT_VOTE_BACKOFF_SECONDS, float
            ),
            settlement_lookback_minutes=_env_number(
                "TIPVOTE_SETTLEMENT_LOOKBACK_MINUTES", DEFAULT_SETTLEMENT_LOOKBACK_MINUTES, int
            ),
        )
    except ValueError as exc:
        raise RuntimeError(f"Invalid tipvote settings: {exc}") from exc


# Public settings instance
settings = _build_settings()
