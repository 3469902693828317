"""Project-level configuration and path helpers."""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Union

PROJECT_ROOT = Path(__file__).resolve().parent.parent
DATA_DIR = PROJECT_ROOT / "data"
LOGS_DIR = PROJECT_ROOT / "logs"
DEFAULT_DB_PATH = DATA_DIR / "team_chat.db"
DEFAULT_LOG_PATH = LOGS_DIR / "app.log"

DATA_DIR.mkdir(parents=True, exist_ok=True)
LOGS_DIR.mkdir(parents=True, exist_ok=True)


PathLike = Union[str, Path]


def resolve_db_path(env_value: PathLike | None = None) -> PathLike:
    """Resolve DATABASE_URL to an absolute path."""
    if not env_value:
        return DEFAULT_DB_PATH

    if str(env_value) == ":memory:":
        return ":memory:"

    candidate = Path(env_value)
    return candidate if candidate.is_absolute() else PROJECT_ROOT / candidate


@dataclass
class InsightSettings:
    """Tuning for the deferred insight analysis."""

    delay_seconds: float = 1.0
    # Placeholder ambient signal, not a business rule.
    general_probability: float = 0.3
    random_seed: int | None = None

    @classmethod
    def from_env(cls) -> "InsightSettings":
        """Build settings from INSIGHT_* / GENERAL_INSIGHT_* environment variables."""
        seed = os.getenv("INSIGHT_RANDOM_SEED")
        return cls(
            delay_seconds=float(os.getenv("INSIGHT_DELAY_SECONDS", "1.0")),
            general_probability=float(os.getenv("GENERAL_INSIGHT_PROBABILITY", "0.3")),
            random_seed=int(seed) if seed else None,
        )
