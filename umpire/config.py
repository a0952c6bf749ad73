"""
Configuration management for the Umpire spell counter.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()


class OverPhase(Enum):
    IN_PROGRESS = "in_progress"
    AWAITING_CONFIRMATION = "awaiting_confirmation"
    CONFIRMATION_DECLINED = "confirmation_declined"


# Laws-of-cricket constants
BALLS_PER_OVER = 6
MAX_WICKETS = 10

# Undo depth
HISTORY_LIMIT = 10


def _env_flag(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class StorageConfig:
    """Where the spell is persisted between sessions."""
    store_path: Path = field(default_factory=lambda: Path("umpire_state.json"))
    persist: bool = True


@dataclass(frozen=True)
class RebowlConfig:
    """First-run re-bowl rules. Stored settings win once they exist."""
    wides_rebowled: bool = True
    no_balls_rebowled: bool = True


@dataclass
class UmpireConfig:
    """Top-level configuration."""
    storage: StorageConfig = field(default_factory=StorageConfig)
    rebowl: RebowlConfig = field(default_factory=RebowlConfig)

    history_limit: int = HISTORY_LIMIT
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "UmpireConfig":
        """Load configuration from environment variables."""
        return cls(
            storage=StorageConfig(
                store_path=Path(os.getenv("UMPIRE_STORE_PATH", "umpire_state.json")),
                persist=_env_flag("UMPIRE_PERSIST", True),
            ),
            rebowl=RebowlConfig(
                wides_rebowled=_env_flag("UMPIRE_WIDES_REBOWLED", True),
                no_balls_rebowled=_env_flag("UMPIRE_NOBALLS_REBOWLED", True),
            ),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
        )
