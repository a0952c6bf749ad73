"""
Key-value persistence for the spell.

The engine never talks to disk directly. It hands its state to a
SpellStore, which writes one key per logical field into any object with
``get(key, default)`` / ``set(key, value)``. Values are JSON-serialisable.

Failures never reach the caller: a bad read falls back to the field's
default, a failed write is logged and the in-memory state stays
authoritative for the session.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Optional, Protocol

from umpire.config import BALLS_PER_OVER, HISTORY_LIMIT, MAX_WICKETS
from umpire.state.rebowl_policy import RebowlPolicy
from umpire.state.scoring_state import ScoringState, parse_deliveries
from umpire.state.undo_history import UndoHistory

logger = logging.getLogger(__name__)

# Store keys, one per field
KEY_BALLS = "cricket-balls"
KEY_OVERS = "cricket-overs"
KEY_WICKETS = "cricket-wickets"
KEY_WIDES_REBOWLED = "wides-rebowled"
KEY_NOBALLS_REBOWLED = "noballs-rebowled"
KEY_DELIVERIES = "current-over-deliveries"
KEY_HISTORY = "action-history"

_MISSING = object()


class KeyValueStore(Protocol):
    def get(self, key: str, default: Any = None) -> Any: ...

    def set(self, key: str, value: Any) -> None: ...


class MemoryStore:
    """Dict-backed store. Nothing survives the process."""

    def __init__(self, initial: Optional[dict[str, Any]] = None):
        self._data: dict[str, Any] = dict(initial or {})

    def get(self, key: str, default: Any = None) -> Any:
        return self._data.get(key, default)

    def set(self, key: str, value: Any) -> None:
        # Round-trip so stored values behave like the file store's
        self._data[key] = json.loads(json.dumps(value))

    def keys(self) -> list[str]:
        return list(self._data)


class JsonFileStore:
    """All keys in one JSON object on disk, rewritten on every set."""

    def __init__(self, path: Path | str):
        self.path = Path(path)
        self._data = self._read()

    def _read(self) -> dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path) as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning("Failed to read store %s, starting empty: %s", self.path, e)
            return {}
        if not isinstance(data, dict):
            logger.warning("Store %s is not a JSON object, starting empty", self.path)
            return {}
        return data

    def get(self, key: str, default: Any = None) -> Any:
        return self._data.get(key, default)

    def set(self, key: str, value: Any) -> None:
        """Write ``value`` under ``key``. Raises on serialisation or I/O failure."""
        updated = dict(self._data)
        updated[key] = value
        payload = json.dumps(updated, indent=2)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "w") as f:
            f.write(payload)
        self._data = updated


class SpellStore:
    """Per-field load/save of the spell on top of a KeyValueStore."""

    def __init__(self, store: KeyValueStore):
        self._store = store

    def _load(self, key: str, parse, default):
        raw = self._store.get(key, _MISSING)
        if raw is _MISSING:
            return default
        try:
            return parse(raw)
        except (ValueError, KeyError, TypeError) as e:
            logger.debug("Ignoring malformed %r: %s", key, e)
            return default

    def load_state(self) -> ScoringState:
        return ScoringState(
            balls_in_over=self._load(KEY_BALLS, lambda v: _counter(v, BALLS_PER_OVER), 0),
            completed_overs=self._load(KEY_OVERS, lambda v: _counter(v, None), 0),
            wickets=self._load(KEY_WICKETS, lambda v: _counter(v, MAX_WICKETS), 0),
            current_over_deliveries=self._load(KEY_DELIVERIES, parse_deliveries, []),
        )

    def load_policy(self, default: RebowlPolicy = RebowlPolicy()) -> RebowlPolicy:
        # Stored as "re-bowled" flags, the inverse of consumes-a-ball
        wides_rebowled = self._load(KEY_WIDES_REBOWLED, _flag, not default.wides_consume_ball)
        noballs_rebowled = self._load(KEY_NOBALLS_REBOWLED, _flag, not default.no_balls_consume_ball)
        return RebowlPolicy(
            wides_consume_ball=not wides_rebowled,
            no_balls_consume_ball=not noballs_rebowled,
        )

    def load_history(self, limit: int = HISTORY_LIMIT) -> UndoHistory:
        return self._load(
            KEY_HISTORY,
            lambda v: UndoHistory.from_list(v, limit),
            UndoHistory(limit),
        )

    def save(self, state: ScoringState, policy: RebowlPolicy, history: UndoHistory) -> bool:
        """Write every field. Returns False if any write failed."""
        fields = {
            KEY_BALLS: state.balls_in_over,
            KEY_OVERS: state.completed_overs,
            KEY_WICKETS: state.wickets,
            KEY_DELIVERIES: [d.to_dict() for d in state.current_over_deliveries],
            KEY_WIDES_REBOWLED: not policy.wides_consume_ball,
            KEY_NOBALLS_REBOWLED: not policy.no_balls_consume_ball,
            KEY_HISTORY: history.to_list(),
        }
        ok = True
        for key, value in fields.items():
            try:
                self._store.set(key, value)
            except Exception as e:
                logger.warning("Failed to store value for key %r: %s", key, e)
                ok = False
        return ok


def _counter(value: Any, high: Optional[int]) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"Expected an integer, got {value!r}")
    if value < 0 or (high is not None and value > high):
        raise ValueError(f"Counter {value} out of range")
    return value


def _flag(value: Any) -> bool:
    if not isinstance(value, bool):
        raise ValueError(f"Expected a boolean, got {value!r}")
    return value
