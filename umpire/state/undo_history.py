"""
Undo History.

Bounded log of pre-mutation snapshots. Each mutating action pushes the
state it is about to change; undo pops the newest entry and hands its
snapshot back for restoring. Once full, the oldest entry is dropped.
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterator, Optional

from umpire.config import HISTORY_LIMIT
from umpire.data.delivery import DeliveryKind
from umpire.state.scoring_state import ScoringState

logger = logging.getLogger(__name__)


class HistoryAction(Enum):
    DELIVERY = "delivery"
    WICKET = "wicket"
    RESET = "reset"


@dataclass(frozen=True)
class HistoryEntry:
    """One undoable action and the state as it was before it."""

    action: HistoryAction
    snapshot: ScoringState
    delivery_kind: Optional[DeliveryKind] = None

    @classmethod
    def capture(
        cls,
        action: HistoryAction,
        state: ScoringState,
        delivery_kind: Optional[DeliveryKind] = None,
    ) -> "HistoryEntry":
        """Build an entry holding its own copy of ``state``."""
        return cls(action=action, snapshot=state.copy(), delivery_kind=delivery_kind)

    def restore(self) -> ScoringState:
        """A fresh copy of the snapshot, so the entry stays unaliased."""
        return self.snapshot.copy()

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.action.value,
            "deliveryType": self.delivery_kind.value if self.delivery_kind else None,
            "snapshot": self.snapshot.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "HistoryEntry":
        kind = data.get("deliveryType")
        return cls(
            action=HistoryAction(data["type"]),
            snapshot=ScoringState.from_dict(data["snapshot"]),
            delivery_kind=DeliveryKind(kind) if kind is not None else None,
        )


class UndoHistory:
    """FIFO-evicting stack of HistoryEntry objects."""

    def __init__(self, limit: int = HISTORY_LIMIT):
        if limit < 1:
            raise ValueError(f"History limit must be >= 1, got {limit}")
        self._entries: deque[HistoryEntry] = deque(maxlen=limit)

    @property
    def limit(self) -> int:
        return self._entries.maxlen or 0

    def __len__(self) -> int:
        return len(self._entries)

    def __bool__(self) -> bool:
        return bool(self._entries)

    def __iter__(self) -> Iterator[HistoryEntry]:
        return iter(self._entries)

    def push(self, entry: HistoryEntry) -> None:
        if len(self._entries) == self.limit:
            logger.debug("History full (%d), evicting oldest %s", self.limit, self._entries[0].action.value)
        self._entries.append(entry)

    def pop(self) -> Optional[HistoryEntry]:
        """Remove and return the newest entry, or None when empty."""
        if not self._entries:
            return None
        return self._entries.pop()

    def peek(self) -> Optional[HistoryEntry]:
        return self._entries[-1] if self._entries else None

    def clear(self) -> None:
        self._entries.clear()

    def to_list(self) -> list[dict[str, Any]]:
        return [e.to_dict() for e in self._entries]

    @classmethod
    def from_list(cls, raw: Any, limit: int = HISTORY_LIMIT) -> "UndoHistory":
        """Rebuild from stored form, keeping the newest ``limit`` entries.

        Raises ValueError on malformed input.
        """
        if not isinstance(raw, list):
            raise ValueError(f"History must be a list, got {type(raw).__name__}")
        history = cls(limit)
        for item in raw:
            if not isinstance(item, dict):
                raise ValueError(f"History entry must be an object, got {item!r}")
            history.push(HistoryEntry.from_dict(item))
        return history
