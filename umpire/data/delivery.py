"""
Delivery data model.

A delivery is the smallest event the umpire records: one ball bowled,
classified as legal, wide, no-ball or wicket.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any


class DeliveryKind(Enum):
    LEGAL = "legal"
    WIDE = "wide"
    NO_BALL = "no-ball"
    WICKET = "wicket"

    @property
    def is_extra(self) -> bool:
        return self in (DeliveryKind.WIDE, DeliveryKind.NO_BALL)


# Short marks for the over's delivery sequence
DELIVERY_SYMBOLS: dict[DeliveryKind, str] = {
    DeliveryKind.LEGAL: "•",
    DeliveryKind.WIDE: "W",
    DeliveryKind.NO_BALL: "NB",
    DeliveryKind.WICKET: "X",
}


@dataclass(frozen=True)
class DeliveryRecord:
    """A single delivery within the current over."""

    kind: DeliveryKind
    sequence_number: int  # 1-based position in the over, extras included

    def __post_init__(self) -> None:
        if not isinstance(self.kind, DeliveryKind):
            raise ValueError(f"Unknown delivery kind: {self.kind!r}")
        if isinstance(self.sequence_number, bool) or not isinstance(self.sequence_number, int):
            raise ValueError(f"Sequence number must be an int, got {self.sequence_number!r}")
        if self.sequence_number < 1:
            raise ValueError(f"Sequence number must be >= 1, got {self.sequence_number}")

    @property
    def symbol(self) -> str:
        return DELIVERY_SYMBOLS[self.kind]

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.kind.value, "ballNumber": self.sequence_number}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "DeliveryRecord":
        """Rebuild a record from its stored form.

        Raises ValueError (or KeyError/TypeError) on malformed input; callers
        loading persisted data treat any of these as "use the default".
        """
        return cls(kind=DeliveryKind(data["type"]), sequence_number=data["ballNumber"])
