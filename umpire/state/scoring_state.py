"""
Scoring State.

The canonical counters for a bowling spell plus the delivery log of the
over in progress. Mutated only by the SpellEngine.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from umpire.config import BALLS_PER_OVER, MAX_WICKETS
from umpire.data.delivery import DeliveryKind, DeliveryRecord


@dataclass
class ScoringState:
    """Counters for the spell and the current over's deliveries.

    ``balls_in_over`` counts only ball-consuming deliveries and stops at
    BALLS_PER_OVER until the over is confirmed. ``current_over_deliveries``
    holds every delivery since the last confirmation, extras included.
    """

    balls_in_over: int = 0
    completed_overs: int = 0
    wickets: int = 0
    current_over_deliveries: list[DeliveryRecord] = field(default_factory=list)

    def copy(self) -> "ScoringState":
        """Structural copy; the delivery list is never shared."""
        return ScoringState(
            balls_in_over=self.balls_in_over,
            completed_overs=self.completed_overs,
            wickets=self.wickets,
            current_over_deliveries=list(self.current_over_deliveries),
        )

    @property
    def is_over_complete(self) -> bool:
        return self.balls_in_over >= BALLS_PER_OVER

    @property
    def balls_remaining(self) -> int:
        return BALLS_PER_OVER - self.balls_in_over

    @property
    def wickets_remaining(self) -> int:
        return MAX_WICKETS - self.wickets

    @property
    def overs_notation(self) -> str:
        """Overs as 'X.Y', e.g. '3.4' = 3 overs and 4 balls."""
        return f"{self.completed_overs}.{self.balls_in_over}"

    @property
    def next_sequence_number(self) -> int:
        return len(self.current_over_deliveries) + 1

    def count(self, kind: DeliveryKind) -> int:
        return sum(1 for d in self.current_over_deliveries if d.kind == kind)

    @property
    def extras_in_over(self) -> int:
        return sum(1 for d in self.current_over_deliveries if d.kind.is_extra)

    @property
    def sequence(self) -> str:
        return " ".join(d.symbol for d in self.current_over_deliveries)

    def over_summary(self) -> dict[str, int]:
        """Breakdown of the current over for display."""
        return {
            "total_deliveries": len(self.current_over_deliveries),
            "legal": self.count(DeliveryKind.LEGAL),
            "wides": self.count(DeliveryKind.WIDE),
            "no_balls": self.count(DeliveryKind.NO_BALL),
            "wickets": self.count(DeliveryKind.WICKET),
            "extras": self.extras_in_over,
        }

    def to_dict(self) -> dict[str, Any]:
        return {
            "balls": self.balls_in_over,
            "overs": self.completed_overs,
            "wickets": self.wickets,
            "deliveries": [d.to_dict() for d in self.current_over_deliveries],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ScoringState":
        """Rebuild a state from ``to_dict`` output.

        Raises ValueError on out-of-range counters or a malformed delivery log.
        """
        return cls(
            balls_in_over=_bounded_int(data["balls"], 0, BALLS_PER_OVER),
            completed_overs=_bounded_int(data["overs"], 0, None),
            wickets=_bounded_int(data["wickets"], 0, MAX_WICKETS),
            current_over_deliveries=parse_deliveries(data["deliveries"]),
        )


def parse_deliveries(raw: Any) -> list[DeliveryRecord]:
    """Parse a stored delivery log, checking sequence numbers run 1..n."""
    if not isinstance(raw, list):
        raise ValueError(f"Delivery log must be a list, got {type(raw).__name__}")
    deliveries = []
    for expected, item in enumerate(raw, start=1):
        if not isinstance(item, dict):
            raise ValueError(f"Delivery entry must be an object, got {item!r}")
        record = DeliveryRecord.from_dict(item)
        if record.sequence_number != expected:
            raise ValueError(
                f"Delivery sequence broken: expected {expected}, got {record.sequence_number}"
            )
        deliveries.append(record)
    return deliveries


def _bounded_int(value: Any, low: int, high: int | None) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"Expected an integer, got {value!r}")
    if value < low or (high is not None and value > high):
        raise ValueError(f"Value {value} outside [{low}, {high}]")
    return value
