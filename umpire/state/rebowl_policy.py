"""Re-bowl rules for wides and no-balls."""

from __future__ import annotations

from dataclasses import dataclass

from umpire.data.delivery import DeliveryKind


@dataclass(frozen=True)
class RebowlPolicy:
    """Whether a wide or no-ball uses up one of the over's six balls.

    Both default to False: the delivery is re-bowled and the over
    still needs six ball-consuming deliveries.
    """

    wides_consume_ball: bool = False
    no_balls_consume_ball: bool = False

    def consumes_ball(self, kind: DeliveryKind) -> bool:
        if kind == DeliveryKind.WIDE:
            return self.wides_consume_ball
        if kind == DeliveryKind.NO_BALL:
            return self.no_balls_consume_ball
        return True

    def describe(self, kind: DeliveryKind) -> str:
        return "Count as ball" if self.consumes_ball(kind) else "Re-bowled"
