"""
Spell Engine.

Owns the ScoringState, the RebowlPolicy and the UndoHistory for one
bowling spell and is the only thing that mutates them. Every trigger
(record, undo, confirm, decline, reset, policy change) runs to
completion, persists the result and returns a SpellSnapshot for display.

Over lifecycle:

    IN_PROGRESS --6th ball--> AWAITING_CONFIRMATION --confirm--> IN_PROGRESS
                                  |                                  ^
                               decline                               |
                                  v                                  |
                           CONFIRMATION_DECLINED --------confirm-----+

Deliveries are only accepted while IN_PROGRESS. Undo always returns to
IN_PROGRESS, even when the restored over already has six balls; the
next delivery then re-arms the prompt. The ball count never passes six.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from umpire.config import BALLS_PER_OVER, HISTORY_LIMIT, MAX_WICKETS, OverPhase
from umpire.data.delivery import DeliveryKind, DeliveryRecord
from umpire.state.rebowl_policy import RebowlPolicy
from umpire.state.scoring_state import ScoringState
from umpire.state.undo_history import HistoryAction, HistoryEntry, UndoHistory
from umpire.storage.kv_store import SpellStore

logger = logging.getLogger(__name__)


class ActionStatus(Enum):
    IDLE = "idle"
    RECORDED = "recorded"
    OVER_CONFIRMED = "over_confirmed"
    DECLINED = "declined"
    UNDONE = "undone"
    RESET = "reset"
    POLICY_UPDATED = "policy_updated"
    # Benign no-ops
    BLOCKED = "blocked"
    ALL_OUT = "all_out"
    NOTHING_TO_UNDO = "nothing_to_undo"
    NOT_READY = "not_ready"

    @property
    def is_noop(self) -> bool:
        return self in (
            ActionStatus.BLOCKED,
            ActionStatus.ALL_OUT,
            ActionStatus.NOTHING_TO_UNDO,
            ActionStatus.NOT_READY,
        )


@dataclass(frozen=True)
class SpellSnapshot:
    """Read-only view of the spell after a trigger."""

    balls_in_over: int
    completed_overs: int
    wickets: int
    deliveries: tuple[DeliveryRecord, ...]
    phase: OverPhase
    history_depth: int
    policy: RebowlPolicy
    status: ActionStatus = ActionStatus.IDLE
    delivery_kind: Optional[DeliveryKind] = None
    undone_action: Optional[HistoryAction] = None
    over_summary: dict[str, int] = field(default_factory=dict)

    @property
    def over_complete(self) -> bool:
        """True while the confirmation prompt should be showing."""
        return self.phase == OverPhase.AWAITING_CONFIRMATION

    @property
    def can_record(self) -> bool:
        return self.phase == OverPhase.IN_PROGRESS

    @property
    def can_undo(self) -> bool:
        return self.history_depth > 0

    @property
    def balls_remaining(self) -> int:
        return BALLS_PER_OVER - self.balls_in_over

    @property
    def wickets_remaining(self) -> int:
        return MAX_WICKETS - self.wickets

    @property
    def overs_notation(self) -> str:
        return f"{self.completed_overs}.{self.balls_in_over}"

    @property
    def sequence(self) -> str:
        return " ".join(d.symbol for d in self.deliveries)

    @property
    def message(self) -> str:
        """Short feedback line for the last trigger."""
        if self.status == ActionStatus.RECORDED:
            if self.over_complete:
                return "Over complete!"
            return _delivery_message(self.delivery_kind, self.policy)
        if self.status == ActionStatus.UNDONE:
            return f"{self.undone_action.value.capitalize()} undone"
        return _STATUS_MESSAGES.get(self.status, "")


_STATUS_MESSAGES = {
    ActionStatus.IDLE: "",
    ActionStatus.OVER_CONFIRMED: "Next over",
    ActionStatus.DECLINED: "Over not confirmed",
    ActionStatus.RESET: "Counters reset",
    ActionStatus.POLICY_UPDATED: "Settings updated",
    ActionStatus.BLOCKED: "Over complete, confirm or undo first",
    ActionStatus.ALL_OUT: "All out, no more wickets",
    ActionStatus.NOTHING_TO_UNDO: "Nothing to undo",
    ActionStatus.NOT_READY: "Over not complete",
}


def _delivery_message(kind: Optional[DeliveryKind], policy: RebowlPolicy) -> str:
    if kind == DeliveryKind.WICKET:
        return "Wicket!"
    if kind == DeliveryKind.WIDE:
        return "Wide (re-bowled)" if not policy.consumes_ball(kind) else "Wide"
    if kind == DeliveryKind.NO_BALL:
        return "No-ball (re-bowled)" if not policy.consumes_ball(kind) else "No-ball"
    return "Legal delivery"


class SpellEngine:
    """Scoring state machine for a single bowling spell.

    Pass a SpellStore to load the previous session and persist after
    every mutation; without one the engine lives in memory only.
    """

    def __init__(
        self,
        store: Optional[SpellStore] = None,
        policy: Optional[RebowlPolicy] = None,
        history_limit: int = HISTORY_LIMIT,
    ):
        self._store = store
        if store is not None:
            self._state = store.load_state()
            self._policy = store.load_policy(policy or RebowlPolicy())
            self._history = store.load_history(history_limit)
        else:
            self._state = ScoringState()
            self._policy = policy or RebowlPolicy()
            self._history = UndoHistory(history_limit)

        # A restored full over re-shows the prompt
        self._phase = (
            OverPhase.AWAITING_CONFIRMATION
            if self._state.is_over_complete
            else OverPhase.IN_PROGRESS
        )
        logger.debug(
            "Spell loaded at %s, %d wickets, %d undo entries",
            self._state.overs_notation, self._state.wickets, len(self._history),
        )

    @property
    def state(self) -> ScoringState:
        """A copy of the live state; mutate through the triggers only."""
        return self._state.copy()

    @property
    def policy(self) -> RebowlPolicy:
        return self._policy

    @property
    def phase(self) -> OverPhase:
        return self._phase

    @property
    def history_depth(self) -> int:
        return len(self._history)

    def snapshot(
        self,
        status: ActionStatus = ActionStatus.IDLE,
        delivery_kind: Optional[DeliveryKind] = None,
        undone_action: Optional[HistoryAction] = None,
    ) -> SpellSnapshot:
        return SpellSnapshot(
            balls_in_over=self._state.balls_in_over,
            completed_overs=self._state.completed_overs,
            wickets=self._state.wickets,
            deliveries=tuple(self._state.current_over_deliveries),
            phase=self._phase,
            history_depth=len(self._history),
            policy=self._policy,
            status=status,
            delivery_kind=delivery_kind,
            undone_action=undone_action,
            over_summary=self._state.over_summary(),
        )

    # ── Delivery Recorder ────────────────────────────────────────────

    def record_delivery(self, kind: DeliveryKind) -> SpellSnapshot:
        """Record one delivery.

        No-op with BLOCKED while the over awaits confirmation, and with
        ALL_OUT for a wicket once ten have fallen.
        """
        if self._phase != OverPhase.IN_PROGRESS:
            logger.warning("Ignoring %s: over complete, awaiting confirmation", kind.value)
            return self.snapshot(ActionStatus.BLOCKED, delivery_kind=kind)
        if kind == DeliveryKind.WICKET and self._state.wickets >= MAX_WICKETS:
            logger.warning("Ignoring wicket: already %d down", self._state.wickets)
            return self.snapshot(ActionStatus.ALL_OUT, delivery_kind=kind)

        action = HistoryAction.WICKET if kind == DeliveryKind.WICKET else HistoryAction.DELIVERY
        self._history.push(HistoryEntry.capture(action, self._state, kind))

        self._state.current_over_deliveries.append(
            DeliveryRecord(kind=kind, sequence_number=self._state.next_sequence_number)
        )
        if kind == DeliveryKind.WICKET:
            self._state.wickets += 1
        if self._policy.consumes_ball(kind):
            self._state.balls_in_over = min(self._state.balls_in_over + 1, BALLS_PER_OVER)

        if self._state.balls_in_over >= BALLS_PER_OVER:
            self._phase = OverPhase.AWAITING_CONFIRMATION
            logger.info("Over %d complete, awaiting confirmation", self._state.completed_overs + 1)

        logger.info(
            "%s recorded: %s, %d wkts [%s]",
            kind.value, self._state.overs_notation, self._state.wickets, self._state.sequence,
        )
        self._persist()
        return self.snapshot(ActionStatus.RECORDED, delivery_kind=kind)

    def record_wicket(self) -> SpellSnapshot:
        return self.record_delivery(DeliveryKind.WICKET)

    def confirm_over_complete(self) -> SpellSnapshot:
        if not self._state.is_over_complete:
            logger.warning("Cannot confirm over at %s", self._state.overs_notation)
            return self.snapshot(ActionStatus.NOT_READY)

        self._state.completed_overs += 1
        self._state.balls_in_over = 0
        self._state.current_over_deliveries = []
        self._history.clear()
        self._phase = OverPhase.IN_PROGRESS

        logger.info("Over confirmed: %d overs bowled", self._state.completed_overs)
        self._persist()
        return self.snapshot(ActionStatus.OVER_CONFIRMED)

    def decline_over_complete(self) -> SpellSnapshot:
        """Dismiss the confirmation prompt. Counts are untouched and
        recording stays blocked."""
        if self._phase != OverPhase.AWAITING_CONFIRMATION:
            return self.snapshot(ActionStatus.NOT_READY)
        self._phase = OverPhase.CONFIRMATION_DECLINED
        logger.info("Over confirmation declined at %s", self._state.overs_notation)
        return self.snapshot(ActionStatus.DECLINED)

    # ── Undo / Reset ─────────────────────────────────────────────────

    def undo(self) -> SpellSnapshot:
        entry = self._history.pop()
        if entry is None:
            logger.info("Nothing to undo")
            return self.snapshot(ActionStatus.NOTHING_TO_UNDO)

        self._state = entry.restore()
        self._phase = OverPhase.IN_PROGRESS
        logger.info(
            "Undid %s: back to %s, %d wkts (%d left in history)",
            entry.action.value, self._state.overs_notation, self._state.wickets, len(self._history),
        )
        self._persist()
        return self.snapshot(
            ActionStatus.UNDONE,
            delivery_kind=entry.delivery_kind,
            undone_action=entry.action,
        )

    def reset(self) -> SpellSnapshot:
        """Zero the spell. The pre-reset state stays as the single undo entry."""
        entry = HistoryEntry.capture(HistoryAction.RESET, self._state)
        self._history.clear()
        self._history.push(entry)

        self._state = ScoringState()
        self._phase = OverPhase.IN_PROGRESS

        logger.info("Counters reset")
        self._persist()
        return self.snapshot(ActionStatus.RESET)

    # ── Settings ─────────────────────────────────────────────────────

    def set_rebowl_policy(self, wides_consume_ball: bool, no_balls_consume_ball: bool) -> SpellSnapshot:
        """Applies to deliveries recorded from now on; counts already
        made are not recomputed."""
        self._policy = RebowlPolicy(
            wides_consume_ball=wides_consume_ball,
            no_balls_consume_ball=no_balls_consume_ball,
        )
        logger.info(
            "Policy: wides %s, no-balls %s",
            self._policy.describe(DeliveryKind.WIDE).lower(),
            self._policy.describe(DeliveryKind.NO_BALL).lower(),
        )
        self._persist()
        return self.snapshot(ActionStatus.POLICY_UPDATED)

    def _persist(self) -> None:
        if self._store is None:
            return
        if not self._store.save(self._state, self._policy, self._history):
            logger.warning("Spell not fully saved; continuing with in-memory state")
