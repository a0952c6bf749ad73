"""Tests for the bounded undo history."""

from __future__ import annotations

import pytest

from umpire.data.delivery import DeliveryKind, DeliveryRecord
from umpire.state.scoring_state import ScoringState
from umpire.state.undo_history import HistoryAction, HistoryEntry, UndoHistory


def make_entry(balls: int, action: HistoryAction = HistoryAction.DELIVERY) -> HistoryEntry:
    state = ScoringState(
        balls_in_over=balls,
        current_over_deliveries=[DeliveryRecord(DeliveryKind.LEGAL, i) for i in range(1, balls + 1)],
    )
    return HistoryEntry.capture(action, state, DeliveryKind.LEGAL)


class TestUndoHistory:
    def test_starts_empty(self):
        history = UndoHistory()
        assert len(history) == 0
        assert history.pop() is None
        assert history.peek() is None

    def test_pop_is_lifo(self):
        history = UndoHistory()
        history.push(make_entry(1))
        history.push(make_entry(2))
        assert history.pop().snapshot.balls_in_over == 2
        assert history.pop().snapshot.balls_in_over == 1
        assert history.pop() is None

    def test_never_exceeds_ten(self):
        history = UndoHistory()
        for i in range(6):
            history.push(make_entry(i))
        for i in range(6):
            history.push(make_entry(i))
        assert len(history) == 10
        assert history.limit == 10

    def test_eleventh_push_evicts_oldest(self):
        history = UndoHistory(limit=10)
        entries = [HistoryEntry.capture(HistoryAction.DELIVERY, ScoringState(completed_overs=i)) for i in range(11)]
        for e in entries:
            history.push(e)
        overs = [e.snapshot.completed_overs for e in history]
        assert overs == list(range(1, 11))

    def test_ten_pops_empty_a_full_history(self):
        history = UndoHistory()
        for i in range(15):
            history.push(HistoryEntry.capture(HistoryAction.DELIVERY, ScoringState(completed_overs=i)))
        popped = [history.pop() for _ in range(10)]
        assert all(p is not None for p in popped)
        assert len(history) == 0
        assert history.pop() is None

    def test_clear(self):
        history = UndoHistory()
        history.push(make_entry(1))
        history.clear()
        assert not history

    def test_invalid_limit(self):
        with pytest.raises(ValueError):
            UndoHistory(limit=0)


class TestHistoryEntry:
    def test_snapshot_is_not_aliased(self):
        live = ScoringState(balls_in_over=1, current_over_deliveries=[DeliveryRecord(DeliveryKind.LEGAL, 1)])
        entry = HistoryEntry.capture(HistoryAction.DELIVERY, live, DeliveryKind.LEGAL)

        live.current_over_deliveries.append(DeliveryRecord(DeliveryKind.WIDE, 2))
        live.balls_in_over = 5

        assert entry.snapshot.balls_in_over == 1
        assert len(entry.snapshot.current_over_deliveries) == 1

    def test_restore_returns_fresh_copy(self):
        entry = make_entry(2)
        restored = entry.restore()
        restored.current_over_deliveries.clear()
        assert len(entry.snapshot.current_over_deliveries) == 2

    def test_stored_form(self):
        entry = make_entry(1, HistoryAction.WICKET)
        data = entry.to_dict()
        assert data["type"] == "wicket"
        assert data["deliveryType"] == "legal"
        assert data["snapshot"]["balls"] == 1

        rebuilt = HistoryEntry.from_dict(data)
        assert rebuilt == entry

    def test_reset_entry_has_no_delivery_kind(self):
        entry = HistoryEntry.capture(HistoryAction.RESET, ScoringState(wickets=3))
        data = entry.to_dict()
        assert data["deliveryType"] is None
        assert HistoryEntry.from_dict(data).delivery_kind is None

    def test_from_list_keeps_newest(self):
        raw = [HistoryEntry.capture(HistoryAction.DELIVERY, ScoringState(completed_overs=i)).to_dict() for i in range(12)]
        history = UndoHistory.from_list(raw, limit=10)
        assert len(history) == 10
        assert history.peek().snapshot.completed_overs == 11

    def test_from_list_rejects_garbage(self):
        with pytest.raises(ValueError):
            UndoHistory.from_list({"type": "delivery"})
