"""Shared test fixtures for umpire tests."""

from __future__ import annotations

import pytest

from umpire.engine.spell_engine import SpellEngine
from umpire.state.rebowl_policy import RebowlPolicy
from umpire.storage.kv_store import JsonFileStore, MemoryStore, SpellStore


@pytest.fixture
def memory_store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def json_store(tmp_path) -> JsonFileStore:
    return JsonFileStore(tmp_path / "spell.json")


@pytest.fixture
def engine(memory_store: MemoryStore) -> SpellEngine:
    """Default policy: wides and no-balls re-bowled."""
    return SpellEngine(store=SpellStore(memory_store))


@pytest.fixture
def counting_engine() -> SpellEngine:
    """Wides and no-balls count as balls; in-memory only."""
    return SpellEngine(policy=RebowlPolicy(wides_consume_ball=True, no_balls_consume_ball=True))
