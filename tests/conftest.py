"""Shared fixtures: in-memory store, fixed clock, deterministic ids."""

import itertools
from datetime import datetime

import pytest

from gym_tracker.core.store import StoreContext
from gym_tracker.io.document_store import InMemoryDocumentStore

# A Wednesday evening, local time
FIXED_NOW = datetime(2026, 3, 11, 18, 30)


class Clock:
    """Settable clock for StoreContext."""

    def __init__(self, now: datetime = FIXED_NOW):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


def id_sequence(prefix: str):
    counter = itertools.count(1)
    return lambda: f"{prefix}{next(counter)}"


@pytest.fixture
def clock() -> Clock:
    return Clock()


@pytest.fixture
def store() -> InMemoryDocumentStore:
    return InMemoryDocumentStore(id_factory=id_sequence("doc"))


@pytest.fixture
def ctx(store, clock) -> StoreContext:
    return StoreContext(owner_id="user-1", store=store, clock=clock, id_factory=id_sequence("id"))
