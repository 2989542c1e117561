"""Shared fixtures and helpers for the game tests."""
import random

import pytest

from classes import Session
from database import GameDatabase
from levels import LevelCatalog, LevelDefinition
from timers import Scheduler


class EventLog:
    """Listener that remembers every event it receives."""

    def __init__(self):
        self.events = []

    def __call__(self, event):
        self.events.append(event)

    def of_type(self, event_type):
        return [event for event in self.events if event.type is event_type]

    def clear(self):
        self.events.clear()


def ids_of(session, symbol):
    """Card ids holding symbol, in deck order."""
    return [card.card_id for card in session.state.cards if card.symbol == symbol]


def symbols_of(session):
    """Distinct symbols of the session's deck, in first-seen order."""
    seen = []
    for card in session.state.cards:
        if card.symbol not in seen:
            seen.append(card.symbol)
    return seen


def solve(session):
    """Match every pair without a single mistake."""
    for symbol in symbols_of(session):
        first, second = ids_of(session, symbol)
        session.flip(first)
        session.flip(second)


@pytest.fixture
def scheduler():
    return Scheduler()


@pytest.fixture
def rng():
    return random.Random(1234)


@pytest.fixture
def catalog():
    return LevelCatalog(random.Random(42))


@pytest.fixture
def small_level():
    """Two pairs, 5 moves, 15 seconds: the shape of level 1."""
    return LevelDefinition(symbols=("A", "B"), max_moves=5, time_limit_seconds=15, columns=2)


@pytest.fixture
def events():
    return EventLog()


@pytest.fixture
def outcomes():
    return []


@pytest.fixture
def make_session(scheduler, rng, events, outcomes):
    """Factory for started sessions wired to the shared scheduler and logs."""
    def factory(level, relax_mode=False, level_index=0, start=True):
        session = Session(level_index, level, relax_mode, scheduler=scheduler, rng=rng,
                          listener=events, on_outcome=outcomes.append)
        if start:
            session.start()
        return session
    return factory


@pytest.fixture
def db():
    database = GameDatabase(":memory:")
    yield database
    database.close()
