import copy
import logging
import random
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Sequence

from levels import LevelCatalog, LevelDefinition
from timers import GameClock, Scheduler, TimerHandle
from shared.models import SessionOutcome

logger = logging.getLogger(__name__)

MISMATCH_DELAY_MS = 1000  # how long an unmatched pair stays face up
ADVANCE_DELAY_MS = 2000   # pause on a completed level before the next one
TICK_MS = 1000


class CardState(Enum):
    HIDDEN = "hidden"
    REVEALED = "revealed"
    MATCHED = "matched"
    # Reserved for mismatch feedback; no transition enters it yet
    ERROR = "error"


class Card:
    """
    A class representing a memory card.
    Each card has a symbol and moves HIDDEN -> REVEALED -> MATCHED, or back to HIDDEN
    after a mismatch. A matched card never changes again.
    """

    def __init__(self, symbol, card_id: int, state: CardState = CardState.HIDDEN):
        """
        Initialize a new card.

        Args:
            symbol: What the player sees when the card is face up
            card_id: Identifier, unique within the deck
            state: Initial state
        """
        self.symbol = symbol
        self.card_id = card_id
        self.state = state

    @property
    def is_hidden(self) -> bool:
        return self.state is CardState.HIDDEN

    @property
    def is_revealed(self) -> bool:
        return self.state is CardState.REVEALED

    @property
    def is_matched(self) -> bool:
        return self.state is CardState.MATCHED

    def reveal(self):
        """Turn a hidden card face up."""
        if self.is_hidden:
            self.state = CardState.REVEALED

    def hide(self):
        """Turn a revealed card face down again."""
        if self.is_revealed:
            self.state = CardState.HIDDEN

    def match(self):
        """Mark a revealed card as matched."""
        if self.is_revealed:
            self.state = CardState.MATCHED

    def __str__(self):
        return f"Card({self.symbol}, {self.state.value})"

    def __repr__(self):
        return f"Card(symbol={self.symbol!r}, card_id={self.card_id}, state={self.state})"


def generate_deck(symbols: Sequence, rng: Optional[random.Random] = None) -> List[Card]:
    """
    Build a shuffled deck holding every symbol exactly twice.

    Ids 0..2K-1 are assigned after shuffling, in deck order. All cards start hidden.

    Args:
        symbols: Distinct symbols, one per pair
        rng: Random source for the shuffle

    Returns:
        List of 2 * len(symbols) cards
    """
    if len(set(symbols)) != len(symbols):
        raise ValueError("Deck symbols must be distinct")

    rng = rng or random.Random()
    faces = list(symbols) * 2
    rng.shuffle(faces)
    return [Card(symbol, card_id=index) for index, symbol in enumerate(faces)]


class SessionPhase(Enum):
    AWAITING_INPUT = "awaiting_input"
    COMPARING = "comparing"
    LEVEL_COMPLETE = "level_complete"
    GAME_OVER = "game_over"


class GameOverReason(Enum):
    MOVES_EXCEEDED = "movesExceeded"
    TIME_UP = "timeUp"


class EventType(Enum):
    STATE_CHANGED = "stateChanged"
    FLIP = "flipSound"
    MATCH = "matchSound"
    MISMATCH = "errorSound"
    LEVEL_COMPLETE = "levelComplete"
    GAME_OVER = "gameOver"
    GAME_WON = "gameWon"


@dataclass
class GameEvent:
    """Notification sent to the presentation layer."""
    type: EventType
    payload: Dict[str, Any] = field(default_factory=dict)


Listener = Callable[[GameEvent], None]


@dataclass
class SessionState:
    """Everything that changes during one attempt at a level."""
    level_index: int
    cards: List[Card]
    move_count: int = 0
    remaining_seconds: int = 0
    elapsed_seconds: int = 0
    comparing: bool = False
    outcome_recorded: bool = False

    @classmethod
    def fresh(cls, level_index: int, level: LevelDefinition,
              rng: Optional[random.Random] = None) -> "SessionState":
        """New state for level: freshly shuffled deck, no moves, full clock."""
        return cls(
            level_index=level_index,
            cards=generate_deck(level.symbols, rng),
            remaining_seconds=level.time_limit_seconds,
        )

    def card_by_id(self, card_id) -> Optional[Card]:
        for card in self.cards:
            if card.card_id == card_id:
                return card
        return None

    def revealed_cards(self) -> List[Card]:
        return [card for card in self.cards if card.is_revealed]


def is_level_complete(state: SessionState) -> bool:
    return bool(state.cards) and all(card.is_matched for card in state.cards)


def moves_exceeded(state: SessionState, level: LevelDefinition, relax_mode: bool) -> bool:
    return not relax_mode and level.max_moves > 0 and state.move_count >= level.max_moves


def time_up(state: SessionState, relax_mode: bool) -> bool:
    return not relax_mode and state.remaining_seconds <= 0


def is_game_over(state: SessionState, level: LevelDefinition, relax_mode: bool) -> bool:
    """A failed limit ends the game unless the same move completed the level."""
    failed = moves_exceeded(state, level, relax_mode) or time_up(state, relax_mode)
    return failed and not is_level_complete(state)


def game_over_reason(state: SessionState, level: LevelDefinition,
                     relax_mode: bool) -> Optional[GameOverReason]:
    if not is_game_over(state, level, relax_mode):
        return None
    if moves_exceeded(state, level, relax_mode):
        return GameOverReason.MOVES_EXCEEDED
    return GameOverReason.TIME_UP


def time_spent(state: SessionState, level: LevelDefinition, relax_mode: bool) -> int:
    """Seconds actually played: counted up in relax mode, consumed from the limit otherwise."""
    if relax_mode:
        return state.elapsed_seconds
    return level.time_limit_seconds - state.remaining_seconds


class Session:
    """
    State machine for one attempt at one level.

    The session owns its SessionState, its clock and its pending mismatch timer.
    A restart or level change builds a new Session; close() the old one so that
    none of its callbacks can touch anything afterwards.
    """

    def __init__(self, level_index: int, level: LevelDefinition, relax_mode: bool = False,
                 scheduler: Optional[Scheduler] = None, rng: Optional[random.Random] = None,
                 listener: Optional[Listener] = None,
                 on_outcome: Optional[Callable[[SessionOutcome], None]] = None):
        """
        Initialize a new session.

        Args:
            level_index: 0-based index of the level being played
            level: Definition of that level
            relax_mode: If True, no move or time limits apply and the clock counts up
            scheduler: Scheduler driving the clock and the mismatch delay
            rng: Random source for the deck shuffle
            listener: Receives every GameEvent
            on_outcome: Called exactly once when the session ends
        """
        self.level_index = level_index
        self.level = level
        self.relax_mode = relax_mode
        self.scheduler = scheduler or Scheduler()
        self.listener = listener
        self.on_outcome = on_outcome
        self.state = SessionState.fresh(level_index, level, rng)
        self.clock = GameClock(self.scheduler, self._on_tick, TICK_MS)
        self.outcome: Optional[SessionOutcome] = None
        self.closed = False
        self._hide_handle: Optional[TimerHandle] = None

    def start(self) -> None:
        """Start the clock and publish the initial state."""
        if self.closed:
            return
        self.clock.start()
        logger.info(f"Level {self.level_index + 1} started ({'relax' if self.relax_mode else 'normal'} mode)")
        self._changed()

    def close(self) -> None:
        """Cancel the clock and any pending mismatch hide."""
        self.closed = True
        self.clock.stop()
        if self._hide_handle is not None:
            self._hide_handle.cancel()
            self._hide_handle = None

    @property
    def level_complete(self) -> bool:
        return is_level_complete(self.state)

    @property
    def game_over(self) -> bool:
        return is_game_over(self.state, self.level, self.relax_mode)

    @property
    def game_over_reason(self) -> Optional[GameOverReason]:
        return game_over_reason(self.state, self.level, self.relax_mode)

    @property
    def terminal(self) -> bool:
        return self.level_complete or self.game_over

    @property
    def phase(self) -> SessionPhase:
        if self.level_complete:
            return SessionPhase.LEVEL_COMPLETE
        if self.game_over:
            return SessionPhase.GAME_OVER
        if self.state.comparing:
            return SessionPhase.COMPARING
        return SessionPhase.AWAITING_INPUT

    def snapshot(self) -> SessionState:
        """Independent copy of the current state for rendering."""
        return copy.deepcopy(self.state)

    def flip(self, card_id) -> bool:
        """
        Turn a card face up.

        The flip is ignored (and False returned) if the session is over, the card
        is not hidden, a pair is being compared or two cards are already face up.
        """
        if self.closed or self.terminal or self.state.comparing:
            return False
        card = self.state.card_by_id(card_id)
        if card is None or not card.is_hidden:
            return False
        if len(self.state.revealed_cards()) >= 2:
            return False

        card.reveal()
        self._emit(EventType.FLIP, card_id=card.card_id)

        revealed = self.state.revealed_cards()
        if len(revealed) == 2:
            self._compare(*revealed)
        self._changed()
        return True

    def _compare(self, first: Card, second: Card) -> None:
        self.state.comparing = True
        self.state.move_count += 1
        card_ids = (first.card_id, second.card_id)

        if first.symbol == second.symbol:
            first.match()
            second.match()
            self.state.comparing = False
            self._emit(EventType.MATCH, card_ids=card_ids)
        else:
            self._emit(EventType.MISMATCH, card_ids=card_ids)
            self._hide_handle = self.scheduler.call_later(MISMATCH_DELAY_MS, self._hide_mismatch)

    def _hide_mismatch(self) -> None:
        self._hide_handle = None
        if self.closed:
            return
        for card in self.state.revealed_cards():
            card.hide()
        self.state.comparing = False
        self._changed()

    def _on_tick(self) -> None:
        if self.closed:
            return
        self.state.elapsed_seconds += 1
        if not self.relax_mode:
            self.state.remaining_seconds = max(0, self.state.remaining_seconds - 1)
        self._changed()

    def _changed(self) -> None:
        outcome = self._evaluate()
        self._emit(EventType.STATE_CHANGED, state=self.snapshot())
        if outcome is None:
            return

        if outcome.won:
            logger.info(f"Level {outcome.level} complete in {outcome.moves_used} moves, {outcome.time_spent_seconds}s")
            self._emit(EventType.LEVEL_COMPLETE, level_index=self.level_index)
        else:
            logger.info(f"Game over on level {outcome.level}: {outcome.reason}")
            self._emit(EventType.GAME_OVER, reason=self.game_over_reason)
        if self.on_outcome is not None:
            self.on_outcome(outcome)

    def _evaluate(self) -> Optional[SessionOutcome]:
        """Stop the clock on a terminal state and build the outcome the first time only."""
        if not self.terminal:
            return None

        self.clock.stop()
        if self.state.outcome_recorded:
            return None

        self.state.outcome_recorded = True
        reason = self.game_over_reason
        self.outcome = SessionOutcome(
            won=self.level_complete,
            moves_used=self.state.move_count,
            time_spent_seconds=time_spent(self.state, self.level, self.relax_mode),
            level=self.level_index + 1,
            relax_mode=self.relax_mode,
            reason=reason.value if reason else None,
        )
        return self.outcome

    def _emit(self, event_type: EventType, **payload) -> None:
        if self.listener is not None:
            self.listener(GameEvent(event_type, payload))


class Game:
    """
    Main game class that sequences the levels.

    Completing a level moves on to the next one after a short pause; completing
    the last one wins the game. Restart and level selection always start the
    target level from scratch.
    """

    def __init__(self, catalog: Optional[LevelCatalog] = None, relax_mode: bool = False,
                 start_level: int = 0, scheduler: Optional[Scheduler] = None,
                 rng: Optional[random.Random] = None, scoreboard=None,
                 listener: Optional[Listener] = None):
        """
        Initialize a new game.

        Args:
            catalog: Level catalog (built from rng when omitted)
            relax_mode: Play without move or time limits
            start_level: 0-based index of the first level, clamped to the catalog
            scheduler: Scheduler shared by every session of this game
            rng: Random source for deck shuffles
            scoreboard: Receives each session outcome through record()
            listener: Receives every GameEvent
        """
        self.rng = rng or random.Random()
        self.catalog = catalog or LevelCatalog(self.rng)
        self.relax_mode = relax_mode
        self.scheduler = scheduler or Scheduler()
        self.scoreboard = scoreboard
        self.listener = listener
        self.level_index = self.catalog.clamp_index(start_level)
        self.session: Optional[Session] = None
        self.game_won = False
        self.active = False
        self._advance_handle: Optional[TimerHandle] = None

    @property
    def level(self) -> LevelDefinition:
        return self.catalog.definition_at(self.level_index)

    @property
    def advance_pending(self) -> bool:
        return self._advance_handle is not None and self._advance_handle.active

    def start(self) -> None:
        """Start (or resume after navigate_back) at the current level."""
        self.active = True
        self._open_session(self.level_index)

    def flip(self, card_id) -> bool:
        if not self.active or self.session is None:
            return False
        return self.session.flip(card_id)

    def restart(self) -> None:
        """Play the current level again from scratch."""
        if not self.active:
            return
        self._open_session(self.level_index)

    def select_level(self, index) -> None:
        """Jump to any level; progress on the current level is dropped."""
        self.active = True
        self._open_session(self.catalog.clamp_index(index))

    def navigate_back(self) -> None:
        """Leave the board, abandoning the current session."""
        self._close_session()
        self.active = False

    def close(self) -> None:
        self.navigate_back()

    def snapshot(self) -> Optional[SessionState]:
        return self.session.snapshot() if self.session else None

    def _open_session(self, index: int) -> None:
        self._close_session()
        self.level_index = index
        self.game_won = False
        self.session = Session(
            index, self.catalog.definition_at(index), self.relax_mode,
            scheduler=self.scheduler, rng=self.rng,
            listener=self._emit, on_outcome=self._on_outcome,
        )
        self.session.start()

    def _close_session(self) -> None:
        if self._advance_handle is not None:
            self._advance_handle.cancel()
            self._advance_handle = None
        if self.session is not None:
            self.session.close()

    def _on_outcome(self, outcome: SessionOutcome) -> None:
        if self.scoreboard is not None:
            self.scoreboard.record(outcome)

        if not outcome.won:
            return
        if self.catalog.is_last(self.level_index):
            self.game_won = True
            logger.info("All levels complete")
            self._emit(GameEvent(EventType.GAME_WON, {'level_index': self.level_index}))
        else:
            completed = self.session
            self._advance_handle = self.scheduler.call_later(
                ADVANCE_DELAY_MS, lambda: self._advance(completed))

    def _advance(self, completed: Session) -> None:
        self._advance_handle = None
        if completed is not self.session or completed.closed:
            return
        logger.info(f"Advancing to level {self.level_index + 2}")
        self._open_session(self.level_index + 1)

    def _emit(self, event: GameEvent) -> None:
        if self.listener is not None:
            self.listener(event)
