"""
Level definitions for the Memory Match game.

Five levels of increasing difficulty. All levels draw their symbols from one
shuffled master list, so every level uses a prefix of the next level's symbols.
"""
import math
import random
from dataclasses import dataclass
from typing import Iterator, List, Optional, Sequence, Tuple


# Master list of card faces
SYMBOLS = [
    "🦄", "🍦", "🌈", "👽", "👾", "🤖", "👹", "👺",
    "🤡", "💩", "🎃", "🙀", "☠️", "😽", "😼", "🦊",
]

# (pairs, max moves, time limit in seconds, grid columns)
LEVEL_SPECS = [
    (2, 5, 15, 2),    # 2x2, 4 cards
    (3, 8, 25, 2),    # 2x3, 6 cards
    (4, 12, 40, 2),   # 2x4, 8 cards
    (6, 20, 60, 3),   # 3x4, 12 cards
    (8, 30, 90, 4),   # 4x4, 16 cards
]


@dataclass(frozen=True)
class LevelDefinition:
    """Static configuration of a single level."""
    symbols: Tuple[str, ...]
    max_moves: int
    time_limit_seconds: int
    columns: int

    def __post_init__(self):
        if len(set(self.symbols)) != len(self.symbols):
            raise ValueError("Level symbols must be distinct")
        if self.max_moves < 0 or self.time_limit_seconds < 0:
            raise ValueError("Move and time limits cannot be negative")
        if self.columns < 1:
            raise ValueError("A level needs at least one column")

    @property
    def card_count(self) -> int:
        return len(self.symbols) * 2

    @property
    def rows(self) -> int:
        return math.ceil(self.card_count / self.columns)


class LevelCatalog:
    """
    Immutable, ordered collection of the game's levels.

    The master symbol list is shuffled exactly once, when the catalog is built.
    Build one catalog at startup and pass it to whoever needs it.
    """

    def __init__(self, rng: Optional[random.Random] = None,
                 symbols: Sequence[str] = SYMBOLS, specs=LEVEL_SPECS):
        """
        Build the catalog.

        Args:
            rng: Random source used for the one-time symbol shuffle
            symbols: Master list of distinct symbols
            specs: Sequence of (pairs, max_moves, time_limit_seconds, columns)
        """
        rng = rng or random.Random()
        shuffled = list(symbols)
        rng.shuffle(shuffled)

        needed = max(pairs for pairs, _, _, _ in specs)
        if len(shuffled) < needed:
            raise ValueError(f"Not enough symbols. Need at least {needed} values.")

        self._levels: Tuple[LevelDefinition, ...] = tuple(
            LevelDefinition(
                symbols=tuple(shuffled[:pairs]),
                max_moves=max_moves,
                time_limit_seconds=time_limit,
                columns=columns,
            )
            for pairs, max_moves, time_limit, columns in specs
        )

    def __len__(self) -> int:
        return len(self._levels)

    def __iter__(self) -> Iterator[LevelDefinition]:
        return iter(self._levels)

    @property
    def levels(self) -> List[LevelDefinition]:
        return list(self._levels)

    def clamp_index(self, index) -> int:
        """Return index if it names a level, otherwise the first level's index."""
        if isinstance(index, bool) or not isinstance(index, int):
            return 0
        if 0 <= index < len(self._levels):
            return index
        return 0

    def definition_at(self, index) -> LevelDefinition:
        """Get the level at index, falling back to the first level."""
        return self._levels[self.clamp_index(index)]

    def is_last(self, index: int) -> bool:
        return self.clamp_index(index) == len(self._levels) - 1
