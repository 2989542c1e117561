"""
Shared data models for the game engine, the local database and the stats server.
This keeps the persisted records consistent across components.
"""
from dataclasses import dataclass, field, asdict
from typing import Optional
import time


@dataclass
class User:
    """Local account."""
    username: str
    password_hash: str
    created_at: float = field(default_factory=time.time)
    id: Optional[int] = None

    @classmethod
    def from_dict(cls, data):
        """Create a User from a dictionary."""
        return cls(
            username=data.get('username', ''),
            password_hash=data.get('password_hash', ''),
            created_at=data.get('created_at', 0.0),
            id=data.get('id')
        )

    def to_dict(self):
        """Public view of the account; the password hash is left out."""
        return {
            'id': self.id,
            'username': self.username,
            'created_at': self.created_at
        }


@dataclass
class GameRecord:
    """A user's personal best on one level. Time and moves are tracked independently."""
    user_id: int
    level: int
    best_time: int
    best_moves: int
    times_completed: int = 0
    last_played_date: float = field(default_factory=time.time)

    @classmethod
    def from_dict(cls, data):
        """Create a GameRecord from a dictionary."""
        return cls(
            user_id=data.get('user_id', 0),
            level=data.get('level', 1),
            best_time=data.get('best_time', 0),
            best_moves=data.get('best_moves', 0),
            times_completed=data.get('times_completed', 0),
            last_played_date=data.get('last_played_date', 0.0)
        )

    def to_dict(self):
        return asdict(self)


@dataclass
class GameHistory:
    """One finished (won or lost) session."""
    user_id: int
    level: int
    moves: int
    time_spent: int
    completed: bool
    relax_mode: bool
    played_at: float = field(default_factory=time.time)
    id: Optional[int] = None

    @classmethod
    def from_dict(cls, data):
        """Create a GameHistory entry from a dictionary."""
        return cls(
            user_id=data.get('user_id', 0),
            level=data.get('level', 1),
            moves=data.get('moves', 0),
            time_spent=data.get('time_spent', 0),
            completed=bool(data.get('completed', False)),
            relax_mode=bool(data.get('relax_mode', False)),
            played_at=data.get('played_at', 0.0),
            id=data.get('id')
        )

    def to_dict(self):
        return asdict(self)


@dataclass
class PlayerStats:
    """Lifetime statistics of one user."""
    user_id: int
    total_games_played: int = 0
    total_games_won: int = 0
    total_time_played: int = 0
    total_moves: int = 0
    current_streak: int = 0
    best_streak: int = 0
    last_played_date: float = field(default_factory=time.time)

    @classmethod
    def from_dict(cls, data):
        """Create a PlayerStats object from a dictionary."""
        return cls(
            user_id=data.get('user_id', 0),
            total_games_played=data.get('total_games_played', 0),
            total_games_won=data.get('total_games_won', 0),
            total_time_played=data.get('total_time_played', 0),
            total_moves=data.get('total_moves', 0),
            current_streak=data.get('current_streak', 0),
            best_streak=data.get('best_streak', 0),
            last_played_date=data.get('last_played_date', 0.0)
        )

    def to_dict(self):
        return asdict(self)

    @property
    def win_rate(self) -> int:
        """Percentage of games won, rounded down."""
        if self.total_games_played <= 0:
            return 0
        return self.total_games_won * 100 // self.total_games_played


@dataclass(frozen=True)
class SessionOutcome:
    """
    Result of a session that reached a terminal state.

    level is 1-based, as shown to the player and stored in the database.
    reason is None for a win, otherwise the game over reason value.
    """
    won: bool
    moves_used: int
    time_spent_seconds: int
    level: int
    relax_mode: bool
    reason: Optional[str] = None

    def to_dict(self):
        return asdict(self)
