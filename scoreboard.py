"""
Statistics and records kept across sessions.

The ScoreBoard turns each SessionOutcome into a history entry, an update of the
player's lifetime stats and, for normal-mode wins, an update of the level record.
"""
import logging
import sqlite3
import time
from dataclasses import replace
from typing import Any, Callable, Dict

from shared.models import GameHistory, GameRecord, PlayerStats, SessionOutcome

logger = logging.getLogger(__name__)


def format_time(seconds) -> str:
    """Format a number of seconds as MM:SS."""
    seconds = max(0, int(seconds))
    return f"{seconds // 60:02d}:{seconds % 60:02d}"


def apply_outcome_to_stats(existing, user_id: int, outcome: SessionOutcome, now: float) -> PlayerStats:
    """
    Fold one game into a player's lifetime stats.

    Args:
        existing: Current PlayerStats or None for a first game
        user_id: Owner of the stats
        outcome: The finished session
        now: Timestamp of the update

    Returns:
        The new PlayerStats
    """
    won = 1 if outcome.won else 0
    if existing is None:
        return PlayerStats(
            user_id=user_id,
            total_games_played=1,
            total_games_won=won,
            total_time_played=outcome.time_spent_seconds,
            total_moves=outcome.moves_used,
            current_streak=won,
            best_streak=won,
            last_played_date=now,
        )

    streak = existing.current_streak + 1 if outcome.won else 0
    return replace(
        existing,
        total_games_played=existing.total_games_played + 1,
        total_games_won=existing.total_games_won + won,
        total_time_played=existing.total_time_played + outcome.time_spent_seconds,
        total_moves=existing.total_moves + outcome.moves_used,
        current_streak=streak,
        best_streak=max(existing.best_streak, streak),
        last_played_date=now,
    )


def apply_win_to_record(existing, user_id: int, outcome: SessionOutcome, now: float) -> GameRecord:
    """Best time and best moves improve independently; every win counts as a completion."""
    if existing is None:
        return GameRecord(
            user_id=user_id,
            level=outcome.level,
            best_time=outcome.time_spent_seconds,
            best_moves=outcome.moves_used,
            times_completed=1,
            last_played_date=now,
        )
    return replace(
        existing,
        best_time=min(existing.best_time, outcome.time_spent_seconds),
        best_moves=min(existing.best_moves, outcome.moves_used),
        times_completed=existing.times_completed + 1,
        last_played_date=now,
    )


class ScoreBoard:
    """Records session outcomes for one user."""

    def __init__(self, db, user_id: int, now: Callable[[], float] = time.time):
        """
        Args:
            db: Object implementing the GameDatabase persistence methods
            user_id: ID of the player
            now: Clock used for timestamps
        """
        self.db = db
        self.user_id = user_id
        self.now = now

    def record(self, outcome: SessionOutcome) -> None:
        """
        Persist a finished session.

        The three writes are independent: a failed one is logged and the others
        still go through. Stats and records are read with raise_errors, so an
        unreadable row is left alone instead of being overwritten as a first game.
        """
        timestamp = self.now()

        try:
            self.db.append_history(GameHistory(
                user_id=self.user_id,
                level=outcome.level,
                moves=outcome.moves_used,
                time_spent=outcome.time_spent_seconds,
                completed=outcome.won,
                relax_mode=outcome.relax_mode,
                played_at=timestamp,
            ))
        except sqlite3.Error as e:
            logger.error(f"Failed to save game history for user {self.user_id}: {e}")

        try:
            stats = apply_outcome_to_stats(
                self.db.get_stats(self.user_id, raise_errors=True), self.user_id, outcome, timestamp)
            self.db.upsert_stats(stats)
        except sqlite3.Error as e:
            logger.error(f"Failed to update stats for user {self.user_id}: {e}")

        if outcome.won and not outcome.relax_mode:
            try:
                existing = self.db.get_record(self.user_id, outcome.level, raise_errors=True)
                self.db.upsert_record(apply_win_to_record(existing, self.user_id, outcome, timestamp))
            except sqlite3.Error as e:
                logger.error(f"Failed to update level {outcome.level} record for user {self.user_id}: {e}")

    def clear_history(self) -> bool:
        """Forget the player's game history. Lifetime stats and records are kept."""
        try:
            self.db.clear_history(self.user_id)
        except sqlite3.Error as e:
            logger.error(f"Failed to clear game history for user {self.user_id}: {e}")
            return False
        logger.info(f"Cleared game history for user {self.user_id}")
        return True


def summarize(db, user_id: int, history_limit: int = 10) -> Dict[str, Any]:
    """
    Build the statistics view of one player.

    Returns:
        Dictionary with stats (or None), win_rate, records by level, recent history
        and the number of games in the history
    """
    stats = db.get_stats(user_id)
    return {
        'stats': stats.to_dict() if stats else None,
        'win_rate': stats.win_rate if stats else 0,
        'records': [record.to_dict() for record in db.get_all_records(user_id)],
        'recent_history': [entry.to_dict() for entry in db.recent_history(user_id, history_limit)],
        'history_count': db.get_history_count(user_id),
    }
