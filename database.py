import sqlite3
import os
import time
import hashlib
import hmac
import secrets
import logging
from pathlib import Path
from typing import Dict, List, Optional, Any

from shared.models import User, GameRecord, GameHistory, PlayerStats

logger = logging.getLogger(__name__)


def hash_password(password: str, salt: Optional[str] = None) -> str:
    """Return a salted PBKDF2 hash in the form 'salt$hexdigest'."""
    salt = salt or secrets.token_hex(8)
    digest = hashlib.pbkdf2_hmac('sha256', password.encode('utf-8'), salt.encode('utf-8'), 100_000)
    return f"{salt}${digest.hex()}"


def verify_password(password: str, stored: str) -> bool:
    salt, _, _ = stored.partition('$')
    return hmac.compare_digest(hash_password(password, salt), stored)


class GameDatabase:
    """
    Class to handle SQLite database operations for users, per-level records,
    play history and lifetime statistics of the Memory Match game.

    Read methods log errors and return None or an empty result. Write methods
    let sqlite3.Error propagate so callers can decide how to handle a lost write.
    """

    def __init__(self, db_file="memory_game.db", read_only=False):
        """
        Initialize the database connection.

        Args:
            db_file: Path to the SQLite database file (":memory:" for a throwaway one)
            read_only: Open an existing database without creating or changing anything

        Raises:
            FileNotFoundError: if read_only is set and db_file does not exist
        """
        self.db_file = db_file
        self.read_only = read_only
        self.conn = None
        self.initialize_db()

    def initialize_db(self) -> None:
        """Create the database and tables if they don't exist."""
        if self.read_only:
            if not os.path.isfile(self.db_file):
                raise FileNotFoundError(f"No game database at {self.db_file}")
            uri = Path(self.db_file).resolve().as_uri() + "?mode=ro"
            self.conn = sqlite3.connect(uri, uri=True)
            self.conn.row_factory = sqlite3.Row
            return

        # Create database directory if it doesn't exist
        db_dir = os.path.dirname(self.db_file)
        if db_dir and not os.path.exists(db_dir):
            os.makedirs(db_dir)

        self.conn = sqlite3.connect(self.db_file)
        self.conn.row_factory = sqlite3.Row

        with self.conn:
            self.conn.execute('''
                CREATE TABLE IF NOT EXISTS users (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    username TEXT NOT NULL UNIQUE,
                    password_hash TEXT NOT NULL,
                    created_at REAL NOT NULL
                )
            ''')
            self.conn.execute('''
                CREATE TABLE IF NOT EXISTS game_records (
                    user_id INTEGER NOT NULL,
                    level INTEGER NOT NULL,
                    best_time INTEGER NOT NULL,
                    best_moves INTEGER NOT NULL,
                    times_completed INTEGER NOT NULL DEFAULT 0,
                    last_played_date REAL NOT NULL,
                    PRIMARY KEY (user_id, level)
                )
            ''')
            self.conn.execute('''
                CREATE TABLE IF NOT EXISTS game_history (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    user_id INTEGER NOT NULL,
                    level INTEGER NOT NULL,
                    moves INTEGER NOT NULL,
                    time_spent INTEGER NOT NULL,
                    completed BOOLEAN NOT NULL,
                    relax_mode BOOLEAN NOT NULL,
                    played_at REAL NOT NULL
                )
            ''')
            self.conn.execute('''
                CREATE TABLE IF NOT EXISTS player_stats (
                    user_id INTEGER PRIMARY KEY,
                    total_games_played INTEGER NOT NULL DEFAULT 0,
                    total_games_won INTEGER NOT NULL DEFAULT 0,
                    total_time_played INTEGER NOT NULL DEFAULT 0,
                    total_moves INTEGER NOT NULL DEFAULT 0,
                    current_streak INTEGER NOT NULL DEFAULT 0,
                    best_streak INTEGER NOT NULL DEFAULT 0,
                    last_played_date REAL NOT NULL
                )
            ''')
        logger.info(f"Database initialized at {self.db_file}")

    def close(self) -> None:
        """Close the database connection."""
        if self.conn:
            self.conn.close()
            self.conn = None

    def _ensure_connection(self) -> None:
        if not self.conn:
            self.initialize_db()

    # Users

    def create_user(self, username: str, password: str) -> int:
        """
        Register a new account.

        Args:
            username: Unique username
            password: Plain text password, stored hashed

        Returns:
            ID of the new user

        Raises:
            sqlite3.IntegrityError: if the username is taken
        """
        self._ensure_connection()
        with self.conn:
            cursor = self.conn.execute(
                "INSERT INTO users (username, password_hash, created_at) VALUES (?, ?, ?)",
                (username, hash_password(password), time.time())
            )
        return cursor.lastrowid

    def get_user_by_username(self, username: str) -> Optional[User]:
        try:
            self._ensure_connection()
            row = self.conn.execute(
                "SELECT id, username, password_hash, created_at FROM users WHERE username = ? LIMIT 1",
                (username,)
            ).fetchone()
            return User.from_dict(dict(row)) if row else None
        except sqlite3.Error as e:
            logger.error(f"Error retrieving user {username}: {e}")
            return None

    def find_user_by_credentials(self, username: str, password: str) -> Optional[User]:
        """Return the user if the username exists and the password matches."""
        user = self.get_user_by_username(username)
        if user and verify_password(password, user.password_hash):
            return user
        return None

    def username_exists(self, username: str) -> bool:
        return self.get_user_by_username(username) is not None

    # Per-level records

    def get_record(self, user_id: int, level: int, raise_errors: bool = False) -> Optional[GameRecord]:
        """
        Get a user's record on one level.

        With raise_errors the sqlite3.Error of a failed read is re-raised, so a
        missing record can be told apart from an unreadable one.
        """
        try:
            self._ensure_connection()
            row = self.conn.execute('''
                SELECT user_id, level, best_time, best_moves, times_completed, last_played_date
                FROM game_records WHERE user_id = ? AND level = ?
            ''', (user_id, level)).fetchone()
            return GameRecord.from_dict(dict(row)) if row else None
        except sqlite3.Error as e:
            if raise_errors:
                raise
            logger.error(f"Error retrieving record for user {user_id}, level {level}: {e}")
            return None

    def get_all_records(self, user_id: int) -> List[GameRecord]:
        """Get all of a user's records, ordered by level."""
        try:
            self._ensure_connection()
            rows = self.conn.execute('''
                SELECT user_id, level, best_time, best_moves, times_completed, last_played_date
                FROM game_records WHERE user_id = ? ORDER BY level ASC
            ''', (user_id,)).fetchall()
            return [GameRecord.from_dict(dict(row)) for row in rows]
        except sqlite3.Error as e:
            logger.error(f"Error retrieving records for user {user_id}: {e}")
            return []

    def upsert_record(self, record: GameRecord) -> None:
        self._ensure_connection()
        with self.conn:
            self.conn.execute('''
                INSERT OR REPLACE INTO game_records
                (user_id, level, best_time, best_moves, times_completed, last_played_date)
                VALUES (?, ?, ?, ?, ?, ?)
            ''', (
                record.user_id, record.level, record.best_time, record.best_moves,
                record.times_completed, record.last_played_date
            ))

    # Play history

    def append_history(self, entry: GameHistory) -> int:
        """
        Append a finished session to the history.

        Returns:
            ID of the inserted row
        """
        self._ensure_connection()
        with self.conn:
            cursor = self.conn.execute('''
                INSERT INTO game_history
                (user_id, level, moves, time_spent, completed, relax_mode, played_at)
                VALUES (?, ?, ?, ?, ?, ?, ?)
            ''', (
                entry.user_id, entry.level, entry.moves, entry.time_spent,
                entry.completed, entry.relax_mode, entry.played_at
            ))
        return cursor.lastrowid

    def recent_history(self, user_id: int, limit: int = 10) -> List[GameHistory]:
        """
        Get a user's most recent games.

        Args:
            user_id: ID of the user
            limit: Maximum number of entries to return

        Returns:
            History entries, most recent first
        """
        try:
            self._ensure_connection()
            rows = self.conn.execute('''
                SELECT id, user_id, level, moves, time_spent, completed, relax_mode, played_at
                FROM game_history
                WHERE user_id = ?
                ORDER BY played_at DESC, id DESC
                LIMIT ?
            ''', (user_id, limit)).fetchall()
            return [GameHistory.from_dict(dict(row)) for row in rows]
        except sqlite3.Error as e:
            logger.error(f"Error retrieving history for user {user_id}: {e}")
            return []

    def get_history_count(self, user_id: int) -> int:
        try:
            self._ensure_connection()
            return self.conn.execute(
                "SELECT COUNT(*) FROM game_history WHERE user_id = ?", (user_id,)
            ).fetchone()[0]
        except sqlite3.Error as e:
            logger.error(f"Error counting history for user {user_id}: {e}")
            return 0

    def clear_history(self, user_id: int) -> None:
        self._ensure_connection()
        with self.conn:
            self.conn.execute("DELETE FROM game_history WHERE user_id = ?", (user_id,))

    def level_summary(self, user_id: int, level: int) -> Dict[str, Any]:
        """
        Aggregate a user's completed games on one level.

        Returns:
            Dictionary with wins, avg_moves and avg_time (averages are None without wins)
        """
        try:
            self._ensure_connection()
            row = self.conn.execute('''
                SELECT COUNT(*) AS wins, AVG(moves) AS avg_moves, AVG(time_spent) AS avg_time
                FROM game_history
                WHERE user_id = ? AND level = ? AND completed = 1
            ''', (user_id, level)).fetchone()
            return dict(row)
        except sqlite3.Error as e:
            logger.error(f"Error summarizing level {level} for user {user_id}: {e}")
            return {'wins': 0, 'avg_moves': None, 'avg_time': None}

    # Lifetime stats

    def get_stats(self, user_id: int, raise_errors: bool = False) -> Optional[PlayerStats]:
        """Get a user's lifetime stats; see get_record for raise_errors."""
        try:
            self._ensure_connection()
            row = self.conn.execute('''
                SELECT user_id, total_games_played, total_games_won, total_time_played,
                       total_moves, current_streak, best_streak, last_played_date
                FROM player_stats WHERE user_id = ?
            ''', (user_id,)).fetchone()
            return PlayerStats.from_dict(dict(row)) if row else None
        except sqlite3.Error as e:
            if raise_errors:
                raise
            logger.error(f"Error retrieving stats for user {user_id}: {e}")
            return None

    def upsert_stats(self, stats: PlayerStats) -> None:
        self._ensure_connection()
        with self.conn:
            self.conn.execute('''
                INSERT OR REPLACE INTO player_stats
                (user_id, total_games_played, total_games_won, total_time_played,
                 total_moves, current_streak, best_streak, last_played_date)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            ''', (
                stats.user_id, stats.total_games_played, stats.total_games_won,
                stats.total_time_played, stats.total_moves, stats.current_streak,
                stats.best_streak, stats.last_played_date
            ))


_instances: Dict[str, GameDatabase] = {}

def get_database(db_file: str = "memory_game.db") -> GameDatabase:
    """Get the shared database instance for db_file, opening it on first use."""
    db = _instances.get(db_file)
    if db is None or db.conn is None:
        db = GameDatabase(db_file)
        _instances[db_file] = db
    return db
