"""Local login and registration with user-facing error messages."""
import logging
import sqlite3
from dataclasses import dataclass
from typing import Optional

logger = logging.getLogger(__name__)

MIN_USERNAME_LENGTH = 3
MIN_PASSWORD_LENGTH = 4


@dataclass
class AuthResult:
    """user_id is set on success, error holds the message to show otherwise."""
    user_id: Optional[int] = None
    username: str = ""
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.user_id is not None


def login(db, username: str, password: str) -> AuthResult:
    username = username.strip()
    if not username or not password:
        return AuthResult(error="Please fill in all fields")

    user = db.find_user_by_credentials(username, password)
    if user is None:
        return AuthResult(username=username, error="Wrong username or password")
    logger.info(f"User {username} logged in")
    return AuthResult(user_id=user.id, username=user.username)


def register(db, username: str, password: str, confirm_password: str) -> AuthResult:
    """
    Create an account after validating the form.

    Args:
        db: Object implementing the GameDatabase user methods
        username: Requested username (surrounding whitespace is ignored)
        password: Password
        confirm_password: Must equal password

    Returns:
        AuthResult with the new user's id, or the validation message
    """
    username = username.strip()
    if not username or not password or not confirm_password:
        return AuthResult(error="Please fill in all fields")
    if len(username) < MIN_USERNAME_LENGTH:
        return AuthResult(error=f"Username must be at least {MIN_USERNAME_LENGTH} characters")
    if len(password) < MIN_PASSWORD_LENGTH:
        return AuthResult(error=f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
    if password != confirm_password:
        return AuthResult(error="Passwords do not match")
    if db.username_exists(username):
        return AuthResult(error="Username already exists")

    try:
        user_id = db.create_user(username, password)
    except sqlite3.IntegrityError:
        return AuthResult(error="Username already exists")
    except sqlite3.Error as e:
        logger.error(f"Could not create user {username}: {e}")
        return AuthResult(error="Could not create the account, please try again")

    logger.info(f"Registered user {username}")
    return AuthResult(user_id=user_id, username=username)
