"""Account registration, login and the current-user session.

Accounts live in ``<root>/users.json``; the logged-in user is remembered in
``<root>/session.json``. Usernames are unique and case-sensitive.
"""

from __future__ import annotations

import logging
import secrets
import time
from pathlib import Path

from habitloop.clock import utc_now_iso
from habitloop.errors import AlreadyExists, InvalidCredentials, StorageFailure, ValidationError
from habitloop.fileio import read_json, remove_file, write_json_atomic
from habitloop.models import User
from habitloop.workspace import session_path, users_path, workspace_root

logger = logging.getLogger(__name__)


class AccountStore:
    def __init__(self, root: Path | None = None) -> None:
        self.root = root if root is not None else workspace_root()

    # ── Users file ────────────────────────────────────────────

    def users(self) -> list[User]:
        """All accounts. Raises StorageFailure if users.json cannot be decoded."""
        try:
            raw = read_json(users_path(self.root), default=[])
        except (OSError, ValueError) as e:
            logger.error("Error loading users: %s", e)
            raise StorageFailure(f"Unreadable users file: {e}") from e
        if not isinstance(raw, list):
            logger.error("Users file holds %s, expected a list", type(raw).__name__)
            raise StorageFailure("Unreadable users file: expected a list")
        return [User.from_dict(u) for u in raw if isinstance(u, dict)]

    def save_users(self, users: list[User]) -> bool:
        try:
            write_json_atomic(users_path(self.root), [u.to_dict() for u in users])
            return True
        except (OSError, TypeError, ValueError):
            logger.exception("Error saving users")
            return False

    def find(self, username: str) -> User | None:
        for user in self.users():
            if user.username == username:
                return user
        return None

    # ── Register / login ──────────────────────────────────────

    def register(self, username: str, password: str) -> User:
        """Create an account. Raises AlreadyExists if the username is taken.

        StorageFailure is raised when the account file cannot be read or
        written; an unreadable file is never overwritten.
        """
        errors = []
        if not isinstance(username, str) or not username.strip():
            errors.append("Missing required field: username")
        if not isinstance(password, str) or not password:
            errors.append("Missing required field: password")
        if errors:
            raise ValidationError(errors)

        users = self.users()
        if any(u.username == username for u in users):
            raise AlreadyExists(f"Username already exists: {username}")

        taken = {u.id for u in users}
        user_id = int(time.time() * 1000)
        while str(user_id) in taken:
            user_id += 1

        user = User(
            id=str(user_id),
            username=username,
            password=password,
            created_at=utc_now_iso(),
        )
        users.append(user)
        if not self.save_users(users):
            raise StorageFailure("Could not save the new account")
        logger.info("Registered user %s (%s)", username, user.id)
        return user

    def login(self, username: str, password: str) -> User:
        """Check credentials and remember the user as logged in."""
        user = self.authenticate(username, password)
        self.set_current_user(user)
        logger.info("User %s logged in", username)
        return user

    def authenticate(self, username: str, password: str) -> User:
        """Like login, without touching the stored session."""
        user = self.find(username)
        if user is None or not secrets.compare_digest(
            user.password.encode("utf-8"), (password or "").encode("utf-8")
        ):
            raise InvalidCredentials("Invalid username or password")
        return user

    # ── Session ───────────────────────────────────────────────

    def current_user(self) -> User | None:
        try:
            data = read_json(session_path(self.root))
        except (OSError, ValueError) as e:
            logger.error("Error loading session: %s", e)
            return None
        if not isinstance(data, dict) or not data.get("id"):
            return None
        return User.from_dict(data)

    def set_current_user(self, user: User) -> bool:
        try:
            write_json_atomic(session_path(self.root), user.to_dict())
            return True
        except (OSError, TypeError, ValueError):
            logger.exception("Error setting current user")
            return False

    def logout(self) -> bool:
        try:
            remove_file(session_path(self.root))
            return True
        except OSError:
            logger.exception("Error clearing current user")
            return False
