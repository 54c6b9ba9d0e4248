"""Accounts: usernames, password hashes, last-seen times.

Passwords are stored as argon2 hashes and never leave this module; every
read returns the public view of a user.
"""

import threading
import uuid
from dataclasses import dataclass
from time import time
from typing import Any

from argon2 import PasswordHasher

from sprout.errors import Conflict, Forbidden, NotFound, Unauthenticated, ValidationFailed
from sprout.security import hash_password, needs_rehash, verify_password
from sprout.validation import FieldError

DELETED_USER = "DELETED_USER"


@dataclass(slots=True)
class User:
    id: str
    username: str
    password_hash: str
    last_online: float | None = None

    def public(self) -> dict[str, Any]:
        return {"_id": self.id, "username": self.username, "lastOnline": self.last_online}


class Authing:
    """In-memory account store."""

    __slots__ = ("_hasher", "_lock", "_users")

    def __init__(self, hasher: PasswordHasher | None = None) -> None:
        self._users: dict[str, User] = {}
        self._lock = threading.Lock()
        self._hasher = hasher

    async def create(self, username: str, password: str) -> dict[str, Any]:
        """Register a new account.

        Raises:
            ValidationFailed: Username or password is empty.
            Conflict: The username is taken.
        """
        missing = tuple(
            FieldError(name, "Required")
            for name, value in (("username", username), ("password", password))
            if not value
        )
        if missing:
            raise ValidationFailed(missing, detail="Username and password must be non-empty!")

        password_hash = hash_password(password, hasher=self._hasher)
        with self._lock:
            self._check_available(username)
            user = User(id=uuid.uuid4().hex, username=username, password_hash=password_hash)
            self._users[user.id] = user
        return {"msg": "User created successfully!", "user": user.public()}

    async def get_user_by_id(self, user_id: str) -> dict[str, Any]:
        with self._lock:
            user = self._users.get(user_id)
        if user is None:
            raise NotFound("User not found!")
        return user.public()

    async def get_user_by_username(self, username: str) -> dict[str, Any]:
        user = self._by_username(username)
        if user is None:
            raise NotFound(f"User with username {username} does not exist!")
        return user.public()

    async def get_users(self, username: str | None = None) -> list[dict[str, Any]]:
        with self._lock:
            users = list(self._users.values())
        if username is not None:
            users = [u for u in users if u.username == username]
        return [u.public() for u in users]

    async def ids_to_usernames(self, ids: list[str]) -> list[str]:
        """Usernames for *ids*, in order; unknown ids read ``DELETED_USER``."""
        with self._lock:
            return [self._users[i].username if i in self._users else DELETED_USER for i in ids]

    async def authenticate(self, username: str, password: str) -> dict[str, Any]:
        """Return the account for valid credentials.

        Raises:
            Unauthenticated: Unknown username or wrong password.
        """
        user = self._by_username(username)
        if user is None or not verify_password(password, user.password_hash, hasher=self._hasher):
            raise Unauthenticated("Username or password is incorrect.")
        if needs_rehash(user.password_hash, hasher=self._hasher):
            # Hashes made under older cost settings are replaced at login
            upgraded = hash_password(password, hasher=self._hasher)
            with self._lock:
                user.password_hash = upgraded
        return user.public()

    async def update_username(self, user_id: str, username: str) -> dict[str, str]:
        with self._lock:
            user = self._require(user_id)
            if user.username != username:
                self._check_available(username)
            user.username = username
        return {"msg": "Username updated successfully!"}

    async def update_password(
        self, user_id: str, current_password: str, new_password: str
    ) -> dict[str, str]:
        """Replace the password after checking the current one.

        Raises:
            Forbidden: *current_password* is wrong.
        """
        with self._lock:
            user = self._require(user_id)
        if not verify_password(current_password, user.password_hash, hasher=self._hasher):
            raise Forbidden("The given current password is wrong!")
        if not new_password:
            raise ValidationFailed((FieldError("newPassword", "Required"),))
        new_hash = hash_password(new_password, hasher=self._hasher)
        with self._lock:
            user.password_hash = new_hash
        return {"msg": "Password updated successfully!"}

    async def update_last_online(self, user_id: str) -> None:
        with self._lock:
            self._require(user_id).last_online = time()

    async def delete(self, user_id: str) -> dict[str, str]:
        with self._lock:
            self._require(user_id)
            del self._users[user_id]
        return {"msg": "User deleted!"}

    def _by_username(self, username: str) -> User | None:
        with self._lock:
            return next((u for u in self._users.values() if u.username == username), None)

    def _require(self, user_id: str) -> User:
        # Caller holds the lock
        try:
            return self._users[user_id]
        except KeyError:
            raise NotFound("User not found!") from None

    def _check_available(self, username: str) -> None:
        # Caller holds the lock
        if any(u.username == username for u in self._users.values()):
            raise Conflict(f"User with username {username} already exists!")
