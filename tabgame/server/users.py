from __future__ import annotations

import hashlib
from typing import Dict, Optional

from loguru import logger

from .errors import AuthenticationError, InvalidRequestError
from .storage import JsonStore


def hash_password(password: str) -> str:
    return hashlib.sha256(password.encode("utf-8")).hexdigest()


class UserRegistry:
    def __init__(self, store: Optional[JsonStore] = None):
        self._store = store
        self._users: Dict[str, dict] = store.load({}) if store is not None else {}

    def __contains__(self, nick: str) -> bool:
        return nick in self._users

    def register(self, nick: str, password: str) -> bool:
        """Register ``nick``; True when newly created, False when confirmed."""
        if not nick or not password:
            raise InvalidRequestError("Missing or invalid nick or password")
        hashed = hash_password(password)
        existing = self._users.get(nick)
        if existing is not None:
            if existing["password"] != hashed:
                raise AuthenticationError("User registered with a different password")
            return False
        self._users[nick] = {"password": hashed}
        logger.info(f"Registered user {nick}")
        self._save()
        return True

    def authenticate(self, nick: str, password: str) -> None:
        user = self._users.get(nick)
        if user is None:
            raise AuthenticationError("User not registered")
        if user["password"] != hash_password(password):
            raise AuthenticationError("Invalid credentials")

    def _save(self) -> None:
        if self._store is not None:
            self._store.save(self._users)
