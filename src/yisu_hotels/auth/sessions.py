"""Login sessions and the role gate consulted by gated operations."""
from __future__ import annotations

import logging
import secrets
from typing import Optional, Protocol

from yisu_hotels.core.errors import Forbidden, Unauthenticated, ValidationError
from yisu_hotels.hotels.models import Session, User, UserRole
from yisu_hotels.storage.repository import HotelRepository

from .passwords import PasswordHasher, is_hashed

logger = logging.getLogger(__name__)

BEARER_PREFIX = "Bearer "


def bearer_token(authorization: str | None) -> Optional[str]:
    """Extract the token from an ``Authorization: Bearer <token>`` header value."""
    if not authorization or not authorization.startswith(BEARER_PREFIX):
        return None
    token = authorization[len(BEARER_PREFIX):].strip()
    return token or None


class SessionStore(Protocol):
    def get(self, token: str) -> Optional[Session]:
        ...

    def put(self, token: str, session: Session) -> None:
        ...

    def remove(self, token: str) -> None:
        ...


class InMemorySessionStore:
    """Token map kept for the lifetime of the process; entries never expire."""

    def __init__(self) -> None:
        self._sessions: dict[str, Session] = {}

    def get(self, token: str) -> Optional[Session]:
        return self._sessions.get(token)

    def put(self, token: str, session: Session) -> None:
        self._sessions[token] = session

    def remove(self, token: str) -> None:
        self._sessions.pop(token, None)

    def __len__(self) -> int:
        return len(self._sessions)


class AuthGate:
    """Resolves tokens to sessions and enforces role requirements."""

    def __init__(self, sessions: SessionStore) -> None:
        self._sessions = sessions

    def resolve(self, token: str | None) -> Optional[Session]:
        if not token:
            return None
        return self._sessions.get(token)

    def require(self, token: str | None, *roles: UserRole) -> Session:
        if not token:
            raise Unauthenticated("Not logged in")
        session = self._sessions.get(token)
        if session is None:
            raise Unauthenticated("Session expired, please log in again")
        if roles and session.role not in roles:
            raise Forbidden("Permission denied")
        return session


class AccountService:
    """Registration, login and logout over the repository's user table."""

    def __init__(
        self,
        repository: HotelRepository,
        sessions: SessionStore,
        hasher: PasswordHasher,
    ) -> None:
        self._repository = repository
        self._sessions = sessions
        self._hasher = hasher

    def register(self, username: str | None, password: str | None, role: str | None) -> User:
        missing = [name for name, value in (("username", username), ("password", password), ("role", role)) if not value]
        if missing:
            raise ValidationError.missing(missing)
        try:
            parsed_role = UserRole(role)
        except ValueError as exc:
            raise ValidationError("role must be merchant or admin", ["role"]) from exc
        if self._repository.find_user_by_username(username):
            raise ValidationError("Username already exists", ["username"])
        user = User(
            id=self._repository.next_user_id(),
            username=username,
            password=self._hasher.hash(password),
            role=parsed_role,
        )
        self._repository.add_user(user)
        logger.info("Registered %s account %s (%s)", parsed_role.value, user.username, user.id)
        return user

    def login(self, username: str | None, password: str | None) -> tuple[str, User]:
        missing = [name for name, value in (("username", username), ("password", password)) if not value]
        if missing:
            raise ValidationError.missing(missing)
        user = self._repository.find_user_by_username(username)
        if user is None or not self._hasher.verify(password, user.password):
            raise ValidationError("Invalid username or password", ["username", "password"])
        if not is_hashed(user.password):
            user.password = self._hasher.hash(password)
            logger.info("Upgraded legacy plaintext password for %s", user.username)
        token = f"tk_{secrets.token_hex(16)}"
        self._sessions.put(token, Session(user_id=user.id, role=user.role))
        return token, user

    def logout(self, token: str | None) -> None:
        if token:
            self._sessions.remove(token)
