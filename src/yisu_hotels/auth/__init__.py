"""Accounts, password hashing and the session gate."""

from .passwords import PasswordHasher, is_hashed
from .sessions import (
    AccountService,
    AuthGate,
    InMemorySessionStore,
    SessionStore,
    bearer_token,
)

__all__ = [
    "AccountService",
    "AuthGate",
    "InMemorySessionStore",
    "PasswordHasher",
    "SessionStore",
    "bearer_token",
    "is_hashed",
]
