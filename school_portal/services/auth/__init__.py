"""Sign-in state for the admin dashboard."""

from .session import SESSION_KEY, TOKEN_KEY, SessionManager, SessionStore, SessionUser, token_expiry
from .storage import JsonFileKeyValueStore, KeyValueStore, MemoryKeyValueStore

__all__ = [
    "SESSION_KEY",
    "TOKEN_KEY",
    "SessionManager",
    "SessionStore",
    "SessionUser",
    "token_expiry",
    "KeyValueStore",
    "MemoryKeyValueStore",
    "JsonFileKeyValueStore",
]
