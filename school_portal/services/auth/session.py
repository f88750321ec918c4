from __future__ import annotations

import json
import logging
import time
from dataclasses import asdict, dataclass
from typing import Any, Callable, Optional

from jose import JWTError, jwt

from school_portal.services.backend.client import RequestClient
from school_portal.services.backend.errors import (
    AuthenticationError,
    BackendRequestError,
    ValidationError,
)
from school_portal.validation import validate_email

from .storage import KeyValueStore, MemoryKeyValueStore

logger = logging.getLogger(__name__)

SESSION_KEY = "auth_session"
TOKEN_KEY = "auth_token"
TOKEN_ALGORITHM = "HS256"
MIN_PASSWORD_LENGTH = 8


@dataclass(frozen=True, slots=True)
class SessionUser:
    id: Any
    email: str
    role: str = "user"
    full_name: Optional[str] = None

    @classmethod
    def from_payload(cls, data: dict[str, Any]) -> "SessionUser":
        if not isinstance(data, dict):
            raise TypeError("Session payload must be an object")
        email = data.get("email")
        if data.get("id") is None or not email:
            raise KeyError("Session payload requires id and email")
        full_name = data.get("full_name")
        return cls(
            id=data["id"],
            email=str(email),
            role=str(data.get("role") or "user"),
            full_name=str(full_name) if full_name else None,
        )

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True, slots=True)
class SessionStore:
    """Signed-in state: who is signed in and the token shown to the UI.

    The token is minted on this side with a local secret. It only gates what
    the client displays; the backend never trusts it for authorization.
    """

    user: SessionUser
    token: str
    expires_at: Optional[float] = None

    def is_expired(self, now: float) -> bool:
        return self.expires_at is not None and now >= self.expires_at


def token_expiry(token: str) -> Optional[float]:
    try:
        claims = jwt.get_unverified_claims(token)
    except JWTError:
        return None
    exp = claims.get("exp")
    return float(exp) if isinstance(exp, (int, float)) else None


class SessionManager:
    """Signs users in through the ``authenticate_user`` RPC and tracks the session."""

    def __init__(
        self,
        client: RequestClient,
        *,
        store: Optional[KeyValueStore] = None,
        secret: str,
        ttl_seconds: int = 24 * 60 * 60,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if not secret:
            raise ValueError("Session secret is required")
        self._client = client
        self._store: KeyValueStore = store if store is not None else MemoryKeyValueStore()
        self._secret = secret
        self._ttl_seconds = int(ttl_seconds)
        self._clock = clock
        self._state: Optional[SessionStore] = None

    @property
    def state(self) -> Optional[SessionStore]:
        return self._state

    @property
    def user(self) -> Optional[SessionUser]:
        return self._state.user if self._state else None

    @property
    def token(self) -> Optional[str]:
        return self._state.token if self._state else None

    async def sign_in(self, email: str, password: str) -> SessionUser:
        email = (email or "").strip()
        if not validate_email(email):
            raise ValidationError("Invalid email address", field="email")
        if not password:
            raise ValidationError("Password is required", field="password")

        try:
            data = await self._client.rpc(
                "authenticate_user",
                {"p_email": email, "p_password": password},
            )
        except BackendRequestError as exc:
            logger.warning("Sign-in rejected for %s with status %s", email, exc.status)
            raise AuthenticationError("Invalid email or password") from exc

        if isinstance(data, list):
            data = data[0] if data else None
        if not isinstance(data, dict) or not data.get("success"):
            logger.warning("Sign-in rejected for %s", email)
            raise AuthenticationError("Invalid email or password")

        user = SessionUser(
            id=data.get("user_id"),
            email=str(data.get("email") or email),
            role=str(data.get("role") or "user"),
            full_name=data.get("full_name") or None,
        )
        self._state = self._issue(user)
        self._save()
        logger.info("Signed in %s", user.email)
        return user

    async def sign_up(self, email: str, password: str) -> SessionUser:
        if not validate_email(email):
            raise ValidationError("Invalid email address", field="email")
        if not password or len(password) < MIN_PASSWORD_LENGTH:
            raise ValidationError(
                f"Password must be at least {MIN_PASSWORD_LENGTH} characters",
                field="password",
            )
        raise AuthenticationError("New accounts cannot be created; use an existing account")

    async def reset_password(self, email: str) -> None:
        if not validate_email(email):
            raise ValidationError("Invalid email address", field="email")
        raise AuthenticationError("Password reset is not available")

    def sign_out(self) -> None:
        self._state = None
        self._store.remove(SESSION_KEY)
        self._store.remove(TOKEN_KEY)
        logger.info("Signed out")

    def restore_session(self) -> bool:
        try:
            raw_session = self._store.get(SESSION_KEY)
            token = self._store.get(TOKEN_KEY)
            if not raw_session or not token:
                return False
            user = SessionUser.from_payload(json.loads(raw_session))
        except (ValueError, KeyError, TypeError) as exc:
            logger.warning("Could not restore session: %s", exc)
            self._discard_persisted()
            return False

        self._state = SessionStore(user=user, token=token, expires_at=token_expiry(token))
        logger.info("Restored session for %s", user.email)
        return True

    def refresh_token(self) -> bool:
        if self._state is None:
            logger.error("Cannot refresh token: no active session")
            return False
        self._state = self._issue(self._state.user)
        self._save()
        logger.info("Refreshed session token for %s", self._state.user.email)
        return True

    def is_authenticated(self) -> bool:
        if self._state is None:
            return False
        if self._state.is_expired(self._clock()):
            logger.info("Session for %s expired", self._state.user.email)
            self.sign_out()
            return False
        return True

    def verify_token(self, token: Optional[str] = None) -> dict[str, Any]:
        """Decode a token minted by this manager, checking signature and expiry."""
        token = token or self.token
        if not token:
            raise AuthenticationError("No active session")
        try:
            claims = jwt.decode(
                token,
                self._secret,
                algorithms=[TOKEN_ALGORITHM],
                options={"verify_exp": False},
            )
        except JWTError as exc:
            raise AuthenticationError(f"Invalid session token: {exc}") from exc
        exp = claims.get("exp")
        if isinstance(exp, (int, float)) and self._clock() >= exp:
            raise AuthenticationError("Session token expired")
        return claims

    def _issue(self, user: SessionUser) -> SessionStore:
        issued_at = int(self._clock())
        expires_at = issued_at + self._ttl_seconds
        claims = {
            "sub": str(user.id),
            "email": user.email,
            "role": user.role,
            "iat": issued_at,
            "exp": expires_at,
        }
        token = jwt.encode(claims, self._secret, algorithm=TOKEN_ALGORITHM)
        return SessionStore(user=user, token=token, expires_at=float(expires_at))

    def _save(self) -> None:
        if self._state is None:
            return
        self._store.set(SESSION_KEY, json.dumps(self._state.user.to_dict(), ensure_ascii=False))
        self._store.set(TOKEN_KEY, self._state.token)

    def _discard_persisted(self) -> None:
        self._state = None
        try:
            self._store.remove(SESSION_KEY)
            self._store.remove(TOKEN_KEY)
        except (OSError, ValueError) as exc:
            logger.warning("Could not clear persisted session: %s", exc)
