from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Any, Awaitable, Generic, Optional, TypeVar

T = TypeVar("T")


class ErrorKind(str, enum.Enum):
    VALIDATION = "validation"
    NETWORK = "network"
    TIMEOUT = "timeout"
    PROTOCOL = "protocol"
    PARSE = "parse"
    STORAGE_LIMIT = "storage_limit"
    AUTH = "auth"


class BackendError(RuntimeError):
    """Base class for every failure surfaced by the data-access layer."""

    kind: ErrorKind = ErrorKind.NETWORK


class ValidationError(BackendError):
    """Raised before any network call when input is missing or malformed."""

    kind = ErrorKind.VALIDATION

    def __init__(self, message: str, *, field: Optional[str] = None) -> None:
        super().__init__(message)
        self.field = field


class StorageLimitError(ValidationError):
    kind = ErrorKind.STORAGE_LIMIT

    def __init__(self, message: str, *, size: int, limit: int) -> None:
        super().__init__(message, field="file")
        self.size = size
        self.limit = limit


class BackendNetworkError(BackendError):
    kind = ErrorKind.NETWORK


class RequestTimeoutError(BackendNetworkError):
    kind = ErrorKind.TIMEOUT

    def __init__(self, message: str, *, timeout: float) -> None:
        super().__init__(message)
        self.timeout = timeout


class BackendRequestError(BackendError):
    """Raised when the backend returns an error status."""

    kind = ErrorKind.PROTOCOL

    def __init__(
        self,
        status: int,
        message: str,
        body: Optional[str] = None,
        *,
        server_message: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.status = status
        self.body = body or message
        self.server_message = server_message


class BackendParseError(BackendError):
    kind = ErrorKind.PARSE

    def __init__(self, message: str, body: Optional[str] = None) -> None:
        super().__init__(message)
        self.body = body


class AuthenticationError(BackendError):
    kind = ErrorKind.AUTH


@dataclass(frozen=True, slots=True)
class Result(Generic[T]):
    """Outcome of a data-access call: either a value or a classified error."""

    value: Optional[T] = None
    error: Optional[BackendError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def kind(self) -> Optional[ErrorKind]:
        return self.error.kind if self.error is not None else None

    @property
    def message(self) -> str:
        return str(self.error) if self.error is not None else ""

    def unwrap(self) -> T:
        if self.error is not None:
            raise self.error
        return self.value  # type: ignore[return-value]

    def value_or(self, default: Any) -> Any:
        return default if self.error is not None else self.value

    @classmethod
    def success(cls, value: T) -> "Result[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, error: BackendError) -> "Result[T]":
        return cls(error=error)

    @classmethod
    async def capture(cls, awaitable: Awaitable[T]) -> "Result[T]":
        try:
            value = await awaitable
        except BackendError as exc:
            return cls(error=exc)
        return cls(value=value)
