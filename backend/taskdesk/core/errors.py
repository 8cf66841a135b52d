# backend/taskdesk/core/errors.py

"""
Typed error + result model shared by every engine operation.

Operations raise ``ServiceError`` inside their transaction so the
``AsyncSession.begin()`` block rolls back, and the ``returns_result``
decorator turns the outcome into ``Ok(value)`` or ``Err(error)`` for the
caller. HTTP handlers unwrap the result; everything else pattern-checks it.
"""

import enum
import functools
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from taskdesk.core.logger import get_logger

log = get_logger("errors")

T = TypeVar("T")


class ErrorKind(str, enum.Enum):
    unauthenticated = "unauthenticated"
    forbidden = "forbidden"
    not_found = "not_found"
    validation = "validation"
    internal = "internal"


STATUS_BY_KIND = {
    ErrorKind.unauthenticated: 401,
    ErrorKind.forbidden: 403,
    ErrorKind.not_found: 404,
    ErrorKind.validation: 400,
    ErrorKind.internal: 500,
}


class ServiceError(Exception):
    def __init__(self, kind: ErrorKind, message: str, details: Any = None):
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.details = details

    @property
    def status(self) -> int:
        return STATUS_BY_KIND[self.kind]

    def to_payload(self) -> dict:
        return {"error": {"message": self.message, "details": self.details}}

    def __repr__(self):
        return f"ServiceError({self.kind.value}, {self.message!r})"

    # shorthands used across services
    @classmethod
    def unauthenticated(cls, message="Unauthorized", details=None):
        return cls(ErrorKind.unauthenticated, message, details)

    @classmethod
    def forbidden(cls, message="Forbidden", details=None):
        return cls(ErrorKind.forbidden, message, details)

    @classmethod
    def not_found(cls, message="Not found", details=None):
        return cls(ErrorKind.not_found, message, details)

    @classmethod
    def validation(cls, message="Validation failed", details=None):
        return cls(ErrorKind.validation, message, details)

    @classmethod
    def internal(cls):
        return cls(ErrorKind.internal, "Internal server error")


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T

    @property
    def ok(self) -> bool:
        return True

    def unwrap(self) -> T:
        return self.value


@dataclass(frozen=True)
class Err:
    error: ServiceError

    @property
    def ok(self) -> bool:
        return False

    @property
    def kind(self) -> ErrorKind:
        return self.error.kind

    @property
    def status(self) -> int:
        return self.error.status

    @property
    def message(self) -> str:
        return self.error.message

    @property
    def details(self) -> Any:
        return self.error.details

    def unwrap(self):
        raise self.error


def returns_result(func):
    """
    Wrap an async service so it returns ``Ok``/``Err`` instead of raising.
    Unexpected failures are logged and collapse into an internal error with
    no details; cancellation is not an ``Exception`` and propagates untouched.
    """

    @functools.wraps(func)
    async def wrapper(*args, **kwargs):
        try:
            value = await func(*args, **kwargs)
        except ServiceError as exc:
            log.warning(
                f"{func.__name__} rejected: {exc.message}",
                extra={"action": func.__name__, "status_code": exc.status},
            )
            return Err(exc)
        except Exception:
            log.exception(
                f"{func.__name__} failed",
                extra={"action": func.__name__, "status_code": 500},
            )
            return Err(ServiceError.internal())
        return Ok(value)

    return wrapper
