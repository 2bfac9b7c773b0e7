"""
result.py — Service results & error taxonomy
Every public service operation returns Ok(value) or Err(kind, message).
Domain errors are raised inside services and converted at the boundary
by @service_call, which also rolls back the session and normalizes
storage failures.
"""

import enum
import functools
import logging
from dataclasses import dataclass
from typing import Any, Generic, TypeVar, Union

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ErrorKind(str, enum.Enum):
    NOT_FOUND = "not_found"
    DUPLICATE_DATE = "duplicate_date"
    VALIDATION = "validation"
    INVALID_PIN = "invalid_pin"
    UNAUTHORIZED = "unauthorized"
    STORAGE = "storage"


class ServiceError(Exception):
    kind: ErrorKind = ErrorKind.VALIDATION

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(ServiceError):
    kind = ErrorKind.NOT_FOUND


class DuplicateDateError(ServiceError):
    kind = ErrorKind.DUPLICATE_DATE


class ValidationError(ServiceError):
    kind = ErrorKind.VALIDATION


class InvalidPinError(ServiceError):
    kind = ErrorKind.INVALID_PIN


class UnauthorizedError(ServiceError):
    kind = ErrorKind.UNAUTHORIZED


class StorageError(ServiceError):
    kind = ErrorKind.STORAGE


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T

    @property
    def is_ok(self) -> bool:
        return True


@dataclass(frozen=True)
class Err:
    kind: ErrorKind
    message: str

    @property
    def is_ok(self) -> bool:
        return False


Result = Union[Ok[T], Err]


def _find_session(args: tuple, kwargs: dict) -> Session | None:
    for value in (*args, *kwargs.values()):
        if isinstance(value, Session):
            return value
    return None


def service_call(error_prefix: str = "Error"):
    """Wrap a service operation so it returns a Result instead of raising.

    ServiceError subclasses become Err(kind, message). SQLAlchemyError
    becomes Err(STORAGE, "<prefix>: <detail>"). Either way the session
    passed to the operation is rolled back.
    """

    def decorator(fn):
        @functools.wraps(fn)
        def wrapper(*args: Any, **kwargs: Any) -> Result:
            try:
                return Ok(fn(*args, **kwargs))
            except ServiceError as e:
                db = _find_session(args, kwargs)
                if db is not None:
                    db.rollback()
                return Err(e.kind, e.message)
            except SQLAlchemyError as e:
                logger.exception(f"{fn.__qualname__} failed against the store")
                db = _find_session(args, kwargs)
                if db is not None:
                    db.rollback()
                return Err(ErrorKind.STORAGE, f"{error_prefix}: {e}")

        return wrapper

    return decorator


def require_user(user_id: int | None) -> int:
    """Reject calls made without an authenticated user id."""
    if not user_id or user_id <= 0:
        raise UnauthorizedError("Unauthorized.")
    return user_id


_ERRORS_BY_KIND = {
    cls.kind: cls
    for cls in (NotFoundError, DuplicateDateError, ValidationError, InvalidPinError, UnauthorizedError, StorageError)
}


def unwrap(result: Result[T]) -> T:
    """Value of an Ok; re-raise an Err as its domain exception (for composing services)."""
    if isinstance(result, Err):
        raise _ERRORS_BY_KIND[result.kind](result.message)
    return result.value
