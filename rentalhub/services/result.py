"""
Explicit operation outcomes for the service layer.
Every service operation returns a Result that is either a value or a typed failure.
"""

from typing import Generic, Optional, TypeVar

from rentalhub.utils.exceptions import APIException, ErrorKind

T = TypeVar("T")


class ServiceError:
    """A failure kind plus a caller-safe message."""

    def __init__(self, kind: ErrorKind, message: str):
        self.kind = kind
        self.message = message

    def __repr__(self) -> str:
        return f"<ServiceError(kind={self.kind.value}, message={self.message!r})>"

    def to_exception(self) -> APIException:
        return APIException(self.kind, self.message)


class Result(Generic[T]):
    """
    Outcome of a service operation.

    Exactly one of `value` and `error` is meaningful, decided by `ok`.
    Routers call `unwrap()` at the HTTP boundary; services inspect `ok`
    and pass failures upward unchanged.
    """

    __slots__ = ("ok", "value", "error")

    def __init__(self, ok: bool, value: Optional[T] = None, error: Optional[ServiceError] = None):
        self.ok = ok
        self.value = value
        self.error = error

    @classmethod
    def success(cls, value: T = None) -> "Result[T]":
        return cls(True, value=value)

    @classmethod
    def failure(cls, kind: ErrorKind, message: str) -> "Result[T]":
        return cls(False, error=ServiceError(kind, message))

    @classmethod
    def not_found(cls, resource: str, resource_id) -> "Result[T]":
        return cls.failure(
            ErrorKind.NOT_FOUND,
            f"{resource} not found with ID: {resource_id}"
        )

    @property
    def kind(self) -> Optional[ErrorKind]:
        return self.error.kind if self.error else None

    def unwrap(self) -> T:
        """Return the value or raise the API exception for the failure kind."""
        if self.ok:
            return self.value
        raise self.error.to_exception()

    def __repr__(self) -> str:
        if self.ok:
            return f"<Result.success({self.value!r})>"
        return f"<Result.failure({self.error!r})>"
