"""
Exception types raised at the HTTP boundary.

Every failure the API reports deliberately carries an ErrorKind; the kind
decides the status code and the error code clients see.
"""

import enum

from fastapi import HTTPException, status


GENERIC_INTERNAL_MESSAGE = "An unexpected error occurred. Please try again later."


class ErrorKind(str, enum.Enum):
    """Failure taxonomy shared by all services."""
    UNAUTHENTICATED = "unauthenticated"
    FORBIDDEN = "forbidden"
    NOT_FOUND = "not_found"
    VALIDATION = "validation"
    CONFLICT = "conflict"
    INTERNAL = "internal"

    @property
    def status_code(self) -> int:
        return _STATUS_CODES[self]

    @property
    def error_code(self) -> str:
        return _ERROR_CODES[self]


_STATUS_CODES = {
    ErrorKind.UNAUTHENTICATED: status.HTTP_401_UNAUTHORIZED,
    ErrorKind.FORBIDDEN: status.HTTP_403_FORBIDDEN,
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.VALIDATION: status.HTTP_422_UNPROCESSABLE_ENTITY,
    ErrorKind.CONFLICT: status.HTTP_409_CONFLICT,
    ErrorKind.INTERNAL: status.HTTP_500_INTERNAL_SERVER_ERROR,
}

_ERROR_CODES = {
    ErrorKind.UNAUTHENTICATED: "UNAUTHORIZED",
    ErrorKind.FORBIDDEN: "FORBIDDEN",
    ErrorKind.NOT_FOUND: "NOT_FOUND",
    ErrorKind.VALIDATION: "VALIDATION_ERROR",
    ErrorKind.CONFLICT: "CONFLICT",
    ErrorKind.INTERNAL: "INTERNAL_SERVER_ERROR",
}


class APIException(HTTPException):
    """A failure of a known kind, raised where a Result is unwrapped."""

    def __init__(self, kind: ErrorKind, detail: str):
        # Internal failures never carry their original message outward
        if kind == ErrorKind.INTERNAL:
            detail = GENERIC_INTERNAL_MESSAGE
        super().__init__(status_code=kind.status_code, detail=detail)
        self.kind = kind

    @property
    def error_code(self) -> str:
        return self.kind.error_code


class ValidationError(APIException):
    """Client input rejected outside of pydantic, such as an unreadable image."""

    def __init__(self, detail: str):
        super().__init__(ErrorKind.VALIDATION, detail)
