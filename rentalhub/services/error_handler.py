"""
Error responses for the RentalHub API.

Every error leaves the application as
``{"error": {"code", "message", "timestamp", "request_id", "details"?}}``.
Internal details are logged server-side and never included in responses.
"""

from typing import Any, Dict, List, Mapping, Optional
from datetime import datetime, timezone
from fastapi import Request, status
from starlette.exceptions import HTTPException
from fastapi.responses import JSONResponse
from rentalhub.utils.exceptions import APIException, ErrorKind, GENERIC_INTERNAL_MESSAGE
import logging
import uuid

logger = logging.getLogger(__name__)


class ErrorHandlerService:
    """Turns exceptions into the API's error envelope and logs them."""

    @staticmethod
    def format_error_response(
        error_code: str,
        message: str,
        details: Optional[List[Dict[str, Any]]] = None,
        request_id: Optional[str] = None
    ) -> Dict[str, Any]:
        body: Dict[str, Any] = {
            "code": error_code,
            "message": message,
            "timestamp": ErrorHandlerService._get_current_timestamp(),
        }
        if details:
            body["details"] = details
        if request_id:
            body["request_id"] = request_id
        return {"error": body}

    @staticmethod
    def handle_api_exception(
        exception: APIException,
        request: Optional[Request] = None
    ) -> JSONResponse:
        """Respond to a failure raised by unwrapping a service Result."""
        kind = exception.kind
        request_id = ErrorHandlerService._generate_request_id()

        # Session and input failures are routine; only internal ones are errors
        if kind == ErrorKind.INTERNAL:
            level = logging.ERROR
        elif kind in (ErrorKind.UNAUTHENTICATED, ErrorKind.VALIDATION):
            level = logging.INFO
        else:
            level = logging.WARNING
        logger.log(
            level,
            f"{kind.value} failure [{request_id}]: {exception.detail}",
            extra={
                "error_kind": kind.value,
                "request_id": request_id,
                "path": ErrorHandlerService._path(request),
            }
        )

        return ErrorHandlerService._respond(
            kind.status_code,
            kind.error_code,
            exception.detail,
            request_id
        )

    @staticmethod
    def handle_validation_error(
        exception,
        request: Optional[Request] = None
    ) -> JSONResponse:
        """
        Handle request and pydantic validation errors.

        Each entry in ``details`` names the offending field, e.g. ``body -> rent``
        for form input or ``rent`` for fields validated inside a route.
        """
        request_id = ErrorHandlerService._generate_request_id()
        details = [
            {
                "field": " -> ".join(str(loc) for loc in error["loc"]),
                "message": error["msg"],
                "type": error["type"],
            }
            for error in exception.errors()
        ]

        logger.info(
            f"Rejected input [{request_id}]: {', '.join(d['field'] for d in details)}",
            extra={"request_id": request_id, "path": ErrorHandlerService._path(request)}
        )

        return ErrorHandlerService._respond(
            ErrorKind.VALIDATION.status_code,
            ErrorKind.VALIDATION.error_code,
            "Request validation failed",
            request_id,
            details=details
        )

    @staticmethod
    def handle_http_exception(
        exception: HTTPException,
        request: Optional[Request] = None
    ) -> JSONResponse:
        """Routing failures from Starlette itself, such as 404 and 405."""
        request_id = ErrorHandlerService._generate_request_id()

        logger.warning(
            f"HTTP {exception.status_code} [{request_id}]: {exception.detail}",
            extra={"request_id": request_id, "path": ErrorHandlerService._path(request)}
        )

        return ErrorHandlerService._respond(
            exception.status_code,
            f"HTTP_{exception.status_code}",
            str(exception.detail),
            request_id,
            headers=exception.headers
        )

    @staticmethod
    def handle_database_error(exception: Exception, request: Optional[Request] = None) -> JSONResponse:
        """A database failure that escaped the unit of work."""
        return ErrorHandlerService._internal_error("Database error", exception, request)

    @staticmethod
    def handle_unexpected_error(exception: Exception, request: Optional[Request] = None) -> JSONResponse:
        return ErrorHandlerService._internal_error("Unexpected error", exception, request)

    @staticmethod
    def _internal_error(label: str, exception: Exception, request: Optional[Request]) -> JSONResponse:
        request_id = ErrorHandlerService._generate_request_id()

        logger.error(
            f"{label} [{request_id}]: {type(exception).__name__}",
            extra={
                "request_id": request_id,
                "path": ErrorHandlerService._path(request),
                "exception_type": type(exception).__name__,
            },
            exc_info=exception
        )

        return ErrorHandlerService._respond(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            ErrorKind.INTERNAL.error_code,
            GENERIC_INTERNAL_MESSAGE,
            request_id
        )

    @staticmethod
    def _respond(
        status_code: int,
        error_code: str,
        message: str,
        request_id: str,
        details: Optional[List[Dict[str, Any]]] = None,
        headers: Optional[Mapping[str, str]] = None
    ) -> JSONResponse:
        return JSONResponse(
            status_code=status_code,
            content=ErrorHandlerService.format_error_response(
                error_code=error_code,
                message=message,
                details=details,
                request_id=request_id
            ),
            headers=headers
        )

    @staticmethod
    def _path(request: Optional[Request]) -> Optional[str]:
        return request.url.path if request else None

    @staticmethod
    def _generate_request_id() -> str:
        """Short identifier quoted in the response and in the log line."""
        return uuid.uuid4().hex[:8]

    @staticmethod
    def _get_current_timestamp() -> str:
        return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")
