from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.orm.exc import StaleDataError
from starlette import status
from starlette.exceptions import HTTPException as StarletteHTTPException

from ..middlewares.request_id import CORRELATION_HEADER

logger = logging.getLogger(__name__)

_HTTP_CODES = {
    status.HTTP_401_UNAUTHORIZED: "UNAUTHORIZED",
    status.HTTP_403_FORBIDDEN: "FORBIDDEN",
    status.HTTP_404_NOT_FOUND: "NOT_FOUND",
    status.HTTP_405_METHOD_NOT_ALLOWED: "METHOD_NOT_ALLOWED",
}


class DomainError(Exception):
    """Business failure with a stable machine-readable code."""

    code = "INVALID_REQUEST"
    status_code = status.HTTP_400_BAD_REQUEST
    message = "Ugyldig forespørsel"

    def __init__(self, message: str | None = None, *, code: str | None = None) -> None:
        if message is not None:
            self.message = message
        if code is not None:
            self.code = code
        super().__init__(self.message)


class UserNotFound(DomainError):
    code = "USER_NOT_FOUND"
    status_code = status.HTTP_404_NOT_FOUND
    message = "Bruker ikke funnet"


class ProjectNotFound(DomainError):
    code = "PROJECT_NOT_FOUND"
    status_code = status.HTTP_404_NOT_FOUND
    message = "Prosjekt ikke funnet"


class TimeEntryNotFound(DomainError):
    code = "TIME_ENTRY_NOT_FOUND"
    status_code = status.HTTP_404_NOT_FOUND
    message = "Timeføring ikke funnet"


class DuplicateEmail(DomainError):
    code = "DUPLICATE_EMAIL"
    status_code = status.HTTP_409_CONFLICT
    message = "Epost addressen er allerede registrert"


class ProjectHasTimeEntries(DomainError):
    code = "PROJECT_HAS_TIME_ENTRIES"
    status_code = status.HTTP_409_CONFLICT
    message = "Kan ikke slette prosjekt med registrerte timer"


class ConcurrentModification(DomainError):
    code = "CONCURRENT_MODIFICATION"
    status_code = status.HTTP_409_CONFLICT
    message = "Ressursen er endret av en annen forespørsel, last inn på nytt og prøv igjen"


class TimeEntryRejected(DomainError):
    """Raised by the time-entry validator; ``code`` names the rule that failed."""

    status_code = status.HTTP_400_BAD_REQUEST


class ErrorEnvelope(JSONResponse):
    def __init__(
        self,
        *,
        request: Request,
        status_code: int,
        code: str,
        message: str,
        errors: dict[str, str] | None = None,
        headers: dict[str, str] | None = None,
    ) -> None:
        payload: dict[str, Any] = {
            "message": message,
            "code": code,
            "status": status_code,
            "timestamp": datetime.now(timezone.utc).isoformat(timespec="seconds"),
            "path": request.url.path,
        }
        if errors is not None:
            payload["errors"] = errors
        super().__init__(payload, status_code=status_code, headers=headers)


def _field_name(loc: tuple[Any, ...] | list[Any]) -> str:
    parts = [str(part) for part in loc if part not in ("body", "query", "path")]
    return ".".join(parts) or "body"


def _clean_message(message: str) -> str:
    prefix = "Value error, "
    return message[len(prefix):] if message.startswith(prefix) else message


async def domain_error_handler(request: Request, exc: DomainError):
    return ErrorEnvelope(request=request, status_code=exc.status_code, code=exc.code, message=exc.message)


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    detail = exc.detail
    message = detail if isinstance(detail, str) else "Feil ved behandling av forespørselen"
    code = _HTTP_CODES.get(exc.status_code, "HTTP_ERROR")
    return ErrorEnvelope(
        request=request,
        status_code=exc.status_code,
        code=code,
        message=message,
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors: dict[str, str] = {}
    for error in exc.errors():
        errors.setdefault(_field_name(error.get("loc", ())), _clean_message(str(error.get("msg", ""))))
    return ErrorEnvelope(
        request=request,
        status_code=status.HTTP_400_BAD_REQUEST,
        code="VALIDATION_ERROR",
        message="Valideringsfeil",
        errors=errors,
    )


async def stale_data_handler(request: Request, exc: StaleDataError):
    logger.warning("optimistic lock failed: %s", exc)
    conflict = ConcurrentModification()
    return ErrorEnvelope(request=request, status_code=conflict.status_code, code=conflict.code, message=conflict.message)


async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.error("unhandled exception on %s %s", request.method, request.url.path, exc_info=exc)
    # Rendered outside RequestIdMiddleware, so the header is not added for us.
    correlation_id = getattr(request.state, "correlation_id", None) or request.headers.get(CORRELATION_HEADER)
    return ErrorEnvelope(
        request=request,
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        code="INTERNAL_ERROR",
        message="Noe gikk galt, prøv igjen senere",
        headers={CORRELATION_HEADER: correlation_id} if correlation_id else None,
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(DomainError, domain_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(StaleDataError, stale_data_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
