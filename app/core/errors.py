import logging
from datetime import datetime

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from app.core.exceptions import ConflictError, NotFoundError, ValidationError
from app.schemas.errors import ApiError

logger = logging.getLogger(__name__)


def _error_response(status_code: int, status: str, reason: str, message: str, errors=None) -> JSONResponse:
    body = ApiError(
        status=status,
        reason=reason,
        message=message,
        timestamp=datetime.now(),
        errors=errors or [],
    )
    return JSONResponse(status_code=status_code, content=body.model_dump(mode="json"))


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(NotFoundError)
    async def handle_not_found(request: Request, exc: NotFoundError):
        logger.warning("Not found error: %s", exc)
        return _error_response(404, "NOT_FOUND", "The required object was not found.", str(exc))

    @app.exception_handler(ConflictError)
    async def handle_conflict(request: Request, exc: ConflictError):
        logger.warning("Conflict error: %s", exc)
        return _error_response(409, "CONFLICT", "Integrity constraint has been violated.", str(exc))

    @app.exception_handler(ValidationError)
    async def handle_validation(request: Request, exc: ValidationError):
        logger.warning("Validation error: %s", exc)
        return _error_response(400, "BAD_REQUEST", "Incorrectly made request.", str(exc))

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        errors = [f"{'.'.join(str(part) for part in e['loc'])}: {e['msg']}" for e in exc.errors()]
        logger.warning("Request validation failed: %s", errors)
        return _error_response(400, "BAD_REQUEST", "Incorrectly made request.", "Validation failed", errors)

    @app.exception_handler(Exception)
    async def handle_unexpected(request: Request, exc: Exception):
        logger.error("Internal server error", exc_info=exc)
        return _error_response(500, "INTERNAL_SERVER_ERROR", "Internal server error", "Unexpected error")
