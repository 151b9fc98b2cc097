"""Error Handlers — turn exceptions raised on the command surface into failed CommandResults.

Invariants:
    - Every error body carries the CommandResult fields (success=false, message,
      error_code), so a chat bot renders any failure the same way it renders
      a rejected answer; the structured envelope rides alongside under "error"
    - RequestValidationError → 400, details keyed by the field name the caller sent
    - Exception (catch-all) → 500, never leaks internal details
    - Log lines carry the community and game type from the path when present

Design Decisions:
    - Expected game outcomes never reach here: the engine returns them as CommandResult
    - Field locations drop the "body"/"query"/"path" prefix; the source moves to "location"
"""

import logging
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from arcade.core.errors import ArcadeError, ErrorCategory, ErrorSeverity

logger = logging.getLogger(__name__)

INTERNAL_MESSAGE = "Something went wrong on the arcade side. Please try again."


def register_error_handlers(app: FastAPI) -> None:
    _register_arcade_error_handler(app)
    _register_validation_error_handler(app)
    _register_generic_error_handler(app)


def failed_result(status_code: int, message: str, error: dict[str, Any]) -> JSONResponse:
    """A failed CommandResult with the error envelope attached."""
    return JSONResponse(
        status_code=status_code,
        content={
            "success": False,
            "message": message,
            "error_code": error["code"],
            "data": None,
            "error": error,
        },
    )


def _register_arcade_error_handler(app: FastAPI) -> None:

    @app.exception_handler(ArcadeError)
    async def arcade_error_handler(request: Request, exc: ArcadeError):
        logger.warning(
            f"{exc.code} on {request.url.path}: {exc.message}",
            extra={
                "error_code": exc.code,
                "community_id": exc.context.community_id or _path_param(request, "community_id"),
                "game_type": exc.context.game_type or _path_param(request, "game_type"),
            },
        )
        return failed_result(exc.http_status, exc.message, exc.to_response()["error"])


def _register_validation_error_handler(app: FastAPI) -> None:

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        details = [_field_detail(e) for e in exc.errors()]
        logger.info(
            f"Rejected command on {request.url.path}: "
            + "; ".join(f"{d['field']}: {d['message']}" for d in details),
            extra=_path_extra(request, error_code="VALIDATION_ERROR"),
        )
        return failed_result(
            status.HTTP_400_BAD_REQUEST,
            _validation_message(details),
            {
                "code": "VALIDATION_ERROR",
                "message": "Invalid command",
                "category": ErrorCategory.VALIDATION.value,
                "severity": ErrorSeverity.WARNING.value,
                "details": details,
            },
        )


def _register_generic_error_handler(app: FastAPI) -> None:

    @app.exception_handler(Exception)
    async def generic_error_handler(request: Request, exc: Exception):
        logger.error(
            f"Unhandled exception on {request.url.path}: {exc}",
            extra=_path_extra(request, error_code="INTERNAL_ERROR"),
            exc_info=True,
        )
        return failed_result(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            INTERNAL_MESSAGE,
            {
                "code": "INTERNAL_ERROR",
                "message": "An unexpected error occurred",
                "category": ErrorCategory.INTERNAL.value,
                "severity": ErrorSeverity.CRITICAL.value,
            },
        )


def _field_detail(error: dict[str, Any]) -> dict[str, Any]:
    loc = [str(part) for part in error["loc"]]
    location = loc[0] if loc and loc[0] in ("body", "query", "path") else "body"
    field = ".".join(loc[1:] if loc and loc[0] == location else loc) or location
    return {
        "field": field,
        "location": location,
        "message": error["msg"],
        "type": error["type"],
    }


def _validation_message(details: list[dict[str, Any]]) -> str:
    if not details:
        return "That command is not valid."
    first = details[0]
    more = f" (and {len(details) - 1} more)" if len(details) > 1 else ""
    return f"Invalid `{first['field']}`: {first['message']}{more}"


def _path_param(request: Request, name: str) -> str | None:
    return request.path_params.get(name)


def _path_extra(request: Request, **fields: Any) -> dict[str, Any]:
    extra = dict(fields)
    for name in ("community_id", "game_type"):
        value = _path_param(request, name)
        if value is not None:
            extra[name] = value
    return extra
