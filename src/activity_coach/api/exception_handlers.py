"""
Exception handlers for the FastAPI application.

Application exceptions become JSON error bodies of the form
``{"error": {"code", "message", "details"?}}``.
"""

import logging
import traceback
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from ..exceptions import ActivityCoachError, ErrorCode


logger = logging.getLogger("activity_coach.api")


def create_error_response(
    status_code: int,
    code: str,
    message: str,
    details: Optional[Dict[str, Any]] = None,
) -> JSONResponse:
    """Create a standardized error response."""
    content: Dict[str, Any] = {
        "error": {
            "code": code,
            "message": message,
        }
    }
    if details:
        content["error"]["details"] = details
    return JSONResponse(status_code=status_code, content=content)


async def activity_coach_error_handler(
    request: Request,
    exc: ActivityCoachError,
) -> JSONResponse:
    """Handle all ActivityCoachError exceptions."""
    if exc.status_code >= 500:
        logger.warning(f"{request.method} {request.url.path} failed: {exc.code.value} {exc.message}")
    return create_error_response(
        status_code=exc.status_code,
        code=exc.code.value,
        message=exc.message,
        details=exc.details if exc.details else None,
    )


async def request_validation_error_handler(
    request: Request,
    exc: RequestValidationError,
) -> JSONResponse:
    """Handle request parameter validation errors."""
    errors = []
    for error in exc.errors():
        loc = ".".join(str(x) for x in error["loc"])
        errors.append({
            "field": loc,
            "message": error["msg"],
            "type": error["type"],
        })

    return create_error_response(
        status_code=422,
        code=ErrorCode.VALIDATION_ERROR.value,
        message="Request validation failed",
        details={"errors": errors},
    )


async def generic_exception_handler(
    request: Request,
    exc: Exception,
) -> JSONResponse:
    """Handle unexpected exceptions."""
    logger.error(f"Unhandled exception: {exc}\n{traceback.format_exc()}")
    return create_error_response(
        status_code=500,
        code=ErrorCode.INTERNAL_ERROR.value,
        message="An unexpected error occurred",
    )


def register_exception_handlers(app: FastAPI) -> None:
    """
    Register all exception handlers with the FastAPI application.

    Args:
        app: The FastAPI application instance
    """
    app.add_exception_handler(ActivityCoachError, activity_coach_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_error_handler)
    # Catch-all, must stay last
    app.add_exception_handler(Exception, generic_exception_handler)
