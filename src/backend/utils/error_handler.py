# src/backend/utils/error_handler.py
from __future__ import annotations

import logging
from typing import Any, Dict

from fastapi import Request, HTTPException as FastAPIHTTPException
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from src.backend.utils.menu_errors import MenuError

logger = logging.getLogger("fastapi")


def _safe_args(exc: Exception) -> str:
    a = getattr(exc, "args", None)
    return str(a) if a else "No additional details"


def _json_error(
    status_code: int,
    message: str,
    exc: Exception,
    extra: Dict[str, Any] | None = None,
) -> JSONResponse:
    """
    Unified JSON error response.
    Note: We keep professional user-facing messages here.
    """
    user_message = message
    if status_code == 401:
        user_message = "Your session has timed out for security reasons. Please log in again."
    elif status_code == 403:
        user_message = "Access denied. You do not have permission to access this page."
    elif status_code == 500:
        user_message = "Internal Server Error. Please try again later."

    payload: Dict[str, Any] = {
        "message": user_message,
        "error_type": exc.__class__.__name__,
        "status_code": status_code,
    }

    if extra:
        payload.update(extra)

    return JSONResponse(status_code=status_code, content=jsonable_encoder(payload))


def _log_http(request: Request, status_code: int, detail: str, exc: Exception) -> None:
    """
    Log levels:
    - 404 -> INFO (normal noise)
    - 401/403 -> WARNING (auth/permission)
    - other 4xx -> ERROR (client error worth checking)
    - 5xx -> EXCEPTION (stack trace)
    """
    url = str(request.url)
    method = request.method

    if status_code == 404:
        logger.info("404 Not Found: %s %s | detail=%s", method, url, detail)
        return

    if status_code in (401, 403):
        logger.warning("%s: %s %s | detail=%s", status_code, method, url, detail)
        return

    if 400 <= status_code < 500:
        logger.error(
            "%s: %s %s | detail=%s | args=%s",
            status_code,
            method,
            url,
            detail,
            _safe_args(exc),
        )
        return

    logger.exception("%s: %s %s | detail=%s", status_code, method, url, detail)


async def custom_exception_handler(request: Request, exc: Exception):
    """
    Single handler registered for every error class the API can raise.
    Menu tree violations keep their own message and error_code so the edit
    form can show them next to the parent/code fields.
    """
    # -----------------------------
    # 1) Menu tree errors
    # -----------------------------
    if isinstance(exc, MenuError):
        _log_http(request, exc.status_code, exc.message, exc)
        return _json_error(
            status_code=exc.status_code,
            message=exc.message,
            exc=exc,
            extra=exc.to_payload(),
        )

    # -----------------------------
    # 2) Starlette / FastAPI HTTPException
    # -----------------------------
    if isinstance(exc, (StarletteHTTPException, FastAPIHTTPException)):
        status = int(exc.status_code)
        detail = str(exc.detail)

        _log_http(request, status, detail, exc)
        return _json_error(status_code=status, message=detail, exc=exc)

    # -----------------------------
    # 3) Validation error
    # -----------------------------
    if isinstance(exc, RequestValidationError):
        logger.warning(
            "422 Validation error: %s %s | %s",
            request.method,
            str(request.url),
            exc.errors(),
        )
        return _json_error(
            status_code=422,
            message="Validation error occurred",
            exc=exc,
            extra={"validation_errors": exc.errors()},
        )

    # -----------------------------
    # 4) Any other unexpected exception
    # -----------------------------
    logger.exception("500 Unhandled exception: %s %s | %s", request.method, str(request.url), str(exc))
    return _json_error(
        status_code=500,
        message="Internal Server Error. Please try again later.",
        exc=exc,
    )
