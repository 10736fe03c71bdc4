# backend/tutorlink/errors.py
"""
Application error handlers.

Every failure is rendered as ``{"success": false, "message": ..., "code": ...}``
plus any structured details from the raising domain exception (for
example the client secret of a payment that needs customer action).
Request validation failures are InvalidRequest errors and use 400.
"""

import logging
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .core.exceptions import DomainException

logger = logging.getLogger(__name__)

_RESERVED_KEYS = {"success", "message", "code"}


def _error_body(message: str, code: Optional[str] = None, extras: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    body: Dict[str, Any] = {"success": False, "message": message}
    if code:
        body["code"] = code
    for key, value in (extras or {}).items():
        if key not in _RESERVED_KEYS:
            body[key] = value
    return body


def _parse_detail(detail: Any) -> tuple[str, Optional[str], Dict[str, Any]]:
    if isinstance(detail, dict):
        message = detail.get("message") or detail.get("detail") or "Request failed"
        code = detail.get("code") if isinstance(detail.get("code"), str) else None
        extras = detail.get("details") if isinstance(detail.get("details"), dict) else {}
        return str(message), code, extras
    if detail is None:
        return "Request failed", None, {}
    return str(detail), None, {}


def register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        message, code, extras = _parse_detail(exc.detail)
        return JSONResponse(
            status_code=exc.status_code,
            content=jsonable_encoder(_error_body(message, code, extras)),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(DomainException)
    async def domain_exception_handler(request: Request, exc: DomainException) -> JSONResponse:
        http_exc = exc.to_http_exception()
        return await http_exception_handler(request, http_exc)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        errors = jsonable_encoder(exc.errors())
        first = errors[0] if errors else {}
        location = ".".join(str(part) for part in first.get("loc", []) if part != "body")
        message = f"{location}: {first.get('msg')}" if location else (first.get("msg") or "Invalid request")
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=_error_body(message, "VALIDATION_ERROR", {"errors": errors}),
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.error(f"Unhandled error on {request.method} {request.url.path}: {exc}", exc_info=exc)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=_error_body("Server error", "INTERNAL_ERROR"),
        )
