"""Error envelope shared by every evaluation-forms endpoint.

Every failure leaves the API as ``{"error": {"code", "message", "details"?}}``.
Services keep raising ``HTTPException``; a dict ``detail`` may carry an
explicit ``message`` and ``details`` list.
"""
from __future__ import annotations

import logging
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

_LOG = logging.getLogger("evalforms.errors")

_CODES_BY_STATUS = {
    400: "validation_error",
    401: "unauthorized",
    403: "forbidden",
    404: "not_found",
    409: "conflict",
    422: "validation_error",
}


def error_body(code: str, message: str, details: list[dict[str, Any]] | None = None) -> dict[str, Any]:
    body: dict[str, Any] = {"code": code, "message": message}
    if details is not None:
        body["details"] = details
    return {"error": body}


def validation_details(errors: list[dict[str, Any]]) -> list[dict[str, Any]]:
    out: list[dict[str, Any]] = []
    for err in errors:
        loc = list(err.get("loc") or ())
        if loc and loc[0] in {"body", "query", "path"}:
            loc = loc[1:]
        out.append({"path": [str(part) for part in loc], "message": str(err.get("msg") or "Invalid value")})
    return out


def validation_message(details: list[dict[str, Any]]) -> str:
    if not details:
        return "Validation failed"
    parts = []
    for item in details:
        path = ".".join(item.get("path") or [])
        parts.append(f"{path}: {item['message']}" if path else item["message"])
    if len(parts) == 1:
        return parts[0]
    return "Multiple validation errors: " + "; ".join(parts)


def install_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(HTTPException)
    async def _http_exception_handler(request: Request, exc: HTTPException):
        code = _CODES_BY_STATUS.get(exc.status_code, "server_error" if exc.status_code >= 500 else "error")
        details = None
        if isinstance(exc.detail, dict):
            message = str(exc.detail.get("message") or "Request failed")
            details = exc.detail.get("details")
            code = str(exc.detail.get("code") or code)
        else:
            message = str(exc.detail or "Request failed")
        return JSONResponse(
            status_code=exc.status_code,
            content=error_body(code, message, details),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def _validation_exception_handler(request: Request, exc: RequestValidationError):
        details = validation_details(list(exc.errors()))
        return JSONResponse(status_code=400, content=error_body("validation_error", validation_message(details), details))

    @app.exception_handler(Exception)
    async def _unhandled_exception_handler(request: Request, exc: Exception):
        _LOG.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(status_code=500, content=error_body("server_error", "Internal server error"))
