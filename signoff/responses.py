"""
Signoff API Response Utilities
Standardized response format, error taxonomy and error handling
"""
from fastapi import HTTPException, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from typing import Any, Dict, Optional
from datetime import datetime, timezone

from .logging_config import api_logger
from .messages import t


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


# ============================================================
# SUCCESS RESPONSES
# ============================================================

def success(message: str = None, **data: Any) -> Dict:
    """Create success response"""
    response = {"success": True}
    if message:
        response["message"] = message
    response.update(data)
    return response


# ============================================================
# ERROR TAXONOMY
# ============================================================

class ApiException(HTTPException):
    """API exception carrying a machine-readable error code"""

    status_code_default = 500
    error_code_default = "INTERNAL_ERROR"

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        error_code: Optional[str] = None,
        details: Optional[Dict] = None,
        headers: Optional[Dict[str, str]] = None,
    ):
        self.error_code = error_code or self.error_code_default
        self.details = details
        super().__init__(
            status_code=status_code or self.status_code_default,
            detail=message,
            headers=headers,
        )


class Unauthenticated(ApiException):
    """No valid session."""
    status_code_default = 401
    error_code_default = "UNAUTHENTICATED"

    def __init__(self, message: str, **kwargs):
        kwargs.setdefault("headers", {"WWW-Authenticate": "Bearer"})
        super().__init__(message, **kwargs)


class Forbidden(ApiException):
    """Authenticated but not allowed to act on the resource."""
    status_code_default = 403
    error_code_default = "FORBIDDEN"


class NotFound(ApiException):
    status_code_default = 404
    error_code_default = "NOT_FOUND"


class InvalidInput(ApiException):
    status_code_default = 400
    error_code_default = "INVALID_INPUT"


class AlreadyDecided(ApiException):
    """Approval step has left the pending state."""
    status_code_default = 400
    error_code_default = "ALREADY_DECIDED"


class Unexpected(ApiException):
    """Storage or network failure. The message shown to callers stays generic."""
    status_code_default = 500
    error_code_default = "INTERNAL_ERROR"


# ============================================================
# EXCEPTION HANDLER
# ============================================================

def _error_body(message: str, error_code: str, details: Optional[Dict] = None) -> Dict:
    return {
        "ok": False,
        "error": message,
        "error_code": error_code,
        "details": details,
        "timestamp": _timestamp(),
    }


async def api_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Global exception handler for API errors"""

    if isinstance(exc, ApiException):
        log = api_logger.error if exc.status_code >= 500 else api_logger.warning
        log(
            f"API Error: {exc.detail}",
            status_code=exc.status_code,
            error_code=exc.error_code,
            path=request.url.path,
        )
        return JSONResponse(
            status_code=exc.status_code,
            content=_error_body(exc.detail, exc.error_code, exc.details),
            headers=exc.headers,
        )

    if isinstance(exc, HTTPException):
        api_logger.warning(
            f"HTTP Error: {exc.detail}",
            status_code=exc.status_code,
            path=request.url.path,
        )
        return JSONResponse(
            status_code=exc.status_code,
            content=_error_body(exc.detail, f"HTTP_{exc.status_code}"),
            headers=getattr(exc, "headers", None),
        )

    api_logger.error(
        f"Unexpected error: {exc}",
        error=exc,
        path=request.url.path,
    )
    return JSONResponse(
        status_code=500,
        content=_error_body("An unexpected error occurred", "INTERNAL_ERROR"),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Render malformed bodies, paths and query strings as 400 INVALID_INPUT"""
    errors = jsonable_encoder(exc.errors())
    api_logger.warning(
        "Request validation failed",
        path=request.url.path,
        fields=[".".join(str(part) for part in error["loc"]) for error in errors],
    )
    return JSONResponse(
        status_code=InvalidInput.status_code_default,
        content=_error_body(t("invalid_request"), InvalidInput.error_code_default, {"errors": errors}),
    )


# ============================================================
# VALIDATION HELPERS
# ============================================================

def require_text(value: Optional[str], message: str, field_name: str) -> str:
    """Require a non-blank string, returning it unchanged"""
    if value is None or not value.strip():
        raise InvalidInput(message, details={"field": field_name})
    return value
