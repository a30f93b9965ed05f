"""
Error handlers: map tilehub errors to RFC 7807 responses.
"""

from __future__ import annotations

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from tilehub.api.schemas import ProblemDetail
from tilehub.core.errors import ErrorCategory, TileHubError
from tilehub.core.logging import get_logger

logger = get_logger(__name__)

# ── Error category → HTTP status mapping ─────────────────────────────────

CATEGORY_TO_STATUS: dict[ErrorCategory, int] = {
    ErrorCategory.VALIDATION: 400,
    ErrorCategory.CIRCUIT: 503,
    ErrorCategory.SOURCE: 502,
    ErrorCategory.CACHE: 503,
    ErrorCategory.CONFIG: 500,
    ErrorCategory.EXTRACTION: 500,
    ErrorCategory.SYNTHESIS: 500,
    ErrorCategory.INTERNAL: 500,
    ErrorCategory.UNKNOWN: 500,
}

_TITLES = {
    400: "Bad Request",
    500: "Internal Server Error",
    502: "Bad Gateway",
    503: "Service Unavailable",
}


def status_for_category(category: ErrorCategory) -> int:
    """Resolve an error category to HTTP status, defaulting to 500."""
    return CATEGORY_TO_STATUS.get(category, 500)


def problem_response(
    *,
    status: int,
    title: str,
    detail: str = "",
    instance: str = "",
    category: str | None = None,
) -> JSONResponse:
    """Build a RFC 7807 JSON error response."""
    body = ProblemDetail(title=title, status=status, detail=detail, instance=instance, category=category)
    return JSONResponse(
        status_code=status,
        content=body.model_dump(),
        media_type="application/problem+json",
    )


async def tilehub_error_handler(request: Request, exc: TileHubError) -> JSONResponse:
    """Typed errors keep their message; status follows the category."""
    status = status_for_category(exc.category)
    log = logger.info if status < 500 else logger.error
    log("request_failed", path=request.url.path, status=status, **exc.to_dict())
    return problem_response(
        status=status,
        title=_TITLES.get(status, "Error"),
        detail=exc.message,
        instance=str(request.url),
        category=exc.category.value,
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed request bodies are 400 problems, like every other invalid request."""
    errors = "; ".join(
        f"{'.'.join(str(p) for p in err.get('loc', ()))}: {err.get('msg')}" for err in exc.errors()
    )
    return problem_response(
        status=400,
        title="Bad Request",
        detail=errors,
        instance=str(request.url),
        category=ErrorCategory.VALIDATION.value,
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all for unhandled exceptions: 500 with ProblemDetail."""
    logger.error("unhandled_exception", path=request.url.path, error=str(exc), exc_info=exc)
    return problem_response(
        status=500,
        title="Internal Server Error",
        detail=str(exc) if request.app.state.settings.debug else "An unexpected error occurred.",
        instance=str(request.url),
    )
