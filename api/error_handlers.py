from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from common.core.exceptions import AppException
from common.core.telemetry import get_logger

logger = get_logger(__name__)


def _format_validation_errors(exc: RequestValidationError) -> str:
    parts = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        parts.append(f"{location}: {error.get('msg')}" if location else error.get("msg"))
    return "; ".join(parts)


async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """Render domain errors as ``{"error": ...}`` with the exception's status."""
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc}")
    return JSONResponse(status_code=exc.status_code, content={"error": str(exc)})


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Malformed requests are a 400, never reaching the cluster."""
    return JSONResponse(
        status_code=400,
        content={"error": f"Invalid request: {_format_validation_errors(exc)}"},
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Last resort for errors no domain exception describes."""
    logger.exception(f"{request.method} {request.url.path} failed unexpectedly: {exc}")
    return JSONResponse(status_code=500, content={"error": f"Internal server error: {exc}"})
