from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from salesflow.core.logging_config import get_logger
from salesflow.domain.errors import (
    Conflict,
    IllegalTransition,
    InsufficientStock,
    InvalidReference,
    NotFound,
    OrderError,
    PartialFailure,
    PermissionDenied,
)

logger = get_logger(__name__)

STATUS_CODES = {
    NotFound: 404,
    PermissionDenied: 403,
    IllegalTransition: 409,
    InsufficientStock: 409,
    Conflict: 409,
    InvalidReference: 400,
    PartialFailure: 500,
}

def status_code_for(exc: OrderError) -> int:
    for error_type, code in STATUS_CODES.items():
        if isinstance(exc, error_type):
            return code
    return 400

def register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(OrderError)
    async def handle_order_error(request: Request, exc: OrderError) -> JSONResponse:
        status_code = status_code_for(exc)
        if status_code >= 500:
            logger.error(
                f"{exc.kind} on {request.method} {request.url.path}: {exc.message}",
                extra={'extra_fields': exc.details()}
            )
        return JSONResponse(
            status_code=status_code,
            content={"error": exc.kind, "detail": exc.message, **exc.details()},
        )
