"""Global exception handling for admin actions."""

import structlog
from fastapi import Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from src.domains.escalation.exceptions import TransactionNotFoundError

logger = structlog.get_logger()


def _error(status_code: int, error: str, message: str, request_id: str, **extra) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"error": error, "message": message, "request_id": request_id, **extra},
    )


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    request_id = getattr(request.state, "request_id", "unknown")

    if isinstance(exc, ValueError):
        logger.warning("bad_request", request_id=request_id, error=str(exc))
        return _error(400, "bad_request", str(exc), request_id)

    if isinstance(exc, PermissionError):
        logger.warning("forbidden", request_id=request_id, error=str(exc))
        return _error(403, "forbidden", str(exc), request_id)

    if isinstance(exc, TransactionNotFoundError):
        logger.warning(
            "transaction_not_found",
            request_id=request_id,
            transaction_id=exc.transaction_id,
        )
        return _error(404, "not_found", str(exc), request_id, transaction_id=exc.transaction_id)

    if isinstance(exc, LookupError):
        logger.warning("not_found", request_id=request_id, error=str(exc))
        return _error(404, "not_found", str(exc), request_id)

    if isinstance(exc, SQLAlchemyError):
        logger.exception("database_error", request_id=request_id, error=str(exc))
        return _error(500, "dependency_failure", "A database operation failed", request_id)

    logger.exception("unhandled_exception", request_id=request_id, error=str(exc))
    return _error(500, "internal_server_error", "An unexpected error occurred", request_id)
