"""Map domain exceptions onto HTTP responses"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from inventory_ledger.api.dependencies import get_request_id
from inventory_ledger.domain.exceptions import (
    DomainException,
    InsufficientStockError,
    InternalStorageError,
    NotFoundOrUnauthorized,
    StockInUseError,
    SupplierInUseError,
    ValidationError,
)

logger = logging.getLogger(__name__)

STATUS_BY_EXCEPTION = (
    (ValidationError, status.HTTP_400_BAD_REQUEST),
    (NotFoundOrUnauthorized, status.HTTP_404_NOT_FOUND),
    (InsufficientStockError, status.HTTP_409_CONFLICT),
    (StockInUseError, status.HTTP_409_CONFLICT),
    (SupplierInUseError, status.HTTP_409_CONFLICT),
)


async def domain_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Translate a domain error into its status code with the error message as detail"""
    request_id = get_request_id(request)

    if isinstance(exc, InternalStorageError):
        logger.error(f"Storage error on {request.method} {request.url.path}: {exc}", extra={"request_id": request_id})
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"detail": "Internal server error"},
        )

    for exc_type, status_code in STATUS_BY_EXCEPTION:
        if isinstance(exc, exc_type):
            logger.warning(f"{type(exc).__name__}: {exc}", extra={"request_id": request_id})
            return JSONResponse(status_code=status_code, content={"detail": str(exc)})

    logger.error(f"Unhandled domain error: {exc}", extra={"request_id": request_id})
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error"},
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(DomainException, domain_exception_handler)
