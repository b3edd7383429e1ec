"""Global handlers mapping storage failures to a generic 500 response."""

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from roundbook.services.blob_storage import StorageFailure

logger = logging.getLogger(__name__)

STORAGE_FAILURE_DETAIL = "Storage operation failed."


def register_error_handlers(app: FastAPI) -> None:
    """Register storage failure handlers on the FastAPI app."""

    @app.exception_handler(SQLAlchemyError)
    async def database_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
        logger.error("Database failure on %s", request.url.path, exc_info=exc, extra={"path": request.url.path})
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"detail": STORAGE_FAILURE_DETAIL},
        )

    @app.exception_handler(StorageFailure)
    async def blob_error_handler(request: Request, exc: StorageFailure) -> JSONResponse:
        logger.error("Blob storage failure on %s", request.url.path, exc_info=exc, extra={"path": request.url.path})
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"detail": STORAGE_FAILURE_DETAIL},
        )
