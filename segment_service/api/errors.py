import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from segment_service.exceptions import SegmentDBException
from segment_service.segments.exceptions import BadRequestError, SegmentServiceError

logger = logging.getLogger(__name__)


async def segment_service_error_handler(request: Request, exc: SegmentServiceError) -> JSONResponse:
    """Validation and domain errors: 4xx with the fixed message."""
    logger.warning(f"Request {request.method} {request.url.path} failed: {exc.detail}")
    return JSONResponse(status_code=exc.status_code, content={"error": exc.detail})


async def request_validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    logger.warning(f"Request {request.method} {request.url.path} has an invalid body: {exc.errors()}")
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"error": BadRequestError.message})


async def storage_error_handler(request: Request, exc: SegmentDBException) -> JSONResponse:
    """Storage errors: 500 with the underlying message passed through."""
    logger.error(f"Storage error on {request.method} {request.url.path}: {exc}")
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content={"error": str(exc)})


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(SegmentServiceError, segment_service_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, request_validation_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(SegmentDBException, storage_error_handler)  # type: ignore[arg-type]
