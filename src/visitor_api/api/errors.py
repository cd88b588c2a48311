"""Exception handlers for the procedure surface.

Expected per-request failures become a ``{"success": false, "error": ...}``
payload inside the normal success envelope, delivered with HTTP 200.
Only undecodable input (400) and unexpected faults (500) use the error envelope.
"""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from loguru import logger
from pydantic import ValidationError

from visitor_api.api.trpc import BadInputError, envelope, error_envelope
from visitor_api.core.errors import StorageError, VisitorApiError
from visitor_api.schemas.common import FailureResponse
from visitor_api.services.error_log_service import record_system_error


def failure_response(message: str) -> JSONResponse:
    """Structured business failure in the success envelope."""
    return JSONResponse(status_code=200, content=envelope(FailureResponse(error=message)))


def validation_message(exc: ValidationError) -> str:
    """Summarize a pydantic validation error as one user-facing line."""
    parts = []
    for error in exc.errors():
        location = ".".join(str(p) for p in error["loc"])
        parts.append(f"{location}: {error['msg']}" if location else error["msg"])
    return "Invalid input: " + "; ".join(parts)


def register_exception_handlers(app: FastAPI) -> None:
    """Register the failure mapping on the FastAPI app.

    Args:
        app: The FastAPI application.
    """

    @app.exception_handler(BadInputError)
    async def bad_input_handler(request: Request, exc: BadInputError) -> JSONResponse:
        logger.warning(f"Undecodable input for {request.url.path}: {exc}")
        return error_envelope(str(exc), "BAD_REQUEST", 400)

    @app.exception_handler(ValidationError)
    async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
        message = validation_message(exc)
        logger.warning(f"{request.url.path}: {message}")
        return failure_response(message)

    @app.exception_handler(StorageError)
    async def storage_error_handler(request: Request, exc: StorageError) -> JSONResponse:
        logger.error(f"{request.url.path}: storage failure: {exc.__cause__ or exc}")
        store = getattr(request.app.state, "store", None)
        if store is not None:
            await record_system_error(store, source=request.url.path, exc=exc)
        return failure_response(str(exc))

    @app.exception_handler(VisitorApiError)
    async def domain_error_handler(request: Request, exc: VisitorApiError) -> JSONResponse:
        logger.warning(f"{request.url.path}: {exc.code}: {exc}")
        return failure_response(str(exc))

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception(f"Unhandled error in {request.url.path}")
        return error_envelope("Internal server error", "INTERNAL_SERVER_ERROR", 500)
