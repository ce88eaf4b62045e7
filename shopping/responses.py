"""Mapping from typed error results to HTTP responses.

The table below is the only place where error kinds meet status codes;
the engine, the store and the flattener know nothing about HTTP.
"""

import logging

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from shopping.errors import (
    ConflictError,
    InsufficientStockError,
    InventoryError,
    MissingFieldError,
    NotFoundError,
    ValidationError,
)

ERROR_STATUS: dict[type, int] = {
    ValidationError: 400,
    NotFoundError: 404,
    ConflictError: 409,
    InsufficientStockError: 422,
    MissingFieldError: 502,
}


def status_for(error: InventoryError) -> int:
    for kind, status_code in ERROR_STATUS.items():
        if isinstance(error, kind):
            return status_code
    return 500


def error_response(error: InventoryError) -> JSONResponse:
    """Render ``error`` as a JSON response with the mapped status code."""
    return JSONResponse(jsonable_encoder(error.to_dict()), status_code=status_for(error))


def install_error_handlers(app: FastAPI, logger: logging.Logger) -> None:
    """Register the handlers for malformed requests and unexpected failures.

    Malformed bodies, paths or query strings become 400 ``MALFORMED_REQUEST``
    instead of FastAPI's default 422, which the catalog reserves for
    insufficient stock. Anything unhandled becomes 500 ``INTERNAL_ERROR``.
    """

    @app.exception_handler(RequestValidationError)
    async def malformed_request(request: Request, exc: RequestValidationError):
        errors = [{"loc": list(e.get("loc", ())), "msg": e.get("msg", "")} for e in exc.errors()]
        return JSONResponse({"detail": "MALFORMED_REQUEST", "errors": errors}, status_code=400)

    @app.exception_handler(Exception)
    async def unexpected_error(request: Request, exc: Exception):
        logger.exception("unhandled error", extra={"path": request.url.path})
        return JSONResponse({"detail": "INTERNAL_ERROR"}, status_code=500)
