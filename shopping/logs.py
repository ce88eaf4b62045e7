"""JSON logging and request-id propagation shared by the HTTP services.

Every incoming request receives a request identifier, read from the
``X-Request-ID`` header when the client supplies one or generated as a
UUIDv4 otherwise. The id is stored in a ContextVar so that code running
downstream (log filters, outbound HTTP clients) can read it without
passing it explicitly, and it is echoed back on the response.
"""

import contextvars
import logging
import uuid

from fastapi import Request
from fastapi.responses import JSONResponse
from pythonjsonlogger import jsonlogger

from shopping import settings

REQUEST_ID_CTX = contextvars.ContextVar("request_id", default="-")
REQUEST_ID_HEADER = "X-Request-ID"

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s %(request_id)s"


class RequestIdFilter(logging.Filter):
    """Attach a ``request_id`` attribute to log records.

    The value comes from ``REQUEST_ID_CTX``. Outside a request the
    placeholder "-" is used so formatters can always reference
    ``%(request_id)s``.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        if not getattr(record, "request_id", None):
            record.request_id = REQUEST_ID_CTX.get()
        return True


def get_logger(name: str) -> logging.Logger:
    """Return a logger that writes one JSON object per line to stderr.

    Handlers are attached only once per logger name, so calling this at
    import time from several modules is safe.
    """
    logger = logging.getLogger(name)
    if not logger.handlers:
        h = logging.StreamHandler()
        h.setFormatter(jsonlogger.JsonFormatter(LOG_FORMAT))
        h.addFilter(RequestIdFilter())
        logger.addHandler(h)
        logger.setLevel(settings.LOG_LEVEL.upper())
    return logger


def request_id_middleware(logger: logging.Logger):
    """Build an HTTP middleware that assigns, logs and echoes the request id.

    Exceptions escaping the app are logged and answered with a 500
    ``INTERNAL_ERROR`` here rather than by Starlette's outer error
    middleware, so that response carries ``X-Request-ID`` too.

    Args:
        logger: Service logger used for the per-request access line.

    Returns:
        An async callable suitable for ``app.middleware("http")``.
    """

    async def add_request_id(request: Request, call_next):
        rid = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        request.state.request_id = rid
        token = REQUEST_ID_CTX.set(rid)
        try:
            try:
                response = await call_next(request)
            except Exception:
                logger.exception("unhandled error", extra={"path": request.url.path})
                response = JSONResponse({"detail": "INTERNAL_ERROR"}, status_code=500)
            logger.info(
                "request handled",
                extra={"path": request.url.path, "method": request.method, "status": response.status_code},
            )
        finally:
            REQUEST_ID_CTX.reset(token)
        response.headers[REQUEST_ID_HEADER] = rid
        return response

    return add_request_id
