"""Expeditions service API built with FastAPI.

Read-only endpoints over the currently active Launch Library expeditions:
the raw expeditions, the flattened astronaut assignments and the crew
count per station. Malformed upstream data is reported as 502: a body
that is not an expedition list as ``MALFORMED_UPSTREAM``, a missing
nested field as ``MISSING_FIELD`` with the path of the gap. An
unreachable upstream or an open circuit is reported as 503.
"""

import httpx
import uvicorn
from fastapi import Depends, FastAPI
from fastapi.responses import JSONResponse

from shopping import settings
from shopping.errors import InventoryError
from shopping.expeditions.http_client import CircuitOpenError, UpstreamPayloadError
from shopping.expeditions.providers import get_expedition_service
from shopping.expeditions.schemas import AstronautAssignment, Expedition
from shopping.expeditions.service import ExpeditionService
from shopping.logs import get_logger, request_id_middleware
from shopping.responses import error_response, install_error_handlers

app = FastAPI(title="Expeditions Service")

logger = get_logger("expeditions")
app.middleware("http")(request_id_middleware(logger))
install_error_handlers(app, logger)


@app.exception_handler(httpx.HTTPError)
async def upstream_http_error(request, exc: httpx.HTTPError):
    logger.warning("upstream request failed", extra={"path": request.url.path, "error": str(exc)})
    return JSONResponse({"detail": "UPSTREAM_UNAVAILABLE"}, status_code=503)


@app.exception_handler(CircuitOpenError)
async def upstream_circuit_open(request, exc: CircuitOpenError):
    return JSONResponse({"detail": "UPSTREAM_UNAVAILABLE"}, status_code=503)


@app.exception_handler(UpstreamPayloadError)
async def upstream_payload_rejected(request, exc: UpstreamPayloadError):
    return JSONResponse({"detail": "MALFORMED_UPSTREAM"}, status_code=502)


@app.get("/health")
def health():
    """Liveness/health probe endpoint."""
    return {"ok": True}


@app.get("/expeditions", response_model=list[Expedition])
def list_expeditions(service: ExpeditionService = Depends(get_expedition_service)):
    return service.get_expeditions()


@app.get("/expeditions/assignments", response_model=list[AstronautAssignment])
def astronaut_assignments(service: ExpeditionService = Depends(get_expedition_service)):
    """Who is aboard which station, in which role, for which agency."""
    result = service.get_astronaut_assignments()
    if isinstance(result, InventoryError):
        logger.warning("malformed expedition data", extra={"missing": result.path})
        return error_response(result)
    return result


@app.get("/expeditions/crew-counts", response_model=dict[str, int])
def crew_counts(service: ExpeditionService = Depends(get_expedition_service)):
    result = service.get_crew_count_by_station()
    if isinstance(result, InventoryError):
        logger.warning("malformed expedition data", extra={"missing": result.path})
        return error_response(result)
    return result


def run():
    """Console entry point: serve the expeditions API with uvicorn."""
    uvicorn.run(app, host=settings.SERVICE_HOST, port=settings.EXPEDITIONS_PORT, log_level=settings.LOG_LEVEL)
