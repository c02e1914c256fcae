"""HTTP binding for the elevation service (FastAPI).

Endpoints:
    GET  /ping              -> plain-text service identifier (liveness)
    GET  /getelevation      -> {"elevation": <float>}
    POST /getheightprofile  -> {"elevations": [<float>, ...]}

All behaviour lives in ElevationQueryService; this module only parses
requests and maps domain errors to HTTP status codes.
"""

from __future__ import annotations

import logging
from urllib.parse import unquote_plus

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, PlainTextResponse
from starlette.concurrency import run_in_threadpool

from domain.elevation.errors import (
    ConfigError,
    CRSResolutionError,
    DatasetUnavailableError,
    ElevationError,
    MalformedRequestError,
    TransformError,
)
from domain.elevation.services import ElevationQueryService
from domain.elevation.value_objects import LineProfileRequest, PointElevationRequest

logger = logging.getLogger(__name__)

DEFAULT_SERVICE_ID = "elevation-service"

# Checked in order; first match wins.
_ERROR_STATUS: tuple[tuple[type[ElevationError], int], ...] = (
    (MalformedRequestError, 400),
    (CRSResolutionError, 400),
    (TransformError, 422),
    (DatasetUnavailableError, 503),
    (ConfigError, 503),
)


def status_for(error: ElevationError) -> int:
    for error_type, status in _ERROR_STATUS:
        if isinstance(error, error_type):
            return status
    return 500


def decode_profile_body(body: bytes) -> str:
    """Return the JSON text of a profile request body.

    Some web clients post the JSON document URL-encoded; those bodies are
    decoded first. Plain JSON bodies are used as-is.
    """
    try:
        text = body.decode("utf-8")
    except UnicodeDecodeError as e:
        raise MalformedRequestError("Request body is not UTF-8") from e
    if text.lstrip().startswith("{"):
        return text
    return unquote_plus(text)


def create_app(
    service: ElevationQueryService, service_id: str = DEFAULT_SERVICE_ID
) -> FastAPI:
    """Build the FastAPI application around ``service``."""
    app = FastAPI(title="Elevation Service")
    app.state.service = service

    @app.exception_handler(ElevationError)
    async def handle_elevation_error(request: Request, exc: ElevationError) -> JSONResponse:
        status = status_for(exc)
        if status >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc)
        else:
            logger.info("%s %s rejected: %s", request.method, request.url.path, exc)
        return JSONResponse(status_code=status, content={"error": str(exc)})

    @app.get("/ping", response_class=PlainTextResponse)
    def ping(request: Request) -> str:
        for key, value in request.headers.items():
            logger.debug("Header '%s' = %s", key, value)
        logger.debug("ping")
        return service_id

    # Parameters are optional here so that missing values map to 400, not 422
    @app.get("/getelevation")
    def get_elevation(pos: str | None = None, crs: str | None = None) -> dict[str, float]:
        query = PointElevationRequest.from_query(pos, crs)
        elevation = service.point_elevation(query.x, query.y, query.crs)
        return {"elevation": elevation}

    @app.post("/getheightprofile")
    async def get_height_profile(request: Request) -> dict[str, list[float]]:
        body = await request.body()
        profile_request = LineProfileRequest.from_payload(decode_profile_body(body))
        series = await run_in_threadpool(service.line_profile_elevation, profile_request)
        return {"elevations": list(series.elevations)}

    return app
