"""Server entry point: wires configuration, adapters, and the HTTP app.

Usage:
    CONFIG_PATH=/srv/config elevation-service
    ELEVATION_DATASET=/data/dtm.tif elevation-service
"""

from __future__ import annotations

import logging

import uvicorn

from domain.elevation.services import ElevationQueryService
from infrastructure.config import RuntimeConfig
from infrastructure.elevation import LazyCoverage, PyprojReprojector
from infrastructure.http.app import create_app

logger = logging.getLogger(__name__)


def build_service(config: RuntimeConfig) -> ElevationQueryService:
    """Create the query service for the configured dataset (opened lazily)."""
    coverage = LazyCoverage(config.elevation_dataset)
    return ElevationQueryService(coverage, PyprojReprojector())


def main() -> None:
    config = RuntimeConfig()
    settings = config.server_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    service = build_service(config)
    if settings.preload_dataset:
        # Fails fast: an unavailable dataset stops the instance at startup
        service.coverage_provider.get()

    logger.info("Starting %s on %s:%d", config.service_name, settings.host, settings.port)
    uvicorn.run(
        create_app(service),
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
