"""Infrastructure adapters for the elevation bounded context.

This module provides the infrastructure layer implementations for elevation
lookups: raster coverage access via rasterio and CRS reprojection via pyproj.

Adapters exported for simplified imports.
"""

from .pyproj_reprojector import PyprojReprojector
from .rasterio_coverage import LazyCoverage, RasterioCoverage, open_coverage

__all__ = ["LazyCoverage", "PyprojReprojector", "RasterioCoverage", "open_coverage"]
