"""rasterio adapter for the RasterCoverage port.

Opens a single-band elevation GeoTIFF (local path or HTTP URL) and samples
it one pixel at a time. Nothing is read eagerly: each sample issues a
1x1 windowed read, which GDAL turns into an HTTP range request for remote
datasets (/vsicurl/), so a point query never downloads the whole file.

Lifecycle:
1) open_coverage() opens the dataset inside rasterio.Env and validates it
2) RasterioCoverage keeps the handle open for the process lifetime
3) sample() serializes reads through a lock (GDAL handles are not reentrant)
4) LazyCoverage opens exactly once, on first use, even under concurrency
"""

from __future__ import annotations

import logging
import math
import threading
from collections.abc import Callable
from pathlib import Path
from typing import Any

import numpy as np
import rasterio
from affine import Affine
from rasterio.errors import RasterioError, RasterioIOError
from rasterio.windows import Window

from domain.elevation.errors import DatasetUnavailableError
from domain.elevation.repositories import RasterCoverage
from domain.elevation.value_objects import CoverageSample, normalize_crs_code

# Module-level logger (reused across all calls)
logger = logging.getLogger(__name__)

# GDAL options for range reads over HTTP: skip sidecar-file probing and merge
# adjacent byte ranges.
_REMOTE_ENV_OPTIONS: dict[str, str] = {
    "GDAL_DISABLE_READDIR_ON_OPEN": "EMPTY_DIR",
    "GDAL_HTTP_MERGE_CONSECUTIVE_RANGES": "YES",
    "VSI_CACHE": "TRUE",
}


def is_remote(locator: str | Path) -> bool:
    return str(locator).lower().startswith(("http://", "https://"))


def _display_name(locator: str | Path) -> str:
    """Name safe for logs: the URL for remote datasets, the file name otherwise."""
    if is_remote(locator):
        return str(locator)
    return Path(locator).name


def crs_code(crs: Any) -> str:
    """Normalized identifier for a rasterio CRS.

    Prefers the EPSG code; falls back to the CRS string (authority code or WKT).
    """
    epsg = crs.to_epsg()
    if epsg is not None:
        return f"EPSG:{epsg}"
    return normalize_crs_code(crs.to_string())


def _validate_transform(transform: Any) -> Affine:
    if not isinstance(transform, Affine):
        raise DatasetUnavailableError("Missing affine transform")
    if any(
        math.isnan(v) or math.isinf(v)
        for v in (
            transform.a,
            transform.b,
            transform.c,
            transform.d,
            transform.e,
            transform.f,
        )
    ):
        raise DatasetUnavailableError("Invalid (NaN/Inf) transform values")
    if transform.is_degenerate:
        raise DatasetUnavailableError("Invalid transform scale (degenerate)")
    return transform


class RasterioCoverage:
    """Read-only coverage backed by an open rasterio dataset (band 1).

    Sampling uses nearest-cell lookup without interpolation. The extent is
    closed: points exactly on the right or bottom edge fall into the last
    column or row. Interior cell boundaries belong to the cell to the east
    (columns) and to the south (rows) of the boundary.
    """

    def __init__(self, dataset: Any, locator: str | Path = "") -> None:
        self._dataset = dataset
        self._lock = threading.Lock()
        self._env_options = _REMOTE_ENV_OPTIONS if is_remote(locator) else {}
        self.name = _display_name(locator) if locator else str(dataset.name)

        self.transform = _validate_transform(dataset.transform)
        self._inverse = ~self.transform
        self.width = int(dataset.width)
        self.height = int(dataset.height)
        self.nodata = dataset.nodata
        self._crs = crs_code(dataset.crs)

    @property
    def crs(self) -> str:
        return self._crs

    @property
    def bounds(self) -> tuple[float, float, float, float]:
        """(left, bottom, right, top) in native CRS units."""
        b = self._dataset.bounds
        return (b.left, b.bottom, b.right, b.top)

    def locate(self, x: float, y: float) -> tuple[int, int] | None:
        """Return (row, col) of the cell containing ``(x, y)``, or None outside."""
        if not (math.isfinite(x) and math.isfinite(y)):
            return None
        col_f, row_f = self._inverse @ (x, y)
        if not (0.0 <= col_f <= self.width and 0.0 <= row_f <= self.height):
            return None
        col = min(int(math.floor(col_f)), self.width - 1)
        row = min(int(math.floor(row_f)), self.height - 1)
        return (row, col)

    def sample(self, x: float, y: float) -> CoverageSample:
        cell = self.locate(x, y)
        if cell is None:
            return CoverageSample.out_of_bounds()

        row, col = cell
        with self._lock:
            with rasterio.Env(**self._env_options):
                data = self._dataset.read(1, window=Window(col, row, 1, 1), masked=True)

        if np.ma.getmaskarray(data)[0, 0]:
            return CoverageSample.nodata()
        value = float(data[0, 0])
        if not math.isfinite(value):
            return CoverageSample.nodata()
        return CoverageSample(value=value)

    def close(self) -> None:
        with self._lock:
            self._dataset.close()


def open_coverage(locator: str | Path) -> RasterioCoverage:
    """Open a geocoded single-band raster as a RasterioCoverage.

    Args:
        locator: Local file path or http(s) URL

    Raises:
        DatasetUnavailableError: If the dataset is missing, unreachable,
            not a raster, bandless, without CRS, or badly georeferenced
    """
    target = str(locator)
    name = _display_name(locator)
    remote = is_remote(locator)

    if not remote and not Path(target).exists():
        raise DatasetUnavailableError(f"Dataset not found: {name}")

    env_options = _REMOTE_ENV_OPTIONS if remote else {}
    try:
        with rasterio.Env(**env_options):
            dataset = rasterio.open(target)
    except (RasterioIOError, RasterioError) as e:
        raise DatasetUnavailableError(f"Cannot open dataset {name}: {e}") from e
    except OSError as e:
        # Log only the name, errno, and strerror; never the full path
        logger.error(
            "Failed to open %s (errno=%s, strerror=%s)",
            name,
            getattr(e, "errno", "unknown"),
            getattr(e, "strerror", "unknown"),
        )
        raise DatasetUnavailableError(f"Cannot open dataset {name}") from e

    try:
        if dataset.count == 0:
            raise DatasetUnavailableError("Empty or bandless file")
        if dataset.count != 1:
            logger.warning(
                "Dataset %s has %d bands; only band 1 is used", name, dataset.count
            )
        if dataset.crs is None:
            raise DatasetUnavailableError("Raster has no CRS defined")
        coverage = RasterioCoverage(dataset, locator)
    except DatasetUnavailableError:
        dataset.close()
        raise

    logger.info(
        "Dataset %s: opened %dx%d grid in %s",
        name,
        coverage.width,
        coverage.height,
        coverage.crs,
    )
    return coverage


class LazyCoverage:
    """CoverageProvider that opens the coverage once, on first use.

    Concurrent first calls open the dataset exactly once. A failed open is
    not remembered, so a later call opens again.

    Parameters
    ----------
    locator: str | Path
        Dataset path or URL handed to ``opener``.
    opener: Callable
        Function that opens the dataset; defaults to ``open_coverage``.
    """

    def __init__(
        self,
        locator: str | Path,
        opener: Callable[[str | Path], RasterCoverage] = open_coverage,
    ) -> None:
        self.locator = locator
        self._opener = opener
        self._lock = threading.Lock()
        self._coverage: RasterCoverage | None = None

    @property
    def is_open(self) -> bool:
        return self._coverage is not None

    def get(self) -> RasterCoverage:
        coverage = self._coverage
        if coverage is not None:
            return coverage
        with self._lock:
            if self._coverage is None:
                logger.debug("Opening dataset %s on first use", _display_name(self.locator))
                self._coverage = self._opener(self.locator)
            return self._coverage

    def close(self) -> None:
        with self._lock:
            if self._coverage is not None:
                close = getattr(self._coverage, "close", None)
                if close is not None:
                    close()
                self._coverage = None
