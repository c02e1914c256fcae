"""Pytest configuration for infrastructure tests.

Fixtures write small synthetic GeoTIFFs into tmp_path with real rasterio.
Fixtures are minimal synthetic rasters - not real terrain data.

Extents:
- constant_dem: [0, 100] x [0, 100], EPSG:32632, 10 m pixels, value 42
- step_dem: [0, 10] x [-5, 5], EPSG:32632, 1 m pixels, 0 west of x=5, 100 east
- swiss_dem: [2600000, 2601000] x [1200000, 1201000], EPSG:2056, value 500
"""

from __future__ import annotations

from pathlib import Path

import numpy as np
import pytest
from affine import Affine
from rasterio.crs import CRS

from tests.conftest_utils import constant_grid, write_raster

SWISS_EXTENT = (2600000.0, 1200000.0, 2601000.0, 1201000.0)


@pytest.fixture
def constant_dem(tmp_path: Path) -> Path:
    transform = Affine.translation(0.0, 100.0) * Affine.scale(10.0, -10.0)
    return write_raster(
        tmp_path / "constant_42.tif",
        constant_grid(42.0, 10, 10),
        transform,
        crs=CRS.from_epsg(32632),
    )


@pytest.fixture
def step_dem(tmp_path: Path) -> Path:
    data = np.zeros((10, 10), dtype=np.float32)
    data[:, 5:] = 100.0
    transform = Affine.translation(0.0, 5.0) * Affine.scale(1.0, -1.0)
    return write_raster(
        tmp_path / "step.tif", data, transform, crs=CRS.from_epsg(32632)
    )


@pytest.fixture
def gradient_dem(tmp_path: Path) -> Path:
    """4x4 int16 grid, value = row * 10 + col, 1 m pixels, origin (0, 4)."""
    rows, cols = np.indices((4, 4))
    data = (rows * 10 + cols).astype(np.int16)
    transform = Affine.translation(0.0, 4.0) * Affine.scale(1.0, -1.0)
    return write_raster(
        tmp_path / "gradient.tif", data, transform, crs=CRS.from_epsg(32632)
    )


@pytest.fixture
def nodata_dem(tmp_path: Path) -> Path:
    data = constant_grid(7.0, 4, 4)
    data[0, 0] = -9999.0
    data[3, 3] = np.nan
    transform = Affine.translation(0.0, 4.0) * Affine.scale(1.0, -1.0)
    return write_raster(
        tmp_path / "nodata.tif",
        data,
        transform,
        crs=CRS.from_epsg(32632),
        nodata=-9999.0,
    )


@pytest.fixture
def swiss_dem(tmp_path: Path) -> Path:
    min_x, min_y, max_x, max_y = SWISS_EXTENT
    transform = Affine.translation(min_x, max_y) * Affine.scale(10.0, -10.0)
    return write_raster(
        tmp_path / "swiss_500.tif",
        constant_grid(500.0, 100, 100),
        transform,
        crs=CRS.from_epsg(2056),
    )
