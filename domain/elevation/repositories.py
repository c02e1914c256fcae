"""Domain Port(s) for Elevation I/O.

Defines interfaces (Protocols) that infrastructure adapters must implement.
No concrete I/O here.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Protocol

from .value_objects import CoverageSample, Point2D

# Pure mapping of a point from a source CRS to a target CRS.
Transform = Callable[[Point2D], Point2D]


def identity_transform(point: Point2D) -> Point2D:
    return point


class RasterCoverage(Protocol):
    """Read-only single-band elevation coverage.

    Implementations live in infrastructure (e.g., rasterio adapter).
    """

    @property
    def crs(self) -> str:
        """Native CRS identifier of the coverage (normalized code)."""
        ...

    def sample(self, x: float, y: float) -> CoverageSample:
        """Sample at native-CRS coordinates; never raises for points outside."""
        ...


class CoverageProvider(Protocol):
    """Port giving access to the single shared coverage, opening it on first use."""

    def get(self) -> RasterCoverage:
        ...


class Reprojector(Protocol):
    """Port for building coordinate transforms between two CRS codes."""

    def get_transform(self, source_crs: str, target_crs: str) -> Transform:
        """Return the transform from ``source_crs`` into ``target_crs``.

        Raises:
            CRSResolutionError: If either code is unknown
            TransformError: If no transform path exists
        """
        ...
