"""Elevation Bounded Context - Domain Services.

Pure domain logic for elevation lookups.
NO I/O operations - raster access and CRS lookups are implemented by
infrastructure adapters under `src/infrastructure/elevation/` via domain ports.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Mapping, Sequence
from typing import Any

from domain.elevation.errors import MalformedRequestError
from domain.elevation.repositories import (
    CoverageProvider,
    RasterCoverage,
    Reprojector,
    Transform,
    identity_transform,
)
from domain.elevation.value_objects import (
    ElevationSeries,
    LineProfileRequest,
    Point2D,
)

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Transform application
# ---------------------------------------------------------------------------
def apply(transform: Transform, point: Point2D) -> Point2D:
    """Apply ``transform`` to ``point``. Pure: same inputs, same output."""
    return transform(point)


# ---------------------------------------------------------------------------
# Arc-length resampling
# ---------------------------------------------------------------------------
def cumulative_distances(segment_distances: Sequence[float]) -> list[float]:
    """Cumulative arc length at each vertex: ``cum[0] = 0``, one entry per vertex."""
    cum = [0.0]
    for d in segment_distances:
        cum.append(cum[-1] + float(d))
    return cum


def profile_positions(
    vertices: Sequence[Point2D],
    segment_distances: Sequence[float],
    sample_count: int,
) -> list[Point2D]:
    """Points evenly spaced by cumulative arc length along a polyline.

    Sample ``s`` lies at arc length ``s * T / (sample_count - 1)`` where ``T``
    is the total length. A single sample is taken at the first vertex.

    The segment cursor only moves forward, so positions come out in
    increasing arc-length order. Zero-length segments resolve to their
    start vertex.

    Raises:
        MalformedRequestError: If counts are inconsistent or sample_count < 1
    """
    if len(vertices) < 2:
        raise MalformedRequestError(f"Need at least 2 vertices, got {len(vertices)}")
    if len(segment_distances) != len(vertices) - 1:
        raise MalformedRequestError(
            f"Expected {len(vertices) - 1} distances, got {len(segment_distances)}"
        )
    if sample_count < 1:
        raise MalformedRequestError(f"samples must be >= 1, got {sample_count}")

    cum = cumulative_distances(segment_distances)
    total = cum[-1]
    if not math.isfinite(total):
        raise MalformedRequestError("Total profile length is not finite")
    step = total / (sample_count - 1) if sample_count > 1 else 0.0

    positions: list[Point2D] = []
    i = 0
    for s in range(sample_count):
        x = s * step
        if s > 0 and s == sample_count - 1:
            # Last sample sits exactly on the end vertex
            x = total
        while i + 2 < len(vertices) and cum[i + 1] < x:
            i += 1

        seg_len = cum[i + 1] - cum[i]
        mu = (x - cum[i]) / seg_len if seg_len > 0 else 0.0

        positions.append(vertices[i].lerp(vertices[i + 1], mu))

    return positions


def sample_profile(
    coverage: RasterCoverage,
    vertices: Sequence[Point2D],
    segment_distances: Sequence[float],
    sample_count: int,
    transform: Transform = identity_transform,
) -> ElevationSeries:
    """Sample ``sample_count`` elevations evenly spaced along a polyline.

    Interpolation happens in the vertices' CRS; each interpolated point is
    then mapped into the coverage CRS with ``transform`` and sampled.
    Out-of-bounds and NoData samples contribute 0 rather than aborting.

    Args:
        coverage: Coverage to sample
        vertices: Ordered polyline vertices (>= 2)
        segment_distances: Length of each segment (len(vertices) - 1 entries)
        sample_count: Number of samples (>= 1)
        transform: Mapping from the vertices' CRS into the coverage CRS

    Returns:
        ElevationSeries with exactly ``sample_count`` values
    """
    elevations: list[float] = []
    outside = 0
    for position in profile_positions(vertices, segment_distances, sample_count):
        target = apply(transform, position)
        result = coverage.sample(target.x, target.y)
        if not result.in_bounds:
            outside += 1
        elevations.append(result.value)

    if outside:
        logger.debug("Profile: %d of %d samples outside coverage", outside, sample_count)

    return ElevationSeries(elevations=tuple(elevations))


# ---------------------------------------------------------------------------
# Facade
# ---------------------------------------------------------------------------
class ElevationQueryService:
    """Point and line-profile elevation queries against the shared coverage.

    Parameters
    ----------
    coverage_provider: CoverageProvider
        Gives the single shared coverage, opening it on first use.
    reprojector: Reprojector
        Builds transforms from request CRSs into the coverage CRS.
    """

    def __init__(
        self, coverage_provider: CoverageProvider, reprojector: Reprojector
    ) -> None:
        self.coverage_provider = coverage_provider
        self.reprojector = reprojector

    def point_elevation(self, x: float, y: float, crs: str) -> float:
        """Elevation at ``(x, y)`` given in ``crs``; 0 outside the coverage.

        Raises:
            MalformedRequestError: If ``x`` or ``y`` is not finite
            CRSResolutionError: If ``crs`` is unknown
            TransformError: If the point cannot be reprojected
            DatasetUnavailableError: If the coverage cannot be opened
        """
        if not (math.isfinite(x) and math.isfinite(y)):
            raise MalformedRequestError(f"Coordinates must be finite, got ({x}, {y})")
        coverage = self.coverage_provider.get()
        transform = self.reprojector.get_transform(crs, coverage.crs)
        target = apply(transform, Point2D(x=x, y=y))
        result = coverage.sample(target.x, target.y)
        logger.debug(
            "Point (%s, %s) [%s] -> (%s, %s) [%s]: %s",
            x,
            y,
            crs,
            target.x,
            target.y,
            coverage.crs,
            result.value,
        )
        return result.value

    def line_profile_elevation(
        self, request: LineProfileRequest | Mapping[str, Any]
    ) -> ElevationSeries:
        """Elevation profile for ``request``.

        Raises:
            MalformedRequestError: If the request shape is invalid
            CRSResolutionError: If ``request.projection`` is unknown
            TransformError: If points cannot be reprojected
            DatasetUnavailableError: If the coverage cannot be opened
        """
        if not isinstance(request, LineProfileRequest):
            request = LineProfileRequest.from_payload(request)

        coverage = self.coverage_provider.get()
        transform: Transform = identity_transform
        if request.projection is not None:
            transform = self.reprojector.get_transform(request.projection, coverage.crs)

        return sample_profile(
            coverage,
            request.vertices,
            request.distances,
            request.samples,
            transform=transform,
        )
