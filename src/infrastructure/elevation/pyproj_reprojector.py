"""pyproj adapter for the Reprojector port.

Resolves CRS codes with pyproj.CRS and builds forward transforms with
pyproj.Transformer (always_xy=True: coordinates are always easting/longitude
first, regardless of the CRS's declared axis order).
"""

from __future__ import annotations

import logging
import math
from functools import lru_cache

from pyproj import CRS, Transformer
from pyproj.exceptions import CRSError, ProjError

from domain.elevation.errors import CRSResolutionError, TransformError
from domain.elevation.repositories import Transform, identity_transform
from domain.elevation.value_objects import Point2D, normalize_crs_code

logger = logging.getLogger(__name__)


def resolve_crs(code: str) -> CRS:
    """Resolve a CRS code (``"2056"``, ``"EPSG:2056"``, WKT) to a pyproj CRS.

    Raises:
        CRSResolutionError: If the code is unknown to PROJ
    """
    try:
        return CRS.from_user_input(normalize_crs_code(code))
    except CRSError as e:
        raise CRSResolutionError(str(code), str(e)) from e


class ProjTransform:
    """Callable forward transform wrapping a pyproj Transformer."""

    def __init__(self, transformer: Transformer, source: str, target: str) -> None:
        self._transformer = transformer
        self.source = source
        self.target = target

    def __call__(self, point: Point2D) -> Point2D:
        try:
            x, y = self._transformer.transform(point.x, point.y, errcheck=True)
        except ProjError as e:
            raise TransformError(
                f"Cannot transform ({point.x}, {point.y}) from {self.source} "
                f"to {self.target}: {e}"
            ) from e
        if not (math.isfinite(x) and math.isfinite(y)):
            raise TransformError(
                f"Transform of ({point.x}, {point.y}) from {self.source} "
                f"to {self.target} is not finite"
            )
        return Point2D(x=x, y=y)

    def __repr__(self) -> str:
        return f"ProjTransform({self.source!r} -> {self.target!r})"


class PyprojReprojector:
    """Reprojector backed by PROJ.

    Transforms are cached per normalized (source, target) pair; pyproj
    Transformer objects are thread-safe, so cached instances are shared
    across requests.

    Parameters
    ----------
    cache_size: int
        Maximum number of cached (source, target) transforms.
    """

    def __init__(self, cache_size: int = 64) -> None:
        self._build_transform = lru_cache(maxsize=cache_size)(self._build_transform)  # type: ignore[method-assign]

    def get_transform(self, source_crs: str, target_crs: str) -> Transform:
        source = normalize_crs_code(source_crs)
        target = normalize_crs_code(target_crs)
        if source == target:
            return identity_transform
        return self._build_transform(source, target)

    def _build_transform(self, source: str, target: str) -> Transform:
        source_crs = resolve_crs(source)
        target_crs = resolve_crs(target)
        try:
            transformer = Transformer.from_crs(source_crs, target_crs, always_xy=True)
        except ProjError as e:
            raise TransformError(f"No transform from {source} to {target}: {e}") from e
        logger.debug("Built transform %s -> %s", source, target)
        return ProjTransform(transformer, source, target)
