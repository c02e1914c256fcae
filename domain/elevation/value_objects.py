"""Elevation Bounded Context - Value Objects.

Immutable data structures for elevation queries.
All validation occurs at construction time via Pydantic; request objects
additionally offer ``from_payload`` constructors that translate validation
failures into MalformedRequestError for the boundary layer.
"""

from __future__ import annotations

import math
import re
from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from domain.elevation.errors import MalformedRequestError

# ---------------------------------------------------------------------------
# CRS codes
# ---------------------------------------------------------------------------
_BARE_EPSG = re.compile(r"^\d+$")


def normalize_crs_code(code: str | int) -> str:
    """Normalize a CRS code to upper-case ``AUTHORITY:CODE`` form.

    A bare number is taken as an EPSG code: ``"2056"`` -> ``"EPSG:2056"``.
    Anything else (``"epsg:4326"``, ``"OGC:CRS84"``) is stripped and upper-cased.
    WKT or PROJ strings pass through stripped but otherwise untouched.
    """
    text = str(code).strip()
    if not text:
        raise MalformedRequestError("CRS code must not be empty")
    if _BARE_EPSG.match(text):
        return f"EPSG:{text}"
    if ":" in text and " " not in text and "[" not in text:
        return text.upper()
    return text


def same_crs(first: str | int, second: str | int) -> bool:
    """Case-insensitive CRS code equality after normalization."""
    return normalize_crs_code(first) == normalize_crs_code(second)


# ---------------------------------------------------------------------------
# Point2D
# ---------------------------------------------------------------------------
class Point2D(BaseModel):
    """Planar coordinate pair (Value Object).

    The CRS is contextual and not stored on the value.

    Invariants:
        P-1: x and y are finite
    """

    x: float
    y: float

    model_config = ConfigDict(frozen=True, allow_inf_nan=False)

    def lerp(self, other: "Point2D", mu: float) -> "Point2D":
        """Return the point at fraction ``mu`` of the way towards ``other``.

        ``mu`` is clamped to [0, 1], so the result always lies on the segment
        and the endpoints are returned exactly.

        Raises:
            MalformedRequestError: If the interpolated coordinates overflow
        """
        if mu <= 0.0:
            return self
        if mu >= 1.0:
            return other
        x = self.x + mu * (other.x - self.x)
        y = self.y + mu * (other.y - self.y)
        if not (math.isfinite(x) and math.isfinite(y)):
            raise MalformedRequestError(
                f"Interpolation between {self.as_tuple()} and {other.as_tuple()} overflows"
            )
        return Point2D(x=x, y=y)

    def as_tuple(self) -> tuple[float, float]:
        return (self.x, self.y)


# ---------------------------------------------------------------------------
# CoverageSample
# ---------------------------------------------------------------------------
class CoverageSample(BaseModel):
    """Result of sampling a raster coverage at one point (Value Object).

    Invariants:
        CS-1: value is finite
        CS-2: If in_bounds == False, then value == 0
        CS-3: If is_nodata == True, then value == 0
    """

    value: float
    in_bounds: bool = True
    is_nodata: bool = False

    model_config = ConfigDict(frozen=True, allow_inf_nan=False)

    @model_validator(mode="after")
    def validate_default_value(self) -> "CoverageSample":
        if not self.in_bounds and self.value != 0:
            raise ValueError("Out-of-bounds sample must carry value 0")
        if self.is_nodata and self.value != 0:
            raise ValueError("NoData sample must carry value 0")
        return self

    @classmethod
    def out_of_bounds(cls) -> "CoverageSample":
        return cls(value=0.0, in_bounds=False)

    @classmethod
    def nodata(cls) -> "CoverageSample":
        return cls(value=0.0, in_bounds=True, is_nodata=True)


# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------
def _validation_message(error: ValidationError) -> str:
    parts = []
    for item in error.errors():
        location = ".".join(str(p) for p in item.get("loc", ())) or "request"
        parts.append(f"{location}: {item.get('msg', 'invalid')}")
    return "; ".join(parts)


class PointElevationRequest(BaseModel):
    """Elevation query at a single point given in ``crs``."""

    x: float
    y: float
    crs: str = Field(min_length=1)

    model_config = ConfigDict(frozen=True, allow_inf_nan=False)

    @property
    def point(self) -> Point2D:
        return Point2D(x=self.x, y=self.y)

    @classmethod
    def from_query(cls, pos: str | None, crs: str | None) -> "PointElevationRequest":
        """Build from ``pos=<x>,<y>`` and ``crs=<code>`` query strings.

        Raises:
            MalformedRequestError: If a parameter is missing or unparseable
        """
        if not pos:
            raise MalformedRequestError("Missing parameter: pos")
        if not crs:
            raise MalformedRequestError("Missing parameter: crs")
        parts = pos.split(",")
        if len(parts) != 2:
            raise MalformedRequestError(f"pos must be '<x>,<y>', got {pos!r}")
        try:
            return cls(x=parts[0].strip(), y=parts[1].strip(), crs=crs.strip())
        except ValidationError as e:
            raise MalformedRequestError(_validation_message(e)) from e


class LineProfileRequest(BaseModel):
    """Height profile query along a polyline (Value Object).

    Invariants:
        LP-1: len(coordinates) >= 2
        LP-2: len(distances) == len(coordinates) - 1
        LP-3: every distance is finite and >= 0
        LP-4: samples >= 1

    ``projection`` is the CRS of ``coordinates``; when omitted the
    coordinates are taken to be in the raster's native CRS.
    """

    coordinates: tuple[tuple[float, float], ...] = Field(min_length=2)
    distances: tuple[float, ...]
    samples: int = Field(ge=1)
    projection: str | None = None

    model_config = ConfigDict(frozen=True, allow_inf_nan=False)

    @model_validator(mode="after")
    def validate_shape(self) -> "LineProfileRequest":
        if len(self.distances) != len(self.coordinates) - 1:
            raise ValueError(
                f"Expected {len(self.coordinates) - 1} distances for "
                f"{len(self.coordinates)} coordinates, got {len(self.distances)}"
            )
        for d in self.distances:
            if d < 0:
                raise ValueError(f"Segment distances must be >= 0, got {d}")
        if self.projection is not None and not self.projection.strip():
            raise ValueError("projection must not be blank")
        return self

    @property
    def vertices(self) -> tuple[Point2D, ...]:
        return tuple(Point2D(x=x, y=y) for x, y in self.coordinates)

    @classmethod
    def from_payload(
        cls, payload: Mapping[str, Any] | str | bytes
    ) -> "LineProfileRequest":
        """Validate a decoded mapping or a raw JSON document.

        Raises:
            MalformedRequestError: If the payload does not describe a valid request
        """
        try:
            if isinstance(payload, (str, bytes)):
                return cls.model_validate_json(payload)
            return cls.model_validate(payload)
        except ValidationError as e:
            raise MalformedRequestError(_validation_message(e)) from e


# ---------------------------------------------------------------------------
# ElevationSeries
# ---------------------------------------------------------------------------
class ElevationSeries(BaseModel):
    """Ordered elevation samples along a profile, one per requested sample."""

    elevations: tuple[float, ...]

    model_config = ConfigDict(frozen=True)

    def __len__(self) -> int:
        return len(self.elevations)

