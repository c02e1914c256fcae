"""Elevation Bounded Context - Error Hierarchy.

Custom exceptions for elevation lookups.

Out-of-coverage points are NOT errors: sampling outside the raster extent
yields elevation 0 (see CoverageSample).
"""

from __future__ import annotations


class ElevationError(Exception):
    """Base error for elevation operations."""


class DatasetUnavailableError(ElevationError):
    """Raster cannot be opened or read (missing, unreachable, corrupt, no CRS)."""


class CRSResolutionError(ElevationError):
    """CRS code cannot be resolved to a known coordinate reference system.

    Attributes:
        code: The offending CRS code as supplied by the caller
    """

    def __init__(self, code: str, reason: str | None = None) -> None:
        self.code = code
        message = f"Unknown CRS: {code!r}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)


class TransformError(ElevationError):
    """No transform exists between two CRSs, or the transform failed numerically."""


class MalformedRequestError(ElevationError):
    """Request is structurally invalid (count mismatch, non-numeric, bad samples)."""


class ConfigError(ElevationError):
    """Runtime configuration is missing or invalid."""
