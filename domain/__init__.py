"""Elevation Service Domain Layer.

This package contains the core business logic organized by bounded contexts:
- elevation: Raster coverage sampling, reprojection, profile resampling
"""

from domain import elevation

__all__ = ["elevation"]
