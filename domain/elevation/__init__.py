"""Elevation Bounded Context.

Responsible for elevation lookups against a single raster coverage:
- Value Objects: Point2D, CoverageSample, LineProfileRequest, ElevationSeries
- Ports: RasterCoverage, CoverageProvider, Reprojector
- Services: sample_profile, ElevationQueryService
"""
