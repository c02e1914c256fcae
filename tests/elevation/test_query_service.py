"""Tests for ElevationQueryService (facade) with in-memory collaborators."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from domain.elevation.errors import (
    CRSResolutionError,
    MalformedRequestError,
    TransformError,
)
from domain.elevation.repositories import identity_transform
from domain.elevation.services import ElevationQueryService
from domain.elevation.value_objects import LineProfileRequest, Point2D, same_crs
from tests.conftest_utils import (
    FunctionCoverage,
    StaticProvider,
    constant_coverage,
    step_coverage,
)


class OffsetReprojector:
    """Reprojector knowing one foreign CRS ("EPSG:9999") offset by +1000/+1000."""

    def __init__(self) -> None:
        self.requests: list[tuple[str, str]] = []

    def get_transform(self, source_crs, target_crs):
        self.requests.append((source_crs, target_crs))
        if same_crs(source_crs, target_crs):
            return identity_transform
        if same_crs(source_crs, "EPSG:9999"):
            return lambda p: Point2D(x=p.x + 1000.0, y=p.y + 1000.0)
        if same_crs(source_crs, "EPSG:6666"):

            def fail(p):
                raise TransformError("numerical failure")

            return fail
        raise CRSResolutionError(source_crs)


def make_service(coverage=None):
    coverage = coverage or constant_coverage(42.0, crs="EPSG:2056")
    return ElevationQueryService(StaticProvider(coverage), OffsetReprojector())


# ===========================================================================
# point_elevation
# ===========================================================================
def test_point_inside_constant_raster():
    assert make_service().point_elevation(50, 50, "EPSG:2056") == 42.0


def test_point_outside_raster_is_zero():
    assert make_service().point_elevation(-10, -10, "EPSG:2056") == 0.0


@pytest.mark.parametrize("x, y", [(-0.001, 50), (100.001, 50), (50, -1e9), (1e12, 1e12)])
def test_points_outside_extent_never_raise(x, y):
    assert make_service().point_elevation(x, y, "2056") == 0.0


def test_native_crs_uses_identity_and_matches_direct_sample():
    coverage = FunctionCoverage(lambda x, y: x + 2 * y, (0.0, 0.0, 100.0, 100.0))
    service = make_service(coverage)

    value = service.point_elevation(12.5, 30.0, "epsg:2056")

    assert value == coverage.sample(12.5, 30.0).value
    # Sampled exactly at the input point: no transform in between
    assert coverage.calls[0] == (12.5, 30.0)


def test_foreign_crs_is_reprojected_into_native():
    coverage = FunctionCoverage(lambda x, y: x, (1000.0, 1000.0, 1100.0, 1100.0))
    service = make_service(coverage)

    assert service.point_elevation(50, 50, "9999") == 1050.0
    assert service.reprojector.requests == [("9999", "EPSG:2056")]


def test_unknown_crs_raises_resolution_error():
    with pytest.raises(CRSResolutionError):
        make_service().point_elevation(50, 50, "EPSG:1")


def test_transform_failure_propagates():
    with pytest.raises(TransformError):
        make_service().point_elevation(50, 50, "EPSG:6666")


@pytest.mark.parametrize(
    "x, y", [(float("nan"), 1.0), (1.0, float("inf")), (float("-inf"), float("nan"))]
)
def test_non_finite_point_raises_malformed_request(x, y):
    with pytest.raises(MalformedRequestError, match="finite"):
        make_service().point_elevation(x, y, "2056")


def test_point_elevation_is_idempotent():
    service = make_service(FunctionCoverage(lambda x, y: x * y, (0.0, 0.0, 10.0, 10.0)))
    assert service.point_elevation(3, 4, "2056") == service.point_elevation(3, 4, "2056")


# ===========================================================================
# line_profile_elevation
# ===========================================================================
def test_profile_from_mapping():
    series = make_service().line_profile_elevation(
        {"coordinates": [[0, 0], [10, 0]], "distances": [10], "samples": 3}
    )
    assert list(series.elevations) == [42.0, 42.0, 42.0]


def test_profile_step_scenario():
    service = make_service(step_coverage(at_x=5.0))
    request = LineProfileRequest(
        coordinates=((0, 0), (5, 0), (10, 0)), distances=(5, 5), samples=5
    )
    assert service.line_profile_elevation(request).elevations == (
        0.0,
        0.0,
        100.0,
        100.0,
        100.0,
    )


def test_profile_without_projection_skips_reprojector():
    service = make_service()
    service.reprojector = MagicMock()

    service.line_profile_elevation(
        {"coordinates": [[0, 0], [10, 0]], "distances": [10], "samples": 2}
    )

    service.reprojector.get_transform.assert_not_called()


def test_profile_projection_is_applied():
    coverage = FunctionCoverage(lambda x, y: x, (1000.0, 1000.0, 1100.0, 1100.0))
    service = make_service(coverage)

    series = service.line_profile_elevation(
        {
            "coordinates": [[0, 0], [10, 0]],
            "distances": [10],
            "samples": 3,
            "projection": "EPSG:9999",
        }
    )

    assert series.elevations == (1000.0, 1005.0, 1010.0)


def test_profile_with_unknown_projection_raises():
    with pytest.raises(CRSResolutionError):
        make_service().line_profile_elevation(
            {
                "coordinates": [[0, 0], [10, 0]],
                "distances": [10],
                "samples": 3,
                "projection": "EPSG:1",
            }
        )


@pytest.mark.parametrize(
    "payload",
    [
        {"coordinates": [[0, 0], [10, 0]], "distances": [10, 5], "samples": 3},
        {"coordinates": [[0, 0], [10, 0]], "distances": [10], "samples": 0},
    ],
)
def test_malformed_profile_raises(payload):
    with pytest.raises(MalformedRequestError):
        make_service().line_profile_elevation(payload)


def test_profile_with_overflowing_coordinates_raises_malformed_request():
    with pytest.raises(MalformedRequestError):
        make_service().line_profile_elevation(
            {"coordinates": [[-1e308, 0], [1e308, 0]], "distances": [1], "samples": 3}
        )


def test_profile_partially_outside_does_not_abort():
    series = make_service().line_profile_elevation(
        {"coordinates": [[50, 50], [150, 50]], "distances": [100], "samples": 3}
    )
    assert series.elevations == (42.0, 42.0, 0.0)


def test_coverage_fetched_from_provider_per_call():
    provider = StaticProvider(constant_coverage())
    service = ElevationQueryService(provider, OffsetReprojector())

    service.point_elevation(1, 1, "2056")
    service.point_elevation(2, 2, "2056")

    assert provider.calls == 2
