"""
Shared pytest fixtures.

Provides an in-process CRS provider with deterministic offset transforms so
that walker behaviour can be tested without depending on projection math,
plus reusable feature trees.
"""

import numpy as np
import pytest
from pyproj.exceptions import ProjError

from cityreproject.exceptions import InvalidCRSDefinition
from cityreproject.georeferencing import Reprojector
from cityreproject.model import (
    BoundingShape,
    DirectPosition,
    DirectPositionList,
    Envelope,
    Feature,
    LineString,
    Point,
)


# =============================================================================
# Fake CRS provider
# =============================================================================

# Source SRS names starting with "3D:" produce 3-dimensional transforms
THREE_D_PREFIX = "3D:"

OFFSET_X = 1000.0
OFFSET_Y = 2000.0
OFFSET_Z = 10.0


class FakeCrs:
    def __init__(self, name):
        self.name = name

    def to_wkt(self):
        return f'LOCAL_CS["{self.name}"]'


class FakeHandle:
    def __init__(self, name, force_xy=False):
        self.name = name
        self.crs = FakeCrs(name)
        self.force_xy = force_xy


class FakeTransform:
    """Adds fixed offsets; fails on any x value equal to -1."""

    def __init__(self, source, target):
        self.source = source
        self.target = target
        self.source_dimensions = 3 if source.startswith(THREE_D_PREFIX) else 2
        self.target_dimensions = self.source_dimensions
        self.calls = []

    def apply(self, x, y, z=None):
        self.calls.append((np.array(x), np.array(y), None if z is None else np.array(z)))
        if np.any(np.asarray(x) == -1):
            raise ProjError("coordinate outside of projection domain")
        tz = None if z is None else np.asarray(z) + OFFSET_Z
        return np.asarray(x) + OFFSET_X, np.asarray(y) + OFFSET_Y, tz


class FakeProvider:
    def __init__(self):
        self.transforms = {}
        self.resolved = []

    def resolve_crs(self, srs_name, force_xy=False):
        name = f"EPSG:{srs_name}" if isinstance(srs_name, int) else srs_name
        if name.startswith("INVALID"):
            raise InvalidCRSDefinition(f"Failed to parse CRS definition '{name}'.")
        self.resolved.append(name)
        return FakeHandle(name, force_xy)

    def get_transform(self, source_srs, target_srs, target_force_xy=False):
        key = (source_srs, target_srs)
        if key not in self.transforms:
            self.transforms[key] = FakeTransform(source_srs, target_srs)
        return self.transforms[key]

    @staticmethod
    def lookup_identifier(crs):
        return None


@pytest.fixture
def fake_provider():
    return FakeProvider()


@pytest.fixture
def reprojector(fake_provider):
    """Reprojector targeting "EPSG:4326" through the fake provider."""
    reprojector = Reprojector(provider=fake_provider)
    reprojector.configure_target("EPSG:4326")
    return reprojector


# =============================================================================
# Feature fixtures
# =============================================================================

@pytest.fixture
def line_string_feature():
    """Feature with a LineString declared in EPSG:25832 and a matching envelope."""
    line = LineString(
        id="line_1",
        srs_name="EPSG:25832",
        pos_list=DirectPositionList([10, 20, 5, 11, 21, 6], srs_dimension=3),
    )
    return Feature(
        id="feature_1",
        feature_type="Road",
        attributes={"name": "Main Street", "lanes": 2},
        bounded_by=BoundingShape(Envelope([10, 20, 5], [11, 21, 6], srs_name="EPSG:25832", srs_dimension=3)),
        geometries={"lod1Network": line},
    )


@pytest.fixture
def point_feature():
    point = Point(id="point_1", pos=DirectPosition([1, 2, 3], srs_dimension=3))
    return Feature(id="feature_2", geometries={"location": point})
