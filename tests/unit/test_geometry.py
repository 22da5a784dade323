# =============================================================================
# Geometry Object Model Unit Tests
# =============================================================================

import pytest

from cityreproject.model import (
    Curve,
    DirectPosition,
    DirectPositionList,
    Document,
    Feature,
    GeometryKind,
    GeometryWalker,
    ImplicitGeometry,
    LinearRing,
    LineString,
    LineStringSegment,
    MultiSurface,
    Point,
    Polygon,
)


class TestPositions:
    """Tests for DirectPosition and DirectPositionList flattening."""

    def test_pos_pads_missing_height(self):
        """A 2D position is padded with a zero height."""
        assert DirectPosition([1, 2]).to_list_3d() == [1.0, 2.0, 0.0]

    def test_pos_rejects_single_component(self):
        """A position with fewer than two components is invalid."""
        with pytest.raises(ValueError):
            DirectPosition([1]).to_list_3d()

    def test_pos_list_defaults_to_3d(self):
        """A posList without srs_dimension is read as 3D."""
        pos_list = DirectPositionList([1, 2, 3, 4, 5, 6])

        assert pos_list.positions() == [[1.0, 2.0, 3.0], [4.0, 5.0, 6.0]]

    def test_pos_list_2d_is_padded(self):
        """A 2D posList is flattened into triples with zero heights."""
        pos_list = DirectPositionList([1, 2, 3, 4], srs_dimension=2)

        assert pos_list.to_list_3d() == [1.0, 2.0, 0.0, 3.0, 4.0, 0.0]

    def test_pos_list_length_mismatch(self):
        """A posList whose length is not a multiple of its dimension is invalid."""
        with pytest.raises(ValueError, match="does not match dimension 3"):
            DirectPositionList([1, 2, 3, 4]).positions()


class TestPayloads:
    """Tests for legacy representations and canonical replacement."""

    def test_point_falls_back_to_coordinates(self):
        """A point without pos is flattened from its coordinates."""
        point = Point(coordinates=[7, 8])

        assert point.to_list_3d() == [7.0, 8.0, 0.0]

    def test_empty_point_has_no_coordinates(self):
        """A point without any representation yields None."""
        assert Point().to_list_3d() is None

    def test_line_string_from_points(self):
        """A line string built from individual positions is flattened in order."""
        line = LineString(points=[DirectPosition([1, 2, 3]), DirectPosition([4, 5])])

        assert line.to_list_3d() == [1.0, 2.0, 3.0, 4.0, 5.0, 0.0]

    def test_set_pos_list_drops_alternates(self):
        """Setting a canonical posList discards points and coordinates."""
        ring = LinearRing(coordinates=[[0, 0], [1, 0], [1, 1], [0, 0]])
        ring.set_pos_list(DirectPositionList([0, 0, 0], srs_dimension=3))

        assert ring.coordinates == []
        assert ring.points == []
        assert ring.pos_list.values == [0.0, 0.0, 0.0]

    def test_set_pos_drops_coordinates(self):
        """Setting a canonical pos discards the legacy coordinates."""
        point = Point(coordinates=[1, 2])
        point.set_pos(DirectPosition([3, 4, 5], srs_dimension=3))

        assert point.coordinates is None
        assert point.to_list_3d() == [3.0, 4.0, 5.0]


class TestTree:
    """Tests for parent links and traversal."""

    def test_parent_links_follow_nesting(self):
        """Nodes attached through constructors know their ancestors."""
        ring = LinearRing(pos_list=DirectPositionList([0, 0, 0, 1, 1, 1, 0, 0, 0]))
        polygon = Polygon(id="poly", exterior=ring)
        surface = MultiSurface(id="ms", members=[polygon])
        feature = Feature(id="f", geometries={"lod2MultiSurface": surface})
        document = Document(features=[feature])

        assert list(ring.ancestors()) == [polygon, surface, feature, document]

    def test_reassigned_child_gets_parent(self):
        """Replacing a single-valued child updates the parent link."""
        implicit = ImplicitGeometry(id="ig")
        point = Point(id="ref")
        implicit.reference_point = point

        assert point.parent is implicit

    def test_walker_dispatches_by_kind(self):
        """The walker calls visit_<kind> and descends through everything else."""
        visited = []

        class Collector(GeometryWalker):
            def visit_LineStringSegment(self, segment):
                visited.append(segment.kind)

        curve = Curve(segments=[LineStringSegment(), LineStringSegment()])
        feature = Feature(geometries={"curve": curve})
        Collector().visit(feature)

        assert visited == [GeometryKind.LINE_STRING_SEGMENT, GeometryKind.LINE_STRING_SEGMENT]

    def test_feature_bounding_shape_is_not_a_child(self):
        """Generic traversal of a feature skips its bounding shape."""
        feature = Feature(id="f", geometries={"p": Point(id="p1")})

        assert [child.id for child in feature.children()] == ["p1"]
