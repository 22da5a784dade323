# =============================================================================
# JSON Document Codec Unit Tests
# =============================================================================

import json

import numpy as np
import pytest

from cityreproject.model import (
    Curve,
    GeoreferencedTexture,
    ImplicitGeometry,
    MultiSurface,
    Point,
)
from cityreproject.utils import (
    DocumentError,
    document_from_dict,
    document_to_dict,
    read_document,
    write_document,
)


SAMPLE_DOCUMENT = {
    "id": "city",
    "srsName": "EPSG:25832",
    "boundedBy": {"envelope": {"lowerCorner": [0, 0, 0], "upperCorner": [10, 10, 10], "srsDimension": 3}},
    "features": [
        {
            "id": "building_1",
            "featureType": "Building",
            "attributes": {"function": "1000", "storeys": 3, "tags": ["a", "b"]},
            "geometries": {
                "lod2MultiSurface": {
                    "type": "MultiSurface",
                    "id": "ms_1",
                    "members": [
                        {
                            "type": "Polygon",
                            "exterior": {"type": "LinearRing", "posList": [0, 0, 0, 1, 0, 0, 1, 1, 0, 0, 0, 0]},
                        }
                    ],
                },
                "lod1TerrainIntersection": {
                    "type": "Curve",
                    "segments": [
                        {"type": "LineStringSegment", "coordinates": [[0, 0], [1, 1]]},
                        {"type": "ArcString", "posList": [0, 0, 1, 1, 2, 0], "srsDimension": 2},
                    ],
                },
            },
            "implicitGeometries": {
                "lod2ImplicitRepresentation": {
                    "libraryObject": "chimney.obj",
                    "transformationMatrix": [1, 0, 0, 5, 0, 1, 0, 6, 0, 0, 1, 7, 0, 0, 0, 1],
                    "referencePoint": {"type": "Point", "pos": [1, 2, 3], "srsDimension": 3},
                }
            },
            "appearances": [
                {
                    "theme": "rgb",
                    "surfaceData": [
                        {
                            "type": "GeoreferencedTexture",
                            "imageURI": "roof.png",
                            "referencePoint": {"type": "Point", "pos": [1, 2]},
                            "orientation": [1, 0, 0, 1],
                        }
                    ],
                }
            ],
            "members": [{"id": "part_1", "featureType": "BuildingPart"}],
        }
    ],
}


class TestDocumentFromDict:
    """Tests for reading documents."""

    def test_tree_structure(self):
        """Features, geometries and nested members are built with parent links."""
        document = document_from_dict(SAMPLE_DOCUMENT)

        building = document.features[0]
        assert building.parent is document
        assert building.feature_type == "Building"
        assert isinstance(building.geometries["lod2MultiSurface"], MultiSurface)
        assert isinstance(building.geometries["lod1TerrainIntersection"], Curve)
        assert building.members[0].id == "part_1"
        assert building.members[0].parent is building

        ring = building.geometries["lod2MultiSurface"].members[0].exterior
        assert document in list(ring.ancestors())

    def test_implicit_geometry_matrix(self):
        """The transformation matrix is read row-major into a 4x4 array."""
        document = document_from_dict(SAMPLE_DOCUMENT)

        implicit = document.features[0].implicit_geometries["lod2ImplicitRepresentation"]
        assert isinstance(implicit, ImplicitGeometry)
        np.testing.assert_array_equal(implicit.transformation_matrix[:3, 3], [5, 6, 7])
        assert isinstance(implicit.reference_point, Point)

    def test_texture(self):
        """Georeferenced textures are read from appearances."""
        document = document_from_dict(SAMPLE_DOCUMENT)

        texture = document.features[0].appearances[0].surface_data[0]
        assert isinstance(texture, GeoreferencedTexture)
        assert texture.image_uri == "roof.png"
        assert texture.reference_point.pos.values == [1.0, 2.0]

    def test_unknown_key(self):
        """Unknown keys are rejected."""
        data = {"features": [{"id": "f", "geometry": {}}]}

        with pytest.raises(DocumentError, match="Unknown keys in Feature: geometry"):
            document_from_dict(data)

    def test_unknown_geometry_type(self):
        """Unsupported geometry types are rejected."""
        data = {"features": [{"id": "f", "geometries": {"g": {"type": "Sphere"}}}]}

        with pytest.raises(DocumentError, match="Unsupported geometry type 'Sphere'"):
            document_from_dict(data)

    @pytest.mark.parametrize("geometry, message", [
        ({"type": "Point", "pos": "1 2 3"}, "pos of Point must be a list of numbers"),
        ({"type": "Point", "pos": [1, 2, 3], "srsDimension": "3"}, "srsDimension of Point"),
        ({"type": "LineString", "posList": [1, 2, None]}, "posList of LineString"),
        ({"type": "LineString", "posList": [1, 2, 3], "srsDimension": 0}, "srsDimension of LineString"),
        ({"type": "LinearRing", "coordinates": [[0, 0], "1 1"]}, "coordinates of LinearRing"),
        ({"type": "LineString", "points": [[0, True]]}, "points of LineString"),
    ])
    def test_malformed_coordinates(self, geometry, message):
        """Coordinate payloads must be lists of numbers with an integer srsDimension."""
        data = {"features": [{"id": "f", "geometries": {"g": geometry}}]}

        with pytest.raises(DocumentError, match=message):
            document_from_dict(data)

    def test_malformed_envelope_corner(self):
        """Envelope corners must be lists of numbers."""
        data = {"boundedBy": {"envelope": {"lowerCorner": ["a", "b"], "upperCorner": [1, 1]}}}

        with pytest.raises(DocumentError, match="lowerCorner of Envelope"):
            document_from_dict(data)

    def test_members_attached(self):
        """Aggregate and feature members are attached to their parents."""
        data = {"features": [{
            "id": "f",
            "geometries": {"g": {"type": "MultiPoint", "members": [{"type": "Point", "pos": [1, 2]}]}},
            "members": [{"id": "m"}],
        }]}

        feature = document_from_dict(data).features[0]

        point = feature.geometries["g"].members[0]
        assert point.parent is feature.geometries["g"]
        assert feature.members[0].parent is feature

    def test_invalid_matrix(self):
        """A transformation matrix without 16 values is rejected."""
        data = {"features": [{"implicitGeometries": {"i": {"transformationMatrix": [1, 2, 3]}}}]}

        with pytest.raises(DocumentError, match="Invalid transformationMatrix"):
            document_from_dict(data)

    def test_document_error_is_value_error(self):
        """DocumentError can be caught as ValueError."""
        with pytest.raises(ValueError):
            document_from_dict({"features": "nope"})


class TestDocumentToDict:
    """Tests for writing documents."""

    def test_preserves_content(self):
        """Writing a freshly read document reproduces its content."""
        data = document_to_dict(document_from_dict(SAMPLE_DOCUMENT))

        assert data["srsName"] == "EPSG:25832"
        feature = data["features"][0]
        assert feature["attributes"] == {"function": "1000", "storeys": 3, "tags": ["a", "b"]}
        assert feature["implicitGeometries"]["lod2ImplicitRepresentation"]["transformationMatrix"] == \
            [1.0, 0.0, 0.0, 5.0, 0.0, 1.0, 0.0, 6.0, 0.0, 0.0, 1.0, 7.0, 0.0, 0.0, 0.0, 1.0]
        segments = feature["geometries"]["lod1TerrainIntersection"]["segments"]
        assert segments[1] == {"type": "ArcString", "posList": [0.0, 0.0, 1.0, 1.0, 2.0, 0.0], "srsDimension": 2}
        assert feature["members"] == [{"id": "part_1", "featureType": "BuildingPart"}]

    def test_empty_values_omitted(self):
        """Absent optional values are not written."""
        data = document_to_dict(document_from_dict({"features": [{"id": "f"}]}))

        assert data == {"features": [{"id": "f", "featureType": "Feature"}]}


class TestFiles:
    """Tests for read_document / write_document."""

    def test_write_then_read(self, tmp_path):
        """A written document can be read back."""
        path = tmp_path / "city.json"

        write_document(document_from_dict(SAMPLE_DOCUMENT), str(path))
        document = read_document(str(path))

        assert document.srs_name == "EPSG:25832"
        assert json.loads(path.read_text(encoding="utf-8"))["id"] == "city"

    def test_invalid_json(self, tmp_path):
        """A file that is not JSON raises DocumentError."""
        path = tmp_path / "broken.json"
        path.write_text("{not json", encoding="utf-8")

        with pytest.raises(DocumentError, match="Invalid JSON"):
            read_document(str(path))
