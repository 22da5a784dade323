"""
Geometry Object Model

In-memory representation of a city model document: features, their
geometries, implicit geometries, georeferenced textures and bounding
envelopes. Every node keeps a link to its parent so that inherited SRS
declarations can be looked up along the ancestor chain.
"""

from enum import Enum
from typing import Any, Dict, Iterable, Iterator, List, Optional, Sequence

import numpy as np


__all__ = [
    'GeometryKind',
    'GMLObject',
    'DirectPosition',
    'DirectPositionList',
    'AbstractGeometry',
    'Point',
    'LineString',
    'LinearRing',
    'AbstractCurveSegment',
    'LineStringSegment',
    'ArcString',
    'Curve',
    'Polygon',
    'MultiPoint',
    'MultiCurve',
    'MultiSurface',
    'CompositeSurface',
    'Solid',
    'ImplicitGeometry',
    'GeoreferencedTexture',
    'Appearance',
    'Envelope',
    'BoundingShape',
    'Feature',
    'Document',
]


class GeometryKind(str, Enum):
    """Kind tag of every node in the tree. Values double as visitor suffixes."""
    POINT = "Point"
    LINE_STRING = "LineString"
    LINEAR_RING = "LinearRing"
    CURVE = "Curve"
    LINE_STRING_SEGMENT = "LineStringSegment"
    ARC_STRING = "ArcString"
    POLYGON = "Polygon"
    MULTI_POINT = "MultiPoint"
    MULTI_CURVE = "MultiCurve"
    MULTI_SURFACE = "MultiSurface"
    COMPOSITE_SURFACE = "CompositeSurface"
    SOLID = "Solid"
    IMPLICIT_GEOMETRY = "ImplicitGeometry"
    GEOREFERENCED_TEXTURE = "GeoreferencedTexture"
    APPEARANCE = "Appearance"
    ENVELOPE = "Envelope"
    BOUNDING_SHAPE = "BoundingShape"
    FEATURE = "Feature"
    DOCUMENT = "Document"


class _Child:
    """Attribute holding a single child node; assigning it sets the parent link."""

    def __set_name__(self, owner, name):
        self.attr = '_' + name

    def __get__(self, obj, objtype=None):
        if obj is None:
            return self
        return getattr(obj, self.attr, None)

    def __set__(self, obj, value):
        if value is not None:
            value.parent = obj
        setattr(obj, self.attr, value)


# =============================================================================
# Coordinate payloads
# =============================================================================

def _pad_3d(values: Sequence[float]) -> List[float]:
    values = [float(v) for v in values]
    if len(values) < 2:
        raise ValueError(f"A position needs at least 2 components, found {len(values)}")
    if len(values) == 2:
        values.append(0.0)
    return values[:3]


class DirectPosition:
    """A single coordinate tuple (gml:pos)."""

    def __init__(self, values: Optional[Iterable[float]] = None, srs_dimension: Optional[int] = None):
        self.values = [float(v) for v in values] if values is not None else []
        self.srs_dimension = srs_dimension

    def to_list_3d(self) -> List[float]:
        return _pad_3d(self.values)

    def __repr__(self):
        return f"DirectPosition({self.values!r}, srs_dimension={self.srs_dimension!r})"


class DirectPositionList:
    """
    A flat list of coordinates (gml:posList).

    Without an explicit srs_dimension the list is read as 3D.
    """

    def __init__(self, values: Optional[Iterable[float]] = None, srs_dimension: Optional[int] = None):
        self.values = [float(v) for v in values] if values is not None else []
        self.srs_dimension = srs_dimension

    @property
    def dimension(self) -> int:
        return self.srs_dimension or 3

    def positions(self) -> List[List[float]]:
        dim = self.dimension
        if len(self.values) % dim != 0:
            raise ValueError(
                f"Position list of length {len(self.values)} does not match dimension {dim}"
            )
        return [self.values[i:i + dim] for i in range(0, len(self.values), dim)]

    def to_list_3d(self) -> List[float]:
        coords = []
        for position in self.positions():
            coords.extend(_pad_3d(position))
        return coords

    def __repr__(self):
        return f"DirectPositionList({self.values!r}, srs_dimension={self.srs_dimension!r})"


# =============================================================================
# Base node
# =============================================================================

class GMLObject:
    """Base class of all tree nodes."""

    kind: GeometryKind

    def __init__(self, id: Optional[str] = None):
        self.id = id
        self.parent: Optional['GMLObject'] = None

    def children(self) -> Iterator['GMLObject']:
        """Yield the direct child nodes visited by a generic traversal."""
        return iter(())

    def ancestors(self) -> Iterator['GMLObject']:
        node = self.parent
        while node is not None:
            yield node
            node = node.parent

    def _adopt(self, nodes: Iterable['GMLObject']) -> list:
        adopted = []
        for node in nodes:
            node.parent = self
            adopted.append(node)
        return adopted

    def __repr__(self):
        return f"{self.kind.value}(id={self.id!r})"


class AbstractGeometry(GMLObject):
    """A geometry that may declare its own SRS."""

    def __init__(self, id: Optional[str] = None, srs_name: Optional[str] = None):
        super().__init__(id)
        self.srs_name = srs_name


# =============================================================================
# Primitives
# =============================================================================

class Point(AbstractGeometry):
    """
    A single position.

    The canonical payload is ``pos``; ``coordinates`` holds the legacy
    gml:coord / gml:coordinates representation.
    """

    kind = GeometryKind.POINT

    def __init__(self, id: Optional[str] = None, srs_name: Optional[str] = None,
                 pos: Optional[DirectPosition] = None,
                 coordinates: Optional[Sequence[float]] = None):
        super().__init__(id, srs_name)
        self.pos = pos
        self.coordinates = list(coordinates) if coordinates is not None else None

    def to_list_3d(self) -> Optional[List[float]]:
        if self.pos is not None and self.pos.values:
            return self.pos.to_list_3d()
        if self.coordinates:
            return _pad_3d(self.coordinates)
        return None

    def set_pos(self, pos: DirectPosition) -> None:
        """Replace every coordinate representation with ``pos``."""
        self.coordinates = None
        self.pos = pos


class _PositionListMixin:
    """Payload handling shared by line strings, rings and line string segments."""

    def _init_positions(self, pos_list, points, coordinates):
        self.pos_list: Optional[DirectPositionList] = pos_list
        self.points: List[DirectPosition] = list(points) if points else []
        self.coordinates: List[List[float]] = [list(c) for c in coordinates] if coordinates else []

    def to_list_3d(self) -> Optional[List[float]]:
        coords = []
        if self.pos_list is not None:
            coords = self.pos_list.to_list_3d()
        elif self.points:
            for point in self.points:
                coords.extend(point.to_list_3d())
        elif self.coordinates:
            for tup in self.coordinates:
                coords.extend(_pad_3d(tup))
        return coords or None

    def set_pos_list(self, pos_list: DirectPositionList) -> None:
        """Replace every coordinate representation with ``pos_list``."""
        self.points = []
        self.coordinates = []
        self.pos_list = pos_list


class LineString(_PositionListMixin, AbstractGeometry):
    kind = GeometryKind.LINE_STRING

    def __init__(self, id: Optional[str] = None, srs_name: Optional[str] = None,
                 pos_list: Optional[DirectPositionList] = None,
                 points: Optional[Sequence[DirectPosition]] = None,
                 coordinates: Optional[Sequence[Sequence[float]]] = None):
        super().__init__(id, srs_name)
        self._init_positions(pos_list, points, coordinates)


class LinearRing(_PositionListMixin, AbstractGeometry):
    kind = GeometryKind.LINEAR_RING

    def __init__(self, id: Optional[str] = None, srs_name: Optional[str] = None,
                 pos_list: Optional[DirectPositionList] = None,
                 points: Optional[Sequence[DirectPosition]] = None,
                 coordinates: Optional[Sequence[Sequence[float]]] = None):
        super().__init__(id, srs_name)
        self._init_positions(pos_list, points, coordinates)


class AbstractCurveSegment(GMLObject):
    """A segment of a Curve. Segments never carry their own SRS."""


class LineStringSegment(_PositionListMixin, AbstractCurveSegment):
    kind = GeometryKind.LINE_STRING_SEGMENT

    def __init__(self, pos_list: Optional[DirectPositionList] = None,
                 points: Optional[Sequence[DirectPosition]] = None,
                 coordinates: Optional[Sequence[Sequence[float]]] = None):
        super().__init__()
        self._init_positions(pos_list, points, coordinates)


class ArcString(AbstractCurveSegment):
    """Circular arc segment. Carried through unchanged by reprojection."""

    kind = GeometryKind.ARC_STRING

    def __init__(self, pos_list: Optional[DirectPositionList] = None):
        super().__init__()
        self.pos_list = pos_list


class Curve(AbstractGeometry):
    kind = GeometryKind.CURVE

    def __init__(self, id: Optional[str] = None, srs_name: Optional[str] = None,
                 segments: Optional[Sequence[AbstractCurveSegment]] = None):
        super().__init__(id, srs_name)
        self.segments: List[AbstractCurveSegment] = self._adopt(segments or [])

    def children(self):
        return iter(self.segments)


# =============================================================================
# Aggregates
# =============================================================================

class Polygon(AbstractGeometry):
    kind = GeometryKind.POLYGON
    exterior = _Child()

    def __init__(self, id: Optional[str] = None, srs_name: Optional[str] = None,
                 exterior: Optional[LinearRing] = None,
                 interior: Optional[Sequence[LinearRing]] = None):
        super().__init__(id, srs_name)
        self.exterior = exterior
        self.interior: List[LinearRing] = self._adopt(interior or [])

    def children(self):
        if self.exterior is not None:
            yield self.exterior
        yield from self.interior


class _GeometryAggregate(AbstractGeometry):
    def __init__(self, id: Optional[str] = None, srs_name: Optional[str] = None,
                 members: Optional[Sequence[AbstractGeometry]] = None):
        super().__init__(id, srs_name)
        self.members: List[AbstractGeometry] = self._adopt(members or [])

    def add_member(self, geometry: AbstractGeometry) -> None:
        self.members.extend(self._adopt([geometry]))

    def children(self):
        return iter(self.members)


class MultiPoint(_GeometryAggregate):
    kind = GeometryKind.MULTI_POINT


class MultiCurve(_GeometryAggregate):
    kind = GeometryKind.MULTI_CURVE


class MultiSurface(_GeometryAggregate):
    kind = GeometryKind.MULTI_SURFACE


class CompositeSurface(_GeometryAggregate):
    kind = GeometryKind.COMPOSITE_SURFACE


class Solid(AbstractGeometry):
    kind = GeometryKind.SOLID
    exterior = _Child()

    def __init__(self, id: Optional[str] = None, srs_name: Optional[str] = None,
                 exterior: Optional[AbstractGeometry] = None,
                 interior: Optional[Sequence[AbstractGeometry]] = None):
        super().__init__(id, srs_name)
        self.exterior = exterior
        self.interior: List[AbstractGeometry] = self._adopt(interior or [])

    def children(self):
        if self.exterior is not None:
            yield self.exterior
        yield from self.interior


# =============================================================================
# Implicit geometries and appearances
# =============================================================================

class ImplicitGeometry(GMLObject):
    """
    A template geometry instanced through a 4x4 placement matrix and a
    reference point.

    The template (``relative_geometry``) lives in a local coordinate space;
    only the reference point is georeferenced.
    """

    kind = GeometryKind.IMPLICIT_GEOMETRY
    reference_point = _Child()
    relative_geometry = _Child()

    def __init__(self, id: Optional[str] = None,
                 transformation_matrix: Optional[np.ndarray] = None,
                 reference_point: Optional[Point] = None,
                 relative_geometry: Optional[AbstractGeometry] = None,
                 mime_type: Optional[str] = None,
                 library_object: Optional[str] = None):
        super().__init__(id)
        self.transformation_matrix = (
            np.asarray(transformation_matrix, dtype=np.float64)
            if transformation_matrix is not None else None
        )
        self.reference_point = reference_point
        self.relative_geometry = relative_geometry
        self.mime_type = mime_type
        self.library_object = library_object

    def children(self):
        if self.reference_point is not None:
            yield self.reference_point
        if self.relative_geometry is not None:
            yield self.relative_geometry


class GeoreferencedTexture(GMLObject):
    """An image placed in world space by a planar reference point."""

    kind = GeometryKind.GEOREFERENCED_TEXTURE
    reference_point = _Child()

    def __init__(self, id: Optional[str] = None, image_uri: Optional[str] = None,
                 reference_point: Optional[Point] = None,
                 orientation: Optional[Sequence[float]] = None,
                 prefer_world_file: Optional[bool] = None,
                 targets: Optional[Sequence[str]] = None):
        super().__init__(id)
        self.image_uri = image_uri
        self.reference_point = reference_point
        self.orientation = list(orientation) if orientation is not None else None
        self.prefer_world_file = prefer_world_file
        self.targets = list(targets) if targets else []

    def children(self):
        if self.reference_point is not None:
            yield self.reference_point


class Appearance(GMLObject):
    kind = GeometryKind.APPEARANCE

    def __init__(self, id: Optional[str] = None, theme: Optional[str] = None,
                 surface_data: Optional[Sequence[GMLObject]] = None):
        super().__init__(id)
        self.theme = theme
        self.surface_data: List[GMLObject] = self._adopt(surface_data or [])

    def children(self):
        return iter(self.surface_data)


# =============================================================================
# Bounding shapes, features and documents
# =============================================================================

class Envelope(GMLObject):
    """Axis-aligned extent given by a lower and an upper corner."""

    kind = GeometryKind.ENVELOPE

    def __init__(self, lower_corner: Optional[Sequence[float]] = None,
                 upper_corner: Optional[Sequence[float]] = None,
                 srs_name: Optional[str] = None, srs_dimension: Optional[int] = None):
        super().__init__()
        self.lower_corner = [float(v) for v in lower_corner] if lower_corner is not None else None
        self.upper_corner = [float(v) for v in upper_corner] if upper_corner is not None else None
        self.srs_name = srs_name
        self.srs_dimension = srs_dimension

    def is_set(self) -> bool:
        return bool(self.lower_corner) and bool(self.upper_corner)


class BoundingShape(GMLObject):
    kind = GeometryKind.BOUNDING_SHAPE
    envelope = _Child()

    def __init__(self, envelope: Optional[Envelope] = None):
        super().__init__()
        self.envelope = envelope

    def children(self):
        if self.envelope is not None:
            yield self.envelope


class Feature(GMLObject):
    """
    A city object. Non-geometric content in ``attributes`` is carried
    through untouched.

    Attributes:
        feature_type: Name of the feature class (e.g. "Building")
        attributes: Arbitrary JSON-compatible attribute values
        bounded_by: Optional bounding shape
        geometries: Geometry properties by property name
        implicit_geometries: Implicit representations by property name
        appearances: Local appearances
        members: Nested features (e.g. building parts)
    """

    kind = GeometryKind.FEATURE
    bounded_by = _Child()

    def __init__(self, id: Optional[str] = None, feature_type: str = "Feature",
                 attributes: Optional[Dict[str, Any]] = None,
                 bounded_by: Optional[BoundingShape] = None,
                 geometries: Optional[Dict[str, AbstractGeometry]] = None,
                 implicit_geometries: Optional[Dict[str, ImplicitGeometry]] = None,
                 appearances: Optional[Sequence[Appearance]] = None,
                 members: Optional[Sequence['Feature']] = None):
        super().__init__(id)
        self.feature_type = feature_type
        self.attributes = dict(attributes) if attributes else {}
        self.bounded_by = bounded_by
        self.geometries: Dict[str, AbstractGeometry] = {}
        for name, geometry in (geometries or {}).items():
            self.set_geometry(name, geometry)
        self.implicit_geometries: Dict[str, ImplicitGeometry] = {}
        for name, implicit in (implicit_geometries or {}).items():
            self.set_implicit_geometry(name, implicit)
        self.appearances: List[Appearance] = self._adopt(appearances or [])
        self.members: List[Feature] = self._adopt(members or [])

    def set_geometry(self, name: str, geometry: AbstractGeometry) -> None:
        geometry.parent = self
        self.geometries[name] = geometry

    def set_implicit_geometry(self, name: str, implicit: ImplicitGeometry) -> None:
        implicit.parent = self
        self.implicit_geometries[name] = implicit

    def add_member(self, feature: 'Feature') -> None:
        self.members.extend(self._adopt([feature]))

    def children(self):
        yield from self.geometries.values()
        yield from self.implicit_geometries.values()
        yield from self.appearances
        yield from self.members

    def __repr__(self):
        return f"{self.feature_type}(id={self.id!r})"


class Document(GMLObject):
    """Root of a city model: an optional document-level SRS and top-level features."""

    kind = GeometryKind.DOCUMENT
    bounded_by = _Child()

    def __init__(self, id: Optional[str] = None, srs_name: Optional[str] = None,
                 bounded_by: Optional[BoundingShape] = None,
                 features: Optional[Sequence[Feature]] = None):
        super().__init__(id)
        self.srs_name = srs_name
        self.bounded_by = bounded_by
        self.features: List[Feature] = self._adopt(features or [])

    def add_feature(self, feature: Feature) -> None:
        self.features.extend(self._adopt([feature]))

    def children(self):
        return iter(self.features)
