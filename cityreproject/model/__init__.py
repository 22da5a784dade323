"""
Model Module

This module provides the in-memory city model tree:
- Features, geometries and their coordinate payloads
- Implicit geometries and georeferenced textures
- Bounding envelopes
- A depth-first walker with per-kind dispatch
"""

from .geometry import (
    GeometryKind,
    GMLObject,
    DirectPosition,
    DirectPositionList,
    AbstractGeometry,
    Point,
    LineString,
    LinearRing,
    AbstractCurveSegment,
    LineStringSegment,
    ArcString,
    Curve,
    Polygon,
    MultiPoint,
    MultiCurve,
    MultiSurface,
    CompositeSurface,
    Solid,
    ImplicitGeometry,
    GeoreferencedTexture,
    Appearance,
    Envelope,
    BoundingShape,
    Feature,
    Document,
)
from .walker import GeometryWalker

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
    'GeometryWalker',
]
