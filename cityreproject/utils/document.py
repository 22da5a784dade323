"""
JSON document codec.

Reads and writes city model documents as JSON. Layout::

    {
      "srsName": "EPSG:25832",
      "boundedBy": {"envelope": {"lowerCorner": [...], "upperCorner": [...]}},
      "features": [
        {
          "id": "building_1",
          "featureType": "Building",
          "attributes": {...},
          "boundedBy": {...},
          "geometries": {"lod2MultiSurface": {"type": "MultiSurface", "members": [...]}},
          "implicitGeometries": {...},
          "appearances": [...],
          "members": [...]
        }
      ]
    }

Geometries carry ``type``, optional ``id`` and ``srsName`` and a payload
depending on their type.
"""

import json
from typing import Any, Callable, Dict, Iterable, List, Optional

from ..model import (
    AbstractCurveSegment,
    AbstractGeometry,
    Appearance,
    ArcString,
    BoundingShape,
    CompositeSurface,
    Curve,
    DirectPosition,
    DirectPositionList,
    Document,
    Envelope,
    Feature,
    GeoreferencedTexture,
    GMLObject,
    ImplicitGeometry,
    LinearRing,
    LineString,
    LineStringSegment,
    MultiCurve,
    MultiPoint,
    MultiSurface,
    Point,
    Polygon,
    Solid,
)
from ..georeferencing.transformer import MatrixUtils


__all__ = [
    'DocumentError',
    'document_from_dict',
    'document_to_dict',
    'read_document',
    'write_document',
]


class DocumentError(ValueError):
    """The JSON content does not describe a valid document."""


def _check_keys(data: Dict[str, Any], allowed: Iterable[str], where: str) -> None:
    if not isinstance(data, dict):
        raise DocumentError(f"{where} must be a JSON object, got {type(data).__name__}")
    unknown = set(data) - set(allowed)
    if unknown:
        raise DocumentError(f"Unknown keys in {where}: {', '.join(sorted(unknown))}")


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _numbers(values: Any, where: str) -> List[float]:
    if not isinstance(values, list) or not all(_is_number(v) for v in values):
        raise DocumentError(f"{where} must be a list of numbers")
    return values


def _tuples(values: Any, where: str) -> List[List[float]]:
    if not isinstance(values, list):
        raise DocumentError(f"{where} must be a list of coordinate tuples")
    return [_numbers(v, where) for v in values]


def _optional_numbers(data: Dict[str, Any], key: str, where: str) -> Optional[List[float]]:
    values = data.get(key)
    return _numbers(values, f"{key} of {where}") if values is not None else None


def _dimension(data: Dict[str, Any], where: str) -> Optional[int]:
    dimension = data.get("srsDimension")
    if dimension is not None and (not isinstance(dimension, int) or isinstance(dimension, bool) or dimension < 1):
        raise DocumentError(f"srsDimension of {where} must be a positive integer, got {dimension!r}")
    return dimension


def _compact(data: Dict[str, Any]) -> Dict[str, Any]:
    return {key: value for key, value in data.items() if value is not None and value != [] and value != {}}


# =============================================================================
# Reading
# =============================================================================

_POSITION_KEYS = ("pos", "srsDimension", "coordinates")
_POSITION_LIST_KEYS = ("posList", "srsDimension", "points", "coordinates")


def _read_positions(data: Dict[str, Any], where: str) -> Dict[str, Any]:
    pos_list = None
    if data.get("posList") is not None:
        pos_list = DirectPositionList(_numbers(data["posList"], f"posList of {where}"), _dimension(data, where))
    coordinates = data.get("coordinates")
    return {
        "pos_list": pos_list,
        "points": [DirectPosition(values) for values in _tuples(data.get("points", []), f"points of {where}")],
        "coordinates": _tuples(coordinates, f"coordinates of {where}") if coordinates is not None else None,
    }


def _read_point(data):
    _check_keys(data, ("type", "id", "srsName") + _POSITION_KEYS, "Point")
    pos = None
    if data.get("pos") is not None:
        pos = DirectPosition(_numbers(data["pos"], "pos of Point"), _dimension(data, "Point"))
    coordinates = data.get("coordinates")
    return Point(id=data.get("id"), srs_name=data.get("srsName"), pos=pos,
                 coordinates=_numbers(coordinates, "coordinates of Point") if coordinates is not None else None)


def _read_line_string(data):
    _check_keys(data, ("type", "id", "srsName") + _POSITION_LIST_KEYS, "LineString")
    return LineString(id=data.get("id"), srs_name=data.get("srsName"), **_read_positions(data, "LineString"))


def _read_linear_ring(data):
    _check_keys(data, ("type", "id", "srsName") + _POSITION_LIST_KEYS, "LinearRing")
    return LinearRing(id=data.get("id"), srs_name=data.get("srsName"), **_read_positions(data, "LinearRing"))


def _read_segment(data) -> AbstractCurveSegment:
    segment_type = data.get("type")
    if segment_type == "LineStringSegment":
        _check_keys(data, ("type",) + _POSITION_LIST_KEYS, "LineStringSegment")
        return LineStringSegment(**_read_positions(data, "LineStringSegment"))
    if segment_type == "ArcString":
        _check_keys(data, ("type", "posList", "srsDimension"), "ArcString")
        return ArcString(DirectPositionList(_numbers(data.get("posList", []), "posList of ArcString"),
                                            _dimension(data, "ArcString")))
    raise DocumentError(f"Unsupported curve segment type '{segment_type}'")


def _read_curve(data):
    _check_keys(data, ("type", "id", "srsName", "segments"), "Curve")
    return Curve(id=data.get("id"), srs_name=data.get("srsName"),
                 segments=[_read_segment(s) for s in data.get("segments", [])])


def _read_polygon(data):
    _check_keys(data, ("type", "id", "srsName", "exterior", "interior"), "Polygon")
    exterior = _read_linear_ring(data["exterior"]) if data.get("exterior") is not None else None
    return Polygon(id=data.get("id"), srs_name=data.get("srsName"), exterior=exterior,
                   interior=[_read_linear_ring(r) for r in data.get("interior", [])])


def _aggregate_reader(cls) -> Callable[[Dict[str, Any]], AbstractGeometry]:
    def read(data):
        _check_keys(data, ("type", "id", "srsName", "members"), cls.__name__)
        aggregate = cls(id=data.get("id"), srs_name=data.get("srsName"))
        for member in data.get("members", []):
            aggregate.add_member(read_geometry(member))
        return aggregate
    return read


def _read_solid(data):
    _check_keys(data, ("type", "id", "srsName", "exterior", "interior"), "Solid")
    exterior = read_geometry(data["exterior"]) if data.get("exterior") is not None else None
    return Solid(id=data.get("id"), srs_name=data.get("srsName"), exterior=exterior,
                 interior=[read_geometry(g) for g in data.get("interior", [])])


_GEOMETRY_READERS: Dict[str, Callable[[Dict[str, Any]], AbstractGeometry]] = {
    "Point": _read_point,
    "LineString": _read_line_string,
    "LinearRing": _read_linear_ring,
    "Curve": _read_curve,
    "Polygon": _read_polygon,
    "MultiPoint": _aggregate_reader(MultiPoint),
    "MultiCurve": _aggregate_reader(MultiCurve),
    "MultiSurface": _aggregate_reader(MultiSurface),
    "CompositeSurface": _aggregate_reader(CompositeSurface),
    "Solid": _read_solid,
}


def read_geometry(data: Dict[str, Any]) -> AbstractGeometry:
    if not isinstance(data, dict):
        raise DocumentError(f"Geometry must be a JSON object, got {type(data).__name__}")
    reader = _GEOMETRY_READERS.get(data.get("type"))
    if reader is None:
        raise DocumentError(f"Unsupported geometry type '{data.get('type')}'")
    return reader(data)


def _read_implicit_geometry(data) -> ImplicitGeometry:
    _check_keys(data, ("id", "mimeType", "libraryObject", "transformationMatrix",
                       "referencePoint", "relativeGeometry"), "ImplicitGeometry")
    try:
        matrix = (MatrixUtils.load_matrix(data["transformationMatrix"])
                  if data.get("transformationMatrix") is not None else None)
    except (TypeError, ValueError) as e:
        raise DocumentError(f"Invalid transformationMatrix: {e}") from e

    return ImplicitGeometry(
        id=data.get("id"),
        transformation_matrix=matrix,
        reference_point=_read_point(data["referencePoint"]) if data.get("referencePoint") else None,
        relative_geometry=read_geometry(data["relativeGeometry"]) if data.get("relativeGeometry") else None,
        mime_type=data.get("mimeType"),
        library_object=data.get("libraryObject"),
    )


def _read_texture(data) -> GeoreferencedTexture:
    if data.get("type") != "GeoreferencedTexture":
        raise DocumentError(f"Unsupported surface data type '{data.get('type')}'")
    _check_keys(data, ("type", "id", "imageURI", "preferWorldFile", "referencePoint",
                       "orientation", "targets"), "GeoreferencedTexture")
    return GeoreferencedTexture(
        id=data.get("id"),
        image_uri=data.get("imageURI"),
        reference_point=_read_point(data["referencePoint"]) if data.get("referencePoint") else None,
        orientation=_optional_numbers(data, "orientation", "GeoreferencedTexture"),
        prefer_world_file=data.get("preferWorldFile"),
        targets=data.get("targets"),
    )


def _read_appearance(data) -> Appearance:
    _check_keys(data, ("id", "theme", "surfaceData"), "Appearance")
    return Appearance(id=data.get("id"), theme=data.get("theme"),
                      surface_data=[_read_texture(s) for s in data.get("surfaceData", [])])


def _read_bounding_shape(data) -> BoundingShape:
    _check_keys(data, ("envelope",), "boundedBy")
    envelope = data.get("envelope")
    if envelope is None:
        return BoundingShape()
    _check_keys(envelope, ("srsName", "srsDimension", "lowerCorner", "upperCorner"), "Envelope")
    return BoundingShape(Envelope(
        lower_corner=_optional_numbers(envelope, "lowerCorner", "Envelope"),
        upper_corner=_optional_numbers(envelope, "upperCorner", "Envelope"),
        srs_name=envelope.get("srsName"),
        srs_dimension=_dimension(envelope, "Envelope"),
    ))


def _read_feature(data) -> Feature:
    _check_keys(data, ("id", "featureType", "attributes", "boundedBy", "geometries",
                       "implicitGeometries", "appearances", "members"), "Feature")
    feature = Feature(
        id=data.get("id"),
        feature_type=data.get("featureType", "Feature"),
        attributes=data.get("attributes"),
        bounded_by=_read_bounding_shape(data["boundedBy"]) if data.get("boundedBy") else None,
        geometries={name: read_geometry(g) for name, g in data.get("geometries", {}).items()},
        implicit_geometries={name: _read_implicit_geometry(g)
                             for name, g in data.get("implicitGeometries", {}).items()},
        appearances=[_read_appearance(a) for a in data.get("appearances", [])],
    )
    for member in data.get("members", []):
        feature.add_member(_read_feature(member))
    return feature


def document_from_dict(data: Dict[str, Any]) -> Document:
    """
    Build a document tree from parsed JSON.

    Raises:
        DocumentError: If the content is not a valid document
    """
    _check_keys(data, ("id", "srsName", "boundedBy", "features"), "document")
    document = Document(
        id=data.get("id"),
        srs_name=data.get("srsName"),
        bounded_by=_read_bounding_shape(data["boundedBy"]) if data.get("boundedBy") else None,
    )
    for feature in data.get("features", []):
        document.add_feature(_read_feature(feature))
    return document


# =============================================================================
# Writing
# =============================================================================

def _write_positions(node) -> Dict[str, Any]:
    pos_list = node.pos_list
    return {
        "posList": pos_list.values if pos_list is not None else None,
        "srsDimension": pos_list.srs_dimension if pos_list is not None else None,
        "points": [p.values for p in node.points],
        "coordinates": node.coordinates,
    }


def _write_point(point: Point) -> Dict[str, Any]:
    return _compact({
        "type": "Point",
        "id": point.id,
        "srsName": point.srs_name,
        "pos": point.pos.values if point.pos is not None else None,
        "srsDimension": point.pos.srs_dimension if point.pos is not None else None,
        "coordinates": point.coordinates,
    })


def _write_segment(segment: AbstractCurveSegment) -> Dict[str, Any]:
    if isinstance(segment, LineStringSegment):
        return _compact({"type": "LineStringSegment", **_write_positions(segment)})
    pos_list = segment.pos_list
    return _compact({
        "type": segment.kind.value,
        "posList": pos_list.values if pos_list is not None else None,
        "srsDimension": pos_list.srs_dimension if pos_list is not None else None,
    })


def write_geometry(geometry: AbstractGeometry) -> Dict[str, Any]:
    data: Dict[str, Any] = {"type": geometry.kind.value, "id": geometry.id, "srsName": geometry.srs_name}

    if isinstance(geometry, Point):
        return _write_point(geometry)
    if isinstance(geometry, (LineString, LinearRing)):
        data.update(_write_positions(geometry))
    elif isinstance(geometry, Curve):
        data["segments"] = [_write_segment(s) for s in geometry.segments]
    elif isinstance(geometry, (Polygon, Solid)):
        data["exterior"] = write_geometry(geometry.exterior) if geometry.exterior is not None else None
        data["interior"] = [write_geometry(g) for g in geometry.interior]
    elif isinstance(geometry, (MultiPoint, MultiCurve, MultiSurface, CompositeSurface)):
        data["members"] = [write_geometry(g) for g in geometry.members]
    else:
        raise DocumentError(f"Cannot write geometry of type '{geometry.kind.value}'")

    return _compact(data)


def _write_implicit_geometry(implicit: ImplicitGeometry) -> Dict[str, Any]:
    matrix = implicit.transformation_matrix
    return _compact({
        "id": implicit.id,
        "mimeType": implicit.mime_type,
        "libraryObject": implicit.library_object,
        "transformationMatrix": matrix.ravel().tolist() if matrix is not None else None,
        "referencePoint": _write_point(implicit.reference_point) if implicit.reference_point else None,
        "relativeGeometry": write_geometry(implicit.relative_geometry) if implicit.relative_geometry else None,
    })


def _write_surface_data(surface_data: GMLObject) -> Dict[str, Any]:
    if not isinstance(surface_data, GeoreferencedTexture):
        raise DocumentError(f"Cannot write surface data of type '{surface_data.kind.value}'")
    return _compact({
        "type": "GeoreferencedTexture",
        "id": surface_data.id,
        "imageURI": surface_data.image_uri,
        "preferWorldFile": surface_data.prefer_world_file,
        "referencePoint": _write_point(surface_data.reference_point) if surface_data.reference_point else None,
        "orientation": surface_data.orientation,
        "targets": surface_data.targets,
    })


def _write_bounding_shape(bounding_shape: Optional[BoundingShape]) -> Optional[Dict[str, Any]]:
    if bounding_shape is None:
        return None
    envelope = bounding_shape.envelope
    if envelope is None:
        return {}
    return {"envelope": _compact({
        "srsName": envelope.srs_name,
        "srsDimension": envelope.srs_dimension,
        "lowerCorner": envelope.lower_corner,
        "upperCorner": envelope.upper_corner,
    })}


def _write_feature(feature: Feature) -> Dict[str, Any]:
    return _compact({
        "id": feature.id,
        "featureType": feature.feature_type,
        "attributes": feature.attributes,
        "boundedBy": _write_bounding_shape(feature.bounded_by),
        "geometries": {name: write_geometry(g) for name, g in feature.geometries.items()},
        "implicitGeometries": {name: _write_implicit_geometry(g)
                               for name, g in feature.implicit_geometries.items()},
        "appearances": [_compact({
            "id": appearance.id,
            "theme": appearance.theme,
            "surfaceData": [_write_surface_data(s) for s in appearance.surface_data],
        }) for appearance in feature.appearances],
        "members": [_write_feature(m) for m in feature.members],
    })


def document_to_dict(document: Document) -> Dict[str, Any]:
    return _compact({
        "id": document.id,
        "srsName": document.srs_name,
        "boundedBy": _write_bounding_shape(document.bounded_by),
        "features": [_write_feature(f) for f in document.features],
    })


# =============================================================================
# Files
# =============================================================================

def read_document(path: str) -> Document:
    """
    Read a JSON document from disk.

    Raises:
        DocumentError: If the file is not valid JSON or not a valid document
    """
    with open(path, "r", encoding="utf-8") as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as e:
            raise DocumentError(f"Invalid JSON in {path}: {e}") from e
    return document_from_dict(data)


def write_document(document: Document, path: str, indent: Optional[int] = 2) -> None:
    with open(path, "w", encoding="utf-8") as f:
        json.dump(document_to_dict(document), f, indent=indent)
