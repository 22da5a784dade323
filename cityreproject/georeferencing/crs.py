"""
CRS Module

This module wraps pyproj for everything the reprojection engine does not do
itself: parsing SRS identifiers and WKT definitions, constructing coordinate
operations between two CRS and applying them to coordinate arrays.
Parsed CRS and constructed transforms are cached per provider.
"""

import re
import logging
import threading
from typing import Dict, NamedTuple, Optional, Tuple, Union

import numpy as np
from pyproj import CRS, Transformer
from pyproj.exceptions import CRSError, ProjError

from ..exceptions import InvalidCRSDefinition, TransformConstructionFailed


logger = logging.getLogger(__name__)


__all__ = [
    'CrsHandle',
    'CrsTransform',
    'CrsProvider',
    'epsg_srs_name',
    'is_wkt',
    'normalize_srs_name',
]


# Common GML spellings of an EPSG code
_EPSG_PATTERNS = (
    re.compile(r'^EPSG:(\d+)$', re.IGNORECASE),
    re.compile(r'^urn:ogc:def:crs:EPSG:[\d.]*:(\d+)$', re.IGNORECASE),
    re.compile(r'^https?://www\.opengis\.net/def/crs/EPSG/[\d.]+/(\d+)$', re.IGNORECASE),
    re.compile(r'^https?://www\.opengis\.net/gml/srs/epsg\.xml#(\d+)$', re.IGNORECASE),
)

# Horizontal + vertical compound, e.g. urn:ogc:def:crs,crs:EPSG::25832,crs:EPSG::5783
_COMPOUND_URN = re.compile(
    r'^urn:ogc:def:crs,crs:EPSG:[\d.]*:(\d+),crs:EPSG:[\d.]*:(\d+)$', re.IGNORECASE
)

_WKT_START = re.compile(r'^\s*[A-Z][A-Z0-9_]*\s*\[')


def epsg_srs_name(code: int) -> str:
    """Canonical SRS name of an EPSG code."""
    return f"EPSG:{int(code)}"


def is_wkt(value: str) -> bool:
    """Heuristic: WKT starts with a keyword followed by '[' and ends with ']'."""
    return bool(_WKT_START.match(value)) and value.rstrip().endswith(']')


def normalize_srs_name(srs_name: Union[int, str]) -> str:
    """
    Map an SRS name as found in a document to a pyproj user input.

    EPSG URNs and OGC URLs become "EPSG:<code>", compound URNs become
    "EPSG:<h>+<v>". WKT and anything else is passed through unchanged.

    Args:
        srs_name: EPSG code, SRS identifier or WKT definition

    Returns:
        String accepted by ``pyproj.CRS.from_user_input``
    """
    if isinstance(srs_name, int):
        return epsg_srs_name(srs_name)

    value = srs_name.strip()
    if is_wkt(value):
        return value

    for pattern in _EPSG_PATTERNS:
        match = pattern.match(value)
        if match:
            return epsg_srs_name(int(match.group(1)))

    match = _COMPOUND_URN.match(value)
    if match:
        return f"EPSG:{match.group(1)}+{match.group(2)}"

    return value


def _abbreviate(value: str, limit: int = 100) -> str:
    value = str(value)
    return f"{value[:limit]}{'...' if len(value) > limit else ''}"


def _is_northing_first(crs: CRS) -> bool:
    axis_info = crs.axis_info
    return bool(axis_info) and axis_info[0].direction.lower() in ("north", "south")


class CrsHandle(NamedTuple):
    """A parsed CRS together with the SRS name it was resolved from."""
    name: str
    crs: CRS
    force_xy: bool = False


class CrsTransform:
    """
    A reusable coordinate operation between two CRS.

    Coordinates are exchanged in the authority-defined axis order of both
    CRS, except for a side resolved with ``force_xy``, which always uses
    easting/longitude first.
    """

    def __init__(self, transformer: Transformer, source: CrsHandle, target: CrsHandle):
        self.transformer = transformer
        self.source = source
        self.target = target
        self.source_dimensions = len(source.crs.axis_info) or 2
        self.target_dimensions = len(target.crs.axis_info) or 2
        self._swap_input = source.force_xy and _is_northing_first(source.crs)
        self._swap_output = target.force_xy and _is_northing_first(target.crs)

    def apply(self, x: np.ndarray, y: np.ndarray,
              z: Optional[np.ndarray] = None) -> Tuple[np.ndarray, np.ndarray, Optional[np.ndarray]]:
        """
        Transform coordinate arrays.

        Args:
            x: First components
            y: Second components
            z: Heights, passed only for 3-dimensional transforms

        Returns:
            Tuple of (x, y, z); z is None when no heights were passed

        Raises:
            ProjError: If any coordinate cannot be transformed
        """
        if self._swap_input:
            x, y = y, x

        if z is None:
            tx, ty = self.transformer.transform(x, y, errcheck=True)
            tz = None
        else:
            tx, ty, tz = self.transformer.transform(x, y, z, errcheck=True)

        if self._swap_output:
            tx, ty = ty, tx

        return np.asarray(tx, dtype=np.float64), np.asarray(ty, dtype=np.float64), \
            None if tz is None else np.asarray(tz, dtype=np.float64)


class CrsProvider:
    """Resolves CRS handles and builds transforms, caching both."""

    def __init__(self):
        self._crs_cache: Dict[Tuple[str, bool], CrsHandle] = {}
        self._transform_cache: Dict[Tuple[str, bool, str, bool], CrsTransform] = {}
        self._lock = threading.Lock()


    def resolve_crs(self, srs_name: Union[int, str], force_xy: bool = False) -> CrsHandle:
        """
        Parse an SRS identifier or WKT definition.

        Args:
            srs_name: EPSG code, SRS identifier or WKT
            force_xy: Exchange coordinates easting/longitude first

        Returns:
            CrsHandle

        Raises:
            InvalidCRSDefinition: If pyproj cannot parse the definition
        """
        name = epsg_srs_name(srs_name) if isinstance(srs_name, int) else srs_name
        key = (name, force_xy)

        with self._lock:
            handle = self._crs_cache.get(key)
        if handle is not None:
            return handle

        try:
            crs = CRS.from_user_input(normalize_srs_name(name))
        except CRSError as e:
            raise InvalidCRSDefinition(f"Failed to parse CRS definition '{_abbreviate(name)}'.") from e

        handle = CrsHandle(name, crs, force_xy)
        with self._lock:
            self._crs_cache[key] = handle
        return handle


    def build_transform(self, source: CrsHandle, target: CrsHandle) -> CrsTransform:
        """
        Build (or fetch from cache) the transform from ``source`` to ``target``.

        Raises:
            TransformConstructionFailed: If pyproj finds no coordinate operation
        """
        key = (source.name, source.force_xy, target.name, target.force_xy)

        with self._lock:
            transform = self._transform_cache.get(key)
        if transform is not None:
            return transform

        try:
            transformer = Transformer.from_crs(source.crs, target.crs, always_xy=False)
        except (CRSError, ProjError) as e:
            raise TransformConstructionFailed(
                f"Failed to create transformation from '{_abbreviate(source.name)}' "
                f"to '{_abbreviate(target.name)}'."
            ) from e

        transform = CrsTransform(transformer, source, target)
        logger.debug(
            f"Created {transform.source_dimensions}D transformation "
            f"{_abbreviate(source.name, 40)} -> {_abbreviate(target.name, 40)}"
        )

        with self._lock:
            self._transform_cache[key] = transform
        return transform


    def get_transform(self, source_srs: str, target_srs: str, target_force_xy: bool = False) -> CrsTransform:
        source = self.resolve_crs(source_srs)
        target = self.resolve_crs(target_srs, target_force_xy)
        return self.build_transform(source, target)


    @staticmethod
    def lookup_identifier(crs: CRS) -> Optional[str]:
        """Return "AUTHORITY:CODE" of a CRS if pyproj can identify it."""
        authority = crs.to_authority()
        if authority is None:
            return None
        return f"{authority[0]}:{authority[1]}"
