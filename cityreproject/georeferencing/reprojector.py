"""
Reprojector Module

Rewrites every coordinate of a feature tree into the target CRS in two
sequential passes:

1. The transformation pass walks the tree depth-first and replaces the
   coordinate payload of every point, line string, ring and line string
   segment by a canonical 3D ``pos``/``posList`` in the target CRS.
   Implicit geometries only move their reference point; georeferenced
   textures keep a 2D reference point.
2. The cleanup pass reprojects the bounding envelopes of all features and
   strips per-geometry SRS declarations, which are stale once the whole
   feature is in the target CRS.

Envelopes are reprojected through their lower and upper corner only. For
non-affine transforms the result is an approximation of the true extent.
"""

import logging
from typing import Iterator, List, Optional, Tuple, Union

import numpy as np

from ..exceptions import (
    FeatureReprojectionError,
    InvalidCRSDefinition,
    ReprojectionError,
)
from ..model import (
    AbstractGeometry,
    BoundingShape,
    DirectPosition,
    DirectPositionList,
    Envelope,
    Feature,
    GeometryKind,
    GeometryWalker,
    Point,
)
from .context import TransformContext
from .crs import CrsProvider, epsg_srs_name, is_wkt
from .srs import SRSNameResolver
from .transformer import CoordinateTransformer, MatrixUtils


logger = logging.getLogger(__name__)


__all__ = ['Reprojector']


class Reprojector:
    """
    Reprojects features into one target CRS.

    Configure the target (and optionally the source) once, then call
    ``reproject_feature`` for every feature of a document. The tree is
    modified in place.
    """

    def __init__(self, provider: Optional[CrsProvider] = None):
        self.context = TransformContext()
        self.provider = provider if provider is not None else CrsProvider()
        self.srs_resolver = SRSNameResolver(self.context)
        self.transformer = CoordinateTransformer(self.context, self.provider)


    # ===== Configuration =====
    def configure_target(self, crs: Union[int, str], srs_name: Optional[str] = None,
                         force_xy: bool = False, keep_height_values: bool = False) -> None:
        """
        Set the target CRS.

        Args:
            crs: EPSG code, SRS identifier or WKT definition
            srs_name: Name written to rewritten envelopes. Defaults to the
                      target identifier; for WKT to the identifier pyproj finds
            force_xy: Write easting/longitude first regardless of the CRS axis order
            keep_height_values: Keep original heights for 3D transforms

        Raises:
            InvalidCRSDefinition: If the CRS cannot be parsed, or a WKT
                                  target has no identifier and no srs_name is given
        """
        handle = self.provider.resolve_crs(crs, force_xy)
        target = epsg_srs_name(crs) if isinstance(crs, int) else crs

        if srs_name is None and isinstance(crs, str) and is_wkt(crs):
            srs_name = self.provider.lookup_identifier(handle.crs)
            if srs_name is None:
                raise InvalidCRSDefinition(f"Failed to find identifier for the WKT CRS '{handle.crs.name}'.")

        self.context.target_srs = target
        self.context.target_srs_name = srs_name or target
        self.context.target_force_xy = force_xy
        self.context.keep_height_values = keep_height_values
        logger.debug(f"Target CRS set to {self.context.target_srs_name}")


    def configure_source(self, crs: Optional[Union[int, str]] = None,
                         fallback_srs_name: Optional[str] = None,
                         swap_xy: bool = False) -> None:
        """
        Set how the source SRS of the input is determined.

        Args:
            crs: SRS overriding every declaration in the input
            fallback_srs_name: SRS used where the input declares none
            swap_xy: Input coordinates are stored in (Y, X) order

        Raises:
            InvalidCRSDefinition: If one of the SRS cannot be parsed
        """
        forced = None
        if crs is not None:
            self.provider.resolve_crs(crs)
            forced = epsg_srs_name(crs) if isinstance(crs, int) else crs
        if fallback_srs_name is not None:
            self.provider.resolve_crs(fallback_srs_name)

        self.context.forced_srs_name = forced
        self.context.fallback_srs_name = fallback_srs_name
        self.context.swap_xy = swap_xy


    def set_fallback_srs_name(self, srs_name: Optional[str]) -> None:
        if srs_name is not None:
            self.provider.resolve_crs(srs_name)
        self.context.fallback_srs_name = srs_name


    def target_crs_as_wkt(self) -> Optional[str]:
        """WKT of the configured target CRS, or None."""
        if self.context.target_srs is None:
            return None
        try:
            return self.provider.resolve_crs(self.context.target_srs).crs.to_wkt()
        except ReprojectionError:
            return None


    # ===== Reprojection =====
    def reproject_feature(self, feature: Feature) -> None:
        """
        Reproject a feature and everything nested in it, in place.

        Raises:
            FeatureReprojectionError: On any failure; the cause is chained
        """
        if not self.context.target_srs:
            raise ReprojectionError("No target CRS has been configured.")

        logger.debug(f"Reprojecting {feature!r}")
        try:
            _TransformationWalker(self).visit(feature)
            _CleanupWalker(self).run(feature)
        except (ReprojectionError, ValueError) as e:
            raise FeatureReprojectionError(feature.id, f"Failed to reproject feature with id '{feature.id}': {e}") from e


    def reproject_bounding_shape(self, bounding_shape: BoundingShape) -> None:
        if bounding_shape.envelope is not None:
            self.reproject_envelope(bounding_shape.envelope)


    def reproject_envelope(self, envelope: Envelope) -> None:
        """
        Reproject the corners of an envelope and tag it with the target SRS name.

        Envelopes without both corners are left unchanged.
        """
        if not envelope.is_set():
            return

        try:
            self._reproject_envelope(envelope, self.srs_resolver.resolve(envelope))
        except ValueError as e:
            raise ReprojectionError(f"Invalid envelope corners: {e}") from e


    def _reproject_envelope(self, envelope: Envelope, srs_name: str) -> None:
        corners = np.array([
            DirectPosition(envelope.lower_corner).to_list_3d(),
            DirectPosition(envelope.upper_corner).to_list_3d(),
        ])
        corners = self.transformer.transform(corners, srs_name, envelope)

        envelope.lower_corner = corners[0].tolist()
        envelope.upper_corner = corners[1].tolist()
        envelope.srs_name = self.context.target_srs_name
        envelope.srs_dimension = 3


class _TransformationWalker(GeometryWalker):
    """First pass: rewrite coordinates into the target CRS."""

    def __init__(self, reprojector: Reprojector):
        self.srs_resolver = reprojector.srs_resolver
        self.transformer = reprojector.transformer

    def visit_LinearRing(self, ring):
        self._transform_position_list(ring, self.srs_resolver.resolve(ring))

    def visit_LineString(self, line_string):
        self._transform_position_list(line_string, self.srs_resolver.resolve(line_string))

    def visit_Curve(self, curve):
        srs_name = self.srs_resolver.resolve(curve)

        # only linear segments are reprojected
        for segment in curve.segments:
            if segment.kind is GeometryKind.LINE_STRING_SEGMENT:
                self._transform_position_list(segment, srs_name)

    def visit_Point(self, point):
        srs_name = self.srs_resolver.resolve(point)

        coords = point.to_list_3d()
        tuples = None if coords is None else np.reshape(coords, (1, 3))
        transformed = self.transformer.transform(tuples, srs_name, point)
        point.set_pos(DirectPosition(transformed[0].tolist(), srs_dimension=3))

    def visit_ImplicitGeometry(self, implicit):
        # move translation of transformation matrix to reference point
        if implicit.transformation_matrix is not None:
            old = implicit.reference_point
            coords = old.to_list_3d() if old is not None else None
            moved = MatrixUtils.fold_translation(implicit.transformation_matrix, coords)

            implicit.reference_point = Point(
                id=old.id if old is not None else None,
                srs_name=old.srs_name if old is not None else None,
                pos=DirectPosition(moved.tolist(), srs_dimension=3),
            )

        # the template geometry is defined in local coordinates and stays as is
        if implicit.reference_point is not None:
            self.visit_Point(implicit.reference_point)

    def visit_GeoreferencedTexture(self, texture):
        point = texture.reference_point
        if point is None:
            return

        self.visit_Point(point)

        # reference point of a georeferenced texture is planar
        point.pos.values = point.pos.values[:2]
        point.pos.srs_dimension = 2

    def _transform_position_list(self, node, srs_name: str) -> None:
        coords = node.to_list_3d()
        tuples = None if coords is None else np.reshape(coords, (-1, 3))
        transformed = self.transformer.transform(tuples, srs_name, node)
        node.set_pos_list(DirectPositionList(transformed.ravel().tolist(), srs_dimension=3))


class _CleanupWalker(GeometryWalker):
    """Second pass: reproject bounding envelopes and strip per-geometry SRS names."""

    def __init__(self, reprojector: Reprojector):
        self.reprojector = reprojector

    def run(self, feature: Feature) -> None:
        # resolve every envelope before rewriting any, since nested envelopes
        # may inherit their SRS from an enclosing feature's envelope
        pending: List[Tuple[Envelope, str]] = [
            (envelope, self.reprojector.srs_resolver.resolve(envelope))
            for envelope in self._envelopes(feature)
        ]
        for envelope, srs_name in pending:
            self.reprojector._reproject_envelope(envelope, srs_name)

        self.visit(feature)

    def generic_visit(self, node):
        if isinstance(node, AbstractGeometry):
            node.srs_name = None
        super().generic_visit(node)

    def _envelopes(self, feature: Feature) -> Iterator[Envelope]:
        bounded_by = feature.bounded_by
        if bounded_by is not None and bounded_by.envelope is not None and bounded_by.envelope.is_set():
            yield bounded_by.envelope
        for member in feature.members:
            yield from self._envelopes(member)
