"""
Transformer Module

This module provides the coordinate side of reprojection:
- 4x4 placement matrix utilities for implicit geometries
- The coordinate transform facade that applies a pyproj transform to
  coordinate tuples while honouring axis swapping and height preservation
"""

import logging
from typing import Optional, Sequence, Union

import numpy as np
from pyproj.exceptions import ProjError

from ..exceptions import (
    MissingCoordinates,
    ReprojectionError,
    TransformApplicationFailed,
    UnresolvedSourceSRS,
)
from ..model import GMLObject
from .context import TransformContext
from .crs import CrsProvider


logger = logging.getLogger(__name__)


class MatrixUtils:
    """Utility class for 4x4 transformation matrix operations."""


    @staticmethod
    def load_matrix(values: Sequence[float]) -> np.ndarray:
        """
        Build a 4x4 transformation matrix from 16 row-major values.

        Args:
            values: Flat or nested sequence of 16 numbers

        Returns:
            4x4 numpy array

        Raises:
            ValueError: If the values do not form a 4x4 matrix
        """
        matrix = np.asarray(values, dtype=np.float64)

        if matrix.size != 16:
            raise ValueError(f"Matrix must be 4x4, found {matrix.shape}")

        return matrix.reshape((4, 4))


    @staticmethod
    def translation(matrix: np.ndarray) -> np.ndarray:
        """Translation column (rows 0-2, column 3) of a 4x4 matrix."""
        matrix = np.asarray(matrix, dtype=float)
        assert matrix.shape == (4, 4), "Matrix must be 4x4"
        return matrix[:3, 3].copy()


    @staticmethod
    def fold_translation(matrix: np.ndarray, point: Optional[Sequence[float]] = None) -> np.ndarray:
        """
        Move the translation of a placement matrix into a point.

        The translation column of ``matrix`` is zeroed in place; rotation and
        scale are left untouched.

        Args:
            matrix: 4x4 placement matrix (modified in place)
            point: 3D point to translate, the origin if None

        Returns:
            The translated point as a numpy array of 3 values
        """
        base = np.zeros(3) if point is None else np.asarray(point, dtype=np.float64)[:3]
        moved = base + MatrixUtils.translation(matrix)
        matrix[:3, 3] = 0.0
        return moved


class CoordinateTransformer:
    """
    Applies the transform from a source SRS to the configured target SRS.

    Transforms are obtained from the CRS provider and reused. The dimension
    of the transform, not the length of the tuples, decides whether heights
    take part in the transformation.
    """

    def __init__(self, context: TransformContext, provider: Optional[CrsProvider] = None):
        self.context = context
        self.provider = provider if provider is not None else CrsProvider()


    def transform(self, coords: Union[np.ndarray, Sequence[Sequence[float]]],
                  srs_name: Optional[str], node: Optional[GMLObject] = None) -> np.ndarray:
        """
        Transform coordinate tuples into the target SRS.

        Args:
            coords: Tuples of 2 or 3 components, shape (n, 2) or (n, 3)
            srs_name: Source SRS of the tuples
            node: Node the coordinates belong to (used in error messages)

        Returns:
            New array of the same shape holding the transformed tuples

        Raises:
            MissingCoordinates: If no tuples are given
            UnresolvedSourceSRS: If no source SRS is given
            TransformApplicationFailed: If pyproj fails on the values
        """
        owner = node.kind.value if node is not None else "coordinate list"

        if coords is None or len(coords) == 0:
            raise MissingCoordinates(f"Failed to retrieve coordinates from {owner}.")

        if not srs_name:
            raise UnresolvedSourceSRS(f"Missing CRS definition on {owner}.")

        if not self.context.target_srs:
            raise ReprojectionError("No target CRS has been configured.")

        points = np.array(coords, dtype=np.float64)
        if points.ndim == 1:
            points = points.reshape((1, -1))
        if points.shape[1] not in (2, 3):
            raise ReprojectionError(
                f"Coordinate tuples of {owner} must have 2 or 3 components, found {points.shape[1]}."
            )

        transform = self.provider.get_transform(
            srs_name, self.context.target_srs, self.context.target_force_xy
        )

        if self.context.swap_xy:
            x, y = points[:, 1].copy(), points[:, 0].copy()
        else:
            x, y = points[:, 0].copy(), points[:, 1].copy()

        is_3d = transform.source_dimensions == 3
        z = None
        if is_3d:
            z = points[:, 2].copy() if points.shape[1] == 3 else np.zeros(len(points))

        try:
            tx, ty, tz = transform.apply(x, y, z)
        except ProjError as e:
            raise TransformApplicationFailed(f"Failed to transform coordinates of {owner}.") from e

        points[:, 0] = tx
        points[:, 1] = ty
        if is_3d and points.shape[1] == 3 and not self.context.keep_height_values:
            points[:, 2] = tz

        return points
