"""
Georeferencing Module

This module provides reprojection of city model trees, including:
- CRS parsing and transform construction (pyproj)
- Source SRS resolution along the ancestor chain
- Coordinate transformation with axis swapping and height preservation
- The two-pass feature reprojector
"""

from .context import TransformContext
from .crs import CrsHandle, CrsProvider, CrsTransform, normalize_srs_name
from .srs import SRSNameResolver
from .transformer import CoordinateTransformer, MatrixUtils
from .reprojector import Reprojector

__all__ = [
    'TransformContext',
    'CrsHandle',
    'CrsProvider',
    'CrsTransform',
    'normalize_srs_name',
    'SRSNameResolver',
    'CoordinateTransformer',
    'MatrixUtils',
    'Reprojector',
]
