"""Process-wide reprojection settings."""

from dataclasses import dataclass
from typing import Optional


__all__ = ['TransformContext']


@dataclass
class TransformContext:
    """
    Reprojection settings, filled in once by ``Reprojector.configure_*`` and
    read-only while documents are processed.

    Attributes:
        target_srs: Target SRS identifier or WKT used to build transforms
        target_srs_name: Name written to rewritten envelopes
        target_force_xy: Write target coordinates easting/longitude first
        swap_xy: Read source coordinates in (Y, X) order
        keep_height_values: Never overwrite heights with transformed values
        forced_srs_name: Source SRS overriding any declaration in the document
        fallback_srs_name: Source SRS used when the document declares none
    """

    target_srs: Optional[str] = None
    target_srs_name: Optional[str] = None
    target_force_xy: bool = False
    swap_xy: bool = False
    keep_height_values: bool = False
    forced_srs_name: Optional[str] = None
    fallback_srs_name: Optional[str] = None
