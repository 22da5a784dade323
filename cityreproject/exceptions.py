"""
Exceptions Module

Error taxonomy of the reprojection engine. Every error aborts the feature
being processed; configuration errors are raised by the configure methods
before any traversal starts.
"""

from typing import Optional


__all__ = [
    'ReprojectionError',
    'UnresolvedSourceSRS',
    'MissingCoordinates',
    'InvalidCRSDefinition',
    'TransformConstructionFailed',
    'TransformApplicationFailed',
    'FeatureReprojectionError',
]


class ReprojectionError(Exception):
    """Base class for all reprojection failures."""


class UnresolvedSourceSRS(ReprojectionError):
    """No source SRS could be determined for a node."""


class MissingCoordinates(ReprojectionError):
    """A node carries no coordinates to transform."""


class InvalidCRSDefinition(ReprojectionError):
    """An SRS identifier or WKT definition could not be parsed."""


class TransformConstructionFailed(ReprojectionError):
    """No coordinate operation exists between two CRS."""


class TransformApplicationFailed(ReprojectionError):
    """The coordinate operation failed on actual coordinate values."""


class FeatureReprojectionError(ReprojectionError):
    """
    Reprojection of a whole feature was aborted.

    Attributes:
        feature_id: Identifier of the failed feature (may be None)
    """

    def __init__(self, feature_id: Optional[str], message: Optional[str] = None):
        self.feature_id = feature_id
        if message is None:
            message = f"Failed to reproject feature with id '{feature_id}'."
        super().__init__(message)
