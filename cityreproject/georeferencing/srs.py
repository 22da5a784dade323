"""
SRS name resolution.

Determines which source SRS applies to a node: a forced SRS wins over the
document, otherwise the nearest declaration on the node or one of its
ancestors, otherwise the configured fallback.
"""

from itertools import chain
from typing import Optional

from ..exceptions import UnresolvedSourceSRS
from ..model import AbstractGeometry, Document, Envelope, Feature, GMLObject
from .context import TransformContext


__all__ = ['SRSNameResolver', 'declared_srs_name']


def declared_srs_name(node: GMLObject) -> Optional[str]:
    """
    Explicit SRS declaration carried by a single node, if any.

    Geometries and envelopes declare their SRS directly. Features declare it
    through the envelope of their bounding shape; documents through their own
    srsName or, failing that, their bounding envelope.
    """
    if isinstance(node, (AbstractGeometry, Envelope)):
        return node.srs_name or None

    if isinstance(node, Document) and node.srs_name:
        return node.srs_name

    if isinstance(node, (Feature, Document)):
        bounded_by = node.bounded_by
        if bounded_by is not None and bounded_by.envelope is not None:
            return bounded_by.envelope.srs_name or None

    return None


class SRSNameResolver:
    """Resolves the source SRS of a node using the forced/fallback names of a context."""

    def __init__(self, context: TransformContext):
        self.context = context

    def resolve(self, node: GMLObject) -> str:
        if self.context.forced_srs_name:
            return self.context.forced_srs_name

        for candidate in chain((node,), node.ancestors()):
            srs_name = declared_srs_name(candidate)
            if srs_name:
                return srs_name

        if self.context.fallback_srs_name:
            return self.context.fallback_srs_name

        raise UnresolvedSourceSRS(
            f"Failed to determine the source SRS of {node.kind.value} with id '{node.id}'."
        )
