"""
Depth-first traversal over the geometry tree.

Dispatch follows the ``ast.NodeVisitor`` convention: ``visit`` looks up
``visit_<Kind>`` (e.g. ``visit_Point``) and falls back to
``generic_visit``, which descends into the node's children.
"""

from .geometry import GMLObject


__all__ = ['GeometryWalker']


class GeometryWalker:
    """Base class for tree visitors."""

    def visit(self, node: GMLObject) -> None:
        method = getattr(self, "visit_" + node.kind.value, self.generic_visit)
        method(node)

    def generic_visit(self, node: GMLObject) -> None:
        # children are materialised first so visitors may replace nodes in place
        for child in list(node.children()):
            self.visit(child)
