"""
cityreproject

Reprojects the coordinates of city model documents (features with
geometries, implicit geometries, georeferenced textures and bounding
envelopes) into a single target CRS.

Sub-packages:
- model: in-memory document tree and walker
- georeferencing: CRS handling and the reprojector
- utils: JSON document codec and input file discovery
"""

__version__ = "0.1.0"
