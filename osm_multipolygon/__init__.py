"""
OSM multipolygon assembly

Reconstructs Polygon / MultiPolygon geometry for OpenStreetMap relations
whose members arrive as loose way segments with unreliable roles.
"""

from .assembler import MultipolygonAssembler, assemble
from .config import AssemblerConfig, get_config
from .models import Relation, RelationMember
from .osm import is_area, is_multipolygon

__all__ = [
    "MultipolygonAssembler",
    "assemble",
    "AssemblerConfig",
    "get_config",
    "Relation",
    "RelationMember",
    "is_area",
    "is_multipolygon",
]
