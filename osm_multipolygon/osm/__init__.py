"""
OpenStreetMap collaborators of the assembler

Modular components for:
- Models: Data structures (OSMNode, OSMWay, OSMMember, OSMRelation)
- Parser: Overpass response parsing and member WKB encoding
- API client: Overpass API communication
- Tags: Area and multipolygon predicates
"""

from .models import OSMNode, OSMWay, OSMMember, OSMRelation
from .parser import OSMResponseParser
from .api_client import OverpassAPIClient
from .tags import is_area, is_multipolygon

__all__ = [
    "OSMNode",
    "OSMWay",
    "OSMMember",
    "OSMRelation",
    "OSMResponseParser",
    "OverpassAPIClient",
    "is_area",
    "is_multipolygon",
]
