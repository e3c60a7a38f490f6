"""
OSM data models

Data classes for representing OSM nodes, ways and relations
"""

from typing import List, Dict, Optional
from dataclasses import dataclass, field


@dataclass
class OSMNode:
    """Represents an OSM node (point)"""
    id: int
    lat: float
    lon: float
    tags: Dict[str, str] = field(default_factory=dict)


@dataclass
class OSMWay:
    """Represents an OSM way (line or closed ring)"""
    id: int
    nodes: List[OSMNode] = field(default_factory=list)
    tags: Dict[str, str] = field(default_factory=dict)
    geometry: Optional[List[List[float]]] = None  # Direct geometry from Overpass
    complete: bool = True  # False when a referenced node is missing from the response
    
    def get_coordinates(self) -> Optional[List[List[float]]]:
        """Get coordinates as [lon, lat] list, or None if the way is incomplete"""
        if not self.complete:
            return None
        # Prefer direct geometry if available (from 'out geom')
        if self.geometry:
            return self.geometry
        # Fallback to node-based coordinates
        return [[n.lon, n.lat] for n in self.nodes]


@dataclass
class OSMMember:
    """Represents one member of an OSM relation"""
    type: str  # "node", "way" or "relation"
    ref: int
    role: str = ""
    geometry: Optional[List[List[float]]] = None  # Inline way geometry from 'out geom'


@dataclass
class OSMRelation:
    """Represents an OSM relation"""
    id: int
    members: List[OSMMember] = field(default_factory=list)
    tags: Dict[str, str] = field(default_factory=dict)
    version: int = 1
    timestamp: Optional[str] = None  # ISO 8601, present with 'out meta'
