"""
OSM response parser

Parses Overpass API responses into OSMNode, OSMWay and OSMRelation objects
and turns relations into members ready for assembly
"""

from typing import Dict, Any, Tuple, List, Optional

import shapely
from loguru import logger
from shapely.geometry import LineString, Polygon

from ..models import Relation, RelationMember
from .models import OSMNode, OSMWay, OSMMember, OSMRelation


def _parse_geometry(points: List[Any]) -> Optional[List[List[float]]]:
    """
    Convert Overpass geometry to [lon, lat] pairs

    Overpass leaves null entries for nodes outside the query bbox; such a
    geometry is incomplete and None is returned.
    """
    geometry = []
    for node in points:
        if isinstance(node, dict):
            # Format: {"lat": ..., "lon": ...}
            geometry.append([node.get("lon"), node.get("lat")])
        elif isinstance(node, list) and len(node) >= 2:
            # Format: [lon, lat] (already correct)
            geometry.append(node)
        else:
            return None
    if any(lon is None or lat is None for lon, lat, *_ in geometry):
        return None
    return geometry


class OSMResponseParser:
    """Parses Overpass API responses"""

    @staticmethod
    def parse_elements(
        data: Dict[str, Any]
    ) -> Tuple[Dict[int, OSMNode], Dict[int, OSMWay], List[OSMRelation]]:
        """
        Parse Overpass response into nodes, ways and relations

        Handles both 'out body' (node references) and 'out geom' (direct geometry) formats

        Args:
            data: JSON response from Overpass API

        Returns:
            Tuple of (nodes dict, ways dict, relations list)
        """
        nodes = {}
        ways = {}
        relations = []

        elements = data.get("elements", [])

        # Nodes first so ways can resolve references in any element order
        for element in elements:
            if element["type"] == "node":
                nodes[element["id"]] = OSMNode(
                    id=element["id"],
                    lat=element["lat"],
                    lon=element["lon"],
                    tags=element.get("tags", {})
                )

        for element in elements:
            if element["type"] == "way":
                # Build node list (for 'out body' format)
                node_ids = element.get("nodes", [])
                way_nodes = [nodes[node_id] for node_id in node_ids if node_id in nodes]

                if "geometry" in element:
                    geometry = _parse_geometry(element["geometry"])
                    complete = geometry is not None
                else:
                    geometry = None
                    complete = len(way_nodes) == len(node_ids)

                if not complete:
                    logger.debug(f"Way {element['id']} references nodes missing from the response")
                    way_nodes = []

                ways[element["id"]] = OSMWay(
                    id=element["id"],
                    nodes=way_nodes,
                    tags=element.get("tags", {}),
                    geometry=geometry,
                    complete=complete
                )
            elif element["type"] == "relation":
                members = []
                for member in element.get("members", []):
                    geometry = None
                    if "geometry" in member:
                        geometry = _parse_geometry(member["geometry"])
                    members.append(OSMMember(
                        type=member["type"],
                        ref=member["ref"],
                        role=member.get("role", ""),
                        geometry=geometry
                    ))

                relations.append(OSMRelation(
                    id=element["id"],
                    members=members,
                    tags=element.get("tags", {}),
                    version=element.get("version", 1),
                    timestamp=element.get("timestamp")
                ))

        logger.debug(f"Parsed {len(nodes)} nodes, {len(ways)} ways, {len(relations)} relations")
        return nodes, ways, relations

    @staticmethod
    def way_to_wkb(coords: Optional[List[List[float]]]) -> Optional[bytes]:
        """
        Encode way coordinates as WKB

        A closed way with at least 4 coordinates becomes a Polygon, any other
        way with at least 2 coordinates a LineString. Returns None otherwise.
        """
        if not coords or len(coords) < 2:
            return None
        if coords[0] == coords[-1] and len(coords) >= 4:
            return shapely.to_wkb(Polygon(coords))
        return shapely.to_wkb(LineString(coords))

    @staticmethod
    def relation_members(
        relation: OSMRelation,
        ways: Optional[Dict[int, OSMWay]] = None
    ) -> List[RelationMember]:
        """
        Build assembly members for a relation

        Way geometry comes from the member itself ('out geom') or from the
        referenced way. Way members whose geometry is unavailable keep
        geometry None, which marks the relation as incomplete.

        Args:
            relation: Parsed relation
            ways: Parsed ways by ID, for responses without inline member geometry

        Returns:
            List of RelationMember in relation order
        """
        ways = ways or {}
        members = []
        for member in relation.members:
            geometry = None
            if member.type == "way":
                coords = member.geometry
                if coords is None and member.ref in ways:
                    coords = ways[member.ref].get_coordinates()
                geometry = OSMResponseParser.way_to_wkb(coords)
            members.append(RelationMember(
                role=member.role,
                is_way_reference=member.type == "way",
                geometry=geometry,
                ref=member.ref
            ))
        return members

    @staticmethod
    def to_relation(
        relation: OSMRelation,
        ways: Optional[Dict[int, OSMWay]] = None
    ) -> Relation:
        """Convert a parsed relation into the assembler's Relation model"""
        fields = {
            "id": relation.id,
            "version": relation.version,
            "tags": relation.tags,
            "members": OSMResponseParser.relation_members(relation, ways),
        }
        if relation.timestamp:
            fields["timestamp"] = relation.timestamp
        return Relation(**fields)
