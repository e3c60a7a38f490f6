"""
Tag-based area and multipolygon predicates

Decides from tags alone whether a way describes an area and whether a
relation should be assembled as a multipolygon
"""

from typing import Dict, FrozenSet, Iterable, Mapping

# Area keys and, per key, the values that do NOT make an area.
# Tag listings from id-area-keys (https://github.com/osmlab/id-area-keys).
AREA_KEYS: Dict[str, FrozenSet[str]] = {
    "addr:*": frozenset(),
    "aerialway": frozenset({
        "cable_car", "chair_lift", "drag_lift", "gondola", "goods",
        "magic_carpet", "mixed_lift", "platter", "rope_tow", "t-bar",
    }),
    "aeroway": frozenset({"runway", "taxiway"}),
    "amenity": frozenset({"bench"}),
    "area:highway": frozenset(),
    "attraction": frozenset({"dark_ride", "river_rafting", "train", "water_slide"}),
    "building": frozenset(),
    "camp_site": frozenset(),
    "club": frozenset(),
    "craft": frozenset(),
    "emergency": frozenset({"designated", "destination", "no", "official", "private", "yes"}),
    "golf": frozenset({"hole", "lateral_water_hazard", "water_hazard"}),
    "healthcare": frozenset(),
    "historic": frozenset(),
    "industrial": frozenset(),
    "junction": frozenset({"roundabout"}),
    "landuse": frozenset(),
    "leisure": frozenset({"slipway", "track"}),
    "man_made": frozenset({
        "breakwater", "crane", "cutline", "embankment", "groyne", "pier", "pipeline",
    }),
    "military": frozenset(),
    "natural": frozenset({"cliff", "coastline", "ridge", "tree_row"}),
    "office": frozenset(),
    "piste:type": frozenset(),
    "place": frozenset(),
    "playground": frozenset({"balancebeam", "slide", "zipwire"}),
    "power": frozenset({"line", "minor_line"}),
    "public_transport": frozenset({"platform"}),
    "shop": frozenset(),
    "tourism": frozenset(),
    "waterway": frozenset({"canal", "dam", "ditch", "drain", "river", "stream", "weir"}),
}

# "addr:*" style entries cover every key in the namespace
_AREA_PREFIXES = tuple(key[:-1] for key in AREA_KEYS if key.endswith(":*"))

MULTIPOLYGON_TYPES = frozenset({"multipolygon", "boundary"})

BOOLEAN_VALUES = frozenset({"yes", "no", "true", "false", "1", "0"})

TRUTHY_VALUES = frozenset({"yes", "true", "1"})


def _area_key(key: str) -> str:
    if key in AREA_KEYS:
        return key
    for prefix in _AREA_PREFIXES:
        if key.startswith(prefix):
            return prefix + "*"
    return ""


def is_area(tags: Mapping[str, str]) -> bool:
    """
    Whether tags describe an area

    An explicit boolean `area` tag decides on its own. Otherwise the tags
    describe an area if any area key carries a value not excluded for it.
    """
    area = tags.get("area")
    if area is not None and area.lower() in BOOLEAN_VALUES:
        return area.lower() in TRUTHY_VALUES

    for key, value in tags.items():
        area_key = _area_key(key)
        if area_key and value not in AREA_KEYS[area_key]:
            return True
    return False


def is_multipolygon(tags: Mapping[str, str], relation_types: Iterable[str] = MULTIPOLYGON_TYPES) -> bool:
    """Whether a relation's type tag is one of relation_types (case-insensitive)"""
    relation_type = tags.get("type")
    if relation_type is None:
        return False
    return relation_type.lower() in {t.lower() for t in relation_types}
