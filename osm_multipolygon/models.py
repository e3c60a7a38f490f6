"""
Data models for relation assembly
Pydantic models for inputs and reports, dataclasses for intermediate ring sets
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List, Optional, Dict, Literal, Union

from pydantic import BaseModel, ConfigDict, Field
from shapely.geometry import Polygon


# ============================================================
# Relation Input Models
# ============================================================

class RelationMember(BaseModel):
    """One member of a relation with its serialized geometry"""
    model_config = ConfigDict(frozen=True)

    role: str = ""
    is_way_reference: bool = True
    geometry: Optional[bytes] = None  # WKB LineString or Polygon
    ref: Optional[int] = None


class Relation(BaseModel):
    id: int
    version: int = 1
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    tags: Dict[str, str] = Field(default_factory=dict)
    members: List[RelationMember] = Field(default_factory=list)


# ============================================================
# Ring Sets
# ============================================================

@dataclass
class ClassifiedRingSet:
    """Rings split into exteriors and holes by how they nest"""
    exteriors: List[Polygon] = field(default_factory=list)
    holes: List[Polygon] = field(default_factory=list)


# ============================================================
# GeoJSON Types
# ============================================================

class GeoJSONPolygon(BaseModel):
    type: Literal["Polygon"] = "Polygon"
    coordinates: List[List[List[float]]]  # [[[lon, lat], ...], ...]


class GeoJSONMultiPolygon(BaseModel):
    type: Literal["MultiPolygon"] = "MultiPolygon"
    coordinates: List[List[List[List[float]]]]


# ============================================================
# Assembly Report
# ============================================================

class AssembledRelation(BaseModel):
    id: int
    version: int
    timestamp: datetime
    tags: Dict[str, str] = Field(default_factory=dict)
    member_count: int
    success: bool
    geometry: Optional[Union[GeoJSONPolygon, GeoJSONMultiPolygon]] = None
    wkb_hex: Optional[str] = None
    polygon_count: int = 0
    hole_count: int = 0
    area: float = 0.0  # square degrees
    error: Optional[str] = None
