"""
Configuration settings for OSM multipolygon assembly
"""

from dataclasses import dataclass, field
import os


@dataclass
class AssemblyLimits:
    """Defensive limits applied to every relation"""
    # Relations whose member WKB sums past this are dropped before parsing
    max_relation_bytes: int = 500_000
    
    # Wall-clock deadline for connect/classify/dissolve/serialize (seconds)
    timeout_seconds: float = 1.0
    
    # A closed chain needs at least this many coordinates to be a ring
    min_ring_vertices: int = 4
    
    # Output coordinate reference system (geographic WGS84)
    output_srid: int = 4326


@dataclass 
class APIConfig:
    """Overpass API endpoint and request settings"""
    # Options: overpass-api.de (main), lz4.overpass-api.de, z.overpass-api.de
    overpass_url: str = field(
        default_factory=lambda: os.environ.get("OVERPASS_URL", "https://overpass-api.de/api/interpreter")
    )
    overpass_timeout: int = 90
    
    # Request settings
    max_retries: int = 3
    retry_delay: float = 5.0
    min_request_interval: float = 2.0
    
    # User agent for API requests
    user_agent: str = "OSMMultipolygonAssembler/1.0"


@dataclass
class AssemblerConfig:
    """Assembler configuration"""
    limits: AssemblyLimits = field(default_factory=AssemblyLimits)
    
    # API config
    api: APIConfig = field(default_factory=APIConfig)
    
    # Relation types the CLI assembles; others are skipped
    relation_types: tuple = ("multipolygon", "boundary")


# Global config instance
config = AssemblerConfig()


def get_config() -> AssemblerConfig:
    """Get global configuration"""
    return config


def validate_config(config: AssemblerConfig) -> None:
    """
    Validate that all required configuration values are set.
    Raises ValueError if any required value is missing or invalid.
    """
    errors = []
    
    limits = getattr(config, "limits", None)
    if limits is None:
        errors.append("limits configuration is required but not set")
    else:
        if limits.max_relation_bytes is None or limits.max_relation_bytes <= 0:
            errors.append(f"limits.max_relation_bytes must be positive, got {limits.max_relation_bytes}")
        if limits.timeout_seconds is None or limits.timeout_seconds <= 0:
            errors.append(f"limits.timeout_seconds must be positive, got {limits.timeout_seconds}")
        if limits.min_ring_vertices is None or limits.min_ring_vertices < 4:
            errors.append(f"limits.min_ring_vertices must be at least 4, got {limits.min_ring_vertices}")
        if limits.output_srid is None or limits.output_srid <= 0:
            errors.append(f"limits.output_srid must be positive, got {limits.output_srid}")
    
    api = getattr(config, "api", None)
    if api is None:
        errors.append("api configuration is required but not set")
    elif not api.overpass_url:
        errors.append("api.overpass_url is required but not set")
    
    if errors:
        error_msg = "Configuration validation failed:\n" + "\n".join(f"  - {e}" for e in errors)
        raise ValueError(error_msg)
