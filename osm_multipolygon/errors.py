"""
Assembly errors

Every failure mode of relation assembly has its own exception type.
They are raised inside the assembler and recovered at the relation
boundary, where they become a logged diagnostic and an absent result.
"""

import threading
from typing import Optional


class RelationAssemblyError(Exception):
    """Base exception for relation assembly errors."""
    
    def __init__(self, message: str, relation: Optional[str] = None):
        super().__init__(message)
        self.relation = relation


class IncompleteRelationError(RelationAssemblyError):
    """A way member has no geometry."""
    pass


class OversizedRelationError(RelationAssemblyError):
    """Member geometries exceed the byte threshold."""
    
    def __init__(self, size_bytes: int, limit_bytes: int, relation: Optional[str] = None):
        super().__init__(f"{size_bytes:,} bytes exceeds limit of {limit_bytes:,} bytes", relation)
        self.size_bytes = size_bytes
        self.limit_bytes = limit_bytes


class AssemblyFailure(RelationAssemblyError):
    """Segments could not be connected or rings could not be unioned."""
    pass


class InvalidGeometryError(RelationAssemblyError):
    """Malformed WKB or invalid topology."""
    pass


class AssemblyTimeoutError(RelationAssemblyError):
    """Assembly exceeded its wall-clock deadline."""
    pass


def raise_if_cancelled(cancel_event: Optional[threading.Event]) -> None:
    """Stop an abandoned assembly at its next step"""
    if cancel_event is not None and cancel_event.is_set():
        raise AssemblyTimeoutError("Assembly timed out.")
