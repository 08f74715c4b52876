"""Segment continuity and gap-filling engine for travel itineraries.

Travel documents are imported as isolated segments (flights, transfers,
hotel stays, activities). This package orders them, finds the places
where the traveler would have to teleport, and fills those gaps with
synthesized transfers, reporting anything it cannot fix.

Typical use:

    from trip_continuity import repair
    result = repair(itinerary)
"""

from .domain import (
    ContinuityReport,
    Diagnostic,
    Itinerary,
    Location,
    RepairResult,
    Segment,
)
from .pipeline import check, repair, repair_safe

__all__ = [
    "Itinerary",
    "Segment",
    "Location",
    "Diagnostic",
    "RepairResult",
    "ContinuityReport",
    "repair",
    "repair_safe",
    "check",
]
