"""Typed domain errors for the segment continuity engine.

Repair is fail-closed: malformed input and broken invariants surface as
explicit, typed errors instead of a partially repaired itinerary.

All errors inherit from ContinuityError and can optionally wrap a root
cause exception for debugging. Schedule conflicts and unresolved gaps are
not errors; they are reported as diagnostics on the RepairResult.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional


@dataclass
class ContinuityError(Exception):
    """Base error for the continuity engine.

    Attributes:
        message: Human-readable error description
        cause: Optional underlying exception that caused this error
    """

    message: str
    cause: Optional[Exception] = field(default=None, repr=False)

    def __str__(self) -> str:
        if self.cause:
            return f"{self.message}: {self.cause}"
        return self.message

    def __post_init__(self) -> None:
        super().__init__(self.message)


@dataclass
class MalformedSegmentError(ContinuityError):
    """A segment is missing required location/time fields or is inconsistent.

    Propagated to the caller; the repair of the whole itinerary aborts.

    Attributes:
        segment_id: Identifier of the offending segment
        missing_fields: Names of the absent or invalid fields
    """

    segment_id: str = ""
    missing_fields: tuple[str, ...] = ()


@dataclass
class IntegrityViolationError(ContinuityError):
    """A continuity invariant does not hold on the repaired sequence.

    This is a defect guard: correct gap rules never produce it.

    Attributes:
        invariant: Short name of the violated invariant (e.g. "minimality")
        segment_refs: Identifiers of the offending segments
    """

    invariant: str = ""
    segment_refs: tuple[str, ...] = ()


@dataclass
class ItineraryLoadError(ContinuityError):
    """An itinerary document could not be read or decoded.

    Attributes:
        path: Path of the source document if relevant
    """

    path: Optional[str] = None


@dataclass
class ConfigurationError(ContinuityError):
    """Invalid or missing configuration.

    Attributes:
        setting_name: Name of the problematic setting
        expected_type: Expected type or format
    """

    setting_name: str = ""
    expected_type: Optional[str] = None
