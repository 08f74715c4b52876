"""Immutable domain models for the segment continuity engine.

All models are frozen dataclasses with slots. A repair never mutates a
segment: it produces a new ordered tuple in which IMPORTED segments are
the very same objects that were handed in, interleaved with any
SYNTHESIZED transfers.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum, auto
from typing import Optional

from .errors import MalformedSegmentError


class SegmentKind(Enum):
    """Declared kind of a segment, as extracted from source documents."""

    FLIGHT = auto()
    TRANSFER = auto()
    HOTEL = auto()
    ACTIVITY = auto()
    OTHER = auto()


class Provenance(Enum):
    """Where a segment comes from."""

    IMPORTED = auto()
    SYNTHESIZED = auto()


class ConnectiveRole(Enum):
    """Role a segment plays in the chain of locations.

    CONNECTIVE segments move the traveler from one place to another,
    STAY segments start and end at the same place.
    """

    CONNECTIVE = auto()
    STAY = auto()


@dataclass(frozen=True, slots=True)
class Coordinates:
    """GPS coordinates carried by a location."""

    latitude: float
    longitude: float

    def __post_init__(self) -> None:
        """Validate coordinate ranges."""
        if not -90 <= self.latitude <= 90:
            raise ValueError(
                f"Latitude must be between -90 and 90, got {self.latitude}"
            )
        if not -180 <= self.longitude <= 180:
            raise ValueError(
                f"Longitude must be between -180 and 180, got {self.longitude}"
            )


@dataclass(frozen=True, slots=True)
class Location:
    """A place where a segment starts or ends.

    Attributes:
        label: Human-readable name (e.g., 'Athens International Airport')
        identifier: Stable code when the source provides one (e.g., 'ATH')
        address: Street address, used as extra matching evidence
        city: City name, used for gap scoping
        country: ISO 3166-1 alpha-2 country code
        coordinates: GPS coordinates if the source provides them
    """

    label: str
    identifier: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    country: Optional[str] = None
    coordinates: Optional[Coordinates] = None

    @property
    def display_name(self) -> str:
        """Return the label qualified with its identifier or city."""
        if self.identifier:
            return f"{self.label} ({self.identifier})"
        if self.city:
            return f"{self.label}, {self.city}"
        return self.label


@dataclass(frozen=True, slots=True)
class Segment:
    """One atomic leg of a trip.

    Location and time fields are optional at the type level so that
    incomplete extraction output can be represented; validate_segment()
    rejects such records before any stage works on them.

    Attributes:
        segment_id: Unique identifier within the itinerary
        kind: Declared kind of the segment
        start_location: Where the segment starts
        end_location: Where the segment ends (same place for stays)
        start_time: Timezone-aware start timestamp
        end_time: Timezone-aware end timestamp, never before start_time
        provenance: IMPORTED or SYNTHESIZED
        confidence: Extraction certainty or synthesis heuristic strength
        confirmation_reference: Booking reference from the source document
        title: Optional display title
    """

    segment_id: str
    kind: SegmentKind
    start_location: Optional[Location]
    end_location: Optional[Location]
    start_time: Optional[datetime]
    end_time: Optional[datetime]
    provenance: Provenance = Provenance.IMPORTED
    confidence: float = 1.0
    confirmation_reference: Optional[str] = None
    title: Optional[str] = None

    @property
    def is_imported(self) -> bool:
        return self.provenance is Provenance.IMPORTED

    @property
    def is_synthesized(self) -> bool:
        return self.provenance is Provenance.SYNTHESIZED

    @property
    def display_name(self) -> str:
        """Return the title, or kind and id when there is none."""
        if self.title:
            return f"{self.title} [{self.segment_id}]"
        return f"{self.kind.name.lower()} [{self.segment_id}]"

    @property
    def duration(self) -> timedelta:
        """Return the length of the segment's time window."""
        if self.start_time is None or self.end_time is None:
            return timedelta(0)
        return self.end_time - self.start_time


def validate_segment(segment: Segment) -> Segment:
    """Check that a segment is well formed and return it unchanged.

    Raises:
        MalformedSegmentError: If a location or timestamp is missing, a
            timestamp has no timezone, the window is reversed, or the
            confidence is outside [0, 1].
    """
    missing = tuple(
        name
        for name in ("start_location", "end_location", "start_time", "end_time")
        if getattr(segment, name) is None
    )
    if missing:
        raise MalformedSegmentError(
            f"Segment {segment.segment_id!r} is missing {', '.join(missing)}",
            segment_id=segment.segment_id,
            missing_fields=missing,
        )

    unnamed = tuple(
        name
        for name in ("start_location", "end_location")
        if not (getattr(segment, name).label or "").strip()
        and not getattr(segment, name).identifier
    )
    if unnamed:
        raise MalformedSegmentError(
            f"Segment {segment.segment_id!r} has locations without label or identifier",
            segment_id=segment.segment_id,
            missing_fields=unnamed,
        )

    naive = tuple(
        name
        for name in ("start_time", "end_time")
        if getattr(segment, name).utcoffset() is None
    )
    if naive:
        raise MalformedSegmentError(
            f"Segment {segment.segment_id!r} has timestamps without timezone",
            segment_id=segment.segment_id,
            missing_fields=naive,
        )

    if segment.end_time < segment.start_time:  # type: ignore[operator]
        raise MalformedSegmentError(
            f"Segment {segment.segment_id!r} ends before it starts",
            segment_id=segment.segment_id,
            missing_fields=("end_time",),
        )

    if not 0.0 <= segment.confidence <= 1.0:
        raise MalformedSegmentError(
            f"Segment {segment.segment_id!r} has confidence "
            f"{segment.confidence} outside [0, 1]",
            segment_id=segment.segment_id,
            missing_fields=("confidence",),
        )

    return segment


@dataclass(frozen=True, slots=True)
class Itinerary:
    """An ordered sequence of segments belonging to one trip."""

    itinerary_id: str
    segments: tuple[Segment, ...] = field(default_factory=tuple)
    title: Optional[str] = None


class GapKind(Enum):
    """Kind of discontinuity between two segments."""

    LOCATION_GAP = auto()
    TIME_OVERLAP = auto()


class GapScope(Enum):
    """Geographic reach of a location gap."""

    LOCAL = auto()
    DOMESTIC = auto()
    INTERNATIONAL = auto()
    UNKNOWN = auto()


@dataclass(frozen=True, slots=True)
class GapReport:
    """A discontinuity between two segments of an ordered sequence.

    Attributes:
        kind: LOCATION_GAP or TIME_OVERLAP
        after: Segment on the earlier side of the gap
        before: Segment on the later side of the gap
        after_index: Position of `after` in the ordered sequence
        before_index: Position of `before` in the ordered sequence
        scope: Geographic reach (location gaps only)
        description: Human-readable summary
    """

    kind: GapKind
    after: Segment
    before: Segment
    after_index: int
    before_index: int
    scope: GapScope = GapScope.UNKNOWN
    description: str = ""


class Severity(Enum):
    INFO = auto()
    WARNING = auto()


class DiagnosticKind(Enum):
    TRANSFER_SYNTHESIZED = auto()
    SCHEDULE_CONFLICT = auto()
    UNRESOLVED_GAP = auto()
    GAP_DISMISSED = auto()
    STALE_TRANSFER_REMOVED = auto()


@dataclass(frozen=True, slots=True)
class Diagnostic:
    """A finding attached to a repaired itinerary for later display."""

    severity: Severity
    kind: DiagnosticKind
    segment_refs: tuple[str, ...] = field(default_factory=tuple)
    message: str = ""

    def references(self, *segment_ids: str) -> bool:
        """Check whether every given segment id is referenced."""
        return all(segment_id in self.segment_refs for segment_id in segment_ids)


@dataclass(frozen=True, slots=True)
class RepairResult:
    """Outcome of a repair: the ordered sequence plus diagnostics.

    Attributes:
        itinerary_id: Identifier of the repaired itinerary
        segments: Repaired ordered sequence
        diagnostics: Findings produced while repairing
    """

    itinerary_id: str
    segments: tuple[Segment, ...] = field(default_factory=tuple)
    diagnostics: tuple[Diagnostic, ...] = field(default_factory=tuple)

    @property
    def synthesized(self) -> tuple[Segment, ...]:
        """Return the segments inserted by the engine."""
        return tuple(s for s in self.segments if s.is_synthesized)

    @property
    def synthesized_count(self) -> int:
        return len(self.synthesized)

    @property
    def has_conflicts(self) -> bool:
        """Check if any schedule conflict was reported."""
        return any(
            d.kind is DiagnosticKind.SCHEDULE_CONFLICT for d in self.diagnostics
        )


@dataclass(frozen=True, slots=True)
class ContinuityReport:
    """Read-only continuity check of an itinerary.

    Attributes:
        itinerary_id: Identifier of the checked itinerary
        gaps: Location gaps and time overlaps found
        segment_count: Number of segments examined
    """

    itinerary_id: str
    gaps: tuple[GapReport, ...] = field(default_factory=tuple)
    segment_count: int = 0

    @property
    def location_gaps(self) -> tuple[GapReport, ...]:
        return tuple(g for g in self.gaps if g.kind is GapKind.LOCATION_GAP)

    @property
    def valid(self) -> bool:
        """Check if the itinerary has no location gap."""
        return not self.location_gaps

    @property
    def summary(self) -> str:
        """Human-readable summary of the check."""
        gaps = self.location_gaps
        if not gaps:
            return (
                "All segments are geographically continuous. "
                "No transportation gaps detected."
            )
        lines = [f"{i}. {gap.description}" for i, gap in enumerate(gaps, start=1)]
        return f"Found {len(gaps)} geographic gap(s):\n" + "\n".join(lines)
