"""Segment classifier - labels segments by connective role.

A segment is CONNECTIVE when its declared kind moves the traveler
(FLIGHT, TRANSFER) or, whatever its declared kind, when it starts and
ends at different places. The second clause catches mis-tagged imports
such as a "car service" filed as OTHER.
"""

from __future__ import annotations

from dataclasses import dataclass

from ..domain.models import ConnectiveRole, Segment, SegmentKind, validate_segment
from ..ports.location import LocationMatcherPort

CONNECTIVE_KINDS = frozenset({SegmentKind.FLIGHT, SegmentKind.TRANSFER})


@dataclass
class SegmentClassifier:
    """Pure role predicate over well-formed segments.

    Attributes:
        matcher: Location equivalence used to compare start and end
    """

    matcher: LocationMatcherPort

    def classify(self, segment: Segment) -> ConnectiveRole:
        """Classify a segment as CONNECTIVE or STAY.

        Raises:
            MalformedSegmentError: If location or time fields are absent.
        """
        validate_segment(segment)
        if segment.kind in CONNECTIVE_KINDS:
            return ConnectiveRole.CONNECTIVE
        if not self.matcher.same_place(segment.start_location, segment.end_location):  # type: ignore[arg-type]
            return ConnectiveRole.CONNECTIVE
        return ConnectiveRole.STAY

    def is_connective(self, segment: Segment) -> bool:
        return self.classify(segment) is ConnectiveRole.CONNECTIVE

    def covers_same_leg(self, a: Segment, b: Segment) -> bool:
        """Check whether two connective segments move between the same places."""
        if not (self.is_connective(a) and self.is_connective(b)):
            return False
        same = self.matcher.same_place
        return same(a.start_location, b.start_location) and same(  # type: ignore[arg-type]
            a.end_location, b.end_location  # type: ignore[arg-type]
        )
