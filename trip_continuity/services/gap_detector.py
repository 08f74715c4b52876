"""Gap detector - finds discontinuities in an ordered segment sequence.

The detector walks adjacent pairs and asks, in priority order, whether
the pair is already connected:

1. previous_bridges_into_next: the previous segment is connective and
   lands where the next one starts (e.g. an imported transfer ending at
   the hotel). Without this rule a gap would be flagged after every
   location change, including changes already serviced by a transfer,
   and the resolver would insert a duplicate transfer.
2. next_bridges_from_previous: the next segment is connective and picks
   up where the previous one ends.
3. locations_align: the two segments simply meet at the same place.

The first matching rule short-circuits the rest. A pair no rule accepts
is a LOCATION_GAP. Independently, IMPORTED segments whose windows
overlap are reported as TIME_OVERLAP; those are conflicts for a human,
never something to fix by synthesis.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Sequence, Tuple

from ..domain.models import (
    GapKind,
    GapReport,
    GapScope,
    Location,
    Segment,
    validate_segment,
)
from ..ports.location import LocationMatcherPort
from .classifier import SegmentClassifier


@dataclass(frozen=True)
class DetectionRule:
    """A named predicate that declares an adjacent pair already connected."""

    name: str
    applies: Callable[["GapDetector", Segment, Segment], bool]


LOCATION_RULES: Tuple[DetectionRule, ...] = (
    DetectionRule(
        "previous_bridges_into_next",
        lambda d, prev, nxt: d.classifier.is_connective(prev) and d.joins(prev, nxt),
    ),
    DetectionRule(
        "next_bridges_from_previous",
        lambda d, prev, nxt: d.classifier.is_connective(nxt)
        and d.matcher.same_place(nxt.start_location, prev.end_location),
    ),
    DetectionRule(
        "locations_align",
        lambda d, prev, nxt: d.joins(prev, nxt),
    ),
)


def sort_segments(segments: Sequence[Segment]) -> List[Segment]:
    """Stable chronological sort; ties keep extraction order."""
    return sorted(segments, key=lambda s: s.start_time)


def _normalize_city(location: Location) -> str:
    name = (location.city or location.label or "").strip().lower()
    for suffix in (" airport", " international", " city", " municipal"):
        if name.endswith(suffix):
            name = name[: -len(suffix)]
            break
    return " ".join(name.split())


def classify_scope(end: Location, start: Location) -> GapScope:
    """Classify the geographic reach of a gap between two locations."""
    end_city = _normalize_city(end)
    start_city = _normalize_city(start)
    if end_city and end_city == start_city:
        return GapScope.LOCAL

    if not end.country or not start.country:
        return GapScope.UNKNOWN
    if end.country.upper() != start.country.upper():
        return GapScope.INTERNATIONAL
    return GapScope.DOMESTIC


def describe_gap(end: Location, start: Location, scope: GapScope) -> str:
    """Human-readable description of a location gap."""
    origin = end.display_name
    destination = start.display_name
    if scope is GapScope.LOCAL:
        return f"Local transfer needed from {origin} to {destination}"
    if scope is GapScope.DOMESTIC:
        return f"Domestic transportation needed from {origin} to {destination}"
    if scope is GapScope.INTERNATIONAL:
        return f"International transportation needed from {origin} to {destination}"
    return f"Transportation gap between {origin} and {destination}"


@dataclass
class GapDetector:
    """Rule-table driven gap detection.

    Attributes:
        matcher: Location equivalence used for every comparison
        classifier: Role classifier sharing the same matcher
        rules: Priority-ordered location rules
    """

    matcher: LocationMatcherPort
    classifier: Optional[SegmentClassifier] = None
    rules: Tuple[DetectionRule, ...] = LOCATION_RULES

    _logger: logging.Logger = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._logger = logging.getLogger(__name__)
        if self.classifier is None:
            self.classifier = SegmentClassifier(self.matcher)

    def joins(self, prev: Segment, nxt: Segment) -> bool:
        """Check whether prev ends where nxt starts."""
        return self.matcher.same_place(prev.end_location, nxt.start_location)  # type: ignore[arg-type]

    def match_rule(self, prev: Segment, nxt: Segment) -> Optional[DetectionRule]:
        """Return the first rule declaring the pair connected, if any."""
        for rule in self.rules:
            if rule.applies(self, prev, nxt):
                return rule
        return None

    def detect_gaps(self, ordered_segments: Sequence[Segment]) -> Tuple[GapReport, ...]:
        """Report location gaps and time overlaps.

        Args:
            ordered_segments: Segments sorted by start time.

        Returns:
            Gap reports in sequence order.

        Raises:
            MalformedSegmentError: If any segment is malformed.
        """
        for segment in ordered_segments:
            validate_segment(segment)

        reports: List[GapReport] = []
        open_imports: List[Tuple[int, Segment]] = []

        for index, segment in enumerate(ordered_segments):
            if index > 0:
                gap = self._check_pair(ordered_segments[index - 1], segment, index)
                if gap is not None:
                    reports.append(gap)

            if segment.is_imported:
                open_imports = [
                    (i, other)
                    for i, other in open_imports
                    if other.end_time > segment.start_time  # type: ignore[operator]
                ]
                for i, other in open_imports:
                    reports.append(self._overlap(other, segment, i, index))
                open_imports.append((index, segment))

        self._logger.debug(
            "Gap detection finished",
            extra={"segments": len(ordered_segments), "gaps": len(reports)},
        )
        return tuple(reports)

    def _check_pair(self, prev: Segment, nxt: Segment, index: int) -> Optional[GapReport]:
        rule = self.match_rule(prev, nxt)
        if rule is not None:
            self._logger.debug(
                "Pair connected",
                extra={"rule": rule.name, "after": prev.segment_id, "before": nxt.segment_id},
            )
            return None

        end, start = prev.end_location, nxt.start_location
        scope = classify_scope(end, start)  # type: ignore[arg-type]
        return GapReport(
            kind=GapKind.LOCATION_GAP,
            after=prev,
            before=nxt,
            after_index=index - 1,
            before_index=index,
            scope=scope,
            description=describe_gap(end, start, scope),  # type: ignore[arg-type]
        )

    @staticmethod
    def _overlap(earlier: Segment, later: Segment, earlier_index: int, later_index: int) -> GapReport:
        return GapReport(
            kind=GapKind.TIME_OVERLAP,
            after=earlier,
            before=later,
            after_index=earlier_index,
            before_index=later_index,
            description=(
                f"Schedule conflict: {later.display_name} starts before "
                f"{earlier.display_name} ends"
            ),
        )
