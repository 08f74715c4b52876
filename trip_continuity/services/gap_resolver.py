"""Gap resolver - applies policy to detected gaps.

Policy per gap report:

- LOCATION_GAP with room in the schedule: insert a SYNTHESIZED transfer
  from the previous drop-off to the next pick-up.
- LOCATION_GAP of zero length between locations that are identical
  under strict matching: a false positive, dismissed.
- LOCATION_GAP where the next segment starts before the previous one
  ends: no transfer fits, flagged for manual resolution.
- TIME_OVERLAP: reported as a schedule conflict, sequence untouched.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Dict, List, Optional, Sequence, Tuple

from ..config import SynthesisConfig, get_config
from ..domain.models import (
    Diagnostic,
    DiagnosticKind,
    GapKind,
    GapReport,
    GapScope,
    Provenance,
    RepairResult,
    Segment,
    SegmentKind,
    Severity,
)
from ..adapters.location.exact_matcher import ExactLocationMatcher
from ..ports.location import LocationMatcherPort

# Synthesized ids are derived from the bridged pair so reruns are stable
SYNTHESIS_NAMESPACE = uuid.uuid5(uuid.NAMESPACE_URL, "trip-continuity/synthesized-transfer")

_STAY_KINDS = frozenset({SegmentKind.HOTEL, SegmentKind.ACTIVITY})
_LONG_HAUL = frozenset({GapScope.DOMESTIC, GapScope.INTERNATIONAL})


def synthetic_segment_id(after: Segment, before: Segment) -> str:
    key = f"{after.segment_id}->{before.segment_id}"
    return f"synthetic-{uuid.uuid5(SYNTHESIS_NAMESPACE, key)}"


def _is_airport_segment(segment: Segment) -> bool:
    if segment.kind is SegmentKind.FLIGHT:
        return True
    if segment.kind is SegmentKind.TRANSFER:
        return bool(
            (segment.start_location and segment.start_location.identifier)
            or (segment.end_location and segment.end_location.identifier)
        )
    return False


def pair_score(after: Segment, before: Segment, scope: GapScope) -> float:
    """Heuristic strength of the need for a transfer between two segments."""
    after_airport = _is_airport_segment(after)
    before_airport = _is_airport_segment(before)
    after_hotel = after.kind is SegmentKind.HOTEL
    before_hotel = before.kind is SegmentKind.HOTEL

    if after_airport and before_airport and scope in _LONG_HAUL:
        return 0.95
    if after_airport and before.kind in _STAY_KINDS:
        return 0.95
    if before_airport and after.kind in _STAY_KINDS:
        return 0.95
    if after_hotel and before_hotel and scope in _LONG_HAUL:
        return 0.90
    if after_hotel and not before_hotel and not before_airport:
        return 0.85
    if before_hotel and not after_hotel and not after_airport:
        return 0.85
    if scope is GapScope.LOCAL:
        return 0.80
    if scope in _LONG_HAUL:
        return 0.60
    return 0.50


@dataclass
class GapResolver:
    """Turns gap reports into synthesized transfers and diagnostics.

    Attributes:
        config: Synthesis defaults (minimum duration, heuristic weight)
        strict_matcher: Matcher used to dismiss zero-length false positives
    """

    config: SynthesisConfig = field(default_factory=lambda: get_config().synthesis)
    strict_matcher: LocationMatcherPort = field(default_factory=ExactLocationMatcher)

    _logger: logging.Logger = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._logger = logging.getLogger(__name__)

    def resolve(
        self,
        ordered_segments: Sequence[Segment],
        gap_reports: Sequence[GapReport],
        itinerary_id: str = "",
    ) -> RepairResult:
        """Apply gap policy and return the repaired sequence.

        Args:
            ordered_segments: Segments sorted by start time.
            gap_reports: Reports produced by the detector for that sequence.
            itinerary_id: Identifier carried into the result.

        Returns:
            RepairResult with synthesized transfers inserted in place.
        """
        ordered = tuple(ordered_segments)
        weakest_import = min(
            (s.confidence for s in ordered if s.is_imported), default=None
        )

        diagnostics: List[Diagnostic] = []
        insertions: Dict[int, Segment] = {}

        for report in gap_reports:
            if report.kind is GapKind.TIME_OVERLAP:
                diagnostics.append(self._conflict(report))
                continue

            diagnostic, synthetic = self._resolve_location_gap(report, weakest_import)
            diagnostics.append(diagnostic)
            if synthetic is not None:
                insertions[report.after_index] = synthetic

        segments = ordered if not insertions else self._insert(ordered, insertions)

        self._logger.info(
            "Gaps resolved",
            extra={
                "itinerary_id": itinerary_id,
                "reports": len(gap_reports),
                "synthesized": len(insertions),
            },
        )
        return RepairResult(
            itinerary_id=itinerary_id,
            segments=segments,
            diagnostics=tuple(diagnostics),
        )

    def synthesis_confidence(
        self, report: GapReport, weakest_import: Optional[float]
    ) -> float:
        """Confidence of a synthesized transfer, below every imported one.

        An import with confidence 0.0 leaves nothing below it; the cap
        then gives 0.0, equal to that import.
        """
        weight = self.config.heuristic_weight
        confidence = pair_score(report.after, report.before, report.scope) * weight
        if weakest_import is not None:
            confidence = min(confidence, weakest_import * weight)
        return confidence

    def synthesize_transfer(
        self, report: GapReport, weakest_import: Optional[float] = None
    ) -> Segment:
        """Build the transfer bridging a location gap."""
        after, before = report.after, report.before
        start_time = after.end_time
        end_time = before.start_time
        if end_time <= start_time:  # type: ignore[operator]
            end_time = start_time + timedelta(minutes=self.config.min_transfer_minutes)  # type: ignore[operator]

        return Segment(
            segment_id=synthetic_segment_id(after, before),
            kind=SegmentKind.TRANSFER,
            start_location=after.end_location,
            end_location=before.start_location,
            start_time=start_time,
            end_time=end_time,
            provenance=Provenance.SYNTHESIZED,
            confidence=self.synthesis_confidence(report, weakest_import),
            title=f"Transfer to {before.start_location.label}",  # type: ignore[union-attr]
        )

    def _resolve_location_gap(
        self, report: GapReport, weakest_import: Optional[float]
    ) -> Tuple[Diagnostic, Optional[Segment]]:
        after, before = report.after, report.before

        if before.start_time < after.end_time:  # type: ignore[operator]
            self._logger.warning(
                "Location gap without room for a transfer",
                extra={"after": after.segment_id, "before": before.segment_id},
            )
            return (
                Diagnostic(
                    severity=Severity.WARNING,
                    kind=DiagnosticKind.UNRESOLVED_GAP,
                    segment_refs=(after.segment_id, before.segment_id),
                    message=f"{report.description}; the schedule leaves no time for it",
                ),
                None,
            )

        if after.end_time == before.start_time and self.strict_matcher.same_place(
            after.end_location, before.start_location  # type: ignore[arg-type]
        ):
            return (
                Diagnostic(
                    severity=Severity.INFO,
                    kind=DiagnosticKind.GAP_DISMISSED,
                    segment_refs=(after.segment_id, before.segment_id),
                    message="Zero-length gap between identical locations dismissed",
                ),
                None,
            )

        synthetic = self.synthesize_transfer(report, weakest_import)
        self._logger.debug(
            "Transfer synthesized",
            extra={
                "segment_id": synthetic.segment_id,
                "after": after.segment_id,
                "before": before.segment_id,
            },
        )
        return (
            Diagnostic(
                severity=Severity.INFO,
                kind=DiagnosticKind.TRANSFER_SYNTHESIZED,
                segment_refs=(after.segment_id, synthetic.segment_id, before.segment_id),
                message=report.description,
            ),
            synthetic,
        )

    def _conflict(self, report: GapReport) -> Diagnostic:
        self._logger.warning(
            "Schedule conflict",
            extra={"after": report.after.segment_id, "before": report.before.segment_id},
        )
        return Diagnostic(
            severity=Severity.WARNING,
            kind=DiagnosticKind.SCHEDULE_CONFLICT,
            segment_refs=(report.after.segment_id, report.before.segment_id),
            message=report.description,
        )

    @staticmethod
    def _insert(
        ordered: Tuple[Segment, ...], insertions: Dict[int, Segment]
    ) -> Tuple[Segment, ...]:
        repaired: List[Segment] = []
        for index, segment in enumerate(ordered):
            repaired.append(segment)
            if index in insertions:
                repaired.append(insertions[index])
        return tuple(repaired)
