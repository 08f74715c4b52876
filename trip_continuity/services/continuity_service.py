"""Continuity service - Main orchestrator.

Wires the classifier, detector, resolver and integrity validator into
the single repair entry point used by the import pipeline and by any
later edit of segment locations or times.

The service is stateless between calls. The caller owns the
"read snapshot -> repair -> write back" transaction and must serialize
concurrent repairs of the same itinerary.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

from ..domain.errors import (
    ContinuityError,
    IntegrityViolationError,
    MalformedSegmentError,
)
from ..domain.models import (
    ContinuityReport,
    Diagnostic,
    DiagnosticKind,
    Itinerary,
    RepairResult,
    Segment,
    Severity,
    validate_segment,
)
from ..ports.location import LocationMatcherPort
from .classifier import SegmentClassifier
from .gap_detector import GapDetector, sort_segments
from .gap_resolver import GapResolver
from .integrity import IntegrityValidator


@dataclass
class ContinuityService:
    """Repairs itineraries into continuous segment sequences.

    Attributes:
        matcher: Location equivalence shared by every stage
        detector: Gap detector (built from the matcher if omitted)
        resolver: Gap resolver (default synthesis settings if omitted)
        validator: Integrity validator (built from the matcher if omitted)
        classifier: Role classifier (built from the matcher if omitted)
    """

    matcher: LocationMatcherPort
    detector: Optional[GapDetector] = None
    resolver: Optional[GapResolver] = None
    validator: Optional[IntegrityValidator] = None
    classifier: Optional[SegmentClassifier] = None

    _logger: logging.Logger = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._logger = logging.getLogger(__name__)
        if self.classifier is None:
            self.classifier = SegmentClassifier(self.matcher)
        if self.detector is None:
            self.detector = GapDetector(self.matcher, self.classifier)
        if self.resolver is None:
            self.resolver = GapResolver()
        if self.validator is None:
            self.validator = IntegrityValidator(self.matcher, self.classifier)

    def repair(self, itinerary: Itinerary) -> RepairResult:
        """Repair an itinerary.

        Args:
            itinerary: Snapshot of the itinerary to repair.

        Returns:
            RepairResult with the repaired ordered sequence and diagnostics.

        Raises:
            MalformedSegmentError: If any segment is malformed.
            IntegrityViolationError: If the repaired sequence breaks an invariant.
        """
        self._logger.info(
            "Starting repair",
            extra={
                "itinerary_id": itinerary.itinerary_id,
                "segments": len(itinerary.segments),
            },
        )

        for segment in itinerary.segments:
            validate_segment(segment)

        ordered = sort_segments(itinerary.segments)
        kept, pruned = self.prune_stale_transfers(ordered)

        reports = self.detector.detect_gaps(kept)  # type: ignore[union-attr]
        resolved = self.resolver.resolve(  # type: ignore[union-attr]
            kept, reports, itinerary_id=itinerary.itinerary_id
        )
        diagnostics = tuple(pruned) + resolved.diagnostics

        self.validator.validate(resolved.segments, diagnostics)  # type: ignore[union-attr]

        result = RepairResult(
            itinerary_id=itinerary.itinerary_id,
            segments=resolved.segments,
            diagnostics=diagnostics,
        )
        self._logger.info(
            "Repair finished",
            extra={
                "itinerary_id": itinerary.itinerary_id,
                "segments": len(result.segments),
                "synthesized": result.synthesized_count,
                "diagnostics": len(result.diagnostics),
            },
        )
        return result

    def repair_safe(
        self, itinerary: Itinerary
    ) -> Tuple[Optional[RepairResult], Optional[str]]:
        """Repair an itinerary, returning an error message instead of raising.

        Args:
            itinerary: Snapshot of the itinerary to repair.

        Returns:
            Tuple of (RepairResult or None, error message or None).
        """
        try:
            return self.repair(itinerary), None
        except MalformedSegmentError as e:
            return None, f"Malformed segment {e.segment_id}: {e.message}"
        except IntegrityViolationError as e:
            pair = ", ".join(e.segment_refs)
            return None, f"Integrity violation between segments {pair}: {e.message}"
        except ContinuityError as e:
            return None, f"Error: {e}"
        except Exception as e:
            self._logger.exception("Unexpected error in itinerary repair")
            return None, f"Error: {e}"

    def check(self, itinerary: Itinerary) -> ContinuityReport:
        """Report gaps and overlaps without repairing anything.

        Raises:
            MalformedSegmentError: If any segment is malformed.
        """
        ordered = sort_segments(
            [validate_segment(segment) for segment in itinerary.segments]
        )
        gaps = self.detector.detect_gaps(ordered)  # type: ignore[union-attr]
        return ContinuityReport(
            itinerary_id=itinerary.itinerary_id,
            gaps=gaps,
            segment_count=len(ordered),
        )

    def prune_stale_transfers(
        self, ordered: Sequence[Segment]
    ) -> Tuple[List[Segment], List[Diagnostic]]:
        """Drop synthesized transfers that no longer bridge a real gap.

        Transfers synthesized by an earlier run go stale when the
        surrounding segments are edited, or when an earlier version
        inserted them next to an imported transfer covering the same
        leg. Imported segments are never dropped.

        Returns:
            (kept segments, STALE_TRANSFER_REMOVED diagnostics)
        """
        kept: List[Segment] = []
        diagnostics: List[Diagnostic] = []

        for index, segment in enumerate(ordered):
            if not segment.is_synthesized:
                kept.append(segment)
                continue

            prev = kept[-1] if kept else None
            nxt = ordered[index + 1] if index + 1 < len(ordered) else None
            reason = self._stale_reason(prev, segment, nxt)
            if reason is None:
                kept.append(segment)
                continue

            self._logger.info(
                "Stale synthesized transfer removed",
                extra={"segment_id": segment.segment_id, "reason": reason},
            )
            diagnostics.append(
                Diagnostic(
                    severity=Severity.INFO,
                    kind=DiagnosticKind.STALE_TRANSFER_REMOVED,
                    segment_refs=(segment.segment_id,),
                    message=f"Removed {segment.display_name}: {reason}",
                )
            )

        return kept, diagnostics

    def _stale_reason(
        self, prev: Optional[Segment], segment: Segment, nxt: Optional[Segment]
    ) -> Optional[str]:
        if prev is None or nxt is None:
            return "it is no longer between two segments"
        if prev.is_synthesized or nxt.is_synthesized:
            return "it is adjacent to another synthesized segment"
        joins = self.matcher.same_place
        if not (
            joins(prev.end_location, segment.start_location)  # type: ignore[arg-type]
            and joins(segment.end_location, nxt.start_location)  # type: ignore[arg-type]
        ):
            return "it no longer bridges its neighbours"
        if joins(prev.end_location, nxt.start_location):  # type: ignore[arg-type]
            return "its neighbours are already connected"
        if self.classifier.covers_same_leg(prev, segment) or self.classifier.covers_same_leg(  # type: ignore[union-attr]
            segment, nxt
        ):
            return "it duplicates an adjacent connector"
        return None
