"""Post-resolution integrity checks.

Re-validates the continuity invariants over a repaired sequence:

- chronology: start times never decrease; imported windows overlap
  only where a schedule conflict was reported.
- continuity: adjacent segments meet, or a gap diagnostic names both.
- no redundant connectors: synthesized segments are never adjacent to
  each other nor to a connector covering the same leg.
- minimality: a synthesized transfer sits between two
  segments that do not already meet and bridges exactly them.

A violation is a defect of the engine, never a user error.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from ..domain.errors import IntegrityViolationError
from ..domain.models import Diagnostic, DiagnosticKind, Segment
from ..ports.location import LocationMatcherPort
from .classifier import SegmentClassifier

_GAP_JUSTIFICATIONS = frozenset(
    {DiagnosticKind.UNRESOLVED_GAP, DiagnosticKind.GAP_DISMISSED}
)


@dataclass
class IntegrityValidator:
    """Checks the continuity invariants and raises on the first violation.

    Attributes:
        matcher: Location equivalence used by the detector
        classifier: Role classifier sharing the same matcher
    """

    matcher: LocationMatcherPort
    classifier: Optional[SegmentClassifier] = None

    _logger: logging.Logger = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._logger = logging.getLogger(__name__)
        if self.classifier is None:
            self.classifier = SegmentClassifier(self.matcher)

    def validate(
        self, segments: Sequence[Segment], diagnostics: Sequence[Diagnostic]
    ) -> None:
        """Validate a repaired sequence against its diagnostics.

        Raises:
            IntegrityViolationError: If any invariant does not hold.
        """
        self._check_chronology(segments, diagnostics)
        self._check_continuity(segments, diagnostics)
        self._check_connectors(segments)
        self._check_minimality(segments)

    def _fail(self, invariant: str, message: str, *segments: Segment) -> None:
        refs = tuple(s.segment_id for s in segments)
        self._logger.error(
            "Integrity violation",
            extra={"invariant": invariant, "segments": refs, "detail": message},
        )
        raise IntegrityViolationError(
            f"{invariant} violated: {message}",
            invariant=invariant,
            segment_refs=refs,
        )

    def _check_chronology(
        self, segments: Sequence[Segment], diagnostics: Sequence[Diagnostic]
    ) -> None:
        for prev, nxt in zip(segments, segments[1:]):
            if nxt.start_time < prev.start_time:  # type: ignore[operator]
                self._fail("chronology", "segments are not sorted by start time", prev, nxt)

        conflicts = [d for d in diagnostics if d.kind is DiagnosticKind.SCHEDULE_CONFLICT]
        open_imports: List[Segment] = []
        for segment in segments:
            if not segment.is_imported:
                continue
            open_imports = [
                o for o in open_imports if o.end_time > segment.start_time  # type: ignore[operator]
            ]
            for other in open_imports:
                if not any(d.references(other.segment_id, segment.segment_id) for d in conflicts):
                    self._fail("chronology", "imported segments overlap without a conflict", other, segment)
            open_imports.append(segment)

    def _check_continuity(
        self, segments: Sequence[Segment], diagnostics: Sequence[Diagnostic]
    ) -> None:
        justified = [d for d in diagnostics if d.kind in _GAP_JUSTIFICATIONS]
        for prev, nxt in zip(segments, segments[1:]):
            if self.matcher.same_place(prev.end_location, nxt.start_location):  # type: ignore[arg-type]
                continue
            if any(d.references(prev.segment_id, nxt.segment_id) for d in justified):
                continue
            self._fail("continuity", "adjacent segments do not meet", prev, nxt)

    def _check_connectors(self, segments: Sequence[Segment]) -> None:
        for prev, nxt in zip(segments, segments[1:]):
            if not (prev.is_synthesized or nxt.is_synthesized):
                continue
            if prev.is_synthesized and nxt.is_synthesized:
                self._fail("redundant_connector", "two synthesized segments are adjacent", prev, nxt)
            if self.classifier.covers_same_leg(prev, nxt):  # type: ignore[union-attr]
                self._fail("redundant_connector", "adjacent connectors cover the same leg", prev, nxt)

    def _check_minimality(self, segments: Sequence[Segment]) -> None:
        last = len(segments) - 1
        for index, segment in enumerate(segments):
            if not segment.is_synthesized:
                continue
            if index == 0 or index == last:
                self._fail("minimality", "synthesized transfer is not between two segments", segment)
            prev, nxt = segments[index - 1], segments[index + 1]
            if not (self._joins(prev, segment) and self._joins(segment, nxt)):
                self._fail("minimality", "synthesized transfer does not bridge its neighbours", prev, segment, nxt)
            if self._joins(prev, nxt):
                self._fail("minimality", "synthesized transfer between segments that already meet", prev, segment, nxt)

    def _joins(self, prev: Segment, nxt: Segment) -> bool:
        return self.matcher.same_place(prev.end_location, nxt.start_location)  # type: ignore[arg-type]
