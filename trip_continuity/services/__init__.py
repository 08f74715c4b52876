"""Services layer - Application orchestration.

This module contains the engine stages and the service that chains
them into a repair:

- SegmentClassifier: Connective/stay role predicate
- GapDetector: Rule-table driven gap and overlap detection
- GapResolver: Transfer synthesis and diagnostics
- IntegrityValidator: Post-repair invariant checks
- ContinuityService: Main entry point (repair, check)
"""

from .classifier import SegmentClassifier
from .continuity_service import ContinuityService
from .gap_detector import GapDetector
from .gap_resolver import GapResolver
from .integrity import IntegrityValidator

__all__ = [
    "ContinuityService",
    "SegmentClassifier",
    "GapDetector",
    "GapResolver",
    "IntegrityValidator",
]
