"""High-level entry points for the continuity engine.

The repair is organized in several stages:

1. Validation of every imported segment (fail-closed).
2. Chronological ordering and pruning of stale synthesized transfers.
3. Gap detection over adjacent pairs and overlapping windows.
4. Gap resolution (transfer synthesis, conflicts, unresolved gaps).
5. Integrity validation of the repaired sequence.

This module wires these stages together without implementing any
business logic. Each step delegates work to the services layer.
"""

from __future__ import annotations

from typing import Callable, Dict, Optional, Tuple

from .config import MatchingConfig, get_config
from .container import get_container
from .domain.errors import ConfigurationError
from .domain.models import ContinuityReport, Itinerary, RepairResult
from .ports.location import LocationMatcherPort
from .services import ContinuityService, GapResolver
from .adapters.location import (
    ExactLocationMatcher,
    FuzzyLocationMatcher,
    ProximityLocationMatcher,
)

# Simple strategy registry so we can swap location equivalence
MatcherFactory = Callable[[MatchingConfig], LocationMatcherPort]

MATCHER_STRATEGIES: Dict[str, MatcherFactory] = {
    "exact": lambda config: ExactLocationMatcher(),
    "fuzzy": FuzzyLocationMatcher,
    "proximity": ProximityLocationMatcher,
}


def create_matcher(
    name: str, config: Optional[MatchingConfig] = None
) -> LocationMatcherPort:
    """Build the location matcher registered under a strategy name.

    Raises:
        ConfigurationError: If no strategy has that name.
    """
    factory = MATCHER_STRATEGIES.get(name)
    if factory is None:
        raise ConfigurationError(
            f"Unknown matching strategy: {name!r}",
            setting_name="matching.strategy",
            expected_type=" | ".join(sorted(MATCHER_STRATEGIES)),
        )
    return factory(config or get_config().matching)


def _service(matcher: Optional[LocationMatcherPort]) -> ContinuityService:
    container = get_container()
    if matcher is None:
        return container.resolve(ContinuityService)
    return ContinuityService(
        matcher=matcher,
        resolver=container.resolve(GapResolver),
    )


def repair(
    itinerary: Itinerary, *, matcher: Optional[LocationMatcherPort] = None
) -> RepairResult:
    """Repair an itinerary into a continuous segment sequence.

    This helper is designed to be reused from other front-ends
    (CLI, import pipeline, tests, etc.).

    Args:
        itinerary: Snapshot of the itinerary to repair.
        matcher: Location equivalence override; the default container's
            configured matcher is used otherwise.

    Raises:
        MalformedSegmentError: If any segment is malformed.
        IntegrityViolationError: If the repaired sequence breaks an invariant.
    """
    return _service(matcher).repair(itinerary)


def check(
    itinerary: Itinerary, *, matcher: Optional[LocationMatcherPort] = None
) -> ContinuityReport:
    """Report gaps and overlaps of an itinerary without repairing it."""
    return _service(matcher).check(itinerary)


def repair_safe(
    itinerary: Itinerary, *, matcher: Optional[LocationMatcherPort] = None
) -> Tuple[Optional[RepairResult], Optional[str]]:
    """Repair an itinerary, returning an error message instead of raising."""
    return _service(matcher).repair_safe(itinerary)
