"""Coordinate proximity location matcher.

When both locations carry coordinates the geodesic distance decides;
otherwise the decision is delegated to a fallback matcher. Coordinates
must come with the input: this adapter never geocodes.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional

from ...config import MatchingConfig, get_config
from ...domain.models import Location
from ...ports.location import LocationMatcherPort
from .fuzzy_matcher import FuzzyLocationMatcher
from .normalize import distance_meters


@dataclass
class ProximityLocationMatcher:
    """Location matcher driven by coordinates.

    Attributes:
        config: Matching tolerances (proximity radius)
        fallback: Matcher used when coordinates are missing on either side
    """

    config: MatchingConfig = field(default_factory=lambda: get_config().matching)
    fallback: Optional[LocationMatcherPort] = None
    _logger: logging.Logger = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._logger = logging.getLogger(__name__)
        if self.fallback is None:
            self.fallback = FuzzyLocationMatcher(self.config)

    def same_place(self, a: Location, b: Location) -> bool:
        if a.coordinates is None or b.coordinates is None:
            return self.fallback.same_place(a, b)

        distance = distance_meters(a.coordinates, b.coordinates)
        self._logger.debug(
            "Compared locations by distance",
            extra={"a": a.label, "b": b.label, "meters": round(distance, 1)},
        )
        return distance <= self.config.proximity_meters
