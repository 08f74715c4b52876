"""Location-equivalence port - Abstraction for "same place" decisions.

Real documents name places inconsistently ("ATH", "Athens Airport",
"Athens International Airport"). The detector and resolver only ever ask
one question of a location pair, so exact, fuzzy-name and coordinate
proximity implementations can be swapped without touching them.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from ..domain.models import Location


class LocationMatcherPort(Protocol):
    """Port for location equivalence.

    Implementations:
    - adapters/location/exact_matcher.py (ExactLocationMatcher)
    - adapters/location/fuzzy_matcher.py (FuzzyLocationMatcher) - Default
    - adapters/location/proximity_matcher.py (ProximityLocationMatcher)

    Implementations must be symmetric and side-effect free. When in
    doubt they answer False: a spurious short transfer is recoverable,
    a silently dropped leg is not.
    """

    def same_place(self, a: Location, b: Location) -> bool:
        """Decide whether two locations denote the same place.

        Args:
            a: First location.
            b: Second location.

        Returns:
            True if the locations are considered equivalent.
        """
        ...
