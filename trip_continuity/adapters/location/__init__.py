"""Location adapters - Implementations of LocationMatcherPort.

Available implementations:
- ExactLocationMatcher: Identifier or normalized-label equality
- FuzzyLocationMatcher: Tolerant name/address/coordinate matching
- ProximityLocationMatcher: Coordinate distance with a fallback matcher
"""

from .exact_matcher import ExactLocationMatcher
from .fuzzy_matcher import FuzzyLocationMatcher
from .proximity_matcher import ProximityLocationMatcher

__all__ = [
    "ExactLocationMatcher",
    "FuzzyLocationMatcher",
    "ProximityLocationMatcher",
]
