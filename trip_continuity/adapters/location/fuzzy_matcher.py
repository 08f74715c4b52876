"""Fuzzy location matcher.

Travel documents describe the same place in many ways: an airline
confirmation says "ATH", the transfer voucher "Athens Airport", the
hotel voucher gives a street address instead of the hotel name. This
matcher tolerates those variations and uses rapidfuzz for typo-level
word similarity.

Rules are evaluated in order; the first decisive one wins:

1. Both sides carry an identifier: equal identifiers decide.
2. Both sides carry coordinates within the proximity radius.
3. The street address of one side equals the label of the other.
4. Normalized labels are equal.
5. The identifier of one side is a token of the other side's label.
6. One normalized label contains the other (both long enough).
7. Enough significant words of the labels are similar.

Anything else is a different place.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List

from rapidfuzz.distance import Levenshtein

from ...config import MatchingConfig, get_config
from ...domain.models import Location
from .normalize import distance_meters, normalize_identifier, normalize_label

# Words that carry no identity in a place name
STOP_WORDS = frozenset(
    {
        "the", "at", "in", "on", "of", "and", "a", "an", "to", "for",
        "resort", "hotel", "inn", "suites", "lodge", "airport", "international",
        "st", "ave", "blvd", "rd", "street", "avenue", "boulevard", "road",
        "drive", "lane", "way", "place", "collection", "luxury",
    }
)


@dataclass
class FuzzyLocationMatcher:
    """Tolerant location matcher (default strategy).

    Attributes:
        config: Matching tolerances
    """

    config: MatchingConfig = field(default_factory=lambda: get_config().matching)
    _logger: logging.Logger = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._logger = logging.getLogger(__name__)

    def same_place(self, a: Location, b: Location) -> bool:
        if a == b:
            return True
        if a.identifier and b.identifier:
            return normalize_identifier(a.identifier) == normalize_identifier(
                b.identifier
            )

        if a.coordinates is not None and b.coordinates is not None:
            if distance_meters(a.coordinates, b.coordinates) <= self.config.proximity_meters:
                return True

        name_a = normalize_label(a.label)
        name_b = normalize_label(b.label)

        if self._address_matches(a, name_b) or self._address_matches(b, name_a):
            return True

        if not name_a or not name_b:
            return False

        if name_a == name_b:
            return True

        if self._identifier_in_label(a, name_b) or self._identifier_in_label(b, name_a):
            return True

        min_length = self.config.min_containment_length
        if len(name_a) > min_length and len(name_b) > min_length:
            if name_a in name_b or name_b in name_a:
                return True

        matched = self._have_similar_words(name_a, name_b)
        if matched:
            self._logger.debug(
                "Locations matched on word similarity",
                extra={"a": a.label, "b": b.label},
            )
        return matched

    @staticmethod
    def _address_matches(location: Location, other_name: str) -> bool:
        if not location.address or not other_name:
            return False
        return normalize_label(location.address) == other_name

    @staticmethod
    def _identifier_in_label(location: Location, other_name: str) -> bool:
        if not location.identifier:
            return False
        return normalize_label(location.identifier) in other_name.split()

    def _have_similar_words(self, name_a: str, name_b: str) -> bool:
        """Check the share of similar significant words against the threshold.

        Matches are counted from both sides and the lower count is used,
        so the result does not depend on argument order. The share is
        computed over the smaller word set and must be strictly greater
        than the threshold.
        """
        words_a = _significant_words(name_a)
        words_b = _significant_words(name_b)
        if not words_a or not words_b:
            return False

        matches = min(
            self._count_similar(words_a, words_b),
            self._count_similar(words_b, words_a),
        )
        overlap = matches / min(len(words_a), len(words_b))
        return overlap > self.config.word_overlap_threshold

    def _count_similar(self, words: List[str], others: List[str]) -> int:
        return sum(1 for word in words if any(self._words_similar(word, w) for w in others))

    def _words_similar(self, word_a: str, word_b: str) -> bool:
        if word_a == word_b:
            return True
        if word_a in word_b or word_b in word_a:
            return True
        if max(len(word_a), len(word_b)) > self.config.long_word_length:
            max_edits = self.config.long_word_max_edits
        else:
            max_edits = self.config.short_word_max_edits
        return Levenshtein.distance(word_a, word_b) <= max_edits


def _significant_words(name: str) -> List[str]:
    return [w for w in name.split() if len(w) > 2 and w not in STOP_WORDS]
