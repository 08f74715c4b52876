"""Exact location matcher.

Strict equivalence: identical identifiers when both sides carry one,
otherwise identical normalized labels. The resolver uses it to decide
whether a zero-length gap is a false positive.
"""

from __future__ import annotations

from dataclasses import dataclass

from ...domain.models import Location
from .normalize import normalize_identifier, normalize_label


@dataclass(frozen=True)
class ExactLocationMatcher:
    """Location matcher without any tolerance."""

    def same_place(self, a: Location, b: Location) -> bool:
        if a == b:
            return True
        if a.identifier and b.identifier:
            return normalize_identifier(a.identifier) == normalize_identifier(
                b.identifier
            )
        label_a = normalize_label(a.label)
        return bool(label_a) and label_a == normalize_label(b.label)
