"""Label normalization shared by the location matchers."""

from __future__ import annotations

import re
import unicodedata
from typing import Optional

from geopy.distance import geodesic

from ...domain.models import Coordinates

_PUNCTUATION = re.compile(r"[^\w\s]")
_WHITESPACE = re.compile(r"\s+")


def normalize_label(label: Optional[str]) -> str:
    """Lower-case, strip accents and punctuation, collapse whitespace.

    >>> normalize_label("  Athènes,  Aéroport (ATH) ")
    'athenes aeroport ath'
    """
    if not label:
        return ""
    text = unicodedata.normalize("NFKD", label)
    text = "".join(c for c in text if not unicodedata.combining(c))
    text = _PUNCTUATION.sub("", text.lower())
    return _WHITESPACE.sub(" ", text).strip()


def normalize_identifier(identifier: Optional[str]) -> str:
    return (identifier or "").strip().upper()


def distance_meters(a: Coordinates, b: Coordinates) -> float:
    """Geodesic distance between two coordinates, in meters."""
    return geodesic((a.latitude, a.longitude), (b.latitude, b.longitude)).meters
