"""Serialization adapters - JSON documents in and out of the engine."""

from .json_codec import (
    itinerary_from_dict,
    itinerary_to_dict,
    load_itinerary,
    result_to_dict,
)

__all__ = [
    "itinerary_from_dict",
    "itinerary_to_dict",
    "load_itinerary",
    "result_to_dict",
]
