"""Ports layer - Abstract interfaces (Protocols) for the engine.

Ports define the contracts between the engine core and swappable
adapters. They enable dependency injection and make the system testable.
"""

from .location import LocationMatcherPort

__all__ = [
    "LocationMatcherPort",
]
