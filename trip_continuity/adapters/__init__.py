"""Adapters layer - Concrete implementations of ports.

This module contains implementations of the port interfaces and the
engine's I/O surface:
- Location matchers (exact, fuzzy, coordinate proximity)
- JSON serialization of itineraries and repair results
"""
