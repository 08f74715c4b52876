"""Domain layer - Core business models and errors.

This module contains immutable domain models and typed errors
used throughout the engine. No external dependencies.
"""

from .errors import (
    ConfigurationError,
    ContinuityError,
    IntegrityViolationError,
    ItineraryLoadError,
    MalformedSegmentError,
)
from .models import (
    ConnectiveRole,
    ContinuityReport,
    Coordinates,
    Diagnostic,
    DiagnosticKind,
    GapKind,
    GapReport,
    GapScope,
    Itinerary,
    Location,
    Provenance,
    RepairResult,
    Segment,
    SegmentKind,
    Severity,
    validate_segment,
)

__all__ = [
    # Models
    "Coordinates",
    "Location",
    "Segment",
    "SegmentKind",
    "Provenance",
    "ConnectiveRole",
    "Itinerary",
    "GapKind",
    "GapScope",
    "GapReport",
    "Severity",
    "DiagnosticKind",
    "Diagnostic",
    "RepairResult",
    "ContinuityReport",
    "validate_segment",
    # Errors
    "ContinuityError",
    "MalformedSegmentError",
    "IntegrityViolationError",
    "ItineraryLoadError",
    "ConfigurationError",
]
