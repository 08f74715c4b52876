"""JSON codec for itineraries and repair results.

Document layout::

    {
      "itinerary_id": "trip-42",
      "title": "Greece",
      "segments": [
        {
          "segment_id": "f1",
          "kind": "flight",
          "start_location": {"label": "Heathrow", "identifier": "LHR"},
          "end_location": {"label": "Athens International Airport",
                           "identifier": "ATH", "city": "Athens",
                           "country": "GR"},
          "start_time": "2024-05-01T08:00:00+01:00",
          "end_time": "2024-05-01T13:30:00+03:00",
          "confidence": 0.98
        }
      ]
    }

Timestamps are ISO-8601. Naive timestamps are read in the configured
default timezone. A location may also be given as a bare label string.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone, tzinfo
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Union
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import AliasChoices, BaseModel, Field, ValidationError, field_validator

from ...config import CodecConfig, get_config
from ...domain.errors import (
    ConfigurationError,
    ItineraryLoadError,
    MalformedSegmentError,
)
from ...domain.models import (
    Coordinates,
    Diagnostic,
    Itinerary,
    Location,
    Provenance,
    RepairResult,
    Segment,
    SegmentKind,
    validate_segment,
)

logger = logging.getLogger(__name__)


class CoordinatesDocument(BaseModel):
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)


class LocationDocument(BaseModel):
    """Location as written in a document"""

    label: Optional[str] = None
    identifier: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    country: Optional[str] = None
    coordinates: Optional[CoordinatesDocument] = None

    def to_location(self) -> Location:
        coordinates = None
        if self.coordinates is not None:
            coordinates = Coordinates(self.coordinates.latitude, self.coordinates.longitude)
        return Location(
            label=self.label or "",
            identifier=self.identifier,
            address=self.address,
            city=self.city,
            country=self.country,
            coordinates=coordinates,
        )


class SegmentDocument(BaseModel):
    """Segment as written in a document.

    Enum fields are given by lowercase name; a location may be a bare
    label string; timestamps are ISO-8601.
    """

    segment_id: str = Field(..., validation_alias=AliasChoices("segment_id", "id"))
    kind: SegmentKind
    start_location: Optional[LocationDocument] = None
    end_location: Optional[LocationDocument] = None
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    provenance: Provenance = Provenance.IMPORTED
    confidence: float = 1.0
    confirmation_reference: Optional[str] = None
    title: Optional[str] = None

    @field_validator("kind", mode="before")
    @classmethod
    def _kind_by_name(cls, value: Any) -> SegmentKind:
        return _enum_by_name(SegmentKind, value)

    @field_validator("provenance", mode="before")
    @classmethod
    def _provenance_by_name(cls, value: Any) -> Provenance:
        return _enum_by_name(Provenance, value)

    @field_validator("start_location", "end_location", mode="before")
    @classmethod
    def _label_shorthand(cls, value: Any) -> Any:
        if isinstance(value, str):
            return {"label": value}
        return value

    def to_segment(self, default_tz: tzinfo) -> Segment:
        return Segment(
            segment_id=self.segment_id,
            kind=self.kind,
            start_location=self.start_location.to_location() if self.start_location else None,
            end_location=self.end_location.to_location() if self.end_location else None,
            start_time=_localize(self.start_time, default_tz),
            end_time=_localize(self.end_time, default_tz),
            provenance=self.provenance,
            confidence=self.confidence,
            confirmation_reference=self.confirmation_reference,
            title=self.title,
        )


class ItineraryDocument(BaseModel):
    """Top-level document; segments are decoded one by one."""

    itinerary_id: Optional[str] = None
    title: Optional[str] = None
    segments: List[Dict[str, Any]]


def _enum_by_name(enum_type: Any, value: Any) -> Any:
    if isinstance(value, enum_type):
        return value
    try:
        return enum_type[str(value).upper()]
    except KeyError:
        raise ValueError(f"unknown value {value!r}") from None


def _localize(value: Optional[datetime], default_tz: tzinfo) -> Optional[datetime]:
    if value is not None and value.utcoffset() is None:
        return value.replace(tzinfo=default_tz)
    return value


def _default_timezone(config: Optional[CodecConfig]) -> tzinfo:
    config = config or get_config().codec
    if config.default_timezone.upper() == "UTC":
        return timezone.utc
    try:
        return ZoneInfo(config.default_timezone)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise ConfigurationError(
            f"Unknown timezone {config.default_timezone!r}",
            cause=e,
            setting_name="default_timezone",
            expected_type="IANA timezone name",
        ) from e


def segment_from_dict(
    data: Mapping[str, Any], default_tz: Optional[tzinfo] = None
) -> Segment:
    """Decode and validate one segment.

    Raises:
        MalformedSegmentError: If a required field is missing or invalid.
    """
    segment_id = str(data.get("segment_id") or data.get("id") or "")
    try:
        document = SegmentDocument.model_validate(data)
    except ValidationError as e:
        fields = tuple(dict.fromkeys(str(error["loc"][0]) for error in e.errors()))
        raise MalformedSegmentError(
            f"Segment {segment_id!r} has missing or invalid {', '.join(fields)}",
            cause=e,
            segment_id=segment_id,
            missing_fields=fields,
        ) from e

    segment = document.to_segment(default_tz or _default_timezone(None))
    return validate_segment(segment)


def itinerary_from_dict(
    data: Mapping[str, Any], config: Optional[CodecConfig] = None
) -> Itinerary:
    """Decode an itinerary document.

    Raises:
        MalformedSegmentError: If any segment is missing required fields.
        ItineraryLoadError: If the document itself has the wrong shape.
    """
    try:
        document = ItineraryDocument.model_validate(data)
    except ValidationError as e:
        raise ItineraryLoadError(
            "Itinerary document needs a 'segments' list of JSON objects", cause=e
        ) from e

    tz = _default_timezone(config)
    return Itinerary(
        itinerary_id=document.itinerary_id or "",
        segments=tuple(segment_from_dict(raw, tz) for raw in document.segments),
        title=document.title,
    )


def _location_to_dict(location: Optional[Location]) -> Optional[Dict[str, Any]]:
    if location is None:
        return None
    data: Dict[str, Any] = {"label": location.label}
    for name in ("identifier", "address", "city", "country"):
        value = getattr(location, name)
        if value is not None:
            data[name] = value
    if location.coordinates is not None:
        data["coordinates"] = {
            "latitude": location.coordinates.latitude,
            "longitude": location.coordinates.longitude,
        }
    return data


def segment_to_dict(segment: Segment) -> Dict[str, Any]:
    data: Dict[str, Any] = {
        "segment_id": segment.segment_id,
        "kind": segment.kind.name.lower(),
        "start_location": _location_to_dict(segment.start_location),
        "end_location": _location_to_dict(segment.end_location),
        "start_time": segment.start_time.isoformat() if segment.start_time else None,
        "end_time": segment.end_time.isoformat() if segment.end_time else None,
        "provenance": segment.provenance.name.lower(),
        "confidence": segment.confidence,
    }
    if segment.confirmation_reference is not None:
        data["confirmation_reference"] = segment.confirmation_reference
    if segment.title is not None:
        data["title"] = segment.title
    return data


def diagnostic_to_dict(diagnostic: Diagnostic) -> Dict[str, Any]:
    return {
        "severity": diagnostic.severity.name.lower(),
        "kind": diagnostic.kind.name.lower(),
        "segment_refs": list(diagnostic.segment_refs),
        "message": diagnostic.message,
    }


def itinerary_to_dict(itinerary: Itinerary) -> Dict[str, Any]:
    """Encode an itinerary in the document layout read by itinerary_from_dict."""
    data: Dict[str, Any] = {
        "itinerary_id": itinerary.itinerary_id,
        "segments": [segment_to_dict(s) for s in itinerary.segments],
    }
    if itinerary.title is not None:
        data["title"] = itinerary.title
    return data


def result_to_dict(result: RepairResult) -> Dict[str, Any]:
    """Encode a repair result.

    The segment list is itself a valid itinerary document, so the
    output of a repair can be fed back to another repair.
    """
    return {
        "itinerary_id": result.itinerary_id,
        "segments": [segment_to_dict(s) for s in result.segments],
        "diagnostics": [diagnostic_to_dict(d) for d in result.diagnostics],
        "synthesized_count": result.synthesized_count,
    }


def load_itinerary(
    path: Union[str, Path], config: Optional[CodecConfig] = None
) -> Itinerary:
    """Read an itinerary document from disk.

    The file stem is used as itinerary id when the document has none.

    Raises:
        ItineraryLoadError: If the file cannot be read or is not JSON.
        MalformedSegmentError: If any segment is missing required fields.
    """
    path = Path(path)
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except OSError as e:
        raise ItineraryLoadError(
            f"Cannot read itinerary file {path}", cause=e, path=str(path)
        ) from e
    except json.JSONDecodeError as e:
        raise ItineraryLoadError(
            f"Invalid JSON in {path}", cause=e, path=str(path)
        ) from e

    if not isinstance(data, dict):
        raise ItineraryLoadError(
            f"Itinerary file {path} must contain a JSON object", path=str(path)
        )

    try:
        itinerary = itinerary_from_dict(data, config)
    except ItineraryLoadError as e:
        raise ItineraryLoadError(e.message, cause=e.cause, path=str(path)) from e

    if not itinerary.itinerary_id:
        itinerary = Itinerary(
            itinerary_id=path.stem,
            segments=itinerary.segments,
            title=itinerary.title,
        )
    logger.debug(
        "Itinerary loaded",
        extra={"path": str(path), "segments": len(itinerary.segments)},
    )
    return itinerary
