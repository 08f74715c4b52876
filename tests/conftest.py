"""Shared fixtures and segment factories."""

from datetime import datetime, timedelta, timezone

import pytest

from trip_continuity.adapters.location import ExactLocationMatcher, FuzzyLocationMatcher
from trip_continuity.config import MatchingConfig, SynthesisConfig, reset_config
from trip_continuity.container import reset_container
from trip_continuity.domain.models import (
    Itinerary,
    Location,
    Provenance,
    Segment,
    SegmentKind,
)
from trip_continuity.services import ContinuityService, GapResolver

T0 = datetime(2024, 5, 1, 8, 0, tzinfo=timezone.utc)

HEATHROW = Location("Heathrow Airport", identifier="LHR", city="London", country="GB")
ATHENS_AIRPORT = Location(
    "Athens International Airport", identifier="ATH", city="Athens", country="GR"
)
ATHENS_HOTEL = Location("Grande Bretagne Hotel", city="Athens", country="GR")
JFK = Location(
    "John F. Kennedy International Airport",
    identifier="JFK",
    city="New York",
    country="US",
)
MIDTOWN_HOTEL = Location("Midtown Hotel", city="New York", country="US")


def at(hours: float) -> datetime:
    """Timestamp `hours` after the reference instant."""
    return T0 + timedelta(hours=hours)


def make_segment(
    segment_id,
    kind,
    start,
    end=None,
    start_hours=0.0,
    end_hours=None,
    provenance=Provenance.IMPORTED,
    confidence=1.0,
    title=None,
):
    """Build a segment; stays default to ending where they start."""
    return Segment(
        segment_id=segment_id,
        kind=kind,
        start_location=start,
        end_location=end if end is not None else start,
        start_time=at(start_hours),
        end_time=at(end_hours if end_hours is not None else start_hours + 1),
        provenance=provenance,
        confidence=confidence,
        title=title,
    )


def flight(segment_id, start, end, start_hours, end_hours, **kwargs):
    return make_segment(segment_id, SegmentKind.FLIGHT, start, end, start_hours, end_hours, **kwargs)


def transfer(segment_id, start, end, start_hours, end_hours, **kwargs):
    return make_segment(segment_id, SegmentKind.TRANSFER, start, end, start_hours, end_hours, **kwargs)


def hotel(segment_id, place, start_hours, end_hours, **kwargs):
    return make_segment(segment_id, SegmentKind.HOTEL, place, place, start_hours, end_hours, **kwargs)


def activity(segment_id, place, start_hours, end_hours, **kwargs):
    return make_segment(segment_id, SegmentKind.ACTIVITY, place, place, start_hours, end_hours, **kwargs)


def itinerary(*segments, itinerary_id="trip-1"):
    return Itinerary(itinerary_id=itinerary_id, segments=tuple(segments))


@pytest.fixture(autouse=True)
def _fresh_globals(monkeypatch):
    """Isolate tests from the environment and from cached singletons."""
    for name in (
        "TRIP_MATCH_STRATEGY",
        "TRIP_MATCH_PROXIMITY_METERS",
        "TRIP_SYNTH_MIN_TRANSFER_MINUTES",
        "TRIP_SYNTH_HEURISTIC_WEIGHT",
        "TRIP_IO_DEFAULT_TIMEZONE",
        "TRIP_LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)
    reset_config()
    reset_container()
    yield
    reset_config()
    reset_container()


@pytest.fixture
def matching_config():
    return MatchingConfig()


@pytest.fixture
def synthesis_config():
    return SynthesisConfig()


@pytest.fixture
def fuzzy_matcher(matching_config):
    return FuzzyLocationMatcher(matching_config)


@pytest.fixture
def exact_matcher():
    return ExactLocationMatcher()


@pytest.fixture
def service(fuzzy_matcher, synthesis_config):
    return ContinuityService(
        matcher=fuzzy_matcher, resolver=GapResolver(synthesis_config)
    )


@pytest.fixture
def athens_trip():
    """Flight into Athens, imported airport transfer, hotel stay."""
    return itinerary(
        flight("f1", HEATHROW, ATHENS_AIRPORT, 0, 3.5),
        transfer("t1", Location("Athens Airport", identifier="ATH"), ATHENS_HOTEL, 4, 5),
        hotel("h1", ATHENS_HOTEL, 5, 27),
        itinerary_id="athens",
    )


@pytest.fixture
def new_york_trip():
    """Flight into JFK followed by a Midtown hotel, nothing in between."""
    return itinerary(
        flight("f1", HEATHROW, JFK, 0, 8),
        hotel("h1", MIDTOWN_HOTEL, 11, 35),
        itinerary_id="new-york",
    )


@pytest.fixture
def athens_trip_touching():
    """The airport transfer picks up the moment the flight lands."""
    return itinerary(
        flight("f1", HEATHROW, ATHENS_AIRPORT, 9, 12),
        transfer("t1", Location("Athens International Airport"), ATHENS_HOTEL, 12, 13),
        hotel("h1", ATHENS_HOTEL, 13, 36),
        itinerary_id="athens",
    )
