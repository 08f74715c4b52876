"""End-to-end tests for the continuity service."""

import random
from dataclasses import replace
from datetime import timedelta

import pytest

from conftest import (
    ATHENS_AIRPORT,
    ATHENS_HOTEL,
    HEATHROW,
    JFK,
    MIDTOWN_HOTEL,
    T0,
    activity,
    flight,
    hotel,
    itinerary,
    transfer,
)
from trip_continuity.adapters.location import ProximityLocationMatcher
from trip_continuity.domain.errors import IntegrityViolationError, MalformedSegmentError
from trip_continuity.domain.models import (
    Coordinates,
    DiagnosticKind,
    Itinerary,
    Location,
    Provenance,
    Segment,
    SegmentKind,
)
from trip_continuity.pipeline import MATCHER_STRATEGIES, create_matcher
from trip_continuity.services import ContinuityService, GapResolver

# Neighbouring kiosks are about 89 m apart: each is within the default
# 100 m radius of the next one but not of the one after
KIOSKS = [
    Location(f"Kiosk {name}", coordinates=Coordinates(37.9750 + 0.0008 * step, 23.7350))
    for step, name in enumerate(("One", "Two", "Three"))
]


class TestScenarios:
    def test_athens_flight_and_transfer_get_no_extra_transfer(self, service, athens_trip):
        """An imported airport transfer already covers the flight's arrival."""
        result = service.repair(athens_trip)

        assert result.synthesized_count == 0
        assert [s.segment_id for s in result.segments] == ["f1", "t1", "h1"]
        assert result.diagnostics == ()

    def test_transfer_picking_up_at_landing_time_is_kept_alone(self, service, athens_trip_touching):
        result = service.repair(athens_trip_touching)

        assert result.synthesized_count == 0
        assert result.segments == athens_trip_touching.segments
        assert result.diagnostics == ()

    def test_airport_to_hotel_gets_one_transfer(self, service, new_york_trip):
        result = service.repair(new_york_trip)

        assert result.itinerary_id == "new-york"
        assert result.synthesized_count == 1
        synthetic = result.segments[1]
        assert synthetic.start_location == JFK
        assert synthetic.end_location == MIDTOWN_HOTEL
        assert synthetic.confidence < 1.0
        assert [d.kind for d in result.diagnostics] == [DiagnosticKind.TRANSFER_SYNTHESIZED]

    def test_overlapping_imports_are_reported_not_fixed(self, service):
        trip = itinerary(
            hotel("h1", ATHENS_HOTEL, 0, 48),
            activity("a1", ATHENS_HOTEL, 20, 22),
        )
        result = service.repair(trip)

        assert result.synthesized_count == 0
        assert result.has_conflicts
        assert result.segments == trip.segments

    def test_unsorted_input_is_ordered(self, service):
        trip = itinerary(
            hotel("h1", MIDTOWN_HOTEL, 11, 35),
            flight("f1", HEATHROW, JFK, 0, 8),
        )
        result = service.repair(trip)
        assert [s.segment_id for s in result.segments if s.is_imported] == ["f1", "h1"]

    def test_empty_itinerary(self, service):
        result = service.repair(Itinerary("empty"))
        assert result.segments == ()
        assert result.diagnostics == ()

    def test_malformed_segment_aborts_repair(self, service, new_york_trip):
        broken = replace(new_york_trip.segments[1], start_location=None)
        trip = itinerary(new_york_trip.segments[0], broken)
        with pytest.raises(MalformedSegmentError) as exc_info:
            service.repair(trip)
        assert exc_info.value.segment_id == "h1"


class TestIdempotence:
    def test_second_repair_changes_nothing(self, service, new_york_trip):
        first = service.repair(new_york_trip)
        second = service.repair(Itinerary(first.itinerary_id, first.segments))

        assert second.segments == first.segments
        assert second.synthesized_count == 1
        assert second.diagnostics == ()

    def test_gapless_itinerary_round_trips(self, service):
        trip = itinerary(
            flight("f1", HEATHROW, ATHENS_AIRPORT, 0, 3.5),
            transfer("t1", ATHENS_AIRPORT, ATHENS_HOTEL, 4, 5),
            hotel("h1", ATHENS_HOTEL, 5, 27),
            transfer("t2", ATHENS_HOTEL, ATHENS_AIRPORT, 28, 29),
            flight("f2", ATHENS_AIRPORT, HEATHROW, 31, 35),
        )
        result = service.repair(trip)

        assert result.segments == trip.segments
        assert all(a is b for a, b in zip(result.segments, trip.segments))
        assert result.diagnostics == ()


class TestStaleTransfers:
    def test_transfer_removed_when_hotel_moves_to_the_airport(self, service, new_york_trip):
        first = service.repair(new_york_trip)
        airport_hotel = Location("JFK Airport Hotel", city="New York", country="US")
        edited = tuple(
            hotel("h1", airport_hotel, 11, 35) if s.segment_id == "h1" else s
            for s in first.segments
        )

        result = service.repair(Itinerary(first.itinerary_id, edited))

        assert result.synthesized_count == 0
        assert [d.kind for d in result.diagnostics] == [DiagnosticKind.STALE_TRANSFER_REMOVED]

    def test_transfer_replaced_when_hotel_changes(self, service, new_york_trip):
        first = service.repair(new_york_trip)
        other_hotel = Location("Brooklyn Loft", city="New York", country="US")
        edited = tuple(
            hotel("h1", other_hotel, 11, 35) if s.segment_id == "h1" else s
            for s in first.segments
        )

        result = service.repair(Itinerary(first.itinerary_id, edited))

        assert result.synthesized_count == 1
        assert result.segments[1].end_location == other_hotel
        kinds = [d.kind for d in result.diagnostics]
        assert kinds == [
            DiagnosticKind.STALE_TRANSFER_REMOVED,
            DiagnosticKind.TRANSFER_SYNTHESIZED,
        ]

    def test_transfer_duplicating_an_import_is_removed(self, service, athens_trip):
        """Cleans up after an older run that doubled the airport transfer."""
        flight_in, airport_transfer, stay = athens_trip.segments
        duplicate = transfer(
            "synthetic-old", ATHENS_AIRPORT, ATHENS_AIRPORT, 3.5, 4,
            provenance=Provenance.SYNTHESIZED,
        )
        trip = itinerary(flight_in, duplicate, airport_transfer, stay)

        result = service.repair(trip)

        assert [s.segment_id for s in result.segments] == ["f1", "t1", "h1"]
        assert result.diagnostics[0].segment_refs == ("synthetic-old",)

    def test_transfer_duplicating_a_nearby_import_is_removed(self, matching_config, synthesis_config):
        """Nearby-but-not-identical places: Two matches One and Three, One and Three differ."""
        service = ContinuityService(
            matcher=ProximityLocationMatcher(matching_config),
            resolver=GapResolver(synthesis_config),
        )
        one, two, three = KIOSKS
        trip = itinerary(
            activity("a1", three, 0, 1),
            transfer("old", two, two, 2, 3, provenance=Provenance.SYNTHESIZED),
            transfer("t1", one, one, 2.5, 3.5),
        )

        result, error = service.repair_safe(trip)

        assert error is None
        assert "old" not in [s.segment_id for s in result.segments]
        assert [d.kind for d in result.diagnostics] == [
            DiagnosticKind.STALE_TRANSFER_REMOVED,
            DiagnosticKind.TRANSFER_SYNTHESIZED,
        ]
        assert "duplicates an adjacent connector" in result.diagnostics[0].message
        bridge = result.segments[1]
        assert (bridge.start_location, bridge.end_location) == (three, one)

    def test_orphan_transfer_is_removed(self, service):
        orphan = transfer("s1", JFK, MIDTOWN_HOTEL, 0, 1, provenance=Provenance.SYNTHESIZED)
        trip = itinerary(orphan, hotel("h1", MIDTOWN_HOTEL, 1, 20))

        result = service.repair(trip)

        assert [s.segment_id for s in result.segments] == ["h1"]

    def test_imported_segments_are_never_pruned(self, service):
        trip = itinerary(
            transfer("t1", JFK, MIDTOWN_HOTEL, 0, 1),
            transfer("t2", MIDTOWN_HOTEL, MIDTOWN_HOTEL, 1, 2),
        )
        result = service.repair(trip)
        assert result.segments == trip.segments


class TestSafeAndCheck:
    def test_repair_safe_success(self, service, new_york_trip):
        result, error = service.repair_safe(new_york_trip)
        assert error is None
        assert result is not None and result.synthesized_count == 1

    def test_repair_safe_names_malformed_segment(self, service, new_york_trip):
        broken = replace(new_york_trip.segments[0], end_time=None)
        result, error = service.repair_safe(itinerary(broken))
        assert result is None
        assert error.startswith("Malformed segment f1")

    def test_repair_safe_names_segment_pair(self, service, new_york_trip):
        def broken_validate(segments, diagnostics):
            raise IntegrityViolationError("continuity violated", invariant="continuity", segment_refs=("f1", "h1"))

        service.validator.validate = broken_validate
        result, error = service.repair_safe(new_york_trip)
        assert result is None
        assert "f1, h1" in error

    def test_repair_safe_catches_unexpected_errors(self, service, new_york_trip):
        def boom(*args, **kwargs):
            raise RuntimeError("boom")

        service.detector.detect_gaps = boom
        result, error = service.repair_safe(new_york_trip)
        assert result is None
        assert error == "Error: boom"

    def test_check_reports_without_repairing(self, service, new_york_trip):
        report = service.check(new_york_trip)

        assert report.segment_count == 2
        assert not report.valid
        assert report.summary.startswith("Found 1 geographic gap(s):")

    def test_check_valid_itinerary(self, service, athens_trip):
        assert service.check(athens_trip).valid


# --- seeded random itineraries ---------------------------------------------

PLACES = [
    *(Location(f"Place {code}", identifier=code) for code in ("AAA", "BBB", "CCC")),
    Location("Grande Bretagne Hotel", city="Athens", country="GR"),
    Location("Grand Bretange", city="Athens", country="GR"),
    Location("Hotel Lutetia", city="Paris", country="FR"),
    *KIOSKS,
]


def _random_itinerary(rng: random.Random, size: int) -> Itinerary:
    """Shuffled segments with gaps, touching and overlapping windows.

    About one segment in five is marked SYNTHESIZED, as left behind by
    an earlier repair of a since-edited itinerary.
    """
    segments = []
    cursor = T0
    for index in range(size):
        kind = rng.choice(list(SegmentKind))
        start = rng.choice(PLACES)
        if kind in (SegmentKind.FLIGHT, SegmentKind.TRANSFER):
            end = rng.choice([p for p in PLACES if p is not start])
        else:
            end = start
        cursor += timedelta(minutes=rng.choice([-120, -30, 0, 0, 15, 60, 240]))
        duration = timedelta(minutes=rng.choice([0, 30, 90, 240, 600]))
        synthesized = rng.random() < 0.2
        segments.append(
            Segment(
                segment_id=f"s{index}",
                kind=kind,
                start_location=start,
                end_location=end,
                start_time=cursor,
                end_time=cursor + duration,
                provenance=Provenance.SYNTHESIZED if synthesized else Provenance.IMPORTED,
                confidence=0.1 if synthesized else rng.uniform(0.5, 1.0),
            )
        )
        cursor += duration
    rng.shuffle(segments)
    return Itinerary(f"random-{size}", tuple(segments))


GAP_JUSTIFICATIONS = (DiagnosticKind.UNRESOLVED_GAP, DiagnosticKind.GAP_DISMISSED)
RERUN_CHANGES = {DiagnosticKind.TRANSFER_SYNTHESIZED, DiagnosticKind.STALE_TRANSFER_REMOVED}


@pytest.mark.parametrize("strategy", sorted(MATCHER_STRATEGIES))
@pytest.mark.parametrize("seed", range(40))
def test_random_itineraries_keep_invariants(strategy, seed, matching_config, synthesis_config):
    matcher = create_matcher(strategy, matching_config)
    service = ContinuityService(matcher=matcher, resolver=GapResolver(synthesis_config))
    rng = random.Random(seed)
    trip = _random_itinerary(rng, rng.randint(0, 12))

    result = service.repair(trip)
    segments = result.segments
    same = matcher.same_place

    imported = [s for s in segments if s.is_imported]
    expected = sorted((s for s in trip.segments if s.is_imported), key=lambda s: s.start_time)
    assert imported == expected
    assert all(any(s is t for t in trip.segments) for s in imported)

    justified = [d for d in result.diagnostics if d.kind in GAP_JUSTIFICATIONS]
    for prev, nxt in zip(segments, segments[1:]):
        assert prev.start_time <= nxt.start_time
        assert same(prev.end_location, nxt.start_location) or any(
            d.references(prev.segment_id, nxt.segment_id) for d in justified
        )
        assert not (prev.is_synthesized and nxt.is_synthesized)

    for index, segment in enumerate(segments):
        if segment.is_synthesized:
            assert 0 < index < len(segments) - 1
            assert not same(segments[index - 1].end_location, segments[index + 1].start_location)
            assert segment.confidence < min(s.confidence for s in imported)

    again = service.repair(Itinerary(trip.itinerary_id, segments))
    assert again.segments == segments
    assert not RERUN_CHANGES & {d.kind for d in again.diagnostics}


def test_service_builds_missing_collaborators(fuzzy_matcher):
    service = ContinuityService(matcher=fuzzy_matcher)
    assert service.detector is not None
    assert service.resolver is not None
    assert service.validator is not None
    assert service.classifier is not None
