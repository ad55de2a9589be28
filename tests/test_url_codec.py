"""
Tests for the trip URL codec.
"""
import json
import string

import pytest
from lzstring import LZString

from shiori.application import trip_editor
from shiori.config import Settings
from shiori.domain.models import Emergency, Hotel, Spot, Trip, create_empty_trip
from shiori.infrastructure.location import InMemoryLocation
from shiori.infrastructure.url_codec import (
    decode_trip,
    encode_trip,
    generate_share_url,
    get_trip_from_url,
    update_url_with_trip,
    validate_trip_payload,
)

URI_SAFE_ALPHABET = set(string.ascii_letters + string.digits + "+-$")


def compress_payload(payload) -> str:
    """Compress an arbitrary JSON payload the way the browser app does."""
    return LZString().compressToEncodedURIComponent(json.dumps(payload))


def create_unserializable_trip() -> Trip:
    """Create a trip holding a circular reference, which JSON cannot represent."""
    circular = []
    circular.append(circular)
    return create_empty_trip().model_copy(update={"todos": circular})


def create_full_trip() -> Trip:
    """Create a trip touching every collection and optional field."""
    spot = Spot(name="Kiyomizu-dera", lat=34.9949, lng=135.785, place_id="ChIJ-kiyomizu")
    trip = trip_editor.update_title(create_empty_trip(), "京都 2024")
    trip = trip_editor.add_date(trip, "2024-07-02")
    trip = trip_editor.add_date(trip, "2024-07-01")
    trip = trip_editor.add_day_schedule(trip, "2024-07-01")
    trip = trip_editor.add_day_schedule(trip, "2024-07-02")
    day_id = trip.schedule[0].id
    trip = trip_editor.add_schedule_item(
        trip, day_id, "Temple", spot=spot, start_time="09:00", end_time="11:00", memo="Bring cash"
    )
    trip = trip_editor.add_schedule_item(trip, day_id, "Free time")
    temple_id = trip.schedule[0].items[1].id
    trip = trip_editor.update_transport_to_next(trip, day_id, temple_id, "bus")
    trip = trip_editor.add_spot(trip, spot)
    trip = trip_editor.add_todo(trip, "Matcha")
    trip = trip_editor.add_item(trip, "Sunscreen")
    trip = trip_editor.add_hotel(trip, Hotel(name="Ryokan", address="Gion", lat=35.0, lng=135.77))
    trip = trip_editor.add_hotel(trip, Hotel(name="Hostel", address="Kyoto Station"))
    trip = trip_editor.add_emergency(trip, Emergency(name="Police", phone="110", memo="Japan"))
    return trip


class TestRoundTrip:
    """Tests for encode/decode round trips."""

    def test_empty_trip_round_trips(self):
        trip = create_empty_trip()

        assert decode_trip(encode_trip(trip)) == trip

    def test_full_trip_round_trips(self):
        """Nested optional fields and non-ASCII text survive a round trip."""
        trip = create_full_trip()

        decoded = decode_trip(encode_trip(trip))

        assert decoded == trip
        assert decoded.schedule[0].items[1].spot.place_id == "ChIJ-kiyomizu"
        assert decoded.schedule[1].items == []

    def test_emoji_round_trip(self):
        """Characters outside the BMP are encoded as surrogate pairs and restored."""
        trip = trip_editor.update_title(create_empty_trip(), "Beach 🏖️ trip 😎")
        trip = trip_editor.add_todo(trip, "Surf 🏄")

        assert decode_trip(encode_trip(trip)) == trip

    def test_encoding_is_deterministic(self):
        trip = create_full_trip()

        assert encode_trip(trip) == encode_trip(trip)

    def test_encoding_uses_uri_safe_alphabet(self):
        encoded = encode_trip(create_full_trip())

        assert encoded
        assert set(encoded) <= URI_SAFE_ALPHABET


class TestWireFormat:
    """Tests for the JSON carried inside the compressed string."""

    def test_json_uses_camel_case_and_omits_unset_fields(self):
        trip = create_full_trip()

        payload = json.loads(LZString().decompressFromEncodedURIComponent(encode_trip(trip)))

        item = payload["schedule"][0]["items"][1]
        assert item["startTime"] == "09:00"
        assert item["transportToNext"] == "bus"
        assert item["spot"]["placeId"] == "ChIJ-kiyomizu"
        assert "memo" not in payload["hotels"][0]
        assert "lat" not in payload["hotels"][1]
        assert list(payload) == [
            "title", "dates", "schedule", "spots", "todos", "items", "hotels", "emergencies",
        ]

    def test_encode_failure_returns_empty_string(self):
        """A circular reference makes encoding fail without raising."""
        trip = create_unserializable_trip()

        assert encode_trip(trip) == ""


class TestDecodeFailures:
    """Tests for graceful decode failures."""

    @pytest.mark.parametrize("data", ["", None, "not-valid-compressed-data", "!!!%%%"])
    def test_garbage_returns_none(self, data):
        assert decode_trip(data) is None

    def test_trailing_garbage_returns_none(self):
        encoded = encode_trip(create_full_trip())

        assert decode_trip(encoded + "corruption") is None

    def test_truncated_data_returns_none(self):
        encoded = encode_trip(create_full_trip())

        assert decode_trip(encoded[: len(encoded) // 2]) is None

    def test_non_json_returns_none(self):
        data = LZString().compressToEncodedURIComponent("this is not json")

        assert decode_trip(data) is None

    def test_wrong_shape_returns_none(self):
        payload = create_empty_trip().model_dump(by_alias=True)
        payload["todos"] = "pack"

        assert decode_trip(compress_payload(payload)) is None

    def test_deeply_nested_json_returns_none(self):
        """A short link can expand into JSON nested past the recursion limit."""
        data = LZString().compressToEncodedURIComponent("[" * 100000)

        assert decode_trip(data) is None

    def test_deeply_nested_json_gives_empty_trip(self):
        data = LZString().compressToEncodedURIComponent("[" * 100000)
        location = InMemoryLocation("https://trip.example/?data=" + data)

        assert get_trip_from_url(location) == create_empty_trip()

    def test_spaces_are_read_as_plus(self):
        """Form-decoded query strings turn "+" into spaces."""
        encoded = encode_trip(create_full_trip())

        assert decode_trip(encoded.replace("+", " ")) == decode_trip(encoded)


class TestBackwardCompatibility:
    """Tests for payloads written by older versions."""

    def test_missing_schedule_defaults_to_empty(self):
        legacy = {
            "title": "Old trip",
            "dates": ["2023-01-01"],
            "spots": [{"name": "Park", "lat": 1.0, "lng": 2.0, "placeId": "p"}],
            "todos": ["Walk"],
            "items": [],
            "hotels": [],
            "emergencies": [],
        }

        trip = decode_trip(compress_payload(legacy))

        assert trip is not None
        assert trip.schedule == []
        assert trip.spots[0].place_id == "p"

    def test_malformed_elements_are_dropped(self):
        """Malformed nested entries degrade the trip instead of failing the decode."""
        payload = {
            "title": "Partly broken",
            "dates": ["2024-01-01", 5],
            "schedule": [{"id": "d1", "date": "2024-01-01", "items": []}, {"oops": True}],
            "spots": [],
            "todos": ["ok"],
            "items": [],
            "hotels": [{"name": "Inn", "address": "Street"}, 42],
            "emergencies": [],
        }

        trip = decode_trip(compress_payload(payload))

        assert trip.dates == ["2024-01-01"]
        assert [d.id for d in trip.schedule] == ["d1"]
        assert [h.name for h in trip.hotels] == ["Inn"]
        assert trip.todos == ["ok"]

    def test_malformed_item_keeps_rest_of_day(self):
        """A bad schedule item, e.g. an unknown transport, drops only that item."""
        payload = {
            "title": "Newer client",
            "dates": [],
            "schedule": [
                {
                    "id": "d1",
                    "date": "2024-07-01",
                    "items": [
                        {"id": "a", "title": "ok"},
                        {"id": "b", "title": "Launch", "transportToNext": "rocket"},
                        {"id": "c", "title": "Dinner", "startTime": "19:00"},
                    ],
                },
            ],
            "spots": [],
            "todos": [],
            "items": [],
            "hotels": [],
            "emergencies": [],
        }

        trip = decode_trip(compress_payload(payload))

        assert [d.id for d in trip.schedule] == ["d1"]
        assert [item.id for item in trip.schedule[0].items] == ["a", "c"]
        assert trip.schedule[0].items[1].start_time == "19:00"


class TestValidateTripPayload:
    """Tests for top-level shape validation."""

    def test_valid_payload(self):
        assert validate_trip_payload(create_empty_trip().model_dump(by_alias=True))

    def test_schedule_is_optional(self):
        payload = create_empty_trip().model_dump(by_alias=True)
        del payload["schedule"]

        assert validate_trip_payload(payload)

    def test_non_list_schedule_is_rejected(self):
        payload = create_empty_trip().model_dump(by_alias=True)
        payload["schedule"] = "monday"

        assert not validate_trip_payload(payload)

    @pytest.mark.parametrize("field", ["dates", "spots", "todos", "items", "hotels", "emergencies"])
    def test_missing_required_list_is_rejected(self, field):
        payload = create_empty_trip().model_dump(by_alias=True)
        del payload[field]

        assert not validate_trip_payload(payload)

    def test_non_string_title_is_rejected(self):
        payload = create_empty_trip().model_dump(by_alias=True)
        payload["title"] = 7

        assert not validate_trip_payload(payload)

    def test_non_dict_is_rejected(self):
        assert not validate_trip_payload([])


class TestUrlHelpers:
    """Tests for reading and writing the data query parameter."""

    def test_missing_parameter_gives_empty_trip(self):
        location = InMemoryLocation("https://trip.example/")

        assert get_trip_from_url(location) == create_empty_trip()

    def test_garbage_parameter_gives_empty_trip(self):
        location = InMemoryLocation("https://trip.example/?data=not-valid-compressed-data")

        assert get_trip_from_url(location) == create_empty_trip()

    def test_write_then_read(self):
        trip = create_full_trip()
        location = InMemoryLocation("https://trip.example/plan?lang=ja")

        assert update_url_with_trip(location, trip)

        assert location.replace_count == 1
        assert "lang=ja" in location.href
        assert location.href.startswith("https://trip.example/plan?")
        assert get_trip_from_url(location) == trip

    def test_write_skipped_when_encoding_fails(self):
        trip = create_unserializable_trip()
        location = InMemoryLocation("https://trip.example/")

        assert not update_url_with_trip(location, trip)
        assert location.replace_count == 0
        assert location.href == "https://trip.example/"

    def test_custom_parameter_name(self):
        app_settings = Settings(url_data_param="t")
        trip = create_full_trip()
        location = InMemoryLocation("https://trip.example/")

        update_url_with_trip(location, trip, app_settings)

        assert "t=" in location.href
        assert get_trip_from_url(location, app_settings) == trip


class TestShareUrl:
    """Tests for share URL generation."""

    def test_share_url_round_trips(self):
        trip = create_full_trip()

        url = generate_share_url(trip, "https://trip.example")

        assert url.startswith("https://trip.example/?data=")
        assert get_trip_from_url(InMemoryLocation(url)) == trip

    def test_share_url_drops_path_and_query(self):
        url = generate_share_url(create_empty_trip(), "https://trip.example/some/page?x=1")

        assert url.startswith("https://trip.example/?data=")
        assert "x=1" not in url

    def test_share_url_defaults_to_configured_origin(self):
        app_settings = Settings(share_origin="https://shiori.example")

        url = generate_share_url(create_empty_trip(), app_settings=app_settings)

        assert url.startswith("https://shiori.example/?data=")

    def test_share_url_falls_back_to_origin(self):
        trip = create_unserializable_trip()

        assert generate_share_url(trip, "https://trip.example") == "https://trip.example"
