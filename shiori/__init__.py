"""
Shiori: a trip planner whose whole state lives in a shareable URL.

Provides the trip model, pure mutation operations, the lz-string URL codec,
and a store that keeps the in-memory trip in sync with the current location.
"""
from shiori.domain.models import (
    Trip,
    DaySchedule,
    ScheduleItem,
    Spot,
    Hotel,
    Emergency,
    TransportType,
    TRANSPORT_ICONS,
    TRANSPORT_LABELS,
    create_empty_trip,
    generate_id,
)
from shiori.infrastructure.url_codec import (
    encode_trip,
    decode_trip,
    validate_trip_payload,
    generate_share_url,
)
from shiori.infrastructure.location import Location, InMemoryLocation
from shiori.application.trip_store import TripStore

__all__ = [
    # Models
    "Trip",
    "DaySchedule",
    "ScheduleItem",
    "Spot",
    "Hotel",
    "Emergency",
    "TransportType",
    "TRANSPORT_ICONS",
    "TRANSPORT_LABELS",
    "create_empty_trip",
    "generate_id",
    # Codec
    "encode_trip",
    "decode_trip",
    "validate_trip_payload",
    "generate_share_url",
    # Persistence
    "Location",
    "InMemoryLocation",
    "TripStore",
]
