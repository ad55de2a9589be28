"""
URL codec for trips.

Serializes a Trip to compact JSON and compresses it with lz-string into the
URI-safe alphabet (A-Z a-z 0-9 + - $), so the whole trip fits in a single
query parameter. The JSON layout matches what the browser app produces with
JSON.stringify, so links stay interchangeable.
"""
import json
import logging
from typing import Any, Optional

import httpx
from lzstring import LZString
from pydantic import TypeAdapter, ValidationError

from shiori.config import settings, Settings
from shiori.domain.models import (
    DaySchedule,
    Emergency,
    Hotel,
    ScheduleItem,
    Spot,
    Trip,
    create_empty_trip,
)
from shiori.infrastructure.location import Location

logger = logging.getLogger(__name__)

_lz = LZString()

# Top-level lists every encoded trip has carried since the first release
REQUIRED_LIST_FIELDS = ("dates", "spots", "todos", "items", "hotels", "emergencies")

# Fields added later, with the value used when an older link lacks them
LEGACY_FIELD_DEFAULTS = {
    "schedule": list,
}

# Per-element validators used to salvage a payload with malformed entries
_ELEMENT_ADAPTERS: dict[str, TypeAdapter] = {
    "dates": TypeAdapter(str),
    "schedule": TypeAdapter(DaySchedule),
    "spots": TypeAdapter(Spot),
    "todos": TypeAdapter(str),
    "items": TypeAdapter(str),
    "hotels": TypeAdapter(Hotel),
    "emergencies": TypeAdapter(Emergency),
}
_ITEM_ADAPTER = TypeAdapter(ScheduleItem)


def _to_utf16_units(text: str) -> str:
    """Split astral characters into surrogate pairs, as JavaScript strings hold them."""
    raw = text.encode("utf-16-le", "surrogatepass")
    return "".join(
        chr(int.from_bytes(raw[i:i + 2], "little")) for i in range(0, len(raw), 2)
    )


def _from_utf16_units(text: str) -> str:
    """Join surrogate pairs back into characters; lone surrogates raise UnicodeDecodeError."""
    return text.encode("utf-16-le", "surrogatepass").decode("utf-16-le")


def encode_trip(trip: Trip) -> str:
    """
    Encode a trip into a URL-safe compressed string.

    Pure: the same trip always yields the same string. Unset optional fields
    are omitted from the JSON.

    Args:
        trip: Trip to encode

    Returns:
        Compressed string, or "" if the trip could not be serialized.
        Logging the failure is left to the caller.
    """
    try:
        payload = trip.model_dump(mode="json", by_alias=True, exclude_none=True, warnings=False)
        json_string = json.dumps(payload, ensure_ascii=False, separators=(",", ":"), allow_nan=False)
        return _lz.compressToEncodedURIComponent(_to_utf16_units(json_string))
    except (TypeError, ValueError, RecursionError):
        return ""


def decode_trip(data: Optional[str]) -> Optional[Trip]:
    """
    Decode a compressed string from the URL back into a Trip.

    Args:
        data: Value of the data query parameter

    Returns:
        Decoded Trip, or None when the input is empty, corrupted, truncated,
        carries trailing garbage, is not JSON, or fails shape validation
    """
    if not data:
        return None

    # Form-encoded query strings turn "+" into a space
    compressed = data.replace(" ", "+")

    try:
        units = _lz.decompressFromEncodedURIComponent(compressed)
    except Exception as e:
        logger.warning(f"Failed to decompress trip data: {e!r}")
        return None

    if not units:
        logger.warning("Failed to decompress trip data")
        return None

    # lz-string stops at its end marker and ignores anything after it, so a
    # valid string must be exactly the compression of what it decodes to.
    if _lz.compressToEncodedURIComponent(units) != compressed:
        logger.warning("Trip data is not a canonical encoding, ignoring it")
        return None

    try:
        payload = json.loads(_from_utf16_units(units))
    except (ValueError, RecursionError) as e:
        logger.warning(f"Trip data is not valid JSON: {e}")
        return None

    if not validate_trip_payload(payload):
        logger.warning("Trip data failed validation")
        return None

    return _build_trip(payload)


def validate_trip_payload(payload: Any) -> bool:
    """
    Check the top-level shape of a decoded payload.

    Only presence and list-ness of the top-level fields is checked; nested
    elements are not inspected here. Fields listed in LEGACY_FIELD_DEFAULTS
    may be missing (or null) since older links predate them.
    """
    if not isinstance(payload, dict):
        return False
    if not isinstance(payload.get("title"), str):
        return False
    for name in REQUIRED_LIST_FIELDS:
        if not isinstance(payload.get(name), list):
            return False
    for name in LEGACY_FIELD_DEFAULTS:
        value = payload.get(name)
        if value is not None and not isinstance(value, list):
            return False
    return True


def _build_trip(payload: dict[str, Any]) -> Trip:
    """Build a Trip from a shape-valid payload, dropping malformed list elements."""
    fields = {name: payload.get(name) for name in Trip.model_fields}
    for name, default_factory in LEGACY_FIELD_DEFAULTS.items():
        if fields[name] is None:
            fields[name] = default_factory()

    try:
        return Trip.model_validate(fields)
    except ValidationError as e:
        logger.warning(f"Trip data has {e.error_count()} malformed value(s), salvaging valid entries")

    salvaged: dict[str, Any] = {"title": fields["title"]}
    for name, adapter in _ELEMENT_ADAPTERS.items():
        values = fields[name]
        if name == "schedule":
            values = [_salvage_day_items(day) for day in values]
        salvaged[name] = _salvage_elements(name, values, adapter)
    return Trip.model_validate(salvaged)


def _salvage_elements(name: str, values: list[Any], adapter: TypeAdapter) -> list[Any]:
    kept = []
    for value in values:
        try:
            kept.append(adapter.validate_python(value))
        except ValidationError:
            continue
    dropped = len(values) - len(kept)
    if dropped:
        logger.warning(f"Dropped {dropped} malformed entr{'y' if dropped == 1 else 'ies'} from {name}")
    return kept


def _salvage_day_items(day: Any) -> Any:
    """Drop malformed items from a day so one bad item does not cost the whole day."""
    if not isinstance(day, dict) or not isinstance(day.get("items"), list):
        return day
    items = _salvage_elements("schedule items", day["items"], _ITEM_ADAPTER)
    return {**day, "items": items}


def get_trip_from_url(location: Location, app_settings: Optional[Settings] = None) -> Trip:
    """
    Read the trip from the location's data parameter.

    Returns:
        Decoded Trip, or the default empty Trip when the parameter is absent
        or cannot be decoded
    """
    app_settings = app_settings or settings
    data = httpx.URL(location.href).params.get(app_settings.url_data_param)
    if not data:
        return create_empty_trip(app_settings.default_trip_title)

    trip = decode_trip(data)
    if trip is None:
        return create_empty_trip(app_settings.default_trip_title)
    return trip


def update_url_with_trip(
    location: Location,
    trip: Trip,
    app_settings: Optional[Settings] = None,
) -> bool:
    """
    Write the trip into the location's data parameter without navigating.

    Returns:
        True if the URL was replaced, False if encoding failed and the URL
        was left as it was
    """
    app_settings = app_settings or settings
    encoded = encode_trip(trip)
    if not encoded:
        logger.error("Failed to encode trip, URL not updated")
        return False

    url = httpx.URL(location.href).copy_set_param(app_settings.url_data_param, encoded)
    location.replace(str(url))
    return True


def generate_share_url(
    trip: Trip,
    origin: Optional[str] = None,
    app_settings: Optional[Settings] = None,
) -> str:
    """
    Build a full shareable URL (origin + data parameter) for a trip.

    Args:
        trip: Trip to share
        origin: Site origin, e.g. "https://example.com" (defaults to settings)

    Returns:
        Share URL, or the bare origin if the trip could not be encoded
    """
    app_settings = app_settings or settings
    origin = origin or app_settings.share_origin
    encoded = encode_trip(trip)
    if not encoded:
        return origin

    url = httpx.URL(origin).join("/").copy_set_param(app_settings.url_data_param, encoded)
    return str(url)
