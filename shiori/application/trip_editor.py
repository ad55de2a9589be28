"""
Trip Editor: pure mutation operations over a Trip.

Every operation takes the current Trip plus intent-specific arguments and
returns a new Trip with exactly that change applied. Sorting invariants are
re-established on every call:
- dates are unique and sorted ascending
- schedule days are sorted by date
- items within a day are sorted by start time (missing start time first)

Rejected intents (blank text, duplicate date, unknown id, index out of range)
are no-ops: the very same Trip object is returned, never an exception.
"""
import logging
from datetime import date as dt_date
from typing import Any, Callable, Optional, Union

from pydantic import ValidationError

from shiori.domain.models import (
    DaySchedule,
    Emergency,
    Hotel,
    ScheduleItem,
    Spot,
    TransportType,
    Trip,
    generate_id,
)

logger = logging.getLogger(__name__)


# camelCase wire name -> attribute name, e.g. "startTime" -> "start_time"
_ITEM_FIELD_ALIASES = {
    field.alias: name
    for name, field in ScheduleItem.model_fields.items()
    if field.alias
}


def _clean_text(text: Optional[str]) -> str:
    return (text or "").strip()


def _in_range(collection: list, index: int) -> bool:
    return 0 <= index < len(collection)


def _iso_date(value: Union[str, dt_date]) -> Optional[str]:
    """Normalize a date to YYYY-MM-DD, or None if it is not a calendar date."""
    if isinstance(value, dt_date):
        return value.isoformat()
    try:
        return dt_date.fromisoformat(_clean_text(value)).isoformat()
    except (TypeError, ValueError):
        logger.debug(f"Ignoring invalid date {value!r}")
        return None


def _sort_items(items: list[ScheduleItem]) -> list[ScheduleItem]:
    """Sort by start time; items without one compare as "" and come first."""
    return sorted(items, key=lambda item: item.start_time or "")


def _normalize_item_fields(fields: dict[str, Any]) -> dict[str, Any]:
    """Map camelCase keys to attribute names and drop ids and unknown keys."""
    normalized = {}
    for key, value in fields.items():
        name = _ITEM_FIELD_ALIASES.get(key, key)
        if name == "id" or name not in ScheduleItem.model_fields:
            continue
        normalized[name] = value
    return normalized


def _update_day(
    trip: Trip,
    day_id: str,
    transform: Callable[[DaySchedule], DaySchedule],
) -> Trip:
    """Apply transform to the day with day_id; no-op if the day is unknown or unchanged."""
    for index, day in enumerate(trip.schedule):
        if day.id != day_id:
            continue
        updated = transform(day)
        if updated is day:
            return trip
        schedule = list(trip.schedule)
        schedule[index] = updated
        return trip.model_copy(update={"schedule": schedule})

    logger.debug(f"Day {day_id} not found, ignoring change")
    return trip


def _update_item(
    day: DaySchedule,
    item_id: str,
    transform: Callable[[ScheduleItem], ScheduleItem],
    resort: bool = False,
) -> DaySchedule:
    for index, item in enumerate(day.items):
        if item.id != item_id:
            continue
        updated = transform(item)
        if updated is item:
            return day
        items = list(day.items)
        items[index] = updated
        if resort:
            items = _sort_items(items)
        return day.model_copy(update={"items": items})

    logger.debug(f"Item {item_id} not found in day {day.id}, ignoring change")
    return day


# === Title ===

def update_title(trip: Trip, title: str) -> Trip:
    """Replace the trip title."""
    return trip.model_copy(update={"title": _clean_text(title)})


# === Dates (legacy) ===

def add_date(trip: Trip, date: Union[str, dt_date]) -> Trip:
    """Insert a date and keep the list sorted; duplicates and non-dates are ignored."""
    iso_date = _iso_date(date)
    if not iso_date or iso_date in trip.dates:
        return trip
    return trip.model_copy(update={"dates": sorted([*trip.dates, iso_date])})


def remove_date(trip: Trip, date: Union[str, dt_date]) -> Trip:
    iso_date = _iso_date(date)
    if iso_date not in trip.dates:
        return trip
    return trip.model_copy(update={"dates": [d for d in trip.dates if d != iso_date]})


# === Spots (legacy) ===

def add_spot(trip: Trip, spot: Spot) -> Trip:
    return trip.model_copy(update={"spots": [*trip.spots, spot]})


def remove_spot(trip: Trip, index: int) -> Trip:
    if not _in_range(trip.spots, index):
        return trip
    return trip.model_copy(update={"spots": [s for i, s in enumerate(trip.spots) if i != index]})


# === Todo and packing lists ===

def add_todo(trip: Trip, text: str) -> Trip:
    """Append a to-do entry; blank text is ignored."""
    text = _clean_text(text)
    if not text:
        return trip
    return trip.model_copy(update={"todos": [*trip.todos, text]})


def remove_todo(trip: Trip, index: int) -> Trip:
    if not _in_range(trip.todos, index):
        return trip
    return trip.model_copy(update={"todos": [t for i, t in enumerate(trip.todos) if i != index]})


def add_item(trip: Trip, text: str) -> Trip:
    """Append a packing list entry; blank text is ignored."""
    text = _clean_text(text)
    if not text:
        return trip
    return trip.model_copy(update={"items": [*trip.items, text]})


def remove_item(trip: Trip, index: int) -> Trip:
    if not _in_range(trip.items, index):
        return trip
    return trip.model_copy(update={"items": [t for i, t in enumerate(trip.items) if i != index]})


# === Hotels ===
# Hotels and emergency contacts carry no ids on the wire, so they are
# addressed by position. An index captured before another edit may point at
# a different record afterwards.

def _is_complete_hotel(hotel: Hotel) -> bool:
    return bool(hotel.name and hotel.address)


def add_hotel(trip: Trip, hotel: Hotel) -> Trip:
    if not _is_complete_hotel(hotel):
        return trip
    return trip.model_copy(update={"hotels": [*trip.hotels, hotel]})


def update_hotel(trip: Trip, index: int, hotel: Hotel) -> Trip:
    if not _in_range(trip.hotels, index) or not _is_complete_hotel(hotel):
        return trip
    hotels = list(trip.hotels)
    hotels[index] = hotel
    return trip.model_copy(update={"hotels": hotels})


def remove_hotel(trip: Trip, index: int) -> Trip:
    if not _in_range(trip.hotels, index):
        return trip
    return trip.model_copy(update={"hotels": [h for i, h in enumerate(trip.hotels) if i != index]})


# === Emergency contacts ===

def _is_complete_emergency(emergency: Emergency) -> bool:
    return bool(emergency.name and emergency.phone)


def add_emergency(trip: Trip, emergency: Emergency) -> Trip:
    if not _is_complete_emergency(emergency):
        return trip
    return trip.model_copy(update={"emergencies": [*trip.emergencies, emergency]})


def update_emergency(trip: Trip, index: int, emergency: Emergency) -> Trip:
    if not _in_range(trip.emergencies, index) or not _is_complete_emergency(emergency):
        return trip
    emergencies = list(trip.emergencies)
    emergencies[index] = emergency
    return trip.model_copy(update={"emergencies": emergencies})


def remove_emergency(trip: Trip, index: int) -> Trip:
    if not _in_range(trip.emergencies, index):
        return trip
    return trip.model_copy(
        update={"emergencies": [e for i, e in enumerate(trip.emergencies) if i != index]}
    )


# === Schedule ===

def add_day_schedule(trip: Trip, date: Union[str, dt_date]) -> Trip:
    """
    Add an empty day for the given date.

    Args:
        trip: Current trip
        date: Calendar date (YYYY-MM-DD or datetime.date)

    Returns:
        Trip with the new day, schedule re-sorted by date. Unchanged if the
        date is not a valid calendar date or a day for it already exists.
    """
    iso_date = _iso_date(date)
    if not iso_date or any(day.date == iso_date for day in trip.schedule):
        return trip

    new_day = DaySchedule(id=generate_id(), date=iso_date, items=[])
    schedule = sorted([*trip.schedule, new_day], key=lambda day: day.date)
    return trip.model_copy(update={"schedule": schedule})


def remove_day_schedule(trip: Trip, day_id: str) -> Trip:
    if not any(day.id == day_id for day in trip.schedule):
        return trip
    return trip.model_copy(update={"schedule": [day for day in trip.schedule if day.id != day_id]})


def add_schedule_item(trip: Trip, day_id: str, title: str, **fields: Any) -> Trip:
    """
    Append an activity to a day and re-sort the day by start time.

    Args:
        trip: Current trip
        day_id: Target day id
        title: Activity title (required, stripped)
        **fields: Optional item fields, snake_case or camelCase
            (spot, start_time, end_time, memo, transport_to_next)

    Returns:
        Updated trip. Unchanged for an unknown day, a blank title or invalid
        field values.
    """
    title = _clean_text(title)
    if not title:
        return trip
    item_fields = _normalize_item_fields(fields)
    item_fields.pop("title", None)

    def append(day: DaySchedule) -> DaySchedule:
        try:
            item = ScheduleItem(id=generate_id(), title=title, **item_fields)
        except ValidationError as e:
            logger.warning(f"Rejected schedule item for day {day_id}: {e.error_count()} invalid field(s)")
            return day
        return day.model_copy(update={"items": _sort_items([*day.items, item])})

    return _update_day(trip, day_id, append)


def update_schedule_item(trip: Trip, day_id: str, item_id: str, updates: dict[str, Any]) -> Trip:
    """
    Merge partial fields into an activity. The item id never changes.

    Keys may be attribute names or wire names; a None value clears an optional
    field. The day is re-sorted since the start time may have moved.
    """
    changes = _normalize_item_fields(updates)
    if not changes:
        return trip

    def merge(item: ScheduleItem) -> ScheduleItem:
        try:
            updated = ScheduleItem.model_validate({**item.model_dump(), **changes})
        except ValidationError as e:
            logger.warning(f"Rejected update for item {item_id}: {e.error_count()} invalid field(s)")
            return item
        if not updated.title:
            return item
        return updated

    return _update_day(trip, day_id, lambda day: _update_item(day, item_id, merge, resort=True))


def remove_schedule_item(trip: Trip, day_id: str, item_id: str) -> Trip:
    def remove(day: DaySchedule) -> DaySchedule:
        if not any(item.id == item_id for item in day.items):
            return day
        return day.model_copy(update={"items": [item for item in day.items if item.id != item_id]})

    return _update_day(trip, day_id, remove)


def update_transport_to_next(
    trip: Trip,
    day_id: str,
    item_id: str,
    transport: Optional[Union[TransportType, str]],
) -> Trip:
    """
    Set or clear (None) the transport from one item to the next.

    An unknown transport name is rejected like any other invalid item field:
    the trip is returned unchanged.
    """
    try:
        transport_type = TransportType(transport) if transport is not None else None
    except ValueError:
        logger.warning(f"Rejected transport {transport!r} for item {item_id}")
        return trip

    def set_transport(item: ScheduleItem) -> ScheduleItem:
        return item.model_copy(update={"transport_to_next": transport_type})

    return _update_day(trip, day_id, lambda day: _update_item(day, item_id, set_transport))
