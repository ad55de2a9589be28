"""
Core domain models for the Shiori trip planner.
All models use Pydantic v2 for type safety and validation.

A Trip is the unit of serialization: the whole object is encoded into the
URL, so changing these shapes changes the wire format as well.
"""
from enum import Enum
from typing import Optional
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from shiori.config import settings


class TripBaseModel(BaseModel):
    """
    Shared configuration for every trip entity.

    Attributes are snake_case in Python and camelCase on the wire, strings are
    stored stripped, and instances are immutable: state only changes through
    the mutation operations, which build new objects.
    """
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
        frozen=True,
        extra="ignore",
    )


class TransportType(str, Enum):
    """Mode of travel from one schedule item to the next."""
    WALK = "walk"
    CAR = "car"
    TRAIN = "train"
    BUS = "bus"
    PLANE = "plane"
    SHIP = "ship"
    BICYCLE = "bicycle"
    TAXI = "taxi"
    OTHER = "other"


TRANSPORT_ICONS: dict[TransportType, str] = {
    TransportType.WALK: "🚶",
    TransportType.CAR: "🚗",
    TransportType.TRAIN: "🚃",
    TransportType.BUS: "🚌",
    TransportType.PLANE: "✈️",
    TransportType.SHIP: "🚢",
    TransportType.BICYCLE: "🚴",
    TransportType.TAXI: "🚕",
    TransportType.OTHER: "➡️",
}

TRANSPORT_LABELS: dict[TransportType, str] = {
    TransportType.WALK: "Walk",
    TransportType.CAR: "Car",
    TransportType.TRAIN: "Train",
    TransportType.BUS: "Bus",
    TransportType.PLANE: "Plane",
    TransportType.SHIP: "Ship",
    TransportType.BICYCLE: "Bicycle",
    TransportType.TAXI: "Taxi",
    TransportType.OTHER: "Other",
}


class Spot(TripBaseModel):
    """A geocoded place, copied by value from the place lookup provider."""
    name: str = Field(description="Place name")
    lat: float = Field(allow_inf_nan=False, description="Latitude in degrees")
    lng: float = Field(allow_inf_nan=False, description="Longitude in degrees")
    place_id: str = Field(description="Provider-issued place identifier")


class ScheduleItem(TripBaseModel):
    """One activity within a day."""
    id: str = Field(description="Opaque unique token")
    title: str = Field(description="Spot name or custom label")
    spot: Optional[Spot] = Field(default=None, description="Attached place, if any")
    start_time: Optional[str] = Field(default=None, description="Start time (HH:MM)")
    end_time: Optional[str] = Field(default=None, description="End time (HH:MM)")
    memo: Optional[str] = Field(default=None, description="Free-form note")
    transport_to_next: Optional[TransportType] = Field(
        default=None,
        description="How to get to the following item of the same day"
    )


class DaySchedule(TripBaseModel):
    """One calendar day of the itinerary."""
    id: str = Field(description="Opaque unique token")
    date: str = Field(description="Calendar date (YYYY-MM-DD)")
    items: list[ScheduleItem] = Field(default_factory=list, description="Activities sorted by start time")


class Hotel(TripBaseModel):
    """Lodging information."""
    name: str = Field(description="Hotel name")
    address: str = Field(description="Street address")
    memo: Optional[str] = Field(default=None, description="Check-in time and similar notes")
    lat: Optional[float] = Field(default=None, allow_inf_nan=False, description="Latitude, for map display")
    lng: Optional[float] = Field(default=None, allow_inf_nan=False, description="Longitude, for map display")


class Emergency(TripBaseModel):
    """Emergency contact (local hospital, embassy, ...)."""
    name: str = Field(description="Contact name")
    phone: str = Field(description="Phone number")
    memo: Optional[str] = Field(default=None, description="Free-form note")


class Trip(TripBaseModel):
    """
    Root aggregate holding one shareable plan.
    This object is what gets encoded into the URL.
    """
    title: str = Field(description="Trip title")
    dates: list[str] = Field(default_factory=list, description="Trip dates (YYYY-MM-DD), legacy")
    schedule: list[DaySchedule] = Field(default_factory=list, description="Per-day schedule")
    spots: list[Spot] = Field(default_factory=list, description="Visited spots, legacy")
    todos: list[str] = Field(default_factory=list, description="Things to do")
    items: list[str] = Field(default_factory=list, description="Packing list")
    hotels: list[Hotel] = Field(default_factory=list, description="Lodging")
    emergencies: list[Emergency] = Field(default_factory=list, description="Emergency contacts")


def create_empty_trip(title: Optional[str] = None) -> Trip:
    """Create the default trip used when the URL carries no data."""
    return Trip(title=title if title is not None else settings.default_trip_title)


def generate_id() -> str:
    """Generate an opaque unique id for days and schedule items."""
    return str(uuid4())
