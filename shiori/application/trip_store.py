"""
Trip Store: holds the current Trip and keeps it in sync with the URL.

The store loads the trip from the location exactly once (activate) and
rewrites the data parameter after every state change from then on. Nothing
is written before the initial load, so an empty default trip can never
overwrite a link that already carries data.
"""
import logging
from typing import Any, Callable, Optional

from shiori.config import settings, Settings
from shiori.domain.models import Trip, create_empty_trip
from shiori.infrastructure.location import Location
from shiori.infrastructure.url_codec import (
    generate_share_url,
    get_trip_from_url,
    update_url_with_trip,
)

logger = logging.getLogger(__name__)

TripListener = Callable[[Trip], None]


class TripStore:
    """
    Single owner of the in-memory Trip for one page.

    Usage:
        store = TripStore(location)
        store.activate()
        store.dispatch(trip_editor.add_date, "2024-07-01")
    """

    def __init__(
        self,
        location: Location,
        app_settings: Optional[Settings] = None,
    ):
        """
        Initialize the store with the default empty trip.

        Args:
            location: Current page location to read from and write to
            app_settings: Settings override (for testing)
        """
        self._location = location
        self._settings = app_settings or settings
        self._trip = create_empty_trip(self._settings.default_trip_title)
        self._initialized = False
        self._listeners: list[TripListener] = []

    @property
    def trip(self) -> Trip:
        return self._trip

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    def subscribe(self, listener: TripListener) -> Callable[[], None]:
        """
        Register a listener called with the new Trip after every state change.

        Returns:
            Function that removes the listener again
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def activate(self) -> Trip:
        """
        Load the trip from the location. Runs once; later calls do nothing.

        If the loaded trip equals the one already in memory, the state is
        left untouched and listeners are not notified.
        """
        if self._initialized:
            return self._trip

        loaded = get_trip_from_url(self._location, self._settings)
        if loaded != self._trip:
            self._set_trip(loaded)
        self._initialized = True
        logger.info(
            f"Trip store activated: '{self._trip.title}' with "
            f"{len(self._trip.schedule)} day(s)"
        )
        return self._trip

    def dispatch(self, operation: Callable[..., Trip], *args: Any, **kwargs: Any) -> Trip:
        """
        Apply a mutation operation to the current trip.

        Args:
            operation: Function taking the current Trip first and returning a Trip
            *args, **kwargs: Remaining operation arguments

        Returns:
            The current Trip after the operation
        """
        updated = operation(self._trip, *args, **kwargs)
        if updated == self._trip:
            return self._trip

        # Save before notifying; a listener error must not leave the URL stale
        self._trip = updated
        if self._initialized:
            update_url_with_trip(self._location, self._trip, self._settings)
        self._notify()
        return self._trip

    def share_url(self, origin: Optional[str] = None) -> str:
        """Build a shareable URL for the current trip."""
        return generate_share_url(self._trip, origin, self._settings)

    def _set_trip(self, trip: Trip) -> None:
        self._trip = trip
        self._notify()

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self._trip)
