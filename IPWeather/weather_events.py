"""Change notifications published by the refresh service."""
import logging
import threading
from dataclasses import dataclass
from typing import Callable, ClassVar, List, Union

from weather_settings import SettingsField
from weather_data import GeoInfo


@dataclass(frozen=True)
class Refreshing:
    """A refresh was requested and is now in progress."""
    name: ClassVar[str] = "REFRESHING"


@dataclass(frozen=True)
class Refreshed:
    """A refresh completed; new forecast data is available."""
    geo: GeoInfo
    name: ClassVar[str] = "REFRESHED"


@dataclass(frozen=True)
class SettingsUpdated:
    """One display setting was toggled; formatted values must be re-rendered."""
    field: SettingsField
    old_value: bool
    new_value: bool
    name: ClassVar[str] = "SETTINGS_UPDATED"


@dataclass(frozen=True)
class RefreshFailed:
    """A refresh attempt failed and will be retried."""
    attempt: int
    error: Exception
    name: ClassVar[str] = "REFRESH_FAILED"


Event = Union[Refreshing, Refreshed, SettingsUpdated, RefreshFailed]
Listener = Callable[[Event], None]


class EventChannel:
    """
    Broadcasts events to subscribed listeners.

    Publishing holds a lock for the whole delivery, so events published from
    different threads reach each listener one at a time in publish order.
    """

    def __init__(self):
        self._listeners: List[Listener] = []
        self._listeners_lock = threading.Lock()
        self._publish_lock = threading.RLock()

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """
        Add a listener.

        Returns:
            Callable that removes the listener again
        """
        with self._listeners_lock:
            self._listeners.append(listener)
        logging.debug(f"Listener subscribed: {listener!r}")
        return lambda: self.unsubscribe(listener)

    def unsubscribe(self, listener: Listener) -> None:
        with self._listeners_lock:
            if listener in self._listeners:
                self._listeners.remove(listener)
                logging.debug(f"Listener unsubscribed: {listener!r}")

    def publish(self, event: Event) -> None:
        with self._publish_lock:
            with self._listeners_lock:
                listeners = list(self._listeners)
            logging.debug(f"Publishing {event.name} to {len(listeners)} listener(s)")
            for listener in listeners:
                try:
                    listener(event)
                except Exception:
                    # One failing listener must not starve the others
                    logging.exception(f"Listener {listener!r} failed on {event.name}")
