"""Weather service running the background refresh cycle."""
import logging
import queue
import threading
from dataclasses import replace
from enum import Enum
from typing import List, Optional

from weather_events import (
    EventChannel,
    Refreshed,
    RefreshFailed,
    Refreshing,
    SettingsUpdated,
)
from weather_settings import Settings, SettingsField
from weather_data import FormattedDay, GeoInfo, Weather
from weather_provider import ForecastProviderBase, GeoResolverBase, WeatherProviderError

_STOP = object()
_REFRESH = object()


class RefreshState(Enum):
    IDLE = "idle"
    REFRESHING = "refreshing"
    FAILED_RETRYING = "failed_retrying"


class WeatherService:
    """
    Owns the forecast for the caller's IP-derived location.

    A single worker thread performs every network call. request_refresh()
    only queues work, so callers never block. Failed attempts are retried
    after a fixed delay until one succeeds or the service is stopped; data
    from the last successful refresh stays published in the meantime.
    """

    def __init__(
        self,
        resolver: GeoResolverBase,
        provider: ForecastProviderBase,
        settings: Optional[Settings] = None,
        retry_delay_seconds: float = 5.0,
        channel: Optional[EventChannel] = None,
    ):
        """
        Initialize weather service.

        Args:
            resolver: Public IP and geolocation provider
            provider: Forecast provider
            settings: Initial display settings
            retry_delay_seconds: Delay between failed attempts
            channel: Notification channel (a new one is created if omitted)
        """
        self.resolver = resolver
        self.provider = provider
        self.retry_delay_seconds = retry_delay_seconds
        self.channel = channel or EventChannel()

        self._settings = settings or Settings()
        self._settings_lock = threading.Lock()

        self._state_lock = threading.Lock()
        # Keeps REFRESHING ahead of the REFRESHED that clears the same request
        self._publish_order = threading.RLock()
        self._state = RefreshState.IDLE
        self._pending = False
        self._geo: Optional[GeoInfo] = None
        self._weathers: List[Weather] = []

        self._requests: "queue.Queue[object]" = queue.Queue()
        self._stop = threading.Event()
        self._worker: Optional[threading.Thread] = None

    def start(self) -> None:
        if self._worker and self._worker.is_alive():
            return
        self._stop.clear()
        self._drain_requests()
        with self._state_lock:
            requeue = self._pending
        if requeue:
            # Requested before start: serve it once the worker is up
            self._requests.put(_REFRESH)
        self._worker = threading.Thread(target=self._worker_loop, name="weather-refresh", daemon=True)
        self._worker.start()
        logging.info("Weather refresh worker started")

    def stop(self, timeout: float = 2.0) -> None:
        self._stop.set()
        self._requests.put(_STOP)
        if self._worker:
            self._worker.join(timeout=timeout)
            if self._worker.is_alive():
                logging.warning(f"Refresh worker still running after {timeout}s")
            else:
                logging.info("Weather refresh worker stopped")

    @property
    def settings(self) -> Settings:
        with self._settings_lock:
            return replace(self._settings)

    @property
    def weathers(self) -> List[Weather]:
        with self._state_lock:
            return list(self._weathers)

    @property
    def geo(self) -> Optional[GeoInfo]:
        with self._state_lock:
            return self._geo

    @property
    def state(self) -> RefreshState:
        with self._state_lock:
            return self._state

    def formatted_days(self) -> List[FormattedDay]:
        """Render every day with the current settings."""
        settings = self.settings
        return [weather.formatted(settings) for weather in self.weathers]

    def request_refresh(self) -> bool:
        """
        Ask the worker to refresh the forecast.

        Returns:
            bool: False if a refresh was already pending
        """
        with self._publish_order:
            with self._state_lock:
                if self._pending:
                    logging.debug("Refresh already pending, request ignored")
                    return False
                self._pending = True
                self._state = RefreshState.REFRESHING
            self.channel.publish(Refreshing())
        logging.info("Refreshing weather data")
        self._requests.put(_REFRESH)
        return True

    def _drain_requests(self) -> None:
        """Discard leftover requests and stop sentinels from a previous run."""
        while True:
            try:
                self._requests.get_nowait()
            except queue.Empty:
                return

    def _worker_loop(self) -> None:
        try:
            while not self._stop.is_set():
                item = self._requests.get()
                if item is _STOP:
                    break
                self.run_refresh_cycle()
        finally:
            with self._state_lock:
                self._pending = False
                self._state = RefreshState.IDLE

    def run_refresh_cycle(self) -> bool:
        """
        Refresh until an attempt succeeds.

        Returns:
            bool: True on success, False if stopped while retrying
        """
        attempt = 0
        while not self._stop.is_set():
            attempt += 1
            try:
                logging.debug(f"Refresh attempt {attempt}")
                geo = self.resolver.resolve()
                url = self.provider.build_forecast_url(geo.lon, geo.lat)
                weathers = self.provider.fetch_forecast(url)
            except WeatherProviderError as e:
                logging.error(f"Refresh attempt {attempt} failed: {e}")
                error = e
            except Exception as e:
                logging.exception(f"Unexpected error in refresh attempt {attempt}")
                error = e
            else:
                error = None

            if error is not None:
                with self._state_lock:
                    self._state = RefreshState.FAILED_RETRYING
                self.channel.publish(RefreshFailed(attempt=attempt, error=error))
                logging.info(f"Retrying in {self.retry_delay_seconds} seconds")
                if self._wait(self.retry_delay_seconds):
                    break
                continue

            with self._publish_order:
                with self._state_lock:
                    self._geo = geo
                    self._weathers = weathers
                    self._pending = False
                    self._state = RefreshState.IDLE
                self.channel.publish(Refreshed(geo=geo))
            logging.info(f"Weather refreshed for {geo.city}, {geo.country}: {len(weathers)} days from {url}")
            return True

        logging.info("Refresh abandoned: service stopping")
        with self._state_lock:
            self._pending = False
            self._state = RefreshState.IDLE
        return False

    def _wait(self, seconds: float) -> bool:
        """Sleep between attempts; returns True if the service was stopped."""
        return self._stop.wait(seconds)

    def toggle_metric(self) -> bool:
        return self._toggle(SettingsField.METRIC)

    def toggle_precision(self) -> bool:
        return self._toggle(SettingsField.PRECISION)

    def toggle_theme(self) -> bool:
        return self._toggle(SettingsField.DARK_MODE)

    def _toggle(self, field: SettingsField) -> bool:
        with self._settings_lock:
            new_value = self._settings.toggle(field)
        logging.info(f"Setting {field.value} changed to {new_value}")
        self.channel.publish(SettingsUpdated(field=field, old_value=not new_value, new_value=new_value))
        return new_value
