"""Provider abstractions - allows swapping the geo and forecast APIs."""
import logging
from abc import ABC, abstractmethod
from typing import Any, List

import requests

from weather_data import GeoInfo, Weather


class WeatherProviderError(Exception):
    """Exception raised when a provider fails."""
    pass


class NetworkError(WeatherProviderError):
    """Transport failure, timeout or non-success HTTP status."""
    pass


class ParseError(WeatherProviderError):
    """Malformed body or missing/ill-shaped fields."""
    pass


class GeoResolverBase(ABC):
    """Abstract base class for IP geolocation providers."""

    @abstractmethod
    def resolve_public_ip(self) -> str:
        """
        Discover the caller's public IP address.

        Raises:
            NetworkError: If the lookup service cannot be reached
            ParseError: If the response has no address
        """
        pass

    @abstractmethod
    def resolve_geo(self, ip_address: str) -> GeoInfo:
        """
        Look up location metadata for an IP address.

        Raises:
            NetworkError: If the lookup service cannot be reached
            ParseError: If required fields are missing or malformed
        """
        pass

    def resolve(self) -> GeoInfo:
        """Resolve the public IP and then its location."""
        return self.resolve_geo(self.resolve_public_ip())


class ForecastProviderBase(ABC):
    """Abstract base class for multi-day forecast providers."""

    @abstractmethod
    def build_forecast_url(self, lon: float, lat: float) -> str:
        pass

    @abstractmethod
    def fetch_forecast(self, url: str) -> List[Weather]:
        """
        Fetch and aggregate a forecast.

        Returns:
            List[Weather]: One entry per calendar day, earliest first

        Raises:
            NetworkError: If the request fails
            ParseError: If the payload cannot be parsed
        """
        pass


def fetch_json(url: str, timeout: float) -> Any:
    """
    GET a URL and decode its JSON body.

    Raises:
        NetworkError: On transport errors or non-2xx responses
        ParseError: If the body is not valid JSON
    """
    try:
        logging.info(f"Requesting {url}")
        response = requests.get(url, timeout=timeout)
    except requests.exceptions.RequestException as e:
        logging.error(f"Network error during request to {url}: {e}")
        raise NetworkError(f"Network error: {e}") from e

    logging.info(f"Response status: {response.status_code}")
    if not response.ok:
        logging.error(f"Request failed with status {response.status_code}: {response.text[:200]}")
        raise NetworkError(f"HTTP {response.status_code} from {url}")

    try:
        return response.json()
    except ValueError as e:
        logging.error(f"Non-JSON response from {url}: {response.text[:200]}")
        raise ParseError(f"Invalid JSON from {url}: {e}") from e
