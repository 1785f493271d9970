"""Formatting of raw measurements into display strings."""
import math
from decimal import ROUND_HALF_UP, Decimal

from weather_settings import Settings

# Applied to the wind value exactly as received from upstream
MPH = 2.23694


def celsius_to_fahrenheit(celsius: float) -> float:
    return celsius * 1.8 + 32


def to_mph(value: float) -> float:
    return value * MPH


def round_half_up(value: float) -> int:
    """Round to the nearest integer, ties rounded up (-2.5 -> -2)."""
    return int(math.floor(value + 0.5))


def one_decimal(value: float) -> str:
    """One fractional digit, ties away from zero on the shortest repr (1.25 -> 1.3)."""
    return str(Decimal(repr(value)).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


def _format(value: float, precision: bool) -> str:
    if precision:
        return one_decimal(value)
    return str(round_half_up(value))


def format_temperature(celsius: float, settings: Settings) -> str:
    """
    Format a temperature for display.

    Args:
        celsius: Temperature in degrees Celsius
        settings: Unit system and precision to use

    Returns:
        str: e.g. "20°C", "68.0°F"
    """
    if settings.metric:
        return _format(celsius, settings.precision) + "°C"
    return _format(celsius_to_fahrenheit(celsius), settings.precision) + "°F"


def format_wind(speed: float, settings: Settings) -> str:
    """
    Format a wind or gust speed for display.

    Args:
        speed: Speed as delivered by the forecast API
        settings: Unit system and precision to use

    Returns:
        str: e.g. "4 m/s", "8.9 mph"
    """
    if settings.metric:
        return _format(speed, settings.precision) + " m/s"
    return _format(to_mph(speed), settings.precision) + " mph"
