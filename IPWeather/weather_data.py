"""Weather domain model - pure data structures independent of any API."""
from dataclasses import dataclass, field
from datetime import date, time
from typing import List, Optional, Sequence, Tuple

from weather_settings import Settings
from unit_converter import format_temperature, format_wind
from weather_types import WeatherType, lookup

# Hours whose sample represents a whole day, in order of preference
REPRESENTATIVE_HOURS = (14, 12)


def is_day(at: time) -> bool:
    """Daytime runs from 06:00 up to, but not including, 21:00."""
    return 5 < at.hour < 21


@dataclass(frozen=True)
class GeoInfo:
    """Location and ISP metadata resolved for a public IP address."""
    ip_address: str
    city: str
    region: str
    country: str
    isp: str
    lat: float
    lon: float


@dataclass
class FormattedHour:
    time: str
    temperature: str
    wind_speed: str
    gust: str
    icon: str


@dataclass
class FormattedDay:
    date: str
    min_temp: str
    max_temp: str
    avg_wind_speed: str
    max_gust: str
    icon: str
    hours: List[FormattedHour] = field(default_factory=list)


@dataclass(frozen=True)
class Timestamp:
    """One hourly forecast sample."""
    temperature: float  # °C
    wind_speed: float
    gust: float
    time: time
    weather_type_code: int

    @property
    def is_day(self) -> bool:
        return is_day(self.time)

    @property
    def weather_type(self) -> Optional[WeatherType]:
        """Day or night symbol for this sample; None for unknown codes."""
        return lookup(self.weather_type_code, self.is_day)

    def formatted(self, settings: Settings) -> FormattedHour:
        weather_type = self.weather_type
        return FormattedHour(
            time=self.time.strftime("%H:%M"),
            temperature=format_temperature(self.temperature, settings),
            wind_speed=format_wind(self.wind_speed, settings),
            gust=format_wind(self.gust, settings),
            icon=weather_type.file_name if weather_type else "",
        )


@dataclass(frozen=True)
class Weather:
    """
    One day of forecast, aggregated from its hourly samples.

    Aggregates are kept as raw metric numbers; display strings are produced
    on demand by formatted() so a settings change never touches them.
    """
    date: date
    timestamps: Tuple[Timestamp, ...]
    min_temp: float
    max_temp: float
    avg_wind_speed: float
    max_gust: float
    weather_type: Optional[WeatherType]

    @classmethod
    def from_timestamps(
        cls,
        day: date,
        timestamps: Sequence[Timestamp],
        today: Optional[date] = None,
    ) -> "Weather":
        """
        Aggregate a day's samples.

        Args:
            day: Calendar date the samples belong to
            timestamps: Samples in forecast order
            today: Caller's current date (defaults to date.today())

        Raises:
            ValueError: If timestamps is empty
        """
        if not timestamps:
            raise ValueError(f"Cannot build Weather for {day} without timestamps")

        samples = tuple(timestamps)
        temperatures = [t.temperature for t in samples]
        return cls(
            date=day,
            timestamps=samples,
            min_temp=min(temperatures),
            max_temp=max(temperatures),
            avg_wind_speed=sum(t.wind_speed for t in samples) / len(samples),
            max_gust=max(t.gust for t in samples),
            weather_type=select_weather_type(day, samples, today or date.today()),
        )

    def formatted(self, settings: Settings) -> FormattedDay:
        return FormattedDay(
            date=self.date.isoformat(),
            min_temp=format_temperature(self.min_temp, settings),
            max_temp=format_temperature(self.max_temp, settings),
            avg_wind_speed=format_wind(self.avg_wind_speed, settings),
            max_gust=format_wind(self.max_gust, settings),
            icon=self.weather_type.file_name if self.weather_type else "",
            hours=[t.formatted(settings) for t in self.timestamps],
        )


def select_weather_type(
    day: date,
    timestamps: Sequence[Timestamp],
    today: date,
) -> Optional[WeatherType]:
    """
    Pick the symbol that represents a whole day.

    Today uses its earliest remaining sample; other days prefer the 14:00
    sample, then 12:00, then fall back to the first sample.
    """
    first = timestamps[0].weather_type
    if day == today and first is not None:
        return first
    for hour in REPRESENTATIVE_HOURS:
        weather_type = next(
            (t.weather_type for t in timestamps if t.time.hour == hour), None
        )
        if weather_type is not None:
            return weather_type
    return first
