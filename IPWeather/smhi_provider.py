"""SMHI point forecast (pmp3g) provider implementation."""
import logging
from datetime import date, time
from typing import Any, Dict, List, Optional

from weather_data import Timestamp, Weather
from weather_provider import ForecastProviderBase, ParseError, fetch_json


class SmhiForecastProvider(ForecastProviderBase):
    """
    Forecast provider using the SMHI open data point forecast.

    See https://opendata.smhi.se/apidocs/metfcst/ - the response is a
    `timeSeries` of hourly samples, each carrying a `parameters` list of
    {"name", "values"} objects.
    """

    BASE_URL = (
        "https://opendata-download-metfcst.smhi.se/api/category/pmp3g/version/2"
        "/geotype/point/lon/{lon}/lat/{lat}/data.json"
    )

    # Position of the Wsymb2 parameter in each sample's parameter list
    WEATHER_SYMBOL_INDEX = 18

    def __init__(
        self,
        url_template: str = BASE_URL,
        timeout: float = 10,
        symbol_parameter: Optional[str] = None,
        include_final_day: bool = True,
    ):
        """
        Initialize SMHI provider.

        Args:
            url_template: Endpoint with {lon} and {lat} placeholders
            timeout: HTTP request timeout in seconds
            symbol_parameter: Read the weather symbol by this parameter name
                (e.g. "Wsymb2") instead of by position
            include_final_day: Emit the last calendar day of the series
        """
        self.url_template = url_template
        self.timeout = timeout
        self.symbol_parameter = symbol_parameter
        self.include_final_day = include_final_day

    def build_forecast_url(self, lon: float, lat: float) -> str:
        return self.url_template.format(lon=lon, lat=lat)

    def fetch_forecast(self, url: str) -> List[Weather]:
        data = fetch_json(url, self.timeout)
        weathers = self.parse_time_series(data)
        logging.info(f"Forecast parsed: {len(weathers)} days")
        return weathers

    def weather_symbol(self, parameters: List[Dict[str, Any]]) -> int:
        """Read the weather-type code from one sample's parameter list."""
        if self.symbol_parameter is not None:
            for parameter in parameters:
                if parameter["name"] == self.symbol_parameter:
                    return int(parameter["values"][0])
            raise ParseError(f"Sample has no '{self.symbol_parameter}' parameter")
        return int(parameters[self.WEATHER_SYMBOL_INDEX]["values"][0])

    def parse_time_series(self, data: Any, today: Optional[date] = None) -> List[Weather]:
        """
        Group an SMHI payload into per-day Weather objects.

        Temperature, wind speed and gust carry over from the previous sample
        when a sample omits them.

        Args:
            data: Decoded JSON response
            today: Caller's current date, passed through to Weather

        Returns:
            List[Weather]: Days in forecast order

        Raises:
            ParseError: If the payload shape is not as expected
        """
        try:
            series = data["timeSeries"]
            if not series:
                raise ParseError("Response has an empty 'timeSeries'")
            logging.debug(f"timeSeries has {len(series)} samples")

            current_date = _split_valid_time(series[0]["validTime"])[0]
            logging.info(f"Forecast anchor date: {current_date}")

            weathers: List[Weather] = []
            timestamps: List[Timestamp] = []
            temp = wind_speed = gust = 0.0

            for sample in series:
                sample_date, sample_time = _split_valid_time(sample["validTime"])
                parameters = sample["parameters"]
                weather_type = self.weather_symbol(parameters)

                for parameter in parameters:
                    name = parameter["name"]
                    if name == "t":
                        temp = float(parameter["values"][0])
                    elif name == "ws":
                        wind_speed = float(parameter["values"][0])
                    elif name == "gust":
                        gust = float(parameter["values"][0])

                if sample_date != current_date:
                    weathers.append(Weather.from_timestamps(current_date, timestamps, today))
                    current_date = sample_date
                    timestamps = []

                timestamps.append(Timestamp(temp, wind_speed, gust, sample_time, weather_type))

            if self.include_final_day:
                weathers.append(Weather.from_timestamps(current_date, timestamps, today))
            else:
                logging.debug(f"Dropping final day {current_date}")
            return weathers

        except (KeyError, ValueError, TypeError, IndexError, AttributeError) as e:
            logging.error(f"Failed to parse forecast response: {e}", exc_info=True)
            raise ParseError(f"Failed to parse response: {e}") from e


def _split_valid_time(valid_time: str):
    """Split "2024-05-01T13:00:00Z" into (date, time)."""
    day, clock = valid_time.split("T")
    return date.fromisoformat(day), time.fromisoformat(clock.replace("Z", ""))
