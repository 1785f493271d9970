"""Tests for SMHI forecast provider."""
import pytest
import requests
from datetime import date, time
from unittest.mock import Mock, patch
from smhi_provider import SmhiForecastProvider
from weather_data import Weather
from weather_provider import NetworkError, ParseError
from weather_types import DAY_TYPES, NIGHT_TYPES

# Parameter order of a pmp3g sample; Wsymb2 sits at index 18
PARAMETER_NAMES = [
    "spp", "pcat", "pmin", "pmean", "pmax", "pmedian", "tcc_mean", "lcc_mean",
    "mcc_mean", "hcc_mean", "t", "msl", "vis", "wd", "ws", "r", "tstm", "gust",
    "Wsymb2",
]

TODAY = date(2024, 5, 1)


def sample(valid_time, t=None, ws=None, gust=None, symbol=1):
    values = {"t": t, "ws": ws, "gust": gust, "Wsymb2": symbol}
    parameters = []
    for name in PARAMETER_NAMES:
        value = values.get(name, 0)
        if value is None:
            # Keep the list shape but rename so the value is not picked up
            name = f"x_{name}"
            value = 0
        parameters.append({"name": name, "levelType": "hl", "level": 2, "unit": "", "values": [value]})
    return {"validTime": valid_time, "parameters": parameters}


@pytest.fixture
def two_day_response():
    """Two calendar days, three samples on the first and two on the second."""
    return {
        "approvedTime": "2024-05-01T08:00:00Z",
        "referenceTime": "2024-05-01T08:00:00Z",
        "timeSeries": [
            sample("2024-05-01T10:00:00Z", t=1.0, ws=2.0, gust=5.0, symbol=1),
            sample("2024-05-01T14:00:00Z", t=5.0, ws=4.0, gust=9.0, symbol=3),
            sample("2024-05-01T22:00:00Z", t=-2.0, ws=6.0, gust=7.0, symbol=6),
            sample("2024-05-02T12:00:00Z", t=8.0, ws=1.0, gust=2.0, symbol=2),
            sample("2024-05-02T18:00:00Z", t=10.0, ws=3.0, gust=4.0, symbol=4),
        ],
    }


@pytest.fixture
def provider():
    return SmhiForecastProvider(timeout=5)


def test_build_forecast_url(provider):
    url = provider.build_forecast_url(18.0687, 59.3294)
    assert url == (
        "https://opendata-download-metfcst.smhi.se/api/category/pmp3g/version/2"
        "/geotype/point/lon/18.0687/lat/59.3294/data.json"
    )


def test_parse_groups_samples_by_day(provider, two_day_response):
    """Each calendar day becomes one Weather, including the final day."""
    weathers = provider.parse_time_series(two_day_response, today=TODAY)

    assert [w.date for w in weathers] == [date(2024, 5, 1), date(2024, 5, 2)]

    first, second = weathers
    assert len(first.timestamps) == 3
    assert first.min_temp == -2.0
    assert first.max_temp == 5.0
    assert first.avg_wind_speed == pytest.approx(4.0)
    assert first.max_gust == 9.0
    # Today: symbol of the first remaining sample
    assert first.weather_type == DAY_TYPES[1]

    assert len(second.timestamps) == 2
    assert second.min_temp == 8.0
    assert second.max_temp == 10.0
    assert second.avg_wind_speed == pytest.approx(2.0)
    assert second.max_gust == 4.0
    assert second.weather_type == DAY_TYPES[2]


def test_parse_can_drop_final_day(two_day_response):
    """include_final_day=False reproduces the close-on-date-change only grouping."""
    provider = SmhiForecastProvider(include_final_day=False)
    weathers = provider.parse_time_series(two_day_response, today=TODAY)
    assert [w.date for w in weathers] == [date(2024, 5, 1)]


def test_parse_timestamp_fields(provider, two_day_response):
    weathers = provider.parse_time_series(two_day_response, today=TODAY)
    night = weathers[0].timestamps[2]

    assert night.time == time(22, 0)
    assert night.temperature == -2.0
    assert night.wind_speed == 6.0
    assert night.gust == 7.0
    assert night.weather_type_code == 6
    assert night.weather_type is NIGHT_TYPES[6]


def test_parse_missing_parameter_carries_over(provider):
    """A sample without t/ws/gust reuses the previous sample's values."""
    response = {
        "timeSeries": [
            sample("2024-05-03T10:00:00Z", t=4.0, ws=2.0, gust=3.0),
            sample("2024-05-03T11:00:00Z", t=None, ws=5.0, gust=None),
        ]
    }
    weathers = provider.parse_time_series(response, today=TODAY)
    second = weathers[0].timestamps[1]

    assert second.temperature == 4.0
    assert second.wind_speed == 5.0
    assert second.gust == 3.0


def test_parse_reads_symbol_by_position(provider):
    """The symbol comes from index 18 whatever that parameter is called."""
    response = {"timeSeries": [sample("2024-05-03T12:00:00Z", t=1.0, ws=1.0, gust=1.0, symbol=7)]}
    response["timeSeries"][0]["parameters"][18]["name"] = "renamed"

    weathers = provider.parse_time_series(response, today=TODAY)
    assert weathers[0].timestamps[0].weather_type_code == 7


def test_parse_reads_symbol_by_name():
    """symbol_parameter switches to a name-based lookup."""
    provider = SmhiForecastProvider(symbol_parameter="Wsymb2")
    response = {"timeSeries": [sample("2024-05-03T12:00:00Z", t=1.0, ws=1.0, gust=1.0, symbol=7)]}
    parameters = response["timeSeries"][0]["parameters"]
    parameters.insert(0, parameters.pop())

    weathers = provider.parse_time_series(response, today=TODAY)
    assert weathers[0].timestamps[0].weather_type_code == 7


def test_parse_empty_series(provider):
    with pytest.raises(ParseError) as exc_info:
        provider.parse_time_series({"timeSeries": []})
    assert "empty" in str(exc_info.value)


def test_parse_missing_time_series(provider):
    with pytest.raises(ParseError):
        provider.parse_time_series({"approvedTime": "2024-05-01T08:00:00Z"})


def test_parse_short_parameter_list(provider):
    response = {"timeSeries": [{"validTime": "2024-05-03T12:00:00Z", "parameters": [{"name": "t", "values": [1.0]}]}]}
    with pytest.raises(ParseError):
        provider.parse_time_series(response)


def test_parse_bad_valid_time(provider):
    response = {"timeSeries": [sample("yesterday", t=1.0, ws=1.0, gust=1.0)]}
    with pytest.raises(ParseError):
        provider.parse_time_series(response)


def test_fetch_forecast_success(provider, two_day_response):
    with patch('weather_provider.requests.get') as mock_get:
        mock_response = Mock()
        mock_response.ok = True
        mock_response.status_code = 200
        mock_response.json.return_value = two_day_response
        mock_get.return_value = mock_response

        weathers = provider.fetch_forecast("https://example.test/data.json")

        mock_get.assert_called_once_with("https://example.test/data.json", timeout=5)
        assert len(weathers) == 2
        assert all(isinstance(w, Weather) for w in weathers)


def test_fetch_forecast_http_error(provider):
    with patch('weather_provider.requests.get') as mock_get:
        mock_response = Mock()
        mock_response.ok = False
        mock_response.status_code = 404
        mock_response.text = "Not Found"
        mock_get.return_value = mock_response

        with pytest.raises(NetworkError) as exc_info:
            provider.fetch_forecast("https://example.test/data.json")

        assert "404" in str(exc_info.value)


def test_fetch_forecast_network_error(provider):
    with patch('weather_provider.requests.get') as mock_get:
        mock_get.side_effect = requests.exceptions.ConnectionError("Connection refused")

        with pytest.raises(NetworkError):
            provider.fetch_forecast("https://example.test/data.json")
