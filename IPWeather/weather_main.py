"""Headless runner: keeps the forecast for this machine's location fresh."""
import argparse
import logging
import os
import signal
import sys
import threading
from typing import Any, Dict

from dotenv import load_dotenv

from weather_events import Event, Refreshed, RefreshFailed, SettingsUpdated
from geo_provider import GEO_URL, IP_URL, IpInfoGeoResolver
from weather_settings import Settings
from smhi_provider import SmhiForecastProvider
from weather_service import WeatherService

BASE_DIR = os.path.dirname(os.path.abspath(__file__))
DEFAULT_LOG_FILE = os.path.join(BASE_DIR, "ip-weather.log")

TRUE_VALUES = ("1", "true", "yes", "on")
FALSE_VALUES = ("0", "false", "no", "off")


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser("IP-located weather forecast")
    parser.add_argument("--log-file", default=DEFAULT_LOG_FILE)
    parser.add_argument("--timeout", type=int, default=10, help="HTTP timeout in seconds")
    parser.add_argument("--retry-delay", type=float, default=5.0, help="Seconds between failed attempts")
    parser.add_argument("--interval", type=float, default=1800.0, help="Seconds between refresh requests")
    parser.add_argument("--verbose", action="store_true")
    return parser.parse_args()


def setup_logging(log_file: str, verbose: bool) -> None:
    log_level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(levelname)s - %(message)s",
        handlers=[
            logging.StreamHandler(sys.stdout),
            logging.FileHandler(log_file)
        ]
    )


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    value = raw.strip().lower()
    if value in TRUE_VALUES:
        return True
    if value in FALSE_VALUES:
        return False
    raise SystemExit(f"Invalid boolean for {name}: {raw!r}")


def load_config() -> Dict[str, Any]:
    load_dotenv()
    config = {
        "ip_url": os.getenv("WEATHER_IP_URL", IP_URL),
        "geo_url": os.getenv("WEATHER_GEO_URL", GEO_URL),
        "forecast_url": os.getenv("WEATHER_FORECAST_URL", SmhiForecastProvider.BASE_URL),
        "settings": Settings(
            metric=_env_bool("WEATHER_METRIC", True),
            precision=_env_bool("WEATHER_PRECISION", False),
            dark_mode=_env_bool("WEATHER_DARK_MODE", True),
        ),
    }
    logging.info("Configuration loaded: settings=%s", config["settings"])
    return config


def build_weather_service(config: Dict[str, Any], args: argparse.Namespace) -> WeatherService:
    resolver = IpInfoGeoResolver(
        ip_url=config["ip_url"],
        geo_url=config["geo_url"],
        timeout=args.timeout,
    )
    provider = SmhiForecastProvider(url_template=config["forecast_url"], timeout=args.timeout)
    service = WeatherService(
        resolver=resolver,
        provider=provider,
        settings=config["settings"],
        retry_delay_seconds=args.retry_delay,
    )
    logging.info("Weather service ready (retry delay=%ss)", args.retry_delay)
    return service


def log_forecast(service: WeatherService, event: Event) -> None:
    """Console listener standing in for a display surface."""
    if isinstance(event, Refreshed):
        geo = event.geo
        logging.info("Location: %s, %s, %s (ISP %s, IP %s)", geo.city, geo.region, geo.country, geo.isp, geo.ip_address)
        for day in service.formatted_days():
            logging.info(
                "%s  %s / %s  wind %s  gust %s  %s",
                day.date,
                day.min_temp,
                day.max_temp,
                day.avg_wind_speed,
                day.max_gust,
                day.icon or "-",
            )
    elif isinstance(event, RefreshFailed):
        logging.warning("Refresh attempt %s failed: %s", event.attempt, event.error)
    elif isinstance(event, SettingsUpdated):
        logging.info("Settings: %s %s -> %s", event.field.value, event.old_value, event.new_value)
    else:
        logging.info("Event: %s", event.name)


def signal_handler(signum, frame):
    logging.info("Received signal %s, shutting down", signum)
    raise KeyboardInterrupt()


def main() -> None:
    args = parse_args()
    setup_logging(args.log_file, args.verbose)
    config = load_config()
    service = build_weather_service(config, args)

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    service.channel.subscribe(lambda event: log_forecast(service, event))
    service.start()

    idle = threading.Event()
    try:
        while True:
            service.request_refresh()
            idle.wait(max(args.interval, 1.0))
    except KeyboardInterrupt:
        logging.info("Stopping weather service")
    finally:
        service.stop()


if __name__ == "__main__":
    main()
