"""Public IP discovery (ipify) and geolocation (ipinfo) provider."""
import logging

from weather_data import GeoInfo
from weather_provider import GeoResolverBase, ParseError, fetch_json

IP_URL = "https://api.ipify.org?format=json"
GEO_URL = "https://ipinfo.io/{ip}/json"

REQUIRED_GEO_KEYS = ("loc", "city", "region", "country", "org")


class IpInfoGeoResolver(GeoResolverBase):
    """
    Resolves the caller's location from its public IP address.

    Both lookups are blocking and never retried here; retrying is left to
    the refresh service.
    """

    def __init__(self, ip_url: str = IP_URL, geo_url: str = GEO_URL, timeout: float = 10):
        """
        Args:
            ip_url: Endpoint returning {"ip": "..."}
            geo_url: Template containing an {ip} placeholder
            timeout: HTTP request timeout in seconds
        """
        self.ip_url = ip_url
        self.geo_url = geo_url
        self.timeout = timeout

    def resolve_public_ip(self) -> str:
        data = fetch_json(self.ip_url, self.timeout)
        try:
            ip_address = data["ip"]
        except (KeyError, TypeError) as e:
            raise ParseError(f"IP response missing 'ip': {e}") from e
        if not isinstance(ip_address, str) or not ip_address:
            raise ParseError(f"Invalid IP address in response: {ip_address!r}")
        logging.info(f"Public IP resolved: {ip_address}")
        return ip_address

    def resolve_geo(self, ip_address: str) -> GeoInfo:
        data = fetch_json(self.geo_url.format(ip=ip_address), self.timeout)
        if not isinstance(data, dict):
            raise ParseError(f"Geo response is not an object: {type(data).__name__}")
        logging.debug(f"Geo response keys: {list(data.keys())}")

        missing = [key for key in REQUIRED_GEO_KEYS if key not in data]
        if missing:
            raise ParseError(f"Geo response missing keys: {', '.join(missing)}")

        lat, lon = parse_loc(data["loc"])
        geo = GeoInfo(
            ip_address=ip_address,
            city=str(data["city"]),
            region=str(data["region"]),
            country=str(data["country"]),
            isp=str(data["org"]),
            lat=lat,
            lon=lon,
        )
        logging.info(f"Location resolved: {geo.city}, {geo.region}, {geo.country} ({geo.lat}, {geo.lon})")
        return geo


def parse_loc(loc: str):
    """Split an ipinfo "lat,lon" string into two floats."""
    if not isinstance(loc, str):
        raise ParseError(f"'loc' is not a string: {loc!r}")
    parts = loc.split(",")
    if len(parts) != 2:
        raise ParseError(f"'loc' must be 'lat,lon', got {loc!r}")
    try:
        return float(parts[0]), float(parts[1])
    except ValueError as e:
        raise ParseError(f"'loc' has non-numeric component: {loc!r}") from e
