"""Live weather lookup through Open-Meteo (no API key).

Only runs when the message mentions weather and names a place with a
trailing "in <place>" / "at <place>".  Returns ``None`` when the message
does not qualify or any step of the lookup fails.
"""

from __future__ import annotations

import logging
import re
from dataclasses import asdict, dataclass
from typing import Any

import httpx

logger = logging.getLogger(__name__)

_GEOCODE_URL = "https://geocoding-api.open-meteo.com/v1/search"
_FORECAST_URL = "https://api.open-meteo.com/v1/forecast"
_CURRENT_FIELDS = (
    "temperature_2m,relative_humidity_2m,apparent_temperature,precipitation,wind_speed_10m"
)
_TIMEOUT = 10

_WEATHER_KEYWORDS = re.compile(r"\b(weather|temperature|forecast|humidity|wind|rain)\b", re.I)
_LOCATION = re.compile(r"\b(?:in|at)\s+([^?.!]+)$", re.I)


@dataclass
class CurrentWeather:
    time: str
    temperatureC: float | None = None
    apparentTemperatureC: float | None = None
    humidityPercent: float | None = None
    precipitationMm: float | None = None
    windSpeedKph: float | None = None


@dataclass
class WeatherData:
    location: str
    latitude: float
    longitude: float
    timezone: str
    current: CurrentWeather

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def mentions_weather(message: str) -> bool:
    return bool(_WEATHER_KEYWORDS.search(message))


def extract_location(message: str) -> str | None:
    """Return the place named after a trailing "in"/"at", if any."""
    text = message.strip().rstrip("?.! ")
    match = _LOCATION.search(text)
    if not match:
        return None
    location = match.group(1).strip()
    return location or None


async def _geocode(client: httpx.AsyncClient, name: str) -> dict[str, Any] | None:
    resp = await client.get(
        _GEOCODE_URL,
        params={"name": name, "count": 1, "language": "en", "format": "json"},
    )
    resp.raise_for_status()
    results = resp.json().get("results") or []
    return results[0] if results else None


async def _forecast(
    client: httpx.AsyncClient, latitude: float, longitude: float, timezone: str
) -> CurrentWeather | None:
    resp = await client.get(
        _FORECAST_URL,
        params={
            "latitude": latitude,
            "longitude": longitude,
            "current": _CURRENT_FIELDS,
            "timezone": timezone,
        },
    )
    resp.raise_for_status()
    current = resp.json().get("current")
    if not current:
        return None
    return CurrentWeather(
        time=current.get("time", ""),
        temperatureC=current.get("temperature_2m"),
        apparentTemperatureC=current.get("apparent_temperature"),
        humidityPercent=current.get("relative_humidity_2m"),
        precipitationMm=current.get("precipitation"),
        windSpeedKph=current.get("wind_speed_10m"),
    )


async def get_weather_data(message: str) -> WeatherData | None:
    if not mentions_weather(message):
        return None
    location = extract_location(message)
    if not location:
        return None

    try:
        async with httpx.AsyncClient(timeout=_TIMEOUT) as client:
            geo = await _geocode(client, location)
            if not geo:
                logger.info("No geocoding match for %r", location)
                return None
            timezone = geo.get("timezone") or "auto"
            current = await _forecast(client, geo["latitude"], geo["longitude"], timezone)
    except (httpx.HTTPError, KeyError, ValueError) as e:
        logger.warning("Weather lookup failed for %r: %s", location, e)
        return None

    if current is None:
        return None

    return WeatherData(
        location=geo.get("name", location),
        latitude=geo["latitude"],
        longitude=geo["longitude"],
        timezone=timezone,
        current=current,
    )


def format_weather_context(data: WeatherData) -> str:
    c = data.current
    parts = [
        f"Location: {data.location}",
        f"Time: {c.time} ({data.timezone})",
    ]
    if c.temperatureC is not None:
        parts.append(f"Temperature: {c.temperatureC}°C")
    if c.apparentTemperatureC is not None:
        parts.append(f"Feels like: {c.apparentTemperatureC}°C")
    if c.humidityPercent is not None:
        parts.append(f"Humidity: {c.humidityPercent}%")
    if c.precipitationMm is not None:
        parts.append(f"Precipitation: {c.precipitationMm} mm")
    if c.windSpeedKph is not None:
        parts.append(f"Wind: {c.windSpeedKph} km/h")
    return "Realtime weather data:\n" + "\n".join(parts)
