"""
weather.py

OpenWeatherMap lookups for /weather and /forecast, plus the formatting helpers
that turn the raw JSON into chat text: compass wind direction, clothing advice
and a random trivia line.
"""
import logging
import math
import random
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional

import requests

from .content import Content
from .errors import WEATHER_APOLOGY, ErrorKind, Reply, redact, render

logger = logging.getLogger(__name__)

DIRECTIONS = ["North", "Northeast", "East", "Southeast", "South", "Southwest", "West", "Northwest"]

# (upper bound in °C, tier name, advice); the last tier catches everything above 25
CLOTHING_TIERS = [
    (5, "very cold", "It's very cold: wear a heavy winter coat, a scarf, gloves and a warm hat."),
    (10, "cold", "It's cold: a warm coat and a sweater are a good idea."),
    (15, "cool", "It's cool: take a light jacket or a thick sweater."),
    (20, "mild", "It's mild: long sleeves or a light sweater should be enough."),
    (25, "warm", "It's warm: a t-shirt and light trousers will do."),
    (None, "hot", "It's hot: wear light, breathable clothes and don't forget sunscreen and water."),
]

RAIN_KEYWORDS = ("rain", "drizzle", "shower", "thunderstorm", "yağmur", "sağanak")
SNOW_KEYWORDS = ("snow", "sleet", "kar yağışı", "karlı")
WIND_KEYWORDS = ("wind", "gale", "storm", "rüzgar", "fırtına")

RAIN_ADVICE = "Rain is expected: take an umbrella and waterproof shoes."
SNOW_ADVICE = "Snow is expected: wear waterproof boots and watch out for icy roads."
WIND_ADVICE = "It's windy: a windproof jacket will help."

FORECAST_DAYS = 5


class CityNotFound(Exception):
    pass


def _round(value: float) -> int:
    # half-up, so 22.5° lands on Northeast and 2.5°C shows as 3°C
    return int(math.floor(value + 0.5))


def wind_direction(degrees: float) -> str:
    return DIRECTIONS[_round(degrees / 45) % 8]


def clothing_tier(temp: float) -> str:
    for bound, name, _ in CLOTHING_TIERS:
        if bound is None or temp <= bound:
            return name
    return CLOTHING_TIERS[-1][1]


def clothing_advice(temp: float, description: str = "") -> str:
    advice = CLOTHING_TIERS[-1][2]
    for bound, _, text in CLOTHING_TIERS:
        if bound is None or temp <= bound:
            advice = text
            break

    extras = []
    desc = (description or "").lower()
    if any(k in desc for k in RAIN_KEYWORDS):
        extras.append(RAIN_ADVICE)
    if any(k in desc for k in SNOW_KEYWORDS):
        extras.append(SNOW_ADVICE)
    if any(k in desc for k in WIND_KEYWORDS):
        extras.append(WIND_ADVICE)
    return " ".join([advice] + extras)


def random_fact(content: Optional[Content] = None, rng: Optional[random.Random] = None) -> str:
    facts = (content or Content()).weather_facts
    if not facts:
        return ""
    return (rng or random).choice(facts)


def format_current(data: Dict, content: Optional[Content] = None, rng: Optional[random.Random] = None) -> str:
    main = data["main"]
    wind = data.get("wind") or {}
    description = (data.get("weather") or [{}])[0].get("description", "")
    temp = float(main['temp'])
    city = data.get("name") or "?"
    country = (data.get("sys") or {}).get("country")
    place = f"{city}, {country}" if country else city

    lines = [
        f"Weather in {place}: {description}",
        f"🌡 Temperature: {_round(temp)}°C (feels like {_round(float(main.get('feels_like', temp)))}°C)",
        f"💧 Humidity: {main.get('humidity', '?')}%",
        f"💨 Wind: {wind.get('speed', 0)} m/s, {wind_direction(float(wind.get('deg', 0)))}",
        "",
        f"👕 {clothing_advice(temp, description)}",
    ]
    fact = random_fact(content, rng)
    if fact:
        lines.extend(["", f"💡 {fact}"])
    return "\n".join(lines)


def _day_label(ts: int, offset_seconds: int = 0) -> str:
    local = datetime.fromtimestamp(ts, tz=timezone.utc) + timedelta(seconds=offset_seconds)
    return local.strftime("%a %d %b")


def format_forecast(data: Dict, days: int = FORECAST_DAYS) -> str:
    city = data.get("city") or {}
    offset = int(city.get("timezone") or 0)
    seen: Dict[str, Dict] = {}
    for entry in data.get("list") or []:
        label = _day_label(int(entry["dt"]), offset)
        if label in seen:
            continue
        seen[label] = entry
        if len(seen) >= days:
            break

    if not seen:
        raise ValueError("forecast response has no entries")

    lines: List[str] = [f"{days}-day forecast for {city.get('name') or '?'}:"]
    for label, entry in seen.items():
        main = entry["main"]
        description = (entry.get("weather") or [{}])[0].get("description", "")
        lines.append(f"{label}: {_round(float(main['temp']))}°C, {description}")
    return "\n".join(lines)


class WeatherClient:
    """OpenWeatherMap client whose public methods always return chat text."""

    def __init__(self, api_key: Optional[str], lang: str = "en", api_base: str = "https://api.openweathermap.org/data/2.5", timeout: float = 10.0, session=None, content: Optional[Content] = None, rng: Optional[random.Random] = None):
        self.api_key = api_key
        self.lang = lang
        self.api_base = api_base.rstrip("/")
        self.timeout = timeout
        self.http = session or requests.Session()
        self.content = content or Content()
        self.rng = rng

    @classmethod
    def from_settings(cls, settings, session=None, content: Optional[Content] = None) -> "WeatherClient":
        return cls(
            api_key=settings.weather_api_key,
            lang=settings.weather_lang,
            api_base=settings.weather_api_base,
            timeout=settings.http_timeout,
            session=session,
            content=content,
        )

    def _get(self, endpoint: str, city: str) -> Dict:
        resp = self.http.get(
            f"{self.api_base}/{endpoint}",
            params={"q": city, "appid": self.api_key, "units": "metric", "lang": self.lang},
            timeout=self.timeout,
        )
        if resp.status_code == 404:
            raise CityNotFound(city)
        resp.raise_for_status()
        return resp.json()

    def _lookup(self, endpoint: str, city: str, formatter) -> Reply:
        if not self.api_key:
            return Reply.failure(ErrorKind.NOT_CONFIGURED)
        try:
            return Reply.success(formatter(self._get(endpoint, city)))
        except CityNotFound:
            logger.info("Weather: city not found: %r", city)
            return Reply.failure(ErrorKind.CITY_NOT_FOUND)
        except Exception as e:
            logger.error(
                "Weather API error for %r (%s): %s: %s", city, endpoint, type(e).__name__, redact(str(e), self.api_key)
            )
            return Reply.failure(ErrorKind.UPSTREAM)

    def current(self, city: str) -> Reply:
        return self._lookup("weather", city, lambda d: format_current(d, self.content, self.rng))

    def daily(self, city: str) -> Reply:
        return self._lookup("forecast", city, format_forecast)

    def current_weather(self, city: str) -> str:
        return render(self.current(city), fallback=WEATHER_APOLOGY)

    def forecast(self, city: str) -> str:
        return render(self.daily(city), fallback=WEATHER_APOLOGY)


__all__ = [
    "WeatherClient",
    "wind_direction",
    "clothing_tier",
    "clothing_advice",
    "format_current",
    "format_forecast",
    "random_fact",
    "DIRECTIONS",
]
