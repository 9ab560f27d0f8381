"""Best-effort prompt enrichment: weather, clock and web search."""

from anythingai.context.clock import TimeData, format_time_context, get_time_data
from anythingai.context.search import is_time_sensitive_query, search_web
from anythingai.context.weather import WeatherData, format_weather_context, get_weather_data

__all__ = [
    "TimeData",
    "WeatherData",
    "format_time_context",
    "format_weather_context",
    "get_time_data",
    "get_weather_data",
    "is_time_sensitive_query",
    "search_web",
]
