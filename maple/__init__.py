"""
Maple - Environment Canada weather feed extraction

Turns a city weather Atom feed into typed records:
- Current conditions recovered from the free-form HTML summary
- Multi-day forecasts in feed order
- Active warnings and watches in feed order
"""

from .conditions import CurrentCondition, ExtractionError, extract_current_condition
from .config import Settings
from .extractors import Forecast, WeatherWarning, extract_forecast, extract_warning
from .feed import DecodeError, GenericEntry, decode_feed
from .fetcher import FeedFetcher, FetchError
from .report import (
    ClassifiedEntries,
    ReportQuality,
    WeatherReport,
    aggregate_report,
    classify_entries,
    parse_feed,
)

__version__ = "1.0.0"

__all__ = [
    "ClassifiedEntries",
    "CurrentCondition",
    "DecodeError",
    "ExtractionError",
    "FeedFetcher",
    "FetchError",
    "Forecast",
    "GenericEntry",
    "ReportQuality",
    "Settings",
    "WeatherReport",
    "WeatherWarning",
    "aggregate_report",
    "classify_entries",
    "decode_feed",
    "extract_current_condition",
    "extract_forecast",
    "extract_warning",
    "parse_feed",
]
