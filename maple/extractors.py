"""Forecast and warning records, copied verbatim from their feed entries."""

from dataclasses import dataclass

from .feed import GenericEntry


@dataclass(frozen=True)
class Forecast:
    """One forecast period ("Monday: Sunny. High 12.")."""
    short: str
    long: str
    link: str
    updated: str


@dataclass(frozen=True)
class WeatherWarning:
    """An active warning, watch or statement."""
    short: str
    long: str
    link: str
    updated: str


def extract_forecast(entry: GenericEntry) -> Forecast:
    return Forecast(short=entry.title, long=entry.summary, link=entry.link, updated=entry.updated)


def extract_warning(entry: GenericEntry) -> WeatherWarning:
    return WeatherWarning(short=entry.title, long=entry.summary, link=entry.link, updated=entry.updated)
