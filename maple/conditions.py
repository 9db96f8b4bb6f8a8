"""
Current conditions extraction for the Maple weather feed.

The "Current Conditions" entry carries its numbers as human readable text:
the title holds the condition and temperature, and the summary is an HTML
blob of label/value lines separated by <br/> tags, e.g.

    <b>Observed at:</b> Montréal-Trudeau Int'l Airport 9:00 AM EST Sunday 10 January 2021 <br/>
    <b>Condition:</b> Mostly Cloudy <br/>
    <b>Temperature:</b> 2.6&deg;C <br/>
    <b>Pressure / Tendency:</b> 101.3 kPa falling<br/>
    <b>Visibility:</b> 24.1 km<br/>
    <b>Humidity:</b> 77 %<br/>
    <b>Dewpoint:</b> -1.1&deg;C <br/>
    <b>Wind:</b> WSW 15 km/h<br/>
    <b>Air Quality Health Index:</b> 3 <br/>

Fields with a stable label are located by that label. Humidity and wind are
located by line position only (see humidity_segment / wind_segment) and are
checked for their unit so that a shifted layout fails instead of producing
wrong numbers.
"""

import html
import logging
import re
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional, Pattern, Tuple

from dateutil import tz

from .feed import GenericEntry

logger = logging.getLogger(__name__)

TITLE_PATTERN = re.compile(
    r"^Current Conditions:\s*(?P<condition>.*?),\s*(?P<temperature>[^,°]+?)\s*°"
)
LINE_BREAK_PATTERN = re.compile(r"<br\s*/?>", re.IGNORECASE)
NUMBER_PATTERN = re.compile(r"[-+]?\d+(?:\.\d+)?")

OBSERVED_PATTERN = re.compile(r"Airport\s+(?P<observed>.+)$")
STATION_PATTERN = re.compile(r"Observed at:\s*(?P<station>.+?)\s+\d{1,2}:\d{2}\s*[AP]M\b")
TIMESTAMP_PATTERN = re.compile(
    r"^(?P<clock>\d{1,2}:\d{2}\s+[AP]M)\s+(?P<zone>[A-Z]{3,4})\s+"
    r"(?P<date>[A-Za-z]+\s+\d{1,2}\s+[A-Za-z]+\s+\d{4})$"
)
TIMESTAMP_FORMAT = "%I:%M %p %A %d %B %Y"

PRESSURE_ANCHOR = "Pressure / Tendency:"
PRESSURE_PATTERN = re.compile(
    r"Pressure / Tendency:\s*(?P<value>\S+?)\s*kPa\s*(?P<tendency>.*)$"
)
HUMIDITY_PATTERN = re.compile(r"(?P<value>[^\s:]+)\s*%$")
VISIBILITY_PATTERN = re.compile(r"Visibility:\s*(?P<value>\S+?)\s*km\b")
DEWPOINT_PATTERN = re.compile(r"Dewpoint:\s*(?P<value>[^\s°]+)\s*°")
AIR_QUALITY_PATTERN = re.compile(r"Air Quality Health Index:\s*(?P<value>\S*)")

# Ordinal positions in the summary with no label that can be relied on.
HUMIDITY_SEGMENT_INDEX = 5
WIND_SEGMENT_INDEX = 7

# Zone abbreviations the national feeds publish, as UTC offsets in hours.
ZONE_OFFSETS = {
    "NST": -3.5, "NDT": -2.5,
    "AST": -4, "ADT": -3,
    "EST": -5, "EDT": -4,
    "CST": -6, "CDT": -5,
    "MST": -7, "MDT": -6,
    "PST": -8, "PDT": -7,
    "AKST": -9, "AKDT": -8,
    "UTC": 0, "GMT": 0,
}


class ExtractionError(Exception):
    """
    Raised when a current conditions entry cannot be turned into a record.

    The stage names the step that failed, e.g. "condition/temperature",
    "observed/time-parse", "humidity" or "wind/numeric-parse".
    """

    def __init__(self, stage: str, message: str):
        super().__init__(f"{stage}: {message}")
        self.stage = stage
        self.message = message

    def __reduce__(self):
        return (self.__class__, (self.stage, self.message))

    @property
    def field(self) -> str:
        """The field the failing stage belongs to."""
        return self.stage.split("/", 1)[0]


@dataclass(frozen=True)
class CurrentCondition:
    """Parsed current conditions."""
    condition: str
    temperature: float          # degrees Celsius
    observed_at: datetime       # always timezone-aware
    pressure: float             # kPa
    humidity: float             # percent
    wind_speed: float           # km/h
    station: Optional[str] = None
    pressure_tendency: Optional[str] = None
    visibility: Optional[float] = None          # km
    dewpoint: Optional[float] = None            # degrees Celsius
    air_quality_index: Optional[float] = None
    link: Optional[str] = None


def _clean_html(text: str) -> str:
    """Remove HTML tags and decode HTML entities from text."""
    if not text:
        return ""
    text = re.sub(r'<[^>]+>', ' ', text)
    text = html.unescape(text)
    text = re.sub(r'\s+', ' ', text).strip()
    return text


def _parse_number(field: str, raw: str) -> float:
    """Parse a plain decimal capture; anything else fails as <field>/numeric-parse."""
    value = raw.strip()
    if not NUMBER_PATTERN.fullmatch(value):
        raise ExtractionError(f"{field}/numeric-parse", f"not a number: {raw!r}")
    return float(value)


def split_summary(summary: str) -> List[str]:
    """Split a summary body on line breaks into cleaned text segments."""
    return [_clean_html(segment) for segment in LINE_BREAK_PATTERN.split(summary)]


def _find_anchored(segments: List[str], anchor: str) -> Optional[str]:
    """Return the first segment containing the anchor label, or None."""
    for segment in segments:
        if anchor in segment:
            return segment
    return None


def humidity_segment(segments: List[str]) -> str:
    """Humidity line, by position. The segment must end in a percent sign."""
    if len(segments) <= HUMIDITY_SEGMENT_INDEX:
        raise ExtractionError("humidity", f"summary has no line {HUMIDITY_SEGMENT_INDEX}")
    segment = segments[HUMIDITY_SEGMENT_INDEX]
    if not segment.endswith("%"):
        raise ExtractionError("humidity", f"line {HUMIDITY_SEGMENT_INDEX} has no % value: {segment!r}")
    return segment


def wind_segment(segments: List[str]) -> str:
    """Wind line, by position. The segment must carry a km/h value."""
    if len(segments) <= WIND_SEGMENT_INDEX:
        raise ExtractionError("wind", f"summary has no line {WIND_SEGMENT_INDEX}")
    segment = segments[WIND_SEGMENT_INDEX]
    if "km/h" not in segment:
        raise ExtractionError("wind", f"line {WIND_SEGMENT_INDEX} has no km/h value: {segment!r}")
    return segment


def parse_title(title: str) -> Tuple[str, float]:
    """Return (condition, temperature) from a current conditions title."""
    match = TITLE_PATTERN.match(title.strip())
    if not match:
        raise ExtractionError("condition/temperature", f"unrecognised title: {title!r}")
    temperature = _parse_number("temperature", match.group("temperature"))
    return match.group("condition").strip(), temperature


def parse_observed_time(text: str) -> datetime:
    """
    Parse an observation time such as "9:00 AM EST Sunday 10 January 2021".

    The zone abbreviation is resolved through ZONE_OFFSETS; the result is
    always timezone-aware.
    """
    match = TIMESTAMP_PATTERN.match(text.strip())
    if not match:
        raise ExtractionError("observed/time-parse", f"unrecognised time: {text!r}")

    zone = match.group("zone")
    if zone not in ZONE_OFFSETS:
        raise ExtractionError("observed/time-parse", f"unknown time zone {zone!r}")

    try:
        naive = datetime.strptime(f"{match.group('clock')} {match.group('date')}", TIMESTAMP_FORMAT)
    except ValueError as e:
        raise ExtractionError("observed/time-parse", str(e)) from e

    return naive.replace(tzinfo=tz.tzoffset(zone, int(ZONE_OFFSETS[zone] * 3600)))


def _extract_observed(segments: List[str]) -> datetime:
    """Observation time from the 'Airport <time>' line."""
    for segment in segments:
        match = OBSERVED_PATTERN.search(segment)
        if match:
            return parse_observed_time(match.group("observed"))
    raise ExtractionError("observed/pattern", "no 'Airport <time>' line in summary")


def _extract_pressure(segments: List[str]) -> Tuple[float, Optional[str]]:
    """Return (pressure in kPa, tendency) from the Pressure / Tendency line."""
    segment = _find_anchored(segments, PRESSURE_ANCHOR)
    if segment is None:
        raise ExtractionError("pressure", f"no {PRESSURE_ANCHOR!r} line in summary")
    match = PRESSURE_PATTERN.search(segment)
    if not match:
        raise ExtractionError("pressure", f"no kPa value: {segment!r}")
    pressure = _parse_number("pressure", match.group("value"))
    return pressure, match.group("tendency").strip() or None


def _extract_humidity(segments: List[str]) -> float:
    """Relative humidity in percent from the positional humidity line."""
    match = HUMIDITY_PATTERN.search(humidity_segment(segments))
    if not match:
        raise ExtractionError("humidity/numeric-parse", "no value before %")
    return _parse_number("humidity", match.group("value"))


def _extract_wind(segments: List[str]) -> float:
    """Wind speed in km/h: the first numeric token before the unit."""
    segment = wind_segment(segments)
    before_unit = segment.split("km/h", 1)[0]
    if ":" in before_unit:
        before_unit = before_unit.split(":", 1)[1]
    for token in before_unit.split():
        if any(ch.isdigit() for ch in token):
            return _parse_number("wind", token)
    raise ExtractionError("wind/numeric-parse", f"no speed before km/h: {segment!r}")


def _extract_optional(segments: List[str], pattern: Pattern, field: str) -> Optional[float]:
    """Value of an optional labelled field; None when the label or value is absent."""
    for segment in segments:
        match = pattern.search(segment)
        if match and match.group("value"):
            return _parse_number(field, match.group("value"))
    return None


def _extract_station(segments: List[str]) -> Optional[str]:
    """Station name from the Observed at: line, if present."""
    for segment in segments:
        match = STATION_PATTERN.search(segment)
        if match:
            return match.group("station")
    return None


def extract_current_condition(entry: GenericEntry) -> CurrentCondition:
    """
    Build a CurrentCondition from a "Current Conditions" entry.

    Raises:
        ExtractionError: any step failed; no partial record is produced.
    """
    condition, temperature = parse_title(entry.title)
    segments = split_summary(entry.summary)
    observed_at = _extract_observed(segments)
    pressure, tendency = _extract_pressure(segments)
    humidity = _extract_humidity(segments)
    wind_speed = _extract_wind(segments)

    record = CurrentCondition(
        condition=condition,
        temperature=temperature,
        observed_at=observed_at,
        pressure=pressure,
        humidity=humidity,
        wind_speed=wind_speed,
        station=_extract_station(segments),
        pressure_tendency=tendency,
        visibility=_extract_optional(segments, VISIBILITY_PATTERN, "visibility"),
        dewpoint=_extract_optional(segments, DEWPOINT_PATTERN, "dewpoint"),
        air_quality_index=_extract_optional(segments, AIR_QUALITY_PATTERN, "air_quality_index"),
        link=entry.link or None,
    )
    logger.debug(f"Extracted current conditions: {record.condition}, {record.temperature}°C")
    return record
