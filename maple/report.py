"""
Report assembly for the Maple weather feed.

Routes decoded entries by category and folds the extracted records into a
WeatherReport. A broken current conditions entry does not sink the report:
its ExtractionError travels on the report next to the forecasts and warnings.
"""

import logging
from dataclasses import asdict, dataclass, fields
from enum import Enum
from types import MappingProxyType
from typing import Any, Callable, Dict, Iterable, Mapping, Optional, Tuple, Union

from .conditions import CurrentCondition, ExtractionError, extract_current_condition
from .extractors import Forecast, WeatherWarning, extract_forecast, extract_warning
from .feed import GenericEntry, decode_feed

logger = logging.getLogger(__name__)

CURRENT_CONDITIONS = "Current Conditions"
WEATHER_FORECASTS = "Weather Forecasts"
WARNINGS_AND_WATCHES = "Warnings and Watches"

# Category term -> ClassifiedEntries field
DEFAULT_CATEGORIES: Mapping[str, str] = MappingProxyType({
    CURRENT_CONDITIONS: "current_conditions",
    WEATHER_FORECASTS: "forecasts",
    WARNINGS_AND_WATCHES: "warnings",
})

# ClassifiedEntries field -> extractor for one of its entries
EXTRACTORS: Mapping[str, Callable[[GenericEntry], Any]] = MappingProxyType({
    "current_conditions": extract_current_condition,
    "forecasts": extract_forecast,
    "warnings": extract_warning,
})


class ReportQuality(Enum):
    """Data quality assessment of a report."""
    VALID = "valid"           # Every section extracted
    PARTIAL = "partial"       # Current conditions present but unparseable


@dataclass(frozen=True)
class ClassifiedEntries:
    """Feed entries partitioned by category, each bucket in feed order."""
    current_conditions: Tuple[GenericEntry, ...] = ()
    forecasts: Tuple[GenericEntry, ...] = ()
    warnings: Tuple[GenericEntry, ...] = ()
    dropped: Tuple[GenericEntry, ...] = ()

    @property
    def current(self) -> Optional[GenericEntry]:
        """The canonical current conditions entry: the last one in the feed."""
        if not self.current_conditions:
            return None
        return self.current_conditions[-1]


BUCKETS = tuple(f.name for f in fields(ClassifiedEntries))


@dataclass(frozen=True)
class WeatherReport:
    """Everything extracted from one feed snapshot."""
    current: Optional[CurrentCondition] = None
    forecasts: Tuple[Forecast, ...] = ()
    warnings: Tuple[WeatherWarning, ...] = ()
    current_error: Optional[ExtractionError] = None

    @property
    def quality(self) -> ReportQuality:
        if self.current_error is not None:
            return ReportQuality.PARTIAL
        return ReportQuality.VALID

    def to_dict(self) -> Dict[str, Any]:
        """JSON-ready representation."""
        current = None
        if self.current is not None:
            current = asdict(self.current)
            current["observed_at"] = self.current.observed_at.isoformat()

        error = None
        if self.current_error is not None:
            error = {"stage": self.current_error.stage, "message": self.current_error.message}

        return {
            "current": current,
            "forecasts": [asdict(f) for f in self.forecasts],
            "warnings": [asdict(w) for w in self.warnings],
            "error": error,
            "quality": self.quality.value,
        }


def classify_entries(
    entries: Iterable[GenericEntry],
    categories: Mapping[str, str] = DEFAULT_CATEGORIES,
) -> ClassifiedEntries:
    """
    Partition entries by exact category term.

    Entries whose category is not in `categories` end up in `dropped`; the
    feed is free to carry sections we do not model.

    Raises:
        ValueError: `categories` routes to a name that is not a
            ClassifiedEntries field.
    """
    unknown = sorted(set(categories.values()) - set(BUCKETS))
    if unknown:
        raise ValueError(
            f"Unknown bucket(s) in category mapping: {', '.join(unknown)}; "
            f"expected one of {', '.join(BUCKETS)}"
        )

    buckets: Dict[str, list] = {name: [] for name in BUCKETS}
    for entry in entries:
        bucket = categories.get(entry.category)
        if bucket is None:
            logger.debug(f"Ignoring entry with category {entry.category!r}: {entry.title}")
            bucket = "dropped"
        buckets[bucket].append(entry)

    if len(buckets["current_conditions"]) > 1:
        logger.warning(
            f"Feed has {len(buckets['current_conditions'])} current conditions entries, using the last"
        )

    return ClassifiedEntries(**{name: tuple(items) for name, items in buckets.items()})


def aggregate_report(
    classified: ClassifiedEntries,
    extractors: Mapping[str, Callable[[GenericEntry], Any]] = EXTRACTORS,
) -> WeatherReport:
    """
    Run the extractors over classified entries and assemble the report.

    `extractors` maps each ClassifiedEntries bucket to the function that
    turns one of its entries into a record. Only an ExtractionError from the
    current conditions extractor is caught; it is returned on the report.
    """
    current = None
    current_error = None

    entry = classified.current
    if entry is not None:
        try:
            current = extractors["current_conditions"](entry)
        except ExtractionError as e:
            logger.warning(f"Current conditions could not be extracted ({e.stage}): {e.message}")
            current_error = e

    return WeatherReport(
        current=current,
        forecasts=tuple(extractors["forecasts"](e) for e in classified.forecasts),
        warnings=tuple(extractors["warnings"](e) for e in classified.warnings),
        current_error=current_error,
    )


def parse_feed(raw: Union[bytes, str]) -> WeatherReport:
    """
    Decode, classify and extract a raw feed document.

    Raises:
        DecodeError: the envelope itself could not be decoded.
    """
    report = aggregate_report(classify_entries(decode_feed(raw)))
    logger.info(
        f"Parsed feed: current={'yes' if report.current else 'no'}, "
        f"forecasts={len(report.forecasts)}, warnings={len(report.warnings)}, "
        f"quality={report.quality.value}"
    )
    return report
