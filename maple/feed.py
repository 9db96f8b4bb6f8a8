"""
Feed envelope decoding for the Maple weather feed.

Turns the raw bytes of a city weather Atom feed into an ordered tuple of
GenericEntry records. Only the envelope structure is checked here; the
meaning of each entry is left to the extractors, and entry text is kept
exactly as published.
"""

import logging
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from typing import Tuple, Union

logger = logging.getLogger(__name__)

ROOT_TAG = "feed"


class DecodeError(Exception):
    """Raised when the feed bytes are not a well-formed envelope."""
    pass


@dataclass(frozen=True)
class GenericEntry:
    """One feed entry, exactly as published."""
    title: str
    updated: str
    link: str
    summary: str
    category: str


def _decode_entry(element: ET.Element, position: int) -> GenericEntry:
    """Decode one <entry>; title and category term are required."""
    title = element.find("{*}title")
    if title is None:
        raise DecodeError(f"Entry {position} has no <title>")

    category = element.find("{*}category")
    if category is None or category.get("term") is None:
        raise DecodeError(f"Entry {position} has no <category term=...>")

    link = element.find("{*}link")

    return GenericEntry(
        title=title.text or "",
        updated=element.findtext("{*}updated", ""),
        link=link.get("href", "") if link is not None else "",
        summary=element.findtext("{*}summary", ""),
        category=category.get("term"),
    )


def decode_feed(raw: Union[bytes, str]) -> Tuple[GenericEntry, ...]:
    """
    Decode a feed envelope into its entries, in feed order.

    Args:
        raw: Feed document as bytes (preferably, so the XML declaration
            decides the encoding) or text.

    Returns:
        Tuple of GenericEntry, possibly empty.

    Raises:
        DecodeError: the input is empty, not well-formed XML, not a <feed>
            document, or an entry is missing its title or category.
    """
    if raw is None or not raw.strip():
        raise DecodeError("Feed document is empty")

    try:
        root = ET.fromstring(raw)
    except ET.ParseError as e:
        logger.error(f"Feed XML parsing error: {e}")
        raise DecodeError(f"XML parsing failed: {e}") from e

    root_name = root.tag.rsplit("}", 1)[-1]
    if root_name != ROOT_TAG:
        logger.error(f"Document root is <{root_name}>, not <{ROOT_TAG}>")
        raise DecodeError(f"Not a feed document: root element is <{root_name}>")

    entries = tuple(
        _decode_entry(element, position)
        for position, element in enumerate(root.findall("{*}entry"))
    )
    logger.debug(f"Decoded {len(entries)} feed entries")
    return entries
