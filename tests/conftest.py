from pathlib import Path

import pytest

from maple.feed import GenericEntry

FIXTURES = Path(__file__).parent / "fixtures"

SUMMARY_LINES = [
    "<b>Observed at:</b> Montréal-Trudeau Int'l Airport 9:00 AM EST Sunday 10 January 2021 ",
    "<b>Condition:</b> Mostly Cloudy ",
    "<b>Temperature:</b> 2.6&deg;C ",
    "<b>Pressure / Tendency:</b> 101.3 kPa falling",
    "<b>Visibility:</b> 24.1 km",
    "<b>Humidity:</b> 77 %",
    "<b>Dewpoint:</b> -1.1&deg;C ",
    "<b>Wind:</b> WSW 15 km/h",
    "<b>Air Quality Health Index:</b> 3 ",
]


def make_summary(lines=None) -> str:
    lines = SUMMARY_LINES if lines is None else lines
    return "".join(f"{line}<br/>\n" for line in lines)


def make_entry(title="Current Conditions: Mostly Cloudy, 2.6°C", summary=None,
               category="Current Conditions", link="https://weather.gc.ca/city/pages/qc-147_metric_e.html",
               updated="2021-01-10T14:00:00Z") -> GenericEntry:
    return GenericEntry(
        title=title,
        updated=updated,
        link=link,
        summary=make_summary() if summary is None else summary,
        category=category,
    )


def feed_xml(*entries: str) -> bytes:
    """Wrap entry snippets in an Atom envelope."""
    body = "\n".join(entries)
    return (
        "<?xml version='1.0' encoding='UTF-8'?>\n"
        '<feed xmlns="http://www.w3.org/2005/Atom">\n'
        f"{body}\n"
        "</feed>\n"
    ).encode("utf-8")


def entry_xml(title: str, category: str, summary: str = "", link: str = "https://example.com/",
              updated: str = "2021-01-10T14:00:00Z") -> str:
    return (
        "<entry>"
        f"<title>{title}</title>"
        f'<link type="text/html" href="{link}"/>'
        f"<updated>{updated}</updated>"
        f'<category term="{category}"/>'
        f'<summary type="html"><![CDATA[{summary}]]></summary>'
        "</entry>"
    )


@pytest.fixture
def city_feed() -> bytes:
    return (FIXTURES / "city_feed.xml").read_bytes()
