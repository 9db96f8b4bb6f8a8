"""API tests against a stub fetcher."""

import pytest
from fastapi.testclient import TestClient

from maple.api import create_app
from maple.config import Settings
from maple.feed import DecodeError
from maple.fetcher import FetchError
from maple.report import parse_feed

from conftest import SUMMARY_LINES, entry_xml, feed_xml, make_summary


class StubFetcher:
    def __init__(self, raw=None, error=None):
        self.raw = raw
        self.error = error
        self.closed = False

    def fetch_report(self, url=None):
        if self.error is not None:
            raise self.error
        return parse_feed(self.raw)

    def close(self):
        self.closed = True


@pytest.fixture
def settings():
    return Settings(feed_url="https://weather.gc.ca/rss/city/qc-147_e.xml")


def _client(settings, fetcher):
    return TestClient(create_app(settings, fetcher=fetcher))


def test_root(settings):
    with _client(settings, StubFetcher()) as client:
        response = client.get("/")
    assert response.status_code == 200
    assert response.json()["feed"] == "https://weather.gc.ca/rss/city/qc-147_e.xml"


def test_health(settings):
    with _client(settings, StubFetcher()) as client:
        response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_current(settings, city_feed):
    with _client(settings, StubFetcher(city_feed)) as client:
        response = client.get("/current")

    assert response.status_code == 200
    data = response.json()
    assert data["quality"] == "valid"
    assert data["error"] is None
    assert data["current"]["condition"] == "Mostly Cloudy"
    assert data["current"]["pressure"] == 101.3
    assert data["current"]["observed_at"] == "2021-01-10T09:00:00-05:00"
    assert len(data["forecasts"]) == 3
    assert len(data["warnings"]) == 1


def test_current_partial(settings):
    lines = [line for line in SUMMARY_LINES if "Humidity" not in line]
    raw = feed_xml(
        entry_xml("Current Conditions: Mostly Cloudy, 2.6°C", "Current Conditions", make_summary(lines)),
        entry_xml("Monday: Sunny.", "Weather Forecasts"),
    )
    with _client(settings, StubFetcher(raw)) as client:
        response = client.get("/current")

    assert response.status_code == 200
    data = response.json()
    assert data["current"] is None
    assert data["error"]["stage"] == "humidity"
    assert data["quality"] == "partial"
    assert [f["short"] for f in data["forecasts"]] == ["Monday: Sunny."]


def test_forecasts_and_warnings(settings, city_feed):
    with _client(settings, StubFetcher(city_feed)) as client:
        forecasts = client.get("/forecasts").json()
        warnings = client.get("/warnings").json()

    assert [f["short"] for f in forecasts][-1] == "Monday: Sunny. High minus 2."
    assert warnings[0]["short"] == "SPECIAL WEATHER STATEMENT IN EFFECT"


@pytest.mark.parametrize("error", [FetchError("Request timed out after 15s"), DecodeError("XML parsing failed")])
def test_upstream_failures(settings, error):
    with _client(settings, StubFetcher(error=error)) as client:
        response = client.get("/current")
    assert response.status_code == 502
    assert str(error) in response.json()["detail"]


def test_not_found(settings):
    with _client(settings, StubFetcher()) as client:
        response = client.get("/nowhere")
    assert response.status_code == 404


def test_injected_fetcher_not_closed(settings):
    fetcher = StubFetcher()
    with _client(settings, fetcher):
        pass
    assert fetcher.closed is False
