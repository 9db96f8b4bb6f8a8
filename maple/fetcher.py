"""
HTTP fetcher for Environment Canada city weather feeds.

Retrieves the raw Atom document and hands it to the extraction pipeline.
Transport concerns (retries, timeouts, headers) live here so that the
parsing code only ever sees bytes.
"""

import logging
from datetime import datetime
from typing import Optional, Tuple

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from .config import DEFAULT_FEED_URL, DEFAULT_TIMEOUT
from .report import WeatherReport, parse_feed

logger = logging.getLogger(__name__)

MAX_RETRIES = 3
RETRY_BACKOFF = 0.5
USER_AGENT = "MapleWeatherFetcher/1.0"


class FetchError(Exception):
    """Custom exception for feed fetching errors."""
    pass


class FeedFetcher:
    """
    Fetcher for a city weather feed.

    Usable as a context manager; the underlying HTTP session is closed on
    exit.
    """

    def __init__(self, feed_url: str = DEFAULT_FEED_URL, timeout: int = DEFAULT_TIMEOUT):
        self.feed_url = feed_url
        self.timeout = timeout
        self._session = self._create_session()

    def __enter__(self) -> "FeedFetcher":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def _create_session(self) -> requests.Session:
        """Create HTTP session with retry strategy for availability."""
        session = requests.Session()

        retry_strategy = Retry(
            total=MAX_RETRIES,
            backoff_factor=RETRY_BACKOFF,
            status_forcelist=[429, 500, 502, 503, 504],
            allowed_methods=["GET", "HEAD"]
        )

        adapter = HTTPAdapter(max_retries=retry_strategy)
        session.mount("http://", adapter)
        session.mount("https://", adapter)

        session.headers.update({
            "User-Agent": USER_AGENT,
            "Accept": "application/atom+xml, application/xml, text/xml, */*"
        })

        return session

    def fetch_raw(self, url: Optional[str] = None) -> Tuple[bytes, int]:
        """Fetch raw feed bytes; returns (content, response time in ms)."""
        url = url or self.feed_url
        start_time = datetime.utcnow()

        try:
            response = self._session.get(url, timeout=self.timeout, allow_redirects=True)
            response.raise_for_status()
        except requests.Timeout:
            raise FetchError(f"Request timed out after {self.timeout}s")
        except requests.ConnectionError as e:
            raise FetchError(f"Connection error - source unavailable: {e}")
        except requests.HTTPError as e:
            raise FetchError(f"HTTP error {e.response.status_code}")
        except requests.RequestException as e:
            raise FetchError(f"Request failed: {e}")

        response_time = int((datetime.utcnow() - start_time).total_seconds() * 1000)
        logger.info(f"Fetched {url}: {len(response.content)} bytes in {response_time}ms")
        return response.content, response_time

    def fetch_report(self, url: Optional[str] = None) -> WeatherReport:
        """
        Fetch a feed and run it through the extraction pipeline.

        Raises:
            FetchError: the feed could not be retrieved.
            DecodeError: the feed was retrieved but is not a valid envelope.
        """
        content, _ = self.fetch_raw(url)
        return parse_feed(content)

    def close(self) -> None:
        """Close HTTP session."""
        self._session.close()
