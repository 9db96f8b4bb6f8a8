"""
Runtime settings for the Maple service.

Settings are read once from the environment and passed explicitly to the
pieces that need them; nothing here is module-level state.
"""

import os
from dataclasses import dataclass
from typing import Mapping, Optional, Tuple

DEFAULT_FEED_URL = "https://weather.gc.ca/rss/city/qc-147_e.xml"
DEFAULT_TIMEOUT = 15  # seconds


@dataclass(frozen=True)
class Settings:
    feed_url: str = DEFAULT_FEED_URL
    timeout: int = DEFAULT_TIMEOUT
    host: str = "0.0.0.0"
    port: int = 8000
    log_level: str = "INFO"
    cors_origins: Tuple[str, ...] = ("*",)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        """Build settings from environment variables, falling back to defaults."""
        env = os.environ if environ is None else environ
        return cls(
            feed_url=env.get("MAPLE_FEED_URL", DEFAULT_FEED_URL),
            timeout=int(env.get("MAPLE_TIMEOUT", DEFAULT_TIMEOUT)),
            host=env.get("HOST", "0.0.0.0"),
            port=int(env.get("PORT", "8000")),
            log_level=env.get("LOG_LEVEL", "INFO").upper(),
            cors_origins=tuple(
                origin.strip() for origin in env.get("CORS_ORIGINS", "*").split(",") if origin.strip()
            ),
        )
