"""Centralised settings for the Wikipedia scraper.

All runtime configuration is resolved here in one place.  Values can be
overridden via environment variables or a `.env` file in the project root
(loaded automatically when this module is imported).
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

# Load .env from the project root (two levels up from this file)
_env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(_env_path, override=False)


@dataclass
class Settings:
    # ------------------------------------------------------------------
    # Output
    # ------------------------------------------------------------------
    output_dir: Path = field(
        default_factory=lambda: Path(os.environ.get("RESULTS_DIR", "resultats"))
    )

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------
    request_timeout: float = field(
        default_factory=lambda: float(os.environ.get("REQUEST_TIMEOUT", "15.0"))
    )
    max_redirects: int = field(
        default_factory=lambda: int(os.environ.get("MAX_REDIRECTS", "5"))
    )
    user_agent: str = field(
        default_factory=lambda: os.environ.get(
            "SCRAPER_USER_AGENT",
            "WikiScraper/1.0 (+https://fr.wikipedia.org/wiki/Wikipedia:Bots)",
        )
    )

    # ------------------------------------------------------------------
    # Session
    # ------------------------------------------------------------------
    rate_limit_delay: float = field(
        default_factory=lambda: float(os.environ.get("RATE_LIMIT_DELAY", "1.0"))
    )
    fetch_retries: int = field(
        default_factory=lambda: int(os.environ.get("FETCH_RETRIES", "0"))
    )

    # ------------------------------------------------------------------
    # Search
    # ------------------------------------------------------------------
    search_host: str = field(
        default_factory=lambda: os.environ.get("SEARCH_HOST", "fr.wikipedia.org")
    )

    def ensure_output_dir(self) -> None:
        """Create the output root if it does not exist."""
        self.output_dir.mkdir(parents=True, exist_ok=True)


# Module-level singleton, import this everywhere:
#   from wikiscraper.config import settings
settings = Settings()
