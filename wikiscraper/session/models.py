"""Session-level data models: resolved configuration and the session itself."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import List, Optional

from wikiscraper.config import settings
from wikiscraper.scraper.models import SearchHit, WikipediaPage


class SessionMode(str, Enum):
    URLS = "urls"
    FILE = "file"
    KEYWORD = "keyword"


class SessionState(str, Enum):
    INIT = "init"
    RESOLVING_TARGETS = "resolving_targets"
    FETCHING_NEXT = "fetching_next"
    AGGREGATING = "aggregating"
    WRITING = "writing"
    DONE = "done"
    FAILED = "failed"


@dataclass
class SessionConfig:
    """Resolved invocation settings, however the CLI obtained them."""

    mode: SessionMode
    urls: List[str] = field(default_factory=list)
    url_file: Optional[Path] = None
    keyword: Optional[str] = None
    limit: int = 5
    output_dir: Path = field(default_factory=lambda: settings.output_dir)


@dataclass
class SkippedTarget:
    target: SearchHit
    reason: str


@dataclass
class SearchSession:
    """One invocation's unit of work and its accumulated records."""

    keyword: Optional[str]
    output_root: Path
    targets: List[SearchHit] = field(default_factory=list)
    started_at: datetime = field(default_factory=datetime.now)
    records: List[WikipediaPage] = field(default_factory=list)
    skipped: List[SkippedTarget] = field(default_factory=list)
    folder: Optional[Path] = None

    @property
    def name(self) -> str:
        """Base name of the session folder, before sanitising and timestamping."""
        return self.keyword or "batch"
