"""Session orchestration: resolve targets, fetch and extract each one, write output.

States::

    INIT → RESOLVING_TARGETS → FETCHING_NEXT → AGGREGATING → WRITING → DONE
                         (any) → FAILED

Targets are processed strictly one after another with a fixed pause between
successive fetches.  A failing target is reported and skipped; only search
failures, an empty result set and bad configuration end the session.
"""

from __future__ import annotations

import threading
import time
from pathlib import Path
from typing import List, Optional
from urllib.parse import unquote, urlsplit

from wikiscraper.config import settings
from wikiscraper.scraper.errors import (
    ConfigurationError,
    ConnectError,
    NoResultsError,
    ScraperError,
)
from wikiscraper.scraper.extractor import extract_content
from wikiscraper.scraper.fetcher import fetch_url
from wikiscraper.scraper.models import SearchHit, WikipediaPage
from wikiscraper.scraper.search import clamp_limit, direct_article_url, search_titles
from wikiscraper.session.models import (
    SearchSession,
    SessionConfig,
    SessionMode,
    SessionState,
    SkippedTarget,
)
from wikiscraper.session.writer import write_session


def read_url_file(path: Path) -> List[str]:
    """One URL per line; blank lines and ``#`` comments are ignored."""
    try:
        content = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigurationError(f"cannot read URL file {path}: {exc}") from exc
    return [
        line.strip()
        for line in content.splitlines()
        if line.strip() and not line.strip().startswith("#")
    ]


def title_from_url(url: str) -> str:
    """Best-effort article title from the last path segment of *url*."""
    segment = urlsplit(url).path.rstrip("/").rsplit("/", 1)[-1]
    return unquote(segment).replace("_", " ")


class SessionRunner:
    """Drive one session through its states.

    Args:
        config: Resolved invocation settings.
        cancel: Optional flag; when set, no further target is started.
    """

    def __init__(self, config: SessionConfig, cancel: Optional[threading.Event] = None) -> None:
        self.config = config
        self.cancel = cancel or threading.Event()
        self.state = SessionState.INIT
        self.session = SearchSession(
            keyword=config.keyword if config.mode is SessionMode.KEYWORD else None,
            output_root=Path(config.output_dir),
        )

    # ------------------------------------------------------------------
    # States
    # ------------------------------------------------------------------
    def _validate(self) -> List[str]:
        """Check the mode/input combination; return the direct URLs (if any)."""
        cfg = self.config
        supplied = {
            SessionMode.URLS: bool(cfg.urls),
            SessionMode.FILE: cfg.url_file is not None,
            SessionMode.KEYWORD: bool(cfg.keyword and cfg.keyword.strip()),
        }
        if not supplied[cfg.mode]:
            raise ConfigurationError(f"mode {cfg.mode.value!r} given without its input")
        extra = [mode.value for mode, given in supplied.items() if given and mode is not cfg.mode]
        if extra:
            raise ConfigurationError(
                f"mode {cfg.mode.value!r} cannot be combined with {', '.join(extra)}"
            )

        if cfg.mode is SessionMode.KEYWORD:
            return []
        urls = read_url_file(cfg.url_file) if cfg.mode is SessionMode.FILE else cfg.urls
        urls = [u.strip() for u in urls if u.strip()]
        if not urls:
            raise ConfigurationError("no URL to scrape")
        return urls

    def _resolve_targets(self, urls: List[str]) -> List[SearchHit]:
        if self.config.mode is not SessionMode.KEYWORD:
            return [SearchHit(title=title_from_url(u), url=u) for u in urls]

        keyword = self.config.keyword.strip()
        hits = search_titles(keyword, clamp_limit(self.config.limit))
        if not hits:
            url = direct_article_url(keyword)
            print(f"[session] no search result for {keyword!r}, trying {url}")
            hits = [SearchHit(title=keyword, url=url)]
        return hits

    def _fetch_one(self, target: SearchHit) -> WikipediaPage:
        """Fetch and extract *target*, retrying connection failures ``fetch_retries`` times."""
        retries = max(0, settings.fetch_retries)
        attempt = 0
        while True:
            try:
                return extract_content(fetch_url(target.url))
            except ConnectError as exc:
                if attempt >= retries:
                    raise
                attempt += 1
                print(f"[session] {exc} (retry {attempt}/{retries}) …")
                time.sleep(settings.rate_limit_delay)

    def _fetch_all(self) -> None:
        session = self.session
        seen_titles: set[str] = set()
        total = len(session.targets)

        for index, target in enumerate(session.targets):
            if self.cancel.is_set():
                print(f"[session] cancelled, {total - index} target(s) not fetched.")
                break
            if index:
                try:
                    time.sleep(settings.rate_limit_delay)
                except KeyboardInterrupt:
                    print(f"[session] interrupted, {total - index} target(s) not fetched.")
                    self.cancel.set()
                    break

            print(f"[session] [{index + 1}/{total}] {target.url}")
            try:
                page = self._fetch_one(target)
            except ScraperError as exc:
                print(f"[session] ✗ skipped {target.url}: {exc}")
                session.skipped.append(SkippedTarget(target=target, reason=str(exc)))
                continue
            except KeyboardInterrupt:
                print(f"[session] interrupted, abandoning {target.url}.")
                session.skipped.append(SkippedTarget(target=target, reason="interrupted"))
                self.cancel.set()
                break

            key = page.title.lower()
            if key and key in seen_titles:
                print(f"[session] ⚠ {page.title!r} already scraped, ignored.")
                continue
            seen_titles.add(key)
            session.records.append(page)
            print(
                f"[session] ✓ {page.title!r}: {len(page.sections)} sections, "
                f"{len(page.links)} links, {len(page.images)} images"
            )

    # ------------------------------------------------------------------
    # Entry point
    # ------------------------------------------------------------------
    def run(self) -> SearchSession:
        """Run the session to completion.

        Raises:
            ConfigurationError: Missing or conflicting inputs, or no targets.
            SearchResponseMalformedError: The keyword search could not be decoded.
            NoResultsError: Every target was skipped.
        """
        try:
            urls = self._validate()

            self.state = SessionState.RESOLVING_TARGETS
            self.session.targets = self._resolve_targets(urls)

            self.state = SessionState.FETCHING_NEXT
            self._fetch_all()

            self.state = SessionState.AGGREGATING
            if not self.session.records:
                raise NoResultsError(
                    f"none of the {len(self.session.targets)} target(s) could be scraped"
                )

            self.state = SessionState.WRITING
            write_session(self.session)
        except BaseException:
            self.state = SessionState.FAILED
            raise

        self.state = SessionState.DONE
        return self.session


def run_session(config: SessionConfig, cancel: Optional[threading.Event] = None) -> SearchSession:
    """Convenience wrapper around :class:`SessionRunner`."""
    return SessionRunner(config, cancel=cancel).run()
