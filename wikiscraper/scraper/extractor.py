"""Content extraction: turns a :class:`RawPage` into a :class:`WikipediaPage`.

Each field is pulled by its own structural query over the BeautifulSoup DOM.
A query that finds nothing yields an empty value; only input that cannot be
parsed into a document at all raises :class:`HtmlParseError`.
"""

from __future__ import annotations

import copy
import re
from typing import List
from urllib.parse import unquote, urljoin, urlsplit

from bs4 import BeautifulSoup, ParserRejectedMarkup, Tag

from wikiscraper.scraper.errors import HtmlParseError
from wikiscraper.scraper.models import RawPage, WikipediaPage

MAX_LINKS = 50
MAX_IMAGES = 20
MIN_IMAGE_SIZE = 100

_CONTAINER_SELECTORS = ("#mw-content-text div.mw-parser-output", "div.mw-parser-output", "main", "article")
_NOISE_SELECTOR = "span.mw-editsection, sup.reference, style, script"
_HEADING_TAGS = {"h1", "h2", "h3", "h4", "h5", "h6"}
_CITATION_MARK = re.compile(r"\[\s*\d+\s*\]")
_IMAGE_EXTENSIONS = (".jpg", ".jpeg", ".png", ".svg", ".gif")
_ICON_FRAGMENTS = ("/static/images/", "/icons/", "icon", "logo", "20px-", "15px-")


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _text(el: Tag) -> str:
    """Visible text of *el*, edit links and citation markers removed, whitespace collapsed."""
    el = copy.copy(el)
    for junk in el.select(_NOISE_SELECTOR):
        junk.decompose()
    text = " ".join(el.get_text().split())
    return _CITATION_MARK.sub("", text).strip()


def _content_container(soup: BeautifulSoup) -> Tag:
    for selector in _CONTAINER_SELECTORS:
        found = soup.select_one(selector)
        if found is not None:
            return found
    return soup.body or soup


def _extract_title(soup: BeautifulSoup) -> str:
    """Primary heading text, falling back to ``<title>``, else empty string."""
    heading = soup.select_one("h1#firstHeading") or soup.find("h1")
    if heading is not None:
        title = _text(heading)
        if title:
            return title
    if soup.title is not None:
        return " ".join(soup.title.get_text().split())
    return ""


def _is_section_break(el: Tag) -> bool:
    if el.name in _HEADING_TAGS:
        return True
    return el.name == "div" and "mw-heading" in (el.get("class") or [])


def _extract_summary(container: Tag) -> str:
    """First non-empty ``<p>`` directly under *container*, before any heading."""
    for child in container.find_all(True, recursive=False):
        if _is_section_break(child):
            break
        if child.name == "p":
            text = _text(child)
            if text:
                return text
    return ""


def _extract_sections(container: Tag) -> List[str]:
    sections: List[str] = []
    for heading in container.find_all(["h2", "h3"]):
        if heading.find_parent(id="toc") is not None:
            continue
        text = _text(heading)
        if text:
            sections.append(text)
    return sections


def _extract_links(container: Tag, source_url: str) -> List[str]:
    """Absolute article URLs on the source host, deduplicated, capped at :data:`MAX_LINKS`.

    Namespaced pages (``Fichier:``, ``Catégorie:``, ``Spécial:`` …) are
    excluded; fragments and query strings are dropped.
    """
    source_host = urlsplit(source_url).netloc.lower()
    seen: set[str] = set()
    links: List[str] = []
    for anchor in container.select("a[href]"):
        href = anchor["href"].strip()
        if not href or href.startswith("#"):
            continue
        parts = urlsplit(urljoin(source_url, href))
        if parts.scheme not in ("http", "https"):
            continue
        if source_host and parts.netloc.lower() != source_host:
            continue
        if not parts.path.startswith("/wiki/"):
            continue
        title = unquote(parts.path[len("/wiki/"):])
        if not title or ":" in title:
            continue
        url = f"{parts.scheme}://{parts.netloc}{parts.path}"
        if url not in seen:
            seen.add(url)
            links.append(url)
            if len(links) >= MAX_LINKS:
                break
    return links


def _dimension(value: object) -> int | None:
    if not isinstance(value, str):
        return None
    digits = value.strip().lower().removesuffix("px")
    return int(digits) if digits.isascii() and digits.isdigit() else None


def _is_icon(img: Tag, src: str) -> bool:
    for attr in ("width", "height"):
        size = _dimension(img.get(attr))
        if size is not None and size < MIN_IMAGE_SIZE:
            return True
    lowered = src.lower()
    return any(fragment in lowered for fragment in _ICON_FRAGMENTS)


def _extract_images(container: Tag, source_url: str) -> List[str]:
    seen: set[str] = set()
    images: List[str] = []
    for img in container.select("img[src]"):
        url = urljoin(source_url, img["src"].strip())
        parts = urlsplit(url)
        if parts.scheme not in ("http", "https"):
            continue
        if not any(ext in parts.path.lower() for ext in _IMAGE_EXTENSIONS):
            continue
        if _is_icon(img, url):
            continue
        if url not in seen:
            seen.add(url)
            images.append(url)
            if len(images) >= MAX_IMAGES:
                break
    return images


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def extract(html: bytes | str, source_url: str) -> WikipediaPage:
    """Build a :class:`WikipediaPage` from *html* fetched at *source_url*.

    Missing fields are returned empty rather than failing the page.

    Raises:
        HtmlParseError: Empty input, markup rejected by the parser, or a
            document without a single element.
    """
    if isinstance(html, bytes):
        html = html.decode("utf-8", errors="replace")
    if not html.strip():
        raise HtmlParseError(f"empty document from {source_url}")

    try:
        soup = BeautifulSoup(html, "html.parser")
    except ParserRejectedMarkup as exc:
        raise HtmlParseError(f"unparsable document from {source_url}: {exc}") from exc
    if soup.find(True) is None:
        raise HtmlParseError(f"no HTML element in document from {source_url}")

    container = _content_container(soup)
    return WikipediaPage(
        title=_extract_title(soup),
        url=source_url,
        summary=_extract_summary(container),
        sections=tuple(_extract_sections(container)),
        links=tuple(_extract_links(container, source_url)),
        images=tuple(_extract_images(container, source_url)),
    )


def extract_content(raw: RawPage) -> WikipediaPage:
    """Extract a :class:`WikipediaPage` from a fetched :class:`RawPage`."""
    return extract(raw.html, raw.url)
