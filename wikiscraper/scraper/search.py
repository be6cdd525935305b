"""Keyword search through the Wikipedia OpenSearch API.

The endpoint answers with four parallel arrays::

    ["avion", ["Avion", "Avion de ligne"], ["", ""], ["https://…/Avion", "https://…"]]

Only the titles (index 1) and URLs (index 3) are used.
"""

from __future__ import annotations

import json

from wikiscraper.config import settings
from wikiscraper.scraper.errors import SearchResponseMalformedError
from wikiscraper.scraper.models import ParsedUrl, SearchHit
from wikiscraper.scraper.transport import HttpTransport
from wikiscraper.scraper.url import encode_query_segment

MIN_LIMIT = 1
MAX_LIMIT = 20


def clamp_limit(limit: int) -> int:
    """Bring *limit* into ``[MIN_LIMIT, MAX_LIMIT]``."""
    return max(MIN_LIMIT, min(MAX_LIMIT, limit))


def build_search_url(keyword: str, limit: int, host: str | None = None) -> ParsedUrl:
    """Return the OpenSearch request target for *keyword* (limit is clamped)."""
    path = (
        "/w/api.php?action=opensearch"
        f"&search={encode_query_segment(keyword)}"
        f"&limit={clamp_limit(limit)}"
        "&format=json"
    )
    return ParsedUrl(scheme="https", host=host or settings.search_host, port=443, path=path)


def direct_article_url(keyword: str, host: str | None = None) -> str:
    """Guess the article URL for *keyword* (``/wiki/Mot_cle``)."""
    title = keyword.strip().replace(" ", "_")
    if title:
        title = title[0].upper() + title[1:]
    return f"https://{host or settings.search_host}/wiki/{encode_query_segment(title)}"


def parse_opensearch(payload: object) -> list[SearchHit]:
    """Zip the titles and URLs arrays of a decoded OpenSearch payload.

    Raises:
        SearchResponseMalformedError: Anything other than the four-array shape
            with equally long, all-string title and URL arrays.
    """
    if not isinstance(payload, list) or len(payload) < 4:
        raise SearchResponseMalformedError(
            f"expected a 4-element array, got {type(payload).__name__}"
        )
    titles, urls = payload[1], payload[3]
    if not isinstance(titles, list) or not isinstance(urls, list):
        raise SearchResponseMalformedError("titles or urls element is not an array")
    if len(titles) != len(urls):
        raise SearchResponseMalformedError(
            f"{len(titles)} titles but {len(urls)} urls"
        )
    if not all(isinstance(v, str) for v in titles + urls):
        raise SearchResponseMalformedError("non-string entry in titles or urls")

    hits: list[SearchHit] = []
    seen: set[str] = set()
    for title, url in zip(titles, urls):
        key = url.lower().rstrip("/")
        if key not in seen:
            seen.add(key)
            hits.append(SearchHit(title=title, url=url))
    return hits


def search_titles(
    keyword: str,
    limit: int = 5,
    transport: HttpTransport | None = None,
) -> list[SearchHit]:
    """Search Wikipedia for *keyword* and return up to *limit* (title, url) hits.

    *limit* is clamped to 1–20 before the request is sent.

    Raises:
        SearchResponseMalformedError: Non-2xx status, invalid JSON or wrong shape.
        ScraperError: Transport failures, unchanged.
    """
    transport = transport or HttpTransport()
    target = build_search_url(keyword, limit)
    print(f"[search] GET {target.geturl()}")

    response = transport.request(target)
    if not response.ok:
        raise SearchResponseMalformedError(f"search endpoint answered HTTP {response.status_code}")
    try:
        payload = json.loads(response.body.decode("utf-8"))
    except (UnicodeDecodeError, ValueError) as exc:
        raise SearchResponseMalformedError(f"search response is not JSON: {exc}") from exc

    hits = parse_opensearch(payload)[: clamp_limit(limit)]
    print(f"[search] ✓ {len(hits)} result(s) for {keyword!r}.")
    return hits
