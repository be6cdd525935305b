"""Tests for the page fetcher and the content extractor.

Mocking strategy:
- ``fetch_url`` receives a ``MagicMock`` transport returning canned
  :class:`HttpResponse` objects, so no network calls are made.
- Extraction runs on small hand-written documents shaped like French
  Wikipedia article markup.
"""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest
from bs4 import BeautifulSoup

from wikiscraper.scraper.errors import HtmlParseError, HttpStatusError
from wikiscraper.scraper.extractor import (
    MAX_IMAGES,
    MAX_LINKS,
    _extract_links,
    _extract_title,
    extract,
    extract_content,
)
from wikiscraper.scraper.fetcher import fetch_url
from wikiscraper.scraper.models import HttpHeaders, HttpResponse, RawPage, WikipediaPage


# ---------------------------------------------------------------------------
# Fixtures / constants
# ---------------------------------------------------------------------------

_URL = "https://fr.wikipedia.org/wiki/Avion"

_ARTICLE_HTML = """\
<!DOCTYPE html>
<html lang="fr">
<head><title>Avion — Wikipédia</title></head>
<body>
<h1 id="firstHeading" class="firstHeading"><span class="mw-page-title-main">Avion</span></h1>
<div id="mw-content-text">
<div class="mw-parser-output">
  <div class="bandeau-container homonymie">Pour les articles homonymes, voir Avion (homonymie).</div>
  <table class="infobox">
    <tr><td><img src="//upload.wikimedia.org/wikipedia/commons/thumb/a/a1/Airbus_A380.jpg/250px-Airbus_A380.jpg" width="250" height="160"></td></tr>
    <tr><td><img src="//upload.wikimedia.org/wikipedia/commons/thumb/x/x1/Flag.svg/20px-Flag.svg.png" width="20" height="13"></td></tr>
  </table>
  <p class="mw-empty-elt"> </p>
  <p>Un <b>avion</b> est un <a href="/wiki/A%C3%A9ronef">aéronef</a> de plus lourd que l'air<sup class="reference"><a href="#cite_note-1">[1]</a></sup>.</p>
  <p>Second paragraph that is not the summary.</p>
  <div class="mw-heading mw-heading2"><h2 id="Histoire">Histoire</h2><span class="mw-editsection">[<a href="/w/index.php?title=Avion&amp;action=edit&amp;section=1">modifier</a>]</span></div>
  <p>Les <a href="/wiki/Fr%C3%A8res_Wright">frères Wright</a> et <a href="/wiki/A%C3%A9ronef#Types">aéronefs</a>.</p>
  <img src="https://upload.wikimedia.org/wikipedia/commons/b/b2/Wright_Flyer.jpg" alt="Flyer">
  <img src="/static/images/icons/wikipedia.png" width="150" height="150">
  <img src="https://upload.wikimedia.org/wikipedia/commons/c/c3/Commons-logo.svg">
  <div class="mw-heading mw-heading3"><h3 id="Pionniers">Pionniers</h3></div>
  <a href="/wiki/Fichier:Airbus_A380.jpg">file page</a>
  <a href="/wiki/Cat%C3%A9gorie:Avion">category</a>
  <a href="/wiki/Sp%C3%A9cial:Recherche">special</a>
  <a href="https://en.wikipedia.org/wiki/Airplane">other language</a>
  <a href="https://fr.wikipedia.org/wiki/Planeur">absolute same host</a>
  <a href="#Histoire">fragment only</a>
  <div class="mw-heading mw-heading2"><h2 id="Notes">Notes et références</h2></div>
  <h4>Too deep</h4>
</div>
</div>
</body>
</html>
"""

_NO_SUMMARY_HTML = """\
<html><body>
<h1 id="firstHeading">Planeur</h1>
<div class="mw-parser-output">
  <div class="mw-heading mw-heading2"><h2>Histoire</h2></div>
  <p>Paragraph after the first heading.</p>
  <h2>Technique</h2>
</div>
</body></html>
"""


def _response(status: int, body: bytes = b"", **headers: str) -> HttpResponse:
    return HttpResponse(
        status_code=status,
        reason="",
        headers=HttpHeaders([(k.replace("_", "-"), v) for k, v in headers.items()]),
        body=body,
        url=_URL,
    )


# ---------------------------------------------------------------------------
# fetch_url tests
# ---------------------------------------------------------------------------

class TestFetchUrl:
    def test_successful_fetch_returns_raw_page(self) -> None:
        transport = MagicMock()
        transport.request.return_value = _response(
            200, _ARTICLE_HTML.encode("utf-8"), Content_Type="text/html; charset=UTF-8"
        )
        raw = fetch_url(_URL, transport=transport)

        assert isinstance(raw, RawPage)
        assert raw.url == _URL
        assert raw.status_code == 200
        assert "Wikipédia" in raw.html

    def test_http_error_raises(self) -> None:
        transport = MagicMock()
        transport.request.return_value = _response(404, b"Not Found")
        with pytest.raises(HttpStatusError) as info:
            fetch_url("https://fr.wikipedia.org/wiki/Nope", transport=transport)
        assert info.value.status_code == 404

    def test_sends_language_header_without_overriding_accept(self) -> None:
        transport = MagicMock()
        transport.request.return_value = _response(200, b"<html></html>")
        fetch_url(_URL, transport=transport)

        headers = transport.request.call_args.kwargs["headers"]
        assert headers["Accept-Language"].startswith("fr")
        assert "Accept" not in headers

    def test_no_rate_limit_sleep_on_fetch(self) -> None:
        """``fetch_url`` must NOT call ``time.sleep``; pauses live in the session runner."""
        transport = MagicMock()
        transport.request.return_value = _response(200, b"<html></html>")
        with patch("time.sleep") as mock_sleep:
            fetch_url(_URL, transport=transport)

        mock_sleep.assert_not_called()


# ---------------------------------------------------------------------------
# Extractor unit tests
# ---------------------------------------------------------------------------

class TestExtractTitle:
    def test_primary_heading(self) -> None:
        soup = BeautifulSoup(_ARTICLE_HTML, "html.parser")
        assert _extract_title(soup) == "Avion"

    def test_falls_back_to_document_title(self) -> None:
        soup = BeautifulSoup("<html><head><title> My Title </title></head></html>", "html.parser")
        assert _extract_title(soup) == "My Title"

    def test_missing_title_returns_empty(self) -> None:
        soup = BeautifulSoup("<html><body><p>x</p></body></html>", "html.parser")
        assert _extract_title(soup) == ""


class TestExtractSummary:
    def test_first_paragraph_before_heading(self) -> None:
        page = extract(_ARTICLE_HTML, _URL)
        assert page.summary == "Un avion est un aéronef de plus lourd que l'air."

    def test_no_paragraph_before_first_heading(self) -> None:
        page = extract(_NO_SUMMARY_HTML, "https://fr.wikipedia.org/wiki/Planeur")
        assert page.summary == ""
        assert page.sections == ("Histoire", "Technique")

    def test_falls_back_to_main_container(self) -> None:
        html = "<html><body><nav><p>menu</p></nav><main><p> Main text. </p></main></body></html>"
        assert extract(html, "https://example.com/").summary == "Main text."


class TestExtractSections:
    def test_top_two_levels_in_order(self) -> None:
        page = extract(_ARTICLE_HTML, _URL)
        assert page.sections == ("Histoire", "Pionniers", "Notes et références")

    def test_toc_heading_excluded(self) -> None:
        html = (
            '<div class="mw-parser-output"><div id="toc"><h2>Sommaire</h2></div>'
            "<h2>Histoire</h2></div>"
        )
        assert extract(html, _URL).sections == ("Histoire",)


class TestExtractLinks:
    def test_internal_article_links_only(self) -> None:
        page = extract(_ARTICLE_HTML, _URL)
        assert page.links == (
            "https://fr.wikipedia.org/wiki/A%C3%A9ronef",
            "https://fr.wikipedia.org/wiki/Fr%C3%A8res_Wright",
            "https://fr.wikipedia.org/wiki/Planeur",
        )

    def test_deduplicates_links(self) -> None:
        html = "<html><body>" + '<a href="/wiki/Avion">Avion</a>' * 10 + "</body></html>"
        assert extract(html, _URL).links == ("https://fr.wikipedia.org/wiki/Avion",)

    def test_capped(self) -> None:
        soup = BeautifulSoup(
            "".join(f'<a href="/wiki/Page_{i}">{i}</a>' for i in range(MAX_LINKS + 10)),
            "html.parser",
        )
        links = _extract_links(soup, _URL)
        assert len(links) == MAX_LINKS
        assert links[0].endswith("/wiki/Page_0")

    def test_no_links_returns_empty(self) -> None:
        assert extract("<html><body>no links</body></html>", _URL).links == ()


class TestExtractImages:
    def test_icons_and_small_images_filtered(self) -> None:
        page = extract(_ARTICLE_HTML, _URL)
        assert page.images == (
            "https://upload.wikimedia.org/wikipedia/commons/thumb/a/a1/Airbus_A380.jpg/250px-Airbus_A380.jpg",
            "https://upload.wikimedia.org/wikipedia/commons/b/b2/Wright_Flyer.jpg",
        )

    def test_single_small_dimension_filters(self) -> None:
        html = '<body><img src="https://img.example.org/a.png" height="40"></body>'
        assert extract(html, _URL).images == ()

    @pytest.mark.parametrize("width", ["²", "٣٠٠", "12em", ""])
    def test_non_ascii_or_unitless_dimension_ignored(self, width: str) -> None:
        html = f'<body><img src="https://img.example.org/a.png" width="{width}"></body>'
        assert extract(html, _URL).images == ("https://img.example.org/a.png",)

    def test_non_image_sources_ignored(self) -> None:
        html = '<body><img src="data:image/png;base64,AAAA"><img src="https://x.org/track"></body>'
        assert extract(html, _URL).images == ()

    def test_deduplicated_and_capped(self) -> None:
        imgs = '<img src="https://x.org/same.jpg">' * 3
        imgs += "".join(f'<img src="https://x.org/p{i}.jpg">' for i in range(MAX_IMAGES + 5))
        images = extract(f"<body>{imgs}</body>", _URL).images
        assert len(images) == MAX_IMAGES
        assert images.count("https://x.org/same.jpg") == 1


class TestExtractContent:
    def test_returns_wikipedia_page(self) -> None:
        raw = RawPage(url=_URL, html=_ARTICLE_HTML, status_code=200)
        page = extract_content(raw)

        assert isinstance(page, WikipediaPage)
        assert page.url == _URL
        assert page.title == "Avion"

    def test_accepts_bytes(self) -> None:
        page = extract(_ARTICLE_HTML.encode("utf-8"), _URL)
        assert page.title == "Avion"

    def test_minimal_document_does_not_raise(self) -> None:
        page = extract("<html></html>", _URL)
        assert page == WikipediaPage(title="", url=_URL)

    @pytest.mark.parametrize("html", ["", "   \n", b"", "just some text, no markup"])
    def test_unparsable_raises(self, html: str | bytes) -> None:
        with pytest.raises(HtmlParseError):
            extract(html, _URL)

    def test_record_serialises_lists(self) -> None:
        data = extract(_ARTICLE_HTML, _URL).to_dict()
        assert data["title"] == "Avion"
        assert isinstance(data["sections"], list)
