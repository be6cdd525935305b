"""Page fetcher: one article URL in, one :class:`RawPage` out."""

from __future__ import annotations

from wikiscraper.scraper.errors import HttpStatusError
from wikiscraper.scraper.models import RawPage
from wikiscraper.scraper.transport import HttpTransport

_DEFAULT_HEADERS = {
    "Accept-Language": "fr,fr-FR;q=0.8,en-US;q=0.5,en;q=0.3",
}


def fetch_url(url: str, transport: HttpTransport | None = None) -> RawPage:
    """Fetch *url* and return a :class:`RawPage`.

    Redirects are followed by the transport; ``RawPage.url`` is the original
    *url* so records stay keyed by what the caller asked for.  No pause is
    taken here, rate limiting belongs to the session runner.

    Raises:
        HttpStatusError: If the final response is not a 2xx.
        ScraperError: Any URL or transport failure, unchanged.
    """
    transport = transport or HttpTransport()
    response = transport.request(url, headers=_DEFAULT_HEADERS)
    if not response.ok:
        raise HttpStatusError(response.status_code, response.url or url)

    return RawPage(url=url, html=response.text(), status_code=response.status_code)
