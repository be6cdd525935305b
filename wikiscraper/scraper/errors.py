"""Exception hierarchy shared by the transport, search, extraction and session layers."""

from __future__ import annotations


class ScraperError(Exception):
    """Base class for every error raised by the scraper."""


# ---------------------------------------------------------------------------
# URL parsing
# ---------------------------------------------------------------------------

class MalformedUrlError(ScraperError):
    """The string has no ``://`` delimiter, an empty host or a bad port."""


class UnsupportedSchemeError(ScraperError):
    """The scheme is neither ``http`` nor ``https``."""


# ---------------------------------------------------------------------------
# Transport
# ---------------------------------------------------------------------------

class ConnectError(ScraperError, ConnectionError):
    """DNS failure, refused connection, TLS failure or timeout."""


class ProtocolError(ScraperError):
    """The peer sent bytes that do not frame as an HTTP/1.1 response."""


class TruncatedResponseError(ScraperError):
    """The stream closed before the announced body was fully read."""


class TooManyRedirects(ScraperError):
    """The redirect chain is longer than the configured hop limit."""


class HttpStatusError(ScraperError):
    """A page fetch ended on a non-2xx status code."""

    def __init__(self, status_code: int, url: str) -> None:
        super().__init__(f"HTTP {status_code} for {url}")
        self.status_code = status_code
        self.url = url


# ---------------------------------------------------------------------------
# Search / extraction
# ---------------------------------------------------------------------------

class SearchResponseMalformedError(ScraperError):
    """The OpenSearch payload is not ``[query, titles, descriptions, urls]``."""


class HtmlParseError(ScraperError):
    """The fetched bytes cannot be parsed into a document at all."""


# ---------------------------------------------------------------------------
# Session
# ---------------------------------------------------------------------------

class NoResultsError(ScraperError):
    """Every target of a session failed or was skipped."""


class ConfigurationError(ScraperError):
    """The session was configured with no targets or conflicting modes."""
