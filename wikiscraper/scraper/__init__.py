"""Scraper package: raw HTTP transport, search and content extraction."""

from wikiscraper.scraper.extractor import extract, extract_content
from wikiscraper.scraper.fetcher import fetch_url
from wikiscraper.scraper.models import RawPage, SearchHit, WikipediaPage
from wikiscraper.scraper.search import search_titles

__all__ = [
    "fetch_url",
    "extract",
    "extract_content",
    "search_titles",
    "RawPage",
    "SearchHit",
    "WikipediaPage",
]
