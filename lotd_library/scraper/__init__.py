"""Scraping components for the Legacy of the Dragonborn wiki library.

This module provides:
- LibraryScraper: Async crawler over the three library floors
- PageFetcher: aiohttp page source
- WikiParser: Item page and floor listing parser
- RetryPolicy: Capped exponential backoff
- Storage utilities: JSON output of scraped books

Usage:
    from lotd_library.scraper import LibraryScraper, PageFetcher, emit_books

    async with PageFetcher() as fetcher:
        books = await LibraryScraper(fetcher).scrape_library()
    emit_books(books)
"""

from .fetcher import PageFetcher, PageSource
from .floors import DEFAULT_FLOORS, FIRST_FLOOR, SECOND_FLOOR, THIRD_FLOOR
from .library_scraper import LibraryScraper, ScraperStats
from .models import Book, FloorConfig, LinkRef, ListingShape
from .parsers import WikiParser, WikiSelectors, is_item_link, parse_document
from .retry import RetryPolicy
from .storage import dump_books, emit_books, load_books

__all__ = [
    "Book",
    "FloorConfig",
    "LinkRef",
    "ListingShape",
    "DEFAULT_FLOORS",
    "FIRST_FLOOR",
    "SECOND_FLOOR",
    "THIRD_FLOOR",
    "LibraryScraper",
    "ScraperStats",
    "PageFetcher",
    "PageSource",
    "WikiParser",
    "WikiSelectors",
    "is_item_link",
    "parse_document",
    "RetryPolicy",
    "dump_books",
    "emit_books",
    "load_books",
]
