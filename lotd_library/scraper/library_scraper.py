"""
Crawler for the Legacy of the Dragonborn library floors.

Handles:
- Discovering book links on each floor page (shelves and tables)
- Extracting every book page concurrently, bounded by a semaphore
- Retrying truncated or failed page loads with backoff
- Crawling the floors one after another in a fixed order

Example:
    >>> async with PageFetcher() as fetcher:
    ...     scraper = LibraryScraper(fetcher)
    ...     books = await scraper.scrape_library()
    >>> print(dump_books(books))
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, List, Optional

from bs4 import BeautifulSoup

from lotd_library.utils.config import AppConfig, get_config
from lotd_library.utils.exceptions import EmptyListingError
from lotd_library.utils.logger import get_logger, log_execution_time

from .fetcher import PageSource
from .floors import DEFAULT_FLOORS
from .models import Book, FloorConfig, LinkRef
from .parsers import WikiParser, parse_document
from .retry import RetryPolicy

logger = get_logger(__name__)


@dataclass
class ScraperStats:
    """Counters for one scraping session."""
    pages_fetched: int = 0
    books_scraped: int = 0
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None

    def start(self) -> None:
        self.start_time = datetime.now()

    def stop(self) -> None:
        self.end_time = datetime.now()

    @property
    def duration_seconds(self) -> float:
        if not self.start_time:
            return 0.0
        end = self.end_time or datetime.now()
        return (end - self.start_time).total_seconds()

    def __str__(self) -> str:
        return (
            f"ScraperStats(books={self.books_scraped}, "
            f"pages={self.pages_fetched}, "
            f"duration={self.duration_seconds:.1f}s)"
        )


class LibraryScraper:
    """
    Scrapes book titles and locations from the library floor pages.

    The fetcher is injected so the crawl logic can run against any page
    source; in production it is a ``PageFetcher``.

    Attributes:
        fetcher: Page source used for every download.
        parser: Wiki page parser.
        retry_policy: Backoff policy for item and floor loads.
        stats: Session counters.
    """

    def __init__(
        self,
        fetcher: PageSource,
        config: Optional[AppConfig] = None,
        parser: Optional[WikiParser] = None,
        retry_policy: Optional[RetryPolicy] = None,
    ):
        """
        Args:
            fetcher: Page source. Its lifecycle is owned by the caller.
            config: Application config. If None, uses get_config().
            parser: Custom parser. If None, builds one from config.
            retry_policy: Custom retry policy. If None, builds one from config.
        """
        self.config = config or get_config()
        self.fetcher = fetcher
        self.parser = parser or WikiParser(
            base_url=self.config.scraper.base_url,
            acquisition_overrides=self.config.extraction.acquisition_overrides,
        )
        self.retry_policy = retry_policy or RetryPolicy.from_config(self.config.retry)
        self.max_concurrency = self.config.scraper.max_concurrency
        self._semaphore = asyncio.Semaphore(self.max_concurrency)
        self.stats = ScraperStats()

        logger.debug(
            f"LibraryScraper initialized: max_concurrency={self.max_concurrency}, "
            f"max_attempts={self.retry_policy.max_attempts}"
        )

    async def _load(self, url: str) -> BeautifulSoup:
        """Fetch and parse one page, holding a concurrency slot while downloading."""
        async with self._semaphore:
            html = await self.fetcher.fetch(url)
        self.stats.pages_fetched += 1
        return parse_document(html)

    # =========================================
    # Book pages
    # =========================================

    async def extract_book(self, url: str) -> Book:
        """
        Fetch a book page and extract its title and locations.

        A page that parses to an empty title or no locations is treated as a
        bad download and fetched again.

        Args:
            url: Absolute URL of the book page.

        Returns:
            The extracted Book.

        Raises:
            RetryExhaustedError: If no attempt produced a valid book.
            NetworkError: On a non-retryable HTTP error.
        """
        async def attempt() -> Book:
            soup = await self._load(url)
            return self.parser.parse_book(soup, url)

        book = await self.retry_policy.run(attempt, f"extract book from {url}")
        self.stats.books_scraped += 1
        logger.debug(f"Extracted '{book.title}' ({len(book.locations)} locations)")
        return book

    # =========================================
    # Floor pages
    # =========================================

    async def discover_links(self, floor: FloorConfig) -> List[LinkRef]:
        """
        Fetch a floor page and list its book links in discovery order.

        Raises:
            EmptyListingError: If the page yields no links at all.
        """
        soup = await self._load(floor.url)

        refs: List[LinkRef] = []
        for shape in floor.shapes:
            urls = self.parser.collect_links(
                soup,
                shape,
                exclusions=floor.extra_exclusions,
                max_shelves=floor.max_shelves,
            )
            refs.extend(LinkRef(url=url, shape=shape) for url in urls)

        if not refs:
            raise EmptyListingError(url=floor.url)

        logger.info(f"{floor.name}: found {len(refs)} book links")
        return refs

    async def crawl_floor(self, floor: FloorConfig) -> List[Book]:
        """
        Scrape every book linked from one floor page.

        All book pages are requested together and awaited as a group; the
        result keeps link discovery order. If any book fails for good, the
        remaining requests are cancelled and the error propagates.

        Args:
            floor: Floor to crawl.

        Returns:
            Books in discovery order.
        """
        refs = await self.retry_policy.run(
            lambda: self.discover_links(floor),
            f"list books on {floor.name}",
        )

        tasks = [asyncio.create_task(self.extract_book(ref.url)) for ref in refs]
        try:
            books = list(await asyncio.gather(*tasks))
        finally:
            pending = [task for task in tasks if not task.done()]
            for task in pending:
                task.cancel()
            if pending:
                await asyncio.gather(*pending, return_exceptions=True)

        logger.info(f"{floor.name}: scraped {len(books)} books")
        return books

    # =========================================
    # Whole library
    # =========================================

    async def scrape_library(self, floors: Iterable[FloorConfig] = DEFAULT_FLOORS) -> List[Book]:
        """
        Crawl the floors one after another and concatenate their books.

        Args:
            floors: Floors in output order.

        Returns:
            All books, floor by floor.
        """
        self.stats.start()
        all_books: List[Book] = []
        try:
            for floor in floors:
                with log_execution_time(logger, f"crawling {floor.name}"):
                    all_books.extend(await self.crawl_floor(floor))
        finally:
            self.stats.stop()

        logger.info(f"Library scrape complete: {len(all_books)} books. {self.stats}")
        return all_books
