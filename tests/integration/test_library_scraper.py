"""Integration tests for the library crawl against in-memory pages."""

import pytest

from lotd_library.scraper.library_scraper import LibraryScraper
from lotd_library.scraper.models import Book, FloorConfig, ListingShape
from lotd_library.scraper.retry import RetryPolicy
from lotd_library.scraper.storage import dump_books
from lotd_library.utils.exceptions import EmptyExtractionError, NetworkError, RetryExhaustedError

WIKI = "https://legacy-of-the-dragonborn.fandom.com"


class TestExtractBook:
    """Test single book extraction with retries."""

    @pytest.mark.asyncio
    async def test_valid_page(self, test_config, fetcher_factory, make_item_page):
        url = f"{WIKI}/wiki/Book_A"
        fetcher = fetcher_factory({url: make_item_page("Book A", "<ul><li>Here</li><li>There</li></ul>")})

        book = await LibraryScraper(fetcher, config=test_config).extract_book(url)

        assert book == Book(title="Book A", locations=["Here", "There"])
        assert fetcher.calls_to(url) == 1

    @pytest.mark.asyncio
    async def test_corrupted_then_valid_retries_once(self, test_config, fetcher_factory, make_item_page):
        """A truncated download is fetched again and never returned."""
        url = f"{WIKI}/wiki/Book_A"
        fetcher = fetcher_factory({
            url: [
                "<html><body><div class='mw-parser-output'>",
                make_item_page("Book A", "<p>Here</p>"),
            ],
        })
        scraper = LibraryScraper(fetcher, config=test_config)

        book = await scraper.extract_book(url)

        assert fetcher.calls_to(url) == 2
        assert book.title == "Book A"
        assert book.locations == ("Here",)

    @pytest.mark.asyncio
    async def test_transient_network_error_retried(self, test_config, fetcher_factory, make_item_page):
        url = f"{WIKI}/wiki/Book_A"
        fetcher = fetcher_factory({
            url: [NetworkError("HTTP 503", url=url, status_code=503), make_item_page("Book A", "<p>Here</p>")],
        })

        book = await LibraryScraper(fetcher, config=test_config).extract_book(url)

        assert book.title == "Book A"
        assert fetcher.calls_to(url) == 2

    @pytest.mark.asyncio
    async def test_gives_up_after_max_attempts(self, test_config, fetcher_factory):
        url = f"{WIKI}/wiki/Broken"
        fetcher = fetcher_factory({url: "<html></html>"})

        with pytest.raises(RetryExhaustedError) as exc_info:
            await LibraryScraper(fetcher, config=test_config).extract_book(url)

        assert fetcher.calls_to(url) == test_config.retry.max_attempts
        assert isinstance(exc_info.value.__cause__, EmptyExtractionError)

    @pytest.mark.asyncio
    async def test_not_found_is_not_retried(self, test_config, fetcher_factory):
        url = f"{WIKI}/wiki/Missing"
        fetcher = fetcher_factory({})

        with pytest.raises(NetworkError) as exc_info:
            await LibraryScraper(fetcher, config=test_config).extract_book(url)

        assert exc_info.value.status_code == 404
        assert fetcher.calls_to(url) == 1


class TestCrawlFloor:
    """Test a single floor crawl."""

    @pytest.mark.asyncio
    async def test_first_floor_order(self, test_config, fetcher_factory, library_pages, library_floors):
        """Shelves top-to-bottom, then tables; file links skipped."""
        scraper = LibraryScraper(fetcher_factory(library_pages), config=test_config)

        books = await scraper.crawl_floor(library_floors[0])

        assert [book.title for book in books] == ["Book A", "Book B", "Book C", "Book D"]

    @pytest.mark.asyncio
    async def test_excluded_article_not_followed(self, test_config, fetcher_factory, library_pages, library_floors):
        fetcher = fetcher_factory(library_pages)
        scraper = LibraryScraper(fetcher, config=test_config)

        refs = await scraper.discover_links(library_floors[2])
        books = await scraper.crawl_floor(library_floors[2])

        assert f"{WIKI}/wiki/Treasure_Hunter" not in [ref.url for ref in refs]
        assert f"{WIKI}/wiki/Treasure_Hunter" not in fetcher.calls
        assert [book.title for book in books] == ["Treasure Map XXI", "Book G"]
        assert books[0].locations == ("Found in a chest beneath the Skyforge.",)

    @pytest.mark.asyncio
    async def test_link_refs_carry_shape(self, test_config, fetcher_factory, library_pages, library_floors):
        scraper = LibraryScraper(fetcher_factory(library_pages), config=test_config)

        refs = await scraper.discover_links(library_floors[0])

        assert [ref.shape for ref in refs] == [ListingShape.SHELF] * 3 + [ListingShape.TABLE]

    @pytest.mark.asyncio
    async def test_empty_floor_page_retried(
        self, test_config, fetcher_factory, library_pages, library_floors
    ):
        """A floor page that loads without links is fetched again."""
        floor = library_floors[1]
        library_pages[floor.url] = ["<html><body></body></html>", library_pages[floor.url]]
        fetcher = fetcher_factory(library_pages)

        books = await LibraryScraper(fetcher, config=test_config).crawl_floor(floor)

        assert fetcher.calls_to(floor.url) == 2
        assert [book.title for book in books] == ["Book E", "Book F"]

    @pytest.mark.asyncio
    async def test_empty_floor_gives_up(self, test_config, fetcher_factory, make_table_page):
        floor = FloorConfig(name="Empty", url=f"{WIKI}/wiki/Empty", shapes=(ListingShape.TABLE,))
        fetcher = fetcher_factory({floor.url: make_table_page([])})

        with pytest.raises(RetryExhaustedError):
            await LibraryScraper(fetcher, config=test_config).crawl_floor(floor)

        assert fetcher.calls_to(floor.url) == test_config.retry.max_attempts

    @pytest.mark.asyncio
    async def test_failed_book_aborts_floor(self, test_config, fetcher_factory, library_pages, library_floors):
        library_pages[f"{WIKI}/wiki/Book_B"] = "<html></html>"
        fetcher = fetcher_factory(library_pages)

        with pytest.raises(RetryExhaustedError) as exc_info:
            await LibraryScraper(fetcher, config=test_config).crawl_floor(library_floors[0])

        assert "Book_B" in exc_info.value.operation

    @pytest.mark.asyncio
    async def test_concurrency_bounded(self, test_config, fetcher_factory, make_table_page, make_item_page):
        """No more than max_concurrency fetches are in flight at once."""
        hrefs = [f"/wiki/Book_{i}" for i in range(20)]
        floor = FloorConfig(name="Big", url=f"{WIKI}/wiki/Big", shapes=(ListingShape.TABLE,))
        pages = {floor.url: make_table_page(hrefs)}
        for i in range(20):
            pages[f"{WIKI}/wiki/Book_{i}"] = make_item_page(f"Book {i}", "<p>Shelf</p>")
        fetcher = fetcher_factory(pages)

        books = await LibraryScraper(fetcher, config=test_config).crawl_floor(floor)

        assert len(books) == 20
        assert [book.title for book in books] == [f"Book {i}" for i in range(20)]
        assert 1 < fetcher.max_in_flight <= test_config.scraper.max_concurrency


class TestScrapeLibrary:
    """End-to-end crawl over three floors."""

    @pytest.mark.asyncio
    async def test_all_floors_in_order(self, test_config, fetcher_factory, library_pages, library_floors):
        scraper = LibraryScraper(fetcher_factory(library_pages), config=test_config)

        books = await scraper.scrape_library(library_floors)

        # 4 + 2 + 2 links
        assert len(books) == 8
        assert [book.title for book in books] == [
            "Book A", "Book B", "Book C", "Book D",
            "Book E", "Book F",
            "Treasure Map XXI", "Book G",
        ]
        assert scraper.stats.books_scraped == 8
        assert scraper.stats.pages_fetched == 11

    @pytest.mark.asyncio
    async def test_idempotent_output(self, test_config, fetcher_factory, library_pages, library_floors):
        """Two runs over the same pages give byte-identical JSON."""
        first = await LibraryScraper(fetcher_factory(dict(library_pages)), config=test_config).scrape_library(
            library_floors
        )
        second = await LibraryScraper(fetcher_factory(dict(library_pages)), config=test_config).scrape_library(
            library_floors
        )

        assert dump_books(first).encode("utf-8") == dump_books(second).encode("utf-8")

    @pytest.mark.asyncio
    async def test_custom_retry_policy(self, test_config, fetcher_factory, library_pages, library_floors):
        library_pages[f"{WIKI}/wiki/Book_E"] = ["", "", library_pages[f"{WIKI}/wiki/Book_E"]]
        fetcher = fetcher_factory(library_pages)
        policy = RetryPolicy(max_attempts=2, backoff_base=0.0, max_backoff=0.0)

        with pytest.raises(RetryExhaustedError):
            await LibraryScraper(fetcher, config=test_config, retry_policy=policy).scrape_library(library_floors)

        # floor 3 is never reached
        assert library_floors[2].url not in fetcher.calls
