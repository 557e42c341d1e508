"""Pytest fixtures and configuration for lotd-library tests."""

import asyncio
from typing import Optional, Union

import pytest

from lotd_library.scraper.models import FloorConfig, ListingShape
from lotd_library.scraper.parsers import WikiParser
from lotd_library.utils.config import AppConfig, RetryConfig, ScraperConfig, reset_config
from lotd_library.utils.exceptions import NetworkError

WIKI = "https://legacy-of-the-dragonborn.fandom.com"

Response = Union[str, Exception]


class FakeFetcher:
    """In-memory page source.

    Each URL maps to a list of responses served in order; the last one
    repeats. A response that is an exception is raised instead of returned.
    Unknown URLs answer HTTP 404.
    """

    def __init__(self, pages: dict[str, Union[Response, list[Response]]]):
        self.pages = {
            url: list(value) if isinstance(value, list) else [value]
            for url, value in pages.items()
        }
        self.calls: list[str] = []
        self.in_flight = 0
        self.max_in_flight = 0

    def calls_to(self, url: str) -> int:
        return self.calls.count(url)

    async def fetch(self, url: str) -> str:
        self.calls.append(url)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            # Let other fetches start so concurrency is observable
            await asyncio.sleep(0)
            responses = self.pages.get(url)
            if responses is None:
                raise NetworkError(f"HTTP 404 for {url}", url=url, status_code=404)
            response = responses.pop(0) if len(responses) > 1 else responses[0]
            if isinstance(response, Exception):
                raise response
            return response
        finally:
            self.in_flight -= 1


def item_page(title: str, block: str, before_block: str = "") -> str:
    """Build a wiki item page whose acquisition block follows the first h2."""
    return f"""
    <html>
    <head><title>{title} | Legacy of the Dragonborn Wiki</title></head>
    <body>
      <h1 id="firstHeading" class="page-header__title">
        <span class="mw-page-title-main">{title}</span>
      </h1>
      <div class="mw-parser-output">
        <aside class="portable-infobox"><h2>{title}</h2></aside>
        <p>Intro text about {title}.</p>
        <h2><span class="mw-headline" id="Acquisition">Acquisition</span></h2>
        {before_block}
        {block}
        <h2><span class="mw-headline" id="Notes">Notes</span></h2>
        <p>Some notes.</p>
      </div>
    </body>
    </html>
    """


def shelf_page(shelves: list[list[str]], tables: Optional[list[list[str]]] = None) -> str:
    """Build a floor page from shelves (lists of hrefs) and tables (lists of hrefs)."""
    shelf_html = "\n".join(
        "<ol>" + "".join(f'<li><a href="{href}">{href}</a></li>' for href in shelf) + "</ol>"
        for shelf in shelves
    )
    table_html = "\n".join(
        '<table class="article-table"><tr><th>Book</th></tr>'
        + "".join(f'<tr><td><a href="{href}">{href}</a></td></tr>' for href in table)
        + "</table>"
        for table in (tables or [])
    )
    return f"""
    <html><body>
      <div class="mw-parser-output">
        <p>Floor introduction.</p>
        {shelf_html}
        {table_html}
      </div>
    </body></html>
    """


def table_page(*tables: list[str]) -> str:
    return shelf_page([], list(tables))


@pytest.fixture
def test_config() -> AppConfig:
    """Configuration with instant retries and a small fan-out."""
    return AppConfig(
        scraper=ScraperConfig(base_url=WIKI, max_concurrency=4),
        retry=RetryConfig(max_attempts=3, backoff_base=0.0, max_backoff=0.0),
        log_level="DEBUG",
    )


@pytest.fixture
def parser(test_config) -> WikiParser:
    return WikiParser(
        base_url=test_config.scraper.base_url,
        acquisition_overrides=test_config.extraction.acquisition_overrides,
    )


@pytest.fixture
def library_pages() -> dict[str, str]:
    """Three floors plus every book page they link to."""
    floor1 = f"{WIKI}/wiki/Floor_1"
    floor2 = f"{WIKI}/wiki/Floor_2"
    floor3 = f"{WIKI}/wiki/Floor_3"

    pages = {
        floor1: shelf_page(
            shelves=[
                ["/wiki/Book_A", "/wiki/Book_B"],
                ["/wiki/Book_C", "/wiki/File:Shelf.png"],
            ],
            tables=[["/wiki/Book_D"]],
        ),
        floor2: table_page(["/wiki/Book_E", "/wiki/Book_F"]),
        floor3: table_page(["/wiki/Treasure_Hunter", "/wiki/Treasure_Map_XXI", "/wiki/Book_G"]),
        f"{WIKI}/wiki/Treasure_Map_XXI": item_page(
            "Treasure Map XXI",
            "<p>Found in a chest beneath the Skyforge.</p>",
            before_block='<figure class="thumb"><img src="map.png"/></figure>',
        ),
    }
    for letter in "ABCDEFG":
        pages[f"{WIKI}/wiki/Book_{letter}"] = item_page(
            f"Book {letter}",
            f"<ul><li>Location {letter}1</li><li>Location {letter}2</li></ul>",
        )
    return pages


@pytest.fixture
def library_floors() -> tuple[FloorConfig, ...]:
    return (
        FloorConfig(
            name="Floor 1",
            url=f"{WIKI}/wiki/Floor_1",
            shapes=(ListingShape.SHELF, ListingShape.TABLE),
        ),
        FloorConfig(name="Floor 2", url=f"{WIKI}/wiki/Floor_2", shapes=(ListingShape.TABLE,)),
        FloorConfig(
            name="Floor 3",
            url=f"{WIKI}/wiki/Floor_3",
            shapes=(ListingShape.TABLE,),
            extra_exclusions=frozenset({"/wiki/Treasure_Hunter"}),
        ),
    )


@pytest.fixture(autouse=True)
def reset_singletons():
    """Reset cached configuration between tests."""
    reset_config()
    yield
    reset_config()


@pytest.fixture
def make_item_page():
    return item_page


@pytest.fixture
def make_shelf_page():
    return shelf_page


@pytest.fixture
def make_table_page():
    return table_page


@pytest.fixture
def fetcher_factory():
    return FakeFetcher
