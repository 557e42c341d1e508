"""HTML parsing for Legacy of the Dragonborn wiki pages.

This module turns fetched wiki HTML into data:
1. Item pages -> title and acquisition locations (a ``Book``)
2. Listing pages -> item links, from bulleted shelves or article tables

CSS selectors are isolated in ``WikiSelectors`` so a change in the Fandom
skin only needs edits in one place.
"""

from dataclasses import dataclass, field
from typing import Collection, Iterable, Optional
from urllib.parse import urljoin, urlsplit

from bs4 import BeautifulSoup, Tag

from lotd_library.utils import get_logger
from lotd_library.utils.exceptions import EmptyExtractionError

from .models import Book, ListingShape

logger = get_logger(__name__)

ARTICLE_PREFIX = "/wiki/"


def parse_document(html: str) -> BeautifulSoup:
    """Parse raw HTML into a queryable tree.

    Malformed or empty input yields a tree with no content rather than an error.
    """
    return BeautifulSoup(html or "", 'lxml')


@dataclass
class WikiSelectors:
    """CSS selectors for Fandom MediaWiki pages."""

    # Page heading, newest skin first
    title: list[str] = field(default_factory=lambda: [
        "span.mw-page-title-main",
        "h1#firstHeading",
        "h1.page-header__title",
    ])

    # First section heading of the article body; the acquisition block follows it.
    # Newer MediaWiki wraps headings in a div.mw-heading2.
    first_section: list[str] = field(default_factory=lambda: [
        "div.mw-parser-output > h2",
        "div.mw-parser-output > div.mw-heading2",
    ])

    # Bulleted shelves on a floor page
    shelf: str = "div.mw-parser-output > ol"

    # Links inside listing tables
    table_link: str = "table.article-table a"


DEFAULT_SELECTORS = WikiSelectors()


def next_element_sibling(tag: Tag) -> Optional[Tag]:
    """Return the next sibling that is an element, skipping text and comments."""
    for sibling in tag.next_siblings:
        if isinstance(sibling, Tag):
            return sibling
    return None


def is_item_link(href: Optional[str], exclusions: Collection[str] = frozenset()) -> bool:
    """Decide whether an anchor href points at an item article.

    Accepts only wiki article paths without a "." (files and media have an
    extension) that are not listed in ``exclusions``.
    """
    if not href or not href.startswith(ARTICLE_PREFIX):
        return False
    if "." in href:
        return False
    path = urlsplit(href).path
    return path not in exclusions


class WikiParser:
    """Parser for wiki item pages and library floor listings."""

    def __init__(
        self,
        base_url: str,
        acquisition_overrides: Optional[dict[str, int]] = None,
        selectors: Optional[WikiSelectors] = None,
    ):
        """
        Args:
            base_url: Wiki host used to absolutize article links.
            acquisition_overrides: Page title -> extra siblings to skip
                before the acquisition block.
            selectors: Custom CSS selectors. Uses defaults if None.
        """
        self.base_url = base_url.rstrip('/')
        self.acquisition_overrides = dict(acquisition_overrides or {})
        self.selectors = selectors or DEFAULT_SELECTORS

    # =========================================
    # Item pages
    # =========================================

    def parse_book(self, soup: BeautifulSoup, url: str) -> Book:
        """Extract a book from a parsed item page.

        Raises:
            EmptyExtractionError: If the title or locations come out empty,
                which is how a truncated or garbled download shows up.
        """
        title = self.extract_title(soup)
        locations = self.extract_locations(soup, title)

        if not title or not locations:
            logger.debug(f"Empty extraction for {url}: title={title!r}, locations={locations!r}")
            raise EmptyExtractionError(url=url, context={"title": title, "locations": locations})

        return Book(title=title, locations=tuple(locations))

    def extract_title(self, soup: BeautifulSoup) -> str:
        for selector in self.selectors.title:
            found = soup.select_one(selector)
            if found:
                text = found.get_text().strip()
                if text:
                    return text
        return ""

    def find_acquisition_block(self, soup: BeautifulSoup, title: str) -> Optional[Tag]:
        """Return the element naming where the item is found, if any."""
        heading = None
        for selector in self.selectors.first_section:
            heading = soup.select_one(selector)
            if heading is not None:
                break
        if heading is None:
            return None

        block = next_element_sibling(heading)
        for _ in range(self.acquisition_overrides.get(title, 0)):
            if block is None:
                break
            block = next_element_sibling(block)
        return block

    def extract_locations(self, soup: BeautifulSoup, title: str) -> list[str]:
        block = self.find_acquisition_block(soup, title)
        if block is None:
            return []

        items = block.find_all('li', recursive=False)
        if items:
            locations = [li.get_text().strip() for li in items]
        else:
            locations = [block.get_text().strip()]

        return [location for location in locations if location]

    # =========================================
    # Listing pages
    # =========================================

    def collect_links(
        self,
        container: BeautifulSoup | Tag,
        shape: ListingShape,
        exclusions: Iterable[str] = (),
        max_shelves: int = 8,
    ) -> list[str]:
        """Collect absolute item URLs from a listing page.

        Args:
            container: Parsed listing page (or a fragment of one).
            shape: Which listing layout to read.
            exclusions: Wiki paths to leave out.
            max_shelves: Number of shelves read from the top (shelf shape only).

        Returns:
            Item URLs in document order.
        """
        exclusions = frozenset(exclusions)

        if shape is ListingShape.SHELF:
            hrefs = self._shelf_hrefs(container, max_shelves)
        elif shape is ListingShape.TABLE:
            hrefs = self._table_hrefs(container)
        else:
            raise ValueError(f"Unknown listing shape: {shape}")

        links = [
            urljoin(self.base_url, href)
            for href in hrefs
            if is_item_link(href, exclusions)
        ]
        logger.debug(f"Collected {len(links)} {shape.value} links")
        return links

    def _shelf_hrefs(self, container: BeautifulSoup | Tag, max_shelves: int) -> list[Optional[str]]:
        hrefs = []
        for shelf in container.select(self.selectors.shelf)[:max_shelves]:
            for item in shelf.find_all('li', recursive=False):
                for anchor in item.find_all('a', recursive=False):
                    hrefs.append(anchor.get('href'))
        return hrefs

    def _table_hrefs(self, container: BeautifulSoup | Tag) -> list[Optional[str]]:
        return [anchor.get('href') for anchor in container.select(self.selectors.table_link)]
