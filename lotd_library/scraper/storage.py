"""JSON serialization and output of scraped books."""

import json
import sys
from typing import Iterable, Optional, TextIO

from lotd_library.utils import get_logger

from .models import Book

logger = get_logger(__name__)


def dump_books(books: Iterable[Book]) -> str:
    """Serialize books to a compact JSON array.

    Key order and separators are fixed so the same books always give the
    same text.

    Args:
        books: Books in output order

    Returns:
        JSON array of {"title": ..., "locations": [...]} objects
    """
    data = [book.model_dump(mode='json') for book in books]
    return json.dumps(data, ensure_ascii=False, separators=(',', ':'))


def load_books(text: str) -> list[Book]:
    """Parse a JSON array produced by ``dump_books`` back into books.

    Raises:
        ValueError: If the text is not a JSON array of valid books
    """
    data = json.loads(text)
    if not isinstance(data, list):
        raise ValueError("Expected a JSON array of books")
    return [Book.model_validate(entry) for entry in data]


def emit_books(books: Iterable[Book], stream: Optional[TextIO] = None) -> None:
    """Write the JSON array followed by a newline.

    Args:
        books: Books in output order
        stream: Destination, defaults to standard output
    """
    books = list(books)
    stream = stream or sys.stdout
    stream.write(dump_books(books) + "\n")
    stream.flush()
    logger.debug(f"Emitted {len(books)} books")
