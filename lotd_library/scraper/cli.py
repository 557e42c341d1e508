"""Command-line entry point for the library scraper.

Prints one JSON array of books to standard output; logs go to stderr.

Usage:
    python -m lotd_library.scraper.cli
    python -m lotd_library.scraper.cli --log-level DEBUG > books.json
"""

import argparse
import asyncio
import sys
from pathlib import Path
from typing import Optional

from lotd_library.utils import get_config, get_logger, log_exception, set_package_log_level
from lotd_library.utils.exceptions import ConfigError, ScraperError

from .fetcher import PageFetcher
from .library_scraper import LibraryScraper
from .storage import emit_books

logger = get_logger(__name__)


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments.

    Returns:
        Parsed arguments
    """
    parser = argparse.ArgumentParser(
        description="Scrape every book on the Legacy of the Dragonborn library floors as JSON",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Scrape with default settings
  python -m lotd_library.scraper.cli > books.json

  # Debug logging and a custom config
  python -m lotd_library.scraper.cli --config config/custom.yaml --log-level DEBUG
        """
    )

    parser.add_argument(
        '--config',
        type=Path,
        default=None,
        help='Path to configuration file (default: LOTD_LIBRARY_CONFIG or config/config.yaml)'
    )

    parser.add_argument(
        '--log-level',
        type=str,
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
        default=None,
        help='Override log level'
    )

    return parser.parse_args(argv)


async def main(argv: Optional[list[str]] = None) -> int:
    """Main CLI entry point.

    Returns:
        Exit code (0 for success, 1 for error)
    """
    args = parse_args(argv)

    try:
        config = get_config(args.config, reload=True)
        set_package_log_level(args.log_level or config.log_level)

        async with PageFetcher(
            timeout=config.scraper.timeout,
            user_agent=config.scraper.user_agent,
        ) as fetcher:
            scraper = LibraryScraper(fetcher, config=config)
            books = await scraper.scrape_library()

        emit_books(books)
        return 0

    except KeyboardInterrupt:
        logger.warning("Scraping interrupted by user")
        return 1

    except (ConfigError, ScraperError) as e:
        log_exception(logger, "library scrape", e)
        return 1

    except Exception as e:
        logger.error(f"Library scrape failed unexpectedly: {e}", exc_info=True)
        return 1


def run() -> None:
    """Console script wrapper."""
    sys.exit(asyncio.run(main()))


if __name__ == '__main__':
    run()
