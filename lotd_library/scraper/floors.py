"""The three library floors crawled by the scraper."""

from .models import FloorConfig, ListingShape

WIKI_HOST = "https://legacy-of-the-dragonborn.fandom.com"

FIRST_FLOOR = FloorConfig(
    name="Library 1st Floor",
    url=f"{WIKI_HOST}/wiki/Library_1st_Floor_(SSE)",
    shapes=(ListingShape.SHELF, ListingShape.TABLE),
    max_shelves=8,
)

SECOND_FLOOR = FloorConfig(
    name="Library 2nd Floor",
    url=f"{WIKI_HOST}/wiki/Library_2nd_Floor_(SSE)",
    shapes=(ListingShape.TABLE,),
)

# The third floor table links the Treasure Hunter index page next to the maps.
THIRD_FLOOR = FloorConfig(
    name="Library 3rd Floor",
    url=f"{WIKI_HOST}/wiki/Library_3rd_Floor_(SSE)",
    shapes=(ListingShape.TABLE,),
    extra_exclusions=frozenset({"/wiki/Treasure_Hunter"}),
)

DEFAULT_FLOORS = (FIRST_FLOOR, SECOND_FLOOR, THIRD_FLOOR)
