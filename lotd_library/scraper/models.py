"""Pydantic data models for scraped library books.

This module defines the book record emitted by the scraper and the
small value types that describe how each library floor is crawled.
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ListingShape(str, Enum):
    """Layout a listing page uses to present item links."""

    SHELF = "shelf"
    TABLE = "table"


class Book(BaseModel):
    """A book and the places it can be found."""

    model_config = ConfigDict(frozen=True)

    title: str = Field(..., description="Book title as shown in the page heading")
    locations: tuple[str, ...] = Field(..., description="Where the book can be found, in page order")

    @field_validator('title')
    @classmethod
    def validate_title(cls, v: str) -> str:
        """Ensure the title is not blank."""
        v = v.strip()
        if not v:
            raise ValueError("Title cannot be empty")
        return v

    @field_validator('locations')
    @classmethod
    def validate_locations(cls, v: tuple[str, ...]) -> tuple[str, ...]:
        """Ensure at least one location exists and none is blank."""
        if not v:
            raise ValueError("At least one location is required")
        if any(not location.strip() for location in v):
            raise ValueError("Locations cannot be empty")
        return v


class LinkRef(BaseModel):
    """An item link discovered on a listing page."""

    model_config = ConfigDict(frozen=True)

    url: str
    shape: ListingShape


class FloorConfig(BaseModel):
    """How to crawl one library floor."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., description="Human-readable floor name used in logs")
    url: str = Field(..., description="Seed page URL")
    shapes: tuple[ListingShape, ...] = Field(..., description="Listing layouts present on the page")
    max_shelves: int = Field(default=8, ge=0, description="Shelf lists to read from the top of the page")
    extra_exclusions: frozenset[str] = Field(
        default_factory=frozenset,
        description="Wiki paths that are linked from the page but are not books",
    )

    @field_validator('shapes')
    @classmethod
    def validate_shapes(cls, v: tuple[ListingShape, ...]) -> tuple[ListingShape, ...]:
        """Require at least one shape and enumerate shelves before tables."""
        if not v:
            raise ValueError("At least one listing shape is required")
        order = list(ListingShape)
        return tuple(sorted(set(v), key=order.index))
