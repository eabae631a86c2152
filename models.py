"""
Data models for the Google Maps listing crawler.

Defines the crawl input, crawl requests and the business records
written to the dataset.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Label(str, Enum):
    SEARCH = "search"
    DETAIL = "detail"


class CrawlInput(BaseModel):
    """Run input, accepted in the camelCase form used by input files."""

    model_config = ConfigDict(populate_by_name=True)

    search_query: str = Field(alias="searchQuery")
    max_results: int = Field(alias="maxResults", gt=0)

    @field_validator("search_query")
    @classmethod
    def _query_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("searchQuery must be a non-empty string")
        return value


class CrawlRequest(BaseModel):
    model_config = ConfigDict(frozen=True)

    url: str
    label: Label = Label.SEARCH

    @property
    def unique_key(self) -> str:
        return f"{self.label.value}:{self.url}"


class BusinessRecord(BaseModel):
    """One extracted listing. Field order matches the dataset schema."""

    model_config = ConfigDict(frozen=True)

    name: Optional[str] = None
    address: Optional[str] = None
    rating: Optional[str] = None
    reviews: Optional[str] = None
    phone: Optional[str] = None
    website: Optional[str] = None
    category: Optional[str] = None
    url: str
