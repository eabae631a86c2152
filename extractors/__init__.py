"""
Extractors for search and place pages.

This package contains pure, unit-testable extraction functions
that work on URLs, strings and saved HTML snapshots.
"""

from .search_page import (
    normalize_url,
    canonicalize,
    matches_any_glob,
    resolve_place_links,
    extract_place_links
)
from .detail_page import (
    clean_text,
    normalize_phone,
    normalize_website,
    extract_business_from_html
)

__all__ = [
    'normalize_url',
    'canonicalize',
    'matches_any_glob',
    'resolve_place_links',
    'extract_place_links',
    'clean_text',
    'normalize_phone',
    'normalize_website',
    'extract_business_from_html'
]
