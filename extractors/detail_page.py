"""
Pure helpers for place detail pages.

Text normalization shared by the live extractor and the snapshot
extractor, plus extraction of a BusinessRecord from saved HTML.
"""

import re
from typing import Optional

from bs4 import BeautifulSoup

from models import BusinessRecord
from recipe_loader import DetailSelectors

# Leading junk before a phone number. An opening parenthesis starts a
# number like "(415) 555-0100", so it is kept along with digits and '+'.
_PHONE_PREFIX_RE = re.compile(r'^[^\d+(]+')
_PHONE_LABEL_RE = re.compile(r'^\s*phone\s*:?\s*', re.IGNORECASE)
_WEBSITE_PREFIX_RE = re.compile(r'^\W+')


def clean_text(value: Optional[str]) -> Optional[str]:
    """Trim text, mapping None and blank strings to None."""
    if value is None:
        return None
    value = value.strip()
    return value or None


def strip_phone_label(label: Optional[str]) -> Optional[str]:
    """Remove a leading "Phone:" caption from an accessible label."""
    if label is None:
        return None
    return clean_text(_PHONE_LABEL_RE.sub('', label))


def normalize_phone(raw: Optional[str]) -> Optional[str]:
    """
    Normalize a phone number read from the page.

    >>> normalize_phone("Phone: (415) 555-0100")
    '(415) 555-0100'
    """
    if raw is None:
        return None
    return clean_text(_PHONE_PREFIX_RE.sub('', raw.strip()))


def normalize_website(raw: Optional[str]) -> Optional[str]:
    """
    Strip decoration (bullets, arrows) in front of a website value.

    >>> normalize_website("› example.com")
    'example.com'
    """
    if raw is None:
        return None
    return clean_text(_WEBSITE_PREFIX_RE.sub('', raw.strip()))


def _first(soup, css: str):
    return soup.select_one(css)


def _text(element) -> Optional[str]:
    return element.get_text() if element is not None else None


def extract_business_from_html(html: str, url: str,
                               selectors: Optional[DetailSelectors] = None) -> Optional[BusinessRecord]:
    """
    Extract a business record from a saved place page.

    Applies the same field rules as the live DetailExtractor. Returns
    None when the page has no heading.

    Args:
        html: HTML content of a place page
        url: URL the page was loaded from
        selectors: Detail selectors (defaults to the built-in recipe)

    Returns:
        BusinessRecord or None
    """
    selectors = selectors or DetailSelectors()
    soup = BeautifulSoup(html, 'lxml')

    title = _first(soup, selectors.title_css)
    if title is None:
        return None

    rating = _first(soup, selectors.rating_css)

    reviews_el = _first(soup, selectors.reviews_css)
    reviews = clean_text(_text(reviews_el))
    if reviews is None and reviews_el is not None:
        reviews = clean_text(reviews_el.get('aria-label'))

    phone = None
    button = _first(soup, selectors.phone_button_css)
    if button is not None:
        phone = clean_text(_text(button.select_one(selectors.phone_text_css)))
        if phone is None:
            phone = strip_phone_label(button.get('aria-label'))

    website = None
    website_el = _first(soup, selectors.website_css)
    if website_el is not None:
        website = website_el.get(selectors.website_attribute) or _text(website_el)

    category = None
    candidates = soup.select(selectors.category_css)
    if 0 <= selectors.category_index < len(candidates):
        category = clean_text(_text(candidates[selectors.category_index]))

    return BusinessRecord(
        name=clean_text(_text(title)),
        address=clean_text(_text(_first(soup, selectors.address_css))),
        rating=rating.get('aria-label') if rating is not None else None,
        reviews=reviews,
        phone=normalize_phone(phone),
        website=normalize_website(website),
        category=category,
        url=url,
    )
