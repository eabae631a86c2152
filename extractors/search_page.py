"""
Pure helpers for the search results page.

These functions are unit-testable and don't perform I/O.
They resolve, canonicalize and filter place links, and can pull the
place links out of a saved HTML snapshot.
"""

from typing import Iterable, List, Optional
from urllib.parse import urljoin, urlparse, urlunparse, parse_qs, urlencode
from fnmatch import fnmatchcase
from bs4 import BeautifulSoup


TRACKING_PARAMS = {
    'utm_source', 'utm_medium', 'utm_campaign', 'utm_term', 'utm_content',
    'fbclid', 'gclid', 'msclkid', 'mc_cid', 'mc_eid',
    '_ga', '_gl', 'ref', 'source'
}


def normalize_url(base_url: str, href: str) -> str:
    """
    Convert a relative URL to an absolute URL.

    Args:
        base_url: The base URL to resolve against
        href: The href attribute (may be relative or absolute)

    Returns:
        Absolute URL string
    """
    return urljoin(base_url, href)


def canonicalize(url: str, strip_tracking_params: bool = True) -> str:
    """
    Canonicalize a URL by:
    - Removing fragments
    - Optionally removing common tracking parameters
    - Removing trailing slashes (except for root path)

    Args:
        url: URL to canonicalize
        strip_tracking_params: Whether to remove tracking parameters

    Returns:
        Canonicalized URL string
    """
    parsed = urlparse(url)

    path = parsed.path.rstrip('/') if parsed.path != '/' else parsed.path

    query = parsed.query
    if strip_tracking_params and query:
        params = parse_qs(query, keep_blank_values=True)
        filtered_params = {k: v for k, v in params.items() if k not in TRACKING_PARAMS}
        query = urlencode(filtered_params, doseq=True) if filtered_params else ''

    return urlunparse((
        parsed.scheme,
        parsed.netloc,
        path,
        parsed.params,
        query,
        ''  # No fragment
    ))


def is_followable(href: Optional[str]) -> bool:
    """False for empty, in-page, javascript: and mailto: hrefs."""
    if not href:
        return False
    href = href.strip()
    return bool(href) and not href.startswith(('#', 'javascript:', 'mailto:', 'tel:'))


def matches_any_glob(url: str, globs: Optional[Iterable[str]]) -> bool:
    """
    Check a URL against glob patterns.

    No patterns means everything matches.
    """
    if not globs:
        return True
    return any(fnmatchcase(url, pattern) for pattern in globs)


def dedupe_preserving_order(urls: Iterable[str]) -> List[str]:
    """Drop repeated URLs, keeping the first occurrence."""
    seen = set()
    result = []
    for url in urls:
        if url in seen:
            continue
        seen.add(url)
        result.append(url)
    return result


def resolve_place_links(hrefs: Iterable[Optional[str]], base_url: str,
                        glob: Optional[str] = None) -> List[str]:
    """
    Turn raw href values into absolute, canonical, unique place URLs.

    Args:
        hrefs: Raw href attribute values (None for failed reads)
        base_url: URL of the page the hrefs were read from
        glob: Optional pattern a place URL must match

    Returns:
        Ordered list of canonical URLs
    """
    urls = []
    for href in hrefs:
        if not is_followable(href):
            continue
        url = canonicalize(normalize_url(base_url, href.strip()))
        if glob and not fnmatchcase(url, glob):
            continue
        urls.append(url)
    return dedupe_preserving_order(urls)


def extract_place_links(html: str, base_url: str, link_css: str,
                        glob: Optional[str] = None) -> List[str]:
    """
    Extract place links from a saved search results page.

    Args:
        html: HTML content to parse
        base_url: Base URL for resolving relative links
        link_css: CSS selector matching place anchors
        glob: Optional pattern a place URL must match

    Returns:
        Ordered list of canonical place URLs
    """
    soup = BeautifulSoup(html, 'lxml')
    hrefs = [link.get('href') for link in soup.select(link_css)]
    return resolve_place_links(hrefs, base_url, glob)


def get_selector_match_count(html: str, css_selector: str) -> int:
    """
    Count how many elements match a CSS selector.
    Useful for debugging recipes against a snapshot.

    Args:
        html: HTML content
        css_selector: CSS selector to test

    Returns:
        Number of matching elements
    """
    soup = BeautifulSoup(html, 'lxml')
    return len(soup.select(css_selector))
