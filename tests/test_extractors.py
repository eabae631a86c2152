"""
Unit tests for extractor functions.

Tests the pure extraction functions without requiring a browser.
"""

import unittest
from pathlib import Path

from bs4 import BeautifulSoup

from extractors.search_page import (
    normalize_url,
    canonicalize,
    matches_any_glob,
    resolve_place_links,
    extract_place_links,
    get_selector_match_count
)
from extractors.detail_page import (
    clean_text,
    strip_phone_label,
    normalize_phone,
    normalize_website,
    extract_business_from_html
)
from recipe_loader import DetailSelectors

FIXTURES = Path(__file__).parent / "fixtures"
PLACE_GLOB = "https://www.google.com/maps/place/*"


class TestNormalizeUrl(unittest.TestCase):
    """Test URL normalization."""

    def test_absolute_url(self):
        """Absolute URLs should be returned as-is."""
        result = normalize_url("https://www.google.com/maps/search/coffee", "https://other.com/page")
        self.assertEqual(result, "https://other.com/page")

    def test_root_relative_url(self):
        """Root-relative place links should resolve against the search page."""
        result = normalize_url("https://www.google.com/maps/search/coffee", "/maps/place/Cafe")
        self.assertEqual(result, "https://www.google.com/maps/place/Cafe")

    def test_protocol_relative_url(self):
        """Protocol-relative URLs should inherit protocol."""
        result = normalize_url("https://www.google.com/", "//maps.google.com/place")
        self.assertEqual(result, "https://maps.google.com/place")


class TestCanonicalize(unittest.TestCase):
    """Test URL canonicalization."""

    def test_remove_fragment(self):
        result = canonicalize("https://www.google.com/maps/place/Cafe#reviews")
        self.assertEqual(result, "https://www.google.com/maps/place/Cafe")

    def test_remove_trailing_slash(self):
        """Trailing slashes should be removed (except root)."""
        self.assertEqual(canonicalize("https://example.com/page/"), "https://example.com/page")
        self.assertEqual(canonicalize("https://example.com/"), "https://example.com/")

    def test_remove_tracking_params(self):
        result = canonicalize("https://www.google.com/maps/place/Cafe?utm_source=test&hl=en")
        self.assertIn("hl=en", result)
        self.assertNotIn("utm_source", result)

    def test_keep_tracking_params(self):
        result = canonicalize("https://example.com/page?utm_source=test", strip_tracking_params=False)
        self.assertIn("utm_source=test", result)


class TestPlaceLinks(unittest.TestCase):
    """Test place link resolution and extraction."""

    def setUp(self):
        self.html = (FIXTURES / "search_page.html").read_text(encoding="utf-8")

    def test_matches_any_glob(self):
        self.assertTrue(matches_any_glob("https://www.google.com/maps/place/Cafe", [PLACE_GLOB]))
        self.assertFalse(matches_any_glob("https://www.google.com/maps/about", [PLACE_GLOB]))
        self.assertTrue(matches_any_glob("https://anything.example", None))

    def test_resolve_skips_invalid_hrefs(self):
        hrefs = [None, "", "#top", "javascript:void(0)", "mailto:a@b.c", "/maps/place/Cafe"]
        result = resolve_place_links(hrefs, "https://www.google.com/maps/search/coffee")
        self.assertEqual(result, ["https://www.google.com/maps/place/Cafe"])

    def test_resolve_dedupes_in_order(self):
        hrefs = ["/maps/place/B", "/maps/place/A", "/maps/place/B#x", "/maps/place/A/"]
        result = resolve_place_links(hrefs, "https://www.google.com/")
        self.assertEqual(result, [
            "https://www.google.com/maps/place/B",
            "https://www.google.com/maps/place/A",
        ])

    def test_extract_from_fixture(self):
        links = extract_place_links(
            self.html,
            "https://www.google.com/maps/search/coffee",
            'a[href*="/maps/place/"]',
            PLACE_GLOB
        )

        self.assertEqual(links, [
            "https://www.google.com/maps/place/Blue+Bottle+Coffee/data=!4m7!3m6",
            "https://www.google.com/maps/place/Sightglass+Coffee/data=!4m7!3m6",
            "https://www.google.com/maps/place/Ritual+Coffee+Roasters/data=!4m7!3m6",
        ])

    def test_glob_filters_other_links(self):
        links = extract_place_links(self.html, "https://www.google.com/maps/search/coffee", "a[href]", PLACE_GLOB)
        self.assertNotIn("https://www.google.com/maps/about", links)
        self.assertEqual(len(links), 3)

    def test_count_matches(self):
        self.assertEqual(get_selector_match_count(self.html, 'a[href*="/maps/place/"]'), 4)
        self.assertEqual(get_selector_match_count(self.html, "span.nonexistent"), 0)


class TestTextNormalization(unittest.TestCase):
    """Test field value normalization."""

    def test_clean_text(self):
        self.assertEqual(clean_text("  Blue Bottle \n"), "Blue Bottle")
        self.assertIsNone(clean_text("   "))
        self.assertIsNone(clean_text(None))

    def test_phone_label_is_stripped(self):
        self.assertEqual(normalize_phone("Phone: (415) 555-0100"), "(415) 555-0100")

    def test_phone_keeps_plus_prefix(self):
        self.assertEqual(normalize_phone("Call +44 20 7946 0958 "), "+44 20 7946 0958")

    def test_phone_without_digits(self):
        self.assertIsNone(normalize_phone("Phone: "))
        self.assertIsNone(normalize_phone(None))

    def test_strip_phone_label(self):
        self.assertEqual(strip_phone_label("Phone: (415) 555-0100 "), "(415) 555-0100")
        self.assertEqual(strip_phone_label("phone (415) 555-0100"), "(415) 555-0100")

    def test_website_decoration_is_stripped(self):
        self.assertEqual(normalize_website("› example.com"), "example.com")
        self.assertEqual(normalize_website("https://example.com/"), "https://example.com/")
        self.assertIsNone(normalize_website("›  "))


class TestExtractBusinessFromHtml(unittest.TestCase):
    """Test snapshot extraction of a place page."""

    URL = "https://www.google.com/maps/place/Blue+Bottle+Coffee"

    def setUp(self):
        self.html = (FIXTURES / "place_page.html").read_text(encoding="utf-8")

    def test_all_fields(self):
        record = extract_business_from_html(self.html, self.URL)

        self.assertEqual(record.model_dump(), {
            'name': "Blue Bottle Coffee",
            'address': "1 Ferry Building, San Francisco, CA 94111",
            'rating': "4.5 stars",
            'reviews': "(1,234)",
            'phone': "(415) 555-0100",
            'website': "https://bluebottlecoffee.com/",
            'category': "Coffee shop",
            'url': self.URL,
        })

    def test_no_heading(self):
        soup = BeautifulSoup(self.html, 'lxml')
        soup.h1.decompose()
        self.assertIsNone(extract_business_from_html(str(soup), self.URL))

    def test_phone_falls_back_to_label(self):
        soup = BeautifulSoup(self.html, 'lxml')
        soup.select_one('button[data-item-id^="phone:tel"] div.Io6YTe').decompose()

        record = extract_business_from_html(str(soup), self.URL)
        self.assertEqual(record.phone, "(415) 555-0100")

    def test_category_index_out_of_range(self):
        record = extract_business_from_html(self.html, self.URL, DetailSelectors(category_index=40))
        self.assertIsNone(record.category)
        self.assertEqual(record.name, "Blue Bottle Coffee")

    def test_same_snapshot_same_record(self):
        first = extract_business_from_html(self.html, self.URL)
        second = extract_business_from_html(self.html, self.URL)
        self.assertEqual(first, second)


if __name__ == '__main__':
    unittest.main()
