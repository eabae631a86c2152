"""
Tests for the detail extractor against a saved place page.
"""

import unittest
from pathlib import Path

from bs4 import BeautifulSoup

from detail_extractor import DetailExtractor
from errors import NavigationTimeout
from extractors.detail_page import extract_business_from_html
from recipe_loader import DetailSelectors

from fakes import FakePage, PLACE_URL

FIXTURES = Path(__file__).parent / "fixtures"

EXPECTED = {
    'name': "Blue Bottle Coffee",
    'address': "1 Ferry Building, San Francisco, CA 94111",
    'rating': "4.5 stars",
    'reviews': "(1,234)",
    'phone': "(415) 555-0100",
    'website': "https://bluebottlecoffee.com/",
    'category': "Coffee shop",
    'url': PLACE_URL,
}


def load_place_page():
    return (FIXTURES / "place_page.html").read_text(encoding="utf-8")


def edit(html, css, action):
    soup = BeautifulSoup(html, 'lxml')
    action(soup.select_one(css))
    return str(soup)


class TestDetailExtractor(unittest.IsolatedAsyncioTestCase):

    def setUp(self):
        self.html = load_place_page()
        self.extractor = DetailExtractor(heading_wait_ms=100, field_timeout_ms=200, parallel_fields=True)

    async def test_full_record(self):
        record = await self.extractor.extract(FakePage(self.html), PLACE_URL)

        self.assertEqual(record.model_dump(), EXPECTED)
        self.assertEqual(self.extractor.stats['field_failures'], 0)
        self.assertEqual(self.extractor.stats['records_built'], 1)

    async def test_missing_phone_only_nulls_phone(self):
        html = edit(self.html, 'button[data-item-id^="phone:tel"]', lambda tag: tag.decompose())

        record = await self.extractor.extract(FakePage(html), PLACE_URL)

        expected = dict(EXPECTED, phone=None)
        self.assertEqual(record.model_dump(), expected)

    async def test_phone_from_accessible_label(self):
        html = edit(self.html, 'button[data-item-id^="phone:tel"] div.Io6YTe', lambda tag: tag.decompose())

        record = await self.extractor.extract(FakePage(html), PLACE_URL)

        self.assertEqual(record.phone, "(415) 555-0100")

    async def test_website_falls_back_to_text(self):
        def drop_href(tag):
            del tag['href']

        html = edit(self.html, 'a[data-item-id="authority"]', drop_href)

        record = await self.extractor.extract(FakePage(html), PLACE_URL)

        self.assertEqual(record.website, "bluebottlecoffee.com")

    async def test_category_index_out_of_range(self):
        extractor = DetailExtractor(DetailSelectors(category_index=40), heading_wait_ms=100, field_timeout_ms=200)

        record = await extractor.extract(FakePage(self.html), PLACE_URL)

        self.assertIsNone(record.category)
        self.assertEqual(record.name, "Blue Bottle Coffee")

    async def test_slow_field_times_out_alone(self):
        extractor = DetailExtractor(heading_wait_ms=100, field_timeout_ms=50, parallel_fields=True)
        page = FakePage(self.html, slow={'[data-item-id="address"]': 1.0})

        record = await extractor.extract(page, PLACE_URL)

        self.assertIsNone(record.address)
        self.assertEqual(record.phone, "(415) 555-0100")
        self.assertEqual(extractor.stats['field_failures'], 1)

    async def test_broken_field_becomes_null(self):
        page = FakePage(self.html, broken={'[jslog]'})

        record = await self.extractor.extract(page, PLACE_URL)

        self.assertIsNone(record.category)
        self.assertEqual(record.rating, "4.5 stars")

    async def test_missing_heading_raises(self):
        html = edit(self.html, 'h1', lambda tag: tag.decompose())

        with self.assertRaises(NavigationTimeout):
            await self.extractor.extract(FakePage(html), PLACE_URL)
        self.assertEqual(self.extractor.stats['records_built'], 0)

    async def test_sequential_fields_give_same_record(self):
        sequential = DetailExtractor(heading_wait_ms=100, field_timeout_ms=200, parallel_fields=False)

        first = await self.extractor.extract(FakePage(self.html), PLACE_URL)
        second = await sequential.extract(FakePage(self.html), PLACE_URL)

        self.assertEqual(first, second)

    async def test_agrees_with_snapshot_extraction(self):
        """Live and snapshot extraction read the same fields the same way."""
        record = await self.extractor.extract(FakePage(self.html), PLACE_URL)

        self.assertEqual(record, extract_business_from_html(self.html, PLACE_URL))


if __name__ == '__main__':
    unittest.main()
