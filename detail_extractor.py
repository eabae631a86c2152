"""
Detail extractor for place pages.

Every field is read by its own attempt with its own timeout. Attempts
run concurrently (or one by one, if configured) and a failed attempt
only nulls its own field.
"""

import asyncio
import logging
from typing import Optional

from playwright.async_api import TimeoutError as PlaywrightTimeoutError

import crawler_config
from errors import NavigationTimeout
from extractors.detail_page import clean_text, strip_phone_label, normalize_phone, normalize_website
from models import BusinessRecord
from recipe_loader import DetailSelectors

logger = logging.getLogger(__name__)

FIELDS = ('name', 'rating', 'reviews', 'address', 'phone', 'website', 'category')


class DetailExtractor:
    """Builds a BusinessRecord from a loaded place page."""

    def __init__(self, selectors: Optional[DetailSelectors] = None,
                 heading_wait_ms: Optional[int] = None, field_timeout_ms: Optional[int] = None,
                 parallel_fields: Optional[bool] = None, preset: Optional[str] = None):
        """
        Initialize the extractor.

        Args:
            selectors: Detail page selectors (None = built-in recipe)
            heading_wait_ms: Budget for the page heading (None = config default)
            field_timeout_ms: Budget per field attempt (None = config default)
            parallel_fields: Read fields concurrently (None = config default)
            preset: Named preset from crawler_config.PRESETS
        """
        def setting(value, name):
            return value if value is not None else crawler_config.get_setting(name, preset)

        self.selectors = selectors or DetailSelectors()
        self.heading_wait_ms = setting(heading_wait_ms, 'heading_wait_ms')
        self.field_timeout_ms = setting(field_timeout_ms, 'field_timeout_ms')
        self.parallel_fields = setting(parallel_fields, 'parallel_fields')

        self.stats = {
            'detail_pages': 0,
            'records_built': 0,
            'field_failures': 0
        }

    async def extract(self, page, url: str) -> BusinessRecord:
        """
        Extract a business record from a loaded place page.

        Args:
            page: Loaded Playwright page
            url: URL of the detail request

        Returns:
            BusinessRecord; any field except url may be None

        Raises:
            NavigationTimeout: If the heading never attaches
        """
        self.stats['detail_pages'] += 1

        try:
            await page.wait_for_selector(self.selectors.title_css, state='attached',
                                         timeout=self.heading_wait_ms)
        except PlaywrightTimeoutError:
            raise NavigationTimeout(url, self.selectors.title_css, self.heading_wait_ms) from None

        readers = [getattr(self, f'_read_{name}') for name in FIELDS]

        if self.parallel_fields:
            values = await asyncio.gather(*(self._attempt(reader, page) for reader in readers))
        else:
            values = [await self._attempt(reader, page) for reader in readers]

        record = BusinessRecord(url=url, **dict(zip(FIELDS, values)))
        self.stats['records_built'] += 1
        return record

    async def _attempt(self, reader, page) -> Optional[str]:
        """Run one field reader under its timeout; any failure becomes None."""
        try:
            return await asyncio.wait_for(reader(page), timeout=self.field_timeout_ms / 1000)
        except asyncio.TimeoutError:
            logger.debug(f"{reader.__name__} timed out on {page.url}")
        except Exception as e:
            logger.debug(f"{reader.__name__} failed on {page.url}: {e}")
        self.stats['field_failures'] += 1
        return None

    async def _read_name(self, page) -> Optional[str]:
        text = await page.locator(self.selectors.title_css).first.text_content(timeout=self.field_timeout_ms)
        return clean_text(text)

    async def _read_rating(self, page) -> Optional[str]:
        # Raw label such as "4.5 stars", no numeric parsing
        return await page.locator(self.selectors.rating_css).first.get_attribute(
            'aria-label', timeout=self.field_timeout_ms)

    async def _read_reviews(self, page) -> Optional[str]:
        element = page.locator(self.selectors.reviews_css).first
        text = clean_text(await element.text_content(timeout=self.field_timeout_ms))
        if text is None:
            text = clean_text(await element.get_attribute('aria-label', timeout=self.field_timeout_ms))
        return text

    async def _read_address(self, page) -> Optional[str]:
        text = await page.locator(self.selectors.address_css).first.text_content(timeout=self.field_timeout_ms)
        return clean_text(text)

    async def _read_phone(self, page) -> Optional[str]:
        button = page.locator(self.selectors.phone_button_css)
        if await button.count() == 0:
            return None

        raw = None
        number = button.locator(self.selectors.phone_text_css)
        if await number.count() > 0:
            raw = clean_text(await number.first.text_content(timeout=self.field_timeout_ms))

        if raw is None:
            label = await button.first.get_attribute('aria-label', timeout=self.field_timeout_ms)
            raw = strip_phone_label(label)

        return normalize_phone(raw)

    async def _read_website(self, page) -> Optional[str]:
        link = page.locator(self.selectors.website_css).first
        raw = await link.get_attribute(self.selectors.website_attribute, timeout=self.field_timeout_ms)
        if not raw:
            raw = await link.text_content(timeout=self.field_timeout_ms)
        return normalize_website(raw)

    async def _read_category(self, page) -> Optional[str]:
        candidates = page.locator(self.selectors.category_css)
        index = self.selectors.category_index
        if index < 0 or index >= await candidates.count():
            return None
        return clean_text(await candidates.nth(index).text_content(timeout=self.field_timeout_ms))
