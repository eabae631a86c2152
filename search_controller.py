"""
Search page controller.

Scrolls the results feed until enough place links are visible or the
feed stops growing, then harvests the links and claims them through
the frontier.
"""

import asyncio
import logging
from typing import List, Optional

from playwright.async_api import TimeoutError as PlaywrightTimeoutError

import crawler_config
from errors import NavigationTimeout
from extractors.search_page import resolve_place_links
from frontier import DedupFrontier
from models import CrawlRequest, Label
from recipe_loader import SearchSelectors

logger = logging.getLogger(__name__)

SCROLL_BY_JS = "(el, dy) => el.scrollBy(0, dy)"
SCROLL_HEIGHT_JS = "el => el.scrollHeight"


async def read_hrefs(locator, batch_size: int, timeout_ms: Optional[int] = None) -> List[Optional[str]]:
    """
    Read the href of every element matched by a locator.

    Reads run concurrently in batches. A failed read yields None in its
    slot, so the result stays aligned with the element order.
    """
    count = await locator.count()
    hrefs: List[Optional[str]] = []

    for start in range(0, count, batch_size):
        end = min(start + batch_size, count)
        results = await asyncio.gather(
            *(locator.nth(i).get_attribute('href', timeout=timeout_ms) for i in range(start, end)),
            return_exceptions=True
        )
        hrefs.extend(None if isinstance(r, Exception) else r for r in results)

    return hrefs


class SearchPageController:
    """Turns a loaded search results page into detail requests."""

    def __init__(self, frontier: DedupFrontier, selectors: Optional[SearchSelectors] = None,
                 max_scrolls: Optional[int] = None, scroll_step_px: Optional[int] = None,
                 scroll_settle_ms: Optional[int] = None, stable_threshold: Optional[int] = None,
                 listing_wait_ms: Optional[int] = None, link_batch_size: Optional[int] = None,
                 preset: Optional[str] = None):
        """
        Initialize the controller.

        Args:
            frontier: Shared frontier enforcing uniqueness and the result cap
            selectors: Search page selectors (None = built-in recipe)
            max_scrolls: Maximum scroll iterations (None = config default)
            scroll_step_px: Pixels per scroll step (None = config default)
            scroll_settle_ms: Wait after each scroll (None = config default)
            stable_threshold: No-growth observations before stopping (None = config default)
            listing_wait_ms: Budget for the first place link (None = config default)
            link_batch_size: Concurrent href reads (None = config default)
            preset: Named preset from crawler_config.PRESETS
        """
        def setting(value, name):
            return value if value is not None else crawler_config.get_setting(name, preset)

        self.frontier = frontier
        self.selectors = selectors or SearchSelectors()
        self.max_scrolls = setting(max_scrolls, 'max_scrolls')
        self.scroll_step_px = setting(scroll_step_px, 'scroll_step_px')
        self.scroll_settle_ms = setting(scroll_settle_ms, 'scroll_settle_ms')
        self.stable_threshold = setting(stable_threshold, 'stable_scroll_threshold')
        self.listing_wait_ms = setting(listing_wait_ms, 'listing_wait_ms')
        self.link_batch_size = setting(link_batch_size, 'link_batch_size')

        self.stats = {
            'search_pages': 0,
            'scroll_iterations': 0,
            'links_harvested': 0,
            'links_discarded': 0,
            'requests_emitted': 0
        }

    @property
    def wait_budget_secs(self) -> float:
        """Longest time spent waiting on one search page (listing wait plus every scroll settle)."""
        return (self.listing_wait_ms + self.max_scrolls * self.scroll_settle_ms) / 1000

    async def wait_for_listings(self, page) -> None:
        """Raise NavigationTimeout if no place link attaches in time."""
        try:
            await page.wait_for_selector(
                self.selectors.place_link_css,
                state='attached',
                timeout=self.listing_wait_ms
            )
        except PlaywrightTimeoutError:
            raise NavigationTimeout(page.url, self.selectors.place_link_css, self.listing_wait_ms) from None

    async def _measure_feed(self, page, feed) -> int:
        """Scroll the feed one step and return its scroll height (0 if absent)."""
        if await feed.count() == 0:
            return 0
        await feed.evaluate(SCROLL_BY_JS, self.scroll_step_px)
        await page.wait_for_timeout(self.scroll_settle_ms)
        return await feed.evaluate(SCROLL_HEIGHT_JS)

    async def scroll_feed(self, page) -> int:
        """
        Scroll the results feed until it is exhausted or holds enough links.

        Returns:
            Number of scroll iterations performed
        """
        target = self.frontier.max_results
        links = page.locator(self.selectors.place_link_css)
        feed = page.locator(self.selectors.feed_css).first

        last_extent = 0
        stable_count = 0
        iterations = 0

        for _ in range(self.max_scrolls):
            if await links.count() >= target:
                break

            iterations += 1
            extent = await self._measure_feed(page, feed)

            if extent == last_extent:
                stable_count += 1
                if stable_count >= self.stable_threshold:
                    logger.debug(f"Feed stopped growing after {iterations} scrolls")
                    break
            else:
                stable_count = 0
            last_extent = extent

        self.stats['scroll_iterations'] += iterations
        return iterations

    async def harvest(self, page) -> List[str]:
        """
        Collect candidate place URLs from a loaded search page.

        Returns:
            Ordered, unique canonical URLs

        Raises:
            NavigationTimeout: If no place link appears in time
        """
        await self.wait_for_listings(page)
        await self.scroll_feed(page)

        hrefs = await read_hrefs(
            page.locator(self.selectors.place_link_css),
            self.link_batch_size,
            timeout_ms=self.listing_wait_ms
        )
        candidates = resolve_place_links(hrefs, page.url, self.selectors.place_link_glob)
        self.stats['links_harvested'] += len(candidates)
        return candidates

    async def handle(self, page, request: CrawlRequest) -> List[CrawlRequest]:
        """
        Harvest a search page and reserve its links in order.

        Reservation stops as soon as the frontier is full; the rest of
        the candidates are dropped.

        Args:
            page: Loaded Playwright page
            request: The search request being processed

        Returns:
            One detail request per newly reserved URL
        """
        self.stats['search_pages'] += 1
        candidates = await self.harvest(page)

        requests = []
        examined = 0
        for url in candidates:
            if self.frontier.remaining == 0:
                break
            examined += 1
            if self.frontier.try_reserve(url):
                requests.append(CrawlRequest(url=url, label=Label.DETAIL))

        discarded = len(candidates) - examined
        if discarded:
            self.stats['links_discarded'] += discarded
            logger.debug(f"Discarding {discarded} links beyond the result cap")

        self.stats['requests_emitted'] += len(requests)
        logger.info(f"Search page {request.url}: {len(candidates)} candidates, "
                    f"{len(requests)} detail requests ({self.frontier.dispatched}/{self.frontier.max_results})")
        return requests
