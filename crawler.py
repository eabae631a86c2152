"""
Browser Crawler

A queue-driven Playwright crawler that:
- Keeps a request queue with unique-key deduplication
- Runs a bounded number of page sessions concurrently
- Aborts heavy resource types before they are fetched
- Hands every loaded page to a label-aware request handler
- Abandons a failed page without retrying and keeps crawling

Also the command line entry point for maps crawls and offline
snapshot extraction.
"""

import argparse
import asyncio
import json
import logging
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable, List, Optional

from playwright.async_api import async_playwright, TimeoutError as PlaywrightTimeoutError
from pydantic import ValidationError

import crawler_config
from errors import NavigationTimeout
from extractors.search_page import (
    canonicalize,
    dedupe_preserving_order,
    is_followable,
    matches_any_glob,
    normalize_url
)
from models import CrawlRequest, Label
from search_controller import read_hrefs

logger = logging.getLogger(__name__)

USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)


class RequestQueue:
    """
    FIFO of crawl requests.

    A request whose unique key was already queued is dropped; every
    accepted request is handed out once.
    """

    def __init__(self):
        self._queue: asyncio.Queue = asyncio.Queue()
        self._seen = set()
        self.handled = 0

    def add(self, request: CrawlRequest) -> bool:
        """Queue a request. Returns False if it was a duplicate."""
        if request.unique_key in self._seen:
            return False
        self._seen.add(request.unique_key)
        self._queue.put_nowait(request)
        return True

    async def get(self) -> CrawlRequest:
        return await self._queue.get()

    def mark_handled(self) -> None:
        self.handled += 1
        self._queue.task_done()

    async def join(self) -> None:
        await self._queue.join()

    @property
    def pending(self) -> int:
        return self._queue.qsize()


@dataclass
class CrawlContext:
    """Everything a request handler gets for one page visit."""
    page: Any
    request: CrawlRequest
    queue: RequestQueue
    log: logging.Logger = logger
    link_batch_size: int = crawler_config.LINK_BATCH_SIZE

    async def add_requests(self, requests: Iterable[CrawlRequest]) -> int:
        """Queue ready-made requests. Returns how many were new."""
        return sum(1 for request in requests if self.queue.add(request))

    async def enqueue_links(self, urls: Optional[List[str]] = None,
                            globs: Optional[List[str]] = None,
                            label: Optional[Label] = None,
                            selector: str = 'a[href]') -> int:
        """
        Queue links with a label attached.

        Args:
            urls: Explicit URLs; None harvests the anchors on the page
            globs: Patterns a URL must match (None = no filter)
            label: Label for the new requests (None = search)
            selector: Anchor selector used when harvesting from the page

        Returns:
            Number of newly queued requests
        """
        if urls is None:
            hrefs = await read_hrefs(self.page.locator(selector), self.link_batch_size)
            urls = [
                canonicalize(normalize_url(self.page.url, href.strip()))
                for href in hrefs
                if is_followable(href)
            ]

        label = Label(label) if label is not None else Label.SEARCH
        requests = [
            CrawlRequest(url=url, label=label)
            for url in dedupe_preserving_order(urls)
            if matches_any_glob(url, globs)
        ]
        return await self.add_requests(requests)


class BrowserCrawler:
    """Concurrent Playwright crawler driven by a request queue."""

    def __init__(self, request_handler, max_concurrency: Optional[int] = None,
                 navigation_timeout_secs: Optional[float] = None,
                 request_handler_timeout_secs: Optional[float] = None,
                 headless: Optional[bool] = None, blocked_resource_types: Optional[List[str]] = None,
                 preset: Optional[str] = None):
        """
        Initialize the browser crawler.

        Args:
            request_handler: Async callable receiving a CrawlContext
            max_concurrency: Simultaneous page sessions (None = config default)
            navigation_timeout_secs: Budget for page.goto (None = config default)
            request_handler_timeout_secs: Budget for one handler run (None = config default)
            headless: Run browser in headless mode (None = config default)
            blocked_resource_types: Resource types to abort (None = config default)
            preset: Named preset from crawler_config.PRESETS

        Raises:
            ValueError: If max_concurrency is below 1
        """
        def setting(value, name):
            return value if value is not None else crawler_config.get_setting(name, preset)

        self.request_handler = request_handler
        self.max_concurrency = setting(max_concurrency, 'max_concurrency')
        if self.max_concurrency < 1:
            raise ValueError(f"max_concurrency must be at least 1, got {self.max_concurrency}")
        self.navigation_timeout_secs = setting(navigation_timeout_secs, 'navigation_timeout_secs')
        self.request_handler_timeout_secs = setting(request_handler_timeout_secs, 'request_handler_timeout_secs')
        self.headless = setting(headless, 'headless')
        self.blocked_resource_types = set(setting(blocked_resource_types, 'blocked_resource_types'))

        self.queue = RequestQueue()

        self.stats = {
            'requests_handled': 0,
            'requests_failed': 0,
            'navigation_timeouts': 0,
            'handler_timeouts': 0
        }

    async def _block_resources(self, route) -> None:
        if route.request.resource_type in self.blocked_resource_types:
            await route.abort()
        else:
            await route.continue_()

    async def process_request(self, page, request: CrawlRequest) -> None:
        """
        Navigate to a request's URL and run the handler on the page.

        Page-level failures are logged and counted, never raised.
        """
        try:
            await page.goto(request.url, wait_until='domcontentloaded',
                            timeout=self.navigation_timeout_secs * 1000)
            context = CrawlContext(page=page, request=request, queue=self.queue)
            await asyncio.wait_for(self.request_handler(context),
                                   timeout=self.request_handler_timeout_secs)
            self.stats['requests_handled'] += 1
        except NavigationTimeout as e:
            self.stats['navigation_timeouts'] += 1
            logger.warning(f"Abandoning {request.url}: {e}")
        except PlaywrightTimeoutError as e:
            self.stats['navigation_timeouts'] += 1
            logger.warning(f"Navigation timed out for {request.url}: {e}")
        except asyncio.TimeoutError:
            self.stats['handler_timeouts'] += 1
            logger.warning(f"Handler exceeded {self.request_handler_timeout_secs}s for {request.url}")
        except Exception as e:
            self.stats['requests_failed'] += 1
            logger.error(f"Request failed for {request.url}: {e}")

    async def _worker(self, browser_context, worker_id: int) -> None:
        while True:
            request = await self.queue.get()
            logger.debug(f"[worker {worker_id}] {request.label.value}: {request.url}")
            try:
                page = await browser_context.new_page()
                try:
                    await self.process_request(page, request)
                finally:
                    await page.close()
            except Exception as e:
                self.stats['requests_failed'] += 1
                logger.error(f"Could not open a page for {request.url}: {e}")
            finally:
                self.queue.mark_handled()

    async def run(self, start_requests: Iterable[CrawlRequest]) -> dict:
        """
        Crawl until the queue is drained.

        Args:
            start_requests: Seed requests

        Returns:
            Engine statistics
        """
        for request in start_requests:
            self.queue.add(request)

        async with async_playwright() as p:
            browser = await p.chromium.launch(headless=self.headless, args=crawler_config.BROWSER_ARGS)
            mode = "headless" if self.headless else "visible"
            logger.info(f"Playwright browser initialized ({mode} mode, {self.max_concurrency} workers)")

            workers = []
            try:
                browser_context = await browser.new_context(
                    user_agent=USER_AGENT,
                    locale='en-US',
                    timezone_id='America/New_York',
                )
                if self.blocked_resource_types:
                    await browser_context.route('**/*', self._block_resources)

                workers = [
                    asyncio.create_task(self._worker(browser_context, i))
                    for i in range(self.max_concurrency)
                ]
                await self.queue.join()
            finally:
                for worker in workers:
                    worker.cancel()
                await asyncio.gather(*workers, return_exceptions=True)
                await browser.close()
                logger.info("Browser closed")

        return self.stats


def main():
    """Main entry point with argument parsing."""
    parser = argparse.ArgumentParser(
        description='Google Maps business listing crawler',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Crawl mode
  python crawler.py --query "coffee in San Francisco" --max-results 20
  python crawler.py --input input.json --preset thorough
  python crawler.py --query "dentist berlin" --max-results 5 --recipe recipes/google_maps.yaml

  # Offline extraction from a saved page
  python crawler.py --dump-html "https://www.google.com/maps/place/..."
  python crawler.py --mode snapshot --kind detail --html debug_dump.html --url "https://www.google.com/maps/place/..."
        """
    )

    parser.add_argument('--mode', choices=['crawl', 'snapshot'], default='crawl',
                        help='"crawl" (default) runs the browser, "snapshot" parses a saved page')

    # Input
    parser.add_argument('--query', help='Search query (searchQuery)')
    parser.add_argument('--max-results', type=int, help='Maximum number of places (maxResults)')
    parser.add_argument('--input', help='JSON input file with searchQuery and maxResults')

    # Tuning
    parser.add_argument('--recipe', help='Selector recipe YAML file')
    parser.add_argument('--preset', choices=sorted(crawler_config.PRESETS), help='Named tuning preset')
    parser.add_argument('--max-concurrency', type=int, help='Simultaneous page sessions')
    parser.add_argument('--max-scrolls', type=int, help='Maximum scroll iterations on the results feed')
    parser.add_argument('--scroll-settle-ms', type=int, help='Wait after each scroll in milliseconds')
    parser.add_argument('--sequential-fields', action='store_true',
                        help='Read detail fields one after another instead of concurrently')
    parser.add_argument('--output', default=crawler_config.OUTPUT_DIR, help='Output directory')

    # Browser options
    parser.add_argument('--headless', action='store_true', help='Run browser in headless mode')
    parser.add_argument('--visible', action='store_true', help='Run browser in visible mode')

    # Snapshot options
    parser.add_argument('--html', help='Saved HTML file (snapshot mode)')
    parser.add_argument('--url', help='URL the saved page was loaded from (snapshot mode)')
    parser.add_argument('--kind', choices=['detail', 'search'], default='detail',
                        help='Page kind of the saved HTML (snapshot mode)')

    # Debug options
    parser.add_argument('--dump-html', metavar='URL', help='Dump rendered HTML for a URL and exit')
    parser.add_argument('--verbose', action='store_true', help='Debug logging')

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s - %(levelname)s - %(message)s'
    )

    headless = None
    if args.headless:
        headless = True
    elif args.visible:
        headless = False

    if args.dump_html:
        asyncio.run(_dump_html(args.dump_html, headless))
        return

    if args.mode == 'snapshot':
        _run_snapshot_mode(args)
    else:
        _run_crawl_mode(args, headless)


def _load_recipe_or_default(recipe_path):
    from recipe_loader import Recipe, load_recipe, validate_recipe

    if not recipe_path:
        return Recipe()

    logger.info(f"Loading recipe: {recipe_path}")
    recipe = load_recipe(recipe_path)
    for warning in validate_recipe(recipe):
        logger.warning(f"  - {warning}")
    return recipe


def _run_crawl_mode(args, headless):
    """Run a maps crawl."""
    from maps_crawler import MapsCrawler, load_crawl_input

    try:
        crawl_input = load_crawl_input(args.input, args.query, args.max_results)
        recipe = _load_recipe_or_default(args.recipe)
        crawler = MapsCrawler(
            crawl_input,
            recipe=recipe,
            output_dir=args.output,
            headless=headless,
            preset=args.preset,
            max_concurrency=args.max_concurrency,
            max_scrolls=args.max_scrolls,
            scroll_settle_ms=args.scroll_settle_ms,
            parallel_fields=False if args.sequential_fields else None
        )
    except (OSError, ValueError, ValidationError) as e:
        logger.error(f"Invalid input: {e}")
        sys.exit(1)

    asyncio.run(crawler.crawl())


def _run_snapshot_mode(args):
    """Extract from a saved HTML page and print JSON."""
    from extractors.detail_page import extract_business_from_html
    from extractors.search_page import extract_place_links

    if not args.html or not args.url:
        logger.error("Snapshot mode requires --html and --url")
        sys.exit(1)

    try:
        recipe = _load_recipe_or_default(args.recipe)
        html = Path(args.html).read_text(encoding='utf-8')
    except (OSError, ValueError) as e:
        logger.error(f"Could not load snapshot: {e}")
        sys.exit(1)

    if args.kind == 'search':
        links = extract_place_links(html, args.url, recipe.search.place_link_css,
                                    recipe.search.place_link_glob)
        print(json.dumps(links, indent=2))
        return

    record = extract_business_from_html(html, args.url, recipe.detail)
    if record is None:
        logger.error(f"No '{recipe.detail.title_css}' heading in {args.html}")
        sys.exit(1)
    print(json.dumps(record.model_dump(mode='json'), indent=2, ensure_ascii=False))


async def _dump_html(url, headless):
    """Dump the rendered HTML of a URL to debug_dump.html."""
    logger.info(f"Dumping HTML for: {url}")

    async with async_playwright() as p:
        browser = await p.chromium.launch(
            headless=headless if headless is not None else crawler_config.HEADLESS,
            args=crawler_config.BROWSER_ARGS
        )
        try:
            page = await browser.new_page(user_agent=USER_AGENT, locale='en-US')
            await page.goto(url, wait_until='domcontentloaded',
                            timeout=crawler_config.NAVIGATION_TIMEOUT_SECS * 1000)
            await page.wait_for_timeout(crawler_config.SCROLL_SETTLE_MS)
            output_file = Path("debug_dump.html")
            output_file.write_text(await page.content(), encoding='utf-8')
            logger.info(f"HTML saved to: {output_file}")
        finally:
            await browser.close()


if __name__ == "__main__":
    main()
