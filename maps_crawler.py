"""
Maps Crawler - two-phase Google Maps listing crawl.

This module wires the crawl together:
1. Seeds one search request built from the query
2. Scrolls the results feed and claims place links through the frontier
3. Visits every claimed place page and extracts a business record
4. Appends each record to the dataset
"""

import json
import logging
from pathlib import Path
from typing import List, Optional
from urllib.parse import quote

import crawler_config
from crawler import BrowserCrawler
from detail_extractor import DetailExtractor
from frontier import DedupFrontier
from models import CrawlInput, CrawlRequest, Label
from persistence.dataset import JSONLDatasetSink
from recipe_loader import Recipe, DEFAULT_SEARCH_URL_TEMPLATE
from router import build_router
from search_controller import SearchPageController

logger = logging.getLogger(__name__)

# Characters encodeURIComponent leaves alone
_URI_COMPONENT_SAFE = "-_.!~*'()"


def build_search_url(query: str, template: str = DEFAULT_SEARCH_URL_TEMPLATE) -> str:
    """
    Build the seed search URL for a query.

    >>> build_search_url("coffee & tea")
    'https://www.google.com/maps/search/coffee%20%26%20tea'
    """
    return template.replace('{query}', quote(query, safe=_URI_COMPONENT_SAFE))


def load_crawl_input(input_path: Optional[str] = None, query: Optional[str] = None,
                     max_results: Optional[int] = None) -> CrawlInput:
    """
    Build the run input from an input file and/or command line values.

    Command line values override the file.

    Raises:
        FileNotFoundError: If the input file doesn't exist
        pydantic.ValidationError: If the input is invalid
    """
    data = {}
    if input_path:
        path = Path(input_path)
        if not path.exists():
            raise FileNotFoundError(f"Input file not found: {input_path}")
        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)
        if not isinstance(data, dict):
            raise ValueError("Input file must contain a JSON object")

    if query is not None:
        data['searchQuery'] = query
    if max_results is not None:
        data['maxResults'] = max_results

    return CrawlInput.model_validate(data)


class MapsCrawler:
    """
    Google Maps listing crawler.

    Owns the frontier, the page handlers and the sink for one run.
    """

    def __init__(self, crawl_input: CrawlInput, recipe: Optional[Recipe] = None,
                 output_dir: Optional[str] = None, headless: Optional[bool] = None,
                 preset: Optional[str] = None, max_concurrency: Optional[int] = None,
                 max_scrolls: Optional[int] = None, scroll_settle_ms: Optional[int] = None,
                 parallel_fields: Optional[bool] = None, sink=None):
        """
        Initialize the maps crawler.

        Args:
            crawl_input: Validated query and result cap
            recipe: Selector recipe (None = built-in)
            output_dir: Dataset directory (None = config default)
            headless: Run browser in headless mode (None = config default)
            preset: Named preset from crawler_config.PRESETS
            max_concurrency: Simultaneous page sessions override
            max_scrolls: Scroll iteration override
            scroll_settle_ms: Scroll settle override
            parallel_fields: Field fan-out override
            sink: RecordSink to use instead of the JSONL dataset
        """
        self.crawl_input = crawl_input
        self.recipe = recipe or Recipe()

        self.frontier = DedupFrontier(crawl_input.max_results)
        self.controller = SearchPageController(
            self.frontier,
            self.recipe.search,
            max_scrolls=max_scrolls,
            scroll_settle_ms=scroll_settle_ms,
            preset=preset
        )
        self.extractor = DetailExtractor(
            self.recipe.detail,
            parallel_fields=parallel_fields,
            preset=preset
        )
        self.sink = sink if sink is not None else JSONLDatasetSink(output_dir or crawler_config.OUTPUT_DIR)
        self.router = build_router(self.controller, self.extractor, self.sink)
        self.browser_crawler = BrowserCrawler(
            self.router,
            max_concurrency=max_concurrency,
            headless=headless,
            preset=preset
        )

        # A search handler run must outlast a full scroll pass
        search_budget = self.controller.wait_budget_secs + crawler_config.SEARCH_HANDLER_MARGIN_SECS
        if self.browser_crawler.request_handler_timeout_secs < search_budget:
            logger.warning(f"Raising request handler timeout from "
                           f"{self.browser_crawler.request_handler_timeout_secs}s to {search_budget}s "
                           f"to cover {self.controller.max_scrolls} scrolls")
            self.browser_crawler.request_handler_timeout_secs = search_budget

    @property
    def search_url(self) -> str:
        return build_search_url(self.crawl_input.search_query, self.recipe.search_url_template)

    def start_requests(self) -> List[CrawlRequest]:
        return [CrawlRequest(url=self.search_url, label=Label.SEARCH)]

    async def crawl(self) -> dict:
        """Run the crawl and return the combined statistics."""
        logger.info(f"Starting search for: {self.crawl_input.search_query}")
        logger.info(f"Search URL: {self.search_url}")
        logger.info(f"Max results: {self.crawl_input.max_results}")
        logger.info(f"Recipe version: {self.recipe.version}")

        await self.browser_crawler.run(self.start_requests())

        stats = {}
        for part in (self.browser_crawler, self.controller, self.extractor, self.router):
            stats.update(part.stats)
        self._log_summary(stats)
        return stats

    def _log_summary(self, stats: dict) -> None:
        logger.info("=" * 60)
        logger.info("Maps crawl complete!")
        logger.info(f"Detail requests dispatched: {self.frontier.dispatched}")
        logger.info(f"Records saved: {stats['records_saved']}")
        if stats['records_lost']:
            logger.info(f"Records lost: {stats['records_lost']}")
        logger.info(f"Navigation timeouts: {stats['navigation_timeouts']}")
        logger.info(f"Handler timeouts: {stats['handler_timeouts']}")
        logger.info(f"Failed requests: {stats['requests_failed']}")
        if isinstance(self.sink, JSONLDatasetSink):
            logger.info(f"Dataset: {self.sink.dataset_file}")
        logger.info("=" * 60)
