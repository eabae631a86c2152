"""
Exceptions raised by the crawler.

Field-level failures are not represented here: they resolve to None
inside the detail extractor and never leave it.
"""


class CrawlError(Exception):
    """Base class for crawler errors."""


class NavigationTimeout(CrawlError):
    """The defining element of a page did not attach within its budget."""

    def __init__(self, url: str, selector: str, timeout_ms: int):
        self.url = url
        self.selector = selector
        self.timeout_ms = timeout_ms
        super().__init__(
            f"'{selector}' did not appear within {timeout_ms}ms on {url}"
        )


class SinkUnavailable(CrawlError):
    """The output store rejected an append."""
