"""
Request router.

Dispatches each page visit to the handler registered for its label and
wires the search controller, detail extractor and record sink together.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Dict, Optional

from errors import SinkUnavailable
from models import Label

logger = logging.getLogger(__name__)

Handler = Callable[..., Awaitable[None]]


class Router:
    """Label -> handler table with an optional default handler."""

    def __init__(self):
        self._handlers: Dict[Label, Handler] = {}
        self._default: Optional[Handler] = None
        self.stats = {'records_saved': 0, 'records_lost': 0}

    def add_handler(self, label: Label, handler: Handler) -> None:
        self._handlers[Label(label)] = handler

    def add_default_handler(self, handler: Handler) -> None:
        self._default = handler

    def resolve(self, label: Optional[Label]) -> Handler:
        handler = self._handlers.get(label) if label is not None else None
        if handler is None:
            handler = self._default
        if handler is None:
            raise ValueError(f"No handler registered for label: {label}")
        return handler

    async def __call__(self, context) -> None:
        handler = self.resolve(context.request.label)
        await handler(context)


def build_router(controller, extractor, sink) -> Router:
    """
    Build the router for a maps crawl.

    Args:
        controller: SearchPageController
        extractor: DetailExtractor
        sink: RecordSink receiving finished records

    Returns:
        Router with search (default) and detail handlers
    """
    router = Router()

    async def handle_search(context):
        requests = await controller.handle(context.page, context.request)
        if requests:
            await context.add_requests(requests)

    async def handle_detail(context):
        record = await extractor.extract(context.page, context.request.url)
        try:
            await asyncio.to_thread(sink.append, record)
            router.stats['records_saved'] += 1
        except SinkUnavailable as e:
            router.stats['records_lost'] += 1
            logger.error(f"Record for {context.request.url} lost: {e}")

    router.add_default_handler(handle_search)
    router.add_handler(Label.SEARCH, handle_search)
    router.add_handler(Label.DETAIL, handle_detail)
    return router
