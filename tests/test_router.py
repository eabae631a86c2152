"""
Tests for label routing and the maps crawl handlers.
"""

import threading
import unittest
from types import SimpleNamespace

from errors import SinkUnavailable
from models import BusinessRecord, CrawlRequest, Label
from router import Router, build_router

from fakes import PLACE_URL, SEARCH_URL


class StubExtractor:
    async def extract(self, page, url):
        return BusinessRecord(name="Blue Bottle Coffee", url=url)


class StubController:
    def __init__(self, requests):
        self.requests = requests

    async def handle(self, page, request):
        return self.requests


class ListSink:
    def __init__(self):
        self.records = []
        self.threads = []

    def append(self, record):
        self.threads.append(threading.get_ident())
        self.records.append(record)


class FullSink:
    def append(self, record):
        raise SinkUnavailable("disk full")


class RecordingContext:
    def __init__(self, request):
        self.page = SimpleNamespace(url=request.url)
        self.request = request
        self.added = []

    async def add_requests(self, requests):
        self.added.extend(requests)
        return len(requests)


class TestRouter(unittest.IsolatedAsyncioTestCase):

    async def test_dispatch_by_label(self):
        calls = []
        router = Router()

        async def on_search(context):
            calls.append('search')

        async def on_detail(context):
            calls.append('detail')

        router.add_handler(Label.SEARCH, on_search)
        router.add_handler(Label.DETAIL, on_detail)

        await router(RecordingContext(CrawlRequest(url=PLACE_URL, label=Label.DETAIL)))
        await router(RecordingContext(CrawlRequest(url=SEARCH_URL, label=Label.SEARCH)))

        self.assertEqual(calls, ['detail', 'search'])

    async def test_default_handler(self):
        router = Router()

        async def fallback(context):
            pass

        router.add_default_handler(fallback)

        self.assertIs(router.resolve(Label.DETAIL), fallback)
        self.assertIs(router.resolve(None), fallback)

    def test_no_handler(self):
        with self.assertRaises(ValueError):
            Router().resolve(Label.SEARCH)


class TestMapsHandlers(unittest.IsolatedAsyncioTestCase):

    async def test_search_handler_queues_detail_requests(self):
        detail = [CrawlRequest(url=PLACE_URL, label=Label.DETAIL)]
        router = build_router(StubController(detail), StubExtractor(), ListSink())
        context = RecordingContext(CrawlRequest(url=SEARCH_URL))

        await router(context)

        self.assertEqual(context.added, detail)

    async def test_detail_handler_appends_record(self):
        sink = ListSink()
        router = build_router(StubController([]), StubExtractor(), sink)

        await router(RecordingContext(CrawlRequest(url=PLACE_URL, label=Label.DETAIL)))

        self.assertEqual([r.url for r in sink.records], [PLACE_URL])
        self.assertEqual(router.stats['records_saved'], 1)

    async def test_records_are_written_off_the_event_loop(self):
        sink = ListSink()
        router = build_router(StubController([]), StubExtractor(), sink)

        await router(RecordingContext(CrawlRequest(url=PLACE_URL, label=Label.DETAIL)))

        self.assertNotEqual(sink.threads, [threading.get_ident()])
        self.assertEqual(len(sink.threads), 1)

    async def test_sink_failure_loses_only_the_record(self):
        router = build_router(StubController([]), StubExtractor(), FullSink())

        with self.assertLogs('router', level='ERROR'):
            await router(RecordingContext(CrawlRequest(url=PLACE_URL, label=Label.DETAIL)))

        self.assertEqual(router.stats['records_lost'], 1)
        self.assertEqual(router.stats['records_saved'], 0)


if __name__ == '__main__':
    unittest.main()
