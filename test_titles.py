import asyncio
import io
import threading
import unittest
import urllib.error
from email.message import Message
from unittest.mock import patch

from chatparse.enrich import LinkEnricher
from chatparse.errors import FetchError, MalformedMarkupError
from chatparse.models import Link
from chatparse.titles import PageTitleFetcher, UrllibFetcher

from test_parser import FakeFetcher


class PageBody(io.BytesIO):
    headers = None


class GatheringFetcher:
    """Every get() waits until all expected calls are in flight at once."""

    def __init__(self, expected):
        self.barrier = threading.Barrier(expected, timeout=5)
        self.lock = threading.Lock()
        self.active = 0
        self.peak = 0

    def get(self, url):
        with self.lock:
            self.active += 1
            self.peak = max(self.peak, self.active)
        try:
            self.barrier.wait()
        finally:
            with self.lock:
                self.active -= 1
        return io.BytesIO(f"<title>{url}</title>".encode("utf-8"))


class BrokenBody(io.BytesIO):
    def read(self, size=-1):
        raise ConnectionResetError("connection reset")


class TestPageTitleFetcher(unittest.TestCase):

    def title(self, body, chunk_size=8192):
        fetcher = FakeFetcher({"http://a.test": body})
        titles = PageTitleFetcher(fetcher, read_chunk_size=chunk_size)
        try:
            return titles.fetch_title("http://a.test")
        finally:
            # The body is closed whatever happened
            self.assertTrue(all(r.closed for r in fetcher.responses))

    def test_title_in_head(self):
        self.assertEqual(self.title("<html><head><title>Hello</title></head><body></body></html>"), "Hello")

    def test_title_without_head(self):
        self.assertEqual(self.title("<html><title>No head</title><body>x</body></html>"), "No head")

    def test_first_title_wins(self):
        self.assertEqual(self.title("<head><title>One</title><title>Two</title></head>"), "One")

    def test_entities_are_decoded(self):
        self.assertEqual(self.title("<title>Tom &amp; Jerry</title>"), "Tom & Jerry")

    def test_body_before_title(self):
        self.assertEqual(self.title("<html><body><title>Too late</title></body></html>"), "")

    def test_head_closed_without_title(self):
        self.assertEqual(self.title("<html><head><meta charset=utf-8></head><title>x</title>"), "")

    def test_empty_title_element(self):
        # </title> is consumed as the token after <title>, then </head> decides
        self.assertEqual(self.title("<head><title></title></head>"), "")

    def test_self_closing_body_is_not_a_body(self):
        self.assertEqual(self.title("<html><body/><title>Still</title>"), "Still")

    def test_title_split_across_chunks(self):
        page = "<html><head><title>A rather long page title</title></head></html>"
        for size in (1, 3, 7, 20):
            self.assertEqual(self.title(page, chunk_size=size), "A rather long page title")

    def test_multibyte_split_across_chunks(self):
        page = "<title>Ünïcödé ✓</title>".encode("utf-8")
        self.assertEqual(self.title(page, chunk_size=1), "Ünïcödé ✓")

    def test_stream_ends_undecided(self):
        with self.assertRaises(MalformedMarkupError):
            self.title("<html><head><meta name=x>")
        with self.assertRaises(MalformedMarkupError):
            self.title("")
        with self.assertRaises(MalformedMarkupError):
            self.title("<title>")

    def test_charset_from_headers(self):
        response = PageBody("<title>Café</title>".encode("latin-1"))
        response.headers = Message()
        response.headers["Content-Type"] = "text/html; charset=latin-1"
        fetcher = FakeFetcher({})
        fetcher.get = lambda url: response
        self.assertEqual(PageTitleFetcher(fetcher).fetch_title("http://a.test"), "Café")
        self.assertTrue(response.closed)

    def test_transport_error(self):
        titles = PageTitleFetcher(FakeFetcher({}))
        with self.assertRaises(FetchError) as ctx:
            titles.fetch_title("http://missing.test")
        self.assertIsInstance(ctx.exception.__cause__, OSError)

    def test_read_error(self):
        body = BrokenBody()
        fetcher = FakeFetcher({})
        fetcher.get = lambda url: body
        with self.assertRaises(FetchError):
            PageTitleFetcher(fetcher).fetch_title("http://a.test")
        self.assertTrue(body.closed)


class TestUrllibFetcher(unittest.TestCase):

    @patch("chatparse.titles.urllib.request.urlopen")
    def test_get_uses_timeout_and_user_agent(self, mock_urlopen):
        fetcher = UrllibFetcher.from_config({"fetch_timeout": 2.5, "user_agent": "test-agent"})
        fetcher.get("http://a.test")
        request = mock_urlopen.call_args.args[0]
        self.assertEqual(request.full_url, "http://a.test")
        self.assertEqual(request.get_header("User-agent"), "test-agent")
        self.assertEqual(mock_urlopen.call_args.kwargs["timeout"], 2.5)

    @patch("chatparse.titles.urllib.request.urlopen")
    def test_error_status_page_is_still_read(self, mock_urlopen):
        headers = Message()
        headers["Content-Type"] = "text/html; charset=utf-8"
        body = io.BytesIO(b"<html><head><title>Not Found</title></head></html>")
        mock_urlopen.side_effect = urllib.error.HTTPError("http://x.test", 404, "Not Found", headers, body)
        titles = PageTitleFetcher(UrllibFetcher())
        self.assertEqual(titles.fetch_title("http://x.test"), "Not Found")
        self.assertTrue(body.closed)

    @patch("chatparse.titles.urllib.request.urlopen", side_effect=urllib.error.URLError("no route"))
    def test_transport_failure_is_fetch_error(self, mock_urlopen):
        with self.assertRaises(FetchError):
            PageTitleFetcher(UrllibFetcher()).fetch_title("http://x.test")


class TestLinkEnricher(unittest.IsolatedAsyncioTestCase):

    async def asyncSetUp(self):
        self.fetcher = FakeFetcher({
            "http://a.test": "<title>A</title>",
            "http://b.test": "<title>B</title>",
            "http://bad.test": "<html><head>",
        })
        self.enricher = LinkEnricher(PageTitleFetcher(self.fetcher))

    async def test_no_urls(self):
        self.assertEqual(await self.enricher.enrich([]), ())
        self.assertEqual(self.fetcher.requested, [])

    async def test_one_url(self):
        self.assertEqual(await self.enricher.enrich(["http://a.test"]), (Link("http://a.test", "A"),))

    async def test_many_urls(self):
        links = await self.enricher.enrich(["http://a.test", "http://b.test", "http://bad.test", "http://gone.test"])
        self.assertCountEqual(links, [
            Link("http://a.test", "A"),
            Link("http://b.test", "B"),
            Link("http://bad.test", ""),
            Link("http://gone.test", ""),
        ])

    async def test_duplicate_urls_each_fetched(self):
        links = await self.enricher.enrich(["http://a.test", "http://a.test"])
        self.assertEqual(links, (Link("http://a.test", "A"), Link("http://a.test", "A")))
        self.assertEqual(self.fetcher.requested, ["http://a.test", "http://a.test"])

    async def test_one_thread_per_link(self):
        urls = [f"http://site{i}.test" for i in range(40)]
        fetcher = GatheringFetcher(len(urls))
        links = await LinkEnricher(PageTitleFetcher(fetcher)).enrich(urls)
        self.assertEqual(fetcher.peak, len(urls))
        self.assertCountEqual(links, [Link(url, url) for url in urls])

    async def test_concurrent_messages_do_not_share_workers(self):
        urls = [f"http://site{i}.test" for i in range(20)]
        fetcher = GatheringFetcher(2 * len(urls))
        enricher = LinkEnricher(PageTitleFetcher(fetcher))
        first, second = await asyncio.gather(enricher.enrich(urls), enricher.enrich(urls))
        self.assertEqual(fetcher.peak, 2 * len(urls))
        self.assertTrue(all(link.title for link in first + second))

    async def test_failures_are_logged(self):
        with self.assertLogs("chatparse.enrich", level="DEBUG") as logs:
            await self.enricher.enrich(["http://gone.test"])
        self.assertIn("http://gone.test", logs.output[0])


if __name__ == '__main__':
    unittest.main()
