"""Tests for HTML/RSS parsing and the HTTP source fetcher."""

from types import SimpleNamespace

import httpx
import pytest

from lead_intel import fetcher as fetcher_module
from lead_intel.config import crawl_settings
from lead_intel.errors import FetchError
from lead_intel.fetcher import SourceFetcher, parse_feed_items, parse_html_items
from lead_intel.models import SourceConfig, SourceSelectors, SourceType

LISTING_HTML = """
<html><body>
  <div class="row">
    <a class="t" href="/tender/1">Supply of Diesel</a>
    <p class="d">Bulk supply for DG sets</p>
    <span class="c">Acme Ltd</span>
    <span class="dt">2024-05-01</span>
  </div>
  <div class="row"><p class="d">Row without a title</p></div>
  <div class="row">
    <a class="t" href="https://other.example/notice/2">Bitumen tender</a>
  </div>
</body></html>
"""

RSS_FEED = b"""<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0">
  <channel>
    <title>Industry News</title>
    <link>https://news.example/</link>
    <item>
      <title>Refinery expansion announced</title>
      <link>https://news.example/articles/1</link>
      <description>&lt;p&gt;New &lt;b&gt;diesel&lt;/b&gt; demand&lt;/p&gt;</description>
      <pubDate>Wed, 01 May 2024 10:00:00 GMT</pubDate>
    </item>
    <item>
      <title>Port upgrade</title>
    </item>
  </channel>
</rss>
"""

LISTING_SELECTORS = SourceSelectors(
    container=".row",
    title=".t",
    description=".d",
    company=".c",
    date=".dt",
    link=".t",
)


@pytest.fixture
def listing_source(make_source):
    return make_source(
        url="https://tenders.example.gov/list",
        config=SourceConfig(selectors=LISTING_SELECTORS, headers={"X-Api-Key": "secret"}),
    )


@pytest.fixture
def feed_source(make_source):
    return make_source(
        name="Industry News",
        url="https://news.example/feed.xml",
        type=SourceType.RSS_FEED,
        config=SourceConfig(is_rss=True),
    )


class TestParseHtmlItems:
    """Tests for selector-driven HTML extraction."""

    def test_extracts_items_in_document_order(self, listing_source):
        items = parse_html_items(LISTING_HTML, listing_source)

        assert [item.title for item in items] == ["Supply of Diesel", "Bitumen tender"]
        first = items[0]
        assert first.description == "Bulk supply for DG sets"
        assert first.company == "Acme Ltd"
        assert first.date == "2024-05-01"

    def test_resolves_relative_and_absolute_links(self, listing_source):
        items = parse_html_items(LISTING_HTML, listing_source)

        assert items[0].url == "https://tenders.example.gov/tender/1"
        assert items[1].url == "https://other.example/notice/2"

    def test_missing_fields_are_empty(self, listing_source):
        item = parse_html_items(LISTING_HTML, listing_source)[1]

        assert item.description == ""
        assert item.company == ""

    def test_joins_every_matching_node(self, make_source):
        source = make_source(config=SourceConfig(selectors=LISTING_SELECTORS))
        html = """
        <div class="row">
          <a class="t" href="/tender/7">Diesel tender</a>
          <a class="t" href="/tender/8">Corrigendum</a>
          <p class="d">Supply of diesel.</p>
          <p class="d">Annual contract 500 KL.</p>
        </div>
        """

        item = parse_html_items(html, source)[0]

        assert item.description == "Supply of diesel. Annual contract 500 KL."
        assert item.title == "Diesel tender Corrigendum"
        assert item.url == "https://tenders.example.gov/tender/7"

    def test_link_falls_back_to_source_url(self, make_source):
        source = make_source(config=SourceConfig(selectors=SourceSelectors(container=".row", title=".t")))

        items = parse_html_items('<div class="row"><b class="t">Notice</b></div>', source)

        assert items[0].url == source.url

    def test_whole_page_without_selectors(self, make_source):
        items = parse_html_items("<html><body><h1>Notice</h1><p>Diesel needed</p></body></html>", make_source())

        assert len(items) == 1
        assert items[0].title == "Notice Diesel needed"

    def test_container_text_title_is_truncated(self, make_source):
        source = make_source(config=SourceConfig(selectors=SourceSelectors(container="li")))

        items = parse_html_items(f"<ul><li>{'a' * 300}</li></ul>", source)

        assert len(items[0].title) == 200

    def test_no_matches(self, listing_source):
        assert parse_html_items("<html><body><p>Nothing</p></body></html>", listing_source) == []


class TestParseFeedItems:
    """Tests for RSS parsing."""

    def test_entries_in_feed_order(self, feed_source):
        items = parse_feed_items(RSS_FEED, feed_source)

        assert [item.title for item in items] == ["Refinery expansion announced", "Port upgrade"]

    def test_summary_is_plain_text(self, feed_source):
        item = parse_feed_items(RSS_FEED, feed_source)[0]

        assert item.description == "New diesel demand"
        assert item.url == "https://news.example/articles/1"
        assert item.date == "Wed, 01 May 2024 10:00:00 GMT"
        assert item.company == ""

    def test_missing_link_uses_source_url(self, feed_source):
        item = parse_feed_items(RSS_FEED, feed_source)[1]
        assert item.url == feed_source.url

    def test_malformed_feed_raises(self, feed_source):
        with pytest.raises(FetchError) as exc_info:
            parse_feed_items(b"this is not a feed at all", feed_source)
        assert exc_info.value.source_name == "Industry News"


class TestSourceFetcher:
    """Tests for SourceFetcher against a mocked transport."""

    @pytest.mark.asyncio
    async def test_fetches_and_parses_listing(self, listing_source):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, text=LISTING_HTML)

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            fetcher = SourceFetcher(client=client, respect_robots=False)
            items = await fetcher.fetch(listing_source)

        assert len(items) == 2
        assert seen[0].headers["User-Agent"] == crawl_settings.user_agent
        assert seen[0].headers["X-Api-Key"] == "secret"

    @pytest.mark.asyncio
    async def test_server_error(self, listing_source):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(500, text="boom")

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            fetcher = SourceFetcher(client=client, respect_robots=False)
            assert await fetcher.fetch(listing_source) == []
            with pytest.raises(FetchError, match="HTTP error"):
                await fetcher.fetch_strict(listing_source)

    @pytest.mark.asyncio
    async def test_timeout(self, listing_source):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectTimeout("timed out", request=request)

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            fetcher = SourceFetcher(client=client, respect_robots=False)
            with pytest.raises(FetchError, match="Timed out"):
                await fetcher.fetch_strict(listing_source)

    @pytest.mark.asyncio
    async def test_fetches_feed(self, feed_source):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, content=RSS_FEED, headers={"Content-Type": "application/rss+xml"})

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            fetcher = SourceFetcher(client=client, respect_robots=False)
            items = await fetcher.fetch(feed_source)

        assert [item.title for item in items] == ["Refinery expansion announced", "Port upgrade"]

    @pytest.mark.asyncio
    async def test_borrowed_client_stays_open(self, listing_source):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, text=LISTING_HTML)

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            async with SourceFetcher(client=client, respect_robots=False):
                pass
            assert not client.is_closed


class FakeCrawler:
    """Stands in for crawl4ai's AsyncWebCrawler and returns a canned result."""

    result = None
    calls = []

    def __init__(self, config=None):
        self.config = config

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        return None

    async def arun(self, url, config=None):
        FakeCrawler.calls.append((url, self.config, config))
        return FakeCrawler.result


class TestRenderedSources:
    """Tests for sources loaded through the headless browser."""

    @pytest.fixture
    def rendered_source(self, make_source):
        return make_source(
            url="https://directory.example/suppliers",
            type=SourceType.INDUSTRY_DIRECTORY,
            config=SourceConfig(selectors=LISTING_SELECTORS, render_js=True),
        )

    @pytest.fixture(autouse=True)
    def fake_crawler(self, monkeypatch):
        FakeCrawler.result = None
        FakeCrawler.calls = []
        monkeypatch.setattr(fetcher_module, "AsyncWebCrawler", FakeCrawler)
        return FakeCrawler

    @pytest.mark.asyncio
    async def test_parses_rendered_html(self, rendered_source, fake_crawler):
        fake_crawler.result = SimpleNamespace(success=True, html=LISTING_HTML, error_message="")

        async with SourceFetcher(respect_robots=False) as fetcher:
            items = await fetcher.fetch_strict(rendered_source)

        assert [item.title for item in items] == ["Supply of Diesel", "Bitumen tender"]
        url, browser_config, run_config = fake_crawler.calls[0]
        assert url == "https://directory.example/suppliers"
        assert browser_config.user_agent == crawl_settings.user_agent
        assert run_config.page_timeout == int(crawl_settings.request_timeout * 1000)

    @pytest.mark.asyncio
    async def test_failed_render_raises(self, rendered_source, fake_crawler):
        fake_crawler.result = SimpleNamespace(success=False, html="", error_message="net::ERR_NAME_NOT_RESOLVED")

        async with SourceFetcher(respect_robots=False) as fetcher:
            with pytest.raises(FetchError, match="ERR_NAME_NOT_RESOLVED"):
                await fetcher.fetch_strict(rendered_source)
            assert await fetcher.fetch(rendered_source) == []


class TestRobots:
    """Tests for robots.txt handling."""

    @staticmethod
    def _client(robots_response, counter=None):
        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path == "/robots.txt":
                if counter is not None:
                    counter.append(request.url)
                return robots_response(request)
            return httpx.Response(200, text=LISTING_HTML)

        return httpx.AsyncClient(transport=httpx.MockTransport(handler))

    @pytest.mark.asyncio
    async def test_disallowed_path(self, make_source):
        robots = "User-agent: *\nDisallow: /private\n"
        async with self._client(lambda request: httpx.Response(200, text=robots)) as client:
            fetcher = SourceFetcher(client=client, respect_robots=True)

            assert not await fetcher.is_allowed(make_source(url="https://tenders.example.gov/private/list"))
            assert await fetcher.is_allowed(make_source(url="https://tenders.example.gov/public/list"))

    @pytest.mark.asyncio
    async def test_bot_specific_rules(self, make_source):
        robots = "User-agent: LeadIntelBot\nDisallow: /\n\nUser-agent: *\nAllow: /\n"
        async with self._client(lambda request: httpx.Response(200, text=robots)) as client:
            fetcher = SourceFetcher(client=client, respect_robots=True)

            assert not await fetcher.is_allowed(make_source())

    @pytest.mark.asyncio
    async def test_missing_robots_allows(self, make_source):
        async with self._client(lambda request: httpx.Response(404)) as client:
            fetcher = SourceFetcher(client=client, respect_robots=True)
            assert await fetcher.is_allowed(make_source())

    @pytest.mark.asyncio
    async def test_unreachable_robots_allows(self, make_source):
        def unreachable(request):
            raise httpx.ConnectError("refused", request=request)

        async with self._client(unreachable) as client:
            fetcher = SourceFetcher(client=client, respect_robots=True)
            assert await fetcher.is_allowed(make_source())

    @pytest.mark.asyncio
    async def test_rules_cached_per_host(self, make_source):
        calls = []
        async with self._client(lambda request: httpx.Response(200, text="User-agent: *\nAllow: /\n"), calls) as client:
            fetcher = SourceFetcher(client=client, respect_robots=True)
            await fetcher.is_allowed(make_source(url="https://tenders.example.gov/a"))
            await fetcher.is_allowed(make_source(url="https://tenders.example.gov/b"))

        assert len(calls) == 1

    @pytest.mark.asyncio
    async def test_disabled_skips_lookup(self, make_source):
        calls = []
        async with self._client(lambda request: httpx.Response(200, text="User-agent: *\nDisallow: /\n"), calls) as client:
            fetcher = SourceFetcher(client=client, respect_robots=False)
            assert await fetcher.is_allowed(make_source())

        assert calls == []
