"""Fetch raw items from configured sources (HTML pages and RSS feeds)."""

from __future__ import annotations

import logging
from typing import Dict, List, Optional
from urllib.parse import urljoin

import feedparser
import httpx
from bs4 import BeautifulSoup, Tag
from crawl4ai import AsyncWebCrawler, BrowserConfig, CacheMode, CrawlerRunConfig

from .config import crawl_settings
from .errors import FetchError
from .models import FetchedItem, Source, SourceSelectors
from .robots import RobotsPolicy

logger = logging.getLogger(__name__)

TITLE_FALLBACK_LENGTH = 200


def _select_text(container: Tag, selector: str) -> str:
    """Text of every node matching ``selector``, joined in document order."""

    if not selector:
        return ""
    texts = (node.get_text(" ", strip=True) for node in container.select(selector))
    return " ".join(text for text in texts if text)


def _resolve_link(container: Tag, selector: str, base_url: str) -> str:
    link = ""
    if selector:
        node = container.select_one(selector)
        if node is not None:
            link = (node.get("href") or "").strip()
    if link.startswith("http"):
        return link
    if link:
        return urljoin(base_url, link)
    return base_url


def parse_html_items(html: str, source: Source) -> List[FetchedItem]:
    """Extract items from a page using the source's CSS selectors.

    Containers without a title are skipped. Without a title selector the
    container's own text, truncated, stands in for the title.
    """

    soup = BeautifulSoup(html, "html.parser")
    selectors: SourceSelectors = source.config.selectors

    if selectors.container:
        containers = soup.select(selectors.container)
    else:
        containers = soup.select("body") or [soup]

    items: List[FetchedItem] = []
    for container in containers:
        if selectors.title:
            title = _select_text(container, selectors.title)
        else:
            title = container.get_text(" ", strip=True)[:TITLE_FALLBACK_LENGTH]
        if not title:
            continue

        items.append(
            FetchedItem(
                title=title,
                description=_select_text(container, selectors.description),
                company=_select_text(container, selectors.company),
                date=_select_text(container, selectors.date),
                url=_resolve_link(container, selectors.link, source.url),
            )
        )
    return items


def _html_to_text(markup: str) -> str:
    if not markup:
        return ""
    return BeautifulSoup(markup, "html.parser").get_text(" ", strip=True)


def parse_feed_items(payload: bytes, source: Source) -> List[FetchedItem]:
    """Map RSS/Atom entries onto fetched items, in feed order."""

    feed = feedparser.parse(payload)
    if feed.bozo and not feed.entries:
        raise FetchError(source.name, f"Malformed feed: {feed.get('bozo_exception')}")

    items: List[FetchedItem] = []
    for entry in feed.entries:
        description = _html_to_text(entry.get("summary", ""))
        if not description and entry.get("content"):
            description = _html_to_text(entry["content"][0].get("value", ""))
        items.append(
            FetchedItem(
                title=entry.get("title", ""),
                description=description,
                company="",
                date=entry.get("published", ""),
                url=entry.get("link") or source.url,
            )
        )
    return items


class SourceFetcher:
    """Retrieve raw items from one source at a time.

    Plain pages and feeds go through a shared ``httpx.AsyncClient``; sources
    flagged ``render_js`` are loaded in a headless crawl4ai browser.
    """

    def __init__(
        self,
        client: Optional[httpx.AsyncClient] = None,
        respect_robots: Optional[bool] = None,
    ) -> None:
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(follow_redirects=True)
        self.respect_robots = crawl_settings.respect_robots if respect_robots is None else respect_robots
        self.robots = RobotsPolicy(self._client)

    async def __aenter__(self) -> "SourceFetcher":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    def _headers(self, source: Source) -> Dict[str, str]:
        return {"User-Agent": crawl_settings.user_agent, **source.config.headers}

    async def is_allowed(self, source: Source) -> bool:
        """Whether robots.txt permits crawling the source URL."""

        if not self.respect_robots:
            return True
        return await self.robots.allowed(source.url)

    async def fetch(self, source: Source) -> List[FetchedItem]:
        """Fetch items, logging failures and returning an empty list instead of raising."""

        try:
            return await self.fetch_strict(source)
        except FetchError as exc:
            logger.error("Crawl error for %s: %s", source.name, exc, extra={"source": source.name})
            return []

    async def fetch_strict(self, source: Source) -> List[FetchedItem]:
        """Fetch items, raising :class:`FetchError` on network or parse failures."""

        try:
            if source.config.is_rss:
                return await self._fetch_rss(source)
            if source.config.render_js:
                html = await self._render_page(source)
            else:
                html = await self._get_page(source)
            return parse_html_items(html, source)
        except FetchError:
            raise
        except httpx.TimeoutException as exc:
            raise FetchError(source.name, f"Timed out fetching {source.url}") from exc
        except httpx.HTTPError as exc:
            raise FetchError(source.name, f"HTTP error fetching {source.url}: {exc}") from exc
        except Exception as exc:
            raise FetchError(source.name, f"Failed to parse {source.url}: {exc}") from exc

    async def _get_page(self, source: Source) -> str:
        response = await self._client.get(
            source.url,
            headers=self._headers(source),
            timeout=crawl_settings.request_timeout,
        )
        response.raise_for_status()
        return response.text

    async def _render_page(self, source: Source) -> str:
        browser_config = BrowserConfig(
            headless=True,
            user_agent=crawl_settings.user_agent,
            headers=dict(source.config.headers),
        )
        run_config = CrawlerRunConfig(
            cache_mode=CacheMode.ENABLED if crawl_settings.use_cache else CacheMode.BYPASS,
            page_timeout=int(crawl_settings.request_timeout * 1000),
        )
        async with AsyncWebCrawler(config=browser_config) as crawler:
            result = await crawler.arun(source.url, config=run_config)
        if not result.success or not result.html:
            raise FetchError(source.name, result.error_message or f"Could not render {source.url}")
        return result.html

    async def _fetch_rss(self, source: Source) -> List[FetchedItem]:
        response = await self._client.get(
            source.url,
            headers=self._headers(source),
            timeout=crawl_settings.request_timeout,
        )
        response.raise_for_status()
        return parse_feed_items(response.content, source)
