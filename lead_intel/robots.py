"""robots.txt compliance checks with a per-host cache."""

from __future__ import annotations

import logging
import time
import urllib.robotparser
from typing import Dict, Optional, Tuple
from urllib.parse import urlparse

import httpx

from .config import crawl_settings

logger = logging.getLogger(__name__)


class RobotsPolicy:
    """Decide whether a URL may be crawled, caching each host's rules."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        user_agent: Optional[str] = None,
        cache_seconds: Optional[int] = None,
    ) -> None:
        self._client = client
        self.user_agent = user_agent or crawl_settings.user_agent
        # robotparser matches on the product token, not the full browser-style string.
        self.agent_token = crawl_settings.robots_agent
        self.cache_seconds = cache_seconds if cache_seconds is not None else crawl_settings.robots_cache_seconds
        self._cache: Dict[str, Tuple[float, Optional[urllib.robotparser.RobotFileParser]]] = {}

    async def _load(self, scheme: str, host: str) -> Optional[urllib.robotparser.RobotFileParser]:
        robots_url = f"{scheme}://{host}/robots.txt"
        try:
            response = await self._client.get(
                robots_url,
                headers={"User-Agent": self.user_agent},
                timeout=crawl_settings.robots_timeout,
            )
        except httpx.HTTPError as exc:
            logger.warning("Could not fetch robots.txt for %s, proceeding with caution: %s", host, exc)
            return None

        if response.status_code >= 400:
            return None

        parser = urllib.robotparser.RobotFileParser()
        parser.parse(response.text.splitlines())
        return parser

    async def allowed(self, url: str) -> bool:
        parsed = urlparse(url)
        if not parsed.netloc:
            return True

        now = time.monotonic()
        cached = self._cache.get(parsed.netloc)
        if cached and now - cached[0] < self.cache_seconds:
            parser = cached[1]
        else:
            parser = await self._load(parsed.scheme or "https", parsed.netloc)
            self._cache[parsed.netloc] = (now, parser)

        if parser is None:
            return True
        return parser.can_fetch(self.agent_token, url)
