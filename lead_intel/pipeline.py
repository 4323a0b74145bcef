"""High-level orchestration for the crawl-to-lead flow."""

from __future__ import annotations

import asyncio
import logging
from typing import List, Optional

from .assembler import LeadAssembler
from .config import crawl_settings
from .errors import FetchError
from .fetcher import SourceFetcher
from .models import CrawlResult, Source, SourceStatus, utcnow
from .storage import LeadStore

logger = logging.getLogger(__name__)

ROBOTS_BLOCKED = "Blocked by robots.txt"


class CrawlOrchestrator:
    """Crawl sources one at a time and turn their items into leads.

    Sources and items are processed strictly in order; a pause separates
    consecutive sources so third-party sites share one polite request budget.
    """

    def __init__(
        self,
        store: LeadStore,
        fetcher: SourceFetcher,
        assembler: Optional[LeadAssembler] = None,
        inter_source_delay: Optional[float] = None,
        max_error_count: Optional[int] = None,
    ) -> None:
        self.store = store
        self.fetcher = fetcher
        self.assembler = assembler or LeadAssembler(store)
        self.inter_source_delay = (
            crawl_settings.inter_source_delay if inter_source_delay is None else inter_source_delay
        )
        self.max_error_count = crawl_settings.max_error_count if max_error_count is None else max_error_count
        self._stop = asyncio.Event()

    def stop(self) -> None:
        """Ask a running crawl to finish after the current item."""

        self._stop.set()

    @property
    def stopped(self) -> bool:
        return self._stop.is_set()

    async def run_all(self) -> List[CrawlResult]:
        """Crawl every active, schedule-enabled source."""

        self._stop.clear()
        sources = self.store.list_active_sources()
        logger.info("Starting crawl of %d sources", len(sources), extra={"step": "run_all"})

        results: List[CrawlResult] = []
        for index, source in enumerate(sources):
            if self.stopped:
                logger.info("Crawl stopped before %s", source.name, extra={"source": source.name})
                break
            if index and self.inter_source_delay:
                await asyncio.sleep(self.inter_source_delay)
            try:
                results.append(await self.run_one(source))
            except Exception as exc:
                logger.exception("Unexpected failure crawling %s", source.name, extra={"source": source.name})
                results.append(CrawlResult(source_name=source.name, errors=[str(exc)]))

        logger.info(
            "Crawl cycle complete: %d sources, %d new leads",
            len(results),
            sum(result.leads_created for result in results),
            extra={"step": "run_all"},
        )
        return results

    async def run_one(self, source: Source) -> CrawlResult:
        """Crawl a single source and update its governance counters."""

        result = CrawlResult(source_name=source.name)

        try:
            if not await self.fetcher.is_allowed(source):
                logger.warning("%s: %s", ROBOTS_BLOCKED, source.url, extra={"source": source.name})
                result.errors.append(f"{ROBOTS_BLOCKED}: {source.url}")
                source.last_crawled = utcnow()
                source.last_error = ROBOTS_BLOCKED
                self.store.save_source(source)
                return result

            items = await self.fetcher.fetch_strict(source)
        except FetchError as exc:
            logger.error("Crawl failed for %s: %s", source.name, exc, extra={"source": source.name})
            result.errors.append(str(exc))
            self._record_failure(source, str(exc))
            return result
        except Exception as exc:
            logger.exception("Crawl failed for %s", source.name, extra={"source": source.name})
            result.errors.append(str(exc))
            self._record_failure(source, str(exc))
            return result

        result.items_processed = len(items)
        for position, item in enumerate(items):
            if self.stopped:
                result.items_processed = position
                break
            try:
                if self.assembler.assemble(item, source) is not None:
                    result.leads_created += 1
            except Exception as exc:
                logger.exception(
                    "Failed to process item %r",
                    item.title,
                    extra={"source": source.name, "item_url": item.url},
                )
                result.errors.append(str(exc))

        self._record_success(source, result.leads_created)
        return result

    def _record_success(self, source: Source, leads_created: int) -> None:
        now = utcnow()
        source.last_crawled = now
        source.last_success = now
        source.crawl_count += 1
        source.leads_generated += leads_created
        source.last_error = ""
        self.store.save_source(source)

    def _record_failure(self, source: Source, message: str) -> None:
        source.last_crawled = utcnow()
        source.last_error = message
        source.error_count += 1
        if source.error_count > self.max_error_count:
            source.status = SourceStatus.ERROR
            logger.warning(
                "Source %s disabled after %d errors",
                source.name,
                source.error_count,
                extra={"source": source.name},
            )
        self.store.save_source(source)


async def run_pipeline(store: LeadStore, source_name: Optional[str] = None) -> List[CrawlResult]:
    """Convenience entry point: crawl all active sources, or just the named one."""

    async with SourceFetcher() as fetcher:
        orchestrator = CrawlOrchestrator(store, fetcher)
        if source_name is None:
            return await orchestrator.run_all()

        matches = [source for source in store.list_active_sources() if source.name == source_name]
        if not matches:
            raise ValueError(f"No active source named {source_name!r}")
        return [await orchestrator.run_one(matches[0])]
