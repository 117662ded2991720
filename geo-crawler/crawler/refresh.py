"""
Staleness-driven refresh pass.
Re-fetches every fetched page older than the threshold and overwrites it.
No link discovery, no frontier, no depth.
"""

import sqlite3
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Callable, List, Dict, Any

from crawler.core import get_logger
from crawler.errors import FetchFailed
from crawler.fetcher import PageFetcher
from crawler.models import ItemOutcome, to_timestamp, utcnow, summarize_outcomes
from crawler.parser import HTMLExtractor
from crawler.storage.page_store import PageStore

logger = get_logger("refresh")


@dataclass
class RefreshResult:
    pages_refreshed: int = 0
    pages_failed: int = 0
    total_processed: int = 0
    outcomes: List[ItemOutcome] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "pagesRefreshed": self.pages_refreshed,
            "pagesFailed": self.pages_failed,
            "totalProcessed": self.total_processed,
            "summary": summarize_outcomes(self.outcomes),
            "outcomes": [o.to_dict() for o in self.outcomes],
        }


class RefreshScheduler:

    def __init__(self, store: PageStore, fetcher: PageFetcher, extractor: HTMLExtractor,
                 staleness_hours: int = 48, timeout: float = 10, clock: Callable = utcnow):
        self._store = store
        self._fetcher = fetcher
        self._extractor = extractor
        self._staleness = timedelta(hours=staleness_hours)
        self._timeout = timeout
        self._clock = clock

    def refresh(self) -> RefreshResult:
        cutoff = to_timestamp(self._clock() - self._staleness)
        stale = self._store.stale_pages(cutoff)
        result = RefreshResult(total_processed=len(stale))

        if not stale:
            logger.info("No pages to refresh")
            return result
        logger.info(f"Found {len(stale)} pages to refresh (fetched before {cutoff})")

        for page in stale:
            try:
                fetched = self._fetcher.fetch(page.url, timeout=self._timeout)
                title = self._extractor.extract_title(fetched.html)
                self._store.update_content(page.id, title, fetched.html, to_timestamp(self._clock()))
            except (FetchFailed, sqlite3.Error) as e:
                logger.error(f"Error refreshing page {page.url}: {e}")
                result.pages_failed += 1
                reason = e.reason if isinstance(e, FetchFailed) else "store_error"
                result.outcomes.append(ItemOutcome.failed(page.url, reason))
                # Stamp the failure so the page waits a full window before the next attempt
                try:
                    self._store.mark_error(page.id, to_timestamp(self._clock()))
                except sqlite3.Error as store_error:
                    logger.error(f"Could not mark {page.url} as error: {store_error}")
                continue

            result.pages_refreshed += 1
            result.outcomes.append(ItemOutcome.success(page.url))
            logger.info(f"Refreshed: {page.url}")

        logger.info(
            f"Refresh complete: refreshed={result.pages_refreshed} failed={result.pages_failed} "
            f"total={result.total_processed}"
        )
        return result
