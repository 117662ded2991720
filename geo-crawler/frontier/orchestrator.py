import sqlite3
from typing import Dict, Optional

from crawler.core import get_logger
from crawler.errors import FetchFailed
from crawler.fetcher import PageFetcher
from crawler.models import Page, CrawlStatus, ItemOutcome, to_timestamp, utcnow
from crawler.parser import HTMLExtractor
from crawler.policy import DomainPolicy
from crawler.storage.page_store import PageStore, new_page_id
from frontier.models import CrawlResult, FrontierEntry, TreeNode
from frontier.queue import CrawlQueue

logger = get_logger("frontier")


class Frontier:
    """
    Breadth-first discovery of a bounded corpus under the domain allowlist.

    Single sequential worker per run. Discovery never overwrites a page that
    is already stored; re-fetching known pages is the refresh pass's job.
    """

    def __init__(
        self,
        store: PageStore,
        fetcher: PageFetcher,
        extractor: HTMLExtractor,
        policy: DomainPolicy,
        max_pages: int = 100,
    ):
        self._store = store
        self._fetcher = fetcher
        self._extractor = extractor
        self._policy = policy
        self._max_pages = max_pages

    def crawl(self, start_url: str, max_depth: int) -> CrawlResult:
        """
        FLOW: Validate seed (DomainRejected before any fetch) -> BFS over the queue ->
        skip visited/too-deep/already-stored -> fetch -> persist -> link discovery.
        Terminates when the queue drains or the safety cap is reached.
        """
        if max_depth < 0:
            raise ValueError("max_depth must be >= 0")
        seed = self._policy.check(start_url)
        self._policy.reset_stats()

        logger.info(f"Starting crawl: start_url={seed} max_depth={max_depth} cap={self._max_pages}")

        queue = CrawlQueue(max_depth)
        queue.enqueue(seed, 0, None)
        result = CrawlResult()
        nodes: Dict[str, TreeNode] = {}

        while not queue.is_empty() and result.pages_discovered < self._max_pages:
            entry = queue.dequeue()

            if queue.is_visited(entry.url) or entry.depth > max_depth:
                result.pages_skipped += 1
                reason = "already_visited" if queue.is_visited(entry.url) else "depth_exceeded"
                result.outcomes.append(ItemOutcome.skipped(entry.url, reason))
                continue
            queue.mark_visited(entry.url)

            self._process(entry, queue, max_depth, result, nodes)

        if not queue.is_empty():
            logger.warning(f"Safety cap reached ({self._max_pages} pages); {len(queue)} entries left in queue")

        result.tree = [node for node in nodes.values() if node.depth == 0]
        logger.info(
            f"Crawl complete: discovered={result.pages_discovered} updated={result.pages_updated} "
            f"skipped={result.pages_skipped} link_policy={self._policy.get_stats()}"
        )
        return result

    def _process(self, entry: FrontierEntry, queue: CrawlQueue, max_depth: int,
                 result: CrawlResult, nodes: Dict[str, TreeNode]) -> None:
        url = entry.url
        try:
            if self._store.get_by_url(url) is not None:
                logger.info(f"Page already exists, skipping: {url}")
                result.pages_skipped += 1
                result.outcomes.append(ItemOutcome.skipped(url, "already_stored"))
                return

            logger.info(f"Fetching: {url} (depth={entry.depth})")
            try:
                fetched = self._fetcher.fetch(url)
            except FetchFailed as e:
                result.pages_skipped += 1
                if e.reason == "non_html":
                    logger.info(f"Skipping non-HTML: {url}")
                    result.outcomes.append(ItemOutcome.skipped(url, "non_html"))
                    return
                logger.error(f"Failed to fetch: {e}")
                self._store.upsert(self._page(entry, CrawlStatus.ERROR))
                result.outcomes.append(ItemOutcome.failed(url, e.reason))
                return

            title = self._extractor.extract_title(fetched.html)
            _, created = self._store.upsert(
                self._page(entry, CrawlStatus.FETCHED, title, fetched.html, fetched.fetched_at)
            )
        except sqlite3.Error as e:
            logger.error(f"Error storing page {url}: {e}")
            result.pages_skipped += 1
            result.outcomes.append(ItemOutcome.failed(url, "store_error"))
            return

        if created:
            result.pages_discovered += 1
        else:
            # Another run stored this URL between our existence check and the write
            result.pages_updated += 1
        result.outcomes.append(ItemOutcome.success(url))

        node = TreeNode(url=url, title=title, depth=entry.depth)
        nodes[url] = node
        if entry.parent_url and entry.parent_url in nodes:
            nodes[entry.parent_url].children.append(node)

        if entry.depth < max_depth:
            self._enqueue_links(entry, fetched.html, queue)

    def _enqueue_links(self, entry: FrontierEntry, html: str, queue: CrawlQueue) -> None:
        enqueued = 0
        for href in self._extractor.extract_links(html):
            link, reason = self._policy.resolve(href, entry.url)
            if link is None:
                logger.debug(f"Rejected link {href!r} on {entry.url}: {reason}")
                continue
            if queue.enqueue(link, entry.depth + 1, entry.url):
                enqueued += 1
        logger.info(f"enqueued {enqueued} links from {entry.url} at depth {entry.depth + 1}")

    def _page(self, entry: FrontierEntry, status: CrawlStatus, title: Optional[str] = None,
              html: Optional[str] = None, fetched_at: Optional[str] = None) -> Page:
        return Page(
            id=new_page_id(),
            url=entry.url,
            domain=self._policy.registrable_domain(entry.url),
            title=title,
            html_content=html,
            crawl_status=status,
            depth=entry.depth,
            parent_url=entry.parent_url,
            fetch_timestamp=fetched_at or to_timestamp(utcnow()),
        )
