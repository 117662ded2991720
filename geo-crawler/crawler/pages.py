from crawler.core import get_logger
from crawler.errors import NotFound
from crawler.fetcher import PageFetcher
from crawler.models import Page, CrawlStatus
from crawler.parser import HTMLExtractor
from crawler.policy import DomainPolicy
from crawler.storage.page_store import PageStore, new_page_id

logger = get_logger("pages")


class PageService:
    """Manual single-page creation and lookup, outside of any crawl run."""

    def __init__(self, store: PageStore, fetcher: PageFetcher, extractor: HTMLExtractor, policy: DomainPolicy):
        self._store = store
        self._fetcher = fetcher
        self._extractor = extractor
        self._policy = policy

    def fetch_page(self, url: str) -> Page:
        """
        FLOW: allowlist check -> fetch (FetchFailed propagates) -> update the
        existing row's title/HTML/timestamp, or insert a new depth-0 page.
        """
        normalized = self._policy.check(url)
        logger.info(f"Fetching page: {normalized}")
        fetched = self._fetcher.fetch(normalized)
        title = self._extractor.extract_title(fetched.html)

        existing = self._store.get_by_url(normalized)
        if existing:
            self._store.update_content(existing.id, title, fetched.html, fetched.fetched_at)
            logger.info(f"Page updated: {existing.id}")
            return self._store.get(existing.id)

        page, _ = self._store.upsert(Page(
            id=new_page_id(),
            url=normalized,
            domain=self._policy.registrable_domain(normalized),
            title=title,
            html_content=fetched.html,
            crawl_status=CrawlStatus.FETCHED,
            depth=0,
            parent_url=None,
            fetch_timestamp=fetched.fetched_at,
        ))
        logger.info(f"Page created: {page.id}")
        return page

    def get_page(self, page_id: str) -> Page:
        page = self._store.get(page_id)
        if page is None:
            raise NotFound("Page", page_id)
        return page
