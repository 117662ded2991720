from typing import List, Optional

from crawler.core import get_logger
from crawler.errors import NotFound
from crawler.policy import DomainPolicy
from crawler.storage.page_store import PageStore
from engine.geo_engine import GeoEngine
from rewriting.models import IndexabilityScore
from rewriting.storage import IndexabilityStore

logger = get_logger("indexability")


class IndexabilityScorer:
    """Structural LLM-friendliness of a page's HTML. Each call stores a new row."""

    def __init__(self, pages: PageStore, scores: IndexabilityStore, engine: GeoEngine, policy: DomainPolicy):
        self._pages = pages
        self._scores = scores
        self._engine = engine
        self._policy = policy

    def score(self, page_id: str) -> IndexabilityScore:
        page = self._pages.get(page_id)
        if page is None:
            raise NotFound("Page", page_id)
        self._policy.check(page.url)

        logger.info(f"Scoring indexability of {page.url}")
        report = self._engine.indexability(page.html_content)
        stored = self._scores.insert(page.id, report)
        logger.info(
            f"Indexability stored: {stored.id} html={stored.html_indexability_score:.2f} "
            f"structure={stored.structure_clarity_score:.2f}"
        )
        return stored

    def latest(self, page_id: str) -> Optional[IndexabilityScore]:
        return self._scores.latest(page_id)

    def latest_per_page(self) -> List[IndexabilityScore]:
        return self._scores.latest_per_page()
