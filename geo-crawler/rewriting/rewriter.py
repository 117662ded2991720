from typing import Any, Dict, List, Optional

from crawler.core import get_logger
from crawler.errors import NotFound
from crawler.models import Page
from crawler.policy import DomainPolicy
from crawler.storage.page_store import PageStore
from engine.geo_engine import GeoEngine, QUERY_HTML_CHARS
from evaluation.aggregate import InsightReader
from evaluation.models import Persona
from evaluation.storage import PersonaStore
from rewriting.models import Rewrite
from rewriting.storage import RewriteStore

logger = get_logger("rewriter")


class RewriteGenerator:
    """
    Single-shot rewrite: one completion call combining the page HTML, optional
    persona framing, caller-supplied lists, stored persona insights and the
    retrieved playbook chunks. Every call appends a new Rewrite row.
    """

    def __init__(self, pages: PageStore, personas: PersonaStore, rewrites: RewriteStore,
                 insights: InsightReader, engine: GeoEngine, policy: DomainPolicy):
        self._pages = pages
        self._personas = personas
        self._rewrites = rewrites
        self._insights = insights
        self._engine = engine
        self._policy = policy

    def rewrite(
        self,
        page_id: str,
        persona_id: Optional[str] = None,
        recommendations: Optional[List[str]] = None,
        weak_points: Optional[List[str]] = None,
        opportunities: Optional[List[str]] = None,
        persona_results: Optional[List[Dict[str, Any]]] = None,
    ) -> Rewrite:
        page = self._pages.get(page_id)
        if page is None:
            raise NotFound("Page", page_id)
        self._policy.check(page.url)

        persona = None
        if persona_id:
            persona = self._personas.get(persona_id)
            if persona is None:
                raise NotFound("Persona", persona_id)

        recommendations = list(recommendations or [])
        context = {
            "mode": "persona" if persona else "general",
            "persona": self._persona_framing(persona),
            "recommendations": recommendations,
            "weak_points": list(weak_points or []),
            "opportunities": list(opportunities or []),
            "persona_results": list(persona_results or []),
            "aggregatedInsights": self._stored_insights(persona, page),
        }

        logger.info(f"Rewriting {page.url} (mode={context['mode']})")
        draft = self._engine.rewrite(page.html_content, context, self._retrieval_query(page, persona, recommendations))
        rewrite = self._rewrites.insert(page.id, page.html_content, draft, persona.id if persona else None)
        logger.info(f"Rewrite stored: {rewrite.id}")
        return rewrite

    @staticmethod
    def _persona_framing(persona: Optional[Persona]) -> Optional[Dict[str, str]]:
        if persona is None:
            return None
        return {
            "name": persona.name,
            "description": persona.description,
            "goal": persona.goal,
            "needs": persona.needs,
            "risk_profile": persona.risk_profile,
        }

    def _stored_insights(self, persona: Optional[Persona], page: Page) -> Optional[Dict[str, Any]]:
        if persona is None:
            return None
        insight = self._insights.read(persona.id, page.id)
        if insight.total_results == 0:
            return None
        return {
            "avgScores": {
                "relevance": insight.avg_relevance,
                "comprehension": insight.avg_comprehension,
                "visibility": insight.avg_visibility,
                "recommendation": insight.avg_recommendation,
            },
            "allRecommendations": insight.recommendations,
            "totalTests": insight.total_results,
        }

    @staticmethod
    def _retrieval_query(page: Page, persona: Optional[Persona], recommendations: List[str]) -> str:
        parts = [
            (page.html_content or "")[:QUERY_HTML_CHARS],
            f"Persona: {persona.name} - {persona.description}" if persona else "",
            ", ".join(recommendations),
        ]
        return "\n".join(p for p in parts if p)
