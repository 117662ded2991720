from typing import Any, Dict, List, Optional

from crawler.core import get_logger
from crawler.errors import NotFound, DomainRejected, FetchFailed
from crawler.fetcher import PageFetcher
from crawler.parser import HTMLExtractor
from crawler.policy import DomainPolicy
from engine.geo_engine import GeoEngine
from evaluation.storage import PersonaStore
from rewriting.models import PageBrief, GeneratedPage
from rewriting.storage import GeneratedPageStore

logger = get_logger("creator")


class PageCreator:
    """
    Builds a new GEO page from a brief.

    FLOW: optional persona (NotFound aborts) -> up to N inspiration URLs, each
    reduced to its h1/h2/h3 outline (rejected or failing URLs are skipped)
    -> one structured completion call -> stored in generated_pages.
    """

    def __init__(self, personas: PersonaStore, generated: GeneratedPageStore, engine: GeoEngine,
                 fetcher: PageFetcher, extractor: HTMLExtractor, policy: DomainPolicy,
                 max_inspiration_urls: int = 5, timeout: float = 10):
        self._personas = personas
        self._generated = generated
        self._engine = engine
        self._fetcher = fetcher
        self._extractor = extractor
        self._policy = policy
        self.max_inspiration_urls = max_inspiration_urls
        self.timeout = timeout

    def create(self, brief: PageBrief, persona_id: Optional[str] = None) -> GeneratedPage:
        persona = None
        if persona_id:
            persona = self._personas.get(persona_id)
            if persona is None:
                raise NotFound("Persona", persona_id)

        inspiration = self.gather_inspiration(brief.inspiration_urls)
        payload = {
            "mode": "create",
            "persona": {
                "name": persona.name,
                "description": persona.description,
                "goal": persona.goal,
                "risk_profile": persona.risk_profile,
                "needs": persona.needs,
            } if persona else None,
            "pageTitle": brief.title,
            "pageGoal": brief.goal,
            "targetAudience": brief.target_audience,
            "tone": brief.tone,
            "requiredSections": brief.required_sections,
            "keyMessages": brief.key_messages,
            "faqs": brief.faqs,
            "userContext": brief.additional_context,
            "inspiration": inspiration,
        }

        logger.info(f"Creating page '{brief.title}' (persona={persona.name if persona else None})")
        query = "\n".join(p for p in (brief.title, brief.goal, brief.key_messages) if p)
        draft = self._engine.create_page(payload, query)

        metadata = brief.to_dict()
        metadata["inspiration"] = inspiration
        metadata["notes"] = draft.notes
        page = self._generated.insert(draft, metadata, persona.id if persona else None)
        logger.info(f"Generated page stored: {page.id}")
        return page

    def gather_inspiration(self, urls: List[str]) -> List[Dict[str, Any]]:
        outlines = []
        for url in list(urls or [])[:self.max_inspiration_urls]:
            try:
                checked = self._policy.check(url)
                fetched = self._fetcher.fetch(checked, timeout=self.timeout)
            except (DomainRejected, FetchFailed) as e:
                logger.warning(f"Skipping inspiration URL: {e}")
                continue
            headings = self._extractor.extract_headings(fetched.html)
            outlines.append({"url": checked, **headings})
            logger.info(f"Extracted structure from: {checked}")
        return outlines
