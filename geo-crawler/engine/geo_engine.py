from typing import Any, Dict, List, Optional

from crawler.core import get_logger
from crawler.errors import ParseFailed
from engine import prompts
from engine.client import CompletionClient
from engine.models import (
    ScoreCard, PersonaGaps, PageGapReport, RewriteDraft, IndexabilityReport, PageDraft,
)
from engine.parsing import clamp_score, first_list, extract_section, parse_json_array
from engine.style_guide import GEO_STYLE_GUIDE, PLAYBOOK_CONTEXT_HEADER
from evaluation.models import Persona
from playbook.index import KnowledgeIndex

logger = get_logger("geo_engine")

# Retrieval query length when a task has no explicit query text
QUERY_HTML_CHARS = 2000


class GeoEngine:
    """
    Every GEO task is one completion call built the same way:
    [style guide] + [retrieved playbook chunks] + [task prompt].

    Errors are not caught here: UpstreamServiceError and ParseFailed reach the
    caller, which decides whether the task is fatal or per-item.
    """

    def __init__(self, client: CompletionClient, index: KnowledgeIndex):
        self._client = client
        self._index = index

    def _messages(self, user_prompt: str, retrieval_query: str) -> List[Dict[str, str]]:
        context = self._index.context_for(retrieval_query)
        return [
            {"role": "system", "content": GEO_STYLE_GUIDE},
            {"role": "system", "content": f"{PLAYBOOK_CONTEXT_HEADER}{context}"},
            {"role": "user", "content": user_prompt},
        ]

    @staticmethod
    def _html_query(page_html: Optional[str]) -> str:
        return (page_html or "")[:QUERY_HTML_CHARS]

    def answer(self, page_html: str, question: str, persona: Optional[Persona] = None) -> str:
        persona_context = persona.context() if persona else None
        messages = self._messages(prompts.answer_prompt(question, page_html or "", persona_context), question)
        return self._client.complete(messages).strip()

    def generate_questions(self, page_html: str, persona: Persona, num_questions: int) -> List[str]:
        """Strict: a JSON array of strings, capped at num_questions. ParseFailed otherwise."""
        instruction = prompts.questions_instruction(num_questions)
        messages = self._messages(
            prompts.questions_prompt(page_html or "", persona.context(), num_questions), instruction
        )
        raw = self._client.complete(messages)
        questions = [q.strip() for q in parse_json_array(raw) if isinstance(q, str) and q.strip()]
        if not questions:
            raise ParseFailed("Question generation returned no usable questions")
        return questions[:num_questions]

    def score(self, page_html: str, answer: str, question: Optional[str] = None,
              persona: Optional[Persona] = None) -> ScoreCard:
        persona_context = persona.context() if persona else None
        query = question or self._html_query(page_html)
        data = self._client.complete_json(
            self._messages(prompts.score_prompt(page_html or "", answer, question, persona_context), query)
        )
        return ScoreCard(
            relevance=clamp_score(data.get("relevance_score"), "relevance_score"),
            comprehension=clamp_score(data.get("comprehension_score"), "comprehension_score"),
            visibility=clamp_score(data.get("visibility_score"), "visibility_score"),
            recommendation=clamp_score(data.get("recommendation_score"), "recommendation_score"),
            global_score=clamp_score(data.get("global_geo_score"), "global_geo_score"),
            recommendations=first_list(data, "recommendations"),
        )

    def persona_gap_analysis(self, page_html: str, persona: Persona, questions: List[str],
                             results: List[Dict[str, Any]], averages: Dict[str, float]) -> PersonaGaps:
        prompt = prompts.persona_gap_prompt(page_html or "", persona.context(), questions, results, averages)
        data = self._client.complete_json(self._messages(prompt, self._html_query(page_html)))
        return PersonaGaps(
            strengths=first_list(data, "persona_strengths", "strengths"),
            weaknesses=first_list(data, "persona_weaknesses", "weaknesses"),
            opportunities=first_list(data, "persona_opportunities", "opportunities"),
            recommendations=first_list(data, "persona_recommendations", "recommendations"),
        )

    def page_gap_analysis(self, page_html: str) -> PageGapReport:
        data = self._client.complete_json(
            self._messages(prompts.page_gap_prompt(page_html or ""), self._html_query(page_html))
        )
        return PageGapReport(
            gaps=first_list(data, "gaps"),
            recommendations=first_list(data, "recommendations"),
            improvement_opportunities=first_list(data, "improvement_opportunities", "opportunities"),
        )

    def rewrite(self, page_html: str, context: Dict[str, Any], retrieval_query: Optional[str] = None) -> RewriteDraft:
        """Free-text call; sections are cut out of the reply by their ===MARKER=== lines."""
        query = retrieval_query or self._html_query(page_html)
        content = self._client.complete(self._messages(prompts.rewrite_prompt(page_html or "", context), query))

        html = extract_section(content, "NEW_PAGE_HTML")
        if not html:
            logger.error(f"Rewrite reply has no NEW_PAGE_HTML section (first 500 chars): {content[:500]}")
            raise ParseFailed("Rewrite reply is missing the NEW_PAGE_HTML section")

        return RewriteDraft(
            html=html,
            outline=extract_section(content, "NEW_PAGE_OUTLINE") or "",
            summary=extract_section(content, "SUMMARY") or "",
            rationale=extract_section(content, "GEO_RATIONALE") or "",
            persona_rationale=extract_section(content, "PERSONA_RATIONALE") or None,
        )

    def indexability(self, page_html: str) -> IndexabilityReport:
        data = self._client.complete_json(
            self._messages(prompts.indexability_prompt(page_html or ""), self._html_query(page_html))
        )
        return IndexabilityReport(
            html_indexability=clamp_score(data.get("html_indexability_score"), "html_indexability_score"),
            structure_clarity=clamp_score(data.get("structure_clarity_score"), "structure_clarity_score"),
            entity_clarity=clamp_score(data.get("entity_clarity_score"), "entity_clarity_score"),
            content_scannability=clamp_score(data.get("content_scannability_score"), "content_scannability_score"),
            issues=first_list(data, "issues"),
            suggestions=first_list(data, "suggestions"),
        )

    def create_page(self, brief: Dict[str, Any], retrieval_query: str) -> PageDraft:
        data = self._client.complete_json(self._messages(prompts.create_prompt(brief), retrieval_query))
        html = data.get("new_page_html")
        if not isinstance(html, str) or not html.strip():
            raise ParseFailed("Page creation reply is missing new_page_html")
        persona_rationale = data.get("persona_rationale")
        notes = data.get("notes")
        return PageDraft(
            html=html.strip(),
            outline=str(data.get("new_page_outline") or ""),
            rationale=str(data.get("geo_rationale") or ""),
            persona_rationale=str(persona_rationale) if persona_rationale else None,
            notes=str(notes) if notes else None,
        )
