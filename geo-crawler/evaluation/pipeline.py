import sqlite3
from typing import List, Optional

from crawler.core import get_logger
from crawler.errors import GeoError, NotFound, ParseFailed, UpstreamServiceError
from crawler.models import ItemOutcome, Page
from crawler.policy import DomainPolicy
from crawler.storage.page_store import PageStore
from engine.geo_engine import GeoEngine
from engine.models import PageGapReport, PersonaGaps
from evaluation.aggregate import aggregate_scores, mean_scores
from evaluation.models import EvaluationResult, Persona, PersonaEvaluation
from evaluation.storage import PersonaStore, ResultStore

logger = get_logger("evaluation")

FALLBACK_QUESTION = "What does this page offer for someone like {name}?"


class EvaluationPipeline:
    """
    Stages per invocation: GenerateQuestions (persona mode) -> Answer -> Score
    -> Persist -> Aggregate + gap analysis (persona mode).

    Each persisted row is committed on its own; a later failure never
    removes rows already written.
    """

    def __init__(self, pages: PageStore, personas: PersonaStore, results: ResultStore,
                 engine: GeoEngine, policy: DomainPolicy, default_num_questions: int = 6):
        self._pages = pages
        self._personas = personas
        self._results = results
        self._engine = engine
        self._policy = policy
        self.default_num_questions = default_num_questions

    def _load_page(self, page_id: str) -> Page:
        page = self._pages.get(page_id)
        if page is None:
            raise NotFound("Page", page_id)
        # Pages stored before an allowlist change are still refused
        self._policy.check(page.url)
        return page

    def _load_persona(self, persona_id: str) -> Persona:
        persona = self._personas.get(persona_id)
        if persona is None:
            raise NotFound("Persona", persona_id)
        return persona

    def evaluate(self, page_id: str, prompt_type: Optional[str], prompt_text: str) -> EvaluationResult:
        """
        General mode: a single caller-supplied question.
        Any failure aborts the request; nothing is persisted unless both calls succeed.
        """
        if not prompt_text or not prompt_text.strip():
            raise ValueError("prompt_text is required")
        page = self._load_page(page_id)
        logger.info(f"Evaluating page {page.url} (prompt_type={prompt_type})")

        answer = self._engine.answer(page.html_content, prompt_text)
        score = self._engine.score(page.html_content, answer, prompt_text)
        result = self._results.insert(page.id, prompt_text, answer, score, prompt_type=prompt_type)

        logger.info(f"Evaluation stored: {result.id} global={result.global_score:.2f}")
        return result

    def evaluate_persona(self, persona_id: str, page_id: str, num_questions: Optional[int] = None) -> PersonaEvaluation:
        """
        FLOW: load persona + page (NotFound aborts) -> generate questions (fallback on failure)
        -> per question answer/score/persist (failures recorded, loop continues)
        -> mean scores over successes -> gap analysis (empty lists on failure).
        """
        n = self.default_num_questions if num_questions is None else num_questions
        if n < 1:
            raise ValueError("num_questions must be >= 1")

        persona = self._load_persona(persona_id)
        page = self._load_page(page_id)
        logger.info(f"Persona test: persona={persona.name} page={page.url} questions={n}")

        questions = self._generate_questions(page, persona, n)

        results: List[EvaluationResult] = []
        outcomes: List[ItemOutcome] = []
        for i, question in enumerate(questions, start=1):
            try:
                answer = self._engine.answer(page.html_content, question, persona)
                score = self._engine.score(page.html_content, answer, question, persona)
                stored = self._results.insert(page.id, question, answer, score, persona_id=persona.id)
            except (UpstreamServiceError, ParseFailed) as e:
                logger.error(f"Question {i}/{len(questions)} failed: {e}")
                reason = "parse_failed" if isinstance(e, ParseFailed) else "upstream_error"
                outcomes.append(ItemOutcome.failed(question, reason))
                continue
            except sqlite3.Error as e:
                logger.error(f"Question {i}/{len(questions)} could not be stored: {e}")
                outcomes.append(ItemOutcome.failed(question, "store_error"))
                continue

            results.append(stored)
            outcomes.append(ItemOutcome.success(question))

        logger.info(f"Persona test scored {len(results)}/{len(questions)} questions")

        gaps = self._persona_gaps(page, persona, questions, results)
        return PersonaEvaluation(
            questions=questions,
            individual_results=results,
            aggregated=aggregate_scores(results, gaps),
            outcomes=outcomes,
        )

    def gap_analysis(self, page_id: str) -> PageGapReport:
        """Page versus playbook, no persona. Single-item flow: errors propagate."""
        page = self._load_page(page_id)
        logger.info(f"Gap analysis for {page.url}")
        return self._engine.page_gap_analysis(page.html_content)

    def _generate_questions(self, page: Page, persona: Persona, n: int) -> List[str]:
        try:
            questions = self._engine.generate_questions(page.html_content, persona, n)
        except GeoError as e:
            logger.warning(f"Question generation failed, using fallback question: {e}")
            return [FALLBACK_QUESTION.format(name=persona.name)]
        logger.info(f"Generated {len(questions)} questions")
        return questions

    def _persona_gaps(self, page: Page, persona: Persona, questions: List[str],
                      results: List[EvaluationResult]) -> PersonaGaps:
        evidence = [
            {
                "question": r.prompt,
                "llm_response": r.llm_response,
                "relevance_score": r.relevance_score,
                "comprehension_score": r.comprehension_score,
                "visibility_score": r.visibility_score,
                "recommendation_score": r.recommendation_score,
                "global_geo_score": r.global_score,
                "recommendations": r.recommendations,
            }
            for r in results
        ]
        try:
            return self._engine.persona_gap_analysis(
                page.html_content, persona, questions, evidence, mean_scores(results)
            )
        except GeoError as e:
            logger.error(f"Gap analysis failed, returning empty lists: {e}")
            return PersonaGaps()
