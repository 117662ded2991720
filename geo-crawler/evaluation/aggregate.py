from typing import Dict, List, Optional

from engine.models import PersonaGaps
from evaluation.models import AggregatedInsight, EvaluationResult
from evaluation.storage import ResultStore


def mean_scores(results: List[EvaluationResult]) -> Dict[str, float]:
    """Arithmetic means per dimension. The denominator is floored at 1, so no results gives zeros."""
    total = max(len(results), 1)
    return {
        "relevance": sum(r.relevance_score for r in results) / total,
        "comprehension": sum(r.comprehension_score for r in results) / total,
        "visibility": sum(r.visibility_score for r in results) / total,
        "recommendation": sum(r.recommendation_score for r in results) / total,
        "global": sum(r.global_score for r in results) / total,
    }


def unique_recommendations(results: List[EvaluationResult]) -> List[str]:
    seen = []
    for result in results:
        for item in result.recommendations:
            if item not in seen:
                seen.append(item)
    return seen


def aggregate_scores(results: List[EvaluationResult], gaps: Optional[PersonaGaps] = None) -> AggregatedInsight:
    means = mean_scores(results)
    gaps = gaps or PersonaGaps()
    return AggregatedInsight(
        avg_relevance=means["relevance"],
        avg_comprehension=means["comprehension"],
        avg_visibility=means["visibility"],
        avg_recommendation=means["recommendation"],
        avg_global=means["global"],
        total_results=len(results),
        strengths=list(gaps.strengths),
        weaknesses=list(gaps.weaknesses),
        opportunities=list(gaps.opportunities),
        recommendations=list(gaps.recommendations),
    )


class InsightReader:
    """Recomputes the (persona, page) insight from stored rows on every read; nothing is cached."""

    def __init__(self, results: ResultStore):
        self._results = results

    def read(self, persona_id: str, page_id: str) -> AggregatedInsight:
        rows = self._results.list_for(page_id, persona_id)
        # Stored rows carry per-question recommendations only; the other qualitative lists need a gap-analysis call
        return aggregate_scores(rows, PersonaGaps(recommendations=unique_recommendations(rows)))
