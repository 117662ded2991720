from dataclasses import dataclass, field
from typing import List, Optional, Dict, Any

from crawler.models import ItemOutcome, summarize_outcomes


@dataclass(frozen=True)
class Persona:
    """Synthetic user profile. Read-only while an evaluation runs."""
    id: str
    name: str
    description: str = ""
    goal: str = ""
    risk_profile: str = ""
    needs: str = ""
    typical_questions: List[str] = field(default_factory=list)
    created_at: Optional[str] = None

    def context(self) -> str:
        return (
            f"Persona: {self.name}\n"
            f"Description: {self.description}\n"
            f"Goals: {self.goal}\n"
            f"Risk Profile: {self.risk_profile}\n"
            f"Needs: {self.needs}\n"
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "goal": self.goal,
            "risk_profile": self.risk_profile,
            "needs": self.needs,
            "typical_questions": list(self.typical_questions),
            "created_at": self.created_at,
        }


@dataclass(frozen=True)
class EvaluationResult:
    """One scored question against one page. Created once, never mutated."""
    id: str
    page_id: str
    persona_id: Optional[str]
    prompt_type: Optional[str]
    prompt: str
    llm_response: str
    relevance_score: float
    comprehension_score: float
    visibility_score: float
    recommendation_score: float
    global_score: float
    recommendations: List[str]
    timestamp: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "pageId": self.page_id,
            "personaId": self.persona_id,
            "promptType": self.prompt_type,
            "question": self.prompt,
            "llmResponse": self.llm_response,
            "relevanceScore": self.relevance_score,
            "comprehensionScore": self.comprehension_score,
            "visibilityScore": self.visibility_score,
            "recommendationScore": self.recommendation_score,
            "globalScore": self.global_score,
            "recommendations": list(self.recommendations),
            "timestamp": self.timestamp,
        }


@dataclass(frozen=True)
class AggregatedInsight:
    """Per (persona, page) means plus qualitative lists. Derived on read, never stored."""
    avg_relevance: float = 0.0
    avg_comprehension: float = 0.0
    avg_visibility: float = 0.0
    avg_recommendation: float = 0.0
    avg_global: float = 0.0
    total_results: int = 0
    strengths: List[str] = field(default_factory=list)
    weaknesses: List[str] = field(default_factory=list)
    opportunities: List[str] = field(default_factory=list)
    recommendations: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "avgRelevance": self.avg_relevance,
            "avgComprehension": self.avg_comprehension,
            "avgVisibility": self.avg_visibility,
            "avgRecommendation": self.avg_recommendation,
            "avgGeoScore": self.avg_global,
            "totalResults": self.total_results,
            "strengths": list(self.strengths),
            "weaknesses": list(self.weaknesses),
            "opportunities": list(self.opportunities),
            "recommendations": list(self.recommendations),
        }


@dataclass
class PersonaEvaluation:
    questions: List[str]
    individual_results: List[EvaluationResult]
    aggregated: AggregatedInsight
    outcomes: List[ItemOutcome] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "questions": list(self.questions),
            "individualResults": [r.to_dict() for r in self.individual_results],
            "aggregated": self.aggregated.to_dict(),
            "summary": summarize_outcomes(self.outcomes),
            "outcomes": [o.to_dict() for o in self.outcomes],
        }
