from dataclasses import dataclass, field
from typing import List, Optional, Dict, Any


@dataclass(frozen=True)
class ScoreCard:
    """
    Judged scores for one answer, each in [0, 1].
    global_score is a holistic judgement of its own, not a function of the other four.
    """
    relevance: float
    comprehension: float
    visibility: float
    recommendation: float
    global_score: float
    recommendations: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class PersonaGaps:
    strengths: List[str] = field(default_factory=list)
    weaknesses: List[str] = field(default_factory=list)
    opportunities: List[str] = field(default_factory=list)
    recommendations: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class PageGapReport:
    gaps: List[str] = field(default_factory=list)
    recommendations: List[str] = field(default_factory=list)
    improvement_opportunities: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "gaps": list(self.gaps),
            "recommendations": list(self.recommendations),
            "improvementOpportunities": list(self.improvement_opportunities),
        }


@dataclass(frozen=True)
class RewriteDraft:
    html: str
    outline: str
    summary: str
    rationale: str
    persona_rationale: Optional[str] = None


@dataclass(frozen=True)
class IndexabilityReport:
    html_indexability: float
    structure_clarity: float
    entity_clarity: float
    content_scannability: float
    issues: List[str] = field(default_factory=list)
    suggestions: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class PageDraft:
    html: str
    outline: str
    rationale: str
    persona_rationale: Optional[str] = None
    notes: Optional[str] = None
