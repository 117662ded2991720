from dataclasses import dataclass, field, asdict
from typing import List, Optional, Dict, Any


@dataclass(frozen=True)
class Rewrite:
    """One rewrite invocation. History is additive: a new row every time."""
    id: str
    page_id: str
    persona_id: Optional[str]
    original_html: Optional[str]
    rewritten_html: str
    outline: str
    summary: str
    rationale: str
    persona_rationale: Optional[str]
    timestamp: str

    def to_dict(self, include_original: bool = False) -> Dict[str, Any]:
        data = {
            "id": self.id,
            "pageId": self.page_id,
            "personaId": self.persona_id,
            "rewrittenHtml": self.rewritten_html,
            "outline": self.outline,
            "summary": self.summary,
            "rationale": self.rationale,
            "personaRationale": self.persona_rationale,
            "timestamp": self.timestamp,
        }
        if include_original:
            data["originalHtml"] = self.original_html
        return data


@dataclass(frozen=True)
class IndexabilityScore:
    id: str
    page_id: str
    html_indexability_score: float
    structure_clarity_score: float
    entity_clarity_score: float
    content_scannability_score: float
    issues: List[str]
    suggestions: List[str]
    created_at: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class PageBrief:
    """Input for creating a page from scratch."""
    title: str = "New BNP Paribas Page"
    goal: str = "Provide clear information for clients"
    target_audience: str = "General wealth management clients"
    tone: str = "Professional, clear, and confident"
    required_sections: str = ""
    key_messages: str = ""
    faqs: str = ""
    additional_context: str = ""
    inspiration_urls: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class GeneratedPage:
    id: str
    persona_id: Optional[str]
    html_content: str
    outline: str
    rationale: str
    persona_rationale: Optional[str]
    metadata: Dict[str, Any]
    created_at: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
