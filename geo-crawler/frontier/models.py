from dataclasses import dataclass, field
from typing import List, Optional, Dict, Any

from crawler.models import ItemOutcome, summarize_outcomes


@dataclass(frozen=True)
class FrontierEntry:
    """
    Data model for one queued URL.
    Transient: lives only for the duration of one crawl run, never persisted.
    """
    url: str
    depth: int
    parent_url: Optional[str] = None


@dataclass
class TreeNode:
    url: str
    title: str
    depth: int
    children: List["TreeNode"] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "url": self.url,
            "title": self.title,
            "depth": self.depth,
            "children": [child.to_dict() for child in self.children],
        }


@dataclass
class CrawlResult:
    """Output of Frontier.crawl: counters, the discovery forest and per-URL outcomes."""
    pages_discovered: int = 0
    pages_updated: int = 0
    pages_skipped: int = 0
    tree: List[TreeNode] = field(default_factory=list)
    outcomes: List[ItemOutcome] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "pagesDiscovered": self.pages_discovered,
            "pagesUpdated": self.pages_updated,
            "pagesSkipped": self.pages_skipped,
            "tree": [node.to_dict() for node in self.tree],
            "summary": summarize_outcomes(self.outcomes),
            "outcomes": [o.to_dict() for o in self.outcomes],
        }
