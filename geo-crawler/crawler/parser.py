"""
HTML extraction for the crawler and the page creator.
Exposed as an interface so orchestration can be tested with fixtures
independently of parsing correctness.
"""

from abc import ABC, abstractmethod
from typing import Dict, List

from bs4 import BeautifulSoup, SoupStrainer

UNTITLED = "Untitled"


class HTMLExtractor(ABC):

    @abstractmethod
    def extract_title(self, html: str) -> str:
        """Text of the first <title>, or 'Untitled'."""
        pass

    @abstractmethod
    def extract_links(self, html: str) -> List[str]:
        """Raw href values of every <a href>, in document order."""
        pass

    @abstractmethod
    def extract_headings(self, html: str, limit: int = 5) -> Dict[str, object]:
        """{'h1': str, 'h2s': [str], 'h3s': [str]} outline of the page."""
        pass


class SoupExtractor(HTMLExtractor):
    """
    BeautifulSoup implementation. Each method parses only the tags it needs
    (SoupStrainer), so large pages are never fully materialized.
    """

    def __init__(self, features: str = "html.parser"):
        self.features = features

    def extract_title(self, html: str) -> str:
        if not html:
            return UNTITLED
        soup = BeautifulSoup(html, self.features, parse_only=SoupStrainer("title"))
        tag = soup.find("title")
        title = tag.get_text(" ", strip=True) if tag else ""
        return title or UNTITLED

    def extract_links(self, html: str) -> List[str]:
        if not html:
            return []
        soup = BeautifulSoup(html, self.features, parse_only=SoupStrainer("a"))
        return [a["href"] for a in soup.find_all("a", href=True)]

    def extract_headings(self, html: str, limit: int = 5) -> Dict[str, object]:
        if not html:
            return {"h1": "", "h2s": [], "h3s": []}
        soup = BeautifulSoup(html, self.features, parse_only=SoupStrainer(["h1", "h2", "h3"]))
        h1 = soup.find("h1")
        return {
            "h1": h1.get_text(" ", strip=True) if h1 else "",
            "h2s": [h.get_text(" ", strip=True) for h in soup.find_all("h2", limit=limit)],
            "h3s": [h.get_text(" ", strip=True) for h in soup.find_all("h3", limit=limit)],
        }
