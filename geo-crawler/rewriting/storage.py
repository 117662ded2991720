# #Rewriting Storage
# Append-only stores for rewrites, indexability scores and generated pages.
# "Latest" is always a timestamp query, never insertion order.

import json
import uuid
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from crawler.models import to_timestamp, utcnow
from crawler.storage.db import Database
from engine.models import RewriteDraft, IndexabilityReport, PageDraft
from rewriting.models import Rewrite, IndexabilityScore, GeneratedPage


class RewriteStore(ABC):

    @abstractmethod
    def insert(self, page_id: str, original_html: Optional[str], draft: RewriteDraft,
               persona_id: Optional[str] = None) -> Rewrite:
        pass

    @abstractmethod
    def list_for_page(self, page_id: str) -> List[Rewrite]:
        pass


class IndexabilityStore(ABC):

    @abstractmethod
    def insert(self, page_id: str, report: IndexabilityReport, created_at: Optional[str] = None) -> IndexabilityScore:
        pass

    @abstractmethod
    def latest(self, page_id: str) -> Optional[IndexabilityScore]:
        pass

    @abstractmethod
    def latest_per_page(self) -> List[IndexabilityScore]:
        pass


class GeneratedPageStore(ABC):

    @abstractmethod
    def insert(self, draft: PageDraft, metadata: Dict[str, Any], persona_id: Optional[str] = None) -> GeneratedPage:
        pass

    @abstractmethod
    def get(self, page_id: str) -> Optional[GeneratedPage]:
        pass


def _row_to_rewrite(row) -> Rewrite:
    return Rewrite(
        id=row["id"],
        page_id=row["page_id"],
        persona_id=row["persona_id"],
        original_html=row["original_html"],
        rewritten_html=row["rewritten_html"],
        outline=row["outline"],
        summary=row["summary"],
        rationale=row["rationale"],
        persona_rationale=row["persona_rationale"],
        timestamp=row["timestamp"],
    )


def _row_to_score(row) -> IndexabilityScore:
    return IndexabilityScore(
        id=row["id"],
        page_id=row["page_id"],
        html_indexability_score=row["html_indexability_score"],
        structure_clarity_score=row["structure_clarity_score"],
        entity_clarity_score=row["entity_clarity_score"],
        content_scannability_score=row["content_scannability_score"],
        issues=json.loads(row["issues"]),
        suggestions=json.loads(row["suggestions"]),
        created_at=row["created_at"],
    )


def _row_to_generated(row) -> GeneratedPage:
    return GeneratedPage(
        id=row["id"],
        persona_id=row["persona_id"],
        html_content=row["html_content"],
        outline=row["outline"],
        rationale=row["rationale"],
        persona_rationale=row["persona_rationale"],
        metadata=json.loads(row["metadata"]),
        created_at=row["created_at"],
    )


class SQLiteRewriteStore(RewriteStore):

    def __init__(self, db: Database):
        self.db = db

    def insert(self, page_id: str, original_html: Optional[str], draft: RewriteDraft,
               persona_id: Optional[str] = None) -> Rewrite:
        rewrite = Rewrite(
            id=str(uuid.uuid4()),
            page_id=page_id,
            persona_id=persona_id,
            original_html=original_html,
            rewritten_html=draft.html,
            outline=draft.outline,
            summary=draft.summary,
            rationale=draft.rationale,
            persona_rationale=draft.persona_rationale,
            timestamp=to_timestamp(utcnow()),
        )
        with self.db.connect() as conn:
            conn.execute("""
                INSERT INTO rewrites (
                    id, page_id, persona_id, original_html, rewritten_html,
                    outline, summary, rationale, persona_rationale, timestamp
                )
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """, (
                rewrite.id, rewrite.page_id, rewrite.persona_id, rewrite.original_html,
                rewrite.rewritten_html, rewrite.outline, rewrite.summary, rewrite.rationale,
                rewrite.persona_rationale, rewrite.timestamp,
            ))
        return rewrite

    def list_for_page(self, page_id: str) -> List[Rewrite]:
        with self.db.connect() as conn:
            rows = conn.execute(
                "SELECT * FROM rewrites WHERE page_id = ? ORDER BY timestamp DESC", (page_id,)
            ).fetchall()
        return [_row_to_rewrite(r) for r in rows]


class SQLiteIndexabilityStore(IndexabilityStore):

    def __init__(self, db: Database):
        self.db = db

    def insert(self, page_id: str, report: IndexabilityReport, created_at: Optional[str] = None) -> IndexabilityScore:
        score = IndexabilityScore(
            id=str(uuid.uuid4()),
            page_id=page_id,
            html_indexability_score=report.html_indexability,
            structure_clarity_score=report.structure_clarity,
            entity_clarity_score=report.entity_clarity,
            content_scannability_score=report.content_scannability,
            issues=list(report.issues),
            suggestions=list(report.suggestions),
            created_at=created_at or to_timestamp(utcnow()),
        )
        with self.db.connect() as conn:
            conn.execute("""
                INSERT INTO indexability_results (
                    id, page_id, html_indexability_score, structure_clarity_score,
                    entity_clarity_score, content_scannability_score, issues, suggestions, created_at
                )
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
            """, (
                score.id, score.page_id, score.html_indexability_score, score.structure_clarity_score,
                score.entity_clarity_score, score.content_scannability_score,
                json.dumps(score.issues), json.dumps(score.suggestions), score.created_at,
            ))
        return score

    def latest(self, page_id: str) -> Optional[IndexabilityScore]:
        with self.db.connect() as conn:
            row = conn.execute("""
                SELECT * FROM indexability_results
                WHERE page_id = ?
                ORDER BY created_at DESC, id DESC
                LIMIT 1
            """, (page_id,)).fetchone()
        return _row_to_score(row) if row else None

    def latest_per_page(self) -> List[IndexabilityScore]:
        with self.db.connect() as conn:
            rows = conn.execute("""
                SELECT * FROM (
                    SELECT *, ROW_NUMBER() OVER (
                        PARTITION BY page_id ORDER BY created_at DESC, id DESC
                    ) AS rn
                    FROM indexability_results
                )
                WHERE rn = 1
                ORDER BY page_id ASC
            """).fetchall()
        return [_row_to_score(r) for r in rows]


class SQLiteGeneratedPageStore(GeneratedPageStore):

    def __init__(self, db: Database):
        self.db = db

    def insert(self, draft: PageDraft, metadata: Dict[str, Any], persona_id: Optional[str] = None) -> GeneratedPage:
        page = GeneratedPage(
            id=str(uuid.uuid4()),
            persona_id=persona_id,
            html_content=draft.html,
            outline=draft.outline,
            rationale=draft.rationale,
            persona_rationale=draft.persona_rationale,
            metadata=dict(metadata),
            created_at=to_timestamp(utcnow()),
        )
        with self.db.connect() as conn:
            conn.execute("""
                INSERT INTO generated_pages (
                    id, persona_id, html_content, outline, rationale, persona_rationale, metadata, created_at
                )
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            """, (
                page.id, page.persona_id, page.html_content, page.outline, page.rationale,
                page.persona_rationale, json.dumps(page.metadata), page.created_at,
            ))
        return page

    def get(self, page_id: str) -> Optional[GeneratedPage]:
        with self.db.connect() as conn:
            row = conn.execute("SELECT * FROM generated_pages WHERE id = ?", (page_id,)).fetchone()
        return _row_to_generated(row) if row else None
