# #Evaluation Storage
# Data access for personas and evaluation results.

# Responsibilities:
# - persist and read personas
# - append one evaluation row per scored question (rows are never updated)
# - group reads per (persona, page) and latest-per-page reporting

import json
import uuid
from abc import ABC, abstractmethod
from typing import List, Optional

from crawler.models import to_timestamp, utcnow
from crawler.storage.db import Database
from engine.models import ScoreCard
from evaluation.models import Persona, EvaluationResult


class PersonaStore(ABC):

    @abstractmethod
    def save(self, persona: Persona) -> Persona:
        pass

    @abstractmethod
    def get(self, persona_id: str) -> Optional[Persona]:
        pass

    @abstractmethod
    def list(self) -> List[Persona]:
        pass


class ResultStore(ABC):

    @abstractmethod
    def insert(self, page_id: str, prompt: str, llm_response: str, score: ScoreCard,
               persona_id: Optional[str] = None, prompt_type: Optional[str] = None,
               timestamp: Optional[str] = None) -> EvaluationResult:
        pass

    @abstractmethod
    def list_for(self, page_id: str, persona_id: Optional[str] = None) -> List[EvaluationResult]:
        """Rows for one page; with persona_id, only that persona's rows. Oldest first."""
        pass

    @abstractmethod
    def latest_per_page(self) -> List[EvaluationResult]:
        """The most recent row of every evaluated page, by timestamp."""
        pass


def _row_to_persona(row) -> Persona:
    return Persona(
        id=row["id"],
        name=row["name"],
        description=row["description"],
        goal=row["goal"],
        risk_profile=row["risk_profile"],
        needs=row["needs"],
        typical_questions=json.loads(row["typical_questions"]) if row["typical_questions"] else [],
        created_at=row["created_at"],
    )


def _row_to_result(row) -> EvaluationResult:
    return EvaluationResult(
        id=row["id"],
        page_id=row["page_id"],
        persona_id=row["persona_id"],
        prompt_type=row["prompt_type"],
        prompt=row["prompt"],
        llm_response=row["llm_response"],
        relevance_score=row["relevance_score"],
        comprehension_score=row["comprehension_score"],
        visibility_score=row["visibility_score"],
        recommendation_score=row["recommendation_score"],
        global_score=row["global_geo_score"],
        recommendations=json.loads(row["recommendations"]),
        timestamp=row["timestamp"],
    )


class SQLitePersonaStore(PersonaStore):

    def __init__(self, db: Database):
        self.db = db

    def save(self, persona: Persona) -> Persona:
        created_at = persona.created_at or to_timestamp(utcnow())
        with self.db.connect() as conn:
            row = conn.execute("""
                INSERT INTO personas (id, name, description, goal, risk_profile, needs, typical_questions, created_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    name=excluded.name,
                    description=excluded.description,
                    goal=excluded.goal,
                    risk_profile=excluded.risk_profile,
                    needs=excluded.needs,
                    typical_questions=excluded.typical_questions
                RETURNING *;
            """, (
                persona.id or str(uuid.uuid4()), persona.name, persona.description, persona.goal,
                persona.risk_profile, persona.needs, json.dumps(list(persona.typical_questions)), created_at,
            )).fetchall()[0]
        return _row_to_persona(row)

    def get(self, persona_id: str) -> Optional[Persona]:
        with self.db.connect() as conn:
            row = conn.execute("SELECT * FROM personas WHERE id = ?", (persona_id,)).fetchone()
        return _row_to_persona(row) if row else None

    def list(self) -> List[Persona]:
        with self.db.connect() as conn:
            rows = conn.execute("SELECT * FROM personas ORDER BY name ASC").fetchall()
        return [_row_to_persona(r) for r in rows]


class SQLiteResultStore(ResultStore):

    def __init__(self, db: Database):
        self.db = db

    def insert(self, page_id: str, prompt: str, llm_response: str, score: ScoreCard,
               persona_id: Optional[str] = None, prompt_type: Optional[str] = None,
               timestamp: Optional[str] = None) -> EvaluationResult:
        result = EvaluationResult(
            id=str(uuid.uuid4()),
            page_id=page_id,
            persona_id=persona_id,
            prompt_type=prompt_type,
            prompt=prompt,
            llm_response=llm_response,
            relevance_score=score.relevance,
            comprehension_score=score.comprehension,
            visibility_score=score.visibility,
            recommendation_score=score.recommendation,
            global_score=score.global_score,
            recommendations=list(score.recommendations),
            timestamp=timestamp or to_timestamp(utcnow()),
        )
        with self.db.connect() as conn:
            conn.execute("""
                INSERT INTO evaluation_results (
                    id, page_id, persona_id, prompt_type, prompt, llm_response,
                    relevance_score, comprehension_score, visibility_score, recommendation_score,
                    global_geo_score, recommendations, timestamp
                )
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """, (
                result.id, result.page_id, result.persona_id, result.prompt_type, result.prompt,
                result.llm_response, result.relevance_score, result.comprehension_score,
                result.visibility_score, result.recommendation_score, result.global_score,
                json.dumps(result.recommendations), result.timestamp,
            ))
        return result

    def list_for(self, page_id: str, persona_id: Optional[str] = None) -> List[EvaluationResult]:
        query = "SELECT * FROM evaluation_results WHERE page_id = ?"
        params = [page_id]
        if persona_id is not None:
            query += " AND persona_id = ?"
            params.append(persona_id)
        query += " ORDER BY timestamp ASC"
        with self.db.connect() as conn:
            rows = conn.execute(query, params).fetchall()
        return [_row_to_result(r) for r in rows]

    def latest_per_page(self) -> List[EvaluationResult]:
        with self.db.connect() as conn:
            rows = conn.execute("""
                SELECT * FROM (
                    SELECT *, ROW_NUMBER() OVER (
                        PARTITION BY page_id ORDER BY timestamp DESC, id DESC
                    ) AS rn
                    FROM evaluation_results
                )
                WHERE rn = 1
                ORDER BY page_id ASC
            """).fetchall()
        return [_row_to_result(r) for r in rows]
