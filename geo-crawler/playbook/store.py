# #Playbook Chunk Store
# Persists embedded playbook chunks and answers similarity queries.
# Vectors are kept as JSON in SQLite and scored in memory with numpy.

import json
import uuid
from abc import ABC, abstractmethod
from typing import List

import numpy as np

from crawler.models import to_timestamp, utcnow
from crawler.storage.db import Database
from playbook.models import PlaybookChunk, ChunkMatch


class ChunkStore(ABC):

    @abstractmethod
    def insert(self, section: str, chunk: str, embedding: List[float]) -> PlaybookChunk:
        pass

    @abstractmethod
    def search(self, embedding: List[float], threshold: float = 0.5, top_k: int = 5) -> List[ChunkMatch]:
        """Chunks with cosine similarity >= threshold, best first, at most top_k."""
        pass

    @abstractmethod
    def count(self) -> int:
        pass


def cosine_similarities(query: np.ndarray, matrix: np.ndarray) -> np.ndarray:
    norms = np.linalg.norm(matrix, axis=1) * np.linalg.norm(query)
    return (matrix @ query) / (norms + 1e-9)


class SQLiteChunkStore(ChunkStore):

    def __init__(self, db: Database):
        self.db = db

    def insert(self, section: str, chunk: str, embedding: List[float]) -> PlaybookChunk:
        record = PlaybookChunk(
            id=str(uuid.uuid4()),
            section=section,
            chunk=chunk,
            embedding=list(embedding),
            created_at=to_timestamp(utcnow()),
        )
        with self.db.connect() as conn:
            conn.execute("""
                INSERT INTO playbook_chunks (id, section, chunk, embedding, created_at)
                VALUES (?, ?, ?, ?, ?)
            """, (record.id, record.section, record.chunk, json.dumps(record.embedding), record.created_at))
        return record

    def search(self, embedding: List[float], threshold: float = 0.5, top_k: int = 5) -> List[ChunkMatch]:
        if top_k <= 0:
            return []
        with self.db.connect() as conn:
            rows = conn.execute("SELECT id, section, chunk, embedding FROM playbook_chunks").fetchall()

        query = np.asarray(embedding, dtype=float)
        candidates = [r for r in rows if len(json.loads(r["embedding"])) == query.shape[0]]
        if not candidates:
            return []

        matrix = np.asarray([json.loads(r["embedding"]) for r in candidates], dtype=float)
        scores = cosine_similarities(query, matrix)

        ranked = np.argsort(-scores, kind="stable")
        matches = []
        for idx in ranked:
            if scores[idx] < threshold or len(matches) >= top_k:
                break
            row = candidates[idx]
            matches.append(ChunkMatch(
                id=row["id"],
                section=row["section"],
                chunk=row["chunk"],
                similarity=float(scores[idx]),
            ))
        return matches

    def count(self) -> int:
        with self.db.connect() as conn:
            return conn.execute("SELECT COUNT(*) FROM playbook_chunks").fetchone()[0]
