import sqlite3
from typing import List

from crawler.core import get_logger
from crawler.errors import GeoError
from playbook.chunker import chunk_text
from playbook.embedder import EmbeddingClient
from playbook.models import ChunkMatch, IngestReport
from playbook.store import ChunkStore

logger = get_logger("playbook")


class KnowledgeIndex:
    """
    Retrieval index over the GEO playbook.

    Ingestion: chunk -> embed each chunk -> store. A chunk whose embedding or
    insert fails is skipped; the rest of the batch continues.
    Query: embed -> threshold-gated, top-K cosine search. An empty result is
    a valid answer.
    """

    def __init__(self, store: ChunkStore, embedder: EmbeddingClient, chunk_size: int = 1500,
                 threshold: float = 0.5, top_k: int = 5):
        self._store = store
        self._embedder = embedder
        self.chunk_size = chunk_size
        self.threshold = threshold
        self.top_k = top_k

    def ingest(self, text: str, section: str = "general") -> IngestReport:
        chunks = chunk_text(text, self.chunk_size)
        report = IngestReport(chunks_processed=len(chunks))
        logger.info(f"Ingesting {len(chunks)} chunks into section '{section}'")

        for i, chunk in enumerate(chunks):
            try:
                embedding = self._embedder.embed(chunk)
                stored = self._store.insert(section, chunk, embedding)
            except (GeoError, sqlite3.Error) as e:
                logger.error(f"Skipping chunk {i} of section '{section}': {e}")
                continue
            report.chunks_inserted += 1
            report.chunk_ids.append(stored.id)

        logger.info(f"Ingest complete: processed={report.chunks_processed} inserted={report.chunks_inserted}")
        return report

    def query(self, text: str) -> List[ChunkMatch]:
        if not text or not text.strip():
            return []
        embedding = self._embedder.embed(text)
        matches = self._store.search(embedding, self.threshold, self.top_k)
        logger.debug(f"Retrieved {len(matches)} playbook chunks")
        return matches

    def context_for(self, text: str) -> str:
        """Matched chunk texts joined for prompt injection; empty string when nothing matched."""
        return "\n\n".join(m.chunk for m in self.query(text))
