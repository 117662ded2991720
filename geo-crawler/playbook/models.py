from dataclasses import dataclass, field
from typing import List, Dict, Any


@dataclass(frozen=True)
class PlaybookChunk:
    """A fixed-size window of the playbook with its embedding. Immutable once stored."""
    id: str
    section: str
    chunk: str
    embedding: List[float]
    created_at: str


@dataclass(frozen=True)
class ChunkMatch:
    id: str
    section: str
    chunk: str
    similarity: float

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "section": self.section, "chunk": self.chunk, "similarity": self.similarity}


@dataclass
class IngestReport:
    chunks_processed: int = 0
    chunks_inserted: int = 0
    chunk_ids: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "chunksProcessed": self.chunks_processed,
            "chunksInserted": self.chunks_inserted,
            "chunkIds": list(self.chunk_ids),
        }
