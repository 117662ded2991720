"""
Database connection and initialization.
Creates every table used by the crawler, the playbook index and the
evaluation/rewrite stages. Each write is committed independently.
"""

import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional

SCHEMA = """
CREATE TABLE IF NOT EXISTS pages (
    id TEXT PRIMARY KEY,
    url TEXT UNIQUE NOT NULL,
    domain TEXT NOT NULL,
    title TEXT,
    html_content TEXT,
    crawl_status TEXT NOT NULL,     -- 'pending', 'fetched' or 'error'
    depth INTEGER NOT NULL DEFAULT 0,
    parent_url TEXT,                -- null for seeds and manual fetches
    fetch_timestamp TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_pages_status_ts ON pages (crawl_status, fetch_timestamp);

CREATE TABLE IF NOT EXISTS personas (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL,
    description TEXT NOT NULL DEFAULT '',
    goal TEXT NOT NULL DEFAULT '',
    risk_profile TEXT NOT NULL DEFAULT '',
    needs TEXT NOT NULL DEFAULT '',
    typical_questions TEXT,         -- JSON list
    created_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS evaluation_results (
    id TEXT PRIMARY KEY,
    page_id TEXT NOT NULL REFERENCES pages (id),
    persona_id TEXT REFERENCES personas (id),
    prompt_type TEXT,
    prompt TEXT NOT NULL,
    llm_response TEXT NOT NULL,
    relevance_score REAL NOT NULL,
    comprehension_score REAL NOT NULL,
    visibility_score REAL NOT NULL,
    recommendation_score REAL NOT NULL,
    global_geo_score REAL NOT NULL,
    recommendations TEXT NOT NULL,  -- JSON list
    timestamp TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_results_group ON evaluation_results (persona_id, page_id);

CREATE TABLE IF NOT EXISTS playbook_chunks (
    id TEXT PRIMARY KEY,
    section TEXT NOT NULL,
    chunk TEXT NOT NULL,
    embedding TEXT NOT NULL,        -- JSON list of floats
    created_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS rewrites (
    id TEXT PRIMARY KEY,
    page_id TEXT NOT NULL REFERENCES pages (id),
    persona_id TEXT REFERENCES personas (id),
    original_html TEXT,
    rewritten_html TEXT NOT NULL,
    outline TEXT NOT NULL,
    summary TEXT NOT NULL,
    rationale TEXT NOT NULL,
    persona_rationale TEXT,
    timestamp TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS indexability_results (
    id TEXT PRIMARY KEY,
    page_id TEXT NOT NULL REFERENCES pages (id),
    html_indexability_score REAL NOT NULL,
    structure_clarity_score REAL NOT NULL,
    entity_clarity_score REAL NOT NULL,
    content_scannability_score REAL NOT NULL,
    issues TEXT NOT NULL,           -- JSON list
    suggestions TEXT NOT NULL,      -- JSON list
    created_at TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_indexability_page ON indexability_results (page_id, created_at);

CREATE TABLE IF NOT EXISTS generated_pages (
    id TEXT PRIMARY KEY,
    persona_id TEXT REFERENCES personas (id),
    html_content TEXT NOT NULL,
    outline TEXT NOT NULL,
    rationale TEXT NOT NULL,
    persona_rationale TEXT,
    metadata TEXT NOT NULL,         -- JSON object
    created_at TEXT NOT NULL
);
"""


class Database:
    """
    SQLite connection factory.
    A file path opens a fresh connection per operation; ':memory:' keeps one
    shared connection so the schema survives between operations.
    """

    def __init__(self, path: str):
        self.path = str(path)
        self._shared: Optional[sqlite3.Connection] = None
        if self.path == ":memory:":
            self._shared = self._open()
        else:
            Path(self.path).parent.mkdir(parents=True, exist_ok=True)

    def _open(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.path)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON;")
        return conn

    @contextmanager
    def connect(self) -> Iterator[sqlite3.Connection]:
        """Yields a connection; commits on success, rolls back on error."""
        conn = self._shared or self._open()
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            if conn is not self._shared:
                conn.close()

    def initialize(self) -> None:
        """Creates missing tables. Existing data is kept."""
        with self.connect() as conn:
            conn.executescript(SCHEMA)

    def close(self) -> None:
        if self._shared is not None:
            self._shared.close()
            self._shared = None
