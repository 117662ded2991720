# #Page Store
# Data access layer for the page corpus (`pages`).

# Responsibilities:
# - upsert crawled/fetched pages keyed by normalized URL
# - overwrite content during refresh
# - query existing and stale pages

# This module isolates raw SQL from crawler logic.

import uuid
from abc import ABC, abstractmethod
from typing import List, Optional, Tuple

from crawler.models import Page, CrawlStatus
from crawler.storage.db import Database


class PageStore(ABC):
    """
    Abstract interface for the page corpus.
    The unique key on url is the only concurrency guard: last writer wins.
    """

    @abstractmethod
    def get(self, page_id: str) -> Optional[Page]:
        pass

    @abstractmethod
    def get_by_url(self, url: str) -> Optional[Page]:
        pass

    @abstractmethod
    def upsert(self, page: Page) -> Tuple[Page, bool]:
        """
        Insert the page, or overwrite the existing row with the same url.
        Returns (stored page, created) where created is False on conflict.
        """
        pass

    @abstractmethod
    def update_content(self, page_id: str, title: str, html_content: str, fetch_timestamp: str) -> None:
        """Overwrite title/HTML/timestamp and set status=fetched."""
        pass

    @abstractmethod
    def mark_error(self, page_id: str, fetch_timestamp: str) -> None:
        """Set status=error and stamp the timestamp; content is left as-is."""
        pass

    @abstractmethod
    def stale_pages(self, cutoff: str) -> List[Page]:
        """Fetched pages whose fetch_timestamp is strictly older than cutoff."""
        pass

    @abstractmethod
    def list_pages(self) -> List[Page]:
        pass


def _row_to_page(row) -> Page:
    return Page(
        id=row["id"],
        url=row["url"],
        domain=row["domain"],
        title=row["title"],
        html_content=row["html_content"],
        crawl_status=CrawlStatus(row["crawl_status"]),
        depth=row["depth"],
        parent_url=row["parent_url"],
        fetch_timestamp=row["fetch_timestamp"],
    )


def new_page_id() -> str:
    return str(uuid.uuid4())


class SQLitePageStore(PageStore):

    def __init__(self, db: Database):
        self.db = db

    def get(self, page_id: str) -> Optional[Page]:
        with self.db.connect() as conn:
            row = conn.execute("SELECT * FROM pages WHERE id = ?", (page_id,)).fetchone()
        return _row_to_page(row) if row else None

    def get_by_url(self, url: str) -> Optional[Page]:
        with self.db.connect() as conn:
            row = conn.execute("SELECT * FROM pages WHERE url = ? LIMIT 1", (url,)).fetchone()
        return _row_to_page(row) if row else None

    def upsert(self, page: Page) -> Tuple[Page, bool]:
        with self.db.connect() as conn:
            row = conn.execute("""
                INSERT INTO pages (id, url, domain, title, html_content, crawl_status, depth, parent_url, fetch_timestamp)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(url) DO UPDATE SET
                    domain=excluded.domain,
                    title=excluded.title,
                    html_content=excluded.html_content,
                    crawl_status=excluded.crawl_status,
                    depth=excluded.depth,
                    parent_url=excluded.parent_url,
                    fetch_timestamp=excluded.fetch_timestamp
                RETURNING *;
            """, (
                page.id, page.url, page.domain, page.title, page.html_content,
                page.crawl_status.value, page.depth, page.parent_url, page.fetch_timestamp,
            )).fetchall()[0]
        stored = _row_to_page(row)
        # On conflict the existing id survives, so a different id means "updated"
        return stored, stored.id == page.id

    def update_content(self, page_id: str, title: str, html_content: str, fetch_timestamp: str) -> None:
        with self.db.connect() as conn:
            conn.execute("""
                UPDATE pages
                SET title = ?, html_content = ?, crawl_status = ?, fetch_timestamp = ?
                WHERE id = ?
            """, (title, html_content, CrawlStatus.FETCHED.value, fetch_timestamp, page_id))

    def mark_error(self, page_id: str, fetch_timestamp: str) -> None:
        with self.db.connect() as conn:
            conn.execute("""
                UPDATE pages SET crawl_status = ?, fetch_timestamp = ? WHERE id = ?
            """, (CrawlStatus.ERROR.value, fetch_timestamp, page_id))

    def stale_pages(self, cutoff: str) -> List[Page]:
        with self.db.connect() as conn:
            rows = conn.execute("""
                SELECT * FROM pages
                WHERE crawl_status = ? AND fetch_timestamp < ?
                ORDER BY fetch_timestamp ASC
            """, (CrawlStatus.FETCHED.value, cutoff)).fetchall()
        return [_row_to_page(r) for r in rows]

    def list_pages(self) -> List[Page]:
        with self.db.connect() as conn:
            rows = conn.execute("SELECT * FROM pages ORDER BY depth ASC, url ASC").fetchall()
        return [_row_to_page(r) for r in rows]
