# Responsibilities:
# - maintain crawl order (BFS)
# - prevent duplicate crawling within a single run
# - enforce maximum crawl depth
from collections import deque
from typing import Optional

from frontier.models import FrontierEntry


class CrawlQueue:
    def __init__(self, max_depth: int):
        self.queue = deque()      # FIFO queue for BFS crawling
        self.visited = set()      # normalized URLs already dequeued in this run
        self.queued = set()       # normalized URLs currently enqueued
        self.max_depth = max_depth

    def enqueue(self, url: str, depth: int, parent_url: Optional[str] = None) -> bool:
        # Rules:
        # - depth must not exceed max_depth
        # - URL must not have been visited already or already queued
        if depth > self.max_depth:
            return False
        if url in self.visited or url in self.queued:
            return False

        self.queue.append(FrontierEntry(url, depth, parent_url))
        self.queued.add(url)
        return True

    def dequeue(self) -> Optional[FrontierEntry]:
        # Get the next entry. The caller decides whether it is visited.
        if not self.queue:
            return None
        entry = self.queue.popleft()
        self.queued.discard(entry.url)
        return entry

    def mark_visited(self, url: str) -> None:
        self.visited.add(url)

    def is_visited(self, url: str) -> bool:
        return url in self.visited

    def is_empty(self) -> bool:
        return not bool(self.queue)

    def __len__(self) -> int:
        return len(self.queue)
