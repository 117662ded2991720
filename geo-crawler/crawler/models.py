from dataclasses import dataclass, asdict
from datetime import datetime, timezone
from enum import Enum
from typing import Optional, Dict, Any

TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%S.%f+00:00"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def to_timestamp(dt: datetime) -> str:
    """Fixed-width UTC string; lexical order equals chronological order."""
    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc)
    return dt.strftime(TIMESTAMP_FORMAT)


class CrawlStatus(Enum):
    PENDING = "pending"
    FETCHED = "fetched"
    ERROR = "error"


@dataclass(frozen=True)
class Page:
    """
    A persisted page of the corpus.
    Invariant: exactly one Page per normalized URL.
    """
    id: str
    url: str
    domain: str
    title: Optional[str]
    html_content: Optional[str]
    crawl_status: CrawlStatus
    depth: int
    parent_url: Optional[str]
    fetch_timestamp: str

    def to_dict(self, include_html: bool = False) -> Dict[str, Any]:
        data = asdict(self)
        data["crawl_status"] = self.crawl_status.value
        if not include_html:
            data.pop("html_content")
        return data


@dataclass(frozen=True)
class FetchResult:
    """
    Output of a successful page fetch.
    INVARIANT: only produced for 2xx text/html responses.
    """
    url: str
    resolved_url: str
    http_status: int
    content_type: str
    html: str
    fetched_at: str
    fetch_duration_ms: int


class OutcomeStatus(Enum):
    SUCCESS = "success"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass(frozen=True)
class ItemOutcome:
    """Tagged per-item result of a batch loop: Success | Skipped | Failed(reason)."""
    item: str
    status: OutcomeStatus
    reason: Optional[str] = None

    @classmethod
    def success(cls, item: str) -> "ItemOutcome":
        return cls(item, OutcomeStatus.SUCCESS)

    @classmethod
    def skipped(cls, item: str, reason: str) -> "ItemOutcome":
        return cls(item, OutcomeStatus.SKIPPED, reason)

    @classmethod
    def failed(cls, item: str, reason: str) -> "ItemOutcome":
        return cls(item, OutcomeStatus.FAILED, reason)

    def to_dict(self) -> Dict[str, Any]:
        return {"item": self.item, "status": self.status.value, "reason": self.reason}


def summarize_outcomes(outcomes) -> Dict[str, int]:
    counts = {status.value: 0 for status in OutcomeStatus}
    for outcome in outcomes:
        counts[outcome.status.value] += 1
    return counts
