"""
HTTP fetching module for the crawler.
Fetches a single URL and classifies the outcome.
Only HTML content counts as a successful fetch.
"""

import time
from typing import Optional

import requests

from crawler.core import get_logger
from crawler.errors import FetchFailed
from crawler.models import FetchResult, to_timestamp, utcnow

logger = get_logger("fetcher")

BROWSER_HEADERS = {
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/avif,image/webp,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.9,fr;q=0.8",
    "Cache-Control": "no-cache",
}


class PageFetcher:
    """
    Blocking request/response fetch of one page. No retries.
    Raises FetchFailed with reason one of: http_error, non_html, timeout,
    connection_error, request_error.
    """

    def __init__(self, user_agent: str, timeout: Optional[float] = None, session: Optional[requests.Session] = None):
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update(BROWSER_HEADERS)
        self.session.headers["User-Agent"] = user_agent

    def fetch(self, url: str, timeout: Optional[float] = None) -> FetchResult:
        start_time = time.time()
        effective_timeout = timeout if timeout is not None else self.timeout

        try:
            r = self.session.get(url, timeout=effective_timeout, allow_redirects=True)
        except requests.exceptions.Timeout as e:
            raise FetchFailed(url, "timeout", detail=str(e))
        except requests.exceptions.ConnectionError as e:
            raise FetchFailed(url, "connection_error", detail=str(e))
        except requests.exceptions.RequestException as e:
            raise FetchFailed(url, "request_error", detail=str(e))

        fetch_time_ms = int((time.time() - start_time) * 1000)
        ct = r.headers.get("Content-Type", "").lower()

        if not 200 <= r.status_code < 300:
            raise FetchFailed(url, "http_error", status_code=r.status_code, detail=r.reason or "")
        if "text/html" not in ct:
            raise FetchFailed(url, "non_html", status_code=r.status_code, detail=ct or "missing content-type")

        logger.debug(f"fetched {url} status={r.status_code} size={len(r.content)} in {fetch_time_ms}ms")
        return FetchResult(
            url=url,
            resolved_url=r.url or url,
            http_status=r.status_code,
            content_type=ct,
            html=r.text,
            fetched_at=to_timestamp(utcnow()),
            fetch_duration_ms=fetch_time_ms,
        )
