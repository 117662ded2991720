"""
Error taxonomy shared by every stage.

Batch loops (crawl frontier, refresh pass, persona question loop) catch GeoError
per item and record an outcome; single-item request flows let it propagate.
"""

from typing import Optional


class GeoError(Exception):
    """Base class for recoverable, per-request failures."""


class ConfigurationError(GeoError):
    """Required configuration (service credentials) is missing. Fatal at startup."""


class DomainRejected(GeoError):
    """URL is outside the allowlist; raised before any network call."""

    def __init__(self, url: str, reason: str = "out_of_scope"):
        super().__init__(f"URL rejected ({reason}): {url}")
        self.url = url
        self.reason = reason


class FetchFailed(GeoError):
    """Non-2xx status, network error, or non-HTML content-type."""

    def __init__(self, url: str, reason: str, status_code: Optional[int] = None, detail: str = ""):
        message = f"Fetch failed for {url}: {reason}"
        if status_code is not None:
            message += f" (HTTP {status_code})"
        if detail:
            message += f" - {detail}"
        super().__init__(message)
        self.url = url
        self.reason = reason
        self.status_code = status_code


class ParseFailed(GeoError):
    """The completion service did not return the expected structured shape."""


class NotFound(GeoError):
    def __init__(self, kind: str, identifier: str):
        super().__init__(f"{kind} not found: {identifier}")
        self.kind = kind
        self.identifier = identifier


class UpstreamServiceError(GeoError):
    """The embedding or completion call itself failed (transport, auth, 5xx)."""

    def __init__(self, service: str, message: str, status_code: Optional[int] = None):
        super().__init__(f"{service} error: {message}")
        self.service = service
        self.status_code = status_code
