"""
Centralized URL policy: allowlist scope, link filtering and normalization.

All extension, scheme and tracking rules live here. The frontier, the refresh
pass and the request entry points use DomainPolicy instead of duplicating
ad-hoc checks.
"""

from urllib.parse import urlparse, urlunparse, urljoin
from typing import Dict, Iterable, Optional, Tuple

import tldextract

from crawler.errors import DomainRejected

# Offline extractor: bundled public-suffix snapshot, no HTTP fetch at runtime
_EXTRACT = tldextract.TLDExtract(suffix_list_urls=())


class DomainPolicy:
    """
    Policy for URL scope and link filtering.

    Methods:
    - normalize(url): canonical form used as the page key
    - resolve(link, base_url): (absolute url | None, reason); never raises
    - is_allowed(url): True if host is allowlisted
    - check(url): raise DomainRejected unless the URL is in scope
    """

    # Asset/document/media/script/style/font extensions
    ASSET_EXTENSIONS = (
        # Images
        ".jpg", ".jpeg", ".png", ".gif", ".svg", ".webp", ".ico", ".bmp", ".tiff", ".avif",
        # Video/Audio
        ".mp4", ".mp3", ".avi", ".mov", ".mkv", ".webm", ".wav",
        # Archives
        ".zip", ".rar", ".tar", ".gz", ".7z",
        # Documents
        ".pdf", ".doc", ".docx", ".xls", ".xlsx", ".ppt", ".pptx", ".csv",
        # Styles/Scripts
        ".css", ".js", ".mjs", ".json", ".xml",
        # Fonts
        ".woff", ".woff2", ".ttf", ".otf", ".eot",
        # Executables/Installers
        ".exe", ".msi", ".dmg",
    )

    SKIPPED_PREFIXES = {
        "#": "fragment",
        "javascript:": "javascript",
        "mailto:": "mailto",
        "tel:": "tel",
    }

    TRACKING_MARKERS = ("utm_", "track", "gclid=", "fbclid=", "_gl=")

    REASONS = (
        "allowed", "empty", "fragment", "javascript", "mailto", "tel",
        "tracking", "asset", "invalid", "non_http", "out_of_scope",
    )

    def __init__(self, allowed_domains: Iterable[str]):
        self.allowed_domains = tuple(d.strip().lower().lstrip(".") for d in allowed_domains if d.strip())
        self._stats: Dict[str, int] = {reason: 0 for reason in self.REASONS}

    # --- normalization ---

    @staticmethod
    def normalize(url: str) -> str:
        """Lowercase scheme and host, default empty path to '/', drop the fragment."""
        parsed = urlparse(url.strip())
        path = parsed.path or "/"
        return urlunparse((
            parsed.scheme.lower(),
            parsed.netloc.lower(),
            path,
            parsed.params,
            parsed.query,
            "",
        ))

    @staticmethod
    def registrable_domain(url: str) -> str:
        """domain.suffix via tldextract; falls back to the bare host for private suffixes."""
        ext = _EXTRACT(url)
        if ext.domain and ext.suffix:
            return f"{ext.domain}.{ext.suffix}".lower()
        return (urlparse(url).hostname or ext.domain or "").lower()

    # --- scope ---

    def host_allowed(self, hostname: Optional[str]) -> bool:
        if not hostname:
            return False
        host = hostname.lower().rstrip(".")
        return any(host == domain or host.endswith(f".{domain}") for domain in self.allowed_domains)

    def is_allowed(self, url: str) -> bool:
        try:
            parsed = urlparse(url)
        except ValueError:
            return False
        return parsed.scheme in ("http", "https") and self.host_allowed(parsed.hostname)

    def check(self, url: str) -> str:
        """Entry-point guard. Returns the normalized URL or raises DomainRejected."""
        if not url:
            raise DomainRejected(url or "", "empty")
        try:
            parsed = urlparse(url)
        except ValueError:
            raise DomainRejected(url, "invalid")
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise DomainRejected(url, "non_http")
        if not self.host_allowed(parsed.hostname):
            raise DomainRejected(url, "out_of_scope")
        return self.normalize(url)

    # --- link filtering ---

    @classmethod
    def is_asset(cls, url: str) -> bool:
        try:
            path = urlparse(url).path.lower()
        except ValueError:
            return False
        return path.endswith(cls.ASSET_EXTENSIONS)

    @classmethod
    def has_tracking_marker(cls, link: str) -> bool:
        lowered = link.lower()
        return any(marker in lowered for marker in cls.TRACKING_MARKERS)

    def resolve(self, link: str, base_url: str) -> Tuple[Optional[str], str]:
        """
        Evaluate a raw href found on base_url.
        Returns (normalized absolute URL, "allowed") or (None, skip reason).
        Always updates counters exactly once per call.
        """
        url, reason = self._resolve(link, base_url)
        self._stats[reason] += 1
        return url, reason

    def _resolve(self, link: str, base_url: str) -> Tuple[Optional[str], str]:
        raw = (link or "").strip()
        if not raw:
            return None, "empty"
        lowered = raw.lower()
        for prefix, reason in self.SKIPPED_PREFIXES.items():
            if lowered.startswith(prefix):
                return None, reason
        if self.has_tracking_marker(raw):
            return None, "tracking"
        try:
            absolute = urljoin(base_url, raw)
            parsed = urlparse(absolute)
        except ValueError:
            return None, "invalid"
        if parsed.scheme not in ("http", "https"):
            return None, "non_http"
        if not parsed.netloc:
            return None, "invalid"
        if self.is_asset(absolute):
            return None, "asset"
        if not self.host_allowed(parsed.hostname):
            return None, "out_of_scope"
        return self.normalize(absolute), "allowed"

    def get_stats(self) -> Dict[str, int]:
        return dict(self._stats)

    def reset_stats(self) -> None:
        for k in self._stats:
            self._stats[k] = 0
