import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Tuple

from crawler.core import logger
from crawler.errors import ConfigurationError

# Configuration for the GEO crawler and evaluation core.
# Module constants are the defaults; GeoConfig is what components receive.

# Domains allowed to crawl (hostname equal to, or subdomain of, an entry)
ALLOWED_DOMAINS = ("bnpparibas.com", "group.bnpparibas")

# Hard limit on pages discovered by a single crawl run
MAX_PAGES = 100
DEFAULT_MAX_DEPTH = 2

# Pages fetched longer ago than this are eligible for refresh
STALENESS_HOURS = 48

# Network timeout for page fetches (seconds)
REQUEST_TIMEOUT = 10

# User-Agent string for crawler identification
USER_AGENT = "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"

# Playbook ingestion and retrieval
CHUNK_SIZE = 1500
MATCH_THRESHOLD = 0.5
MATCH_COUNT = 5

DEFAULT_NUM_QUESTIONS = 6
MAX_INSPIRATION_URLS = 5

# Completion / embedding service
OPENAI_BASE_URL = "https://api.openai.com/v1"
COMPLETION_MODEL = "gpt-4.1-mini-2025-04-14"
EMBEDDING_MODEL = "text-embedding-3-small"
MAX_COMPLETION_TOKENS = 4000

# canonical data directory for the crawler
DATA_DIR = Path(__file__).resolve().parents[1] / 'data'


def _split_domains(raw: Optional[str]) -> Tuple[str, ...]:
    if not raw:
        return ALLOWED_DOMAINS
    domains = tuple(d.strip().lower() for d in raw.split(",") if d.strip())
    return domains or ALLOWED_DOMAINS


@dataclass(frozen=True)
class GeoConfig:
    """
    Explicit configuration passed to each component at construction.
    Nothing downstream reads the environment directly.
    """
    allowed_domains: Tuple[str, ...] = ALLOWED_DOMAINS
    max_pages: int = MAX_PAGES
    default_max_depth: int = DEFAULT_MAX_DEPTH
    staleness_hours: int = STALENESS_HOURS
    request_timeout: float = REQUEST_TIMEOUT
    user_agent: str = USER_AGENT
    chunk_size: int = CHUNK_SIZE
    match_threshold: float = MATCH_THRESHOLD
    match_count: int = MATCH_COUNT
    default_num_questions: int = DEFAULT_NUM_QUESTIONS
    max_inspiration_urls: int = MAX_INSPIRATION_URLS
    api_key: Optional[str] = field(default=None, repr=False)
    api_base_url: str = OPENAI_BASE_URL
    completion_model: str = COMPLETION_MODEL
    embedding_model: str = EMBEDDING_MODEL
    max_completion_tokens: int = MAX_COMPLETION_TOKENS
    database_path: str = str(DATA_DIR / "geo.db")
    log_file: Optional[str] = None

    @classmethod
    def from_env(cls) -> "GeoConfig":
        """FLOW: Reads GEO_* / OPENAI_* variables (already loaded from .env) -> falls back to module defaults."""
        return cls(
            allowed_domains=_split_domains(os.getenv("GEO_ALLOWED_DOMAINS")),
            max_pages=int(os.getenv("GEO_MAX_PAGES", MAX_PAGES)),
            default_max_depth=int(os.getenv("GEO_DEFAULT_MAX_DEPTH", DEFAULT_MAX_DEPTH)),
            staleness_hours=int(os.getenv("GEO_STALENESS_HOURS", STALENESS_HOURS)),
            request_timeout=float(os.getenv("GEO_REQUEST_TIMEOUT", REQUEST_TIMEOUT)),
            user_agent=os.getenv("GEO_USER_AGENT", USER_AGENT),
            chunk_size=int(os.getenv("GEO_CHUNK_SIZE", CHUNK_SIZE)),
            match_threshold=float(os.getenv("GEO_MATCH_THRESHOLD", MATCH_THRESHOLD)),
            match_count=int(os.getenv("GEO_MATCH_COUNT", MATCH_COUNT)),
            default_num_questions=int(os.getenv("GEO_NUM_QUESTIONS", DEFAULT_NUM_QUESTIONS)),
            max_inspiration_urls=int(os.getenv("GEO_MAX_INSPIRATION_URLS", MAX_INSPIRATION_URLS)),
            api_key=os.getenv("OPENAI_API_KEY") or None,
            api_base_url=os.getenv("OPENAI_BASE_URL", OPENAI_BASE_URL).rstrip("/"),
            completion_model=os.getenv("GEO_COMPLETION_MODEL", COMPLETION_MODEL),
            embedding_model=os.getenv("GEO_EMBEDDING_MODEL", EMBEDDING_MODEL),
            max_completion_tokens=int(os.getenv("GEO_MAX_COMPLETION_TOKENS", MAX_COMPLETION_TOKENS)),
            database_path=os.getenv("GEO_DATABASE_PATH", str(DATA_DIR / "geo.db")),
            log_file=os.getenv("GEO_LOG_FILE") or None,
        )

    def require_credentials(self) -> None:
        """Missing service credentials are the only fatal startup condition."""
        if not self.api_key:
            logger.error("[CONFIG] OPENAI_API_KEY is not set; completion and embedding services are unavailable")
            raise ConfigurationError("OPENAI_API_KEY environment variable is not set")
