from typing import List, Optional

import requests

from crawler.core import get_logger
from crawler.errors import UpstreamServiceError

logger = get_logger("embedder")


class EmbeddingClient:
    """OpenAI-compatible /embeddings client returning one fixed-dimension vector per text."""

    def __init__(self, api_key: str, base_url: str, model: str, session: Optional[requests.Session] = None):
        self.model = model
        self.url = f"{base_url.rstrip('/')}/embeddings"
        self.session = session or requests.Session()
        self.session.headers.update({
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
        })

    def embed(self, text: str) -> List[float]:
        try:
            response = self.session.post(self.url, json={"model": self.model, "input": text})
        except requests.exceptions.RequestException as e:
            raise UpstreamServiceError("embedding", str(e))

        if not response.ok:
            logger.error(f"Embedding API error: {response.status_code} {response.text[:300]}")
            raise UpstreamServiceError("embedding", response.text[:200] or response.reason, response.status_code)

        try:
            vector = [float(v) for v in response.json()["data"][0]["embedding"]]
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise UpstreamServiceError("embedding", f"malformed response body: {e}", response.status_code)
        if not vector:
            raise UpstreamServiceError("embedding", "empty embedding vector", response.status_code)
        return vector
