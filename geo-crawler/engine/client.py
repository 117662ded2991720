import json
from typing import Dict, List, Optional

import requests

from crawler.core import get_logger
from crawler.errors import UpstreamServiceError, ParseFailed
from engine.parsing import strip_code_fence

logger = get_logger("completion")


class CompletionClient:
    """
    OpenAI-compatible chat completion client.

    Two response modes: free text, and strict JSON object (json_mode=True).
    Calls are blocking and uncapped in time; failures surface as
    UpstreamServiceError and are never retried here.
    """

    def __init__(self, api_key: str, base_url: str, model: str, max_tokens: int = 4000,
                 session: Optional[requests.Session] = None):
        self.model = model
        self.max_tokens = max_tokens
        self.url = f"{base_url.rstrip('/')}/chat/completions"
        self.session = session or requests.Session()
        self.session.headers.update({
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
        })

    def complete(self, messages: List[Dict[str, str]], json_mode: bool = False,
                 temperature: Optional[float] = None) -> str:
        payload = {
            "model": self.model,
            "messages": messages,
            "max_completion_tokens": self.max_tokens,
        }
        if json_mode:
            payload["response_format"] = {"type": "json_object"}
        if temperature is not None:
            payload["temperature"] = temperature

        try:
            response = self.session.post(self.url, json=payload)
        except requests.exceptions.RequestException as e:
            raise UpstreamServiceError("completion", str(e))

        if not response.ok:
            logger.error(f"Completion API error: {response.status_code} {response.text[:500]}")
            raise UpstreamServiceError("completion", response.text[:200] or response.reason, response.status_code)

        try:
            data = response.json()
            content = data["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise UpstreamServiceError("completion", f"malformed response body: {e}", response.status_code)
        return content or ""

    def complete_json(self, messages: List[Dict[str, str]]) -> Dict:
        """Structured mode: the reply must be a JSON object, otherwise ParseFailed."""
        content = self.complete(messages, json_mode=True)
        try:
            parsed = json.loads(strip_code_fence(content))
        except ValueError as e:
            logger.error(f"JSON parse error: {e}; content (first 500 chars): {content[:500]}")
            raise ParseFailed(f"Failed to parse JSON response: {e}")
        if not isinstance(parsed, dict):
            raise ParseFailed(f"Expected a JSON object, got {type(parsed).__name__}")
        return parsed

