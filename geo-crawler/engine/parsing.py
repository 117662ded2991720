"""
Helpers turning completion-service text into typed values.
Every helper either returns a well-formed value or raises ParseFailed.
"""

import json
import re
from typing import Any, Dict, List, Optional

from crawler.errors import ParseFailed


def strip_code_fence(content: str) -> str:
    """Removes a surrounding ```json ... ``` fence if the model added one."""
    cleaned = (content or "").strip()
    if cleaned.startswith("```"):
        cleaned = cleaned.split("\n", 1)[1] if "\n" in cleaned else cleaned[3:]
        if cleaned.rstrip().endswith("```"):
            cleaned = cleaned.rstrip()[:-3]
    return cleaned.strip()


def parse_json_array(content: str) -> List[Any]:
    try:
        parsed = json.loads(strip_code_fence(content))
    except ValueError as e:
        raise ParseFailed(f"Expected a JSON array: {e}")
    # json_object mode can only wrap arrays in an object
    if isinstance(parsed, dict):
        lists = [v for v in parsed.values() if isinstance(v, list)]
        if len(lists) == 1:
            parsed = lists[0]
    if not isinstance(parsed, list):
        raise ParseFailed(f"Expected a JSON array, got {type(parsed).__name__}")
    return parsed


def clamp_score(value: Any, field_name: str) -> float:
    """Missing -> 0.0; numeric -> clamped to [0, 1]; anything else is a parse failure."""
    if value is None:
        return 0.0
    if isinstance(value, bool):
        raise ParseFailed(f"Score {field_name} is not numeric: {value!r}")
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ParseFailed(f"Score {field_name} is not numeric: {value!r}")
    if number != number:
        raise ParseFailed(f"Score {field_name} is NaN")
    return min(1.0, max(0.0, number))


def string_list(value: Any) -> List[str]:
    """Coerces a JSON value to a list of non-empty strings; anything else is empty."""
    if isinstance(value, str):
        return [value] if value.strip() else []
    if not isinstance(value, list):
        return []
    return [str(item).strip() for item in value if item is not None and str(item).strip()]


def first_list(data: Dict[str, Any], *keys: str) -> List[str]:
    for key in keys:
        if key in data and data[key] is not None:
            return string_list(data[key])
    return []


def extract_section(text: str, name: str) -> Optional[str]:
    """
    Content between ===NAME=== and ===END_NAME===.
    A missing end marker takes everything up to the next ===...=== marker.
    """
    start_marker = f"==={name}==="
    start = text.find(start_marker)
    if start == -1:
        return None
    start += len(start_marker)
    end = text.find(f"===END_{name}===", start)
    if end == -1:
        following = re.search(r"===[A-Z_]+===", text[start:])
        end = start + following.start() if following else len(text)
    return text[start:end].strip()
