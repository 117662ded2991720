from typing import List


def chunk_text(text: str, size: int = 1500) -> List[str]:
    """
    Splits text into consecutive fixed-size character windows.
    No overlap; the last window may be shorter. Blank input yields nothing.
    """
    if size <= 0:
        raise ValueError("chunk size must be positive")
    if not text or not text.strip():
        return []
    return [text[i:i + size] for i in range(0, len(text), size)]
