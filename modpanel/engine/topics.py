from __future__ import annotations

from typing import Dict, List, Sequence

from config import TOPIC_KEYWORDS


def detect_topics(text: str, topic_keywords: Dict[str, Sequence[str]] = TOPIC_KEYWORDS) -> List[str]:
    """
    Tag text with every topic whose keyword list has a case-insensitive
    substring hit. Output follows the mapping's insertion order.
    """
    if not text:
        return []
    text_lower = text.lower()
    return [
        topic
        for topic, keywords in topic_keywords.items()
        if any(keyword.lower() in text_lower for keyword in keywords)
    ]
