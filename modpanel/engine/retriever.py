"""
Policy retriever.
Ranks knowledge-base policies against input text by keyword overlap.
"""
from __future__ import annotations

import logging
from typing import List, Sequence

from config import POLICY_KEYWORD_WEIGHT, POLICY_MATCH_LIMIT
from modpanel.knowledge_base import POLICY_KNOWLEDGE_BASE, Policy
from modpanel.models import PolicyMatch

logger = logging.getLogger(__name__)

NO_POLICY_CONTEXT = "No specific policy guidelines found for this content."


class PolicyRetriever:
    """
    Keyword-overlap policy lookup.

    Each policy keyword found as a case-insensitive substring of the text adds
    POLICY_KEYWORD_WEIGHT to the policy's relevance, capped at 1.0.

    Usage:
        retriever = PolicyRetriever()
        matches = retriever.retrieve("I will attack you", limit=3)
    """

    def __init__(self, policies: Sequence[Policy] = POLICY_KNOWLEDGE_BASE,
                 keyword_weight: float = POLICY_KEYWORD_WEIGHT):
        self._policies = tuple(policies)
        self._weight = keyword_weight

    @property
    def policies(self) -> Sequence[Policy]:
        return self._policies

    def score(self, policy: Policy, text: str) -> float:
        text_lower = text.lower()
        hits = sum(1 for keyword in policy.keywords if keyword.lower() in text_lower)
        # round() keeps 5 * 0.2 at exactly 1.0 instead of 1.0000000000000002
        return min(1.0, round(hits * self._weight, 6))

    def retrieve(self, text: str, limit: int = POLICY_MATCH_LIMIT) -> List[PolicyMatch]:
        """
        Return up to `limit` matching policies, most relevant first.

        Zero-relevance policies are dropped. Ties keep catalogue order
        (sorted() is stable).
        """
        if not text or limit <= 0:
            return []

        scored = [
            PolicyMatch(
                policy_name=policy.name,
                relevance=self.score(policy, text),
                description=policy.description,
            )
            for policy in self._policies
        ]
        matches = sorted(
            (m for m in scored if m.relevance > 0),
            key=lambda m: m.relevance,
            reverse=True,
        )
        return matches[:limit]

    @staticmethod
    def format_context(matches: Sequence[PolicyMatch]) -> str:
        """Render matches as a plain-text policy context block."""
        if not matches:
            return NO_POLICY_CONTEXT
        return "\n\n".join(
            f"Policy: {m.policy_name}\nDescription: {m.description}\nRelevance: {round(m.relevance * 100)}%"
            for m in matches
        )
