"""
Keyword Content Moderation
Deterministic fallback classifier + the shared decision/threshold rules.
"""
import re
import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Set

import ahocorasick

from config import (
    PROFANITY_TERMS,
    HOSTILITY_TERMS,
    SLUR_TERMS,
    THREAT_TERMS,
    PROFANITY_SCORE,
    HOSTILITY_SCORE,
    SLUR_SCORE,
    THREAT_SCORE,
    REJECT_THRESHOLD,
    FLAG_THRESHOLD,
    NEGATIVITY_THRESHOLD,
    REJECTED_ACTIONS,
    FLAGGED_ACTIONS,
)
from modpanel.models import AnalysisResult, CategoryScore, Decision

logger = logging.getLogger(__name__)

PROFANITY = "profanity"
HOSTILITY = "hostility"
SLUR = "slur"
THREAT = "threat"

TERM_LISTS: Dict[str, Sequence[str]] = {
    PROFANITY: PROFANITY_TERMS,
    HOSTILITY: HOSTILITY_TERMS,
    SLUR: SLUR_TERMS,
    THREAT: THREAT_TERMS,
}

APPROVED_REASONING = "The content appears to comply with our platform policies and has been approved."
FLAGGED_REASONING = (
    "The content contains potentially harmful language that requires human review "
    "to determine if it violates platform policies."
)

# ============================================================================
# PATTERN MATCHING (Aho-Corasick substring scan + word-boundary regex)
# ============================================================================
automaton = ahocorasick.Automaton()
for _kind, _terms in TERM_LISTS.items():
    for _term in _terms:
        automaton.add_word(_term.lower(), (_kind, _term))
automaton.make_automaton()
logger.debug(f"Keyword automaton built: {len(automaton)} terms")

WORD_PATTERNS: Dict[str, re.Pattern] = {
    kind: re.compile(r"\b(" + "|".join(re.escape(t) for t in terms) + r")\b", re.IGNORECASE)
    for kind, terms in TERM_LISTS.items()
}


def find_terms(text: str) -> Dict[str, Set[str]]:
    """
    Return the configured terms present in text, grouped by list.

    A term counts as present when the substring scan OR the word-boundary
    pattern finds it, so "idiots" and "idiot" both hit.
    """
    found: Dict[str, Set[str]] = {kind: set() for kind in TERM_LISTS}
    if not text:
        return found

    for _, (kind, term) in automaton.iter(text.lower()):
        found[kind].add(term)

    for kind, pattern in WORD_PATTERNS.items():
        for match in pattern.findall(text):
            found[kind].add(match.lower())

    return found


# ============================================================================
# DECISION RULES (shared by the ML and heuristic paths)
# ============================================================================
@dataclass(frozen=True)
class DecisionThresholds:
    """Strict greater-than cut-offs; a score equal to a threshold does not trigger it."""

    reject: float = REJECT_THRESHOLD
    flag: float = FLAG_THRESHOLD
    negativity: float = NEGATIVITY_THRESHOLD


DEFAULT_THRESHOLDS = DecisionThresholds()


def sort_categories(categories: Sequence[CategoryScore]) -> List[CategoryScore]:
    return sorted(categories, key=lambda c: c.score, reverse=True)


def derive_decision(
    categories: Sequence[CategoryScore],
    negativity: float = 0.0,
    thresholds: DecisionThresholds = DEFAULT_THRESHOLDS,
) -> Decision:
    """
    Map category scores (plus sentiment negativity on the ML path) to a decision.

    Args:
        categories: Scores for one analysis, any order
        negativity: Sentiment negativity in [0, 1]; 0.0 when no sentiment signal
        thresholds: Cut-offs to apply

    Returns:
        Decision.REJECTED if the highest score > reject,
        Decision.FLAGGED if the highest score > flag or negativity > negativity cut-off,
        Decision.APPROVED otherwise
    """
    highest = max((c.score for c in categories), default=0.0)
    if highest > thresholds.reject:
        return Decision.REJECTED
    if highest > thresholds.flag or negativity > thresholds.negativity:
        return Decision.FLAGGED
    return Decision.APPROVED


def suggested_actions(decision: Decision, category: CategoryScore) -> Optional[List[str]]:
    if decision == Decision.REJECTED:
        return [action.format(category=category.name.lower()) for action in REJECTED_ACTIONS]
    if decision == Decision.FLAGGED:
        return list(FLAGGED_ACTIONS)
    return None


def build_reasoning(decision: Decision, category: CategoryScore) -> str:
    if decision == Decision.REJECTED:
        return (
            f"The content likely contains {category.name.lower()} "
            f"({category.score:.0%} confidence), which violates our platform's safety policies."
        )
    if decision == Decision.FLAGGED:
        return FLAGGED_REASONING
    return APPROVED_REASONING


def compose_result(
    categories: Sequence[CategoryScore],
    negativity: float = 0.0,
    thresholds: DecisionThresholds = DEFAULT_THRESHOLDS,
) -> AnalysisResult:
    """Build a topic-less, policy-less AnalysisResult from raw category scores."""
    ordered = sort_categories(categories)
    decision = derive_decision(ordered, negativity, thresholds)
    top = ordered[0]
    return AnalysisResult(
        decision=decision,
        reasoning=build_reasoning(decision, top),
        categories=ordered,
        suggested_actions=suggested_actions(decision, top),
    )


# ============================================================================
# HEURISTIC CLASSIFIER
# ============================================================================
def classify(text: str, thresholds: DecisionThresholds = DEFAULT_THRESHOLDS) -> AnalysisResult:
    """
    Keyword classifier used whenever the ML model is unavailable.

    Pure and synchronous. Scores are fixed constants per signal:
        profanity   0.7 present / 0.1 absent
        hate speech max(0.75 hostility / 0.2, 0.95 slur / 0)
        threats     0.9 present / 0.1 absent

    With the default thresholds a slur or threat rejects, hostility or
    profanity flags, and anything else is approved.
    """
    found = find_terms(text)
    has_profanity = bool(found[PROFANITY])
    has_hostility = bool(found[HOSTILITY])
    has_slur = bool(found[SLUR])
    has_threat = bool(found[THREAT])

    profanity_score = PROFANITY_SCORE[0] if has_profanity else PROFANITY_SCORE[1]
    hate_score = max(
        HOSTILITY_SCORE[0] if has_hostility else HOSTILITY_SCORE[1],
        SLUR_SCORE if has_slur else 0.0,
    )
    threat_score = THREAT_SCORE[0] if has_threat else THREAT_SCORE[1]

    if has_slur:
        hate_explanation = "The content contains slurs targeting protected groups."
    elif has_hostility:
        hate_explanation = "The content contains hostile language directed at others."
    else:
        hate_explanation = "No significant hate speech detected in the content."

    categories = [
        CategoryScore("Hate Speech", hate_score, hate_explanation),
        CategoryScore(
            "Profanity",
            profanity_score,
            "The content contains words that may be considered profane or inappropriate."
            if has_profanity else "No significant profanity detected in the content.",
        ),
        CategoryScore(
            "Threats",
            threat_score,
            "The content contains language that could be interpreted as threatening violence."
            if has_threat else "No threatening language detected in the content.",
        ),
    ]

    result = compose_result(categories, 0.0, thresholds)
    if result.decision != Decision.APPROVED:
        hits = sorted(term for terms in found.values() for term in terms)
        logger.debug(f"Heuristic {result.decision.value}: matched {hits}")
    return result
