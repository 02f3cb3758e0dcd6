from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional


class Decision(str, Enum):
    APPROVED = "approved"
    FLAGGED = "flagged"
    REJECTED = "rejected"


class ExampleSource(str, Enum):
    MANUAL = "manual"
    TWITTER = "twitter"
    CSV = "csv"


@dataclass(frozen=True)
class CategoryScore:
    name: str
    score: float  # 0.0 - 1.0
    explanation: str

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "score": self.score, "explanation": self.explanation}


@dataclass(frozen=True)
class PolicyMatch:
    policy_name: str
    relevance: float  # 0.0 - 1.0
    description: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "policyName": self.policy_name,
            "relevance": self.relevance,
            "description": self.description,
        }


@dataclass
class AnalysisResult:
    """Outcome of one analysis call.

    `categories` is sorted by descending score and never empty.
    `suggested_actions` is None for approved content.
    """

    decision: Decision
    reasoning: str
    categories: List[CategoryScore]
    detected_topics: List[str] = field(default_factory=list)
    policy_references: List[PolicyMatch] = field(default_factory=list)
    suggested_actions: Optional[List[str]] = None

    @property
    def highest_category(self) -> CategoryScore:
        return self.categories[0]

    def to_dict(self) -> Dict[str, Any]:
        """JSON-ready mapping using the external field names."""
        data: Dict[str, Any] = {
            "decision": self.decision.value,
            "reasoning": self.reasoning,
            "categories": [c.to_dict() for c in self.categories],
            "detectedTopics": list(self.detected_topics),
            "policyReferences": [p.to_dict() for p in self.policy_references],
        }
        if self.suggested_actions is not None:
            data["suggestedActions"] = list(self.suggested_actions)
        return data


@dataclass
class TrainingExample:
    content: str
    label: Decision
    categories: Optional[List[str]] = None
    source: ExampleSource = ExampleSource.MANUAL
    context_data: Optional[Dict[str, Any]] = None


@dataclass
class TrainingSession:
    in_progress: bool = False
    progress_percent: int = 0  # 0 - 100
    trained: bool = False


@dataclass
class ModerationItem:
    id: str
    content: str
    status: Decision
    analysis: AnalysisResult
    source: str = "manual"
    source_metadata: Dict[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "content": self.content,
            "status": self.status.value,
            "analysis": self.analysis.to_dict(),
            "source": self.source,
            "timestamp": self.timestamp.isoformat(),
        }
