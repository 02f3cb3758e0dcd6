import sys
import os
import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from modpanel.engine.classifier import MLClassification
from modpanel.engine.orchestrator import DecisionEngine
from modpanel.errors import ModelUnavailable
from modpanel.models import CategoryScore, Decision


class FakeClassifier:
    def __init__(self, outcome=None, error=None):
        self.outcome = outcome
        self.error = error
        self.calls = []

    async def classify(self, text, categories):
        self.calls.append((text, list(categories)))
        if self.error:
            raise self.error
        return self.outcome


def ml_outcome(scores, negativity=0.1):
    return MLClassification(
        categories=sorted(
            (CategoryScore(name, score, f"about {name}") for name, score in scores.items()),
            key=lambda c: c.score,
            reverse=True,
        ),
        sentiment_negativity=negativity,
    )


@pytest.mark.asyncio
async def test_no_classifier_uses_heuristics():
    engine = DecisionEngine(classifier=None)

    result = await engine.analyze("I love this sunny day")

    assert result.decision == Decision.APPROVED
    assert result.suggested_actions is None
    assert "suggestedActions" not in result.to_dict()
    assert [c.name for c in result.categories][0] == "Hate Speech"


@pytest.mark.asyncio
async def test_ml_path_rejects_on_high_score():
    classifier = FakeClassifier(ml_outcome({"threats": 0.92, "harassment": 0.3}))
    engine = DecisionEngine(classifier=classifier)

    result = await engine.analyze("I will attack and destroy you", correlation_id="t-1")

    assert result.decision == Decision.REJECTED
    assert result.categories[0].name == "threats"
    assert result.suggested_actions == [
        "Remove threats content",
        "Rephrase respectfully",
        "Focus on constructive communication",
    ]
    assert "threats" in result.reasoning
    assert result.policy_references[0].policy_name == "Threat Policy"
    assert len(classifier.calls) == 1


@pytest.mark.asyncio
async def test_ml_path_flags_on_negativity():
    engine = DecisionEngine(classifier=FakeClassifier(ml_outcome({"spam": 0.4}, negativity=0.9)))

    result = await engine.analyze("meh")

    assert result.decision == Decision.FLAGGED
    assert len(result.suggested_actions) == 3


@pytest.mark.asyncio
async def test_ml_path_approves_low_scores():
    engine = DecisionEngine(classifier=FakeClassifier(ml_outcome({"spam": 0.2}, negativity=0.1)))

    result = await engine.analyze("Lovely weather")

    assert result.decision == Decision.APPROVED
    assert result.suggested_actions is None


@pytest.mark.asyncio
async def test_model_unavailable_falls_back_to_heuristics():
    engine = DecisionEngine(classifier=FakeClassifier(ModelUnavailable("not loaded")))

    result = await engine.analyze("You are worthless and I hate you, get out")

    assert result.decision == Decision.FLAGGED
    assert result.categories[0].name == "Hate Speech"
    assert len(result.suggested_actions) == 3


@pytest.mark.asyncio
async def test_classifier_exception_still_attaches_policies_and_topics():
    engine = DecisionEngine(classifier=FakeClassifier(error=RuntimeError("boom")))

    result = await engine.analyze("I hate how the government handles the stock market")

    assert result.decision == Decision.FLAGGED
    assert "Harassment Policy" in [p.policy_name for p in result.policy_references]
    assert result.detected_topics == ["Politics", "Finance"]


@pytest.mark.asyncio
async def test_to_dict_uses_external_field_names():
    engine = DecisionEngine(classifier=None)

    data = (await engine.analyze("I will kill you")).to_dict()

    assert data["decision"] == "rejected"
    assert set(data) == {
        "decision", "reasoning", "categories", "detectedTopics", "policyReferences", "suggestedActions",
    }
    assert set(data["policyReferences"][0]) == {"policyName", "relevance", "description"}
