from __future__ import annotations

import asyncio
import logging
import uuid
from typing import List, Optional, Sequence

from config import ML_CATEGORIES
from modpanel.engine.classifier import ClassificationOutcome, MLClassification, TransformersClassifier
from modpanel.engine.retriever import PolicyRetriever
from modpanel.engine.topics import detect_topics
from modpanel.errors import ModelUnavailable
from modpanel.models import AnalysisResult, PolicyMatch
import moderation

logger = logging.getLogger(__name__)


class DecisionEngine:
    """
    Run the moderation pipeline and return one normalized AnalysisResult.

    Policy retrieval, topic detection and classification run concurrently.
    Classification tries the ML adapter first; when it reports
    ModelUnavailable (or raises) the keyword classifier decides instead.
    """

    def __init__(
        self,
        classifier: Optional[TransformersClassifier] = None,
        retriever: Optional[PolicyRetriever] = None,
        thresholds: moderation.DecisionThresholds = moderation.DEFAULT_THRESHOLDS,
        categories: Sequence[str] = ML_CATEGORIES,
    ):
        self.classifier = classifier
        self.retriever = retriever or PolicyRetriever()
        self.thresholds = thresholds
        self.categories = list(categories)

    async def analyze(self, text: str, correlation_id: Optional[str] = None) -> AnalysisResult:
        cid = correlation_id or uuid.uuid4().hex[:8]
        outcome, policies, topics = await asyncio.gather(
            self._classify(text, cid),
            self._retrieve(text),
            self._detect_topics(text),
        )

        if isinstance(outcome, MLClassification):
            result = moderation.compose_result(outcome.categories, outcome.sentiment_negativity, self.thresholds)
            path = "ml"
        else:
            logger.info(f"[{cid}] {outcome} - using keyword heuristics")
            result = moderation.classify(text, self.thresholds)
            path = "heuristic"

        result.detected_topics = topics
        result.policy_references = policies
        logger.info(
            f"[{cid}] {result.decision.value} via {path} "
            f"(top={result.highest_category.name}:{result.highest_category.score:.2f}, "
            f"policies={len(policies)}, topics={len(topics)})"
        )
        return result

    async def _classify(self, text: str, cid: str) -> ClassificationOutcome:
        if self.classifier is None:
            return ModelUnavailable("No ML classifier configured")
        try:
            return await self.classifier.classify(text, self.categories)
        except Exception as e:
            logger.error(f"[{cid}] Classifier raised: {e}", exc_info=True)
            return ModelUnavailable(f"Classifier error: {e}")

    async def _retrieve(self, text: str) -> List[PolicyMatch]:
        return self.retriever.retrieve(text)

    async def _detect_topics(self, text: str) -> List[str]:
        return detect_topics(text)
