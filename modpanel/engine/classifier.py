"""
ML classification adapter.
Wraps a HuggingFace sentiment pipeline and a zero-shot pipeline (multi-label)
behind one async classify() call. Failures come back as ModelUnavailable
values so the decision engine can branch instead of catching.
"""
from __future__ import annotations

import asyncio
import importlib.util
import logging
from dataclasses import dataclass
from typing import Any, Callable, List, Optional, Sequence, Tuple, Union

from config import (
    ENABLE_ML_MODERATION,
    ML_CATEGORIES,
    MODEL_DEVICE,
    MODEL_MAX_CHARS,
    SENTIMENT_MODEL,
    ZERO_SHOT_MODEL,
)
from modpanel.errors import ModelUnavailable
from modpanel.models import CategoryScore

logger = logging.getLogger(__name__)

# (task, model_name) -> callable pipeline
PipelineFactory = Callable[[str, str], Callable[..., Any]]


@dataclass(frozen=True)
class MLClassification:
    categories: List[CategoryScore]  # sorted descending
    sentiment_negativity: float


ClassificationOutcome = Union[MLClassification, ModelUnavailable]


def transformers_available() -> bool:
    return (
        importlib.util.find_spec("transformers") is not None
        and importlib.util.find_spec("torch") is not None
    )


def transformers_pipeline_factory(task: str, model: str) -> Callable[..., Any]:
    from transformers import pipeline
    return pipeline(task, model=model, device=MODEL_DEVICE)


def explain(label: str, score: float) -> str:
    if score > 0.5:
        return f"Content may contain {label}"
    return f"No significant {label} detected"


class TransformersClassifier:
    """
    Sentiment + zero-shot classifier with lazy, single-flight loading.

    The first load() starts one background task; every concurrent caller
    awaits that same task. A successful load is kept for the life of the
    instance. A failed load is forgotten so the next call retries.

    Usage:
        classifier = TransformersClassifier()
        outcome = await classifier.classify("some text")
        if isinstance(outcome, MLClassification):
            ...
    """

    def __init__(
        self,
        pipeline_factory: Optional[PipelineFactory] = None,
        sentiment_model: str = SENTIMENT_MODEL,
        zero_shot_model: str = ZERO_SHOT_MODEL,
        enabled: bool = ENABLE_ML_MODERATION,
        max_chars: int = MODEL_MAX_CHARS,
    ):
        self._factory = pipeline_factory
        self.sentiment_model = sentiment_model
        self.zero_shot_model = zero_shot_model
        self.enabled = enabled
        self._max_chars = max_chars
        self._sentiment = None
        self._zero_shot = None
        self._load_task: Optional[asyncio.Task] = None
        self.load_attempts = 0

    @property
    def is_loaded(self) -> bool:
        return self._sentiment is not None and self._zero_shot is not None

    async def load(self) -> bool:
        """Load both pipelines once. Returns True when the model is ready."""
        if self.is_loaded:
            return True
        if self._load_task is None:
            self._load_task = asyncio.ensure_future(self._load_pipelines())
        task = self._load_task
        loaded = await asyncio.shield(task)
        if not loaded and self._load_task is task:
            self._load_task = None
        return loaded

    async def _load_pipelines(self) -> bool:
        if not self.enabled:
            logger.debug("ML moderation disabled - keyword heuristics only")
            return False

        factory = self._factory
        if factory is None:
            if not transformers_available():
                logger.info("transformers/torch not installed - skipping ML layer")
                return False
            factory = transformers_pipeline_factory

        self.load_attempts += 1
        logger.info(f"Loading ML models: {self.sentiment_model}, {self.zero_shot_model}")
        try:
            sentiment = await asyncio.to_thread(factory, "sentiment-analysis", self.sentiment_model)
            zero_shot = await asyncio.to_thread(factory, "zero-shot-classification", self.zero_shot_model)
        except Exception as e:
            logger.warning(f"Failed to load ML models: {e} (keyword heuristics will be used)")
            return False

        self._sentiment = sentiment
        self._zero_shot = zero_shot
        logger.info("ML models loaded successfully")
        return True

    async def classify(self, text: str, categories: Sequence[str] = ML_CATEGORIES) -> ClassificationOutcome:
        """
        Score text against each category independently.

        Args:
            text: Content to classify (truncated to the model's input limit)
            categories: Candidate labels for the zero-shot pipeline

        Returns:
            MLClassification on success, ModelUnavailable if the model could
            not be loaded or raised during inference
        """
        if not await self.load():
            return ModelUnavailable("ML model is not available")

        snippet = (text or "")[: self._max_chars]
        labels = list(categories)
        try:
            sentiment_raw, zero_shot_raw = await asyncio.gather(
                asyncio.to_thread(self._sentiment, snippet),
                asyncio.to_thread(self._zero_shot, snippet, candidate_labels=labels, multi_label=True),
            )
            negativity = parse_negativity(sentiment_raw)
            scores = parse_zero_shot(zero_shot_raw)
        except Exception as e:
            logger.warning(f"ML inference failed: {e}")
            return ModelUnavailable(f"ML inference failed: {e}")

        if not scores:
            return ModelUnavailable("ML model returned no category scores")

        category_scores = sorted(
            (CategoryScore(label, score, explain(label, score)) for label, score in scores),
            key=lambda c: c.score,
            reverse=True,
        )
        return MLClassification(categories=category_scores, sentiment_negativity=negativity)


def clamp(value: float) -> float:
    return max(0.0, min(1.0, float(value)))


def parse_negativity(raw: Any) -> float:
    """
    Turn a sentiment pipeline output ([{"label": ..., "score": ...}]) into
    a negativity value in [0, 1].
    """
    prediction = raw[0] if isinstance(raw, list) else raw
    label = str(prediction.get("label", "")).upper()
    score = clamp(prediction.get("score", 0.0))
    if label.startswith("NEG"):
        return score
    return clamp(1.0 - score)


def parse_zero_shot(raw: Any) -> List[Tuple[str, float]]:
    if isinstance(raw, list):
        raw = raw[0]
    return [(label, clamp(score)) for label, score in zip(raw["labels"], raw["scores"])]
