from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from modpanel.engine.classifier import PipelineFactory, TransformersClassifier
from modpanel.engine.orchestrator import DecisionEngine
from modpanel.engine.retriever import PolicyRetriever
from modpanel.services.queue import ModerationQueue
from modpanel.services.stream import StreamFeed
from modpanel.services.training import TrainingStore

SERVICES_KEY = "services"


@dataclass
class Services:
    engine: DecisionEngine
    queue: ModerationQueue
    training: TrainingStore
    stream: StreamFeed


def build_services(
    pipeline_factory: Optional[PipelineFactory] = None,
    enable_ml: Optional[bool] = None,
    training_step_delay: Optional[float] = None,
) -> Services:
    """Wire up one fresh set of services. Called once by the bot, once per test."""
    classifier_kwargs = {"pipeline_factory": pipeline_factory}
    if enable_ml is not None:
        classifier_kwargs["enabled"] = enable_ml
    engine = DecisionEngine(
        classifier=TransformersClassifier(**classifier_kwargs),
        retriever=PolicyRetriever(),
    )
    training = TrainingStore() if training_step_delay is None else TrainingStore(step_delay=training_step_delay)
    queue = ModerationQueue(engine)
    stream = StreamFeed(queue, training)
    return Services(engine=engine, queue=queue, training=training, stream=stream)


def get_services(context) -> Services:
    return context.bot_data[SERVICES_KEY]
