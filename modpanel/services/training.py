from __future__ import annotations

import asyncio
import dataclasses
import logging
from typing import Any, Callable, Dict, Iterable, List, Optional

from config import MIN_TRAINING_EXAMPLES, TRAINING_STEP_DELAY, TRAINING_STEPS
from modpanel.errors import AlreadyInProgress, InsufficientData
from modpanel.models import Decision, TrainingExample, TrainingSession

logger = logging.getLogger(__name__)

ProgressListener = Callable[[TrainingSession], None]


class TrainingStore:
    """
    In-memory labeled examples plus a simulated training session.

    Training is a background asyncio.Task that advances progress in equal
    steps (10% each by default) with a pause between steps, then marks the
    store trained and resets progress to 0. Only one session runs at a time.
    Being trained has no effect on classification.
    """

    def __init__(
        self,
        min_examples: int = MIN_TRAINING_EXAMPLES,
        steps: int = TRAINING_STEPS,
        step_delay: float = TRAINING_STEP_DELAY,
    ):
        self.min_examples = min_examples
        self.steps = steps
        self.step_delay = step_delay
        self._examples: List[TrainingExample] = []
        self._context_cache: Dict[str, Dict[str, Any]] = {}
        self._session = TrainingSession()
        self._task: Optional[asyncio.Task] = None
        self._listeners: List[ProgressListener] = []

    def __len__(self) -> int:
        return len(self._examples)

    @property
    def examples(self) -> List[TrainingExample]:
        return list(self._examples)

    @property
    def session(self) -> TrainingSession:
        """Snapshot of the current session state."""
        return dataclasses.replace(self._session)

    # ------------------------------------------------------------------
    # Examples
    # ------------------------------------------------------------------
    def add_example(self, example: TrainingExample) -> int:
        self._examples.append(example)
        item_id = (example.context_data or {}).get("tweetId")
        if item_id:
            self._context_cache[str(item_id)] = example.context_data
        return len(self._examples)

    def add_examples(self, examples: Iterable[TrainingExample]) -> int:
        for example in examples:
            self.add_example(example)
        return len(self._examples)

    def context_for(self, item_id: str) -> Optional[Dict[str, Any]]:
        """Context recorded for a streamed item, if it was already used as an example."""
        return self._context_cache.get(str(item_id))

    def clear(self) -> None:
        self._examples.clear()
        self._context_cache.clear()
        logger.info("Training examples cleared")

    def label_counts(self) -> Dict[str, int]:
        counts = {d.value: 0 for d in Decision}
        for example in self._examples:
            counts[example.label.value] += 1
        return counts

    # ------------------------------------------------------------------
    # Session
    # ------------------------------------------------------------------
    def subscribe(self, listener: ProgressListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        snapshot = self.session
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception as e:
                logger.error(f"Training listener failed: {e}", exc_info=True)

    def start_training(self) -> asyncio.Task:
        """
        Validate and launch a training session in the background.

        Raises:
            AlreadyInProgress: a session is running
            InsufficientData: fewer than min_examples examples are stored
        """
        if self._session.in_progress:
            raise AlreadyInProgress("A training session is already running")
        if len(self._examples) < self.min_examples:
            raise InsufficientData(len(self._examples), self.min_examples)

        self._session = TrainingSession(in_progress=True, progress_percent=0, trained=self._session.trained)
        logger.info(f"Training started on {len(self._examples)} examples")
        self._notify()
        self._task = asyncio.get_running_loop().create_task(self._run())
        return self._task

    async def train(self) -> TrainingSession:
        """Start a session and wait for it to finish (or be cancelled)."""
        task = self.start_training()
        await asyncio.wait({task})
        return self.session

    async def _run(self) -> None:
        for step in range(1, self.steps + 1):
            await asyncio.sleep(self.step_delay)
            self._session.progress_percent = round(step * 100 / self.steps)
            self._notify()

        self._session = TrainingSession(in_progress=False, progress_percent=0, trained=True)
        logger.info("Training complete")
        self._notify()

    def cancel_training(self) -> bool:
        """Abort the running session. Returns False when nothing was running."""
        if not self._session.in_progress or self._task is None:
            return False
        self._task.cancel()
        self._session = TrainingSession(in_progress=False, progress_percent=0, trained=self._session.trained)
        logger.info("Training cancelled")
        self._notify()
        return True


SAMPLE_TRAINING_DATA: List[TrainingExample] = [
    TrainingExample("Thanks for sharing, this was really helpful!", Decision.APPROVED),
    TrainingExample("Great game last night, the team played brilliantly.", Decision.APPROVED),
    TrainingExample("Looking forward to the conference next week.", Decision.APPROVED),
    TrainingExample("I respectfully disagree with this policy change.", Decision.APPROVED),
    TrainingExample("This is the dumbest take I have read all week.", Decision.FLAGGED, ["harassment"]),
    TrainingExample("What the hell is wrong with these people?", Decision.FLAGGED, ["profanity"]),
    TrainingExample("Anyone who believes this is a complete idiot.", Decision.FLAGGED, ["harassment"]),
    TrainingExample("Vaccines contain tracking chips, share before they delete this!", Decision.FLAGGED, ["misinformation"]),
    TrainingExample("I will find where you live and hurt you.", Decision.REJECTED, ["threats"]),
    TrainingExample("People like you should die.", Decision.REJECTED, ["threats", "hate speech"]),
    TrainingExample("Posting her home address and phone number so everyone can visit.", Decision.REJECTED, ["privacy violation"]),
    TrainingExample("Buy followers now!!! Click this link to boost your engagement 1000x", Decision.REJECTED, ["spam"]),
]
