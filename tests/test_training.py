import asyncio
import sys
import os
import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from modpanel.errors import AlreadyInProgress, InsufficientData
from modpanel.models import Decision, ExampleSource, TrainingExample
from modpanel.services.training import SAMPLE_TRAINING_DATA, TrainingStore


def examples(n):
    return [TrainingExample("same text", Decision.APPROVED) for _ in range(n)]


def test_add_example_returns_running_count():
    store = TrainingStore()
    assert store.add_example(TrainingExample("a", Decision.FLAGGED)) == 1
    assert store.add_examples(examples(3)) == 4
    assert store.examples[0].source == ExampleSource.MANUAL
    assert store.label_counts() == {"approved": 3, "flagged": 1, "rejected": 0}


def test_clear_removes_examples_and_context():
    store = TrainingStore()
    store.add_example(TrainingExample("t", Decision.APPROVED, source=ExampleSource.TWITTER,
                                      context_data={"tweetId": "99", "keywords": ["x"], "region": "us"}))
    assert store.context_for("99") is not None

    store.clear()

    assert len(store) == 0
    assert store.context_for("99") is None


@pytest.mark.asyncio
async def test_train_with_four_examples_fails():
    store = TrainingStore(step_delay=0)
    store.add_examples(examples(4))

    with pytest.raises(InsufficientData) as exc:
        await store.train()

    assert exc.value.available == 4
    assert exc.value.required == 5
    assert store.session.in_progress is False


@pytest.mark.asyncio
async def test_train_with_five_examples_completes():
    store = TrainingStore(step_delay=0)
    store.add_examples(examples(5))

    session = await store.train()

    assert session.trained is True
    assert session.progress_percent == 0
    assert session.in_progress is False


@pytest.mark.asyncio
async def test_second_train_while_running_is_rejected():
    store = TrainingStore(step_delay=0.01)
    store.add_examples(examples(5))

    task = store.start_training()
    await asyncio.sleep(0.025)
    progress_before = store.session.progress_percent
    assert store.session.in_progress

    with pytest.raises(AlreadyInProgress):
        store.start_training()

    assert store.session.progress_percent == progress_before
    await task
    assert store.session.trained is True


@pytest.mark.asyncio
async def test_progress_moves_in_ten_percent_steps():
    store = TrainingStore(step_delay=0)
    store.add_examples(examples(5))
    seen = []
    unsubscribe = store.subscribe(seen.append)

    await store.train()
    unsubscribe()

    running = [s.progress_percent for s in seen if s.in_progress]
    assert running == [0, 10, 20, 30, 40, 50, 60, 70, 80, 90, 100]
    assert seen[-1].trained is True
    assert seen[-1].progress_percent == 0


@pytest.mark.asyncio
async def test_cancel_training_resets_progress():
    store = TrainingStore(step_delay=0.05)
    store.add_examples(examples(5))

    task = store.start_training()
    await asyncio.sleep(0.01)

    assert store.cancel_training() is True
    session = store.session
    assert session.in_progress is False
    assert session.progress_percent == 0
    assert session.trained is False

    await asyncio.wait({task})
    assert task.cancelled()
    assert store.cancel_training() is False


@pytest.mark.asyncio
async def test_session_snapshot_is_a_copy():
    store = TrainingStore(step_delay=0)
    snapshot = store.session
    snapshot.progress_percent = 55
    assert store.session.progress_percent == 0


def test_sample_data_covers_every_label():
    labels = {e.label for e in SAMPLE_TRAINING_DATA}
    assert labels == {Decision.APPROVED, Decision.FLAGGED, Decision.REJECTED}
    assert len(SAMPLE_TRAINING_DATA) >= 5
