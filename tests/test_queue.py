import sys
import os
import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from modpanel.engine.orchestrator import DecisionEngine
from modpanel.errors import TweetNotFound
from modpanel.models import Decision
from modpanel.services.metrics import compute_statistics
from modpanel.services.queue import ModerationQueue


def make_queue():
    return ModerationQueue(DecisionEngine(classifier=None))


@pytest.mark.asyncio
async def test_process_content_prepends_item_with_decision_status():
    queue = make_queue()
    snapshots = []
    queue.subscribe(snapshots.append)

    first = await queue.process_content("I love this sunny day")
    second = await queue.process_content("I will kill you", source="twitter", source_metadata={"tweetId": "1"})

    assert first.id.startswith("item-")
    assert first.status == Decision.APPROVED
    assert second.status == Decision.REJECTED
    assert second.source_metadata == {"tweetId": "1"}
    assert [i.id for i in queue.get_all()] == [second.id, first.id]
    assert len(snapshots) == 2


@pytest.mark.asyncio
async def test_update_status_overrides_decision():
    queue = make_queue()
    item = await queue.process_content("I will kill you")

    queue.update_status(item.id, Decision.APPROVED)

    assert queue.get(item.id).status == Decision.APPROVED
    assert queue.get_by_status(Decision.REJECTED) == []


@pytest.mark.asyncio
async def test_update_unknown_item_raises_and_changes_nothing():
    queue = make_queue()
    item = await queue.process_content("You are worthless")

    with pytest.raises(TweetNotFound) as exc:
        queue.update_status("item-missing", Decision.REJECTED)

    assert exc.value.item_id == "item-missing"
    assert queue.get(item.id).status == Decision.FLAGGED


@pytest.mark.asyncio
async def test_compute_statistics():
    queue = make_queue()
    await queue.process_content("I love this sunny day")
    await queue.process_content("You are worthless")
    await queue.process_content("I will kill you", source="twitter")

    stats = compute_statistics(queue.get_all())

    assert stats["total"] == 3
    assert stats["approved"] == 1
    assert stats["flagged"] == 1
    assert stats["rejected"] == 1
    assert stats["sources"] == {"manual": 2, "twitter": 1}
    assert stats["category_averages"]["Threats"] == pytest.approx((0.1 + 0.1 + 0.9) / 3)
    averages = list(stats["category_averages"].values())
    assert averages == sorted(averages, reverse=True)


def test_compute_statistics_empty():
    stats = compute_statistics([])
    assert stats["total"] == 0
    assert stats["category_averages"] == {}
