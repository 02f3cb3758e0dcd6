import sys
import os
import httpx
import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from modpanel.engine.orchestrator import DecisionEngine
from modpanel.errors import StreamNotConfigured
from modpanel.models import Decision, ExampleSource
from modpanel.services.queue import ModerationQueue
from modpanel.services.stream import StreamConfig, StreamFeed, build_query
from modpanel.services.training import TrainingStore

TWEETS = {
    "data": [
        {"id": "101", "text": "I love this sunny day", "author_id": "7", "lang": "en"},
        {"id": "102", "text": "I will kill you", "author_id": "8", "lang": "en"},
    ]
}


class FakeSearchApi:
    def __init__(self, payload=None, status_code=200):
        self.payload = payload if payload is not None else TWEETS
        self.status_code = status_code
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return httpx.Response(self.status_code, json=self.payload)


def make_feed(api, context_training=False, keywords=("python",), seen_window=300):
    store = TrainingStore()
    queue = ModerationQueue(DecisionEngine(classifier=None))
    config = StreamConfig(
        bearer_token="token-123",
        keywords=list(keywords),
        region="us",
        context_training_enabled=context_training,
    )
    feed = StreamFeed(queue, store, config=config, transport=httpx.MockTransport(api), seen_window=seen_window)
    return feed, queue, store


def test_build_query():
    assert build_query(["python", "open source"], "de") == '(python OR "open source") -is:retweet lang:de'
    assert build_query(["x"], "zz") == "(x) -is:retweet"


@pytest.mark.asyncio
async def test_poll_once_queues_posts():
    api = FakeSearchApi()
    feed, queue, store = make_feed(api)
    feed.connect(start_polling=False)

    items = await feed.poll_once()

    assert [i.status for i in items] == [Decision.APPROVED, Decision.REJECTED]
    assert len(queue) == 2
    assert items[0].source == "twitter"
    assert items[0].source_metadata["tweetId"] == "101"
    assert len(store) == 0

    request = api.requests[0]
    assert request.headers["Authorization"] == "Bearer token-123"
    assert "python" in request.url.params["query"]
    assert "lang:en" in request.url.params["query"]


@pytest.mark.asyncio
async def test_seen_posts_are_not_requeued():
    feed, queue, _ = make_feed(FakeSearchApi())
    feed.connect(start_polling=False)

    await feed.poll_once()
    again = await feed.poll_once()

    assert again == []
    assert len(queue) == 2


@pytest.mark.asyncio
async def test_seen_ids_expire_after_window():
    feed, queue, store = make_feed(FakeSearchApi(), context_training=True)
    feed.connect(start_polling=False)

    await feed.poll_once()
    for tweet_id in list(feed._seen):
        feed._seen[tweet_id] -= 301
    again = await feed.poll_once()

    assert [i.source_metadata["tweetId"] for i in again] == ["101", "102"]
    assert len(queue) == 4
    assert len(store) == 2
    assert len(feed._seen) == 2


@pytest.mark.asyncio
async def test_context_training_records_examples():
    feed, _, store = make_feed(FakeSearchApi(), context_training=True)
    feed.connect(start_polling=False)

    await feed.poll_once()

    assert len(store) == 2
    example = store.examples[1]
    assert example.source == ExampleSource.TWITTER
    assert example.label == Decision.REJECTED
    assert example.context_data == {"keywords": ["python"], "region": "us", "tweetId": "102"}


@pytest.mark.asyncio
async def test_http_error_yields_no_posts():
    feed, queue, _ = make_feed(FakeSearchApi(payload={"title": "Unauthorized"}, status_code=401))
    feed.connect(start_polling=False)

    assert await feed.poll_once() == []
    assert len(queue) == 0


@pytest.mark.asyncio
async def test_poll_when_disconnected_does_nothing():
    api = FakeSearchApi()
    feed, _, _ = make_feed(api)

    assert await feed.poll_once() == []
    assert api.requests == []


def test_connect_requires_token_and_keywords():
    feed, _, _ = make_feed(FakeSearchApi(), keywords=())
    with pytest.raises(StreamNotConfigured):
        feed.connect(start_polling=False)

    feed.set_keywords(["python"])
    feed.set_bearer_token("")
    with pytest.raises(StreamNotConfigured):
        feed.connect(start_polling=False)


def test_listeners_follow_connection_and_training_state():
    feed, _, _ = make_feed(FakeSearchApi())
    connection, training = [], []
    feed.on_connection_change(connection.append)
    unsubscribe = feed.on_context_training_change(training.append)

    feed.connect(start_polling=False)
    feed.disconnect()
    feed.set_context_training_enabled(True)
    unsubscribe()
    feed.set_context_training_enabled(False)

    assert connection == [True, False]
    assert training == [True]
    assert feed.is_active is False


def test_setters_normalize_input():
    feed, _, _ = make_feed(FakeSearchApi())
    feed.set_keywords([" ai ", "", "ml"])
    feed.set_region(" UK ")
    assert feed.config.keywords == ["ai", "ml"]
    assert feed.config.region == "uk"
