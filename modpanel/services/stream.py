"""
Stream feed.
Polls the Twitter v2 recent-search endpoint for the configured keywords and
feeds every new post into the moderation queue. With context training on,
each analyzed post is also stored as a training example labeled with the
engine's decision.
"""
from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Tuple

import httpx

from config import (
    REGION_LANGUAGES,
    STREAM_DEFAULT_REGION,
    STREAM_MAX_RESULTS,
    STREAM_POLL_INTERVAL,
    STREAM_SEEN_WINDOW,
    TWITTER_BEARER_TOKEN,
    TWITTER_SEARCH_URL,
)
from modpanel.errors import StreamNotConfigured
from modpanel.models import ExampleSource, ModerationItem, TrainingExample
from modpanel.services.queue import ModerationQueue
from modpanel.services.training import TrainingStore

logger = logging.getLogger(__name__)

StatusListener = Callable[[bool], None]
StreamPost = Tuple[str, Dict[str, Any]]


@dataclass
class StreamConfig:
    bearer_token: str = TWITTER_BEARER_TOKEN
    keywords: List[str] = field(default_factory=list)
    region: str = STREAM_DEFAULT_REGION
    is_active: bool = False
    context_training_enabled: bool = False


def build_query(keywords: List[str], region: str) -> str:
    terms = " OR ".join(f'"{k}"' if " " in k else k for k in keywords)
    query = f"({terms}) -is:retweet"
    lang = REGION_LANGUAGES.get(region.lower())
    if lang:
        query += f" lang:{lang}"
    return query


class StreamFeed:
    def __init__(
        self,
        queue: ModerationQueue,
        training_store: TrainingStore,
        config: Optional[StreamConfig] = None,
        search_url: str = TWITTER_SEARCH_URL,
        poll_interval: float = STREAM_POLL_INTERVAL,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        seen_window: float = STREAM_SEEN_WINDOW,
    ):
        self.queue = queue
        self.training_store = training_store
        self.config = config or StreamConfig()
        self.search_url = search_url
        self.poll_interval = poll_interval
        self.seen_window = seen_window
        self._transport = transport
        # tweet id -> timestamp first queued
        self._seen: Dict[str, float] = {}
        self._poll_task: Optional[asyncio.Task] = None
        self._connection_listeners: List[StatusListener] = []
        self._training_listeners: List[StatusListener] = []

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------
    def set_bearer_token(self, token: str) -> None:
        self.config.bearer_token = token.strip()

    def set_keywords(self, keywords: List[str]) -> None:
        self.config.keywords = [k.strip() for k in keywords if k and k.strip()]

    def set_region(self, region: str) -> None:
        self.config.region = region.strip().lower()

    def set_context_training_enabled(self, enabled: bool) -> None:
        self.config.context_training_enabled = enabled
        logger.info(f"Context training {'enabled' if enabled else 'disabled'}")
        self._emit(self._training_listeners, enabled)

    @property
    def is_active(self) -> bool:
        return self.config.is_active

    # ------------------------------------------------------------------
    # Listeners
    # ------------------------------------------------------------------
    def on_connection_change(self, listener: StatusListener) -> Callable[[], None]:
        return self._add_listener(self._connection_listeners, listener)

    def on_context_training_change(self, listener: StatusListener) -> Callable[[], None]:
        return self._add_listener(self._training_listeners, listener)

    @staticmethod
    def _add_listener(listeners: List[StatusListener], listener: StatusListener) -> Callable[[], None]:
        listeners.append(listener)

        def unsubscribe() -> None:
            if listener in listeners:
                listeners.remove(listener)

        return unsubscribe

    @staticmethod
    def _emit(listeners: List[StatusListener], value: bool) -> None:
        for listener in list(listeners):
            try:
                listener(value)
            except Exception as e:
                logger.error(f"Stream listener failed: {e}", exc_info=True)

    # ------------------------------------------------------------------
    # Connection
    # ------------------------------------------------------------------
    def connect(self, start_polling: bool = True) -> None:
        """
        Mark the feed active and (optionally) start the background poll loop.

        Raises:
            StreamNotConfigured: no bearer token or no keywords
        """
        if not self.config.bearer_token:
            raise StreamNotConfigured("Twitter bearer token is not set")
        if not self.config.keywords:
            raise StreamNotConfigured("Add at least one keyword before connecting")
        if self.config.is_active:
            return

        self.config.is_active = True
        logger.info(f"Stream connected: keywords={self.config.keywords} region={self.config.region}")
        self._emit(self._connection_listeners, True)
        if start_polling:
            self._poll_task = asyncio.get_running_loop().create_task(self._poll_loop())

    def disconnect(self) -> None:
        if self._poll_task is not None:
            self._poll_task.cancel()
            self._poll_task = None
        if not self.config.is_active:
            return
        self.config.is_active = False
        logger.info("Stream disconnected")
        self._emit(self._connection_listeners, False)

    async def _poll_loop(self) -> None:
        while self.config.is_active:
            try:
                await self.poll_once()
            except Exception as e:
                logger.error(f"Stream poll failed: {e}", exc_info=True)
            await asyncio.sleep(self.poll_interval)

    # ------------------------------------------------------------------
    # Fetching
    # ------------------------------------------------------------------
    async def fetch_recent(self) -> List[StreamPost]:
        """
        Query recent posts matching the keywords.

        Returns:
            (content, source_metadata) pairs; empty on HTTP or API errors
        """
        params = {
            "query": build_query(self.config.keywords, self.config.region),
            "max_results": STREAM_MAX_RESULTS,
            "tweet.fields": "created_at,lang,author_id",
        }
        headers = {"Authorization": f"Bearer {self.config.bearer_token}"}
        try:
            async with httpx.AsyncClient(timeout=15.0, transport=self._transport) as client:
                response = await client.get(self.search_url, params=params, headers=headers)
            response.raise_for_status()
            payload = response.json()
        except httpx.HTTPError as e:
            logger.error(f"Twitter search failed: {e}")
            return []
        except ValueError as e:
            logger.error(f"Twitter search returned invalid JSON: {e}")
            return []

        posts = []
        for tweet in payload.get("data") or []:
            text = tweet.get("text")
            if not text:
                continue
            posts.append((text, {
                "tweetId": tweet.get("id"),
                "authorId": tweet.get("author_id"),
                "createdAt": tweet.get("created_at"),
                "lang": tweet.get("lang"),
                "keywords": list(self.config.keywords),
                "region": self.config.region,
            }))
        return posts

    async def poll_once(self) -> List[ModerationItem]:
        """Fetch, analyze and queue unseen posts. Returns the new queue items."""
        if not self.config.is_active:
            return []

        items = []
        posts = await self.fetch_recent()
        now = datetime.now().timestamp()
        for key, ts in list(self._seen.items()):
            if now - ts > self.seen_window:
                self._seen.pop(key, None)

        for content, metadata in posts:
            tweet_id = str(metadata.get("tweetId") or "")
            if tweet_id and tweet_id in self._seen:
                continue
            if tweet_id:
                self._seen[tweet_id] = now

            item = await self.queue.process_content(content, source="twitter", source_metadata=metadata)
            items.append(item)

            # An id that aged out of the window can come back; record it once
            if self.config.context_training_enabled and not self.training_store.context_for(tweet_id):
                self.training_store.add_example(TrainingExample(
                    content=content,
                    label=item.status,
                    source=ExampleSource.TWITTER,
                    context_data={
                        "keywords": list(self.config.keywords),
                        "region": self.config.region,
                        "tweetId": tweet_id or None,
                    },
                ))

        if items:
            logger.info(f"Stream queued {len(items)} new posts")
        return items
