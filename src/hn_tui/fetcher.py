from __future__ import annotations

import logging
import threading
import time
from collections import Counter
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from enum import Enum
from functools import partial
from typing import Callable, Dict, List, Optional, Sequence

from .client import HackerNewsClient
from .config import PAGE_SIZE, Settings
from .datamodels import Category, Story
from .errors import HNError, error_message

logger = logging.getLogger("hn")

UpdateCallback = Callable[[], None]


def paginate(ids: Sequence[int], offset: Optional[int], page_size: int) -> List[int]:
    """Slice one page out of a story id list; no offset means the whole list."""
    if offset is None:
        return list(ids)
    start = max(0, offset)
    return list(ids[start : start + page_size])


class StoryListFetcher:
    """Fetches the ordered story ids of a category, one request per call."""

    def __init__(
        self, client: HackerNewsClient, executor: Executor, page_size: int = PAGE_SIZE
    ):
        self.client = client
        self.executor = executor
        self.page_size = page_size

    def fetch(self, category: Category, offset: Optional[int] = None) -> Future:
        return self.executor.submit(self._fetch_ids, category, offset)

    def _fetch_ids(self, category: Category, offset: Optional[int]) -> List[int]:
        ids = self.client.get_story_ids(category)
        page = paginate(ids, offset, self.page_size)
        logger.debug(
            "%s: %d ids, keeping %d from offset %s", category.label, len(ids), len(page), offset
        )
        return page


class CardStatus(Enum):
    LOADING = "loading"
    READY = "ready"
    RETRYING = "retrying"
    FAILED = "failed"


class Card:
    """One story id and the outcome of its latest request.

    The request is issued on construction unless ``start`` is false. Only
    the completion callback of the current attempt may write the outcome, and
    only while ``is_current`` still holds for the list the card belongs to.
    Failures are retried from :meth:`poll` with exponential backoff until
    ``settings.retry_attempts`` retries have failed, after which the card
    stays FAILED until :meth:`retry` is called.
    """

    def __init__(
        self,
        story_id: int,
        client: HackerNewsClient,
        executor: Executor,
        settings: Optional[Settings] = None,
        is_current: Optional[Callable[[], bool]] = None,
        on_update: Optional[UpdateCallback] = None,
        clock: Callable[[], float] = time.monotonic,
        start: bool = True,
    ):
        self.story_id = story_id
        self._client = client
        self._executor = executor
        self._settings = settings or Settings()
        self._is_current = is_current or (lambda: True)
        self._on_update = on_update
        self._clock = clock

        self._lock = threading.Lock()
        self._status = CardStatus.LOADING
        self._story: Optional[Story] = None
        self._error: Optional[str] = None
        self._attempt = 0
        self._failures = 0
        self._in_flight = False
        self._retry_at = 0.0

        if start:
            self.fetch()

    def __repr__(self) -> str:
        return f"<Card {self.story_id} {self.status.value}>"

    @property
    def status(self) -> CardStatus:
        with self._lock:
            return self._status

    @property
    def story(self) -> Optional[Story]:
        with self._lock:
            return self._story

    @property
    def error(self) -> Optional[str]:
        with self._lock:
            return self._error

    @property
    def attempts(self) -> int:
        return self._attempt

    @property
    def failures(self) -> int:
        return self._failures

    def fetch(self) -> bool:
        """Issue a request for this card's story unless one is outstanding."""
        with self._lock:
            if self._in_flight:
                return False
            attempt = self._begin_attempt()
        self._submit(attempt)
        return True

    def poll(self) -> CardStatus:
        """Per-frame read; re-issues the request once a scheduled retry is due."""
        attempt = None
        with self._lock:
            if (
                self._status is CardStatus.RETRYING
                and not self._in_flight
                and self._clock() >= self._retry_at
            ):
                logger.debug(
                    "Retrying item %s after %d failure(s)", self.story_id, self._failures
                )
                attempt = self._begin_attempt()
        if attempt is not None:
            self._submit(attempt)
        return self.status

    def retry(self) -> bool:
        """Start over after a terminal failure."""
        with self._lock:
            if self._status is not CardStatus.FAILED:
                return False
            self._failures = 0
        logger.info("Manual retry of item %s", self.story_id)
        return self.fetch()

    def _begin_attempt(self) -> int:
        self._attempt += 1
        self._in_flight = True
        self._status = CardStatus.LOADING
        return self._attempt

    def _submit(self, attempt: int) -> None:
        try:
            future = self._executor.submit(self._client.get_story, self.story_id)
        except RuntimeError as e:
            # Executor already shut down, the app is closing
            logger.debug("Not fetching item %s: %s", self.story_id, e)
            return
        future.add_done_callback(partial(self._on_done, attempt))

    def _on_done(self, attempt: int, future: Future) -> None:
        if future.cancelled():
            return
        if not self._is_current():
            logger.debug("Discarding stale result for item %s", self.story_id)
            return
        try:
            story = future.result()
        except HNError as e:
            self._record_failure(attempt, error_message(e))
        except Exception as e:
            logger.exception("Unexpected error fetching item %s", self.story_id)
            self._record_failure(attempt, error_message(e))
        else:
            with self._lock:
                if attempt != self._attempt:
                    return
                self._in_flight = False
                self._story = story
                self._error = None
                self._status = CardStatus.READY
            logger.debug("Item %s ready: %s", self.story_id, story.title)
        self._notify()

    def _record_failure(self, attempt: int, message: str) -> None:
        with self._lock:
            if attempt != self._attempt:
                return
            self._in_flight = False
            self._error = message
            self._failures += 1
            if self._failures > self._settings.retry_attempts:
                self._status = CardStatus.FAILED
            else:
                self._status = CardStatus.RETRYING
                self._retry_at = self._clock() + self._settings.retry_delay(self._failures)
            failures = self._failures
            terminal = self._status is CardStatus.FAILED
        if terminal:
            logger.warning(
                "Giving up on item %s after %d failures: %s", self.story_id, failures, message
            )
        else:
            logger.debug("Item %s failed (%d): %s", self.story_id, failures, message)

    def _notify(self) -> None:
        if self._on_update is not None:
            self._on_update()


class FeedStatus(Enum):
    IDLE = "idle"
    LOADING = "loading"
    READY = "ready"
    FAILED = "failed"


class StoryFeed:
    """The story list shown by the UI: category, page and one Card per id.

    Every refresh bumps ``generation``. Results of requests issued for an
    older generation are dropped, both for the list itself and for its cards.
    """

    def __init__(
        self,
        client: HackerNewsClient,
        settings: Optional[Settings] = None,
        executor: Optional[Executor] = None,
        on_update: Optional[UpdateCallback] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.client = client
        self.settings = settings or Settings()
        self._owns_executor = executor is None
        self._executor = executor or ThreadPoolExecutor(
            max_workers=self.settings.max_workers, thread_name_prefix="hn-fetch"
        )
        self.fetcher = StoryListFetcher(client, self._executor, self.settings.page_size)
        self._on_update = on_update
        self._clock = clock
        self._lock = threading.Lock()

        self.category = self.settings.category
        self.offset = 0
        self.generation = 0
        self.status = FeedStatus.IDLE
        self.error: Optional[str] = None
        self.cards: List[Card] = []
        self.total: Optional[int] = None

    @property
    def page(self) -> int:
        return self.offset // self.settings.page_size + 1

    def is_current(self, generation: int) -> bool:
        return generation == self.generation

    def refresh(self, category: Optional[Category] = None, offset: Optional[int] = None) -> int:
        with self._lock:
            if category is not None and category is not self.category:
                self.category = category
                self.offset = 0
            if offset is not None:
                self.offset = max(0, offset)
            self.generation += 1
            generation = self.generation
            offset = self.offset
            self.cards = []
            self.total = None
            self.status = FeedStatus.LOADING
            self.error = None
        logger.info(
            "Refreshing %s page %d (generation %d)", self.category.label, self.page, generation
        )
        # Whole list, so the page can be cut here and the total remembered
        future = self.fetcher.fetch(self.category)
        future.add_done_callback(partial(self._on_ids, generation, offset))
        return generation

    @property
    def has_next_page(self) -> bool:
        if self.total is None:
            return False
        return self.offset + self.settings.page_size < self.total

    def next_page(self) -> Optional[int]:
        if not self.has_next_page:
            return None
        return self.refresh(offset=self.offset + self.settings.page_size)

    def previous_page(self) -> int:
        return self.refresh(offset=max(0, self.offset - self.settings.page_size))

    def poll(self) -> List[CardStatus]:
        return [card.poll() for card in list(self.cards)]

    def counts(self) -> Dict[CardStatus, int]:
        return Counter(card.status for card in list(self.cards))

    def close(self) -> None:
        with self._lock:
            self.generation += 1
        if self._owns_executor:
            self._executor.shutdown(wait=False, cancel_futures=True)

    def _on_ids(self, generation: int, offset: int, future: Future) -> None:
        if future.cancelled():
            return
        if not self.is_current(generation):
            logger.debug(
                "Discarding stale story list (generation %d, now %d)",
                generation,
                self.generation,
            )
            return
        try:
            all_ids = future.result()
        except HNError as e:
            self._fail(generation, error_message(e))
            return
        except Exception as e:
            logger.exception("Unexpected error fetching %s", self.category.label)
            self._fail(generation, error_message(e))
            return

        ids = paginate(all_ids, offset, self.settings.page_size)
        with self._lock:
            if not self.is_current(generation):
                return
            cards = [
                Card(
                    story_id,
                    self.client,
                    self._executor,
                    settings=self.settings,
                    is_current=partial(self.is_current, generation),
                    on_update=self._on_update,
                    clock=self._clock,
                    start=False,
                )
                for story_id in ids
            ]
            self.cards = cards
            self.total = len(all_ids)
            self.status = FeedStatus.READY
        logger.info(
            "Loaded %d of %d stories (generation %d)", len(cards), len(all_ids), generation
        )
        self._notify()
        for card in cards:
            if not self.is_current(generation):
                break
            card.fetch()

    def _fail(self, generation: int, message: str) -> None:
        with self._lock:
            if not self.is_current(generation):
                return
            self.status = FeedStatus.FAILED
            self.error = message
        logger.warning("Failed to load %s: %s", self.category.label, message)
        self._notify()

    def _notify(self) -> None:
        if self._on_update is not None:
            self._on_update()
