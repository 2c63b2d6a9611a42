from __future__ import annotations

from collections import deque
from concurrent.futures import Executor, Future
from unittest.mock import MagicMock

import pytest

from hn_tui.client import HackerNewsClient
from hn_tui.datamodels import Story


class SyncExecutor(Executor):
    """Runs every task inside submit(), so callbacks fire immediately."""

    def submit(self, fn, *args, **kwargs):
        future = Future()
        try:
            result = fn(*args, **kwargs)
        except Exception as e:
            future.set_exception(e)
        else:
            future.set_result(result)
        return future


class ManualExecutor(Executor):
    """Queues tasks until the test decides to run them."""

    def __init__(self):
        self.pending = deque()

    def submit(self, fn, *args, **kwargs):
        future = Future()
        self.pending.append((future, fn, args, kwargs))
        return future

    def run_next(self) -> None:
        future, fn, args, kwargs = self.pending.popleft()
        try:
            result = fn(*args, **kwargs)
        except Exception as e:
            future.set_exception(e)
        else:
            future.set_result(result)

    def run_all(self) -> None:
        while self.pending:
            self.run_next()


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


def make_story(story_id: int, **overrides) -> Story:
    fields = {
        "id": story_id,
        "by": "pg",
        "score": 10,
        "time": 1_700_000_000,
        "title": f"Story {story_id}",
        "type": "story",
        "url": f"https://example.com/{story_id}",
    }
    fields.update(overrides)
    return Story(**fields)


@pytest.fixture
def sync_executor():
    return SyncExecutor()


@pytest.fixture
def manual_executor():
    return ManualExecutor()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def client():
    mock = MagicMock(spec=HackerNewsClient)
    mock.get_story.side_effect = make_story
    return mock
