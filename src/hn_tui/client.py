from __future__ import annotations

import logging
from typing import Any, List, Optional

import requests
from requests.adapters import HTTPAdapter

from .config import API_BASE_URL, HTTP_TIMEOUT, MAX_WORKERS, REQUEST_HEADERS
from .datamodels import Category, Story
from .errors import DecodeError, TransportError

logger = logging.getLogger("hn")


class HackerNewsClient:
    """Blocking client for the Hacker News Firebase API.

    Every call issues exactly one GET. Retrying is left to the caller, so the
    session is mounted without adapter-level retries.
    """

    def __init__(
        self,
        base_url: str = API_BASE_URL,
        timeout: float = HTTP_TIMEOUT,
        session: Optional[requests.Session] = None,
        pool_size: int = MAX_WORKERS,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or self._create_session(pool_size)

    def _create_session(self, pool_size: int) -> requests.Session:
        s = requests.Session()
        s.headers.update(REQUEST_HEADERS)
        # One pooled connection per worker thread
        adapter = HTTPAdapter(pool_connections=1, pool_maxsize=pool_size, max_retries=0)
        s.mount("https://", adapter)
        s.mount("http://", adapter)
        return s

    def list_url(self, category: Category) -> str:
        return f"{self.base_url}/{category.endpoint}"

    def item_url(self, story_id: int) -> str:
        return f"{self.base_url}/item/{story_id}.json"

    def _get_json(self, url: str) -> Any:
        logger.debug("Fetching %s", url)
        try:
            resp = self.session.get(url, timeout=self.timeout)
            resp.raise_for_status()
        except requests.RequestException as e:
            logger.debug("Fetch failed for %s: %s", url, e)
            raise TransportError(str(e)) from e
        try:
            data = resp.json()
        except ValueError as e:
            logger.debug("Invalid JSON from %s: %s", url, e)
            raise DecodeError(f"invalid JSON from {url}") from e
        logger.debug("Fetched %s OK", url)
        return data

    def get_story_ids(self, category: Category) -> List[int]:
        data = self._get_json(self.list_url(category))
        if not isinstance(data, list):
            raise DecodeError(
                f"{category.endpoint}: expected a list, got {type(data).__name__}"
            )
        if not all(isinstance(i, int) and not isinstance(i, bool) for i in data):
            raise DecodeError(f"{category.endpoint}: story ids must be integers")
        return data

    def get_story(self, story_id: int) -> Story:
        return Story.from_dict(self._get_json(self.item_url(story_id)), story_id)

    def close(self) -> None:
        self.session.close()
