from __future__ import annotations

from unittest.mock import MagicMock

import pytest
import requests
from requests.adapters import HTTPAdapter

from hn_tui.client import HackerNewsClient
from hn_tui.config import API_BASE_URL, HTTP_TIMEOUT
from hn_tui.datamodels import Category
from hn_tui.errors import DecodeError, TransportError


def _response(payload):
    resp = MagicMock()
    resp.json.return_value = payload
    return resp


@pytest.fixture
def session():
    return MagicMock()


@pytest.fixture
def hn(session):
    return HackerNewsClient(session=session)


@pytest.mark.parametrize(
    "category, endpoint",
    [
        (Category.TOP, "topstories.json"),
        (Category.NEW, "newstories.json"),
        (Category.BEST, "beststories.json"),
    ],
)
def test_story_ids_endpoint_per_category(hn, session, category, endpoint):
    session.get.return_value = _response([3, 1, 2])

    assert hn.get_story_ids(category) == [3, 1, 2]
    session.get.assert_called_once_with(f"{API_BASE_URL}/{endpoint}", timeout=HTTP_TIMEOUT)


def test_get_story(hn, session):
    session.get.return_value = _response(
        {"by": "dang", "score": 99, "time": 1700000000, "title": "Hello", "type": "story"}
    )

    story = hn.get_story(8863)

    session.get.assert_called_once_with(f"{API_BASE_URL}/item/8863.json", timeout=HTTP_TIMEOUT)
    assert story.id == 8863
    assert story.title == "Hello"
    assert story.url is None


def test_base_url_trailing_slash_is_ignored(session):
    hn = HackerNewsClient(base_url="https://hn.test/v0/", session=session)
    assert hn.item_url(1) == "https://hn.test/v0/item/1.json"
    assert hn.list_url(Category.BEST) == "https://hn.test/v0/beststories.json"


def test_connection_error_is_transport_error(hn, session):
    session.get.side_effect = requests.ConnectionError("connection refused")

    with pytest.raises(TransportError, match="connection refused"):
        hn.get_story_ids(Category.TOP)


def test_http_status_is_transport_error(hn, session):
    resp = _response(None)
    resp.raise_for_status.side_effect = requests.HTTPError("503 Server Error")
    session.get.return_value = resp

    with pytest.raises(TransportError):
        hn.get_story(1)


def test_invalid_json_is_decode_error(hn, session):
    resp = MagicMock()
    resp.json.side_effect = ValueError("Expecting value")
    session.get.return_value = resp

    with pytest.raises(DecodeError):
        hn.get_story_ids(Category.NEW)


@pytest.mark.parametrize("payload", [{"ids": [1]}, None, [1, "2"], [True]])
def test_unexpected_id_list_is_decode_error(hn, session, payload):
    session.get.return_value = _response(payload)

    with pytest.raises(DecodeError):
        hn.get_story_ids(Category.TOP)


def test_missing_item_is_decode_error(hn, session):
    session.get.return_value = _response(None)

    with pytest.raises(DecodeError, match="does not exist"):
        hn.get_story(123)


def test_default_session():
    hn = HackerNewsClient(pool_size=4)
    try:
        assert "hn-tui" in hn.session.headers["User-Agent"]
        adapter = hn.session.get_adapter("https://hacker-news.firebaseio.com")
        assert isinstance(adapter, HTTPAdapter)
        assert adapter.max_retries.total == 0
    finally:
        hn.close()
