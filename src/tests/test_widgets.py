from __future__ import annotations

from rich.style import Style

from conftest import make_story
from hn_tui.config import Settings
from hn_tui.errors import TransportError
from hn_tui.fetcher import Card, StoryFeed
from hn_tui.screens import story_markdown
from hn_tui.widgets import LINK_COLORS, card_text, feed_summary

NOW = 1_700_000_000 + 3600


def _link_colors(text):
    return {
        span.style.color.name
        for span in text.spans
        if isinstance(span.style, Style) and span.style.link
    }


def test_ready_card(client, sync_executor):
    client.get_story.side_effect = lambda i: make_story(i, descendants=3, score=42)
    card = Card(5, client, sync_executor)

    text = card_text(1, card, Settings(), NOW)

    assert text.plain == (
        "  1. Story 5\n     42 points · example.com · 1 hr · by pg · 3 comments"
    )


def test_link_color_follows_settings(client, sync_executor):
    card = Card(5, client, sync_executor)

    dark = card_text(1, card, Settings(dark=True), NOW)
    light = card_text(1, card, Settings(dark=False), NOW)

    assert _link_colors(dark) == {LINK_COLORS[True]}
    assert _link_colors(light) == {LINK_COLORS[False]}


def test_loading_card(client, manual_executor):
    card = Card(5, client, manual_executor)

    assert card_text(12, card, Settings(), NOW).plain == " 12. loading…"


def test_retrying_card(client, sync_executor):
    client.get_story.side_effect = TransportError("timed out")
    card = Card(5, client, sync_executor)

    assert card_text(2, card, Settings(), NOW).plain == "  2. retrying item 5: timed out"


def test_failed_card(client, sync_executor):
    client.get_story.side_effect = TransportError("")
    card = Card(5, client, sync_executor, settings=Settings(retry_attempts=0))

    assert card_text(2, card, Settings(), NOW).plain == (
        "  2. item 5 failed after 1 attempt: Error\n     enter to retry"
    )


def test_failed_card_counts_failures_since_manual_retry(client, sync_executor):
    client.get_story.side_effect = TransportError("gone")
    settings = Settings(retry_attempts=1, initial_retry_delay=0)
    card = Card(5, client, sync_executor, settings=settings)
    card.poll()
    assert card_text(2, card, Settings(), NOW).plain.startswith(
        "  2. item 5 failed after 2 attempts: gone"
    )

    card.retry()
    card.poll()

    assert card.attempts == 4
    assert card_text(2, card, Settings(), NOW).plain.startswith(
        "  2. item 5 failed after 2 attempts: gone"
    )


def test_feed_summary_before_first_load(client, manual_executor):
    feed = StoryFeed(client, executor=manual_executor)
    assert feed_summary(feed) == "Top Stories p.1"

    feed.refresh()
    assert feed_summary(feed) == "Top Stories p.1 loading…"


def test_feed_summary_counts_pages_and_cards(client, sync_executor):
    client.get_story_ids.return_value = list(range(1, 26))

    def get_story(story_id):
        if story_id == 12:
            raise TransportError("x")
        return make_story(story_id)

    client.get_story.side_effect = get_story
    feed = StoryFeed(
        client, settings=Settings(page_size=10, retry_attempts=0), executor=sync_executor
    )

    feed.refresh()
    assert feed_summary(feed) == "Top Stories p.1/3 10/10 loaded"

    feed.next_page()
    assert feed_summary(feed) == "Top Stories p.2/3 9/10 loaded, 1 failed"


def test_feed_summary_list_failure(client, sync_executor):
    client.get_story_ids.side_effect = TransportError("down")
    feed = StoryFeed(client, executor=sync_executor)

    feed.refresh()

    assert feed_summary(feed) == "Top Stories p.1 failed"


def test_story_markdown():
    story = make_story(9, url=None, text="Hi<p>there", descendants=0)

    md = story_markdown(story, NOW)

    assert md.startswith("# Story 9\n\n10 points · by pg · 1 hr · [0 comments](")
    assert "<https://news.ycombinator.com/item?id=9>" in md
    assert md.endswith("---\n\nHi\n\nthere\n")
