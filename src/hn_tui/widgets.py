from __future__ import annotations

from typing import Optional, Tuple

from rich.style import Style
from rich.text import Text
from textual.app import ComposeResult
from textual.reactive import reactive
from textual.widget import Widget
from textual.widgets import ListItem, Static

from .config import Settings
from .fetcher import Card, CardStatus, FeedStatus, StoryFeed
from .timeago import format_age

LINK_COLORS = {True: "light_sky_blue1", False: "red"}
INDENT = "     "


def card_text(
    position: int, card: Card, settings: Settings, now: Optional[float] = None
) -> Text:
    """Render one card for the current frame."""
    text = Text()
    text.append(f"{position:>3}. ", style="dim")
    status = card.status

    if status is CardStatus.READY:
        story = card.story
        link_color = LINK_COLORS[settings.dark]
        text.append(story.title, style="bold")
        text.append(f"\n{INDENT}")
        text.append(f"{story.score} points")
        text.append(" · ", style="dim")
        text.append(story.domain, style=Style(color=link_color, link=story.link))
        text.append(" · ", style="dim")
        text.append(format_age(story.time, now))
        text.append(" · ", style="dim")
        text.append(f"by {story.by}")
        if story.descendants is not None:
            text.append(" · ", style="dim")
            text.append(
                f"{story.descendants} comments",
                style=Style(color=link_color, link=story.comments_url),
            )
    elif status is CardStatus.RETRYING:
        text.append(f"retrying item {card.story_id}: {card.error}", style="bold red")
    elif status is CardStatus.FAILED:
        failures = card.failures
        noun = "attempt" if failures == 1 else "attempts"
        text.append(
            f"item {card.story_id} failed after {failures} {noun}: {card.error}",
            style="bold red",
        )
        text.append(f"\n{INDENT}enter to retry", style="dim")
    else:
        text.append("loading…", style="dim italic")
    return text


# --- UI Widgets ---
class StoryCardItem(ListItem):
    def __init__(self, card: Card, position: int):
        super().__init__()
        self.card = card
        self.position = position
        self._body = Static(Text(f"{position:>3}. loading…", style="dim italic"))
        self._rendered: Optional[Tuple[str, CardStatus]] = None

    def compose(self) -> ComposeResult:
        yield self._body

    def refresh_card(self, settings: Settings, now: Optional[float] = None) -> None:
        text = card_text(self.position, self.card, settings, now)
        status = self.card.status
        if self._rendered == (text.plain, status):
            return
        self._rendered = (text.plain, status)
        self._body.update(text)
        self.set_class(status in (CardStatus.RETRYING, CardStatus.FAILED), "card-error")


STATUS_SEPARATOR = " | "


def feed_summary(feed: StoryFeed) -> str:
    """One line describing the list: category, page and how far loading got."""
    head = f"{feed.category.label} p.{feed.page}"
    if feed.total:
        pages = -(-feed.total // feed.settings.page_size)
        head += f"/{pages}"
    if feed.status is FeedStatus.LOADING:
        return f"{head} loading…"
    if feed.status is FeedStatus.FAILED:
        return f"{head} failed"
    if feed.status is not FeedStatus.READY:
        return head
    counts = feed.counts()
    summary = f"{head} {counts[CardStatus.READY]}/{len(feed.cards)} loaded"
    if counts[CardStatus.FAILED]:
        summary += f", {counts[CardStatus.FAILED]} failed"
    return summary


class StatusBar(Widget):
    """Bottom line: the feed summary followed by the key hint."""

    summary = reactive("")

    def __init__(self, hint: str = "", **kwargs):
        super().__init__(**kwargs)
        self.hint = hint

    def show(self, feed: StoryFeed) -> None:
        self.summary = feed_summary(feed)

    def render(self) -> Text:
        text = Text(self.summary, style="bold")
        if self.hint:
            if self.summary:
                text.append(STATUS_SEPARATOR, style="dim")
            text.append_text(Text.from_markup(self.hint))
        return text


class FeedError(Static):
    """Shown in place of the cards when the story list could not be fetched."""

    def __init__(self, error: Optional[str]):
        text = Text("↺\tRefresh to retry...\n")
        text.append(error or "Error", style="bold red")
        super().__init__(text, classes="list-hint")
        self.error = error or "Error"
