from __future__ import annotations

import asyncio
import logging
import time
import webbrowser
from typing import Any, Optional, Tuple

from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal
from textual.widgets import Header, ListView, LoadingIndicator, Select, Static

from .client import HackerNewsClient
from .config import Settings
from .datamodels import Category, Story
from .fetcher import CardStatus, FeedStatus, StoryFeed
from .messages import FeedUpdated
from .screens import StoryViewScreen
from .widgets import FeedError, StatusBar, StoryCardItem

logger = logging.getLogger("hn")

KEYBINDINGS_HINT = (
    "[b]r[/] refresh  [b]1/2/3[/] top/new/best  [b]\\[ ][/] page  "
    "[b]enter[/] open  [b]o[/] link  [b]c[/] comments"
)


class HackerNewsApp(App):
    TITLE = "HN"
    SUB_TITLE = "Hacker News"

    CSS = """
    #bar {
        height: auto;
        padding: 0 1;
    }
    #category-select {
        width: 24;
    }
    #cards-list > StoryCardItem {
        padding: 0 1 1 0;
    }
    #cards-list > StoryCardItem.card-error {
        color: $error;
    }
    .list-hint {
        padding: 1 2;
    }
    StatusBar {
        dock: bottom;
        height: 1;
        padding: 0 1;
        background: $panel;
    }
    """

    BINDINGS = [
        Binding("q", "quit", "Quit"),
        Binding("r", "refresh", "Refresh"),
        Binding("1", "category('top')", "Top", show=False),
        Binding("2", "category('new')", "New", show=False),
        Binding("3", "category('best')", "Best", show=False),
        Binding("]", "next_page", "Next page", show=False),
        Binding("[", "previous_page", "Previous page", show=False),
        Binding("o", "open_link", "Open link", show=False),
        Binding("c", "open_comments", "Comments", show=False),
    ]

    def __init__(
        self,
        settings: Optional[Settings] = None,
        client: Optional[HackerNewsClient] = None,
        **kwargs: Any,
    ):
        super().__init__(**kwargs)
        self.settings = settings or Settings()
        self.client = client or HackerNewsClient(
            self.settings.api_base_url,
            timeout=self.settings.http_timeout,
            pool_size=self.settings.max_workers,
        )
        self.feed = StoryFeed(self.client, self.settings, on_update=self._feed_changed)
        self._shown: Optional[Tuple[int, FeedStatus]] = None
        self._sync_lock: Optional[asyncio.Lock] = None

    def compose(self) -> ComposeResult:
        yield Header()
        with Horizontal(id="bar"):
            yield Select(
                [(c.label, c) for c in Category],
                value=self.feed.category,
                allow_blank=False,
                id="category-select",
            )
        yield ListView(id="cards-list")
        yield StatusBar(KEYBINDINGS_HINT)

    def on_mount(self) -> None:
        self._sync_lock = asyncio.Lock()
        self.set_interval(self.settings.poll_interval, self.poll_feed)
        self.query_one("#cards-list", ListView).focus()
        self.action_refresh()

    def on_unmount(self) -> None:
        self.feed.close()
        self.client.close()

    def _feed_changed(self) -> None:
        # Runs on a fetch thread
        self.post_message(FeedUpdated())

    async def on_feed_updated(self, message: FeedUpdated) -> None:
        await self.poll_feed()

    async def poll_feed(self) -> None:
        """One frame: let cards retry, then repaint whatever changed."""
        self.feed.poll()
        await self._sync_list()
        now = time.time()
        for item in self.query(StoryCardItem):
            item.refresh_card(self.settings, now)
        self._update_status()

    async def _sync_list(self) -> None:
        # Timer ticks and FeedUpdated both land here; rebuilds must not interleave
        async with self._sync_lock:
            while True:
                shown = (self.feed.generation, self.feed.status)
                if shown == self._shown:
                    return
                await self._rebuild_list(*shown)
                self._shown = shown

    async def _rebuild_list(self, generation: int, status: FeedStatus) -> None:
        cards_list = self.query_one("#cards-list", ListView)
        await cards_list.clear()
        if status is FeedStatus.LOADING:
            await cards_list.mount(LoadingIndicator())
        elif status is FeedStatus.FAILED:
            await cards_list.mount(FeedError(self.feed.error))
        elif status is FeedStatus.READY:
            cards = list(self.feed.cards)
            if not cards:
                await cards_list.mount(Static("No stories here.", classes="list-hint"))
            else:
                await cards_list.extend(
                    StoryCardItem(card, self.feed.offset + i)
                    for i, card in enumerate(cards, start=1)
                )
        else:
            await cards_list.mount(Static("↺\tRefresh to retry...", classes="list-hint"))
        logger.debug("Rebuilt card list for generation %d (%s)", generation, status.value)

    def _update_status(self) -> None:
        self.title = f"HN::{self.feed.category} Stories"
        self.query_one(StatusBar).show(self.feed)

    def on_select_changed(self, event: Select.Changed) -> None:
        if event.select.id == "category-select" and isinstance(event.value, Category):
            if event.value is not self.feed.category:
                self.feed.refresh(category=event.value)

    def on_list_view_selected(self, event: ListView.Selected) -> None:
        item = event.item
        if not isinstance(item, StoryCardItem):
            return
        if item.card.status is CardStatus.FAILED:
            item.card.retry()
        elif item.card.status is CardStatus.READY:
            self.push_screen(StoryViewScreen(item.card.story))

    def _highlighted_story(self) -> Optional[Story]:
        item = self.query_one("#cards-list", ListView).highlighted_child
        if isinstance(item, StoryCardItem):
            return item.card.story
        return None

    def action_refresh(self) -> None:
        self.feed.refresh()

    def action_category(self, name: str) -> None:
        category = Category.parse(name)
        self.feed.refresh(category=category)
        self.query_one("#category-select", Select).value = category

    def action_next_page(self) -> None:
        if self.feed.next_page() is None:
            self.bell()

    def action_previous_page(self) -> None:
        if self.feed.offset > 0:
            self.feed.previous_page()

    def action_open_link(self) -> None:
        story = self._highlighted_story()
        if story is not None:
            webbrowser.open(story.link)

    def action_open_comments(self) -> None:
        story = self._highlighted_story()
        if story is not None:
            webbrowser.open(story.comments_url)
