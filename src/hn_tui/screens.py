from __future__ import annotations

import webbrowser
from typing import Optional

from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import VerticalScroll
from textual.screen import Screen
from textual.widgets import Footer, Header, Markdown

from .datamodels import Story
from .timeago import format_age


def story_markdown(story: Story, now: Optional[float] = None) -> str:
    """Markdown body for the story screen."""
    meta = [f"{story.score} points", f"by {story.by}", format_age(story.time, now)]
    if story.descendants is not None:
        meta.append(f"[{story.descendants} comments]({story.comments_url})")
    parts = [f"# {story.title}", " · ".join(meta), f"<{story.link}>"]
    if story.plain_text:
        parts.extend(["---", story.plain_text])
    return "\n\n".join(parts) + "\n"


# --- Story screen ---
class StoryViewScreen(Screen):
    BINDINGS = [
        Binding("escape,q,left", "app.pop_screen", "Back"),
        Binding("o", "open_link", "Open link"),
        Binding("c", "open_comments", "Comments"),
        Binding("down", "scroll_down", "Scroll Down", show=False),
        Binding("up", "scroll_up", "Scroll Up", show=False),
    ]

    def __init__(self, story: Story):
        super().__init__()
        self.story = story

    def compose(self) -> ComposeResult:
        yield Header()
        yield VerticalScroll(
            Markdown(story_markdown(self.story), id="story-markdown"),
            id="story-scroll",
        )
        yield Footer()

    def on_mount(self) -> None:
        self.title = self.story.title
        self.sub_title = self.story.domain
        self.query_one("#story-scroll").focus()

    def action_open_link(self) -> None:
        webbrowser.open(self.story.link)

    def action_open_comments(self) -> None:
        webbrowser.open(self.story.comments_url)

    def action_scroll_down(self) -> None:
        self.query_one("#story-scroll").scroll_down()

    def action_scroll_up(self) -> None:
        self.query_one("#story-scroll").scroll_up()
