from textual.message import Message

class FeedUpdated(Message):
    """Posted from a fetch thread whenever the story feed changed."""
