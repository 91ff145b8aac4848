"""Per-document chat with a vision model."""

from taxdoc.chat.client import DocumentChatClient

__all__ = ["DocumentChatClient"]
