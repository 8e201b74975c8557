"""Chat slash-command adapter."""

from ladder.chat.commands import ChatCommandHandler, help_text

__all__ = ["ChatCommandHandler", "help_text"]
