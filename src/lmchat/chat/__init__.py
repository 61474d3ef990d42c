"""Chat orchestration for lmchat."""

from .service import DIAGNOSTIC_MESSAGE, ChatService

__all__ = ["DIAGNOSTIC_MESSAGE", "ChatService"]
