"""Chat assistant package."""

from scansave.chat.context import (
    build_context,
    build_system_instruction,
    format_reply,
)
from scansave.chat.session_manager import ChatSessionManager, SessionState

__all__ = [
    "ChatSessionManager",
    "SessionState",
    "build_context",
    "build_system_instruction",
    "format_reply",
]
