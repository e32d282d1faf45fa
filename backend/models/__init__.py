"""Models package - Pydantic schemas and domain types."""

from .chat_types import ChatBlockConfig, ChatBlockReason, ChatCompletion, ChatScreening
from .email_types import (
    DispatchOutcome,
    EmailDispatchResult,
    EmailKind,
    EmailKindConfig,
    OutboundEmail,
    RenderedEmail,
)

__all__ = [
    "ChatBlockConfig",
    "ChatBlockReason",
    "ChatCompletion",
    "ChatScreening",
    "DispatchOutcome",
    "EmailDispatchResult",
    "EmailKind",
    "EmailKindConfig",
    "OutboundEmail",
    "RenderedEmail",
]
