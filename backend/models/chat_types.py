"""Type definitions for the AI chat assistant."""

from dataclasses import dataclass
from enum import Enum
from typing import NamedTuple, Optional


class ChatBlockConfig(NamedTuple):
    """Configuration for a chat refusal."""

    code: str
    status_code: int


class ChatBlockReason(Enum):
    """Why a chat message was refused before reaching the model."""

    RATE_LIMITED = ChatBlockConfig("rate_limited", 429)
    SESSION_LIMIT = ChatBlockConfig("session_limit", 429)
    TOO_LONG = ChatBlockConfig("too_long", 400)
    INJECTION_DETECTED = ChatBlockConfig("injection_detected", 400)
    BLOCKED_CONTENT = ChatBlockConfig("blocked_content", 400)
    EMPTY_INPUT = ChatBlockConfig("empty_input", 400)
    HIGH_RISK = ChatBlockConfig("high_risk", 400)

    @property
    def code(self) -> str:
        """Machine-readable code returned to the widget."""
        return self.value.code

    @property
    def status_code(self) -> int:
        """HTTP status used for this refusal."""
        return self.value.status_code


@dataclass(frozen=True)
class ChatScreening:
    """Outcome of screening one visitor message."""

    allowed: bool
    reason: Optional[ChatBlockReason] = None
    sanitized_input: Optional[str] = None
    risk_score: int = 0

    @classmethod
    def accept(cls, sanitized_input: str, risk_score: int) -> "ChatScreening":
        return cls(allowed=True, sanitized_input=sanitized_input, risk_score=risk_score)

    @classmethod
    def block(cls, reason: ChatBlockReason, risk_score: int = 0) -> "ChatScreening":
        return cls(allowed=False, reason=reason, risk_score=risk_score)


@dataclass(frozen=True)
class ChatCompletion:
    """Reply text and token usage returned by the model."""

    content: str
    total_tokens: Optional[int] = None
