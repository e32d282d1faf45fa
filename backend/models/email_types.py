"""Email type definitions for contact form delivery."""

from dataclasses import dataclass
from enum import Enum
from typing import NamedTuple, Optional


class EmailKindConfig(NamedTuple):
    """Configuration for an email kind."""

    label: str
    critical: bool  # failure aborts the submission


class EmailKind(Enum):
    """
    The two emails sent per contact submission.

    The lead notification is critical: if it is not delivered the lead is
    lost, so the submission fails. The thank-you email is best-effort.
    """

    LEAD_NOTIFICATION = EmailKindConfig("lead_notification", True)
    THANK_YOU = EmailKindConfig("thank_you", False)

    @property
    def label(self) -> str:
        """Get the log label for this email kind."""
        return self.value.label

    @property
    def critical(self) -> bool:
        """Whether a failed send must abort the submission."""
        return self.value.critical


class DispatchOutcome(str, Enum):
    """Result of a single send attempt."""

    SENT = "sent"
    FAILED = "failed"


@dataclass(frozen=True)
class RenderedEmail:
    """Subject and bodies produced by the template builder."""

    subject: str
    html: str
    text: str


@dataclass(frozen=True)
class OutboundEmail:
    """Everything the provider needs for one send call."""

    from_address: str
    to: str
    subject: str
    html: str
    text: str
    reply_to: Optional[str] = None


@dataclass(frozen=True)
class EmailDispatchResult:
    """Typed outcome of sending one email."""

    kind: EmailKind
    outcome: DispatchOutcome
    reason: Optional[str] = None

    @property
    def sent(self) -> bool:
        """True if the provider accepted the email."""
        return self.outcome is DispatchOutcome.SENT

    @classmethod
    def success(cls, kind: EmailKind) -> "EmailDispatchResult":
        return cls(kind=kind, outcome=DispatchOutcome.SENT)

    @classmethod
    def failure(cls, kind: EmailKind, reason: str) -> "EmailDispatchResult":
        return cls(kind=kind, outcome=DispatchOutcome.FAILED, reason=reason)
