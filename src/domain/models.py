"""
Data models for verification email delivery.

These type-safe data structures define clear contracts between components.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional


class DeliveryState(Enum):
    """States a verification code record passes through on the reactive path."""
    CREATED = 'created'
    VALIDATING = 'validating'
    DROPPED = 'dropped'
    SENDING = 'sending'
    SENT = 'sent'
    FAILED = 'failed'
    IGNORED = 'ignored'  # not a creation, or outcome already recorded


@dataclass
class VerificationCodeRecord:
    """
    Verification code record as stored in the verification codes table.

    Attributes:
        email: Recipient address (table key)
        code: Numeric verification code
        email_sent: Delivery outcome (None until an attempt completes)
        email_sent_at: ISO 8601 timestamp of the attempt completion
        email_error: Failure message (only when email_sent is False)
    """
    email: str
    code: str
    email_sent: Optional[bool] = None
    email_sent_at: Optional[str] = None
    email_error: Optional[str] = None

    @classmethod
    def from_item(cls, item: Dict[str, Any]) -> 'VerificationCodeRecord':
        """
        Build a record from a deserialized table item.

        Missing or null email/code become empty strings so that validation,
        not attribute access, decides what happens next.
        """
        return cls(
            email=str(item.get('email') or ''),
            code=str(item.get('code') or ''),
            email_sent=item.get('emailSent'),
            email_sent_at=item.get('emailSentAt'),
            email_error=item.get('emailError')
        )

    @property
    def is_deliverable(self) -> bool:
        """Both email and code are present."""
        return bool(self.email and self.code)

    @property
    def has_outcome(self) -> bool:
        return self.email_sent is not None


@dataclass(frozen=True)
class DeliveryConfiguration:
    """
    Provider settings resolved for a single delivery attempt.

    Attributes:
        api_key: SendGrid API key
        sender_email: Verified sender address
        sender_name: Display name shown to recipients
    """
    api_key: str
    sender_email: str
    sender_name: str = 'Comnecter'

    def __repr__(self) -> str:
        return (
            f"DeliveryConfiguration(api_key=<{len(self.api_key)} chars>, "
            f"sender_email={self.sender_email}, sender_name={self.sender_name})"
        )


@dataclass(frozen=True)
class EmailMessage:
    """Fully composed outbound email."""
    to_email: str
    from_email: str
    from_name: str
    subject: str
    text_body: str
    html_body: str

    def to_sendgrid_payload(self) -> Dict[str, Any]:
        """
        Convert to the SendGrid v3 Mail Send request body.

        Returns:
            Dict ready to be sent as JSON
        """
        return {
            'personalizations': [{
                'to': [{'email': self.to_email}],
            }],
            'from': {
                'email': self.from_email,
                'name': self.from_name,
            },
            'subject': self.subject,
            'content': [
                {'type': 'text/plain', 'value': self.text_body},
                {'type': 'text/html', 'value': self.html_body},
            ],
        }


@dataclass(frozen=True)
class DeliveryOutcome:
    """
    Terminal result of one delivery attempt, written back onto the record.

    Use succeeded() / failed() rather than the constructor so that
    email_error is set exactly when email_sent is False.
    """
    email_sent: bool
    email_error: Optional[str] = None

    @classmethod
    def succeeded(cls) -> 'DeliveryOutcome':
        return cls(email_sent=True)

    @classmethod
    def failed(cls, error_message: Optional[str]) -> 'DeliveryOutcome':
        return cls(email_sent=False, email_error=error_message or 'Unknown error')

    def to_update_values(self, sent_at: str) -> Dict[str, Any]:
        """
        Field values to persist on the record.

        Args:
            sent_at: ISO 8601 completion timestamp

        Returns:
            Dict of record attribute name -> value
        """
        values = {
            'emailSent': self.email_sent,
            'emailSentAt': sent_at,
        }
        if not self.email_sent:
            values['emailError'] = self.email_error
        return values


@dataclass
class DeliveryResult:
    """
    Result of processing one stream record on the reactive path.

    Attributes:
        state: Final state reached
        event_id: Stream event identifier
        email: Recipient address (may be empty when dropped)
        error_message: Failure description, if any
        outcome_recorded: Whether the outcome was written back to the record
    """
    state: DeliveryState
    event_id: str
    email: str = ''
    error_message: Optional[str] = None
    outcome_recorded: bool = False

    def __repr__(self) -> str:
        """Human-readable representation for logging."""
        if self.error_message:
            return (
                f"DeliveryResult(state={self.state.value}, event_id={self.event_id}, "
                f"email={self.email}, error={self.error_message})"
            )
        return f"DeliveryResult(state={self.state.value}, event_id={self.event_id}, email={self.email})"
