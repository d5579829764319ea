"""
Message model and the validation/derivation helpers it is built from.

A Message is immutable once constructed. Construction itself (sequence
reservation, acceptance, registry append) lives in quickchat.ledger; this
module holds the pure rules:

- identifier generation and format check
- recipient format check
- hash derivation from id prefix, sequence number and body words
"""

import re
from enum import Enum
from secrets import randbelow
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


MESSAGE_ID_DIGITS = 10
NO_MESSAGE_MARKER = "NOMESSAGE"

_MESSAGE_ID_PATTERN = re.compile(r"[0-9]{10}")


class RejectionReason(str, Enum):
    """Why a constructed message was kept out of the ledger."""
    OVERSIZED_BODY = "oversized_body"
    INVALID_RECIPIENT = "invalid_recipient"
    INVALID_IDENTIFIER = "invalid_identifier"


class MessageAction(str, Enum):
    """What the sender chose to do with an accepted message."""
    SEND = "Send"
    STORE = "Store"
    DISREGARD = "Disregard"


class Message(BaseModel):
    """
    A composed message addressed to a phone number.

    Rejected messages are still returned to the caller (with `rejection` set)
    so the outcome travels in the return value rather than as an exception.
    """
    model_config = ConfigDict(frozen=True)

    message_id: str = Field(..., description="10-digit numeric identifier")
    sequence_number: int = Field(..., ge=1, description="Sequence number reserved at construction")
    recipient: Optional[str] = Field(None, description="Recipient phone number")
    body: Optional[str] = Field(None, description="Message text, None when absent or oversized")
    message_hash: str = Field(..., description="Uppercase verification hash")
    rejection: Optional[RejectionReason] = Field(None, description="Set when the ledger refused the message")

    @property
    def accepted(self) -> bool:
        return self.rejection is None


def generate_message_id() -> str:
    """Return a zero-padded random 10-digit identifier. Uniqueness is not enforced."""
    return f"{randbelow(10 ** MESSAGE_ID_DIGITS):0{MESSAGE_ID_DIGITS}d}"


def check_message_id(message_id: Optional[str]) -> bool:
    """True if the identifier is exactly 10 ASCII digits."""
    return message_id is not None and _MESSAGE_ID_PATTERN.fullmatch(message_id) is not None


def check_recipient_cell(recipient: Optional[str], max_length: int = 14) -> bool:
    """
    Loose recipient check: must start with '+' and be at most `max_length` characters.

    This is intentionally weaker than the registration phone check in
    quickchat.accounts; it is not E.164 validation.
    """
    return recipient is not None and recipient.startswith("+") and len(recipient) <= max_length


def create_message_hash(message_id: str, sequence_number: int, body: Optional[str]) -> str:
    """
    Derive the verification hash "<id[:2]>:<sequence>:<FIRSTWORD><LASTWORD>".

    Blank or absent bodies yield "<id[:2]>:<sequence>:NOMESSAGE". A single-word
    body uses that word as both first and last word.

    >>> create_message_hash("0012345678", 1, "Hi tonight")
    '00:1:HITONIGHT'
    """
    prefix = f"{message_id[:2]}:{sequence_number}:"
    if body is None or not body.strip():
        return prefix + NO_MESSAGE_MARKER

    words = body.split()
    first_word = words[0]
    last_word = words[-1]
    return (prefix + first_word + last_word).upper()
