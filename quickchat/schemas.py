"""
Pydantic schemas for request/response validation and the on-disk record.

This module contains:
- The stored-message record written to the JSON-lines store
- Request models for incoming data validation
- Response models for API responses
"""

from typing import Optional

from pydantic import BaseModel, Field, field_validator

from quickchat import accounts
from quickchat.models import Message, MessageAction, RejectionReason


# =============================================================================
# Stored Record
# =============================================================================

class StoredMessage(BaseModel):
    """
    One line of the JSON-lines message store.

    Serialized with by_alias=True so the file keeps its established keys:
    messageID, messageNumber, recipient, message, messageHash.
    """
    message_id: str = Field(..., alias="messageID")
    sequence_number: int = Field(..., alias="messageNumber")
    recipient: Optional[str] = Field(None, alias="recipient")
    body: Optional[str] = Field(None, alias="message")
    message_hash: str = Field(..., alias="messageHash")

    model_config = {"populate_by_name": True}

    @classmethod
    def from_message(cls, message: Message) -> "StoredMessage":
        return cls(
            message_id=message.message_id,
            sequence_number=message.sequence_number,
            recipient=message.recipient,
            body=message.body,
            message_hash=message.message_hash,
        )


# =============================================================================
# Pydantic Request Models
# =============================================================================

class CreateMessageRequest(BaseModel):
    """
    Request body for POST /messages.

    Recipient and body are deliberately not validated here: the ledger
    decides acceptance and reports the rejection reason.
    """
    recipient: Optional[str] = Field(None, description="Recipient phone number, e.g. +27718693002")
    message: Optional[str] = Field(None, description="Message text (max 250 characters)")
    action: MessageAction = Field(
        default=MessageAction.SEND,
        description="What to do with an accepted message: Send, Store or Disregard"
    )

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "recipient": "+27718693002",
                    "message": "Hi Mike, can you join us for dinner tonight",
                    "action": "Send"
                }
            ]
        }
    }


class RegistrationRequest(BaseModel):
    """Validates registration credentials with the same checks as the console shell."""
    username: str = Field(..., description="Contains an underscore, at most 5 characters")
    password: str = Field(..., description="8+ characters, capital letter, number, special character")
    cell_phone: str = Field(..., description="South African number, +27XXXXXXXXX")

    @field_validator("username")
    @classmethod
    def validate_username(cls, v: str) -> str:
        if not accounts.check_username(v):
            raise ValueError(accounts.USERNAME_INCORRECT)
        return v

    @field_validator("password")
    @classmethod
    def validate_password(cls, v: str) -> str:
        if not accounts.check_password_complexity(v):
            raise ValueError(accounts.PASSWORD_INCORRECT)
        return v

    @field_validator("cell_phone")
    @classmethod
    def validate_cell_phone(cls, v: str) -> str:
        if not accounts.check_cell_phone_number(v):
            raise ValueError(accounts.CELL_PHONE_INCORRECT)
        return v


class LoginRequest(BaseModel):
    username: str
    password: str
    first_name: str
    last_name: str


# =============================================================================
# Pydantic Response Models
# =============================================================================

class ErrorResponse(BaseModel):
    """Response model for error responses."""
    detail: str = Field(..., description="Error description")


class MessageResponse(BaseModel):
    """A message as returned by the API."""
    message_id: str = Field(..., description="10-digit message identifier")
    sequence_number: int = Field(..., description="Sequence number within this run")
    recipient: Optional[str] = Field(None, description="Recipient phone number")
    message: Optional[str] = Field(None, description="Message text")
    message_hash: str = Field(..., description="Verification hash")

    @classmethod
    def from_message(cls, message: Message) -> "MessageResponse":
        return cls(
            message_id=message.message_id,
            sequence_number=message.sequence_number,
            recipient=message.recipient,
            message=message.body,
            message_hash=message.message_hash,
        )


class CreateMessageResponse(MessageResponse):
    """Response model for POST /messages."""
    action: MessageAction = Field(..., description="Action applied to the message")
    persisted: bool = Field(..., description="Whether the message was appended to the store")
    status: str = Field(..., description="Human-readable outcome")


class RejectedMessageResponse(BaseModel):
    """Error body for a message the ledger refused."""
    detail: str = Field(..., description="Error description")
    rejection: RejectionReason = Field(..., description="Why the message was refused")
    message_id: str = Field(..., description="Identifier generated for the refused message")


class MessagesListResponse(BaseModel):
    """Accepted messages in construction order."""
    data: list[MessageResponse] = Field(default_factory=list, description="Accepted messages")
    total: int = Field(..., ge=0, description="Number of accepted messages")


class StoredMessagesResponse(BaseModel):
    """Messages read back from the JSON-lines store."""
    data: list[StoredMessage] = Field(default_factory=list)
    total: int = Field(..., ge=0)


class RenderResponse(BaseModel):
    text: str = Field(..., description="Printable summary of accepted messages")


class StatsResponse(BaseModel):
    """
    Response model for GET /stats.

    total_messages is the ledger's reserve/release counter; rejected attempts
    are released, so it tracks accepted messages.
    """
    total_messages: int = Field(..., ge=0, description="Ledger sequence counter")
    accepted: int = Field(..., ge=0, description="Number of accepted messages")


class AuthResponse(BaseModel):
    status: str = Field(..., description="Outcome text")


class HealthResponse(BaseModel):
    """Response model for health check endpoints."""
    status: str = Field(..., description="Health status")
    reason: Optional[str] = Field(None, description="Reason if not ready")
