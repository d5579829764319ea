import logging
import threading
from typing import Callable, List, Optional

from quickchat.config import settings
from quickchat.metrics import record_message_outcome
from quickchat.models import (
    Message,
    RejectionReason,
    check_message_id,
    check_recipient_cell,
    create_message_hash,
    generate_message_id,
)

logger = logging.getLogger(__name__)

NO_MESSAGES = "No messages sent."


class MessageLedger:
    """
    Ordered in-memory registry of accepted messages.

    The ledger owns the sequence counter. Each construction reserves the next
    sequence number; a rejected construction releases it again, so the next
    message reuses that number. total_attempts() reports the counter itself,
    which therefore always equals the number of accepted messages.

    The counter update and the registry append run under one lock so sequence
    numbers stay unique and ordered when the HTTP surface calls in from
    several worker threads.
    """

    def __init__(
        self,
        id_factory: Callable[[], str] = generate_message_id,
        max_message_length: Optional[int] = None,
        max_recipient_length: Optional[int] = None,
    ):
        self._id_factory = id_factory
        self._max_message_length = (
            settings.MAX_MESSAGE_LENGTH if max_message_length is None else max_message_length
        )
        self._max_recipient_length = (
            settings.MAX_RECIPIENT_LENGTH if max_recipient_length is None else max_recipient_length
        )
        self._sequence = 0
        self._accepted: List[Message] = []
        self._lock = threading.Lock()

    def create_message(self, recipient: Optional[str], body: Optional[str]) -> Message:
        """
        Construct, validate and (when valid) register a message.

        Args:
            recipient: Recipient phone number, expected to start with '+'
            body: Message text, may be None

        Returns:
            The constructed Message. Check `message.accepted` / `message.rejection`
            for the outcome; validation failures are never raised.
        """
        with self._lock:
            message_id = self._id_factory()
            self._sequence += 1
            sequence_number = self._sequence

            oversized = body is not None and len(body) > self._max_message_length
            if oversized:
                logger.debug(
                    f"Body of {len(body)} characters exceeds limit by "
                    f"{len(body) - self._max_message_length}, dropping content"
                )
                body = None

            rejection = self._validate(message_id, recipient, oversized)
            message = Message(
                message_id=message_id,
                sequence_number=sequence_number,
                recipient=recipient,
                body=body,
                message_hash=create_message_hash(message_id, sequence_number, body),
                rejection=rejection,
            )

            if rejection is None:
                self._accepted.append(message)
            else:
                # Release the reservation so the next message reuses this number
                self._sequence -= 1

        if rejection is None:
            logger.info(f"Message accepted: id={message.message_id}, number={sequence_number}")
            record_message_outcome("accepted")
        else:
            logger.warning(f"Message rejected: id={message.message_id}, reason={rejection.value}")
            record_message_outcome(rejection.value)

        return message

    def _validate(
        self, message_id: str, recipient: Optional[str], oversized: bool
    ) -> Optional[RejectionReason]:
        if not check_message_id(message_id):
            return RejectionReason.INVALID_IDENTIFIER
        if not check_recipient_cell(recipient, self._max_recipient_length):
            return RejectionReason.INVALID_RECIPIENT
        if oversized:
            return RejectionReason.OVERSIZED_BODY
        return None

    def total_attempts(self) -> int:
        """Current value of the reserve/release sequence counter."""
        return self._sequence

    def list_accepted(self) -> List[Message]:
        """Snapshot of accepted messages in construction order."""
        with self._lock:
            return list(self._accepted)

    def render(self) -> str:
        """Human-readable summary of accepted messages, or NO_MESSAGES when empty."""
        messages = self.list_accepted()
        if not messages:
            return NO_MESSAGES
        return "".join(
            f"ID: {msg.message_id}, Hash: {msg.message_hash}, "
            f"Recipient: {msg.recipient}, Message: {msg.body}\n"
            for msg in messages
        )

    def __len__(self) -> int:
        return len(self._accepted)
