import logging
import os
from pathlib import Path
from typing import List, Optional, Union

from pydantic import ValidationError

from quickchat.config import settings
from quickchat.metrics import record_persist_outcome
from quickchat.models import Message
from quickchat.schemas import StoredMessage

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


def _resolve_path(path: Optional[PathLike]) -> Path:
    return Path(path) if path is not None else Path(settings.MESSAGES_FILE)


def check_store_health(path: Optional[PathLike] = None) -> bool:
    """
    Check that the message store can be appended to.

    Returns:
        True if the store file (or, when it doesn't exist yet, its directory)
        is writable, False otherwise.
    """
    store_path = _resolve_path(path)
    logger.debug(f"Checking message store health: {store_path}")
    try:
        if store_path.exists():
            with store_path.open("a", encoding="utf-8"):
                pass
            return True
        directory = store_path.parent
        return directory.is_dir() and os.access(directory, os.W_OK)
    except OSError as e:
        logger.error(f"Message store health check failed: {e}")
        return False


# =============================================================================
# Message Store Functions
# =============================================================================

def persist(message: Message, path: Optional[PathLike] = None) -> bool:
    """
    Append one message to the JSON-lines store.

    Every call appends a line; calling twice for the same message stores it
    twice. No locking is performed.

    Args:
        message: Message to store (accepted or not)
        path: Store file, defaults to settings.MESSAGES_FILE

    Returns:
        True if the line was written, False on an I/O or encoding error.
        Ledger state is never affected by the outcome.
    """
    store_path = _resolve_path(path)
    logger.info(f"Storing message: id={message.message_id}, file={store_path}")

    try:
        # Text that cannot be encoded as UTF-8 fails here with a ValueError
        line = StoredMessage.from_message(message).model_dump_json(by_alias=True)
        logger.debug(f"Stored line: {line}")
        store_path.parent.mkdir(parents=True, exist_ok=True)
        with store_path.open("a", encoding="utf-8") as fh:
            fh.write(line + "\n")
    except (OSError, ValueError) as e:
        logger.error(f"Failed to store message {message.message_id}: {e}")
        record_persist_outcome(False)
        return False

    record_persist_outcome(True)
    return True


def read_stored_messages(path: Optional[PathLike] = None) -> List[StoredMessage]:
    """
    Read every message from the JSON-lines store in file order.

    Blank lines are skipped. Lines that don't parse as a stored message are
    logged and skipped. A missing store yields an empty list.

    Raises:
        OSError: If the store exists but cannot be read
    """
    store_path = _resolve_path(path)
    if not store_path.exists():
        logger.info(f"Message store not found, nothing stored yet: {store_path}")
        return []

    messages = []
    with store_path.open("r", encoding="utf-8") as fh:
        for line_number, line in enumerate(fh, start=1):
            if not line.strip():
                continue
            try:
                messages.append(StoredMessage.model_validate_json(line))
            except ValidationError as e:
                logger.warning(f"Skipping malformed line {line_number} in {store_path}: {e.error_count()} error(s)")

    logger.info(f"Read {len(messages)} stored messages from {store_path}")
    return messages
