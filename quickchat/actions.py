"""
Send / Store / Disregard handling for composed messages.

The choice itself comes from a caller-supplied decision function so the same
dispatch serves the console prompt, the HTTP request body and tests.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional, Union

from quickchat.metrics import record_message_action
from quickchat.models import Message, MessageAction
from quickchat.storage import persist

logger = logging.getLogger(__name__)

SENT = "Message successfully sent."
STORED = "Message successfully stored."
DISREGARDED = "Message disregarded."
PERSIST_FAILED = "Message could not be written to the message store."

Decision = Callable[[Message], MessageAction]

_CHOICES = {
    "1": MessageAction.SEND,
    "2": MessageAction.STORE,
    "3": MessageAction.DISREGARD,
}


@dataclass(frozen=True)
class ActionResult:
    action: MessageAction
    persisted: bool
    status: str


def parse_action(choice: Optional[str]) -> MessageAction:
    """
    Map a menu answer to an action.

    Accepts 1/2/3 or the action name in any case. Anything else, including a
    cancelled prompt (None), means Disregard.
    """
    if choice is None:
        return MessageAction.DISREGARD
    choice = choice.strip()
    if choice in _CHOICES:
        return _CHOICES[choice]
    for action in MessageAction:
        if choice.lower() == action.value.lower():
            return action
    return MessageAction.DISREGARD


def apply_action(
    message: Message,
    decide: Decision,
    path: Optional[Union[str, Path]] = None,
) -> ActionResult:
    """
    Ask `decide` what to do with an accepted message and carry it out.

    Send and Store both append the message to the store; Disregard leaves it
    in the ledger only. Rejected messages are disregarded without consulting
    `decide`.
    """
    if not message.accepted:
        logger.info(f"Message {message.message_id} rejected ({message.rejection.value}), disregarding")
        return ActionResult(action=MessageAction.DISREGARD, persisted=False, status=DISREGARDED)

    action = decide(message)
    record_message_action(action.value)
    logger.info(f"Action for message {message.message_id}: {action.value}")

    if action is MessageAction.DISREGARD:
        return ActionResult(action=action, persisted=False, status=DISREGARDED)

    if not persist(message, path):
        return ActionResult(action=action, persisted=False, status=PERSIST_FAILED)

    status = SENT if action is MessageAction.SEND else STORED
    return ActionResult(action=action, persisted=True, status=status)
