"""
Command-line interface for QuickChat.

Provides CLI commands:
- chat: Register, log in and compose messages from an interactive menu
- serve: Start the QuickChat HTTP API

Usage:
    quickchat chat [--max-messages N] [--store PATH]
    quickchat serve [--host HOST] [--port PORT]

Environment Variables:
    MESSAGES_FILE: JSON-lines message store (default: messages.json)
    LOG_LEVEL: Logging level (default: INFO)
"""

import argparse
import logging
import sys
from typing import Callable, Optional

from quickchat.accounts import Account, REGISTRATION_SUCCESSFUL, LOGIN_FAILED
from quickchat.actions import apply_action, parse_action
from quickchat.config import settings
from quickchat.ledger import MessageLedger
from quickchat.logging_utils import new_session_id, setup_logging
from quickchat.models import Message, MessageAction, RejectionReason

logger = logging.getLogger(__name__)

InputFn = Callable[[str], str]
OutputFn = Callable[[str], None]

MENU = "Menu:\n1. Send Messages\n2. Show Recently Sent Messages\n3. Quit"
ACTION_MENU = "Choose an action for the message:\n1. Send\n2. Store\n3. Disregard"

REJECTION_TEXT = {
    RejectionReason.OVERSIZED_BODY: "Please enter a message of less than 250 characters.",
    RejectionReason.INVALID_RECIPIENT: (
        "Cell phone number is incorrectly formatted or does not contain an "
        "international code. Please correct the number and try again."
    ),
    RejectionReason.INVALID_IDENTIFIER: "Invalid message ID. Disregarding.",
}


def register_and_login(input_fn: InputFn = input, output_fn: OutputFn = print) -> bool:
    """
    Run the registration form followed by a login attempt.

    Returns:
        True if the user registered successfully and logged in.
    """
    output_fn("=== User Registration ===")
    username = input_fn("Enter username (must contain an underscore and be 5 characters or less): ")
    password = input_fn(
        "Enter password (must be at least 8 characters with a capital letter, "
        "number, and special character): "
    )
    cell_phone = input_fn("Enter South African cell phone number (format: +27XXXXXXXXX): ")

    account = Account(username, password, cell_phone)
    registration = account.register_user()
    output_fn(registration)
    if registration != REGISTRATION_SUCCESSFUL:
        return False

    output_fn("=== User Login ===")
    login_username = input_fn("Enter username: ")
    login_password = input_fn("Enter password: ")
    first_name = input_fn("Enter your first name: ")
    last_name = input_fn("Enter your last name: ")

    status = account.return_login_status(login_username, login_password, first_name, last_name)
    output_fn(status)
    return status != LOGIN_FAILED


def prompt_message_limit(input_fn: InputFn = input, output_fn: OutputFn = print) -> Optional[int]:
    """Ask how many messages the session may send. Returns None for anything but a positive integer."""
    answer = input_fn("How many messages to send? ")
    try:
        limit = int(answer)
    except (TypeError, ValueError):
        limit = 0
    if limit <= 0:
        output_fn("Invalid number. Exiting.")
        return None
    return limit


def compose_message(
    ledger: MessageLedger,
    store_path: Optional[str] = None,
    input_fn: InputFn = input,
    output_fn: OutputFn = print,
) -> Message:
    """Prompt for one message, hand it to the ledger and apply the chosen action."""
    recipient = input_fn("Enter recipient cell number (e.g., +27718693002): ")
    body = input_fn("Enter message (max 250 characters): ")

    message = ledger.create_message(recipient, body)
    if not message.accepted:
        output_fn(REJECTION_TEXT[message.rejection])
        return message

    def decide(_: Message) -> MessageAction:
        return parse_action(input_fn(ACTION_MENU + "\n"))

    result = apply_action(message, decide, store_path)
    output_fn(result.status)
    if result.persisted and result.action is MessageAction.SEND:
        output_fn(
            f"Message ID: {message.message_id}\n"
            f"Message Hash: {message.message_hash}\n"
            f"Recipient: {message.recipient}\n"
            f"Message: {message.body}"
        )
    return message


def run_chat(
    ledger: MessageLedger,
    max_messages: int,
    store_path: Optional[str] = None,
    input_fn: InputFn = input,
    output_fn: OutputFn = print,
) -> int:
    """
    Menu loop: send messages until the limit, show accepted messages, quit.

    The limit is checked against the ledger counter before composing, so
    rejected attempts don't use it up.

    Returns:
        Number of messages accepted during the loop.
    """
    output_fn("Welcome to QuickChat")
    while True:
        choice = input_fn(MENU + "\n")
        choice = "3" if choice is None else choice.strip()

        if choice == "1":
            if ledger.total_attempts() < max_messages:
                compose_message(ledger, store_path, input_fn, output_fn)
            else:
                output_fn("Message limit reached.")
        elif choice == "2":
            output_fn(ledger.render())
        elif choice == "3":
            output_fn(f"Total messages sent: {ledger.total_attempts()}")
            return ledger.total_attempts()
        else:
            output_fn("Invalid option. Try again.")


def cmd_chat(args: argparse.Namespace) -> int:
    """Run the interactive chat session."""
    setup_logging(settings.LOG_LEVEL, stream=sys.stderr)
    session_id = new_session_id()
    logger.info(f"Chat session started: {session_id}")

    try:
        if not register_and_login():
            return 1

        max_messages = args.max_messages or prompt_message_limit()
        if max_messages is None:
            return 1

        run_chat(MessageLedger(), max_messages, args.store)
        return 0
    except (KeyboardInterrupt, EOFError):
        print("\nAborted.")
        return 1


def cmd_serve(args: argparse.Namespace) -> int:
    """Start the HTTP API with uvicorn."""
    import uvicorn

    setup_logging(settings.LOG_LEVEL)
    uvicorn.run("quickchat.main:app", host=args.host, port=args.port)
    return 0


def main(argv: Optional[list[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        prog="quickchat",
        description="Compose, validate and store short text messages",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    chat_parser = subparsers.add_parser("chat", help="Interactive chat session")
    chat_parser.add_argument(
        "--max-messages",
        type=int,
        default=None,
        help="Message limit for the session (prompted for when omitted)",
    )
    chat_parser.add_argument(
        "--store",
        default=None,
        help=f"JSON-lines message store (default: {settings.MESSAGES_FILE})",
    )
    chat_parser.set_defaults(func=cmd_chat)

    serve_parser = subparsers.add_parser("serve", help="Start the HTTP API")
    serve_parser.add_argument("--host", default="127.0.0.1", help="Host to bind")
    serve_parser.add_argument("--port", type=int, default=8000, help="Port to bind")
    serve_parser.set_defaults(func=cmd_serve)

    args = parser.parse_args(argv)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
