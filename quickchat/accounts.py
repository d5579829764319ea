"""
Registration and login checks for QuickChat users.

These are pure format checks; accounts live only for the duration of a
console session or in the HTTP app's in-memory registry.
"""

import logging
import re
from typing import Optional

logger = logging.getLogger(__name__)

REGISTRATION_SUCCESSFUL = "Registration successful"
USERNAME_INCORRECT = (
    "Username is not correctly formatted, please ensure that your username "
    "contains an underscore and is no more than five characters in length"
)
PASSWORD_INCORRECT = (
    "Password is not correctly formatted, please ensure that the password "
    "contains at least eight characters, a capital letter, a number, and a "
    "special character."
)
CELL_PHONE_INCORRECT = (
    "Cell phone number incorrectly formatted or does not contain international code"
)
LOGIN_FAILED = "Username or password incorrect, please try again"

_SPECIAL_CHARACTERS = re.compile(r"[!@#$%^&*()_+\-=\[\]{};']")
_SA_CELL_PATTERN = re.compile(r"\+27\d{9}")


def check_username(username: Optional[str]) -> bool:
    """Username must contain an underscore and be at most five characters."""
    return username is not None and "_" in username and len(username) <= 5


def check_password_complexity(password: Optional[str]) -> bool:
    """At least eight characters with a capital letter, a digit and a special character."""
    if password is None or len(password) < 8:
        return False
    return (
        re.search(r"[A-Z]", password) is not None
        and re.search(r"\d", password) is not None
        and _SPECIAL_CHARACTERS.search(password) is not None
    )


def check_cell_phone_number(cell_phone: Optional[str]) -> bool:
    """South African number with international code, e.g. +27831234567."""
    return cell_phone is not None and _SA_CELL_PATTERN.fullmatch(cell_phone) is not None


class Account:
    """Credentials captured at registration, checked again at login."""

    def __init__(self, username: str, password: str, cell_phone: str):
        self.username = username
        self.password = password
        self.cell_phone = cell_phone

    def register_user(self) -> str:
        """
        Validate the captured credentials.

        Returns:
            REGISTRATION_SUCCESSFUL, or the message for the first failing check
            (username, then password, then cell phone).
        """
        if not check_username(self.username):
            result = USERNAME_INCORRECT
        elif not check_password_complexity(self.password):
            result = PASSWORD_INCORRECT
        elif not check_cell_phone_number(self.cell_phone):
            result = CELL_PHONE_INCORRECT
        else:
            result = REGISTRATION_SUCCESSFUL

        logger.info(f"Registration for {self.username!r}: {'ok' if result == REGISTRATION_SUCCESSFUL else 'rejected'}")
        return result

    def login_user(self, username: str, password: str) -> bool:
        return self.username == username and self.password == password

    def return_login_status(self, username: str, password: str, first_name: str, last_name: str) -> str:
        if self.login_user(username, password):
            logger.info(f"Login succeeded for {username!r}")
            return f"Welcome {first_name}, {last_name} it is great to see you again"
        logger.warning(f"Login failed for {username!r}")
        return LOGIN_FAILED
