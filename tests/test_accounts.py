"""
Tests for registration and login checks.
"""

import pytest
from pydantic import ValidationError

from quickchat.accounts import (
    CELL_PHONE_INCORRECT,
    LOGIN_FAILED,
    PASSWORD_INCORRECT,
    REGISTRATION_SUCCESSFUL,
    USERNAME_INCORRECT,
    Account,
    check_cell_phone_number,
    check_password_complexity,
    check_username,
)
from quickchat.schemas import RegistrationRequest


VALID = {"username": "kyl_1", "password": "Ch&&sec@ke99!", "cell_phone": "+27838968976"}


class TestChecks:
    """Test the individual format checks."""

    @pytest.mark.parametrize("username,expected", [
        ("kyl_1", True),
        ("a_b", True),
        ("kyle!!!!!!!", False),
        ("kyle1", False),
        ("ky_le1", False),
        (None, False),
    ])
    def test_username(self, username, expected):
        assert check_username(username) is expected

    @pytest.mark.parametrize("password,expected", [
        ("Ch&&sec@ke99!", True),
        ("Passw0rd!", True),
        ("password", False),
        ("Password1", False),
        ("password1!", False),
        ("Pass!word", False),
        ("P1!", False),
        (None, False),
    ])
    def test_password(self, password, expected):
        assert check_password_complexity(password) is expected

    @pytest.mark.parametrize("cell_phone,expected", [
        ("+27838968976", True),
        ("08966553", False),
        ("27838968976", False),
        ("+2783896897", False),
        ("+278389689760", False),
        ("+14155550100", False),
        (None, False),
    ])
    def test_cell_phone(self, cell_phone, expected):
        assert check_cell_phone_number(cell_phone) is expected


class TestAccount:
    """Test registration and login flow."""

    def test_register_success(self):
        assert Account(**VALID).register_user() == REGISTRATION_SUCCESSFUL

    def test_username_reported_first(self):
        account = Account("kyle!!!!!!!", "password", "08966553")
        assert account.register_user() == USERNAME_INCORRECT

    def test_password_reported_before_phone(self):
        account = Account("kyl_1", "password", "08966553")
        assert account.register_user() == PASSWORD_INCORRECT

    def test_phone_reported_last(self):
        account = Account("kyl_1", "Ch&&sec@ke99!", "08966553")
        assert account.register_user() == CELL_PHONE_INCORRECT

    def test_login_success(self):
        account = Account(**VALID)
        assert account.login_user("kyl_1", "Ch&&sec@ke99!")
        assert account.return_login_status("kyl_1", "Ch&&sec@ke99!", "Kyle", "Smith") == (
            "Welcome Kyle, Smith it is great to see you again"
        )

    def test_login_failure(self):
        account = Account(**VALID)
        assert not account.login_user("kyl_1", "wrong")
        assert account.return_login_status("kyl_2", "Ch&&sec@ke99!", "Kyle", "Smith") == LOGIN_FAILED


class TestRegistrationRequest:
    """Test the request schema reuses the same checks."""

    def test_valid(self):
        request = RegistrationRequest(**VALID)
        assert request.username == "kyl_1"

    def test_invalid_password_message(self):
        with pytest.raises(ValidationError) as exc_info:
            RegistrationRequest(**{**VALID, "password": "password"})
        assert PASSWORD_INCORRECT in str(exc_info.value)
