"""Tests for input validators."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from skvault.errors import ValidationError
from skvault.validators import (
    luhn_checksum_ok,
    validate_card_expiry,
    validate_card_holder,
    validate_card_number,
    validate_cvv,
    validate_meta,
    validate_password,
    validate_secret_name,
    validate_username,
)

NOW = datetime(2026, 3, 15, tzinfo=timezone.utc)


class TestCardNumber:
    """Checksum, charset and length."""

    @pytest.mark.parametrize(
        "number", ["4111111111111111", "5500000000000004", "378282246310005"]
    )
    def test_valid_numbers(self, number):
        assert validate_card_number(number) == number

    def test_checksum_failure(self):
        assert not luhn_checksum_ok("1234567812345678")
        with pytest.raises(ValidationError, match="Luhn"):
            validate_card_number("1234567812345678")

    @pytest.mark.parametrize(
        "number", ["4111 1111 1111 1111", "4111-1111-1111-1111", "41111111111a1111"]
    )
    def test_non_digit_rejected(self, number):
        with pytest.raises(ValidationError, match="only digits"):
            validate_card_number(number)

    def test_non_ascii_digits_rejected(self):
        # Arabic-Indic digits pass str.isdigit()
        with pytest.raises(ValidationError):
            validate_card_number("٤١١١١١١١١١١١١١١١")

    def test_empty(self):
        with pytest.raises(ValidationError, match="empty"):
            validate_card_number("")

    def test_too_short(self):
        with pytest.raises(ValidationError, match="between"):
            validate_card_number("42")

    def test_is_also_value_error(self):
        with pytest.raises(ValueError):
            validate_card_number("x")


class TestCvv:
    @pytest.mark.parametrize("cvv", ["123", "0000"])
    def test_valid(self, cvv):
        assert validate_cvv(cvv) == cvv

    @pytest.mark.parametrize("cvv", ["12", "12345"])
    def test_wrong_length(self, cvv):
        with pytest.raises(ValidationError, match="3 or 4"):
            validate_cvv(cvv)

    def test_non_digit(self):
        with pytest.raises(ValidationError, match="non-digit"):
            validate_cvv("12a")

    def test_empty(self):
        with pytest.raises(ValidationError):
            validate_cvv("")


class TestExpiry:
    @pytest.mark.parametrize("expiry", ["03/26", "12/2030", "03/2026"])
    def test_valid(self, expiry):
        assert validate_card_expiry(expiry, now=NOW) == expiry

    def test_expired(self):
        with pytest.raises(ValidationError, match="expired"):
            validate_card_expiry("02/26", now=NOW)

    @pytest.mark.parametrize("expiry", ["3/26", "13/26", "00/26", "03-26", "0326", ""])
    def test_bad_format(self, expiry):
        with pytest.raises(ValidationError):
            validate_card_expiry(expiry, now=NOW)


class TestHolderAndName:
    def test_holder_stripped(self):
        assert validate_card_holder("  Jean-Luc Picard ") == "Jean-Luc Picard"

    @pytest.mark.parametrize("holder", ["", "   ", "R2D2", "Bob_Smith"])
    def test_bad_holder(self, holder):
        with pytest.raises(ValidationError):
            validate_card_holder(holder)

    @pytest.mark.parametrize("name", ["visa", "work laptop", "gmail_2", "a-b"])
    def test_good_names(self, name):
        assert validate_secret_name(name) == name

    @pytest.mark.parametrize("name", ["", "  ", "a/b", "x" * 129, "semi;colon"])
    def test_bad_names(self, name):
        with pytest.raises(ValidationError):
            validate_secret_name(name)


class TestMeta:
    def test_empty_becomes_none(self):
        assert validate_meta("") is None
        assert validate_meta(None) is None

    def test_whitespace_controls_allowed(self):
        assert validate_meta("line one\nline\ttwo\r\n") == "line one\nline\ttwo\r\n"

    @pytest.mark.parametrize("meta", ["bell\x07", "nul\x00", "del\x7f"])
    def test_control_chars_rejected(self, meta):
        with pytest.raises(ValidationError, match="control"):
            validate_meta(meta)


class TestCredentials:
    """Username/password charset and strength policy."""

    @pytest.mark.parametrize("username", ["bob", "alice@example.com", "user_01"])
    def test_good_usernames(self, username):
        assert validate_username(username) == username

    @pytest.mark.parametrize("username", ["ab", "has space", "jürgen"])
    def test_bad_usernames(self, username):
        with pytest.raises(ValidationError):
            validate_username(username)

    def test_good_password(self):
        assert validate_password("Secr3t!") == "Secr3t!"

    @pytest.mark.parametrize(
        "password, reason",
        [
            ("Ab1!", "at least"),
            ("secr3t!", "uppercase"),
            ("Secret!", "digit"),
            ("Secr3ts", "special"),
            ("Secr3t! ", "invalid"),
            ("Sécr3t!", "invalid"),
        ],
    )
    def test_bad_passwords(self, password, reason):
        with pytest.raises(ValidationError, match=reason):
            validate_password(password)
