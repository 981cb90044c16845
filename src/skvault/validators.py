"""
Input validators run before anything is encrypted.

Each validator raises ``ValidationError`` with a human-readable reason and
returns the (possibly normalized) value otherwise.
"""

from __future__ import annotations

import calendar
import re
from datetime import datetime, timezone
from typing import Optional

from .errors import ValidationError

PASSWORD_SPECIALS = "!@#$%^&*()_+-={}[]:\";'<>?,./~|\\"
MIN_USERNAME_LENGTH = 3
MIN_PASSWORD_LENGTH = 6
MAX_SECRET_NAME_LENGTH = 128

_EXPIRY_RE = re.compile(r"^(0[1-9]|1[0-2])/(\d{2}|\d{4})$")


def luhn_checksum_ok(number: str) -> bool:
    """Luhn (mod 10) check over a string of ASCII digits."""
    total = 0
    for index, char in enumerate(reversed(number)):
        digit = ord(char) - ord("0")
        if index % 2 == 1:
            digit *= 2
            if digit > 9:
                digit -= 9
        total += digit
    return total % 10 == 0


def validate_card_number(number: str) -> str:
    """Card numbers are 12-19 ASCII digits passing the Luhn check."""
    if not number:
        raise ValidationError("card number is empty")
    if not (number.isascii() and number.isdigit()):
        raise ValidationError("card number must contain only digits")
    if not 12 <= len(number) <= 19:
        raise ValidationError("card number must be between 12 and 19 digits")
    if not luhn_checksum_ok(number):
        raise ValidationError("invalid card number (failed Luhn check)")
    return number


def validate_cvv(cvv: str) -> str:
    """CVV codes are three digits, or four for some issuers."""
    if not cvv:
        raise ValidationError("CVV is empty")
    if len(cvv) not in (3, 4):
        raise ValidationError("CVV must be 3 or 4 digits long")
    if not (cvv.isascii() and cvv.isdigit()):
        raise ValidationError("CVV contains non-digit characters")
    return cvv


def validate_card_expiry(expiry: str, now: Optional[datetime] = None) -> str:
    """Accept ``MM/YY`` or ``MM/YYYY`` for a month that has not ended yet."""
    if not expiry:
        raise ValidationError("expiration date must not be empty")
    match = _EXPIRY_RE.match(expiry)
    if not match:
        raise ValidationError("expiration date must be in MM/YY or MM/YYYY format")

    month = int(match.group(1))
    year = int(match.group(2))
    if len(match.group(2)) == 2:
        year += 2000

    last_day = calendar.monthrange(year, month)[1]
    expires = datetime(year, month, last_day, 23, 59, 59, tzinfo=timezone.utc)
    if expires < (now or datetime.now(timezone.utc)):
        raise ValidationError("card has expired")
    return expiry


def validate_card_holder(holder: str) -> str:
    """Holder names are letters, spaces and hyphens."""
    if not holder or not holder.strip():
        raise ValidationError("card holder must not be empty")
    for char in holder:
        if not (char.isalpha() or char in " -"):
            raise ValidationError(
                "card holder can only contain letters, spaces, and hyphens"
            )
    return holder.strip()


def validate_secret_name(name: str) -> str:
    """Secret names are letters, digits, underscore, hyphen and spaces."""
    if not name or not name.strip():
        raise ValidationError("secret name must not be empty")
    if len(name) > MAX_SECRET_NAME_LENGTH:
        raise ValidationError(
            f"secret name must be at most {MAX_SECRET_NAME_LENGTH} characters"
        )
    for char in name:
        if not (char.isalnum() or char in "_- "):
            raise ValidationError(
                "secret name can only contain letters, digits, underscore, "
                "hyphen, and spaces"
            )
    return name


def validate_meta(meta: Optional[str]) -> Optional[str]:
    """Metadata is optional free text without control characters."""
    if not meta:
        return None
    for char in meta:
        code = ord(char)
        if (code < 32 and char not in "\t\n\r") or code == 127:
            raise ValidationError("meta contains invalid control characters")
    return meta


def validate_username(username: str) -> str:
    """Usernames: at least 3 chars of ASCII letters, digits or specials."""
    if len(username) < MIN_USERNAME_LENGTH:
        raise ValidationError(
            f"username must be at least {MIN_USERNAME_LENGTH} characters long"
        )
    for char in username:
        if char.isascii() and (char.isalnum() or char in PASSWORD_SPECIALS):
            continue
        raise ValidationError("username contains invalid characters")
    return username


def validate_password(password: str) -> str:
    """Passwords need an uppercase letter, a digit and a special character.

    Only ASCII letters, digits and ``PASSWORD_SPECIALS`` are allowed.
    """
    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(
            f"password must be at least {MIN_PASSWORD_LENGTH} characters long"
        )

    has_upper = has_digit = has_special = False
    for char in password:
        if not char.isascii():
            raise ValidationError("password contains invalid characters")
        if char.isupper():
            has_upper = True
        elif char.isdigit():
            has_digit = True
        elif char in PASSWORD_SPECIALS:
            has_special = True
        elif not char.islower():
            raise ValidationError("password contains invalid characters")

    if not has_upper:
        raise ValidationError("password must contain at least one uppercase letter")
    if not has_digit:
        raise ValidationError("password must contain at least one digit")
    if not has_special:
        raise ValidationError("password must contain at least one special character")
    return password
