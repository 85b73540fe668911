"""Shared validation utilities"""

import re
from typing import Optional

IBAN_PATTERN = re.compile(r"^[A-Z]{2}\d{2}[A-Z0-9]{11,30}$")
BIC_PATTERN = re.compile(r"^[A-Z]{4}[A-Z]{2}[A-Z0-9]{2}([A-Z0-9]{3})?$")


def validate_email(email: Optional[str]) -> Optional[str]:
    """
    Validate email format.

    Args:
        email: Email address string

    Returns:
        Lowercase email address

    Raises:
        ValueError: If email format is invalid
    """
    if not email:
        return email

    email = email.strip().lower()

    # Basic email validation pattern
    email_pattern = r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$"

    if not re.match(email_pattern, email):
        raise ValueError("Invalid email format")

    return email


def normalize_iban(iban: Optional[str]) -> str:
    """Strip spaces and upper-case an IBAN; empty string when absent"""
    if not iban:
        return ""
    return re.sub(r"\s+", "", str(iban)).upper()


def is_valid_iban(iban: Optional[str]) -> bool:
    """
    Check IBAN shape and the ISO 7064 mod-97 checksum.

    "BE68 5390 0754 7034" -> True, "BE00 0000" -> False
    """
    value = normalize_iban(iban)
    if not IBAN_PATTERN.match(value):
        return False

    # Move country code + check digits to the end, letters become 10..35
    rearranged = value[4:] + value[:4]
    digits = "".join(str(int(ch, 36)) for ch in rearranged)
    return int(digits) % 97 == 1


def normalize_bic(bic: Optional[str]) -> Optional[str]:
    """Return an upper-cased BIC, or None when absent or malformed"""
    if not bic:
        return None
    value = re.sub(r"\s+", "", str(bic)).upper()
    return value if BIC_PATTERN.match(value) else None
