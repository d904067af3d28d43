"""
Phone number normalization utilities
"""
import re
from typing import Any

_NON_DIGITS = re.compile(r"[^\d]")

MIN_PHONE_DIGITS = 7


def normalize_country_code(country_code: Any) -> str:
    """
    Normalize a dialling prefix as sent by the client (e.g. "+91").

    Only surrounding whitespace is removed; the prefix is kept verbatim so the
    full number matches what the profile store indexes.
    """
    if country_code is None:
        return ""
    return str(country_code).strip()


def normalize_digits(value: Any) -> str:
    """
    Keep only the digits of a phone number or code.

    Args:
        value: Raw value from the request (string, number or None)

    Returns:
        Digit-only string ("" when nothing usable was supplied)
    """
    if value is None:
        return ""
    return _NON_DIGITS.sub("", str(value))


def full_phone_number(country_code: str, phone_number: str) -> str:
    """Country prefix followed by the national digits, e.g. "+919876543210"."""
    return f"{country_code}{phone_number}"


def identity_key(user_id: str, country_code: str, phone_number: str) -> str:
    """Rate-limiting and lookup key for one (user, phone) pair."""
    return f"{user_id}::{full_phone_number(country_code, phone_number)}"


def get_phone_last4(phone: str) -> str:
    """
    Get last 4 digits of phone number for safe logging.

    Args:
        phone: Phone number (can be in any format)

    Returns:
        Last 4 digits as string, or full phone if less than 4 digits
    """
    digits = normalize_digits(phone)

    if len(digits) >= 4:
        return digits[-4:]
    return digits
