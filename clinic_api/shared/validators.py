"""Shared validation utilities"""

import os
import re
from typing import Optional

TIME_PATTERN = re.compile(r"^([01]?[0-9]|2[0-3]):([0-5][0-9])$")
EMAIL_PATTERN = re.compile(r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$")

DEFAULT_COUNTRY_CODE = os.getenv("DEFAULT_COUNTRY_CODE", "1")


def parse_time_to_minutes(value: str) -> int:
    """
    Convert an HH:MM (24h) string to minutes since midnight.

    Raises:
        ValueError: If the string is not a valid HH:MM time
    """
    match = TIME_PATTERN.match(value.strip()) if value else None
    if not match:
        raise ValueError(f"Invalid time '{value}', expected HH:MM")
    return int(match.group(1)) * 60 + int(match.group(2))


def format_minutes(minutes: int) -> str:
    """Format minutes since midnight as zero-padded HH:MM"""
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def normalize_time(value: str) -> str:
    """Normalize 9:05 -> 09:05; raises ValueError on bad input"""
    return format_minutes(parse_time_to_minutes(value))


def validate_phone(phone: Optional[str]) -> Optional[str]:
    """
    Validate and normalize a phone number to E.164 format.

    Numbers given with a leading + keep their country code; bare 10 digit
    numbers get DEFAULT_COUNTRY_CODE.

    Raises:
        ValueError: If phone number is invalid
    """
    if not phone:
        return phone

    has_plus = phone.strip().startswith("+")
    digits = re.sub(r"\D", "", phone)

    if has_plus:
        if not 8 <= len(digits) <= 15:
            raise ValueError("Phone number must have 8 to 15 digits")
        return f"+{digits}"

    if len(digits) == 10:
        return f"+{DEFAULT_COUNTRY_CODE}{digits}"

    if len(digits) == 10 + len(DEFAULT_COUNTRY_CODE) and digits.startswith(DEFAULT_COUNTRY_CODE):
        return f"+{digits}"

    raise ValueError("Phone number must be 10 digits or include a country code")


def normalize_email(email: Optional[str]) -> Optional[str]:
    """Lowercase and strip an email address for comparisons"""
    if not email:
        return None
    return email.strip().lower()


def validate_email(email: Optional[str]) -> Optional[str]:
    """
    Validate email format.

    Returns:
        Lowercase email address, or None when empty

    Raises:
        ValueError: If email format is invalid
    """
    email = normalize_email(email)
    if email is None:
        return None

    if not EMAIL_PATTERN.match(email):
        raise ValueError("Invalid email format")
    return email
