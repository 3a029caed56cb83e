# scheduler/services/validation.py
"""
Applicant input validation.

WhatsApp numbers are normalized before matching the configured pattern:
spaces, dashes and parentheses are removed and the Bangladeshi local form
01XXXXXXXXX gains the +88 country prefix.
"""

import re

from ..errors import ValidationError

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
NAME_MIN = 2
NAME_MAX = 100


def sanitize_input(value: str) -> str:
    return value.strip().replace("<", "").replace(">", "")


def validate_name(name: str) -> bool:
    return NAME_MIN <= len(name.strip()) <= NAME_MAX


def validate_email(email: str) -> bool:
    return bool(EMAIL_RE.match(email.strip()))


def normalize_whatsapp(phone: str) -> str:
    """Strip separators and prefix local numbers. Does not validate."""
    cleaned = re.sub(r"[\s\-\(\)]", "", phone.strip())
    if len(cleaned) == 11 and cleaned.startswith("01"):
        cleaned = "88" + cleaned
    if cleaned and not cleaned.startswith("+"):
        cleaned = "+" + cleaned
    return cleaned


def validate_whatsapp(phone: str, pattern: str) -> tuple[bool, str | None, str | None]:
    """
    Validate a WhatsApp number against the configured format.

    Returns:
        (True, formatted_number, None) or (False, None, error message)
    """
    formatted = normalize_whatsapp(phone)
    if not re.match(pattern, formatted):
        return False, None, "Invalid WhatsApp number. Use +8801XXXXXXXXX"
    return True, formatted, None


def contact_digits(value: str) -> str:
    """Digits of a phone-like identifier, comparable across formats."""
    if "@" in value:
        return ""
    digits = re.sub(r"\D", "", value)
    if len(digits) == 11 and digits.startswith("01"):
        digits = "88" + digits
    return digits


def validate_booking_form(
    name: str,
    email: str,
    whatsapp: str,
    joining_preference: str | None,
    whatsapp_pattern: str,
) -> list[str]:
    """Collect every field error, in form order."""
    errors: list[str] = []

    if not name.strip():
        errors.append("Name is required")
    elif not validate_name(name):
        errors.append(f"Name must be between {NAME_MIN} and {NAME_MAX} characters")

    if not email.strip():
        errors.append("Email is required")
    elif not validate_email(email):
        errors.append("Please enter a valid email address")

    if not whatsapp.strip():
        errors.append("WhatsApp number is required")
    else:
        ok, _, error = validate_whatsapp(whatsapp, whatsapp_pattern)
        if not ok:
            errors.append(error)

    if joining_preference is not None and not joining_preference.strip():
        errors.append("Joining preference is required")

    return errors


def ensure_valid_booking_form(
    name: str,
    email: str,
    whatsapp: str,
    joining_preference: str | None,
    whatsapp_pattern: str,
) -> str:
    """Raise ValidationError on the first failing field, else return the formatted number."""
    errors = validate_booking_form(name, email, whatsapp, joining_preference, whatsapp_pattern)
    if errors:
        raise ValidationError(errors[0], errors)
    _, formatted, _ = validate_whatsapp(whatsapp, whatsapp_pattern)
    return formatted
