"""Tests for applicant input validation."""

import pytest

from scheduler.errors import ValidationError
from scheduler.services.validation import (
    contact_digits,
    ensure_valid_booking_form,
    normalize_whatsapp,
    sanitize_input,
    validate_booking_form,
    validate_email,
    validate_name,
    validate_whatsapp,
)

PATTERN = r"^\+8801\d{9}$"


class TestWhatsApp:
    @pytest.mark.parametrize("raw", [
        "01712345678",
        "+8801712345678",
        "8801712345678",
        "+880 1712-345678",
        "(017) 1234 5678",
    ])
    def test_accepted_formats(self, raw):
        ok, formatted, error = validate_whatsapp(raw, PATTERN)
        assert ok
        assert formatted == "+8801712345678"
        assert error is None

    @pytest.mark.parametrize("raw", ["12345", "+8802712345678", "0171234567", "+1 555 123 4567"])
    def test_rejected(self, raw):
        ok, formatted, error = validate_whatsapp(raw, PATTERN)
        assert not ok
        assert formatted is None
        assert "WhatsApp" in error

    def test_normalize_does_not_validate(self):
        assert normalize_whatsapp("123") == "+123"

    def test_custom_pattern(self):
        ok, formatted, _ = validate_whatsapp("+1 555 123 4567", r"^\+1\d{10}$")
        assert ok
        assert formatted == "+15551234567"


class TestContactDigits:
    def test_email_has_no_digits(self):
        assert contact_digits("user123@example.com") == ""

    def test_local_number_gains_prefix(self):
        assert contact_digits("01712345678") == contact_digits("+880-1712-345678")


class TestFields:
    def test_name_bounds(self):
        assert not validate_name("A")
        assert validate_name("Al")
        assert not validate_name("x" * 101)

    @pytest.mark.parametrize("email,valid", [
        ("user@example.com", True),
        ("  user@example.com ", True),
        ("user@example", False),
        ("user example@test.com", False),
        ("", False),
    ])
    def test_email(self, email, valid):
        assert validate_email(email) is valid

    def test_sanitize(self):
        assert sanitize_input("  <script>hi</script> ") == "scripthi/script"


class TestBookingForm:
    def test_valid(self):
        assert validate_booking_form("Rahim", "r@example.com", "01712345678", "Immediately", PATTERN) == []

    def test_missing_fields_in_form_order(self):
        errors = validate_booking_form("", "", "", "", PATTERN)
        assert errors == [
            "Name is required",
            "Email is required",
            "WhatsApp number is required",
            "Joining preference is required",
        ]

    def test_ensure_returns_formatted_number(self):
        assert ensure_valid_booking_form("Rahim", "r@example.com", "01712345678", None, PATTERN) == "+8801712345678"

    def test_ensure_raises_first_error(self):
        with pytest.raises(ValidationError) as exc_info:
            ensure_valid_booking_form("Rahim", "bad", "123", "Now", PATTERN)
        assert exc_info.value.message == "Please enter a valid email address"
        assert len(exc_info.value.errors) == 2
