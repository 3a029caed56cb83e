"""Tests for confirmation message rendering."""

from urllib.parse import unquote

from scheduler.config import DEFAULT_WHATSAPP_TEMPLATE
from scheduler.services.messages import format_time_12h, render_whatsapp_message, whatsapp_link

from conftest import DAY1, make_booking


class TestFormatTime12h:
    def test_afternoon(self):
        assert format_time_12h("14:30") == "2:30 PM"

    def test_noon_and_midnight(self):
        assert format_time_12h("12:00") == "12:00 PM"
        assert format_time_12h("00:15") == "12:15 AM"
        assert format_time_12h("24:00") == "12:00 AM"

    def test_malformed_passthrough(self):
        assert format_time_12h("soon") == "soon"
        assert format_time_12h("") == ""


class TestRenderMessage:
    def test_default_template(self):
        booking = make_booking(meet_link="https://meet.google.com/abc")
        message = render_whatsapp_message(DEFAULT_WHATSAPP_TEMPLATE, booking)
        # 2030-01-15 is a Tuesday
        assert message == (
            f"Hello Rahim Uddin, your interview is confirmed for Tuesday, {DAY1} "
            "at 09:00 - 10:00. Video Link: https://meet.google.com/abc"
        )

    def test_missing_link(self):
        message = render_whatsapp_message("Link: {link}", make_booking())
        assert message == "Link: Will be shared soon"

    def test_repeated_placeholder(self):
        message = render_whatsapp_message("{name} / {name}", make_booking())
        assert message == "Rahim Uddin / Rahim Uddin"


class TestWhatsAppLink:
    def test_link(self):
        link = whatsapp_link("+880 1712-345678", "Hello & welcome")
        assert link.startswith("https://wa.me/8801712345678?text=")
        assert unquote(link.split("text=", 1)[1]) == "Hello & welcome"
