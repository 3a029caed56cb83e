"""
Confirmation messages sent to applicants over WhatsApp.

Template placeholders: {name}, {day}, {date}, {time}, {link}
"""

from datetime import date
from urllib.parse import quote

from .storage import BookingRecord

NO_LINK_TEXT = "Will be shared soon"


def format_time_12h(time24: str) -> str:
    """ "14:30" -> "2:30 PM"; "24:00" is midnight. Malformed input is returned as-is."""
    if not time24 or ":" not in time24:
        return time24 or ""
    hour_str, minute_str = time24.split(":", 1)
    try:
        hour, minute = int(hour_str), int(minute_str)
    except ValueError:
        return time24

    period = "PM" if 12 <= hour < 24 else "AM"
    hour = hour % 12 or 12
    return f"{hour}:{minute:02d} {period}"


def render_whatsapp_message(template: str, booking: BookingRecord) -> str:
    day_name = date.fromisoformat(booking.date).strftime("%A")
    replacements = {
        "{name}": booking.name,
        "{day}": day_name,
        "{date}": booking.date,
        "{time}": f"{booking.start_time} - {booking.end_time}",
        "{link}": booking.meet_link or NO_LINK_TEXT,
    }
    message = template
    for placeholder, value in replacements.items():
        message = message.replace(placeholder, value)
    return message


def whatsapp_link(number: str, message: str) -> str:
    digits = "".join(ch for ch in number if ch.isdigit())
    return f"https://wa.me/{digits}?text={quote(message)}"
