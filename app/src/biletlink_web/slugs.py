import re

from .models import EventDetail

_TURKISH_ASCII = str.maketrans({
    "ç": "c", "Ç": "c",
    "ğ": "g", "Ğ": "g",
    "ı": "i", "I": "i", "İ": "i",
    "ö": "o", "Ö": "o",
    "ş": "s", "Ş": "s",
    "ü": "u", "Ü": "u",
})

DEFAULT_SEGMENT = "etkinlik"


def slugify(text: str | None) -> str:
    # fold before lower(): "İ".lower() would leave a combining dot behind
    folded = (text or "").translate(_TURKISH_ASCII).lower()
    return re.sub(r"[^a-z0-9]+", "-", folded).strip("-")


def city_to_slug(name: str | None) -> str:
    return slugify(name)


def event_path(event: EventDetail) -> str:
    city = slugify(event.venue.city if event.venue else "") or DEFAULT_SEGMENT
    category = slugify(event.category) or DEFAULT_SEGMENT
    return f"/{city}/{category}/{event.slug or event.id}"
