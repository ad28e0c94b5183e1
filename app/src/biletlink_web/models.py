import logging
import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional

from .errors import InvalidEventData

@dataclass(frozen=True)
class Price:
    price: Optional[float]
    currency: str = "TRY"
    url: str = ""
    affiliate_url: str = ""

@dataclass(frozen=True)
class Session:
    session_date: datetime
    venue_name: Optional[str] = None
    min_price: Optional[float] = None
    performance_url: Optional[str] = None
    is_available: bool = True
    id: str = ""

@dataclass(frozen=True)
class TicketOption:
    platform: str
    platform_title: str = ""
    event_url: str = ""
    is_vip: bool = False
    is_dinner_included: bool = False
    is_available: bool = True
    prices: list[Price] = field(default_factory=list)
    sessions: list[Session] = field(default_factory=list)

@dataclass(frozen=True)
class Venue:
    id: str
    name: str
    city: str = ""
    slug: Optional[str] = None
    address: Optional[str] = None

@dataclass(frozen=True)
class Artist:
    id: str
    name: str
    slug: Optional[str] = None
    image_url: Optional[str] = None

@dataclass(frozen=True)
class EventDetail:
    id: str
    name: str
    date: datetime
    ticket_options: list[TicketOption] = field(default_factory=list)
    slug: Optional[str] = None
    description: Optional[str] = None
    image_url: Optional[str] = None
    category: Optional[str] = None
    min_price: Optional[float] = None
    view_count: int = 0
    artist: Optional[Artist] = None
    venue: Optional[Venue] = None

@dataclass(frozen=True)
class PlatformOffer:
    platform: str
    title: str
    price: Optional[float]
    url: str = ""

@dataclass(frozen=True)
class GroupedSession:
    session_date: datetime
    venue_name: Optional[str] = None
    platforms: list[PlatformOffer] = field(default_factory=list)


def parse_datetime(raw: Any) -> Optional[datetime]:
    if isinstance(raw, datetime):
        parsed = raw
    elif isinstance(raw, str) and raw.strip():
        value = raw.strip()
        if value.endswith("Z"):
            value = value[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(value)
        except ValueError:
            return None
    else:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _float(raw: Any) -> Optional[float]:
    if raw is None or isinstance(raw, bool):
        return None
    try:
        value = float(raw)
    except (TypeError, ValueError):
        return None
    return value if math.isfinite(value) else None


def _str(raw: Any) -> str:
    return str(raw) if raw is not None else ""


def _opt_str(raw: Any) -> Optional[str]:
    if raw is None:
        return None
    value = str(raw).strip()
    return value or None


def _parse_price(raw: dict) -> Price:
    return Price(
        price=_float(raw.get("price")),
        currency=_str(raw.get("currency")) or "TRY",
        url=_str(raw.get("url")),
        affiliate_url=_str(raw.get("affiliateUrl")),
    )


def _parse_sessions(raw_sessions: list, platform: str) -> list[Session]:
    logger = logging.getLogger(__name__)
    sessions: list[Session] = []
    for raw in raw_sessions or []:
        if not isinstance(raw, dict):
            continue
        session_date = parse_datetime(raw.get("sessionDate"))
        if session_date is None:
            logger.warning(
                "session_skipped_invalid_date platform=%s session_id=%s raw_date=%s",
                platform,
                raw.get("id", ""),
                raw.get("sessionDate"),
            )
            continue
        sessions.append(
            Session(
                session_date=session_date,
                venue_name=_opt_str(raw.get("venueName")),
                min_price=_float(raw.get("minPrice")),
                performance_url=_opt_str(raw.get("performanceUrl")),
                is_available=bool(raw.get("isAvailable", True)),
                id=_str(raw.get("id")),
            )
        )
    return sessions


def parse_ticket_option(raw: dict) -> TicketOption:
    platform = _str(raw.get("platform"))
    return TicketOption(
        platform=platform,
        platform_title=_str(raw.get("platformTitle")),
        event_url=_str(raw.get("eventUrl")),
        is_vip=bool(raw.get("isVip", False)),
        is_dinner_included=bool(raw.get("isDinnerIncluded", False)),
        is_available=bool(raw.get("isAvailable", True)),
        prices=[_parse_price(p) for p in raw.get("prices") or [] if isinstance(p, dict)],
        sessions=_parse_sessions(raw.get("sessions") or [], platform),
    )


def parse_event_detail(payload: dict) -> EventDetail:
    """Build an EventDetail from the backend's master-event JSON.

    Sessions with a missing or unparsable date are dropped (and logged);
    the event's own date is required because it keys sessionless offers.
    """
    if not isinstance(payload, dict):
        raise InvalidEventData("event payload must be an object")
    event_id = _str(payload.get("id"))
    if not event_id:
        raise InvalidEventData("event payload has no id")
    event_date = parse_datetime(payload.get("date"))
    if event_date is None:
        raise InvalidEventData(f"event {event_id} has invalid date {payload.get('date')!r}")

    artist = None
    raw_artist = payload.get("artist")
    if isinstance(raw_artist, dict) and raw_artist.get("name"):
        artist = Artist(
            id=_str(raw_artist.get("id")),
            name=_str(raw_artist.get("name")),
            slug=_opt_str(raw_artist.get("slug")),
            image_url=_opt_str(raw_artist.get("imageUrl")),
        )

    venue = None
    raw_venue = payload.get("venue")
    if isinstance(raw_venue, dict) and raw_venue.get("name"):
        venue = Venue(
            id=_str(raw_venue.get("id")),
            name=_str(raw_venue.get("name")),
            city=_str(raw_venue.get("city")),
            slug=_opt_str(raw_venue.get("slug")),
            address=_opt_str(raw_venue.get("address")),
        )

    return EventDetail(
        id=event_id,
        name=_str(payload.get("name")),
        date=event_date,
        ticket_options=[
            parse_ticket_option(o) for o in payload.get("ticketOptions") or [] if isinstance(o, dict)
        ],
        slug=_opt_str(payload.get("slug")),
        description=_opt_str(payload.get("description")),
        image_url=_opt_str(payload.get("imageUrl")),
        category=_opt_str(payload.get("category")),
        min_price=_float(payload.get("minPrice")),
        view_count=int(_float(payload.get("viewCount")) or 0),
        artist=artist,
        venue=venue,
    )
