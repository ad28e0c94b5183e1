"""Regroup ticket options into one row per showing.

Offers are bucketed by exact session timestamp. Inside a bucket an offer is
identified by (platform, title): the same vendor can sell several distinct
products for one showing, and those stay separate. Repeated offers for the
same product keep the lowest price.
"""
import logging
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Iterable, List, Optional

from .models import EventDetail, GroupedSession, PlatformOffer, TicketOption


@dataclass
class _Bucket:
    session_date: datetime
    venue_name: Optional[str]
    platforms: List[PlatformOffer] = field(default_factory=list)


def _price_sort_key(offer: PlatformOffer) -> tuple:
    # unpriced offers go last
    return (offer.price is None, offer.price if offer.price is not None else 0.0)


def _merge_offer(bucket: _Bucket, offer: PlatformOffer) -> None:
    for idx, existing in enumerate(bucket.platforms):
        if existing.platform != offer.platform or existing.title != offer.title:
            continue
        if offer.price is not None and (existing.price is None or offer.price < existing.price):
            bucket.platforms[idx] = replace(existing, price=offer.price, url=offer.url)
        return
    bucket.platforms.append(offer)


def _bucket_for(buckets: dict, key: datetime, venue_name: Optional[str]) -> _Bucket:
    # naive timestamps are taken as UTC
    if key.tzinfo is None:
        key = key.replace(tzinfo=timezone.utc)
    bucket = buckets.get(key)
    if bucket is None:
        bucket = _Bucket(session_date=key, venue_name=venue_name)
        buckets[key] = bucket
    return bucket


def group_sessions(
    ticket_options: Iterable[TicketOption],
    event_date: datetime,
) -> List[GroupedSession]:
    """Group offers by showing, cheapest first within each showing.

    Options without sessions are filed under ``event_date`` using their first
    price entry. Options with neither sessions nor prices are ignored.
    The result is ordered chronologically.
    """
    buckets: dict[datetime, _Bucket] = {}
    options_seen = 0

    for option in ticket_options:
        options_seen += 1
        title = option.platform_title or option.platform
        first = option.prices[0] if option.prices else None
        fallback_price = first.price if first is not None else None
        fallback_url = (
            (first.affiliate_url if first is not None else "")
            or (first.url if first is not None else "")
            or option.event_url
        )

        if option.sessions:
            for session in option.sessions:
                bucket = _bucket_for(buckets, session.session_date, session.venue_name)
                price = session.min_price if session.min_price is not None else fallback_price
                url = session.performance_url or fallback_url
                _merge_offer(
                    bucket,
                    PlatformOffer(platform=option.platform, title=title, price=price, url=url),
                )
        elif first is not None:
            bucket = _bucket_for(buckets, event_date, None)
            _merge_offer(
                bucket,
                PlatformOffer(platform=option.platform, title=title, price=fallback_price, url=fallback_url),
            )

    grouped = [
        GroupedSession(
            session_date=b.session_date,
            venue_name=b.venue_name,
            platforms=sorted(b.platforms, key=_price_sort_key),
        )
        for b in buckets.values()
    ]
    grouped.sort(key=lambda g: g.session_date)
    logging.getLogger(__name__).debug(
        "sessions_grouped options=%s groups=%s offers=%s",
        options_seen,
        len(grouped),
        sum(len(g.platforms) for g in grouped),
    )
    return grouped


def cheapest_offer(group: GroupedSession) -> Optional[PlatformOffer]:
    if not group.platforms:
        return None
    best = group.platforms[0]
    for offer in group.platforms[1:]:
        if offer.price is not None and (best.price is None or offer.price < best.price):
            best = offer
    return best


def page_cheapest_price(event: EventDetail, groups: Iterable[GroupedSession]) -> Optional[float]:
    """Headline "from" price for the event page.

    The backend's own ``min_price`` wins when it is set; otherwise the
    lowest priced cheapest offer across all showings.
    """
    if event.min_price is not None:
        return event.min_price
    prices = []
    for group in groups:
        offer = cheapest_offer(group)
        if offer is not None and offer.price is not None:
            prices.append(offer.price)
    return min(prices) if prices else None


def price_spread_percent(group: GroupedSession) -> Optional[int]:
    prices = [o.price for o in group.platforms if o.price is not None]
    if len(prices) < 2:
        return None
    low, high = min(prices), max(prices)
    if low >= high or high == 0:
        return None
    spread = round((high - low) / high * 100)
    return spread if spread > 0 else None
