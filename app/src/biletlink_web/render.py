from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from html import escape
from pathlib import Path
from typing import Iterable, Optional
from zoneinfo import ZoneInfo

from .context import SiteContext
from .models import EventDetail, GroupedSession
from .platforms import platform_style
from .sessions import cheapest_offer, page_cheapest_price, price_spread_percent
from .slugs import event_path

MONTHS = (
    "Ocak", "Şubat", "Mart", "Nisan", "Mayıs", "Haziran",
    "Temmuz", "Ağustos", "Eylül", "Ekim", "Kasım", "Aralık",
)
WEEKDAYS = ("Pazartesi", "Salı", "Çarşamba", "Perşembe", "Cuma", "Cumartesi", "Pazar")
SHORT_MONTHS = ("Oca", "Şub", "Mar", "Nis", "May", "Haz", "Tem", "Ağu", "Eyl", "Eki", "Kas", "Ara")
SHORT_WEEKDAYS = ("Pzt", "Sal", "Çar", "Per", "Cum", "Cmt", "Paz")


@dataclass(frozen=True)
class EventLink:
    title: str
    href: str        # relative path in out/, e.g. "event_42.html"
    subtitle: str = ""


def _local(dt: datetime, tz: Optional[ZoneInfo]) -> datetime:
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(tz) if tz else dt


def format_price(price: Optional[float]) -> str:
    if price is None:
        return "-"
    return f"{price:.0f}₺" if price > 0 else "Ücretsiz"


def format_date(dt: datetime, tz: Optional[ZoneInfo] = None) -> str:
    local = _local(dt, tz)
    return f"{local.day} {MONTHS[local.month - 1]} {local.year} {WEEKDAYS[local.weekday()]}"


def format_time(dt: datetime, tz: Optional[ZoneInfo] = None) -> str:
    return _local(dt, tz).strftime("%H:%M")


def format_session_date(dt: datetime, tz: Optional[ZoneInfo] = None) -> dict[str, str]:
    local = _local(dt, tz)
    return {
        "day": str(local.day),
        "month": SHORT_MONTHS[local.month - 1],
        "weekday": SHORT_WEEKDAYS[local.weekday()],
        "time": local.strftime("%H:%M"),
    }


def _session_row(event: EventDetail, group: GroupedSession, tz: Optional[ZoneInfo]) -> str:
    info = format_session_date(group.session_date, tz)
    cheapest = cheapest_offer(group)
    venue_name = group.venue_name or (event.venue.name if event.venue else "")
    city = event.venue.city if event.venue else ""
    spread = price_spread_percent(group)

    offers = []
    for offer in group.platforms:
        style = platform_style(offer.platform)
        is_cheapest = offer is cheapest and len(group.platforms) > 1
        badge = '<span class="badge badge--cheapest">EN UCUZ</span>' if is_cheapest else ""
        title = f'<span class="offer__title">{escape(offer.title)}</span>' if offer.title != offer.platform else ""
        offers.append(
            f'<a class="offer{" offer--cheapest" if is_cheapest else ""}" href="{escape(offer.url)}" '
            f'target="_blank" rel="noopener noreferrer" data-platform="{escape(offer.platform)}">'
            f'{badge}<span class="offer__platform {escape(style.text)}">{escape(offer.platform)}</span>'
            f"{title}"
            f'<span class="offer__price">{escape(format_price(offer.price))}</span></a>'
        )
    if cheapest is not None and cheapest.url:
        offers.append(
            f'<a class="buy" href="{escape(cheapest.url)}" target="_blank" rel="noopener noreferrer">Satın Al</a>'
        )
    spread_html = f'<span class="spread">%{spread} fark</span>' if spread else ""
    offers_html = "".join(offers)

    return f"""
      <article class="session">
        <div class="session__date">
          <span class="session__weekday">{escape(info['weekday'])}</span>
          <span class="session__day">{escape(info['day'])}</span>
          <span class="session__month">{escape(info['month'])}</span>
        </div>
        <div class="session__info">
          <span class="session__time">{escape(info['time'])}</span>
          <div class="session__venue">{escape(venue_name)}</div>
          <div class="session__city">{escape(city)}</div>
          {spread_html}
        </div>
        <div class="session__offers">{offers_html}</div>
      </article>"""


def build_event_html(
    event: EventDetail,
    groups: Iterable[GroupedSession],
    *,
    site_url: str,
    tz: Optional[ZoneInfo] = None,
    context: Optional[SiteContext] = None,
) -> str:
    groups = list(groups)
    cheapest_price = page_cheapest_price(event, groups)
    share_url = f"{site_url}{event_path(event)}"
    home_href = context.home_path() if context else "/"

    if groups:
        rows = "".join(_session_row(event, g, tz) for g in groups)
    else:
        rows = '<p class="empty">Bu etkinlik için bilet bilgisi bulunamadı.</p>'

    venue_html = ""
    if event.venue:
        address = f" • {escape(event.venue.address)}" if event.venue.address else ""
        venue_html = f"""
      <aside class="venue">
        <h3>{escape(event.venue.name)}</h3>
        <p>{escape(event.venue.city)}{address}</p>
        <a href="/mekan/{escape(event.venue.slug or event.venue.id)}">Mekan Detayları</a>
      </aside>"""

    artist_html = ""
    if event.artist:
        artist_html = f"""
      <aside class="artist">
        <h3>{escape(event.artist.name)}</h3>
        <a href="/sanatci/{escape(event.artist.slug or event.artist.id)}">Tüm Etkinlikleri</a>
      </aside>"""

    venue_span = f"<span>{escape(event.venue.name)}</span>" if event.venue else ""
    description_html = f'<div class="description">{escape(event.description)}</div>' if event.description else ""

    html = f"""<!doctype html>
<html lang="tr">
<head>
  <meta charset="utf-8" />
  <meta name="viewport" content="width=device-width, initial-scale=1" />
  <title>{escape(event.name)} | BiletLink</title>
  <link rel="canonical" href="{escape(share_url)}" />
</head>
<body>
  <header class="hero">
    <span class="category">{escape(event.category or '')}</span>
    <h1>{escape(event.name)}</h1>
    <div class="meta">
      <span>{escape(format_date(event.date, tz))}</span>
      <span>{escape(format_time(event.date, tz))}</span>
      {venue_span}
    </div>
    <div class="price-tag">
      <div class="price-tag__label">Başlayan Fiyatlarla</div>
      <div class="price-tag__value">{escape(format_price(cheapest_price))}</div>
    </div>
    <a class="share" href="{escape(share_url)}" data-copy="{escape(share_url)}">Paylaş</a>
  </header>
  <main>
    {description_html}
    <section class="tickets">
      <h2>Bilet Seçenekleri <span class="count">{len(groups)} seans bulundu</span></h2>
      {rows}
    </section>
    {artist_html}
    {venue_html}
  </main>
  <footer><a href="{escape(home_href)}">Tüm Etkinliklere Dön</a></footer>
</body>
</html>
"""
    logging.getLogger(__name__).debug(
        "event_html_built event_id=%s groups=%s cheapest_price=%s",
        event.id,
        len(groups),
        cheapest_price,
    )
    return html


def build_not_found_html(message: str = "Etkinlik bulunamadı", home_href: str = "/") -> str:
    return f"""<!doctype html>
<html lang="tr">
<head>
  <meta charset="utf-8" />
  <title>Etkinlik Bulunamadı | BiletLink</title>
</head>
<body>
  <main class="not-found">
    <h1>{escape(message)}</h1>
    <a href="{escape(home_href)}">← Ana Sayfaya Dön</a>
  </main>
</body>
</html>
"""


def build_index_html(
    links: Iterable[EventLink],
    site_title: str = "BiletLink",
    last_updated: Optional[datetime] = None,
    context: Optional[SiteContext] = None,
    status_href: str = "status.json",
) -> str:
    links = list(links)
    updated_text = _local(last_updated, None).strftime("%Y-%m-%d %H:%M:%S %Z") if last_updated else "—"
    city = context.selected_city.name if context and context.selected_city else ""

    items = "".join(
        f"""
      <li><a href="{escape(link.href)}">{escape(link.title)}</a>"""
        + (f' <span class="muted">{escape(link.subtitle)}</span>' if link.subtitle else "")
        + "</li>"
        for link in links
    )
    city_suffix = f" — {escape(city)}" if city else ""
    body = f"<ul>{items}\n    </ul>" if links else '<p class="muted">Etkinlik yok.</p>'

    return f"""<!doctype html>
<html lang="tr">
<head>
  <meta charset="utf-8" />
  <title>{escape(site_title)}</title>
</head>
<body>
  <header>
    <h1>{escape(site_title)}{city_suffix}</h1>
    <div class="meta">Son güncelleme: <code>{escape(updated_text)}</code> · <a href="{escape(status_href)}">status.json</a></div>
  </header>
  <main>
    {body}
  </main>
</body>
</html>
"""


def atomic_write_text(path: Path, text: str, encoding: str = "utf-8") -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_suffix(path.suffix + ".tmp")
    try:
        tmp.write_text(text, encoding=encoding)
        tmp.replace(path)
    except OSError:
        tmp.unlink(missing_ok=True)
        raise
