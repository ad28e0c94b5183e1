import tempfile
import unittest
from datetime import datetime, timezone
from pathlib import Path
from unittest import mock
from zoneinfo import ZoneInfo

from biletlink_web.context import SiteContext
from biletlink_web.models import EventDetail, Price, Session, TicketOption, Venue
from biletlink_web.render import (
    EventLink,
    atomic_write_text,
    build_event_html,
    build_index_html,
    build_not_found_html,
    format_date,
    format_price,
    format_session_date,
)
from biletlink_web.sessions import group_sessions

IST = ZoneInfo("Europe/Istanbul")
SHOW = datetime(2025, 6, 1, 17, 0, tzinfo=timezone.utc)


def _event(options, **kwargs) -> EventDetail:
    return EventDetail(
        id="42",
        name="Duman <Akustik>",
        date=SHOW,
        ticket_options=options,
        category="Konser",
        venue=Venue(id="v1", name="Zorlu PSM", city="İstanbul"),
        **kwargs,
    )


class FormatTests(unittest.TestCase):
    def test_format_price(self) -> None:
        self.assertEqual(format_price(850), "850₺")
        self.assertEqual(format_price(0), "Ücretsiz")
        self.assertEqual(format_price(None), "-")

    def test_turkish_dates_in_local_time(self) -> None:
        self.assertEqual(format_date(SHOW, IST), "1 Haziran 2025 Pazar")
        self.assertEqual(
            format_session_date(SHOW, IST),
            {"day": "1", "month": "Haz", "weekday": "Paz", "time": "20:00"},
        )


class EventHtmlTests(unittest.TestCase):
    def test_rows_badges_and_escaping(self) -> None:
        options = [
            TicketOption(platform="Biletix", sessions=[Session(session_date=SHOW, min_price=150, performance_url="https://bx/1")]),
            TicketOption(platform="Bubilet", sessions=[Session(session_date=SHOW, min_price=120, performance_url="https://bb/1")]),
        ]
        event = _event(options)
        groups = group_sessions(event.ticket_options, event.date)
        html = build_event_html(event, groups, site_url="https://biletlink.co", tz=IST)

        self.assertIn("Duman &lt;Akustik&gt;", html)
        self.assertNotIn("<Akustik>", html)
        self.assertEqual(html.count("EN UCUZ"), 1)
        self.assertIn("1 seans bulundu", html)
        self.assertIn("120₺", html)
        self.assertIn('<a class="buy" href="https://bb/1"', html)
        self.assertIn("https://biletlink.co/istanbul/konser/42", html)
        self.assertIn("%20 fark", html)

    def test_single_offer_has_no_badge(self) -> None:
        event = _event([TicketOption(platform="Biletix", prices=[Price(price=80, url="https://bx")])])
        groups = group_sessions(event.ticket_options, event.date)
        html = build_event_html(event, groups, site_url="https://biletlink.co")
        self.assertNotIn("EN UCUZ", html)
        self.assertIn("80₺", html)

    def test_empty_state_and_backend_min_price(self) -> None:
        event = _event([], min_price=99)
        html = build_event_html(event, [], site_url="https://biletlink.co")
        self.assertIn("bilet bilgisi bulunamadı", html)
        self.assertIn("99₺", html)

    def test_unpriced_event_headline_is_not_free(self) -> None:
        event = _event([TicketOption(platform="Biletix", sessions=[Session(session_date=SHOW)])])
        groups = group_sessions(event.ticket_options, event.date)
        html = build_event_html(event, groups, site_url="https://biletlink.co")
        self.assertIn('<div class="price-tag__value">-</div>', html)
        self.assertNotIn("Ücretsiz", html)

    def test_home_link_follows_selected_city(self) -> None:
        context = SiteContext()
        context.select_city("izmir")
        html = build_event_html(_event([]), [], site_url="https://biletlink.co", context=context)
        self.assertIn('href="/izmir"', html)
        self.assertIn('href="/"', build_not_found_html())


class IndexTests(unittest.TestCase):
    def test_index_lists_pages(self) -> None:
        html = build_index_html(
            [EventLink(title="Duman", href="event_42.html", subtitle="ok")],
            last_updated=datetime(2026, 1, 4, tzinfo=timezone.utc),
        )
        self.assertIn("event_42.html", html)
        self.assertIn("Duman", html)
        self.assertIn("Etkinlik yok.", build_index_html([]))

    def test_atomic_write_text(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "nested" / "page.html"
            atomic_write_text(path, "ilk")
            atomic_write_text(path, "ikinci")
            self.assertEqual(path.read_text("utf-8"), "ikinci")
            self.assertEqual(list(path.parent.iterdir()), [path])

    def test_atomic_write_text_cleans_up_on_failure(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "page.html"
            atomic_write_text(path, "eski")
            with mock.patch.object(Path, "replace", side_effect=OSError("disk full")):
                with self.assertRaises(OSError):
                    atomic_write_text(path, "yeni")
            self.assertEqual(path.read_text("utf-8"), "eski")
            self.assertEqual(list(Path(tmpdir).iterdir()), [path])


if __name__ == "__main__":
    unittest.main()
