import unittest
from datetime import datetime, timezone

from biletlink_web.errors import InvalidEventData
from biletlink_web.models import parse_datetime, parse_event_detail
from biletlink_web.sessions import group_sessions

PAYLOAD = {
    "id": "42",
    "name": "Duman",
    "slug": "duman-istanbul",
    "date": "2025-06-01T17:00:00Z",
    "category": "Konser",
    "minPrice": None,
    "artist": {"id": "a1", "name": "Duman", "slug": "duman"},
    "venue": {"id": "v1", "name": "Zorlu PSM", "city": "İstanbul"},
    "ticketOptions": [
        {
            "platform": "Biletix",
            "platformTitle": "Duman Konseri",
            "eventUrl": "https://biletix.example/duman",
            "isVip": False,
            "isDinnerIncluded": False,
            "prices": [{"price": 850, "currency": "TRY", "url": "https://biletix.example/p", "affiliateUrl": None}],
            "sessions": [
                {"id": "s1", "sessionDate": "2025-06-01T17:00:00Z", "venueName": "Zorlu PSM", "minPrice": 750, "isAvailable": True},
                {"id": "s2", "sessionDate": "not-a-date", "minPrice": 500, "isAvailable": True},
            ],
        },
        {
            "platform": "Bubilet",
            "platformTitle": "",
            "prices": [{"price": "820.5", "currency": "TRY"}],
            "sessions": [],
        },
    ],
}


class ParseEventDetailTests(unittest.TestCase):
    def test_parses_nested_payload(self) -> None:
        event = parse_event_detail(PAYLOAD)
        self.assertEqual(event.id, "42")
        self.assertEqual(event.date, datetime(2025, 6, 1, 17, 0, tzinfo=timezone.utc))
        self.assertEqual(event.venue.city, "İstanbul")
        self.assertEqual(event.artist.slug, "duman")
        self.assertIsNone(event.min_price)
        self.assertEqual(len(event.ticket_options), 2)

        biletix = event.ticket_options[0]
        self.assertEqual(biletix.platform_title, "Duman Konseri")
        self.assertEqual(biletix.prices[0].price, 850.0)
        self.assertEqual(biletix.prices[0].affiliate_url, "")
        self.assertEqual(biletix.sessions[0].min_price, 750.0)

        bubilet = event.ticket_options[1]
        self.assertEqual(bubilet.prices[0].price, 820.5)
        self.assertEqual(bubilet.sessions, [])

    def test_session_with_bad_date_is_skipped_and_logged(self) -> None:
        with self.assertLogs("biletlink_web.models", level="WARNING") as logs:
            event = parse_event_detail(PAYLOAD)
        self.assertEqual([s.id for s in event.ticket_options[0].sessions], ["s1"])
        self.assertTrue(any("session_skipped_invalid_date" in line for line in logs.output))

    def test_event_without_valid_date_is_rejected(self) -> None:
        with self.assertRaises(InvalidEventData):
            parse_event_detail({"id": "1", "name": "X", "date": "soon"})
        with self.assertRaises(InvalidEventData):
            parse_event_detail({"name": "X", "date": "2025-06-01"})
        with self.assertRaises(InvalidEventData):
            parse_event_detail(["not", "a", "dict"])

    def test_missing_collections_default_to_empty(self) -> None:
        event = parse_event_detail({"id": "7", "name": "Bare", "date": "2025-07-01"})
        self.assertEqual(event.ticket_options, [])
        self.assertIsNone(event.venue)
        self.assertIsNone(event.artist)

    def test_non_finite_numbers_are_treated_as_missing(self) -> None:
        event = parse_event_detail(
            {
                "id": "9",
                "name": "X",
                "date": "2025-07-01",
                "minPrice": "inf",
                "viewCount": "Infinity",
                "ticketOptions": [
                    {"platform": "A", "prices": [{"price": 300}]},
                    {"platform": "B", "prices": [{"price": "NaN"}]},
                    {"platform": "C", "prices": [{"price": 100}]},
                ],
            }
        )
        self.assertIsNone(event.min_price)
        self.assertEqual(event.view_count, 0)
        self.assertEqual([o.prices[0].price for o in event.ticket_options], [300.0, None, 100.0])

        groups = group_sessions(event.ticket_options, event.date)
        self.assertEqual(
            [(p.platform, p.price) for p in groups[0].platforms],
            [("C", 100.0), ("A", 300.0), ("B", None)],
        )


class ParseDatetimeTests(unittest.TestCase):
    def test_naive_values_are_utc(self) -> None:
        self.assertEqual(parse_datetime("2025-06-01T20:00"), datetime(2025, 6, 1, 20, 0, tzinfo=timezone.utc))

    def test_offsets_are_kept(self) -> None:
        parsed = parse_datetime("2025-06-01T20:00:00+03:00")
        self.assertEqual(parsed.utcoffset().total_seconds(), 3 * 3600)

    def test_garbage_is_none(self) -> None:
        self.assertIsNone(parse_datetime(""))
        self.assertIsNone(parse_datetime(None))
        self.assertIsNone(parse_datetime(12345))


if __name__ == "__main__":
    unittest.main()
