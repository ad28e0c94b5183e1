import os
import tempfile
import unittest
from pathlib import Path
from unittest import mock

from biletlink_web.config import load_config


class LoadConfigTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.out_dir = Path(self._tmp.name) / "out"

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def _load(self, **env):
        env.setdefault("OUT_DIR", str(self.out_dir))
        with mock.patch.dict(os.environ, env, clear=True):
            return load_config()

    def test_defaults(self) -> None:
        cfg = self._load()
        self.assertEqual(cfg.api_url, "http://localhost:5001")
        self.assertEqual(cfg.site_url, "https://biletlink.co")
        self.assertEqual(cfg.timezone, "Europe/Istanbul")
        self.assertEqual(cfg.event_ids, [])
        self.assertFalse(cfg.cache_enabled)
        self.assertEqual(cfg.event_cache_ttl_seconds, 60)
        self.assertEqual(cfg.fetch_concurrency, 4)
        self.assertTrue(cfg.track_views)
        self.assertTrue(self.out_dir.is_dir())

    def test_env_overrides(self) -> None:
        cfg = self._load(
            NEXT_PUBLIC_API_URL="https://api.biletlink.co/",
            EVENT_IDS="42, 43,,44",
            REDIS_URL="redis://localhost:6379/0",
            TRACK_VIEWS="off",
            SELECTED_CITY="Ankara",
        )
        self.assertEqual(cfg.api_url, "https://api.biletlink.co")
        self.assertEqual(cfg.event_ids, ["42", "43", "44"])
        self.assertTrue(cfg.cache_enabled)
        self.assertFalse(cfg.track_views)
        self.assertEqual(cfg.selected_city, "Ankara")

    def test_api_url_takes_precedence(self) -> None:
        cfg = self._load(API_URL="http://api:8080", NEXT_PUBLIC_API_URL="https://public")
        self.assertEqual(cfg.api_url, "http://api:8080")

    def test_invalid_numbers_fall_back(self) -> None:
        with self.assertLogs("biletlink_web.config", level="WARNING"):
            cfg = self._load(FETCH_CONCURRENCY="0", EVENT_CACHE_TTL_SECONDS="abc", TRACK_VIEWS="maybe")
        self.assertEqual(cfg.fetch_concurrency, 4)
        self.assertEqual(cfg.event_cache_ttl_seconds, 60)
        self.assertTrue(cfg.track_views)

    def test_unparsable_integer_is_logged(self) -> None:
        with self.assertLogs("biletlink_web.config", level="WARNING") as logs:
            cfg = self._load(REQUEST_TIMEOUT_MS="abc")
        self.assertEqual(cfg.request_timeout_ms, 20000)
        self.assertTrue(any("REQUEST_TIMEOUT_MS=abc" in line for line in logs.output))

    def test_unknown_timezone_falls_back(self) -> None:
        with self.assertLogs("biletlink_web.config", level="WARNING") as logs:
            cfg = self._load(TIMEZONE="Mars/Olympus_Mons")
        self.assertEqual(cfg.timezone, "Europe/Istanbul")
        self.assertTrue(any("TIMEZONE=Mars/Olympus_Mons" in line for line in logs.output))

    def test_valid_timezone_is_kept(self) -> None:
        self.assertEqual(self._load(TIMEZONE="UTC").timezone, "UTC")


if __name__ == "__main__":
    unittest.main()
