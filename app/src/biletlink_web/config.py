from dataclasses import dataclass
from pathlib import Path
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError
from dotenv import load_dotenv
import logging
import os

load_dotenv()

DEFAULT_TIMEZONE = "Europe/Istanbul"

@dataclass(frozen=True)
class Config:
    api_url: str
    site_url: str
    timezone: str

    out_dir: Path
    event_ids: list[str]
    selected_city: str
    redis_url: str | None
    cache_enabled: bool
    event_cache_ttl_seconds: int
    cache_negative_ttl_seconds: int
    fetch_concurrency: int
    request_timeout_ms: int
    track_views: bool

def load_config() -> Config:
    out_dir = Path(os.getenv("OUT_DIR", "./out"))
    out_dir.mkdir(parents=True, exist_ok=True)
    logger = logging.getLogger(__name__)

    def _int(name: str, default: int) -> int:
        raw = os.getenv(name, str(default))
        try:
            return int(raw.strip())
        except ValueError:
            logger.warning("invalid %s=%s, using default=%s", name, raw, default)
            return default

    def _positive(name: str, default: int) -> int:
        value = _int(name, default)
        if value <= 0:
            logger.warning(
                "invalid %s=%s, using default=%s",
                name,
                os.getenv(name, ""),
                default,
            )
            return default
        return value

    def _bool(name: str, default: bool) -> bool:
        raw = os.getenv(name)
        if raw is None or raw.strip() == "":
            return default
        val = raw.strip().lower()
        if val in ("1", "true", "yes", "on"):
            return True
        if val in ("0", "false", "no", "off"):
            return False
        logger.warning(
            "invalid %s=%s, using default=%s",
            name,
            raw,
            default,
        )
        return default

    def _list(name: str) -> list[str]:
        raw = os.getenv(name, "")
        items = [x.strip() for x in raw.split(",") if x.strip()]
        return items

    def _timezone(name: str, default: str) -> str:
        raw = os.getenv(name, "").strip()
        if not raw:
            return default
        try:
            ZoneInfo(raw)
        except (ZoneInfoNotFoundError, ValueError):
            logger.warning("invalid %s=%s, using default=%s", name, raw, default)
            return default
        return raw

    api_url = (
        os.getenv("API_URL", "").strip()
        or os.getenv("NEXT_PUBLIC_API_URL", "").strip()
        or "http://localhost:5001"
    )
    redis_url = os.getenv("REDIS_URL", "").strip() or None

    return Config(
        api_url=api_url.rstrip("/"),
        site_url=os.getenv("SITE_URL", "https://biletlink.co").rstrip("/"),
        timezone=_timezone("TIMEZONE", DEFAULT_TIMEZONE),

        out_dir=out_dir,
        event_ids=_list("EVENT_IDS"),
        selected_city=os.getenv("SELECTED_CITY", "").strip(),
        redis_url=redis_url,
        cache_enabled=_bool("CACHE_ENABLED", bool(redis_url)),
        event_cache_ttl_seconds=_positive("EVENT_CACHE_TTL_SECONDS", 60),
        cache_negative_ttl_seconds=_positive("CACHE_NEGATIVE_TTL_SECONDS", 30),
        fetch_concurrency=_positive("FETCH_CONCURRENCY", 4),
        request_timeout_ms=_positive("REQUEST_TIMEOUT_MS", 20000),
        track_views=_bool("TRACK_VIEWS", True),
    )
