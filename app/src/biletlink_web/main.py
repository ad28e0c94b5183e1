import asyncio
import json
import logging
import os
import sys
from datetime import datetime
from pathlib import Path
from time import perf_counter
from zoneinfo import ZoneInfo

from .api import open_api_client
from .cache import build_cache
from .config import load_config
from .context import SiteContext
from .loader import EventLoader, LoadState
from .logging_utils import setup_logging, new_run_id, set_run_id
from .render import (
    EventLink,
    atomic_write_text,
    build_event_html,
    build_index_html,
    build_not_found_html,
)
from .time_utils import format_duration


def _write_status(out_dir: Path, payload: dict, logger: logging.Logger) -> None:
    try:
        atomic_write_text(
            out_dir / "status.json",
            json.dumps(payload, ensure_ascii=False, indent=2, default=str),
        )
    except OSError:
        logger.exception("status_write_failed")


async def render_event(loader: EventLoader, event_id: str, cfg, context: SiteContext) -> dict:
    """Load one event and write its page. Returns the per-event status entry."""
    tz = ZoneInfo(cfg.timezone)
    page_path = cfg.out_dir / f"event_{event_id}.html"
    state = await loader.load(event_id)

    if state is LoadState.SUCCESS and loader.data is not None:
        view = loader.data
        html = build_event_html(view.event, view.groups, site_url=cfg.site_url, tz=tz, context=context)
        atomic_write_text(page_path, html)
        return {
            "event_id": event_id,
            "status": "ok",
            "name": view.event.name,
            "path": page_path.name,
            "groups": len(view.groups),
            "offers": sum(len(g.platforms) for g in view.groups),
            "cheapest_price": view.cheapest_price,
        }

    atomic_write_text(page_path, build_not_found_html(home_href=context.home_path()))
    return {
        "event_id": event_id,
        "status": "error",
        "path": page_path.name,
        "error": {"type": type(loader.error).__name__, "message": str(loader.error)},
    }


async def run_render_job(cfg, logger: logging.Logger, cache, event_ids: list[str], context: SiteContext) -> list[dict]:
    semaphore = asyncio.Semaphore(cfg.fetch_concurrency)

    async with open_api_client(cfg, cache) as client:

        async def one(event_id: str) -> dict:
            async with semaphore:
                loader = EventLoader(client, track_views=cfg.track_views)
                try:
                    return await render_event(loader, event_id, cfg, context)
                except Exception as exc:
                    logger.exception("event_render_failed event_id=%s", event_id)
                    return {
                        "event_id": event_id,
                        "status": "error",
                        "path": None,
                        "error": {"type": type(exc).__name__, "message": str(exc)},
                    }

        results = await asyncio.gather(*(one(event_id) for event_id in event_ids))

    links = [
        EventLink(title=r.get("name") or r["event_id"], href=r["path"], subtitle=r["status"])
        for r in results
        if r.get("path")
    ]
    atomic_write_text(
        cfg.out_dir / "index.html",
        build_index_html(links, last_updated=datetime.now(ZoneInfo(cfg.timezone)), context=context),
    )
    logger.info(
        "render_job_events total=%s ok=%s failed=%s",
        len(results),
        sum(1 for r in results if r["status"] == "ok"),
        sum(1 for r in results if r["status"] != "ok"),
    )
    return list(results)


def main(argv: list[str] | None = None) -> int:
    setup_logging(os.getenv("LOG_LEVEL", "INFO"))
    logger = logging.getLogger(__name__)

    cfg = load_config()
    tz = ZoneInfo(cfg.timezone)
    argv = sys.argv[1:] if argv is None else argv
    event_ids = list(dict.fromkeys([*cfg.event_ids, *argv]))

    run_id = new_run_id()
    set_run_id(run_id)
    logger.info(
        "config api_url=%s cache_enabled=%s event_ttl_seconds=%s fetch_concurrency=%s events=%s",
        cfg.api_url,
        cfg.cache_enabled,
        cfg.event_cache_ttl_seconds,
        cfg.fetch_concurrency,
        len(event_ids),
    )

    context = SiteContext()
    if cfg.selected_city:
        context.select_city(cfg.selected_city)

    if not event_ids:
        logger.warning("render_job_no_events set EVENT_IDS or pass ids as arguments")
        return 0

    cache = build_cache(cfg, logger)
    job_started = datetime.now(tz)
    start_ts = perf_counter()
    status = "ok"
    error = None
    results: list[dict] = []
    logger.info("render_job_start run_at=%s", job_started.isoformat())
    try:
        results = asyncio.run(run_render_job(cfg, logger, cache, event_ids, context))
        if any(r["status"] != "ok" for r in results):
            status = "partial"
    except Exception as exc:
        status = "error"
        error = {"message": str(exc)}
        logger.exception("render_job_failed")
    finally:
        cache.close()

    duration_seconds = perf_counter() - start_ts
    payload = {
        "run_id": run_id,
        "status": status,
        "started_at": job_started.isoformat(),
        "finished_at": datetime.now(tz).isoformat(),
        "duration_seconds": duration_seconds,
        "duration_human": format_duration(duration_seconds),
        "selected_city": context.selected_city.name if context.selected_city else None,
        "events": results,
    }
    if error:
        payload["error"] = error
    _write_status(cfg.out_dir, payload, logger)
    logger.info("render_job_end status=%s duration_human=%s", status, payload["duration_human"])
    return 0 if status != "error" else 1


if __name__ == "__main__":
    sys.exit(main())
