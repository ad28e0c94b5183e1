"""Explicit loading state for one event page.

IDLE -> LOADING -> SUCCESS | FAILED, and back to LOADING on reload.
"""
import logging
from dataclasses import dataclass
from enum import Enum
from time import perf_counter
from typing import Optional, Protocol

from .errors import BiletlinkError, EventNotFound
from .models import EventDetail, GroupedSession, parse_event_detail
from .sessions import group_sessions, page_cheapest_price


class LoadState(Enum):
    IDLE = "idle"
    LOADING = "loading"
    SUCCESS = "success"
    FAILED = "failed"


_ALLOWED = {
    LoadState.IDLE: {LoadState.LOADING},
    LoadState.LOADING: {LoadState.SUCCESS, LoadState.FAILED},
    LoadState.SUCCESS: {LoadState.LOADING, LoadState.IDLE},
    LoadState.FAILED: {LoadState.LOADING, LoadState.IDLE},
}


class EventSource(Protocol):
    async def get_event(self, event_id: str) -> dict | None: ...

    async def track_view(self, event_id: str) -> bool: ...


@dataclass(frozen=True)
class EventView:
    event: EventDetail
    groups: list[GroupedSession]
    cheapest_price: Optional[float]


class EventLoader:
    def __init__(self, source: EventSource, track_views: bool = True) -> None:
        self._source = source
        self._track_views = track_views
        self._state = LoadState.IDLE
        self._data: Optional[EventView] = None
        self._error: Optional[BaseException] = None
        self._logger = logging.getLogger(__name__)

    @property
    def state(self) -> LoadState:
        return self._state

    @property
    def data(self) -> Optional[EventView]:
        return self._data

    @property
    def error(self) -> Optional[BaseException]:
        return self._error

    def _move(self, target: LoadState) -> None:
        if target not in _ALLOWED[self._state]:
            raise RuntimeError(f"illegal load transition {self._state.value} -> {target.value}")
        self._state = target

    def reset(self) -> None:
        self._move(LoadState.IDLE)
        self._data = None
        self._error = None

    async def load(self, event_id: str) -> LoadState:
        self._move(LoadState.LOADING)
        self._data = None
        self._error = None
        start_ts = perf_counter()
        try:
            payload = await self._source.get_event(event_id)
            if payload is None:
                raise EventNotFound(event_id)
            event = parse_event_detail(payload)
            groups = group_sessions(event.ticket_options, event.date)
            view = EventView(event=event, groups=groups, cheapest_price=page_cheapest_price(event, groups))
        except BiletlinkError as exc:
            self._error = exc
            self._move(LoadState.FAILED)
            self._logger.warning("event_load_failed event_id=%s error=%s", event_id, exc)
            return self._state
        except BaseException as exc:
            self._error = exc
            self._move(LoadState.FAILED)
            raise

        if self._track_views:
            try:
                await self._source.track_view(event_id)
            except Exception:
                self._logger.warning("event_view_track_failed event_id=%s", event_id, exc_info=True)
            except BaseException as exc:
                self._error = exc
                self._move(LoadState.FAILED)
                raise

        self._data = view
        self._move(LoadState.SUCCESS)
        self._logger.info(
            "event_load_end event_id=%s groups=%s duration_ms=%s",
            event_id,
            len(view.groups),
            int((perf_counter() - start_ts) * 1000),
        )
        return self._state
