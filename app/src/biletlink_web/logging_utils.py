import contextvars
import logging
import sys
import uuid

_run_id: contextvars.ContextVar[str] = contextvars.ContextVar("run_id", default="-")

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s run_id=%(run_id)s %(message)s"


class RunIdFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        record.run_id = _run_id.get()
        return True


def new_run_id() -> str:
    return uuid.uuid4().hex[:12]


def set_run_id(run_id: str) -> None:
    _run_id.set(run_id)


def setup_logging(level: str = "INFO") -> None:
    root = logging.getLogger()
    for handler in list(root.handlers):
        if getattr(handler, "_biletlink", False):
            root.removeHandler(handler)
    handler = logging.StreamHandler(sys.stdout)
    handler._biletlink = True
    handler.addFilter(RunIdFilter())
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root.addHandler(handler)
    resolved = logging.getLevelName(level.strip().upper()) if level else logging.INFO
    root.setLevel(resolved if isinstance(resolved, int) else logging.INFO)
