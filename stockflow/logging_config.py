"""Process-wide logging setup with request-id propagation."""

import logging
from contextvars import ContextVar

from stockflow.config import settings

request_id_var: ContextVar[str] = ContextVar("request_id", default="-")

LOG_FORMAT = "%(asctime)s %(levelname)s [%(request_id)s] %(name)s: %(message)s"


class RequestIdFilter(logging.Filter):
    """Attach the current request id to every record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = request_id_var.get()
        return True


def configure_logging(level: str | None = None) -> None:
    """Install a single stream handler on the root logger.

    Safe to call more than once; the handler is replaced, not duplicated.
    """
    root = logging.getLogger()
    root.setLevel((level or settings.log_level).upper())

    for handler in list(root.handlers):
        if getattr(handler, "_stockflow", False):
            root.removeHandler(handler)

    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler.addFilter(RequestIdFilter())
    handler._stockflow = True  # type: ignore[attr-defined]
    root.addHandler(handler)
