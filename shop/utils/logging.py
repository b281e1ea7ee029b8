# shop/utils/logging.py
"""Logger factory with per-request correlation.

Every logger returned by ``get_logger`` writes to stderr through a single
handler. Records are enriched with the current request id, which the HTTP
middleware in ``shop.api`` stores in ``REQUEST_ID_CTX``.
"""

import contextvars
import logging

from pythonjsonlogger import jsonlogger

from shop.utils.settings import LOG_LEVEL, LOG_JSON

REQUEST_ID_CTX = contextvars.ContextVar("request_id", default="-")

_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s %(request_id)s"


class RequestIdFilter(logging.Filter):
    """Attach ``request_id`` to log records so formatters can reference it."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = REQUEST_ID_CTX.get()
        return True


def _build_handler() -> logging.Handler:
    handler = logging.StreamHandler()
    if LOG_JSON:
        handler.setFormatter(jsonlogger.JsonFormatter(_FORMAT))
    else:
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s [%(request_id)s] %(message)s"))
    handler.addFilter(RequestIdFilter())
    return handler


def get_logger(name: str) -> logging.Logger:
    logger = logging.getLogger(name)
    if not logger.handlers:
        logger.addHandler(_build_handler())
        logger.setLevel(LOG_LEVEL)
        logger.propagate = False
    return logger
