"""Project logger and per-request log correlation."""

from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, MutableMapping

from pdfproxy.config.settings import settings

LOGGER_NAME = "pdfproxy"
LOG_FILE = Path("logs") / "pdfproxy.log"
LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
_ROTATE_BYTES = 10 * 1024 * 1024
_ROTATE_BACKUPS = 10


def _normalize_level(raw: str) -> int:
    level = logging.getLevelName(str(raw or "").strip().upper())
    return level if isinstance(level, int) else logging.INFO


def _file_handler() -> logging.Handler | None:
    try:
        LOG_FILE.parent.mkdir(parents=True, exist_ok=True)
        return RotatingFileHandler(LOG_FILE, maxBytes=_ROTATE_BYTES, backupCount=_ROTATE_BACKUPS, encoding="utf-8")
    except OSError:
        # read-only working directory: stderr only
        return None


def configure_logging(level: str | None = None) -> logging.Logger:
    """Attach handlers to the project logger once; later calls only adjust the level."""

    project_logger = logging.getLogger(LOGGER_NAME)
    resolved = _normalize_level(level if level is not None else settings.log_level)
    project_logger.setLevel(resolved)
    if project_logger.handlers:
        return project_logger

    formatter = logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    file_handler = _file_handler()
    if file_handler is not None:
        handlers.append(file_handler)
    for handler in handlers:
        handler.setFormatter(formatter)
        project_logger.addHandler(handler)

    project_logger.propagate = False
    return project_logger


class RequestLogAdapter(logging.LoggerAdapter):
    """Adds `request_id=... target=...` to every message of one proxied request."""

    def __init__(self, base: logging.Logger, request_id: str, target: str | None) -> None:
        super().__init__(base, {"request_id": request_id, "target": target})
        self.request_id = request_id
        self.target = target

    def process(self, msg: Any, kwargs: MutableMapping[str, Any]) -> tuple[Any, MutableMapping[str, Any]]:
        kwargs.setdefault("extra", {}).update(self.extra)
        return msg, kwargs

    def log(self, level: int, msg: Any, *args: Any, **kwargs: Any) -> None:
        if not self.isEnabledFor(level):
            return
        msg, kwargs = self.process(msg, kwargs)
        # correlation goes through args so percent-escapes in target urls are never interpreted
        self.logger.log(level, f"{msg} request_id=%s target=%s", *args, self.request_id, self.target, **kwargs)


logger = configure_logging()


def get_logger(name: str) -> logging.Logger:
    """Return a child logger under pdfproxy namespace."""

    return logger.getChild(name)


def get_request_logger(request_id: str, target: str | None = None) -> RequestLogAdapter:
    return RequestLogAdapter(logger, request_id, target)
