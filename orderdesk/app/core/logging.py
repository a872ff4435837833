import json
import logging
import os
from typing import Optional

_LEVELS = {
    "CRITICAL": logging.CRITICAL,
    "ERROR": logging.ERROR,
    "WARNING": logging.WARNING,
    "INFO": logging.INFO,
    "DEBUG": logging.DEBUG,
    "NOTSET": logging.NOTSET,
}


def _make_console_formatter() -> logging.Formatter:
    return logging.Formatter(
        fmt="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def _make_json_formatter() -> logging.Formatter:
    class JsonFormatter(logging.Formatter):
        def format(self, record: logging.LogRecord) -> str:
            payload = {
                "ts": self.formatTime(record, "%Y-%m-%dT%H:%M:%S"),
                "level": record.levelname,
                "logger": record.name,
                "msg": super().format(record),
            }
            return json.dumps(payload, ensure_ascii=False)

    return JsonFormatter("%(message)s")


def setup_logging(
    level: Optional[str] = None,
    fmt: Optional[str] = None,
) -> None:
    """
    Initialize root logging once.
    Env overrides:
      LOG_LEVEL = INFO|DEBUG|...
      LOG_FORMAT = text|json
    otherwise ORDERDESK_LOG_LEVEL / ORDERDESK_LOG_FORMAT via settings.
    """
    from orderdesk.app.core.config import settings

    level = (level or os.getenv("LOG_LEVEL") or settings.log_level or "INFO").upper()
    fmt = (fmt or os.getenv("LOG_FORMAT") or settings.log_format or "text").lower()

    log_level = _LEVELS.get(level, logging.INFO)
    formatter = _make_json_formatter() if fmt == "json" else _make_console_formatter()

    root = logging.getLogger()
    # clear existing handlers (uvicorn adds its own; we align them)
    for h in list(root.handlers):
        root.removeHandler(h)

    handler = logging.StreamHandler()
    handler.setFormatter(formatter)
    root.addHandler(handler)
    root.setLevel(log_level)

    for name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        lg = logging.getLogger(name)
        lg.handlers = [handler]
        lg.setLevel(log_level)
