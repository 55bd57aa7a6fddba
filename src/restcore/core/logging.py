import logging
from typing import Any, Optional, Sequence, TextIO

LOG_EXTRA_FIELDS = (
    "method",
    "url",
    "status",
    "duration_ms",
    "auth",
    "error_type",
    "page",
    "count",
    "paging",
    "service",
)

_NEEDS_QUOTES = (" ", "=", '"', "\\")


def _logfmt_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    text = str(value)
    if not text or any(ch in text for ch in _NEEDS_QUOTES):
        return '"' + text.replace("\\", "\\\\").replace('"', '\\"') + '"'
    return text


class LogfmtFormatter(logging.Formatter):
    """
    One logfmt line per record: level, logger, event, then whichever of
    ``fields`` the record carries. Missing extras are skipped.
    """

    def __init__(self, fields: Sequence[str] = LOG_EXTRA_FIELDS):
        super().__init__()
        self.fields = tuple(fields)

    def format(self, record: logging.LogRecord) -> str:
        pairs: list[tuple[str, Any]] = [
            ("level", record.levelname.lower()),
            ("logger", record.name),
        ]
        message = record.getMessage()
        if message:
            pairs.append(("event", message))
        for key in self.fields:
            value = getattr(record, key, None)
            if value is not None:
                pairs.append((key, value))
        if record.exc_info and record.exc_info[0] is not None:
            pairs.append(("exc_type", record.exc_info[0].__name__))
        return " ".join(f"{key}={_logfmt_value(value)}" for key, value in pairs)


def setup_logging(
    level: str = "INFO",
    *,
    stream: Optional[TextIO] = None,
    quiet_transport: bool = True,
) -> logging.Handler:
    """
    Replace the root handlers with a single logfmt handler.
    ``quiet_transport`` raises httpx/httpcore to WARNING; every request is
    already reported by the ``api_call`` event.
    """
    root = logging.getLogger()
    for h in list(root.handlers):
        root.removeHandler(h)

    handler = logging.StreamHandler(stream)
    handler.setFormatter(LogfmtFormatter())
    root.addHandler(handler)
    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    if quiet_transport:
        for name in ("httpx", "httpcore"):
            logging.getLogger(name).setLevel(logging.WARNING)
    return handler


__all__ = ["setup_logging", "LogfmtFormatter", "LOG_EXTRA_FIELDS"]
