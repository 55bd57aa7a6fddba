from __future__ import annotations

import logging
import time
from contextlib import contextmanager
from typing import Any, Dict, Iterator

# Attributes every LogRecord already owns; passing them as extras raises KeyError.
RESERVED_LOG_KEYS = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", None, None))
) | {"message", "asctime"}

EVENT_LOGGER = "restcore.observability"


def log_event(
    event: str,
    logger: logging.Logger | None = None,
    *,
    level: int = logging.INFO,
    **fields: Any,
) -> None:
    """
    Emit one structured event.
    Fields become LogRecord attributes so the logfmt formatter can print them;
    reserved attribute names are dropped. Never pass credentials here.
    """
    log = logger or logging.getLogger(EVENT_LOGGER)
    extra = {k: v for k, v in fields.items() if k not in RESERVED_LOG_KEYS}
    extra["event"] = event
    log.log(level, event, extra=extra)


@contextmanager
def observe_call(
    method: str,
    url: str,
    *,
    auth: str,
    logger: logging.Logger | None = None,
) -> Iterator[Dict[str, Any]]:
    """
    Time one round trip and log an ``api_call`` event when it ends.
    The caller sets ``status`` on the yielded dict once a response arrives;
    if the block raises first, status is "exception" with the error type.
    """
    fields: Dict[str, Any] = {"method": method, "url": url, "auth": auth}
    start = time.perf_counter()
    try:
        yield fields
    except Exception as exc:
        fields.setdefault("status", "exception")
        fields.setdefault("error_type", type(exc).__name__)
        raise
    finally:
        fields["duration_ms"] = int((time.perf_counter() - start) * 1000)
        log_event("api_call", logger, **fields)


__all__ = ["log_event", "observe_call", "EVENT_LOGGER", "RESERVED_LOG_KEYS"]
