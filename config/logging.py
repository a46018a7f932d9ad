"""Structured logging helpers used by the production settings."""

import json
import logging
import random
from datetime import date, datetime, timezone
from decimal import Decimal

# LogRecord attributes that are plumbing rather than context
_RECORD_ATTRS = frozenset(
    {
        "msg",
        "args",
        "levelname",
        "levelno",
        "name",
        "created",
        "msecs",
        "relativeCreated",
        "pathname",
        "filename",
        "module",
        "lineno",
        "funcName",
        "exc_info",
        "exc_text",
        "stack_info",
        "thread",
        "threadName",
        "processName",
        "process",
        "taskName",
        "message",
    }
)


def _jsonable(value):
    if isinstance(value, Decimal):
        # Keep quantities exact; floats would round them
        return str(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    try:
        json.dumps(value)
    except TypeError:
        return str(value)
    return value


class JsonFormatter(logging.Formatter):
    """One JSON object per record.

    The message becomes ``message`` (or is merged in when it is itself a JSON
    object) and every ``extra`` attribute is copied alongside it, so
    ``logger.info("inventory.movement_applied", extra={"item_id": 7})`` yields
    ``{"message": "inventory.movement_applied", "item_id": 7, ...}``.
    Exceptions are rendered into ``exception``.
    """

    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        payload = {
            "time": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "name": record.name,
        }

        msg = record.getMessage()
        parsed = None
        if msg.startswith("{"):
            try:
                parsed = json.loads(msg)
            except ValueError:
                parsed = None
        if isinstance(parsed, dict):
            payload.update(parsed)
        else:
            payload["message"] = msg

        for key, value in record.__dict__.items():
            if key in _RECORD_ATTRS:
                continue
            payload.setdefault(key, _jsonable(value))

        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        elif record.exc_text:
            payload["exception"] = record.exc_text

        return json.dumps(payload, ensure_ascii=False)


class SamplingFilter(logging.Filter):
    """Drop a fraction of routine records while keeping audit events.

    - ``rate``: fraction in [0.0, 1.0] of sampled-level records to keep.
    - ``levels``: level names that are subject to sampling (default INFO).
    - ``allow_events``: event names that are always kept, matched against the
      record's ``event`` extra or, failing that, its message.
    """

    def __init__(self, rate: float = 1.0, levels: list[str] | None = None, allow_events: list[str] | None = None):
        super().__init__()
        try:
            self.rate = min(max(float(rate), 0.0), 1.0)
        except (TypeError, ValueError):
            self.rate = 1.0
        self.levels = set(levels or ["INFO"])
        self.allow_events = set(allow_events or [])

    def filter(self, record: logging.LogRecord) -> bool:  # type: ignore[override]
        if record.levelname not in self.levels:
            return True
        event = getattr(record, "event", None) or record.msg
        if event in self.allow_events:
            return True
        if self.rate >= 1.0:
            return True
        if self.rate <= 0.0:
            return False
        return random.random() < self.rate


# EOF
