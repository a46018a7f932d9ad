import json
import logging
import sys
from decimal import Decimal

from config.logging import JsonFormatter, SamplingFilter


def _record(msg="inventory.movement_applied", level=logging.INFO, exc_info=None, **extra):
    record = logging.LogRecord("silo.inventory", level, __file__, 1, msg, None, exc_info)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_json_formatter_merges_extra_and_keeps_decimals_exact():
    record = _record(event="inventory.movement_applied", item_id=7, quantity=Decimal("2.5000"))
    payload = json.loads(JsonFormatter().format(record))

    assert payload["message"] == "inventory.movement_applied"
    assert payload["level"] == "INFO"
    assert payload["name"] == "silo.inventory"
    assert payload["time"].endswith("Z")
    assert payload["item_id"] == 7
    assert payload["quantity"] == "2.5000"
    assert "args" not in payload and "lineno" not in payload


def test_json_formatter_merges_json_object_messages():
    payload = json.loads(JsonFormatter().format(_record(msg='{"event": "custom", "count": 2}')))
    assert payload["event"] == "custom"
    assert payload["count"] == 2
    assert "message" not in payload


def test_json_formatter_renders_exceptions():
    try:
        raise RuntimeError("db down")
    except RuntimeError:
        record = _record(msg="inventory.persistence_failed", level=logging.ERROR, exc_info=sys.exc_info())
    payload = json.loads(JsonFormatter().format(record))
    assert "RuntimeError: db down" in payload["exception"]


def test_sampling_filter_never_drops_allowed_events_or_other_levels():
    sampler = SamplingFilter(rate=0.0, levels=["INFO"], allow_events=["inventory.movement_applied"])

    assert sampler.filter(_record(event="inventory.movement_applied")) is True
    assert sampler.filter(_record(msg="inventory.movement_applied")) is True
    assert sampler.filter(_record(msg="inventory.timeline_read")) is False
    assert sampler.filter(_record(msg="inventory.timeline_read", level=logging.WARNING)) is True


def test_sampling_filter_rate_bounds():
    assert SamplingFilter(rate=1.0).filter(_record(msg="anything")) is True
    assert SamplingFilter(rate="not-a-number").rate == 1.0
    assert SamplingFilter(rate=5).rate == 1.0
