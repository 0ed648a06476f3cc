"""Tests for the message-trace logger."""

import json
import logging
import uuid

import pytest

from natsmock.client import MockNatsClient
from natsmock.shared.logger import get_client_logger


def _unique_name(base: str) -> str:
    """Return a unique logger name to avoid cross-test pollution."""
    return f"{base}_{uuid.uuid4().hex[:8]}"


def _lines(log_file):
    return [json.loads(line) for line in log_file.read_text().splitlines()]


def test_logger_returns_named_logger():
    name = _unique_name("orders")
    logger = get_client_logger(name)
    assert logger.name == f"natsmock.{name}"


def test_trace_fields_are_top_level(tmp_path):
    log_file = tmp_path / "trace.log"
    name = _unique_name("billing")
    logger = get_client_logger(name, log_file=str(log_file))
    logger.info("delivered", extra={"sid": "abc", "subject": "orders.created", "queue": None})

    [line] = _lines(log_file)
    assert line["client"] == name
    assert line["level"] == "INFO"
    assert line["event"] == "delivered"
    assert line["sid"] == "abc"
    assert line["subject"] == "orders.created"
    assert "queue" not in line


def test_client_traces_deliveries(tmp_path):
    log_file = tmp_path / "trace.log"
    name = _unique_name("inventory")
    get_client_logger(name, log_file=str(log_file))
    client = MockNatsClient(name=name)
    client.logger.setLevel(logging.DEBUG)

    sid = client.subscribe("stock.*", lambda *args: None)
    client.publish("stock.low", "sku-1", "replies.1")

    delivered = [line for line in _lines(log_file) if line["event"] == "delivered"]
    assert delivered == [
        {
            "ts": delivered[0]["ts"],
            "client": name,
            "level": "DEBUG",
            "event": "delivered",
            "sid": sid,
            "subject": "stock.low",
            "reply_to": "replies.1",
            "received": 1,
        }
    ]


def test_logger_default_level():
    name = _unique_name("inventory")
    logger = get_client_logger(name)
    assert logger.level == logging.INFO


def test_logger_reuses_handlers():
    name = _unique_name("shipping")
    first = get_client_logger(name)
    second = get_client_logger(name)
    assert first is second
    assert len(second.handlers) == 1
