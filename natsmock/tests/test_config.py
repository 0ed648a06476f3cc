"""Tests for client options loaded from JSON files."""

import json
import pytest
from natsmock.client import MockNatsClient
from natsmock.shared.config import ClientConfig


def _write(tmp_path, data):
    config_file = tmp_path / "config.json"
    config_file.write_text(json.dumps(data))
    return str(config_file)


def test_config_defaults_fill_missing_keys(tmp_path):
    config = ClientConfig.from_file(_write(tmp_path, {"json": True}))
    assert config == ClientConfig(json=True, preserve_buffers=False, name="client")


def test_config_accepts_camel_case(tmp_path):
    config = ClientConfig.from_file(_write(tmp_path, {"preserveBuffers": True}))
    assert config.preserve_buffers is True


def test_config_overrides_win(tmp_path):
    config = ClientConfig.from_file(_write(tmp_path, {"json": False}), json=True)
    assert config.json is True


def test_config_rejects_unknown_keys(tmp_path):
    with pytest.raises(ValueError, match="servers"):
        ClientConfig.from_file(_write(tmp_path, {"servers": ["nats://localhost"]}))


def test_config_missing_file():
    with pytest.raises(FileNotFoundError):
        ClientConfig.from_file("/nonexistent/config.json")


def test_client_from_config(tmp_path):
    client = MockNatsClient.from_config(_write(tmp_path, {"preserveBuffers": True, "name": "media"}))
    assert client.json is False
    assert client.preserve_buffers is True
    assert client.logger.name == "natsmock.media"


def test_client_from_config_overrides(tmp_path):
    client = MockNatsClient.from_config(_write(tmp_path, {"json": False}), json=True)
    assert client.json is True
