"""
Tests for the server command-line interface.
"""

import pytest

from sensorlog.server.serve import build_config_from_args, parse_arguments


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("SENSORLOG_HOST", "SENSORLOG_PORT", "SENSORLOG_MAX_CONNECTIONS", "LOG_FORMAT"):
        monkeypatch.delenv(name, raising=False)


def test_defaults():
    config = build_config_from_args(parse_arguments([]))

    assert config.host == "127.0.0.1"
    assert config.port == 9999
    assert config.max_connections == 0


def test_arguments_override_environment(monkeypatch):
    monkeypatch.setenv("SENSORLOG_PORT", "9100")
    monkeypatch.setenv("SENSORLOG_HOST", "0.0.0.0")

    config = build_config_from_args(parse_arguments(["--port", "9200", "--max-connections", "8"]))

    assert config.port == 9200
    assert config.host == "0.0.0.0"
    assert config.max_connections == 8


def test_unknown_store_backend_rejected():
    with pytest.raises(SystemExit):
        parse_arguments(["--store", "sqlite"])


def test_log_format_option():
    assert parse_arguments([]).log_format == "console"
    assert parse_arguments(["--log-format", "json"]).log_format == "json"
