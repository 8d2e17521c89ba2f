"""Environment-driven settings fall back to defaults on bad values."""

from __future__ import annotations

from asg_route53 import config


def test_log_level_accepts_known_names(monkeypatch):
    monkeypatch.setenv("LOG_LEVEL", "debug")

    assert config._env_log_level("LOG_LEVEL", "INFO") == "DEBUG"


def test_unknown_log_level_falls_back_to_default(monkeypatch):
    monkeypatch.setenv("LOG_LEVEL", "VERBOSE")

    assert config._env_log_level("LOG_LEVEL", "INFO") == "INFO"


def test_invalid_integer_falls_back_to_default(monkeypatch):
    monkeypatch.setenv("DNS_WEIGHT", "heavy")

    assert config._env_int("DNS_WEIGHT", 10) == 10
