"""
Tests for environment-driven configuration.
"""

from pathlib import Path

from aws_cost_rollup.config import Config


def test_defaults(monkeypatch):
    for name in ("AWS_PROFILE", "MAX_WORKERS", "FETCH_TIMEOUT", "OUTPUT_DIR", "LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)

    config = Config()

    assert config.aws_profile is None
    assert config.max_workers == 8
    assert config.fetch_timeout == 60
    assert config.output_dir == Path(".")
    assert config.log_level == "INFO"


def test_environment_overrides(monkeypatch, tmp_path):
    monkeypatch.setenv("AWS_PROFILE", "prod")
    monkeypatch.setenv("MAX_WORKERS", "2")
    monkeypatch.setenv("RETRY_MAX_DELAY", "0.5")
    monkeypatch.setenv("OUTPUT_DIR", str(tmp_path))
    monkeypatch.setenv("LOG_LEVEL", "debug")

    config = Config()

    assert config.aws_profile == "prod"
    assert config.max_workers == 2
    assert config.retry_max_delay == 0.5
    assert config.output_dir == tmp_path
    assert config.log_level == "DEBUG"
    assert config.to_dict()["output_dir"] == str(tmp_path)
