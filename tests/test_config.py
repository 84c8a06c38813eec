import logging

from budget_split import config


def test_defaults(monkeypatch):
    for name in ("BUDGET_SPLIT_DATABASE_URL", "BUDGET_SPLIT_BASE_URL", "BUDGET_SPLIT_LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)
    assert config.database_url() == config.DEFAULT_DATABASE_URL
    assert config.share_base_url() == config.DEFAULT_BASE_URL
    assert config.log_level() == "WARNING"


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("BUDGET_SPLIT_DATABASE_URL", "sqlite:///other.sqlite3")
    monkeypatch.setenv("BUDGET_SPLIT_BASE_URL", "https://budget.example/share")
    monkeypatch.setenv("BUDGET_SPLIT_LOG_LEVEL", "debug")
    assert config.database_url() == "sqlite:///other.sqlite3"
    assert config.share_base_url() == "https://budget.example/share"
    assert config.log_level() == "DEBUG"


def test_configure_logging_uses_requested_level(monkeypatch):
    calls = {}
    monkeypatch.setattr(logging, "basicConfig", lambda **kwargs: calls.update(kwargs))
    config.configure_logging("info")
    assert calls["level"] == logging.INFO
    config.configure_logging("nonsense")
    assert calls["level"] == logging.WARNING
