import logging

import pytest

from marketplace.utils.logging import (
    add_service_info,
    build_processors,
    get_log_level,
    redact_secrets,
    setup_stdlib_logging,
)


def test_credentials_are_masked():
    event = redact_secrets(None, "info", {"event": "User logged in", "password": "hunter2", "Token": "abc"})
    assert event == {"event": "User logged in", "password": "***", "Token": "***"}


def test_service_info_does_not_override_bound_values():
    event = add_service_info(None, "info", {"event": "x", "environment": "staging"})
    assert event["service"] == "agromarket"
    assert event["environment"] == "staging"


@pytest.mark.parametrize("env, level", [("production", "INFO"), ("development", "DEBUG"), ("test", "WARNING")])
def test_level_follows_environment(monkeypatch, env, level):
    monkeypatch.delenv("LOG_LEVEL", raising=False)
    monkeypatch.delenv("ENV", raising=False)
    monkeypatch.delenv("ENVIRONMENT", raising=False)
    monkeypatch.setenv("PROTEAN_ENV", env)
    assert get_log_level() == level


def test_explicit_level_wins(monkeypatch):
    monkeypatch.setenv("LOG_LEVEL", "error")
    assert get_log_level() == "ERROR"


def test_structured_environments_render_json():
    assert type(build_processors(structured=True)[-1]).__name__ == "JSONRenderer"
    assert type(build_processors(structured=False)[-1]).__name__ == "ConsoleRenderer"


def test_stdlib_handlers_write_to_log_dir(tmp_path):
    root = logging.getLogger()
    previous = root.handlers[:]
    try:
        directory = setup_stdlib_logging(log_dir=str(tmp_path / "logs"))
        assert directory.exists()
        assert len(root.handlers) == 3
        assert root.handlers[2].level == logging.ERROR
    finally:
        for handler in root.handlers:
            handler.close()
        root.handlers = previous
