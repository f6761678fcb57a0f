import logging
import os

import pytest
from chwd import (
    ConstructionPolicy,
    ReleasePolicy,
    Settings,
    TransitionError,
    change,
    configure_logging,
    get_settings,
    reset_settings,
    set_settings,
)
from chwd.common.logformat import GitHubActionsFormatter
from chwd.common.util import is_truthy_or_empty_string, parse_bool, parse_log_level
from chwd.config import get_log_level


def test_settings_defaults():
    settings = Settings.from_environment({})
    assert settings.on_error is ConstructionPolicy.RAISE
    assert settings.on_release_error is ReleasePolicy.LOG
    assert settings.check_order
    assert not settings.verbose
    assert settings.trace_level == logging.DEBUG


def test_settings_from_environment():
    env = {
        "CHWD_ON_ERROR": "Abort",
        "CHWD_ON_RELEASE_ERROR": " raise ",
        "CHWD_CHECK_ORDER": "off",
        "CHWD_VERBOSE": "",
    }
    settings = Settings.from_environment(env)
    assert settings.on_error is ConstructionPolicy.ABORT
    assert settings.on_release_error is ReleasePolicy.RAISE
    assert not settings.check_order
    assert settings.verbose
    assert settings.trace_level == logging.INFO


def test_settings_invalid_policy():
    expected = r"^Invalid value for CHWD_ON_RELEASE_ERROR: 'ignore' \(possible values: 'log', 'raise', 'abort'\)$"
    with pytest.raises(ValueError, match=expected):
        Settings.from_environment({"CHWD_ON_RELEASE_ERROR": "ignore"})


def test_settings_invalid_bool():
    with pytest.raises(ValueError, match="CHWD_VERBOSE"):
        Settings.from_environment({"CHWD_VERBOSE": "maybe"})


def test_get_settings_reads_environment(monkeypatch):
    monkeypatch.setenv("CHWD_ON_RELEASE_ERROR", "abort")
    reset_settings()
    assert get_settings().on_release_error is ReleasePolicy.ABORT
    # Cached until reset
    monkeypatch.setenv("CHWD_ON_RELEASE_ERROR", "log")
    assert get_settings().on_release_error is ReleasePolicy.ABORT
    reset_settings()
    assert get_settings().on_release_error is ReleasePolicy.LOG


def test_set_settings_used_by_change(dirs, ops, caplog):
    old = set_settings(Settings(on_release_error=ReleasePolicy.ABORT))
    assert old.on_release_error is ReleasePolicy.LOG
    os.chdir(dirs["a"])
    guard = change(dirs["b"], ops=ops)
    dirs["a"].rmdir()
    guard.release()
    assert ops.abort_calls == 1


def test_keyword_overrides_settings(tmp_path, ops):
    set_settings(Settings(on_error=ConstructionPolicy.ABORT))
    with pytest.raises(TransitionError):
        change(tmp_path / "missing", on_error="raise", ops=ops)
    assert ops.abort_calls == 0


def test_verbose_settings(dirs, caplog):
    set_settings(Settings(verbose=True))
    caplog.set_level(logging.INFO)
    with change(dirs["a"]):
        pass
    levels = {r.levelno for r in caplog.records if r.name == "chwd.guard"}
    assert levels == {logging.INFO}


def test_truthy():
    for v in ("", "1", "True", "yes", "Y", "on"):
        assert is_truthy_or_empty_string(v)
    for v in ("0", "false", "off", "no"):
        assert not is_truthy_or_empty_string(v)
        assert parse_bool("X", v) is False


def test_log_level():
    assert parse_log_level("debug") == logging.DEBUG
    assert get_log_level({}) == logging.INFO
    assert get_log_level({"CHWD_LOGLEVEL": "warning"}) == logging.WARNING
    with pytest.raises(ValueError, match="^Invalid log level: loud$"):
        parse_log_level("loud")


def test_configure_logging(monkeypatch):
    calls = []
    monkeypatch.setattr(logging, "basicConfig", lambda **kw: calls.append(kw))
    monkeypatch.setenv("CHWD_LOGLEVEL", "DEBUG")
    configure_logging()
    assert calls == [{"level": logging.DEBUG}]


def test_configure_logging_github_actions(monkeypatch):
    calls = []
    monkeypatch.setattr(logging, "basicConfig", lambda **kw: calls.append(kw))
    monkeypatch.setenv("GITHUB_ACTIONS", "true")
    configure_logging("warning")
    assert calls[0]["level"] == logging.WARNING
    (handler,) = calls[0]["handlers"]
    assert isinstance(handler.formatter, GitHubActionsFormatter)


def test_configure_logging_invalid(monkeypatch, caplog):
    calls = []
    monkeypatch.setattr(logging, "basicConfig", lambda **kw: calls.append(kw))
    configure_logging("loud")
    assert calls == []
    assert "Invalid log level specified" in caplog.text


def test_github_actions_formatter():
    record = logging.LogRecord(
        "chwd.guard", logging.ERROR, __file__, 1, "line1\nline2", None, None
    )
    assert GitHubActionsFormatter().format(record) == "::error::chwd.guard:line1%0Aline2"
    record.levelno = logging.WARNING
    record.levelname = "WARNING"
    assert GitHubActionsFormatter().format(record) == "::warning::chwd.guard:line1%0Aline2"
    record.levelno = logging.DEBUG
    record.levelname = "DEBUG"
    assert GitHubActionsFormatter().format(record) == "DEBUG:chwd.guard:line1%0Aline2"
