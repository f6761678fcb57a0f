from __future__ import annotations

import logging
import os
import threading
from dataclasses import dataclass, field
from typing import Mapping

from .common import ConstructionPolicy, ReleasePolicy, logformat
from .common.util import parse_bool, parse_log_level, parse_policy

logger = logging.getLogger(__name__)

ENV_ON_ERROR = "CHWD_ON_ERROR"
ENV_ON_RELEASE_ERROR = "CHWD_ON_RELEASE_ERROR"
ENV_CHECK_ORDER = "CHWD_CHECK_ORDER"
ENV_VERBOSE = "CHWD_VERBOSE"
ENV_LOGLEVEL = "CHWD_LOGLEVEL"


@dataclass
class Settings:
    """Process-wide defaults for new guards. Keyword arguments passed to
    change() or chdir() take precedence."""

    on_error: ConstructionPolicy = field(default=ConstructionPolicy.RAISE)
    on_release_error: ReleasePolicy = field(default=ReleasePolicy.LOG)
    check_order: bool = True
    verbose: bool = False

    @classmethod
    def from_environment(cls, env: Mapping[str, str] | None = None) -> Settings:
        if env is None:
            env = os.environ
        settings = cls()
        if ENV_ON_ERROR in env:
            settings.on_error = parse_policy(
                ENV_ON_ERROR, env[ENV_ON_ERROR], ConstructionPolicy
            )
        if ENV_ON_RELEASE_ERROR in env:
            settings.on_release_error = parse_policy(
                ENV_ON_RELEASE_ERROR, env[ENV_ON_RELEASE_ERROR], ReleasePolicy
            )
        if ENV_CHECK_ORDER in env:
            settings.check_order = parse_bool(ENV_CHECK_ORDER, env[ENV_CHECK_ORDER])
        if ENV_VERBOSE in env:
            settings.verbose = parse_bool(ENV_VERBOSE, env[ENV_VERBOSE])
        return settings

    @property
    def trace_level(self) -> int:
        """Level used for the capture/change/restore trace messages."""
        return logging.INFO if self.verbose else logging.DEBUG


_settings: Settings | None = None
_settings_lock = threading.Lock()


def get_settings() -> Settings:
    """Returns the current settings, reading them from the environment the
    first time."""
    global _settings
    with _settings_lock:
        if _settings is None:
            _settings = Settings.from_environment()
        return _settings


def set_settings(settings: Settings) -> Settings:
    """Replaces the current settings, returns the old ones."""
    global _settings
    old = get_settings()
    with _settings_lock:
        _settings = settings
    return old


def reset_settings():
    """Forgets the current settings, they will be read from the environment
    again on the next use."""
    global _settings
    with _settings_lock:
        _settings = None


def get_log_level(env: Mapping[str, str] | None = None) -> int:
    if env is None:
        env = os.environ
    env_log = env.get(ENV_LOGLEVEL)
    if env_log is not None:
        return parse_log_level(env_log)
    return logging.INFO


def configure_logging(level: int | str | None = None):
    """Set up the root logger for scripts and applications that use chwd.
    Libraries should not call this. Under GitHub Actions, warnings and errors
    are formatted as workflow annotations."""
    try:
        if level is None:
            level = get_log_level()
        elif isinstance(level, str):
            level = parse_log_level(level)
        if "GITHUB_ACTIONS" in os.environ:
            formatter = logformat.GitHubActionsFormatter()
            handler = logging.StreamHandler()
            handler.setFormatter(formatter)
            logging.basicConfig(level=level, handlers=[handler])
        else:
            logging.basicConfig(level=level)
    except ValueError as e:
        logger.error("Invalid log level specified", exc_info=e)
