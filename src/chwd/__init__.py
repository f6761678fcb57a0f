"""Temporarily change the working directory, and reliably change it back."""

__version__ = "0.1.0"

from .chdir import chdir
from .common import (
    CaptureError,
    ChangeDirectoryError,
    ConstructionPolicy,
    DirectoryOps,
    ReleasePolicy,
    RestoreError,
    TransitionError,
)
from .config import (
    Settings,
    configure_logging,
    get_settings,
    reset_settings,
    set_settings,
)
from .guard import ChangeWorkingDirectory, change, live_depth

__all__ = [
    "CaptureError",
    "ChangeDirectoryError",
    "ChangeWorkingDirectory",
    "ConstructionPolicy",
    "DirectoryOps",
    "ReleasePolicy",
    "RestoreError",
    "Settings",
    "TransitionError",
    "change",
    "chdir",
    "configure_logging",
    "get_settings",
    "live_depth",
    "reset_settings",
    "set_settings",
]
