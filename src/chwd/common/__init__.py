from __future__ import annotations

import os
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable


class ChangeDirectoryError(OSError):
    """Base class for failures of the working directory guard. Carries the
    errno, strerror and filename of the underlying OSError."""

    @classmethod
    def from_os_error(cls, e: OSError, filename=None):
        if filename is None:
            filename = e.filename
        return cls(e.errno, e.strerror or str(e), filename)


class CaptureError(ChangeDirectoryError):
    """Could not read the current working directory before changing it.
    Nothing was changed."""


class TransitionError(ChangeDirectoryError):
    """Could not change to the requested directory. The working directory
    is unchanged."""


class RestoreError(ChangeDirectoryError):
    """Could not change back to the directory captured by a guard."""


class ConstructionPolicy(Enum):
    """What to do when capturing the current directory or changing to the
    target directory fails."""

    RAISE = "raise"
    ABORT = "abort"


class ReleasePolicy(Enum):
    """What to do when restoring the previous directory fails."""

    LOG = "log"
    RAISE = "raise"
    ABORT = "abort"


@dataclass
class DirectoryOps:
    """The host primitives used by the guard."""

    get_current: Callable[[], str] = field(default=os.getcwd)
    set_current: Callable[[str | os.PathLike], None] = field(default=os.chdir)
    abort: Callable[[], None] = field(default=os.abort)


def format_os_error(e: BaseException) -> str:
    """Human-readable description of an OS error, without the filename (the
    callers already mention the path they were working with)."""
    if isinstance(e, OSError) and e.strerror:
        return f"{e.strerror} (errno {e.errno})" if e.errno else e.strerror
    return f"{type(e).__name__}: {e}"
