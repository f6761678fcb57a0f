"""Store the current working directory when changing to a different directory,
then change back to the original directory once the guard goes out of scope.

```python
from chwd import change

with change("/tmp"):
    ...  # do something in /tmp
# back where you started
```

The working directory is process-wide state: guards are not thread-safe, and
nested guards have to be released in reverse order of creation.
"""

from __future__ import annotations

import itertools
import logging
import os
import sys
import threading
from contextlib import AbstractContextManager
from dataclasses import dataclass
from typing import Union

from .common import (
    CaptureError,
    ChangeDirectoryError,
    ConstructionPolicy,
    DirectoryOps,
    ReleasePolicy,
    RestoreError,
    TransitionError,
    format_os_error,
)
from .common.util import parse_policy
from .config import get_settings

logger = logging.getLogger(__name__)

StrPath = Union[str, "os.PathLike[str]"]


@dataclass
class _LiveEntry:
    serial: int
    previous_directory: str
    target_directory: str


# Live guards, most recently created last. Only used to detect out-of-order
# release, holds no references to the guards themselves.
_live_entries: list[_LiveEntry] = []
_live_lock = threading.Lock()
_serials = itertools.count()
# Serials of guards collected while _live_lock was held (the collector can run
# on the thread that holds it). Removed from _live_entries on the next locked
# access.
_collected: list[int] = []


def _purge_collected():
    # Caller holds _live_lock
    while _collected:
        serial = _collected.pop()
        for i, entry in enumerate(_live_entries):
            if entry.serial == serial:
                del _live_entries[i]
                break


def live_depth() -> int:
    """Number of guards that have not been released yet."""
    with _live_lock:
        _purge_collected()
        return len(_live_entries)


def _fspath(p) -> str:
    try:
        return os.fspath(p)
    except TypeError:
        return str(p)


class ChangeWorkingDirectory(AbstractContextManager):
    """Restores the working directory that was current when it was created.

    Use change() to create one. The previous directory is restored exactly
    once: when the ``with`` block exits (also through ``return`` or an
    exception), when release() is called, or when the guard is garbage
    collected while still live, whichever comes first."""

    def __init__(
        self,
        previous_directory: str,
        target_directory: StrPath,
        *,
        on_release_error: ReleasePolicy = ReleasePolicy.LOG,
        check_order: bool = True,
        ops: DirectoryOps | None = None,
        trace_level: int = logging.DEBUG,
    ):
        self._previous_directory = previous_directory
        self._target_directory = target_directory
        self._on_release_error = on_release_error
        self._check_order = check_order
        self._ops = ops or DirectoryOps()
        self._trace_level = trace_level
        self._serial = next(_serials)
        with _live_lock:
            _purge_collected()
            _live_entries.append(
                _LiveEntry(
                    self._serial, previous_directory, _fspath(target_directory)
                )
            )
        self._live = True

    # --- Construction --------------------------------------------------------

    @classmethod
    def change(
        cls,
        target_directory: StrPath,
        *,
        on_error: ConstructionPolicy | str | None = None,
        on_release_error: ReleasePolicy | str | None = None,
        check_order: bool | None = None,
        ops: DirectoryOps | None = None,
    ) -> ChangeWorkingDirectory:
        """Store the current working directory, then change it to the supplied
        path. When the returned guard is released, the working directory is
        changed back to what it originally was.

        Raises CaptureError if the current directory cannot be determined, and
        TransitionError if the target directory cannot be entered. In both
        cases the working directory is left unchanged and no guard is created.
        With ``on_error="abort"``, these failures abort the process instead."""
        settings = get_settings()
        if on_error is None:
            on_error = settings.on_error
        if on_release_error is None:
            on_release_error = settings.on_release_error
        if check_order is None:
            check_order = settings.check_order
        on_error = parse_policy("on_error", on_error, ConstructionPolicy)
        on_release_error = parse_policy(
            "on_release_error", on_release_error, ReleasePolicy
        )
        ops = ops or DirectoryOps()
        target = _fspath(target_directory)

        try:
            previous_directory = ops.get_current()
        except OSError as e:
            msg = "Unable to determine the current working directory"
            err = CaptureError.from_os_error(e)
            cls._construction_failed(msg, e, err, on_error, ops)
        try:
            ops.set_current(target_directory)
        except OSError as e:
            msg = f"Unable to change directory to {target!r}"
            err = TransitionError.from_os_error(e, filename=target)
            cls._construction_failed(msg, e, err, on_error, ops)

        guard = cls(
            previous_directory,
            target_directory,
            on_release_error=on_release_error,
            check_order=check_order,
            ops=ops,
            trace_level=settings.trace_level,
        )
        logger.log(
            settings.trace_level,
            "Changed working directory %s -> %s",
            previous_directory,
            target,
        )
        return guard

    @staticmethod
    def _construction_failed(
        msg: str,
        e: OSError,
        err: ChangeDirectoryError,
        policy: ConstructionPolicy,
        ops: DirectoryOps,
    ):
        if policy is ConstructionPolicy.ABORT:
            logger.critical("%s: %s. Aborting.", msg, format_os_error(e))
            sys.stderr.flush()
            ops.abort()
        # Also reached if the abort primitive returns
        raise err from e

    # --- Properties ----------------------------------------------------------

    @property
    def previous_directory(self) -> str:
        """The working directory at the time the guard was created."""
        return self._previous_directory

    @property
    def target_directory(self) -> StrPath:
        return self._target_directory

    @property
    def live(self) -> bool:
        """True until the previous directory has been restored (or an attempt
        to do so has been made)."""
        return self._live

    def __repr__(self):
        return (
            f"{type(self).__name__}(previous_directory={self._previous_directory!r}, "
            f"target_directory={_fspath(self._target_directory)!r}, "
            f"live={self._live!r})"
        )

    # --- Release -------------------------------------------------------------

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self._release(exc_value, may_raise=True)
        # Never suppress the exception

    def __del__(self):
        # Guards that are dropped without being released still restore the
        # previous directory, but never raise from here.
        if getattr(self, "_live", False):
            self._release(None, may_raise=False, blocking=False)

    def release(self) -> bool:
        """Change back to the previous directory. Only the first call has any
        effect. Returns True if the directory was restored successfully.

        With ReleasePolicy.RAISE, a failure raises RestoreError also when
        called from an ``except`` block. The exception being handled is not
        lost, it stays part of the chain of the OSError that caused it."""
        return self._release(None, may_raise=True)

    def _release(
        self,
        in_flight: BaseException | None,
        may_raise: bool,
        blocking: bool = True,
    ) -> bool:
        if not self._live:
            return False
        self._live = False
        newer = self._unregister(blocking)
        if newer and self._check_order:
            logger.warning(
                "Working directory guard %s -> %s released out of order: "
                "%d newer guard(s) still live (most recent: %s -> %s)",
                self._previous_directory,
                _fspath(self._target_directory),
                len(newer),
                newer[-1].previous_directory,
                newer[-1].target_directory,
            )
        try:
            self._ops.set_current(self._previous_directory)
        except OSError as e:
            self._restore_failed(e, in_flight, may_raise)
            return False
        logger.log(
            self._trace_level,
            "Restored working directory %s",
            self._previous_directory,
        )
        return True

    def _restore_failed(
        self, e: OSError, in_flight: BaseException | None, may_raise: bool
    ):
        msg = "Unable to change directory back to %r due to error %s"
        args = (self._previous_directory, format_os_error(e))
        policy = self._on_release_error
        if policy is ReleasePolicy.ABORT:
            logger.critical(msg + ". Aborting.", *args)
            sys.stderr.flush()
            self._ops.abort()
            return
        if policy is ReleasePolicy.RAISE and may_raise and in_flight is None:
            err = RestoreError.from_os_error(e, filename=self._previous_directory)
            raise err from e
        if policy is ReleasePolicy.RAISE and in_flight is not None:
            msg += " (not raised while handling %s)"
            args += (type(in_flight).__name__,)
        logger.error(msg, *args)

    def _unregister(self, blocking: bool) -> list[_LiveEntry]:
        """Removes this guard from the live list, returns the entries of the
        guards created after it that are still live."""
        if not _live_lock.acquire(blocking=blocking):
            _collected.append(self._serial)
            return []
        try:
            _purge_collected()
            for i, entry in enumerate(_live_entries):
                if entry.serial == self._serial:
                    newer = _live_entries[i + 1 :]
                    del _live_entries[i]
                    return newer
            return []
        finally:
            _live_lock.release()


change = ChangeWorkingDirectory.change
