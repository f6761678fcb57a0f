from __future__ import annotations

from contextlib import AbstractContextManager

from .common import ConstructionPolicy, DirectoryOps, ReleasePolicy
from .guard import ChangeWorkingDirectory, StrPath


class chdir(AbstractContextManager):
    """Non thread-safe context manager to change the current working directory.

    Unlike change(), the current directory is captured when the ``with`` block
    is entered, not when the object is created, so the same object can be
    entered multiple times, also in a nested fashion."""

    def __init__(
        self,
        path: StrPath,
        *,
        on_error: ConstructionPolicy | str | None = None,
        on_release_error: ReleasePolicy | str | None = None,
        check_order: bool | None = None,
        ops: DirectoryOps | None = None,
    ):
        self.path = path
        self._kwargs = dict(
            on_error=on_error,
            on_release_error=on_release_error,
            check_order=check_order,
            ops=ops,
        )
        self._guards: list[ChangeWorkingDirectory] = []

    def __enter__(self):
        guard = ChangeWorkingDirectory.change(self.path, **self._kwargs)
        self._guards.append(guard)
        return guard

    def __exit__(self, *excinfo):
        self._guards.pop().__exit__(*excinfo)
