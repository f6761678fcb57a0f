import os
from pathlib import Path

import pytest
from chwd import DirectoryOps, reset_settings


@pytest.fixture(autouse=True)
def clean_state(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    """Start every test in a fresh directory with default settings."""
    for k in list(os.environ):
        if k.startswith("CHWD_"):
            monkeypatch.delenv(k)
    monkeypatch.delenv("GITHUB_ACTIONS", raising=False)
    reset_settings()
    start = tmp_path / "start"
    start.mkdir()
    monkeypatch.chdir(start)
    yield
    reset_settings()


@pytest.fixture
def dirs(tmp_path: Path):
    """A few existing directories next to the starting directory."""
    res = {}
    for name in ("a", "b", "c"):
        res[name] = tmp_path / name
        res[name].mkdir()
    res["start"] = tmp_path / "start"
    return res


class RecordingOps(DirectoryOps):
    """Uses the real OS primitives, but keeps track of the calls."""

    def __init__(self):
        self.set_calls: list[str] = []
        self.abort_calls = 0
        super().__init__(
            get_current=os.getcwd,
            set_current=self._set_current,
            abort=self._abort,
        )

    def _set_current(self, path):
        self.set_calls.append(os.fspath(path))
        os.chdir(path)

    def _abort(self):
        self.abort_calls += 1


@pytest.fixture
def ops():
    return RecordingOps()
