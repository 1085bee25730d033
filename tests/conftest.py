"""Shared fixtures for sortfs tests."""

import os
from pathlib import Path

import pytest


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch, tmp_path_factory):
    """Keep user-level ignore files and colors out of the tests."""
    missing = tmp_path_factory.mktemp("nohome") / "missing"
    monkeypatch.setenv("SORTFS_GLOBAL_IGNORE_FILE", str(missing / "git-ignore"))
    monkeypatch.delenv("LS_COLORS", raising=False)
    monkeypatch.setattr("sortfs.ignore.global_custom_ignore_path", lambda: missing / "sortfs-ignore")
    for name in list(os.environ):
        if name.startswith("SORTFS_") and name != "SORTFS_GLOBAL_IGNORE_FILE":
            monkeypatch.delenv(name)


def touch(path: Path, mtime: int, content: str = "") -> Path:
    """Create a file (or set a directory's times) with a fixed mtime."""
    if not path.exists():
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content)
    os.utime(path, (mtime, mtime))
    return path


@pytest.fixture
def make_file():
    return touch
