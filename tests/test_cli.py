"""Tests for the sortfs command line."""

import io
import os
import tempfile
from pathlib import Path

import pytest
from typer.testing import CliRunner

from sortfs import __version__
from sortfs.cli import app, parse_max_depth, write_lines
from sortfs.errors import OutputError

from conftest import touch

runner = CliRunner()


def build_scenario(root: Path):
    touch(root / "y" / "z.txt", 50)
    touch(root / "x.txt", 100)
    touch(root / "y", 200)


def lines_of(result):
    return result.stdout.splitlines()


def test_default_listing():
    """Default invocation lists relative paths newest first."""
    with tempfile.TemporaryDirectory() as tmpdir:
        build_scenario(Path(tmpdir))
        
        result = runner.invoke(app, [tmpdir])
        
        assert result.exit_code == 0
        assert lines_of(result) == ["y/", "x.txt", "y/z.txt"]


def test_dirs_only_listing():
    with tempfile.TemporaryDirectory() as tmpdir:
        build_scenario(Path(tmpdir))
        
        result = runner.invoke(app, [tmpdir, "--dirs-only"])
        
        assert result.exit_code == 0
        assert lines_of(result) == ["y/"]


def test_full_path_listing():
    """Full paths start at the canonical root; files get no slash."""
    with tempfile.TemporaryDirectory() as tmpdir:
        touch(Path(tmpdir) / "sub" / "file", 100)
        touch(Path(tmpdir) / "sub", 200)
        canonical = os.path.realpath(tmpdir)
        
        result = runner.invoke(app, [tmpdir, "--full-path"])
        
        assert result.exit_code == 0
        assert lines_of(result) == [f"{canonical}/sub/", f"{canonical}/sub/file"]


def test_full_path_on_missing_directory_fails():
    with tempfile.TemporaryDirectory() as tmpdir:
        result = runner.invoke(app, [os.path.join(tmpdir, "missing"), "--full-path"])
        
        assert result.exit_code == 1


def test_missing_directory_lists_nothing():
    """Without --full-path an unreadable root is not an error."""
    with tempfile.TemporaryDirectory() as tmpdir:
        result = runner.invoke(app, [os.path.join(tmpdir, "missing")])
        
        assert result.exit_code == 0
        assert lines_of(result) == []


def test_prefix_target_keeps_typed_directory():
    with tempfile.TemporaryDirectory() as tmpdir:
        build_scenario(Path(tmpdir))
        typed = tmpdir + "/"
        
        result = runner.invoke(app, [typed, "--prefix-target"])
        
        assert result.exit_code == 0
        assert lines_of(result) == [f"{typed}y/", f"{typed}x.txt", f"{typed}y/z.txt"]


def test_completion_fragment():
    """The second argument restricts output to matching paths."""
    with tempfile.TemporaryDirectory() as tmpdir:
        root = Path(tmpdir)
        touch(root / "cat.txt", 30)
        touch(root / "car" / "wheel", 10)
        touch(root / "car", 20)
        touch(root / "dog.txt", 40)
        
        result = runner.invoke(app, [tmpdir, "ca", "--full-path"])
        canonical = os.path.realpath(tmpdir)
        
        assert result.exit_code == 0
        assert lines_of(result) == [f"{canonical}/cat.txt", f"{canonical}/car/", f"{canonical}/car/wheel"]
        assert all(line.startswith(f"{canonical}/ca") for line in lines_of(result))


def test_max_depth():
    with tempfile.TemporaryDirectory() as tmpdir:
        build_scenario(Path(tmpdir))
        
        result = runner.invoke(app, [tmpdir, "--max-depth", "1"])
        
        assert result.exit_code == 0
        assert lines_of(result) == ["y/", "x.txt"]


def test_invalid_max_depth_is_unbounded():
    with tempfile.TemporaryDirectory() as tmpdir:
        build_scenario(Path(tmpdir))
        
        result = runner.invoke(app, [tmpdir, "--max-depth", "deep"])
        
        assert result.exit_code == 0
        assert "y/z.txt" in lines_of(result)


def test_exclude_override():
    with tempfile.TemporaryDirectory() as tmpdir:
        build_scenario(Path(tmpdir))
        
        result = runner.invoke(app, [tmpdir, "--exclude", "*.txt"])
        
        assert result.exit_code == 0
        assert lines_of(result) == ["y/"]


def test_malformed_override_fails_before_walking():
    with tempfile.TemporaryDirectory() as tmpdir:
        result = runner.invoke(app, [tmpdir, "--exclude", "# comment"])
        
        assert result.exit_code == 1


def test_color_uses_ls_colors(monkeypatch):
    monkeypatch.setenv("LS_COLORS", "di=34")
    with tempfile.TemporaryDirectory() as tmpdir:
        build_scenario(Path(tmpdir))
        
        result = runner.invoke(app, [tmpdir, "--color", "--dirs-only"])
        
        assert result.exit_code == 0
        assert lines_of(result) == ["\x1b[34my\x1b[0m/"]


def test_invalid_settings_fail(monkeypatch):
    monkeypatch.setenv("SORTFS_FALLBACK", "sometimes")
    with tempfile.TemporaryDirectory() as tmpdir:
        result = runner.invoke(app, [tmpdir])
        
        assert result.exit_code == 1


def test_output_is_idempotent():
    with tempfile.TemporaryDirectory() as tmpdir:
        root = Path(tmpdir)
        for name in ["a/b", "a/c", "d", "e/f/g"]:
            touch(root / name, 300)
        
        first = runner.invoke(app, [tmpdir, "--threads", "4"])
        second = runner.invoke(app, [tmpdir, "--threads", "1"])
        
        assert first.exit_code == second.exit_code == 0
        assert first.stdout == second.stdout


def test_sort_by_created():
    with tempfile.TemporaryDirectory() as tmpdir:
        build_scenario(Path(tmpdir))
        
        result = runner.invoke(app, [tmpdir, "--sort-by", "created"])
        
        assert result.exit_code == 0
        assert sorted(lines_of(result)) == ["x.txt", "y/", "y/z.txt"]


def test_write_failure_exits_with_error(monkeypatch):
    def broken(lines, stream):
        raise OutputError("cannot write output: broken pipe")
    
    monkeypatch.setattr("sortfs.cli.write_lines", broken)
    with tempfile.TemporaryDirectory() as tmpdir:
        build_scenario(Path(tmpdir))
        
        result = runner.invoke(app, [tmpdir])
        
        assert result.exit_code == 1


def test_version():
    result = runner.invoke(app, ["--version"])
    
    assert result.exit_code == 0
    assert __version__ in result.output


class BrokenPipeStream(io.BytesIO):
    """Accepts a fixed number of writes, then fails like a closed pipe."""
    
    def __init__(self, allowed):
        super().__init__()
        self.allowed = allowed
    
    def write(self, data):
        if self.allowed == 0:
            raise BrokenPipeError(32, "Broken pipe")
        self.allowed -= 1
        return super().write(data)


def test_write_lines_stops_at_first_failure():
    stream = BrokenPipeStream(allowed=2)
    
    with pytest.raises(OutputError):
        write_lines(["a", "b", "c", "d"], stream)
    
    assert stream.getvalue() == b"a\nb\n"


def test_write_lines_encodes_paths():
    stream = io.BytesIO()
    
    assert write_lines(["é", "plain"], stream) == 2
    assert stream.getvalue() == os.fsencode("é") + b"\nplain\n"


@pytest.mark.parametrize(
    "value, expected",
    [(None, None), ("0", 0), ("3", 3), ("-1", None), ("two", None)],
)
def test_parse_max_depth(value, expected):
    assert parse_max_depth(value) == expected
