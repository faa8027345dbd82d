"""Shared fixtures for the ripgrep MCP server test suite."""

import os
import stat
import sys

import pytest

# Ensure the repository root is importable
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", ".."))

from mcp_ripgrep.roots import Root


# ---------------------------------------------------------------------------
# Root authority double
# ---------------------------------------------------------------------------

class FakeAuthority:
    """Answers ``list_roots`` from a fixed list, or raises ``error``."""

    def __init__(self, roots=None, error=None):
        self.roots = list(roots or [])
        self.error = error
        self.calls = 0

    async def list_roots(self):
        self.calls += 1
        if self.error is not None:
            raise self.error
        return list(self.roots)


@pytest.fixture
def make_root():
    """Factory to build a Root for a local directory."""
    def _make(path, name=None):
        return Root(uri=f"file://{path}", name=name)
    return _make


@pytest.fixture
def fake_authority():
    return FakeAuthority


# ---------------------------------------------------------------------------
# Directory layout: two sibling roots plus an outside directory
# ---------------------------------------------------------------------------

@pytest.fixture
def workspace(tmp_path):
    """Create ``project``, ``project-2`` and ``outside`` with a text file each."""
    dirs = {}
    for name in ("project", "project-2", "outside"):
        directory = tmp_path / name
        directory.mkdir()
        (directory / "notes.txt").write_text(f"hello from {name}\nTODO: fix {name}\n")
        dirs[name] = directory
    (dirs["project"] / "src").mkdir()
    (dirs["project"] / "src" / "main.py").write_text("print('hello')\n")
    return dirs


# ---------------------------------------------------------------------------
# Fake search engine executable
# ---------------------------------------------------------------------------

@pytest.fixture
def fake_engine(tmp_path):
    """Factory writing a shell script that plays the search engine.

    The script records its arguments (one per line) in ``args.txt``, prints
    ``stdout`` and ``stderr`` and exits with ``returncode``.
    """
    def _make(stdout="", stderr="", returncode=0):
        engine_dir = tmp_path / "engine"
        engine_dir.mkdir(exist_ok=True)
        (engine_dir / "stdout.txt").write_text(stdout)
        (engine_dir / "stderr.txt").write_text(stderr)
        args_file = engine_dir / "args.txt"
        script = engine_dir / "fake-rg"
        script.write_text(
            "#!/bin/sh\n"
            f"printf '%s\\n' \"$@\" > '{args_file}'\n"
            f"cat '{engine_dir / 'stdout.txt'}'\n"
            f"cat '{engine_dir / 'stderr.txt'}' >&2\n"
            f"exit {returncode}\n"
        )
        script.chmod(script.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
        return str(script), args_file
    return _make
