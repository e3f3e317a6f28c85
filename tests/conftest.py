"""Test configuration and fixtures for gitperms."""

import os

import pytest


def pytest_addoption(parser):
    """Add custom command-line options for tests."""
    parser.addoption("--run-cli-tests", action="store_true", default=False, help="Run CLI integration tests (slow)")


@pytest.fixture
def sample_tree(tmp_path):
    """Create a small tree with known modes.

    Layout:
        a.txt         644
        run.sh        755
        sub/          750
        sub/b.txt     600
        .git/         (never traversed)
        .git/config
    """
    (tmp_path / "a.txt").write_text("a")
    (tmp_path / "run.sh").write_text("#!/bin/sh\n")
    (tmp_path / "sub").mkdir()
    (tmp_path / "sub" / "b.txt").write_text("b")
    (tmp_path / ".git").mkdir()
    (tmp_path / ".git" / "config").write_text("[core]\n")

    os.chmod(tmp_path, 0o755)
    os.chmod(tmp_path / "a.txt", 0o644)
    os.chmod(tmp_path / "run.sh", 0o755)
    os.chmod(tmp_path / "sub", 0o750)
    os.chmod(tmp_path / "sub" / "b.txt", 0o600)
    return tmp_path


@pytest.fixture
def chown_calls(monkeypatch):
    """Record os.chown calls instead of performing them.

    Changing ownership needs privileges the test run usually lacks, so tests that
    restore owner or group assert on the recorded calls.
    """
    calls = []

    def fake_chown(path, uid, gid, *args, **kwargs):
        calls.append((str(path), uid, gid))

    monkeypatch.setattr(os, "chown", fake_chown)
    return calls
