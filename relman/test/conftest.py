from __future__ import annotations

import shutil
import subprocess
from pathlib import Path

import pytest

from relman.test.gitutil import git


@pytest.fixture
def home_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolated HOME so the user's ~/.gitconfig never leaks into tests."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("USERPROFILE", str(home))
    monkeypatch.setenv("GIT_CONFIG_NOSYSTEM", "1")
    monkeypatch.delenv("GIT_CONFIG_GLOBAL", raising=False)
    return home


@pytest.fixture
def git_repo(tmp_path: Path, home_dir: Path) -> Path:
    """A fresh repository on branch main with one empty commit."""
    if shutil.which("git") is None:
        pytest.skip("git is not installed")

    repo = tmp_path / "repo"
    repo.mkdir()
    git(repo, "init", "-q")
    git(repo, "symbolic-ref", "HEAD", "refs/heads/main")
    git(repo, "config", "tag.gpgsign", "false")
    git(repo, "commit", "-q", "--allow-empty", "-m", "initial")
    return repo


@pytest.fixture
def bare_remote(tmp_path: Path, git_repo: Path) -> Path:
    """A bare repository registered as `origin` of git_repo."""
    remote = tmp_path / "remote.git"
    proc = subprocess.run(
        ["git", "init", "-q", "--bare", str(remote)],
        capture_output=True,
        text=True,
        check=False,
    )
    assert proc.returncode == 0, proc.stderr
    git(git_repo, "remote", "add", "origin", str(remote))
    return remote
