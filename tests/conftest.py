"""Shared fixtures for release-train tests."""

from __future__ import annotations

import os
import shutil
import subprocess
from typing import TYPE_CHECKING

import pytest

from release_train.core.changelevel import ChangeLevel
from release_train.core.commits import Commit
from release_train.core.pulls import Pull

if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path

GIT_ENV = {
    "GIT_AUTHOR_NAME": "Test",
    "GIT_AUTHOR_EMAIL": "test@example.com",
    "GIT_COMMITTER_NAME": "Test",
    "GIT_COMMITTER_EMAIL": "test@example.com",
    "GIT_CONFIG_GLOBAL": os.devnull,
    "GIT_CONFIG_SYSTEM": os.devnull,
}


def make_pull(
    number: int,
    level: ChangeLevel = ChangeLevel.NONE,
    pre: bool = False,
    stable: bool = False,
    prefix: str = "",
) -> Pull:
    """Build an annotated pull directly, bypassing label classification."""
    return Pull(
        number=number,
        change_level=level,
        level_labels=(str(level),),
        has_pre_label=pre,
        prerelease_prefix=prefix,
        has_stable_label=stable,
    )


def make_commit(*pulls: Pull, sha: str = "deadbeef") -> Commit:
    return Commit(sha=sha, pulls=pulls)


@pytest.fixture
def pull() -> Callable[..., Pull]:
    return make_pull


@pytest.fixture
def commit() -> Callable[..., Commit]:
    return make_commit


@pytest.fixture
def git(tmp_path: Path) -> Callable[..., str]:
    """Run git commands in a fresh repository under tmp_path."""
    if shutil.which("git") is None:
        pytest.skip("git is not installed")

    env = {**os.environ, **GIT_ENV}

    def run(*args: str) -> str:
        result = subprocess.run(
            ["git", *args],
            cwd=tmp_path,
            env=env,
            capture_output=True,
            text=True,
            check=True,
        )
        return result.stdout.strip()

    run("init", "-q")
    return run


@pytest.fixture
def temp_pyproject(tmp_path: Path) -> Callable[[str], Path]:
    """Write a pyproject.toml with the given [tool.release-train] body."""

    def write(body: str) -> Path:
        path = tmp_path / "pyproject.toml"
        path.write_text(f'[project]\nname = "test-project"\nversion = "1.0.0"\n\n{body}')
        return path

    return write


@pytest.fixture
def remote(git: Callable[..., str], tmp_path_factory: pytest.TempPathFactory) -> Path:
    """Add a bare repository as the "origin" remote of the git fixture's repository."""
    path = tmp_path_factory.mktemp("remote") / "origin.git"
    subprocess.run(
        ["git", "init", "--bare", "-q", str(path)],
        env={**os.environ, **GIT_ENV},
        capture_output=True,
        check=True,
    )
    git("remote", "add", "origin", str(path))
    return path
