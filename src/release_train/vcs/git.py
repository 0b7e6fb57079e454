"""Previous release tag lookup.

Walks the history reachable from a ref with `git rev-list` and stops at
the first commit that carries a version tag. Tags are matched as
<prefix><MAJOR.MINOR.PATCH[-pre][+build]>.
"""

from __future__ import annotations

import logging
import subprocess
from typing import TYPE_CHECKING

from release_train.core.version import parse_tag_version
from release_train.exceptions import GitError

if TYPE_CHECKING:
    from collections.abc import Sequence
    from pathlib import Path

    import semver

logger = logging.getLogger(__name__)


def parse_git_tag_line(
    line: str,
    prefix: str = "",
    stable_only: bool = False,
) -> list[tuple[str, semver.Version]]:
    """Extract version tags from a `--pretty=%D` decoration line.

    Args:
        line: Decoration such as "HEAD -> main, tag: v1.2.3, origin/main"
        prefix: Tag prefix that must precede the version
        stable_only: Skip pre-release versions

    Returns:
        (tag, version) pairs in the order they appear
    """
    result = []
    for ref in line.strip().split(", "):
        if not ref.startswith("tag: "):
            continue
        tag = ref.removeprefix("tag: ")
        if not tag.startswith(prefix):
            continue
        version = parse_tag_version(tag.removeprefix(prefix))
        if version is None:
            continue
        if stable_only and version.prerelease:
            continue
        result.append((tag, version))
    return result


def get_prev_tag(
    repo_dir: Path | str = ".",
    head: str = "HEAD",
    tag_prefix: str = "",
    stable_only: bool = False,
) -> str | None:
    """Find the highest version tag on the nearest tagged ancestor of head.

    Args:
        repo_dir: Repository working directory
        head: Ref to start walking from
        tag_prefix: Only consider tags starting with this prefix
        stable_only: Ignore pre-release tags

    Returns:
        The winning tag including its prefix, or None when no ancestor is tagged

    Raises:
        GitError: If git fails
    """
    args = ["git", "rev-list", "--pretty=%D", head]
    found: list[tuple[str, semver.Version]] = []
    try:
        process = subprocess.Popen(
            args,
            cwd=repo_dir,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
        )
    except FileNotFoundError as e:
        raise GitError("git not found") from e

    with process:
        for line in process.stdout or ():
            found = parse_git_tag_line(line, tag_prefix, stable_only)
            if found:
                # stop walking history once a tagged commit is reached
                process.kill()
                break
        stderr = process.stderr.read() if process.stderr else ""
        returncode = process.wait()

    if not found and returncode != 0:
        raise GitError(f"git rev-list failed with exit code {returncode}", stderr=stderr)
    if not found:
        logger.debug("no tags matching prefix %r reachable from %s", tag_prefix, head)
        return None

    tag, version = max(found, key=lambda pair: pair[1])
    logger.debug("previous tag is %s (%s)", tag, version)
    return tag


def _run_git(args: list[str], repo_dir: Path | str = ".") -> str:
    """Run git and return its stripped standard output.

    Raises:
        GitError: If git is missing or exits non-zero
    """
    try:
        result = subprocess.run(
            ["git", *args],
            cwd=repo_dir,
            capture_output=True,
            text=True,
            check=True,
        )
    except FileNotFoundError as e:
        raise GitError("git not found") from e
    except subprocess.CalledProcessError as e:
        raise GitError(
            f"git {args[0]} failed with exit code {e.returncode}: {e.stderr.strip()}",
            stderr=e.stderr,
        ) from e
    return result.stdout.strip()


def rev_parse(ref: str, repo_dir: Path | str = ".") -> str:
    """Resolve a ref to a full commit SHA.

    Raises:
        GitError: If git fails or the ref does not exist
    """
    try:
        return _run_git(["rev-parse", "--verify", f"{ref}^{{commit}}"], repo_dir)
    except GitError as e:
        if e.stderr is None:
            raise
        raise GitError(f"could not resolve {ref!r}", stderr=e.stderr) from e


def is_shallow_repository(repo_dir: Path | str = ".") -> bool:
    return _run_git(["rev-parse", "--is-shallow-repository"], repo_dir) == "true"


def local_tag_exists(tag: str, repo_dir: Path | str = ".") -> bool:
    return bool(_run_git(["tag", "--list", tag], repo_dir))


def remote_tag_exists(remote: str, tag: str, repo_dir: Path | str = ".") -> bool:
    """Check whether remote has tag, querying it with `git ls-remote`."""
    return bool(_run_git(["ls-remote", "--tags", remote, f"refs/tags/{tag}"], repo_dir))


def create_tag(tag: str, target: str = "HEAD", repo_dir: Path | str = ".") -> None:
    """Create a lightweight tag pointing at target."""
    _run_git(["tag", tag, target], repo_dir)
    logger.debug("created tag %s at %s", tag, target)


def push_ref(remote: str, ref: str, repo_dir: Path | str = ".") -> None:
    _run_git(["push", remote, ref], repo_dir)
    logger.debug("pushed %s to %s", ref, remote)


def is_allowed_ref(commitish: str, allowed_refs: Sequence[str], repo_dir: Path | str = ".") -> bool:
    """Check whether commitish is reachable by name from one of allowed_refs.

    Uses `git name-rev --no-undefined`, which fails when no allowed ref
    names the commit. Every ref is allowed when allowed_refs is empty.

    Raises:
        GitError: If git is missing
    """
    if not allowed_refs:
        return True
    args = ["name-rev", commitish, "--no-undefined"]
    for ref in allowed_refs:
        args += ["--refs", ref]
    try:
        _run_git(args, repo_dir)
    except GitError as e:
        if e.stderr is None:
            raise
        return False
    return True
