"""Release computation and tagging.

next_release() locates the previous release tags in a local clone and
computes the version the ref should be released as. run_release() does
the same and then tags the release and pushes the tag when asked to.

A repository without any version tag gets a first release at the
initial tag. No commits are compared in that case because there is no
base to compare against.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import TYPE_CHECKING, Any

from release_train.core.changelevel import ChangeLevel
from release_train.core.labels import DEFAULT_LABEL_TABLE, LabelTable
from release_train.core.next import DEFAULT_MAX_WORKERS, NextOptions, get_next
from release_train.core.version import parse_version
from release_train.exceptions import GitError, InvalidInputError, TagExistsError
from release_train.vcs import (
    create_tag,
    get_prev_tag,
    is_allowed_ref,
    is_shallow_repository,
    local_tag_exists,
    push_ref,
    remote_tag_exists,
    rev_parse,
)

if TYPE_CHECKING:
    import threading

    import semver

    from release_train.github.client import GitHubClient

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReleaseResult:
    """Outcome of next_release() and run_release().

    Attributes:
        previous_ref: Tag of the previous release
        previous_version: Version of the previous release
        previous_stable_ref: Tag of the previous stable release
        previous_stable_version: Version of the previous stable release
        first_release: No previous release tag exists
        release_version: Version to release; None for a first release
            without an initial tag
        release_tag: Tag the release gets
        change_level: Change level that produced release_version
        created_tag: The tag was created and pushed
    """

    previous_ref: str = ""
    previous_version: semver.Version | None = None
    previous_stable_ref: str = ""
    previous_stable_version: semver.Version | None = None
    first_release: bool = False
    release_version: semver.Version | None = None
    release_tag: str = ""
    change_level: ChangeLevel = ChangeLevel.NONE
    created_tag: bool = False

    @property
    def has_changes(self) -> bool:
        return self.first_release or self.release_version != self.previous_version

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "previous_ref": self.previous_ref,
            "previous_version": _version_str(self.previous_version),
            "previous_stable_ref": self.previous_stable_ref,
            "previous_stable_version": _version_str(self.previous_stable_version),
            "first_release": self.first_release,
            "change_level": str(self.change_level),
            "created_tag": self.created_tag,
        }
        if self.release_version is not None:
            data["release_version"] = str(self.release_version)
        if self.release_tag:
            data["release_tag"] = self.release_tag
        return data


def _version_str(version: semver.Version | None) -> str:
    return "" if version is None else str(version)


@dataclass
class ReleaseOptions:
    """Inputs for next_release() and run_release().

    Attributes:
        client: GitHub API client
        repo: Repository as "owner/name"
        repo_dir: Local clone holding the release tags
        ref: Ref being released
        tag_prefix: Prefix of release tags
        initial_tag: Tag of the first release; empty to leave it unversioned
        v0: Keep the major version at zero by capping bumps at minor
        min_bump: Lowest change level to apply when anything changed
        max_bump: Highest change level to apply
        check_pr: Pull request number to include as if merged (0 for none)
        labels: Label table to classify against
        force_prerelease: Always produce a pre-release
        force_stable: Always produce a stable version
        create_tag: Tag the release and push the tag
        push_remote: Remote to check for and push tags
        release_refs: Patterns the ref must match to be tagged; any ref when empty
        max_workers: Concurrent GitHub requests
    """

    client: GitHubClient
    repo: str
    repo_dir: Path | str = Path(".")
    ref: str = "HEAD"
    tag_prefix: str = "v"
    initial_tag: str = "v0.0.0"
    v0: bool = False
    min_bump: ChangeLevel = ChangeLevel.NONE
    max_bump: ChangeLevel = ChangeLevel.MAJOR
    check_pr: int = 0
    labels: LabelTable = DEFAULT_LABEL_TABLE
    force_prerelease: bool = False
    force_stable: bool = False
    create_tag: bool = False
    push_remote: str = "origin"
    release_refs: list[str] = field(default_factory=list)
    max_workers: int = DEFAULT_MAX_WORKERS


def first_release(initial_tag: str, tag_prefix: str = "") -> ReleaseResult:
    """Result for a repository that has never been released.

    Raises:
        InvalidInputError: If initial_tag does not hold a version
    """
    version = None
    if initial_tag:
        try:
            version = parse_version(initial_tag.removeprefix(tag_prefix))
        except InvalidInputError as e:
            raise InvalidInputError(f"invalid initial tag {initial_tag!r}") from e
    return ReleaseResult(first_release=True, release_version=version, release_tag=initial_tag)


def _tag_version(tag: str, tag_prefix: str) -> semver.Version:
    return parse_version(tag.removeprefix(tag_prefix))


def next_release(options: ReleaseOptions, cancel: threading.Event | None = None) -> ReleaseResult:
    """Compute the release for options.ref without changing anything.

    Raises:
        GitError: If git fails
        InvalidInputError: If v0 is set and the previous major version is not 0
        ReleaseTrainError: If the next version cannot be computed
    """
    head = rev_parse(options.ref, options.repo_dir)
    prev_ref = get_prev_tag(options.repo_dir, head=head, tag_prefix=options.tag_prefix)
    if prev_ref is None:
        logger.debug("no previous release tag, first release is %r", options.initial_tag)
        return first_release(options.initial_tag, options.tag_prefix)

    prev_stable_ref = get_prev_tag(
        options.repo_dir, head=head, tag_prefix=options.tag_prefix, stable_only=True
    )
    previous = _tag_version(prev_ref, options.tag_prefix)
    max_bump = options.max_bump
    if options.v0:
        if previous.major != 0:
            raise InvalidInputError(
                f"v0 is set, but previous version {str(previous)!r} has major version > 0"
            )
        max_bump = min(max_bump, ChangeLevel.MINOR)

    change = get_next(
        NextOptions(
            client=options.client,
            repo=options.repo,
            base=prev_ref,
            head=head,
            prev_version=str(previous),
            min_bump=options.min_bump,
            max_bump=max_bump,
            check_pr=options.check_pr,
            labels=options.labels,
            force_prerelease=options.force_prerelease,
            force_stable=options.force_stable,
            max_workers=options.max_workers,
        ),
        cancel,
    )
    return ReleaseResult(
        previous_ref=prev_ref,
        previous_version=previous,
        previous_stable_ref=prev_stable_ref or "",
        previous_stable_version=(
            _tag_version(prev_stable_ref, options.tag_prefix) if prev_stable_ref else None
        ),
        release_version=change.next_version,
        release_tag=options.tag_prefix + str(change.next_version),
        change_level=change.change_level,
    )


def check_tag_available(remote: str, tag: str, repo_dir: Path | str = ".") -> None:
    """Make sure tag exists neither on remote nor locally.

    Raises:
        TagExistsError: If the tag is taken
        GitError: If git fails
    """
    if remote_tag_exists(remote, tag, repo_dir):
        raise TagExistsError(f"tag {tag!r} already exists on remote", tag)
    if local_tag_exists(tag, repo_dir):
        raise TagExistsError(f"tag {tag!r} already exists locally", tag)


def should_create_tag(options: ReleaseOptions) -> bool:
    """Decide whether a computed release gets tagged.

    Tags are only created when asked for, never while checking a pull
    request, and only for refs matching options.release_refs.
    """
    if not options.create_tag or options.check_pr:
        return False
    return is_allowed_ref(options.ref, options.release_refs, options.repo_dir)


def run_release(options: ReleaseOptions, cancel: threading.Event | None = None) -> ReleaseResult:
    """Compute the release for options.ref and tag it.

    Nothing is tagged when the version did not change. The release tag
    must not exist yet, locally or on the push remote, whether or not a
    tag is going to be created.

    Raises:
        GitError: If the clone is shallow or git fails
        TagExistsError: If the release tag already exists
        ReleaseTrainError: If the next version cannot be computed
    """
    if is_shallow_repository(options.repo_dir):
        raise GitError("shallow clones are not supported")

    result = next_release(options, cancel)
    if not result.has_changes:
        logger.debug("no changes since %s, skipping tag", result.previous_ref)
        return result
    if result.release_version is None:
        return result

    check_tag_available(options.push_remote, result.release_tag, options.repo_dir)
    if not should_create_tag(options):
        return result

    create_tag(result.release_tag, options.ref, options.repo_dir)
    push_ref(options.push_remote, result.release_tag, options.repo_dir)
    logger.info("released %s", result.release_tag)
    return replace(result, created_tag=True)
