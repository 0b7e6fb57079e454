"""Commit-level aggregation of pull request labels.

A commit carries the pull requests merged through it. A commit with no
pull requests contributes nothing; a commit whose pull requests carry no
change level label is an error, since an unlabeled pull request cannot
be counted.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from release_train.core.changelevel import ChangeLevel
from release_train.core.labels import DEFAULT_LABEL_TABLE, LabelTable
from release_train.core.pulls import Pull, format_pulls, new_pull
from release_train.exceptions import AggregateError, CommitLabelError, LabelError

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RawPull:
    """A merged pull request as reported by GitHub, before classification."""

    number: int
    labels: tuple[str, ...] = ()
    merge_commit_sha: str = ""


@dataclass(frozen=True)
class RawCommit:
    sha: str
    pulls: tuple[RawPull, ...] = ()


@dataclass(frozen=True)
class Commit:
    """A commit and the annotated pull requests merged through it."""

    sha: str
    pulls: tuple[Pull, ...] = field(default_factory=tuple)

    @property
    def change_level(self) -> ChangeLevel:
        return max((p.change_level for p in self.pulls), default=ChangeLevel.NONE)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"sha": self.sha}
        if self.pulls:
            data["pulls"] = [p.to_dict() for p in self.pulls]
        return data


def validate_commit(commit: Commit) -> None:
    """Check that the pull requests of one commit agree with each other.

    Raises:
        CommitLabelError: If the commit mixes stable and pre-release pull
            requests, names two pre-release prefixes, or has pull requests
            none of which carries a change level label
    """
    pre_pulls = [p for p in commit.pulls if p.has_pre_label]
    stable_pulls = [p for p in commit.pulls if p.has_stable_label]
    if pre_pulls and stable_pulls:
        raise CommitLabelError(
            f"commit {commit.sha} has both stable and prerelease labels: "
            f"stable PR: {format_pulls(stable_pulls)}, prerelease PR: {format_pulls(pre_pulls)}",
            sha=commit.sha,
        )

    prefix_pulls = [p for p in commit.pulls if p.prerelease_prefix]
    first = prefix_pulls[0] if prefix_pulls else None
    for other in prefix_pulls[1:]:
        if other.prerelease_prefix != first.prerelease_prefix:
            raise CommitLabelError(
                f"commit {commit.sha} has pull requests with conflicting prefixes: "
                f"{first} and {other}",
                sha=commit.sha,
            )

    if commit.pulls and not any(p.level_labels for p in commit.pulls):
        raise CommitLabelError(
            f"commit {commit.sha} has no labels on associated pull requests: "
            f"{format_pulls(commit.pulls)}",
            sha=commit.sha,
        )


def annotate_commit(raw: RawCommit, table: LabelTable = DEFAULT_LABEL_TABLE) -> Commit:
    """Classify the pull requests of one commit and validate the result."""
    commit = Commit(
        sha=raw.sha,
        pulls=tuple(new_pull(p.number, p.labels, table) for p in raw.pulls),
    )
    validate_commit(commit)
    return commit


def annotate_commits(
    raw_commits: Sequence[RawCommit],
    table: LabelTable = DEFAULT_LABEL_TABLE,
) -> list[Commit]:
    """Annotate and validate every commit in a range.

    Every commit is checked even after a failure so all problems are
    reported together.

    Args:
        raw_commits: Commits with their unclassified pull requests
        table: Label table to classify against

    Returns:
        Annotated commits, in input order

    Raises:
        LabelError: If exactly one commit failed
        AggregateError: If several commits failed; errors are ordered by
            commit position
    """
    commits: list[Commit] = []
    errors: list[LabelError] = []
    for raw in raw_commits:
        try:
            commits.append(annotate_commit(raw, table))
        except LabelError as e:
            errors.append(e)

    if len(errors) == 1:
        raise errors[0]
    if errors:
        raise AggregateError(errors)

    logger.debug("annotated %d commits", len(commits))
    return commits


def collect_pulls(commits: Iterable[Commit]) -> list[Pull]:
    """Return the distinct pulls of all commits, ordered by number."""
    by_number: dict[int, Pull] = {}
    for commit in commits:
        for pull in commit.pulls:
            by_number[pull.number] = pull
    return [by_number[n] for n in sorted(by_number)]


def aggregate_level(
    commits: Sequence[Commit],
    min_change: ChangeLevel = ChangeLevel.NONE,
    max_change: ChangeLevel = ChangeLevel.MAJOR,
) -> ChangeLevel:
    """Highest commit change level, floored at min_change and capped at max_change.

    An empty range is always NONE; min_change only applies once there is
    something to release.
    """
    if not commits:
        return ChangeLevel.NONE
    level = max(commit.change_level for commit in commits)
    return min(max(level, min_change), max_change)
