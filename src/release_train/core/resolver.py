"""Version resolution.

Given the previous release and the annotated commits merged since, decide
the next version and the change level that produced it. Four transitions
are possible:

- stable → stable: bump by the aggregate change level
- stable → pre-release: bump, then start a pre-release counter
- pre-release → pre-release: advance the pre-release counter
- pre-release → stable: drop the suffix, then bump when every pull
  request is labeled stable

All validation happens before any version arithmetic, and every
inconsistency is an error. Nothing is silently corrected.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from release_train.core.changelevel import ChangeLevel
from release_train.core.commits import Commit, aggregate_level, collect_pulls
from release_train.core.pulls import Pull, format_pulls
from release_train.core.version import increment_prerelease, is_prerelease, stabilize
from release_train.exceptions import InvalidInputError, ReleaseLabelError, VersionError

if TYPE_CHECKING:
    from collections.abc import Sequence

    import semver

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class VersionChange:
    """Outcome of a resolution.

    Attributes:
        previous_version: Version the release is computed from
        next_version: Version to release
        change_level: Effective change level that was applied
        commits: Annotated commits the decision was based on
    """

    previous_version: semver.Version
    next_version: semver.Version
    change_level: ChangeLevel = ChangeLevel.NONE
    commits: tuple[Commit, ...] = field(default_factory=tuple)

    @property
    def is_prerelease(self) -> bool:
        return is_prerelease(self.next_version)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "previous_version": str(self.previous_version),
            "next_version": str(self.next_version),
            "change_level": str(self.change_level),
        }
        if self.commits:
            data["commits"] = [c.to_dict() for c in self.commits]
        return data


@dataclass
class _PullSummary:
    """Pulls partitioned by release intent, each list in pull number order."""

    pre: list[Pull] = field(default_factory=list)
    non_pre: list[Pull] = field(default_factory=list)
    stable: list[Pull] = field(default_factory=list)
    unstable: list[Pull] = field(default_factory=list)
    prefix: str = ""

    @classmethod
    def from_pulls(cls, pulls: Sequence[Pull]) -> _PullSummary:
        summary = cls()
        for pull in pulls:
            if pull.has_stable_label:
                summary.stable.append(pull)
            else:
                summary.unstable.append(pull)

            if not pull.has_pre_label:
                if pull.change_level > ChangeLevel.NONE:
                    summary.non_pre.append(pull)
                continue

            summary.pre.append(pull)
            if not pull.prerelease_prefix:
                continue
            if summary.prefix and summary.prefix != pull.prerelease_prefix:
                raise ReleaseLabelError(
                    "cannot have multiple pre-release prefixes in the same release. "
                    "pre-release prefix. release contains both "
                    f'"{summary.prefix}" and "{pull.prerelease_prefix}"'
                )
            summary.prefix = pull.prerelease_prefix
        return summary


def resolve(
    previous_version: semver.Version,
    min_change: ChangeLevel,
    max_change: ChangeLevel,
    commits: Sequence[Commit],
    *,
    force_prerelease: bool = False,
    force_stable: bool = False,
) -> VersionChange:
    """Compute the next version from annotated commits.

    Args:
        previous_version: Last released version, stable or pre-release
        min_change: Lowest change level to apply when anything changed
        max_change: Highest change level to apply
        commits: Commits annotated by annotate_commits()
        force_prerelease: Always produce a pre-release
        force_stable: Always produce a stable version

    Returns:
        The version change

    Raises:
        InvalidInputError: If both force flags are set
        ReleaseLabelError: If the pull requests ask for incompatible releases
        VersionError: If no valid pre-release greater than the previous
            version can be produced
    """
    if force_prerelease and force_stable:
        raise InvalidInputError("cannot force both a pre-release and a stable release")

    logger.debug("resolving next version from %s", previous_version)
    commits = tuple(commits)
    pulls = collect_pulls(commits)

    if not pulls:
        next_version = stabilize(previous_version) if force_stable else previous_version
        logger.debug("no pull requests found, next version is %s", next_version)
        return VersionChange(previous_version, next_version, ChangeLevel.NONE, commits)

    level = aggregate_level(commits, min_change, max_change)
    summary = _PullSummary.from_pulls(pulls)
    logger.debug(
        "aggregated %d pull requests: level=%s pre=%s stable=%s",
        len(pulls),
        level,
        format_pulls(summary.pre),
        format_pulls(summary.stable),
    )

    if summary.pre and summary.non_pre:
        raise ReleaseLabelError(
            "cannot have pre-release and non-pre-release PRs in the same release. "
            f"pre-release PRs: {format_pulls(summary.pre)}, "
            f"non-pre-release PRs: {format_pulls(summary.non_pre)}"
        )
    if force_prerelease and summary.stable:
        raise ReleaseLabelError(
            f"cannot force pre-release with stable PRs. stable PRs: {format_pulls(summary.stable)}"
        )

    if force_prerelease or (not force_stable and summary.pre):
        candidate = increment_prerelease(previous_version, level, summary.prefix)
        if not candidate > previous_version:
            raise VersionError(
                f'pre-release version "{candidate}" is not greater than "{previous_version}"'
            )
        logger.debug("next pre-release is %s", candidate)
        return VersionChange(previous_version, candidate, level, commits)

    from_prerelease = is_prerelease(previous_version)
    if from_prerelease and not force_stable and summary.unstable:
        if summary.stable:
            raise ReleaseLabelError(
                "in order to release a stable version, all PRs must be labeled as stable. "
                f"stable PRs: {format_pulls(summary.stable)}, "
                f"unstable PRs: {format_pulls(summary.unstable)}"
            )
        raise ReleaseLabelError(
            "cannot create a stable release from a pre-release unless all PRs are labeled "
            f"semver:stable. unlabeled PRs: {format_pulls(summary.unstable)}"
        )

    next_version = stabilize(previous_version)
    if from_prerelease and force_stable and summary.unstable:
        # stabilize the in-progress pre-release without bumping again
        logger.debug("forced stable from %s without increment", previous_version)
    else:
        next_version = level.increment(next_version)

    logger.debug("next stable version is %s", next_version)
    return VersionChange(previous_version, next_version, level, commits)
