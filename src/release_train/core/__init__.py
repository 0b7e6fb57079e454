"""Core business logic for release-train.

This module contains the fundamental building blocks:
- Change levels and semantic version increments
- Pull request label classification
- Commit-level aggregation and validation
- Next version resolution
"""

from __future__ import annotations

from release_train.core.changelevel import ChangeLevel
from release_train.core.commits import (
    Commit,
    RawCommit,
    RawPull,
    aggregate_level,
    annotate_commits,
    collect_pulls,
    validate_commit,
)
from release_train.core.labels import LabelTable, classify
from release_train.core.pulls import Pull, new_pull
from release_train.core.resolver import VersionChange, resolve
from release_train.core.version import increment_prerelease, parse_version, stabilize

__all__ = [
    # Levels
    "ChangeLevel",
    # Commits
    "Commit",
    # Labels
    "LabelTable",
    # Pulls
    "Pull",
    "RawCommit",
    "RawPull",
    # Resolution
    "VersionChange",
    "aggregate_level",
    "annotate_commits",
    "classify",
    "collect_pulls",
    # Versions
    "increment_prerelease",
    "new_pull",
    "parse_version",
    "resolve",
    "stabilize",
    "validate_commit",
]
