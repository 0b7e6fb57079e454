"""Pull request annotation.

Turns the raw labels on a merged pull request into a Pull record that
says how much the pull request changes and whether it asks for a
pre-release or a stable release.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from release_train.core.changelevel import ChangeLevel
from release_train.core.labels import (
    DEFAULT_LABEL_TABLE,
    LabelTable,
    LevelLabel,
    PrereleaseLabel,
    StableLabel,
)
from release_train.exceptions import PullLabelError

if TYPE_CHECKING:
    from collections.abc import Iterable


@dataclass(frozen=True)
class Pull:
    """Release-relevant metadata of one merged pull request.

    Attributes:
        number: Pull request number
        change_level: Highest level implied by any recognized label
        level_labels: Raw labels that named a change level, sorted
        has_pre_label: A label asked for a pre-release
        prerelease_prefix: Prefix carried by a "semver:prerelease:<prefix>" label
        has_stable_label: A label asked for a stable release
    """

    number: int
    change_level: ChangeLevel = ChangeLevel.NONE
    level_labels: tuple[str, ...] = field(default_factory=tuple)
    has_pre_label: bool = False
    prerelease_prefix: str = ""
    has_stable_label: bool = False

    def __post_init__(self) -> None:
        if self.has_pre_label and self.has_stable_label:
            raise PullLabelError(f"pull #{self.number} has both prerelease and stable labels")

    def __str__(self) -> str:
        return f"#{self.number}"

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"number": self.number, "change_level": str(self.change_level)}
        if self.level_labels:
            data["labels"] = list(self.level_labels)
        if self.has_pre_label:
            data["has_pre_label"] = True
        if self.prerelease_prefix:
            data["pre_release_prefix"] = self.prerelease_prefix
        if self.has_stable_label:
            data["has_stable_label"] = True
        return data


def new_pull(
    number: int,
    labels: Iterable[str],
    table: LabelTable = DEFAULT_LABEL_TABLE,
) -> Pull:
    """Build a Pull from its raw labels.

    Labels are sorted before classification so level_labels and error
    messages do not depend on the order GitHub returned them in.

    Args:
        number: Pull request number
        labels: Raw label names
        table: Label table to classify against

    Returns:
        The annotated pull

    Raises:
        PullLabelError: If the labels name two different pre-release
            prefixes, or ask for both a pre-release and a stable release
    """
    level = ChangeLevel.NONE
    level_labels: list[str] = []
    has_pre = False
    prefix = ""
    has_stable = False

    for label in sorted(labels):
        match table.classify(label):
            case LevelLabel(level=label_level):
                level_labels.append(label)
                level = max(level, label_level)
            case PrereleaseLabel(prefix=label_prefix):
                has_pre = True
                if label_prefix:
                    if prefix and prefix != label_prefix:
                        raise PullLabelError(
                            f"pull #{number} has conflicting prerelease prefixes: "
                            f"{prefix} and {label_prefix}"
                        )
                    prefix = label_prefix
            case StableLabel():
                has_stable = True

    return Pull(
        number=number,
        change_level=level,
        level_labels=tuple(level_labels),
        has_pre_label=has_pre,
        prerelease_prefix=prefix,
        has_stable_label=has_stable,
    )


def format_pulls(pulls: Iterable[Pull]) -> str:
    """Render pulls for error messages, e.g. "[#1 #2]"."""
    return "[" + " ".join(str(p) for p in pulls) + "]"
