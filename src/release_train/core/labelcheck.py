"""Check that a single pull request carries a change level label."""

from __future__ import annotations

from typing import TYPE_CHECKING

from release_train.core.labels import (
    CANONICAL_LEVEL_LABELS,
    DEFAULT_LABEL_TABLE,
    LabelTable,
    LevelLabel,
)
from release_train.exceptions import LabelError

if TYPE_CHECKING:
    from release_train.github.client import GitHubClient


def check_pull_labels(
    client: GitHubClient,
    owner: str,
    repo: str,
    number: int,
    table: LabelTable = DEFAULT_LABEL_TABLE,
) -> None:
    """Raise LabelError unless the pull request has a change level label."""
    pull = client.get_pull_request(owner, repo, number)
    if any(isinstance(table.classify(label), LevelLabel) for label in pull.labels):
        return
    wanted = ", ".join(sorted(CANONICAL_LEVEL_LABELS))
    raise LabelError(f"pull request is missing a label. wanted one of: {wanted}")
