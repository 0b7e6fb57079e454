"""GitHub API access for release-train."""

from __future__ import annotations

from release_train.github.client import (
    CommitComparison,
    GitHubClient,
    HttpxGitHubClient,
)

__all__ = ["CommitComparison", "GitHubClient", "HttpxGitHubClient"]
