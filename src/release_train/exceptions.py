"""Exception hierarchy for release-train.

Every error raised by the package derives from ReleaseTrainError so
callers can catch the whole family at once. Messages are user-facing
and are printed verbatim by the CLI.
"""

from __future__ import annotations

from collections.abc import Sequence


class ReleaseTrainError(Exception):
    """Base class for all release-train errors."""


# =============================================================================
# Configuration
# =============================================================================


class ConfigError(ReleaseTrainError):
    """Configuration could not be loaded or is invalid."""


class ConfigNotFoundError(ConfigError):
    """No pyproject.toml was found."""


class ConfigValidationError(ConfigError):
    """Configuration values failed validation."""


class InvalidInputError(ReleaseTrainError):
    """Caller supplied an invalid version, bump range or repository."""


# =============================================================================
# Labels
# =============================================================================


class LabelError(ReleaseTrainError):
    """Pull request labels are missing or inconsistent."""


class PullLabelError(LabelError):
    """A single pull request carries contradictory labels."""


class CommitLabelError(LabelError):
    """The pull requests merged through one commit are inconsistent."""

    def __init__(self, message: str, sha: str) -> None:
        super().__init__(message)
        self.sha = sha


class ReleaseLabelError(LabelError):
    """The pull requests in a release cannot produce a single version."""


# =============================================================================
# Versions
# =============================================================================


class VersionError(ReleaseTrainError):
    """A next version could not be computed."""


# =============================================================================
# Aggregation and collaborators
# =============================================================================


class AggregateError(ReleaseTrainError):
    """Several independent operations failed.

    Attributes:
        errors: Every underlying error, in the order of the work items
            that produced them.
    """

    def __init__(self, errors: Sequence[BaseException]) -> None:
        self.errors = list(errors)
        super().__init__("\n".join(str(e) for e in self.errors))


class GitHubError(ReleaseTrainError):
    """A GitHub API request failed."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class GitError(ReleaseTrainError):
    """A git command failed."""

    def __init__(self, message: str, stderr: str | None = None) -> None:
        super().__init__(message)
        self.stderr = stderr


class TagExistsError(ReleaseTrainError):
    """The release tag is already taken locally or on the push remote."""

    def __init__(self, message: str, tag: str) -> None:
        super().__init__(message)
        self.tag = tag
