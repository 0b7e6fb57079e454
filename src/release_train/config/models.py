"""Configuration models for release-train.

Configuration is read from [tool.release-train] in pyproject.toml and
validated with pydantic. Every field has a default, so an empty table
is a valid configuration.
"""

from __future__ import annotations

import os
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator, model_validator

from release_train.core.changelevel import ChangeLevel
from release_train.core.labels import LabelTable
from release_train.exceptions import ConfigValidationError


class GitHubConfig(BaseModel):
    """GitHub API settings."""

    model_config = ConfigDict(extra="forbid")

    api_url: str = Field(
        default="https://api.github.com",
        description="REST API root (change for GitHub Enterprise)",
    )
    token_env: str = Field(
        default="GITHUB_TOKEN",
        description="Environment variable holding the API token",
    )
    user_agent: str = "release-train"
    timeout: float = Field(default=30.0, gt=0)
    max_workers: int = Field(
        default=8,
        ge=1,
        description="Concurrent requests when fetching pull requests per commit",
    )

    @property
    def token(self) -> str | None:
        return os.environ.get(self.token_env) or None


class ReleaseTrainConfig(BaseModel):
    """Root configuration."""

    model_config = ConfigDict(extra="forbid")

    repo: str | None = Field(default=None, description="Repository as owner/name")
    tag_prefix: str = "v"
    initial_tag: str = Field(
        default="v0.0.0",
        description="Tag to compute from when no previous release tag exists",
    )
    label_aliases: dict[str, str] = Field(default_factory=dict)
    min_bump: ChangeLevel = ChangeLevel.NONE
    max_bump: ChangeLevel = ChangeLevel.MAJOR
    force_prerelease: bool = False
    force_stable: bool = False
    stable_only_prev: bool = Field(
        default=False,
        description="Ignore pre-release tags when locating the previous release",
    )
    v0: bool = Field(default=False, description="Keep the major version at zero")
    create_tag: bool = Field(default=False, description="Tag releases and push the tag")
    push_remote: str = "origin"
    release_refs: list[str] = Field(
        default_factory=list,
        description="Ref patterns allowed to be tagged; any ref when empty",
    )
    github: GitHubConfig = Field(default_factory=GitHubConfig)

    @field_validator("min_bump", "max_bump", mode="before")
    @classmethod
    def _parse_change_level(cls, value: Any) -> Any:
        if isinstance(value, str):
            return ChangeLevel.parse(value)
        return value

    @field_serializer("min_bump", "max_bump")
    def _serialize_change_level(self, value: ChangeLevel) -> str:
        return str(value)

    @field_validator("label_aliases")
    @classmethod
    def _validate_aliases(cls, value: dict[str, str]) -> dict[str, str]:
        try:
            LabelTable.build(value)
        except ConfigValidationError as e:
            raise ValueError(str(e)) from e
        return value

    @field_validator("repo")
    @classmethod
    def _validate_repo(cls, value: str | None) -> str | None:
        if value is None:
            return value
        owner, sep, name = value.partition("/")
        if not sep or not owner or not name or "/" in name:
            raise ValueError("repo must be in the form owner/name")
        return value

    @model_validator(mode="after")
    def _check_consistency(self) -> ReleaseTrainConfig:
        if self.min_bump > self.max_bump:
            raise ValueError("min_bump must be less than or equal to max_bump")
        if self.force_prerelease and self.force_stable:
            raise ValueError("force_prerelease and force_stable are mutually exclusive")
        return self

    def label_table(self) -> LabelTable:
        return LabelTable.build(self.label_aliases)
