"""Configuration management for release-train."""

from __future__ import annotations

from release_train.config.loader import load_config
from release_train.config.models import GitHubConfig, ReleaseTrainConfig

__all__ = [
    "GitHubConfig",
    "ReleaseTrainConfig",
    "load_config",
]
