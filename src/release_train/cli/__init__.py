"""Command line interface for release-train."""

from __future__ import annotations

from release_train.cli.main import app

__all__ = ["app"]
