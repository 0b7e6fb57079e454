"""release-train: compute the next semantic version from labeled pull requests."""

from __future__ import annotations

__version__ = "0.1.0"
