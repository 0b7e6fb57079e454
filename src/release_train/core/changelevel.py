"""Change levels and stable version increments."""

from __future__ import annotations

from enum import IntEnum
from typing import TYPE_CHECKING, assert_never

if TYPE_CHECKING:
    import semver


class ChangeLevel(IntEnum):
    """Ordered impact of a change: NONE < PATCH < MINOR < MAJOR."""

    NONE = 0
    PATCH = 1
    MINOR = 2
    MAJOR = 3

    def __str__(self) -> str:
        return self.name.lower()

    @classmethod
    def parse(cls, value: str | ChangeLevel) -> ChangeLevel:
        """Parse a change level name.

        Accepts "none", "no change", "patch", "minor" and "major" in any
        case.

        Raises:
            ValueError: If the name is not a change level
        """
        if isinstance(value, ChangeLevel):
            return value
        normalized = value.strip().lower()
        if normalized == "no change":
            return cls.NONE
        try:
            return cls[normalized.upper()]
        except KeyError:
            raise ValueError(f"invalid change level: {value}") from None

    def increment(self, version: semver.Version) -> semver.Version:
        """Apply a standard semantic version bump.

        Lower components are reset to zero and any pre-release or build
        metadata is dropped. NONE returns the version unchanged.
        """
        match self:
            case ChangeLevel.NONE:
                return version
            case ChangeLevel.PATCH:
                return version.bump_patch()
            case ChangeLevel.MINOR:
                return version.bump_minor()
            case ChangeLevel.MAJOR:
                return version.bump_major()
            case _:
                assert_never(self)
