"""Pull request label classification.

A label resolves to exactly one meaning:

- LevelLabel: the label names a change level ("semver:minor")
- PrereleaseLabel: the label asks for a pre-release, optionally naming
  a prefix ("semver:prerelease:alpha")
- StableLabel: the label asks for a stable release ("semver:stable")
- UNRECOGNIZED: anything else; such labels are ignored

Lookups are case-insensitive. Built-in exact matches win over alias
matches, which win over marker-prefix matches.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TYPE_CHECKING, Final

from release_train.core.changelevel import ChangeLevel
from release_train.exceptions import ConfigValidationError

if TYPE_CHECKING:
    from collections.abc import Mapping

LABEL_NONE: Final = "semver:none"
LABEL_PATCH: Final = "semver:patch"
LABEL_MINOR: Final = "semver:minor"
LABEL_BREAKING: Final = "semver:breaking"
LABEL_MAJOR: Final = "semver:major"
LABEL_STABLE: Final = "semver:stable"
LABEL_PRERELEASE: Final = "semver:prerelease"

CANONICAL_LEVEL_LABELS: Final = (LABEL_BREAKING, LABEL_MINOR, LABEL_NONE, LABEL_PATCH)

DEFAULT_LEVEL_LABELS: Final[Mapping[str, ChangeLevel]] = MappingProxyType(
    {
        LABEL_BREAKING: ChangeLevel.MAJOR,
        LABEL_MAJOR: ChangeLevel.MAJOR,
        "breaking": ChangeLevel.MAJOR,
        "major": ChangeLevel.MAJOR,
        LABEL_MINOR: ChangeLevel.MINOR,
        "minor": ChangeLevel.MINOR,
        "enhancement": ChangeLevel.MINOR,
        LABEL_PATCH: ChangeLevel.PATCH,
        "patch": ChangeLevel.PATCH,
        "fix": ChangeLevel.PATCH,
        "bug": ChangeLevel.PATCH,
        LABEL_NONE: ChangeLevel.NONE,
        "none": ChangeLevel.NONE,
        "no change": ChangeLevel.NONE,
    }
)


@dataclass(frozen=True)
class LevelLabel:
    level: ChangeLevel


@dataclass(frozen=True)
class PrereleaseLabel:
    prefix: str = ""


@dataclass(frozen=True)
class StableLabel:
    pass


@dataclass(frozen=True)
class Unrecognized:
    pass


UNRECOGNIZED: Final = Unrecognized()

LabelMeaning = LevelLabel | PrereleaseLabel | StableLabel | Unrecognized


@dataclass(frozen=True)
class LabelTable:
    """Immutable label configuration shared by every classification.

    Build one with LabelTable.build() at startup and pass it around;
    instances are never mutated.

    Attributes:
        levels: Lowercase label name to change level
        aliases: Lowercase alias to the meaning its target resolves to
    """

    levels: Mapping[str, ChangeLevel] = field(default_factory=lambda: DEFAULT_LEVEL_LABELS)
    aliases: Mapping[str, LabelMeaning] = field(
        default_factory=lambda: MappingProxyType({})
    )

    @classmethod
    def build(cls, aliases: Mapping[str, str] | None = None) -> LabelTable:
        """Create a table from user-supplied label aliases.

        Args:
            aliases: Arbitrary label name to canonical label, for example
                {"breaking change": "semver:breaking", "beta": "semver:prerelease:beta"}

        Raises:
            ConfigValidationError: If an alias target is not a recognized label
        """
        builtin = cls()
        resolved: dict[str, LabelMeaning] = {}
        for alias, target in (aliases or {}).items():
            meaning = builtin.classify(target)
            if isinstance(meaning, Unrecognized):
                raise ConfigValidationError(
                    f"label alias {alias!r} targets unknown label {target!r}"
                )
            resolved[alias.lower()] = meaning
        return cls(aliases=MappingProxyType(resolved))

    def classify(self, label: str) -> LabelMeaning:
        """Resolve a raw label to its release meaning."""
        key = label.lower()

        level = self.levels.get(key)
        if level is not None:
            return LevelLabel(level)
        if key == LABEL_PRERELEASE:
            return PrereleaseLabel()
        if key == LABEL_STABLE:
            return StableLabel()

        aliased = self.aliases.get(key)
        if aliased is not None:
            return aliased

        if key.startswith(LABEL_PRERELEASE + ":"):
            return PrereleaseLabel(_final_segment(label))
        if key.startswith(LABEL_STABLE + ":"):
            return StableLabel()
        for alias, meaning in self.aliases.items():
            if not key.startswith(alias + ":"):
                continue
            if isinstance(meaning, PrereleaseLabel):
                return PrereleaseLabel(_final_segment(label))
            if isinstance(meaning, StableLabel):
                return meaning

        return UNRECOGNIZED


def _final_segment(label: str) -> str:
    return label.rpartition(":")[2]


DEFAULT_LABEL_TABLE: Final = LabelTable()


def classify(label: str, table: LabelTable = DEFAULT_LABEL_TABLE) -> LabelMeaning:
    """Classify a label against a label table (the built-in one by default)."""
    return table.classify(label)
