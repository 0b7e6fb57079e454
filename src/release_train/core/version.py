"""Semantic version parsing and pre-release increments.

Versions are semver.Version objects throughout. Parsing is lenient for
user input ("v1.2" is 1.2.0) and strict for git tags.
"""

from __future__ import annotations

import semver

from release_train.core.changelevel import ChangeLevel
from release_train.exceptions import InvalidInputError, VersionError


def parse_version(version_str: str) -> semver.Version:
    """Parse a user-supplied version string.

    A leading "v" is ignored and missing minor/patch components default
    to zero:
    - "v1.2.3" → 1.2.3
    - "1.2" → 1.2.0
    - "1.2.3-rc.1" → 1.2.3-rc.1

    Raises:
        InvalidInputError: If the string is not a semantic version
    """
    text = version_str.strip()
    if text[:1] in ("v", "V"):
        text = text[1:]
    try:
        return semver.Version.parse(text, optional_minor_and_patch=True)
    except (ValueError, TypeError) as e:
        raise InvalidInputError(f"invalid version {version_str!r}: {e}") from e


def parse_tag_version(text: str) -> semver.Version | None:
    """Parse a complete MAJOR.MINOR.PATCH version, or return None."""
    try:
        return semver.Version.parse(text)
    except (ValueError, TypeError):
        return None


def is_prerelease(version: semver.Version) -> bool:
    return bool(version.prerelease)


def stabilize(version: semver.Version) -> semver.Version:
    """Drop the pre-release suffix; a stable version is returned unchanged."""
    if not version.prerelease:
        return version
    return version.replace(prerelease=None)


def increment_prerelease(
    version: semver.Version,
    level: ChangeLevel,
    prefix: str = "",
) -> semver.Version:
    """Compute the next pre-release version.

    From a stable version the base is bumped by level and a counter
    starting at zero is appended ("1.2.3" + patch → "1.2.4-0", or
    "1.2.4-alpha.0" with prefix "alpha").

    From a pre-release the trailing counter is incremented when the
    requested prefix matches or is empty ("1.2.3-alpha.33" → "1.2.3-alpha.34").
    When the level needs components to the right of it reset (a minor
    bump of 1.0.1-0), the base is bumped first and the counter restarts.
    A different prefix restarts the counter under that prefix; the caller
    must check the result is greater than the input, since a prefix that
    sorts lower ("alpha" after "beta") yields a lower version.

    Raises:
        VersionError: If level is NONE
    """
    if level is ChangeLevel.NONE:
        raise VersionError(f"invalid change level for pre-release: {level}")

    if not version.prerelease:
        return level.increment(version).replace(prerelease=f"{prefix}.0" if prefix else "0")

    needs_increment = (level >= ChangeLevel.MINOR and version.patch > 0) or (
        level is ChangeLevel.MAJOR and version.minor > 0
    )
    base = version
    if needs_increment:
        base = level.increment(version)

    parts = version.prerelease.split(".")
    if not parts[-1].isdigit():
        # no counter to increment, start one
        return base.replace(prerelease=f"{prefix or version.prerelease}.0")

    counter = -1 if needs_increment else int(parts[-1])
    existing = ".".join(parts[:-1])
    if not prefix and not existing:
        return base.replace(prerelease=str(counter + 1))
    if not prefix or prefix == existing:
        return base.replace(prerelease=f"{existing}.{counter + 1}")
    return base.replace(prerelease=f"{prefix}.0")
