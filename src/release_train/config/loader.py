"""Configuration loading from pyproject.toml."""

from __future__ import annotations

import tomllib
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from release_train.config.models import ReleaseTrainConfig
from release_train.exceptions import ConfigNotFoundError, ConfigValidationError

TOOL_KEY = "release-train"


def find_pyproject_toml(start: Path | None = None) -> Path:
    """Find the nearest pyproject.toml, searching upwards from start.

    Args:
        start: Directory to start from; defaults to the working directory

    Raises:
        ConfigNotFoundError: If no pyproject.toml exists in start or its parents
    """
    current = (start or Path.cwd()).resolve()
    for directory in (current, *current.parents):
        candidate = directory / "pyproject.toml"
        if candidate.is_file():
            return candidate
    raise ConfigNotFoundError(f"No pyproject.toml found in {current} or its parents")


def load_pyproject_toml(path: Path) -> dict[str, Any]:
    """Read and parse a pyproject.toml file.

    Raises:
        ConfigNotFoundError: If the file does not exist
        ConfigValidationError: If the file is not valid TOML
    """
    try:
        with path.open("rb") as f:
            return tomllib.load(f)
    except FileNotFoundError as e:
        raise ConfigNotFoundError(f"{path} does not exist") from e
    except tomllib.TOMLDecodeError as e:
        raise ConfigValidationError(f"Invalid TOML in {path}: {e}") from e


def extract_release_train_config(pyproject: dict[str, Any]) -> dict[str, Any]:
    """Return the [tool.release-train] table, or an empty dict."""
    return pyproject.get("tool", {}).get(TOOL_KEY, {})


def load_config(path: Path | None = None) -> ReleaseTrainConfig:
    """Load configuration for a project.

    Args:
        path: A pyproject.toml file, or a directory to search upwards from

    Returns:
        Validated configuration; defaults when the table is absent

    Raises:
        ConfigNotFoundError: If no pyproject.toml is found
        ConfigValidationError: If the configuration is invalid
    """
    if path is not None and path.is_file():
        pyproject_path = path
    else:
        pyproject_path = find_pyproject_toml(path)

    data = extract_release_train_config(load_pyproject_toml(pyproject_path))
    try:
        return ReleaseTrainConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigValidationError(f"Invalid configuration in {pyproject_path}:\n{e}") from e
