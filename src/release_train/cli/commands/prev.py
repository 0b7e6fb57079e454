"""Implementation of the 'prev' command."""

from __future__ import annotations

from typing import TYPE_CHECKING

from release_train.exceptions import ReleaseTrainError
from release_train.vcs import get_prev_tag

if TYPE_CHECKING:
    from pathlib import Path

    from rich.console import Console


def run_prev(
    repo_dir: Path,
    head: str,
    prefix: str,
    stable_only: bool,
    console: Console,
    err_console: Console,
) -> None:
    """Print the previous release tag reachable from head.

    Prints nothing when no matching tag exists.
    """
    try:
        tag = get_prev_tag(repo_dir, head=head, tag_prefix=prefix, stable_only=stable_only)
    except ReleaseTrainError as e:
        err_console.print(f"[red]Error:[/] {e}")
        raise SystemExit(1) from e
    if tag is not None:
        console.print(tag, highlight=False)
