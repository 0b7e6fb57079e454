"""Implementation of the 'release' command.

The release command computes the release of a ref from the tags in a
local clone and, with --create-tag, tags it and pushes the tag.
"""

from __future__ import annotations

import json
import threading
from typing import TYPE_CHECKING

from rich.panel import Panel

from release_train.core.release import ReleaseOptions, run_release
from release_train.exceptions import ReleaseTrainError
from release_train.github import HttpxGitHubClient

if TYPE_CHECKING:
    from pathlib import Path

    from rich.console import Console

    from release_train.config.models import ReleaseTrainConfig
    from release_train.core.release import ReleaseResult


def run_release_command(
    config: ReleaseTrainConfig,
    repo_dir: Path,
    repo: str | None,
    ref: str,
    check_pr: int,
    v0: bool,
    create_tag: bool,
    push_remote: str | None,
    release_refs: list[str],
    force_prerelease: bool,
    force_stable: bool,
    as_json: bool,
    console: Console,
    err_console: Console,
) -> None:
    """Run the release command.

    Command line values take precedence over config; flags are combined
    with their config counterparts.
    """
    repo = repo or config.repo
    if not repo:
        err_console.print("[red]Error:[/] No repository given. Use [cyan]--repo owner/name[/].")
        raise SystemExit(1)

    cancel = threading.Event()
    with HttpxGitHubClient(
        token=config.github.token,
        api_url=config.github.api_url,
        user_agent=config.github.user_agent,
        timeout=config.github.timeout,
    ) as client:
        options = ReleaseOptions(
            client=client,
            repo=repo,
            repo_dir=repo_dir,
            ref=ref,
            tag_prefix=config.tag_prefix,
            initial_tag=config.initial_tag,
            v0=v0 or config.v0,
            min_bump=config.min_bump,
            max_bump=config.max_bump,
            check_pr=check_pr,
            labels=config.label_table(),
            force_prerelease=force_prerelease or config.force_prerelease,
            force_stable=force_stable or config.force_stable,
            create_tag=create_tag or config.create_tag,
            push_remote=push_remote or config.push_remote,
            release_refs=release_refs or config.release_refs,
            max_workers=config.github.max_workers,
        )
        try:
            result = run_release(options, cancel)
        except KeyboardInterrupt:
            cancel.set()
            err_console.print("[yellow]Interrupted[/]")
            raise SystemExit(130) from None
        except ReleaseTrainError as e:
            err_console.print(f"[red]Error:[/] {e}")
            raise SystemExit(1) from e

    if as_json:
        console.print_json(json.dumps(result.to_dict()))
        return
    _print_summary(result, console)


def _print_summary(result: ReleaseResult, console: Console) -> None:
    if not result.has_changes:
        console.print(
            f"[yellow]No releasable changes since [cyan]{result.previous_ref}[/]. Nothing to do.[/]"
        )
        return
    if result.release_version is None:
        console.print("[yellow]First release without an initial tag. Nothing to do.[/]")
        return

    if result.first_release:
        console.print(f"First release! Releasing [green]{result.release_tag}[/]")
    else:
        console.print(
            f"Releasing [cyan]{result.previous_ref}[/] -> [green]{result.release_tag}[/] "
            f"({result.change_level})"
        )

    if not result.created_tag:
        console.print("[dim]Run with [cyan]--create-tag[/] on a release ref to tag it.[/]")
        return
    console.print(
        Panel(
            f"[green]Created and pushed tag {result.release_tag}![/]",
            title="[green]Release Complete[/]",
            border_style="green",
        )
    )
