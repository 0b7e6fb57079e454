"""Implementation of the 'next' command.

The next command computes the version the next release should get from
the labels on pull requests merged since the previous release.
"""

from __future__ import annotations

import json
import threading
from typing import TYPE_CHECKING

from rich.panel import Panel

from release_train.core.changelevel import ChangeLevel
from release_train.core.next import NextOptions, get_next
from release_train.core.release import first_release
from release_train.exceptions import ReleaseTrainError
from release_train.github import HttpxGitHubClient
from release_train.vcs import get_prev_tag, rev_parse

if TYPE_CHECKING:
    from pathlib import Path

    from rich.console import Console

    from release_train.config.models import ReleaseTrainConfig
    from release_train.core.release import ReleaseResult


def run_next(
    config: ReleaseTrainConfig,
    repo_dir: Path,
    repo: str | None,
    base: str | None,
    head: str,
    prev_version: str | None,
    min_bump: ChangeLevel | None,
    max_bump: ChangeLevel | None,
    check_pr: int,
    force_prerelease: bool,
    force_stable: bool,
    as_json: bool,
    console: Console,
    err_console: Console,
) -> None:
    """Run the next command.

    Args:
        config: Loaded configuration; command line values take precedence
        repo_dir: Local clone used to find the previous tag and resolve head
        repo: Repository as owner/name
        base: Previous release ref; located from tags when omitted. When no
            tag exists either, the initial tag is printed as a first release
            without contacting GitHub
        head: Ref being released
        prev_version: Previous version when it differs from base
        min_bump: Lowest change level to apply
        max_bump: Highest change level to apply
        check_pr: Pull request to include as if merged
        force_prerelease: Always produce a pre-release
        force_stable: Always produce a stable version
        as_json: Print the full result as JSON
        console: Console for standard output
        err_console: Console for error output
    """
    repo = repo or config.repo
    if not repo:
        err_console.print("[red]Error:[/] No repository given. Use [cyan]--repo owner/name[/].")
        raise SystemExit(1)

    try:
        head_sha = rev_parse(head, repo_dir)
        if base is None:
            base = get_prev_tag(
                repo_dir,
                head=head_sha,
                tag_prefix=config.tag_prefix,
                stable_only=config.stable_only_prev,
            )
            if base is None:
                _print_first_release(
                    first_release(config.initial_tag, config.tag_prefix), as_json, console
                )
                return
            if prev_version is None:
                prev_version = base.removeprefix(config.tag_prefix)
    except ReleaseTrainError as e:
        err_console.print(f"[red]Error:[/] {e}")
        raise SystemExit(1) from e

    cancel = threading.Event()
    with HttpxGitHubClient(
        token=config.github.token,
        api_url=config.github.api_url,
        user_agent=config.github.user_agent,
        timeout=config.github.timeout,
    ) as client:
        options = NextOptions(
            client=client,
            repo=repo,
            base=base,
            head=head_sha,
            prev_version=prev_version or "",
            min_bump=min_bump if min_bump is not None else config.min_bump,
            max_bump=max_bump if max_bump is not None else config.max_bump,
            check_pr=check_pr,
            labels=config.label_table(),
            force_prerelease=force_prerelease or config.force_prerelease,
            force_stable=force_stable or config.force_stable,
            max_workers=config.github.max_workers,
        )
        try:
            result = get_next(options, cancel)
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

    if result.change_level is ChangeLevel.NONE and result.next_version == result.previous_version:
        err_console.print(
            Panel(
                f"No releasable changes since [cyan]{base}[/].",
                title="[yellow]Nothing to release[/]",
                border_style="yellow",
            )
        )
    console.print(str(result.next_version), highlight=False)


def _print_first_release(result: ReleaseResult, as_json: bool, console: Console) -> None:
    """Print the result for a repository without release tags."""
    if as_json:
        data = {
            "first_release": True,
            "next_version": "" if result.release_version is None else str(result.release_version),
            "release_tag": result.release_tag,
            "change_level": str(result.change_level),
        }
        console.print_json(json.dumps(data))
    elif result.release_version is not None:
        console.print(str(result.release_version), highlight=False)
