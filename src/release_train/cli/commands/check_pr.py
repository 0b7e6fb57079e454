"""Implementation of the 'check-pr' command."""

from __future__ import annotations

from typing import TYPE_CHECKING

from release_train.core.labelcheck import check_pull_labels
from release_train.core.next import split_repo
from release_train.exceptions import ReleaseTrainError
from release_train.github import HttpxGitHubClient

if TYPE_CHECKING:
    from rich.console import Console

    from release_train.config.models import ReleaseTrainConfig


def run_check_pr(
    config: ReleaseTrainConfig,
    repo: str | None,
    number: int,
    console: Console,
    err_console: Console,
) -> None:
    """Fail unless pull request `number` has a change level label."""
    repo = repo or config.repo
    if not repo:
        err_console.print("[red]Error:[/] No repository given. Use [cyan]--repo owner/name[/].")
        raise SystemExit(1)

    try:
        owner, name = split_repo(repo)
        with HttpxGitHubClient(
            token=config.github.token,
            api_url=config.github.api_url,
            user_agent=config.github.user_agent,
            timeout=config.github.timeout,
        ) as client:
            check_pull_labels(client, owner, name, number, config.label_table())
    except ReleaseTrainError as e:
        err_console.print(f"[red]Error:[/] {e}")
        raise SystemExit(1) from e

    console.print(f"[green]✓[/] Pull request #{number} is labeled")
