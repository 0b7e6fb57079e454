"""release-train command line interface.

Commands:
- next: Compute the next version from labeled pull requests
- prev: Find the previous release tag
- check-pr: Verify a pull request carries a change level label
- release: Compute the release of a ref and optionally tag it
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.logging import RichHandler

from release_train import __version__
from release_train.config import ReleaseTrainConfig, load_config
from release_train.core.changelevel import ChangeLevel
from release_train.exceptions import ConfigError, ConfigNotFoundError

app = typer.Typer(
    name="release-train",
    help="Compute the next semantic version from labeled pull requests",
    add_completion=False,
    no_args_is_help=True,
)

console = Console()
err_console = Console(stderr=True)


class _State:
    config_path: Path | None = None


_state = _State()


def configure_logging(verbose: bool) -> None:
    """Send package logs to stderr through rich."""
    logger = logging.getLogger("release_train")
    logger.handlers.clear()
    handler = RichHandler(console=err_console, show_path=False, markup=False)
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG if verbose else logging.WARNING)
    logger.propagate = False


def _load_config() -> ReleaseTrainConfig:
    try:
        return load_config(_state.config_path)
    except ConfigNotFoundError:
        if _state.config_path is not None:
            raise
        return ReleaseTrainConfig()


def _config_or_exit() -> ReleaseTrainConfig:
    try:
        return _load_config()
    except ConfigError as e:
        err_console.print(f"[red]Error loading config:[/] {e}")
        raise SystemExit(1) from e


def _parse_level(value: str | None) -> ChangeLevel | None:
    if value is None:
        return None
    try:
        return ChangeLevel.parse(value)
    except ValueError as e:
        raise typer.BadParameter(str(e)) from e


def version_callback(value: bool) -> None:
    if value:
        typer.echo(f"release-train {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    config: Annotated[
        Path | None,
        typer.Option("--config", "-c", help="Path to pyproject.toml", exists=True, dir_okay=False),
    ] = None,
    verbose: Annotated[
        bool, typer.Option("--verbose", "-v", help="Enable debug logging")
    ] = False,
    version: Annotated[
        bool,
        typer.Option(
            "--version", callback=version_callback, is_eager=True, help="Show version and exit"
        ),
    ] = False,
) -> None:
    """release-train: label-driven semantic versioning."""
    _state.config_path = config
    configure_logging(verbose)


@app.command("next")
def next_command(
    repo: Annotated[str | None, typer.Option(help="Repository as owner/name")] = None,
    base: Annotated[
        str | None, typer.Option(help="Previous release ref (default: latest version tag)")
    ] = None,
    head: Annotated[str, typer.Option(help="Ref being released")] = "HEAD",
    prev_version: Annotated[
        str | None, typer.Option("--prev-version", help="Previous version if it differs from base")
    ] = None,
    min_bump: Annotated[str | None, typer.Option("--min-bump", help="Minimum change level")] = None,
    max_bump: Annotated[str | None, typer.Option("--max-bump", help="Maximum change level")] = None,
    check_pr: Annotated[
        int, typer.Option("--check-pr", help="Include this unmerged pull request")
    ] = 0,
    force_prerelease: Annotated[
        bool, typer.Option("--force-prerelease", help="Always produce a pre-release")
    ] = False,
    force_stable: Annotated[
        bool, typer.Option("--force-stable", help="Always produce a stable version")
    ] = False,
    as_json: Annotated[bool, typer.Option("--json", help="Print the full result as JSON")] = False,
    repo_dir: Annotated[Path, typer.Option("--repo-dir", help="Local clone")] = Path("."),
) -> None:
    """Compute the next version."""
    from release_train.cli.commands.next import run_next

    if force_prerelease and force_stable:
        raise typer.BadParameter("--force-prerelease and --force-stable are mutually exclusive")

    run_next(
        config=_config_or_exit(),
        repo_dir=repo_dir,
        repo=repo,
        base=base,
        head=head,
        prev_version=prev_version,
        min_bump=_parse_level(min_bump),
        max_bump=_parse_level(max_bump),
        check_pr=check_pr,
        force_prerelease=force_prerelease,
        force_stable=force_stable,
        as_json=as_json,
        console=console,
        err_console=err_console,
    )


@app.command("prev")
def prev_command(
    head: Annotated[str, typer.Option(help="Ref to search from")] = "HEAD",
    prefix: Annotated[
        str | None, typer.Option(help="Tag prefix (default: tag_prefix from config)")
    ] = None,
    stable_only: Annotated[
        bool, typer.Option("--stable-only", help="Ignore pre-release tags")
    ] = False,
    repo_dir: Annotated[Path, typer.Option("--repo-dir", help="Local clone")] = Path("."),
) -> None:
    """Print the previous release tag."""
    from release_train.cli.commands.prev import run_prev

    config = _config_or_exit()
    run_prev(
        repo_dir=repo_dir,
        head=head,
        prefix=config.tag_prefix if prefix is None else prefix,
        stable_only=stable_only or config.stable_only_prev,
        console=console,
        err_console=err_console,
    )


@app.command("check-pr")
def check_pr_command(
    number: Annotated[int, typer.Argument(help="Pull request number")],
    repo: Annotated[str | None, typer.Option(help="Repository as owner/name")] = None,
) -> None:
    """Check that a pull request has a change level label."""
    from release_train.cli.commands.check_pr import run_check_pr

    run_check_pr(
        config=_config_or_exit(),
        repo=repo,
        number=number,
        console=console,
        err_console=err_console,
    )


@app.command("release")
def release_command(
    repo: Annotated[str | None, typer.Option(help="Repository as owner/name")] = None,
    ref: Annotated[str, typer.Option(help="Ref being released")] = "HEAD",
    check_pr: Annotated[
        int, typer.Option("--check-pr", help="Include this unmerged pull request; never tags")
    ] = 0,
    v0: Annotated[bool, typer.Option("--v0", help="Keep the major version at zero")] = False,
    create_tag: Annotated[
        bool, typer.Option("--create-tag", help="Tag the release and push the tag")
    ] = False,
    push_remote: Annotated[
        str | None, typer.Option("--push-remote", help="Remote to push the tag to")
    ] = None,
    release_refs: Annotated[
        list[str] | None,
        typer.Option("--release-ref", help="Ref pattern allowed to be tagged (repeatable)"),
    ] = None,
    force_prerelease: Annotated[
        bool, typer.Option("--force-prerelease", help="Always produce a pre-release")
    ] = False,
    force_stable: Annotated[
        bool, typer.Option("--force-stable", help="Always produce a stable version")
    ] = False,
    as_json: Annotated[bool, typer.Option("--json", help="Print the full result as JSON")] = False,
    repo_dir: Annotated[Path, typer.Option("--repo-dir", help="Local clone")] = Path("."),
) -> None:
    """Compute the release of a ref and optionally tag it."""
    from release_train.cli.commands.release import run_release_command

    if force_prerelease and force_stable:
        raise typer.BadParameter("--force-prerelease and --force-stable are mutually exclusive")

    run_release_command(
        config=_config_or_exit(),
        repo_dir=repo_dir,
        repo=repo,
        ref=ref,
        check_pr=check_pr,
        v0=v0,
        create_tag=create_tag,
        push_remote=push_remote,
        release_refs=release_refs or [],
        force_prerelease=force_prerelease,
        force_stable=force_stable,
        as_json=as_json,
        console=console,
        err_console=err_console,
    )
