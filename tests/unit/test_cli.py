"""Tests for the command line interface."""

from __future__ import annotations

import json
from unittest.mock import MagicMock, patch

import pytest
import semver
from typer.testing import CliRunner

from release_train import __version__
from release_train.cli import app
from release_train.core.changelevel import ChangeLevel
from release_train.core.release import ReleaseResult
from release_train.core.resolver import VersionChange
from release_train.exceptions import GitError, GitHubError, LabelError, TagExistsError

runner = CliRunner()


@pytest.fixture(autouse=True)
def isolated_cwd(tmp_path, monkeypatch: pytest.MonkeyPatch):
    """Run every command outside any project so defaults apply."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("GITHUB_TOKEN", raising=False)
    return tmp_path


def change(prev: str, nxt: str, level: ChangeLevel) -> VersionChange:
    return VersionChange(semver.Version.parse(prev), semver.Version.parse(nxt), level)


class TestVersionOption:
    def test_version(self):
        result = runner.invoke(app, ["--version"])

        assert result.exit_code == 0
        assert __version__ in result.output


@patch("release_train.cli.commands.next.HttpxGitHubClient")
@patch("release_train.cli.commands.next.get_next")
@patch("release_train.cli.commands.next.get_prev_tag")
@patch("release_train.cli.commands.next.rev_parse")
class TestNextCommand:
    """Tests for `release-train next`."""

    def test_prints_next_version(self, mock_rev_parse, mock_prev_tag, mock_get_next, mock_client):
        mock_rev_parse.return_value = "headsha"
        mock_prev_tag.return_value = "v1.2.3"
        mock_get_next.return_value = change("1.2.3", "1.3.0", ChangeLevel.MINOR)

        result = runner.invoke(app, ["next", "--repo", "octo/cat"])

        assert result.exit_code == 0, result.output
        assert "1.3.0" in result.output
        options = mock_get_next.call_args[0][0]
        assert options.repo == "octo/cat"
        assert options.base == "v1.2.3"
        assert options.head == "headsha"
        assert options.prev_version == "1.2.3"
        assert options.min_bump is ChangeLevel.NONE
        assert options.max_bump is ChangeLevel.MAJOR

    def test_untagged_repo_is_first_release(
        self, mock_rev_parse, mock_prev_tag, mock_get_next, mock_client
    ):
        """Without a previous tag there is nothing to compare against GitHub."""
        mock_rev_parse.return_value = "headsha"
        mock_prev_tag.return_value = None

        result = runner.invoke(app, ["next", "--repo", "octo/cat"])

        assert result.exit_code == 0, result.output
        assert result.output.strip() == "0.0.0"
        mock_get_next.assert_not_called()
        mock_client.assert_not_called()

    def test_untagged_repo_json(self, mock_rev_parse, mock_prev_tag, mock_get_next, mock_client):
        mock_rev_parse.return_value = "headsha"
        mock_prev_tag.return_value = None

        result = runner.invoke(app, ["next", "--repo", "octo/cat", "--json"])

        assert result.exit_code == 0, result.output
        assert json.loads(result.output) == {
            "first_release": True,
            "next_version": "0.0.0",
            "release_tag": "v0.0.0",
            "change_level": "none",
        }
        mock_get_next.assert_not_called()

    def test_untagged_repo_without_initial_tag(
        self, mock_rev_parse, mock_prev_tag, mock_get_next, mock_client, temp_pyproject
    ):
        temp_pyproject('[tool.release-train]\ninitial_tag = ""\n')
        mock_rev_parse.return_value = "headsha"
        mock_prev_tag.return_value = None

        result = runner.invoke(app, ["next", "--repo", "octo/cat"])

        assert result.exit_code == 0, result.output
        assert result.output == ""
        mock_get_next.assert_not_called()

    def test_interrupt_cancels_pending_fetches(
        self, mock_rev_parse, mock_prev_tag, mock_get_next, mock_client
    ):
        mock_rev_parse.return_value = "headsha"
        mock_prev_tag.return_value = "v1.2.3"
        mock_get_next.side_effect = KeyboardInterrupt

        result = runner.invoke(app, ["next", "--repo", "octo/cat"])

        assert result.exit_code == 130
        assert "Interrupted" in result.output
        cancel = mock_get_next.call_args[0][1]
        assert cancel.is_set()

    def test_explicit_base_skips_tag_lookup(
        self, mock_rev_parse, mock_prev_tag, mock_get_next, mock_client
    ):
        mock_rev_parse.return_value = "headsha"
        mock_get_next.return_value = change("2.0.0", "2.0.1", ChangeLevel.PATCH)

        result = runner.invoke(
            app,
            [
                "next",
                "--repo",
                "octo/cat",
                "--base",
                "abc123",
                "--prev-version",
                "2.0.0",
                "--min-bump",
                "patch",
                "--max-bump",
                "minor",
                "--check-pr",
                "42",
            ],
        )

        assert result.exit_code == 0, result.output
        mock_prev_tag.assert_not_called()
        options = mock_get_next.call_args[0][0]
        assert options.base == "abc123"
        assert options.prev_version == "2.0.0"
        assert options.min_bump is ChangeLevel.PATCH
        assert options.max_bump is ChangeLevel.MINOR
        assert options.check_pr == 42

    def test_json_output(self, mock_rev_parse, mock_prev_tag, mock_get_next, mock_client):
        mock_rev_parse.return_value = "headsha"
        mock_prev_tag.return_value = "v1.2.3"
        mock_get_next.return_value = change("1.2.3", "1.2.4", ChangeLevel.PATCH)

        result = runner.invoke(app, ["next", "--repo", "octo/cat", "--json"])

        assert result.exit_code == 0, result.output
        assert json.loads(result.output) == {
            "previous_version": "1.2.3",
            "next_version": "1.2.4",
            "change_level": "patch",
        }

    def test_nothing_to_release(self, mock_rev_parse, mock_prev_tag, mock_get_next, mock_client):
        mock_rev_parse.return_value = "headsha"
        mock_prev_tag.return_value = "v1.2.3"
        mock_get_next.return_value = change("1.2.3", "1.2.3", ChangeLevel.NONE)

        result = runner.invoke(app, ["next", "--repo", "octo/cat"])

        assert result.exit_code == 0
        assert "Nothing to release" in result.output
        assert "1.2.3" in result.output

    def test_label_error(self, mock_rev_parse, mock_prev_tag, mock_get_next, mock_client):
        mock_rev_parse.return_value = "headsha"
        mock_prev_tag.return_value = "v1.2.3"
        mock_get_next.side_effect = LabelError("commit abc has no labels")

        result = runner.invoke(app, ["next", "--repo", "octo/cat"])

        assert result.exit_code == 1
        assert "commit abc has no labels" in result.output

    def test_git_error(self, mock_rev_parse, mock_prev_tag, mock_get_next, mock_client):
        mock_rev_parse.side_effect = GitError("could not resolve 'HEAD'")

        result = runner.invoke(app, ["next", "--repo", "octo/cat"])

        assert result.exit_code == 1
        assert "could not resolve" in result.output
        mock_get_next.assert_not_called()

    def test_missing_repo(self, mock_rev_parse, mock_prev_tag, mock_get_next, mock_client):
        result = runner.invoke(app, ["next"])

        assert result.exit_code == 1
        assert "No repository given" in result.output

    def test_force_flags_exclusive(
        self, mock_rev_parse, mock_prev_tag, mock_get_next, mock_client
    ):
        result = runner.invoke(
            app, ["next", "--repo", "octo/cat", "--force-prerelease", "--force-stable"]
        )

        assert result.exit_code == 2
        mock_get_next.assert_not_called()

    def test_invalid_bump(self, mock_rev_parse, mock_prev_tag, mock_get_next, mock_client):
        result = runner.invoke(app, ["next", "--repo", "octo/cat", "--max-bump", "huge"])

        assert result.exit_code == 2
        mock_get_next.assert_not_called()

    def test_config_from_pyproject(
        self, mock_rev_parse, mock_prev_tag, mock_get_next, mock_client, temp_pyproject
    ):
        temp_pyproject(
            "[tool.release-train]\n"
            'repo = "octo/cat"\n'
            'tag_prefix = "release-"\n'
            'min_bump = "patch"\n'
            "force_prerelease = true\n"
        )
        mock_rev_parse.return_value = "headsha"
        mock_prev_tag.return_value = "release-1.0.0"
        mock_get_next.return_value = change("1.0.0", "1.0.1-0", ChangeLevel.PATCH)

        result = runner.invoke(app, ["next"])

        assert result.exit_code == 0, result.output
        assert mock_prev_tag.call_args.kwargs["tag_prefix"] == "release-"
        options = mock_get_next.call_args[0][0]
        assert options.repo == "octo/cat"
        assert options.prev_version == "1.0.0"
        assert options.min_bump is ChangeLevel.PATCH
        assert options.force_prerelease is True

    def test_invalid_config(
        self, mock_rev_parse, mock_prev_tag, mock_get_next, mock_client, temp_pyproject
    ):
        temp_pyproject('[tool.release-train]\nmax_bump = "enormous"\n')

        result = runner.invoke(app, ["next", "--repo", "octo/cat"])

        assert result.exit_code == 1
        assert "Error loading config" in result.output


@patch("release_train.cli.commands.next.HttpxGitHubClient")
class TestNextCommandWithGit:
    """`release-train next` against a real repository."""

    def test_untagged_repo(self, mock_client, git, tmp_path):
        git("commit", "-q", "--allow-empty", "-m", "initial")

        result = runner.invoke(app, ["next", "--repo", "octo/cat", "--repo-dir", str(tmp_path)])

        assert result.exit_code == 0, result.output
        assert result.output.strip() == "0.0.0"
        mock_client.assert_not_called()


@patch("release_train.cli.commands.release.HttpxGitHubClient")
@patch("release_train.cli.commands.release.run_release")
class TestReleaseCommand:
    """Tests for `release-train release`."""

    def test_options_from_flags(self, mock_run_release, mock_client):
        mock_run_release.return_value = ReleaseResult(
            previous_ref="v1.0.0",
            previous_version=semver.Version(1, 0, 0),
            release_version=semver.Version(1, 1, 0),
            release_tag="v1.1.0",
            change_level=ChangeLevel.MINOR,
            created_tag=True,
        )

        result = runner.invoke(
            app,
            [
                "release",
                "--repo",
                "octo/cat",
                "--ref",
                "main",
                "--create-tag",
                "--v0",
                "--push-remote",
                "upstream",
                "--release-ref",
                "main",
                "--release-ref",
                "release/*",
            ],
        )

        assert result.exit_code == 0, result.output
        assert "Created and pushed tag v1.1.0" in result.output
        options = mock_run_release.call_args[0][0]
        assert options.repo == "octo/cat"
        assert options.ref == "main"
        assert options.create_tag is True
        assert options.v0 is True
        assert options.push_remote == "upstream"
        assert options.release_refs == ["main", "release/*"]
        assert options.initial_tag == "v0.0.0"

    def test_config_defaults(self, mock_run_release, mock_client, temp_pyproject):
        temp_pyproject(
            "[tool.release-train]\n"
            'repo = "octo/cat"\n'
            "create_tag = true\n"
            'push_remote = "upstream"\n'
            'release_refs = ["main"]\n'
            "v0 = true\n"
        )
        mock_run_release.return_value = ReleaseResult(
            first_release=True, release_version=semver.Version(0, 0, 0), release_tag="v0.0.0"
        )

        result = runner.invoke(app, ["release"])

        assert result.exit_code == 0, result.output
        assert "First release" in result.output
        options = mock_run_release.call_args[0][0]
        assert options.create_tag is True
        assert options.v0 is True
        assert options.push_remote == "upstream"
        assert options.release_refs == ["main"]

    def test_json_output(self, mock_run_release, mock_client):
        mock_run_release.return_value = ReleaseResult(
            first_release=True, release_version=semver.Version(0, 0, 0), release_tag="v0.0.0"
        )

        result = runner.invoke(app, ["release", "--repo", "octo/cat", "--json"])

        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert data["first_release"] is True
        assert data["release_tag"] == "v0.0.0"
        assert data["release_version"] == "0.0.0"
        assert data["created_tag"] is False

    def test_nothing_to_release(self, mock_run_release, mock_client):
        version = semver.Version(1, 0, 0)
        mock_run_release.return_value = ReleaseResult(
            previous_ref="v1.0.0",
            previous_version=version,
            release_version=version,
            release_tag="v1.0.0",
        )

        result = runner.invoke(app, ["release", "--repo", "octo/cat", "--create-tag"])

        assert result.exit_code == 0, result.output
        assert "Nothing to do" in result.output

    def test_tag_exists(self, mock_run_release, mock_client):
        mock_run_release.side_effect = TagExistsError(
            "tag 'v1.1.0' already exists on remote", "v1.1.0"
        )

        result = runner.invoke(app, ["release", "--repo", "octo/cat", "--create-tag"])

        assert result.exit_code == 1
        assert "already exists on remote" in result.output

    def test_interrupt_cancels_pending_fetches(self, mock_run_release, mock_client):
        mock_run_release.side_effect = KeyboardInterrupt

        result = runner.invoke(app, ["release", "--repo", "octo/cat"])

        assert result.exit_code == 130
        assert mock_run_release.call_args[0][1].is_set()

    def test_missing_repo(self, mock_run_release, mock_client):
        result = runner.invoke(app, ["release"])

        assert result.exit_code == 1
        assert "No repository given" in result.output
        mock_run_release.assert_not_called()

    def test_force_flags_exclusive(self, mock_run_release, mock_client):
        result = runner.invoke(
            app, ["release", "--repo", "octo/cat", "--force-prerelease", "--force-stable"]
        )

        assert result.exit_code == 2
        mock_run_release.assert_not_called()


@patch("release_train.cli.commands.prev.get_prev_tag")
class TestPrevCommand:
    """Tests for `release-train prev`."""

    def test_prints_tag(self, mock_prev_tag):
        mock_prev_tag.return_value = "v1.2.3"

        result = runner.invoke(app, ["prev"])

        assert result.exit_code == 0
        assert result.output.strip() == "v1.2.3"
        assert mock_prev_tag.call_args.kwargs == {
            "head": "HEAD",
            "tag_prefix": "v",
            "stable_only": False,
        }

    def test_options(self, mock_prev_tag):
        mock_prev_tag.return_value = "foo1.0.0"

        result = runner.invoke(app, ["prev", "--prefix", "foo", "--stable-only", "--head", "main"])

        assert result.exit_code == 0
        assert mock_prev_tag.call_args.kwargs == {
            "head": "main",
            "tag_prefix": "foo",
            "stable_only": True,
        }

    def test_no_tag(self, mock_prev_tag):
        mock_prev_tag.return_value = None

        result = runner.invoke(app, ["prev"])

        assert result.exit_code == 0
        assert result.output == ""

    def test_git_error(self, mock_prev_tag):
        mock_prev_tag.side_effect = GitError("git not found")

        result = runner.invoke(app, ["prev"])

        assert result.exit_code == 1
        assert "git not found" in result.output


@patch("release_train.cli.commands.check_pr.HttpxGitHubClient")
class TestCheckPrCommand:
    """Tests for `release-train check-pr`."""

    def _client(self, mock_client: MagicMock, labels: tuple[str, ...]) -> MagicMock:
        from release_train.core.commits import RawPull

        client = mock_client.return_value.__enter__.return_value
        client.get_pull_request.return_value = RawPull(number=7, labels=labels)
        return client

    def test_labeled(self, mock_client):
        client = self._client(mock_client, ("semver:minor",))

        result = runner.invoke(app, ["check-pr", "7", "--repo", "octo/cat"])

        assert result.exit_code == 0, result.output
        assert "#7 is labeled" in result.output
        client.get_pull_request.assert_called_once_with("octo", "cat", 7)

    def test_missing_label(self, mock_client):
        self._client(mock_client, ("documentation",))

        result = runner.invoke(app, ["check-pr", "7", "--repo", "octo/cat"])

        assert result.exit_code == 1
        assert "missing a label" in result.output

    def test_api_error(self, mock_client):
        client = self._client(mock_client, ())
        client.get_pull_request.side_effect = GitHubError("Not Found", status_code=404)

        result = runner.invoke(app, ["check-pr", "7", "--repo", "octo/cat"])

        assert result.exit_code == 1
        assert "Not Found" in result.output

    def test_invalid_repo(self, mock_client):
        result = runner.invoke(app, ["check-pr", "7", "--repo", "octocat"])

        assert result.exit_code == 1
        assert "owner/name" in result.output
