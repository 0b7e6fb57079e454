"""Next version computation against a GitHub repository.

Enumerates the commits between two refs, fetches the merged pull requests
of each commit concurrently, annotates them and hands the result to the
resolver.
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import TYPE_CHECKING

from release_train.core.changelevel import ChangeLevel
from release_train.core.commits import Commit, RawCommit, annotate_commits
from release_train.core.labels import DEFAULT_LABEL_TABLE, LabelTable
from release_train.core.pulls import new_pull
from release_train.core.resolver import VersionChange, resolve
from release_train.core.version import parse_version
from release_train.exceptions import AggregateError, InvalidInputError, ReleaseTrainError

if TYPE_CHECKING:
    from collections.abc import Sequence

    from release_train.github.client import GitHubClient

logger = logging.getLogger(__name__)

DEFAULT_MAX_WORKERS = 8


@dataclass
class NextOptions:
    """Inputs for get_next().

    Attributes:
        client: GitHub API client
        repo: Repository as "owner/name"
        base: Ref of the previous release
        head: Ref being released
        prev_version: Previous version; defaults to base
        min_bump: Lowest change level to apply when anything changed
        max_bump: Highest change level to apply
        check_pr: Pull request number to include as if merged (0 for none)
        labels: Label table to classify against
        force_prerelease: Always produce a pre-release
        force_stable: Always produce a stable version
        max_workers: Concurrent GitHub requests
    """

    client: GitHubClient
    repo: str
    base: str
    head: str
    prev_version: str = ""
    min_bump: ChangeLevel = ChangeLevel.NONE
    max_bump: ChangeLevel = ChangeLevel.MAJOR
    check_pr: int = 0
    labels: LabelTable = DEFAULT_LABEL_TABLE
    force_prerelease: bool = False
    force_stable: bool = False
    max_workers: int = DEFAULT_MAX_WORKERS


def split_repo(repo: str) -> tuple[str, str]:
    """Split "owner/name" into its parts.

    Raises:
        InvalidInputError: If repo is not of the form owner/name
    """
    owner, sep, name = repo.partition("/")
    if not sep or not owner or not name or "/" in name:
        raise InvalidInputError("repo must be in the form owner/name")
    return owner, name


class _AncestorCache:
    """Memoizes whether a commit is reachable from head.

    Each SHA has its own lock, so different SHAs are checked concurrently
    while the same SHA is only ever looked up once.
    """

    def __init__(self, client: GitHubClient, owner: str, repo: str, head: str) -> None:
        self._client = client
        self._owner = owner
        self._repo = repo
        self._head = head
        self._known: dict[str, bool] = {}
        self._sha_locks: dict[str, threading.Lock] = {}
        self._lock = threading.Lock()

    def __contains__(self, sha: str) -> bool:
        with self._lock:
            if sha in self._known:
                return self._known[sha]
            sha_lock = self._sha_locks.setdefault(sha, threading.Lock())

        with sha_lock:
            with self._lock:
                if sha in self._known:
                    return self._known[sha]
            comparison = self._client.compare_commits(self._owner, self._repo, sha, self._head, 0)
            is_ancestor = comparison.behind_by == 0
            with self._lock:
                self._known[sha] = is_ancestor
            return is_ancestor


def fetch_commits(
    client: GitHubClient,
    owner: str,
    repo: str,
    base: str,
    head: str,
    *,
    max_workers: int = DEFAULT_MAX_WORKERS,
    cancel: threading.Event | None = None,
) -> list[RawCommit]:
    """Fetch the commits in base..head with their merged pull requests.

    One task per commit runs on a thread pool. Results are collected in
    commit order whatever order the tasks finish in. Pull requests whose
    merge commit is not an ancestor of head are dropped.

    Once cancel is set, every task checks it before and after its request
    and fails with a cancellation error, which is aggregated like any other
    failure. An unexpected exception, KeyboardInterrupt included, sets
    cancel, drops the queued tasks and is re-raised.

    Args:
        client: GitHub API client
        owner: Repository owner
        repo: Repository name
        base: Base ref
        head: Head ref
        max_workers: Thread pool size
        cancel: Cancels the remaining work when set

    Raises:
        ReleaseTrainError: If exactly one commit could not be fetched
        AggregateError: If several commits could not be fetched
    """
    if cancel is None:
        cancel = threading.Event()
    shas = client.compare_commits(owner, repo, base, head, -1).commits
    logger.debug("found %d commits between %s and %s", len(shas), base, head)
    ancestors = _AncestorCache(client, owner, repo, head)

    def check_cancelled(sha: str) -> None:
        if cancel.is_set():
            raise ReleaseTrainError(f"fetching pull requests for commit {sha} was cancelled")

    def fetch(sha: str) -> RawCommit:
        check_cancelled(sha)
        pulls = client.list_merged_pulls_for_commit(owner, repo, sha)
        check_cancelled(sha)
        return RawCommit(sha=sha, pulls=tuple(p for p in pulls if p.merge_commit_sha in ancestors))

    results: list[RawCommit] = []
    errors: list[ReleaseTrainError] = []
    pool = ThreadPoolExecutor(max_workers=max(max_workers, 1))
    try:
        futures = [pool.submit(fetch, sha) for sha in shas]
        for future in futures:
            try:
                results.append(future.result())
            except ReleaseTrainError as e:
                errors.append(e)
    except BaseException:
        cancel.set()
        pool.shutdown(wait=True, cancel_futures=True)
        raise
    pool.shutdown(wait=True)

    if len(errors) == 1:
        raise errors[0]
    if errors:
        raise AggregateError(errors)
    return results


def include_pull(
    client: GitHubClient,
    owner: str,
    repo: str,
    number: int,
    commits: Sequence[Commit],
    table: LabelTable = DEFAULT_LABEL_TABLE,
) -> list[Commit]:
    """Attach an unmerged pull request to the commits it contains."""
    raw = client.get_pull_request(owner, repo, number)
    pull = new_pull(number, raw.labels, table)
    pull_shas = set(client.get_pull_request_commits(owner, repo, number))
    return [
        Commit(sha=c.sha, pulls=(*c.pulls, pull)) if c.sha in pull_shas else c
        for c in commits
    ]


def get_next(options: NextOptions, cancel: threading.Event | None = None) -> VersionChange:
    """Compute the next version for a repository.

    Raises:
        InvalidInputError: If the bump range, previous version or repo is invalid
        LabelError: If pull request labels are inconsistent
        VersionError: If no valid next version exists
        GitHubError: If the API fails
    """
    logger.debug(
        "computing next version for %s (%s..%s, check_pr=%d)",
        options.repo,
        options.base,
        options.head,
        options.check_pr,
    )
    if options.min_bump > options.max_bump:
        raise InvalidInputError("min bump must be less than or equal to max bump")
    if options.force_prerelease and options.force_stable:
        raise InvalidInputError("cannot force both a pre-release and a stable release")
    prev_version = options.prev_version or options.base
    try:
        previous = parse_version(prev_version)
    except InvalidInputError as e:
        raise InvalidInputError(f"invalid previous version {prev_version!r}") from e
    owner, repo = split_repo(options.repo)

    raw_commits = fetch_commits(
        options.client,
        owner,
        repo,
        options.base,
        options.head,
        max_workers=options.max_workers,
        cancel=cancel,
    )
    commits = annotate_commits(raw_commits, options.labels)
    if options.check_pr:
        commits = include_pull(options.client, owner, repo, options.check_pr, commits, options.labels)

    return resolve(
        previous,
        options.min_bump,
        options.max_bump,
        commits,
        force_prerelease=options.force_prerelease,
        force_stable=options.force_stable,
    )
