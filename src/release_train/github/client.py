"""GitHub REST API access.

GitHubClient is the narrow interface the version computation needs.
HttpxGitHubClient implements it over the REST API with httpx, following
pagination links and waiting out secondary rate limits.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Protocol

import httpx

from release_train.core.commits import RawPull
from release_train.exceptions import GitHubError

if TYPE_CHECKING:
    from collections.abc import Iterator

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://api.github.com"
MAX_PER_PAGE = 100
MAX_RATE_LIMIT_RETRIES = 3
MAX_RATE_LIMIT_WAIT = 60.0


@dataclass(frozen=True)
class CommitComparison:
    ahead_by: int
    behind_by: int
    commits: tuple[str, ...] = ()


class GitHubClient(Protocol):
    def list_merged_pulls_for_commit(self, owner: str, repo: str, sha: str) -> list[RawPull]:
        """Merged pull requests associated with a commit."""
        ...

    def compare_commits(
        self, owner: str, repo: str, base: str, head: str, max_count: int = -1
    ) -> CommitComparison:
        """Compare two refs, listing up to max_count commits (-1 for all)."""
        ...

    def get_pull_request(self, owner: str, repo: str, number: int) -> RawPull: ...

    def get_pull_request_commits(self, owner: str, repo: str, number: int) -> list[str]: ...


class HttpxGitHubClient:
    """GitHubClient backed by an httpx.Client.

    The client is safe to share between threads.

    Args:
        token: API token; anonymous access when None
        api_url: REST API root, change for GitHub Enterprise
        user_agent: User-Agent header value
        timeout: Per-request timeout in seconds
        transport: Custom httpx transport, used by tests
    """

    def __init__(
        self,
        token: str | None = None,
        api_url: str = DEFAULT_API_URL,
        user_agent: str = "release-train",
        timeout: float = 30.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        headers = {
            "Accept": "application/vnd.github+json",
            "User-Agent": user_agent,
            "X-GitHub-Api-Version": "2022-11-28",
        }
        if token:
            headers["Authorization"] = f"Bearer {token}"
        self._client = httpx.Client(
            base_url=api_url.rstrip("/"),
            headers=headers,
            timeout=timeout,
            transport=transport,
        )

    def __enter__(self) -> HttpxGitHubClient:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        self._client.close()

    # -------------------------------------------------------------------------
    # GitHubClient
    # -------------------------------------------------------------------------

    def list_merged_pulls_for_commit(self, owner: str, repo: str, sha: str) -> list[RawPull]:
        result = []
        for page in self._paginate(f"/repos/{owner}/{repo}/commits/{sha}/pulls"):
            for item in page:
                # only merged pull requests have a merge commit
                merge_sha = item.get("merge_commit_sha") or ""
                if not merge_sha:
                    continue
                result.append(_raw_pull(item, merge_sha))
        return result

    def compare_commits(
        self, owner: str, repo: str, base: str, head: str, max_count: int = -1
    ) -> CommitComparison:
        """Compare base...head.

        max_count limits how many commit SHAs are collected: -1 collects
        all of them and 0 only fetches the ahead/behind counts.
        """
        per_page = MAX_PER_PAGE
        if 0 <= max_count < MAX_PER_PAGE:
            per_page = max(max_count, 1)

        ahead_by = behind_by = 0
        shas: list[str] = []
        url = f"/repos/{owner}/{repo}/compare/{base}...{head}"
        for body in self._paginate(url, per_page=per_page):
            ahead_by = body.get("ahead_by", 0)
            behind_by = body.get("behind_by", 0)
            if max_count == 0:
                break
            for commit in body.get("commits", []):
                shas.append(commit["sha"])
                if len(shas) == max_count:
                    break
            if len(shas) == max_count:
                break
        return CommitComparison(ahead_by=ahead_by, behind_by=behind_by, commits=tuple(shas))

    def get_pull_request(self, owner: str, repo: str, number: int) -> RawPull:
        item = self._request("GET", f"/repos/{owner}/{repo}/pulls/{number}").json()
        return _raw_pull(item, item.get("merge_commit_sha") or "")

    def get_pull_request_commits(self, owner: str, repo: str, number: int) -> list[str]:
        return [
            commit["sha"]
            for page in self._paginate(f"/repos/{owner}/{repo}/pulls/{number}/commits")
            for commit in page
        ]

    # -------------------------------------------------------------------------
    # HTTP helpers
    # -------------------------------------------------------------------------

    def _paginate(self, url: str, per_page: int = MAX_PER_PAGE) -> Iterator[Any]:
        """Yield decoded response bodies, following rel="next" links."""
        params: dict[str, Any] | None = {"per_page": per_page}
        next_url: str | None = url
        while next_url:
            response = self._request("GET", next_url, params=params)
            yield response.json()
            next_url = response.links.get("next", {}).get("url")
            # the next link already carries the query string
            params = None

    def _request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        for attempt in range(MAX_RATE_LIMIT_RETRIES + 1):
            try:
                response = self._client.request(method, url, **kwargs)
            except httpx.HTTPError as e:
                raise GitHubError(f"GitHub request {method} {url} failed: {e}") from e

            wait = _rate_limit_wait(response)
            if wait is None or attempt == MAX_RATE_LIMIT_RETRIES:
                break
            logger.warning("GitHub rate limit hit, retrying in %.0fs", wait)
            time.sleep(wait)

        if response.is_error:
            raise GitHubError(
                f"GitHub request {method} {response.request.url} failed with "
                f"status {response.status_code}: {_error_message(response)}",
                status_code=response.status_code,
            )
        return response


def _raw_pull(item: dict[str, Any], merge_sha: str) -> RawPull:
    return RawPull(
        number=item["number"],
        labels=tuple(label["name"] for label in item.get("labels", [])),
        merge_commit_sha=merge_sha,
    )


def _rate_limit_wait(response: httpx.Response) -> float | None:
    """Seconds to wait before retrying a rate-limited response, or None."""
    if response.status_code not in (403, 429):
        return None
    retry_after = response.headers.get("retry-after")
    if retry_after is not None:
        try:
            return min(float(retry_after), MAX_RATE_LIMIT_WAIT)
        except ValueError:
            return None
    if response.headers.get("x-ratelimit-remaining") == "0":
        reset = response.headers.get("x-ratelimit-reset")
        if reset is None:
            return None
        try:
            return min(max(float(reset) - time.time(), 0.0), MAX_RATE_LIMIT_WAIT)
        except ValueError:
            return None
    return None


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text
    if isinstance(body, dict) and "message" in body:
        return str(body["message"])
    return response.text
