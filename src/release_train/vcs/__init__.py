"""Git access for release-train."""

from __future__ import annotations

from release_train.vcs.git import (
    create_tag,
    get_prev_tag,
    is_allowed_ref,
    is_shallow_repository,
    local_tag_exists,
    parse_git_tag_line,
    push_ref,
    remote_tag_exists,
    rev_parse,
)

__all__ = [
    "create_tag",
    "get_prev_tag",
    "is_allowed_ref",
    "is_shallow_repository",
    "local_tag_exists",
    "parse_git_tag_line",
    "push_ref",
    "remote_tag_exists",
    "rev_parse",
]
