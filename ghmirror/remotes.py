"""
Two-remote topology for mirrors.

`origin` is the personal mirror and takes pushes. `upstream` is the source and
must never take one: its push URL is pinned to a sentinel that cannot resolve.
"""

from pathlib import Path

from .git_utils import VersionControl
from .models import NO_PUSH_URL, ORIGIN_REMOTE, UPSTREAM_REMOTE, MirrorEntry
from .rich_utils import print_debug


def _ensure_remote(git: VersionControl, repo_path: Path, remote: str, url: str) -> None:
    """Add `remote` with `url`, or repoint it if it already exists."""
    if not git.has_remote(repo_path, remote):
        print_debug(f"Adding remote {remote} -> {url}")
        git.add_remote(repo_path, remote, url)
    elif git.get_remote_url(repo_path, remote) != url:
        print_debug(f"Setting remote {remote} -> {url}")
        git.set_remote_url(repo_path, remote, url)


def block_upstream_push(git: VersionControl, repo_path: Path) -> None:
    """Pin the upstream push URL to the sentinel."""
    if git.get_push_url(repo_path, UPSTREAM_REMOTE) != NO_PUSH_URL:
        print_debug(f"Disabling pushes to {UPSTREAM_REMOTE}")
        git.set_push_url(repo_path, UPSTREAM_REMOTE, NO_PUSH_URL)


def is_push_blocked(git: VersionControl, repo_path: Path) -> bool:
    """Check that pushes to upstream would go nowhere."""
    return git.get_push_url(repo_path, UPSTREAM_REMOTE) == NO_PUSH_URL


def configure_remotes(git: VersionControl, repo_path: Path, origin_url: str, upstream_url: str) -> None:
    """
    Ensure `origin` and `upstream` point where they should, with upstream push disabled.

    Safe to call on an already-configured repository. Git failures propagate
    as GitError.
    """
    _ensure_remote(git, repo_path, ORIGIN_REMOTE, origin_url)
    _ensure_remote(git, repo_path, UPSTREAM_REMOTE, upstream_url)
    block_upstream_push(git, repo_path)


def read_entry(git: VersionControl, name: str, repo_path: Path) -> MirrorEntry:
    """Build a MirrorEntry from a repository's remote configuration."""
    return MirrorEntry(
        name=name,
        local_path=repo_path,
        origin_url=git.get_remote_url(repo_path, ORIGIN_REMOTE),
        upstream_url=git.get_remote_url(repo_path, UPSTREAM_REMOTE),
    )
