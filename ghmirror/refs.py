"""
Ref housekeeping for mirrors: sanitizing before a push and resolving upstream's HEAD.
"""

from pathlib import Path

from .git_utils import GitError, VersionControl
from .models import DEFAULT_FALLBACK_BRANCH, UPSTREAM_REMOTE
from .rich_utils import print_debug, print_warning

# Pull/merge request refs are read-only on the source host and get rejected by
# the destination on a mirror push.
RESERVED_REF_PREFIXES = ("refs/pull/", "refs/merge-requests/")

HEADS_PREFIX = "refs/heads/"


def is_reserved_ref(ref: str) -> bool:
    return ref.startswith(RESERVED_REF_PREFIXES)


def sanitize_refs(git: VersionControl, repo_path: Path) -> list[str]:
    """
    Delete every pull/merge request ref before a mirror push.

    Best effort: a ref that cannot be deleted (already gone, packed, locked)
    is skipped, and a failure to list refs leaves the repository untouched.

    Returns:
        The refs that were deleted
    """
    try:
        refs = git.list_refs(repo_path)
    except GitError as e:
        print_debug(f"Could not list refs, skipping cleanup: {e}")
        return []

    removed: list[str] = []
    for ref in refs:
        if not is_reserved_ref(ref):
            continue
        try:
            git.delete_ref(repo_path, ref)
            removed.append(ref)
        except GitError as e:
            print_debug(f"Could not delete {ref}: {e}")

    if removed:
        print_debug(f"Removed {len(removed)} pull request ref(s)")
    return removed


def resolve_default_branch(
    git: VersionControl,
    repo_path: Path,
    remote: str = UPSTREAM_REMOTE,
    fallback: str = DEFAULT_FALLBACK_BRANCH,
) -> str:
    """
    Find the branch `remote`'s HEAD points to.

    Falls back to `fallback` when the remote can't be queried or advertises no
    branch. A wrong guess is recoverable: the next sync resolves again.
    """
    target = git.read_symbolic_ref(repo_path, remote)
    if target and target.startswith(HEADS_PREFIX) and len(target) > len(HEADS_PREFIX):
        return target[len(HEADS_PREFIX):]

    print_warning(f"Could not determine default branch of {remote}, falling back to '{fallback}'")
    return fallback
