"""
Tests for the origin/upstream remote topology.
"""

from pathlib import Path

import pytest

from ghmirror.git_utils import GitError
from ghmirror.models import NO_PUSH_URL
from ghmirror.remotes import block_upstream_push, configure_remotes, is_push_blocked, read_entry

ORIGIN = "https://github.com/me/foo.git"
UPSTREAM = "https://github.com/alice/foo.git"


@pytest.fixture
def repo_path(tmp_path: Path) -> Path:
    return tmp_path / "foo"


def test_configure_fresh_mirror_clone(fake_git, repo_path: Path) -> None:
    """A fresh mirror clone has origin pointing at the source."""
    repo = fake_git.add_repo(repo_path, origin_url=UPSTREAM)

    configure_remotes(fake_git, repo_path, ORIGIN, UPSTREAM)

    assert repo.remotes == {
        "origin": {"url": ORIGIN},
        "upstream": {"url": UPSTREAM, "pushurl": NO_PUSH_URL},
    }


def test_configure_is_idempotent(fake_git, repo_path: Path) -> None:
    fake_git.add_repo(repo_path, origin_url=UPSTREAM)
    configure_remotes(fake_git, repo_path, ORIGIN, UPSTREAM)
    fake_git.calls.clear()

    configure_remotes(fake_git, repo_path, ORIGIN, UPSTREAM)

    assert fake_git.calls == []


def test_configure_repoints_stale_upstream(fake_git, repo_path: Path) -> None:
    repo = fake_git.add_repo(repo_path, origin_url=ORIGIN, upstream_url="https://github.com/old/foo.git")

    configure_remotes(fake_git, repo_path, ORIGIN, UPSTREAM)

    assert repo.remotes["upstream"]["url"] == UPSTREAM
    assert fake_git.calls_named("add_remote") == []
    assert fake_git.calls_named("set_remote_url") == [("set_remote_url", repo_path, "upstream", UPSTREAM)]


def test_configure_adds_missing_origin(fake_git, repo_path: Path) -> None:
    repo = fake_git.add_repo(repo_path, origin_url=None, upstream_url=UPSTREAM)

    configure_remotes(fake_git, repo_path, ORIGIN, UPSTREAM)

    assert repo.remotes["origin"] == {"url": ORIGIN}


def test_configure_propagates_git_errors(fake_git, tmp_path: Path) -> None:
    with pytest.raises(GitError):
        configure_remotes(fake_git, tmp_path / "missing", ORIGIN, UPSTREAM)


def test_block_upstream_push_only_writes_when_needed(fake_git, repo_path: Path) -> None:
    fake_git.add_repo(repo_path, upstream_url=UPSTREAM)
    assert is_push_blocked(fake_git, repo_path) is False

    block_upstream_push(fake_git, repo_path)
    block_upstream_push(fake_git, repo_path)

    assert is_push_blocked(fake_git, repo_path) is True
    assert len(fake_git.calls_named("set_push_url")) == 1


def test_read_entry(fake_git, repo_path: Path) -> None:
    fake_git.add_repo(repo_path, origin_url=ORIGIN, upstream_url=UPSTREAM)

    entry = read_entry(fake_git, "foo", repo_path)

    assert entry.name == "foo"
    assert entry.local_path == repo_path
    assert entry.origin_url == ORIGIN
    assert entry.upstream_url == UPSTREAM
