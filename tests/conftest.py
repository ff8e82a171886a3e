"""
Shared fixtures: in-memory git and hosting doubles.

"Mock the API. Trust nothing. Test everything." — schema.cx
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import pytest

from ghmirror.git_utils import GitError, VersionControl
from ghmirror.github_api import GitHubAPIError, HostingAPI
from ghmirror.models import Config
from ghmirror.rich_utils import set_verbose


@dataclass
class FakeRepo:
    """State of one fake repository."""

    commits: list[dict[str, bytes]] = field(default_factory=list)
    refs: list[str] = field(default_factory=list)
    remotes: dict[str, dict[str, str]] = field(default_factory=dict)
    upstream_head: str | None = "refs/heads/main"
    head_target: str | None = None
    bare: bool = True

    @property
    def files(self) -> dict[str, bytes]:
        return dict(self.commits[-1]) if self.commits else {}


class FakeGit(VersionControl):
    """VersionControl double keeping repositories in memory."""

    def __init__(self) -> None:
        self.repos: dict[Path, FakeRepo] = {}
        self.sources: dict[str, FakeRepo] = {}
        self.calls: list[tuple[Any, ...]] = []
        self.scratch_trees: list[Path] = []
        self.fail_clone: set[str] = set()
        self.fail_fetch: set[str] = set()
        self.fail_push: set[str] = set()
        self.fail_list_refs = False
        self.fail_update_ref = False
        self.fail_commit = False
        self.undeletable_refs: set[str] = set()

    # helpers -----------------------------------------------------------

    def add_source(self, url: str, files: dict[str, bytes] | None = None, refs: list[str] | None = None) -> FakeRepo:
        source = FakeRepo(
            commits=[dict(files)] if files is not None else [],
            refs=list(refs or ["refs/heads/main"]),
        )
        self.sources[url] = source
        return source

    def add_repo(
        self,
        path: Path,
        upstream_url: str | None = None,
        origin_url: str | None = "https://github.com/me/x.git",
        files: dict[str, bytes] | None = None,
        refs: list[str] | None = None,
        bare: bool = True,
    ) -> FakeRepo:
        path.mkdir(parents=True, exist_ok=True)
        repo = FakeRepo(
            commits=[dict(files)] if files is not None else [],
            refs=list(refs or ["refs/heads/main"]),
            bare=bare,
        )
        if origin_url:
            repo.remotes["origin"] = {"url": origin_url}
        if upstream_url:
            repo.remotes["upstream"] = {"url": upstream_url}
        self.repos[path] = repo
        return repo

    def calls_named(self, name: str) -> list[tuple[Any, ...]]:
        return [call for call in self.calls if call[0] == name]

    def _repo(self, path: Path) -> FakeRepo:
        if path not in self.repos:
            raise GitError(f"not a git repository: {path}")
        return self.repos[path]

    # VersionControl ----------------------------------------------------

    def is_git_repository(self, path: Path) -> bool:
        return path in self.repos

    def is_bare_repository(self, path: Path) -> bool:
        return path in self.repos and self.repos[path].bare

    def clone_mirror(self, url: str, dest_path: Path) -> tuple[bool, str]:
        self.calls.append(("clone_mirror", url, dest_path))
        if url in self.fail_clone or url not in self.sources:
            return False, "Clone failed: repository not found"
        source = self.sources[url]
        dest_path.mkdir(parents=True)
        self.repos[dest_path] = FakeRepo(
            commits=[dict(c) for c in source.commits],
            refs=list(source.refs),
            remotes={"origin": {"url": url}},
            upstream_head=source.upstream_head,
        )
        return True, "Cloned successfully (mirror)"

    def fetch(self, path: Path, remote: str | None = None, prune: bool = False) -> tuple[bool, str]:
        self.calls.append(("fetch", path, remote, prune))
        if path.name in self.fail_fetch:
            return False, "Fetch failed: could not resolve host"
        return True, "Fetched successfully"

    def list_refs(self, path: Path) -> list[str]:
        if self.fail_list_refs:
            raise GitError("git for-each-ref failed")
        return list(self._repo(path).refs)

    def delete_ref(self, path: Path, ref: str) -> None:
        self.calls.append(("delete_ref", path, ref))
        if ref in self.undeletable_refs:
            raise GitError(f"cannot lock ref '{ref}'")
        self._repo(path).refs.remove(ref)

    def list_remotes(self, path: Path) -> list[str]:
        return list(self._repo(path).remotes)

    def get_remote_url(self, path: Path, remote: str = "origin") -> str | None:
        if path not in self.repos:
            return None
        return self.repos[path].remotes.get(remote, {}).get("url")

    def add_remote(self, path: Path, remote: str, url: str) -> None:
        self.calls.append(("add_remote", path, remote, url))
        repo = self._repo(path)
        if remote in repo.remotes:
            raise GitError(f"remote {remote} already exists")
        repo.remotes[remote] = {"url": url}

    def set_remote_url(self, path: Path, remote: str, url: str) -> None:
        self.calls.append(("set_remote_url", path, remote, url))
        repo = self._repo(path)
        if remote not in repo.remotes:
            raise GitError(f"No such remote '{remote}'")
        repo.remotes[remote]["url"] = url

    def get_push_url(self, path: Path, remote: str) -> str | None:
        return self._repo(path).remotes.get(remote, {}).get("pushurl")

    def set_push_url(self, path: Path, remote: str, url: str) -> None:
        self.calls.append(("set_push_url", path, remote, url))
        self._repo(path).remotes.setdefault(remote, {})["pushurl"] = url

    def read_symbolic_ref(self, path: Path, remote: str) -> str | None:
        self.calls.append(("read_symbolic_ref", path, remote))
        return self._repo(path).upstream_head

    def update_ref(self, path: Path, ref: str, target: str) -> None:
        self.calls.append(("update_ref", path, ref, target))
        if self.fail_update_ref:
            raise GitError(f"fatal: {target}: not a valid SHA1")
        self._repo(path).head_target = target

    def checkout_tree(self, path: Path, work_tree: Path, index_file: Path) -> bool:
        self.scratch_trees.append(work_tree)
        repo = self._repo(path)
        if not repo.commits:
            return False
        for name, content in repo.files.items():
            (work_tree / name).write_bytes(content)
        return True

    def commit_work_tree(self, path: Path, work_tree: Path, index_file: Path, message: str) -> bool:
        if self.fail_commit:
            raise GitError("git commit failed: Please tell me who you are")
        repo = self._repo(path)
        tree = {p.name: p.read_bytes() for p in work_tree.iterdir() if p.is_file()}
        if tree == repo.files:
            return False
        repo.commits.append(tree)
        self.calls.append(("commit", path, message))
        return True

    def push_mirror(self, path: Path, remote: str = "origin") -> tuple[bool, str]:
        self.calls.append(("push_mirror", path, remote))
        if path.name in self.fail_push:
            return False, "Push failed: permission denied"
        return True, "Pushed successfully (mirror)"


class FakeHosting(HostingAPI):
    """HostingAPI double."""

    def __init__(self, existing: set[tuple[str, str]] | None = None) -> None:
        self.existing = set(existing or set())
        self.created: list[dict[str, Any]] = []
        self.calls: list[tuple[Any, ...]] = []
        self.create_error: GitHubAPIError | None = None

    def repository_exists(self, owner: str, name: str) -> bool:
        self.calls.append(("repository_exists", owner, name))
        return (owner, name) in self.existing

    def create_repository(
        self,
        name: str,
        description: str = "",
        private: bool = False,
        auto_init: bool = False,
    ) -> dict[str, Any]:
        self.calls.append(("create_repository", name))
        if self.create_error is not None:
            raise self.create_error
        payload = {"name": name, "description": description, "private": private, "auto_init": auto_init}
        self.created.append(payload)
        return {"id": len(self.created), **payload}


@pytest.fixture(autouse=True)
def quiet_output():
    """Reset verbose mode between tests."""
    set_verbose(False)
    yield
    set_verbose(False)


@pytest.fixture
def fake_git() -> FakeGit:
    return FakeGit()


@pytest.fixture
def fake_hosting() -> FakeHosting:
    return FakeHosting()


@pytest.fixture
def config(tmp_path: Path) -> Config:
    """Config pointing at a temporary mirror directory."""
    return Config(
        username="me",
        token="ghp_testtoken1234567890",
        mirror_dir=tmp_path / "mirrors",
        github_host="github.com",
        sync_delay=0.5,
    )
