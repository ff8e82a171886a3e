"""
Git operations wrapper using subprocess.

"Git is just a time machine for code. Use it wisely." — schema.cx
"""

import os
import subprocess
from abc import ABC, abstractmethod
from pathlib import Path


class GitError(Exception):
    """Git operation error."""

    def __init__(self, message: str, command: list[str] | None = None, stderr: str = "") -> None:
        super().__init__(message)
        self.command = command or []
        self.stderr = stderr


def parse_symref_output(output: str) -> str | None:
    """
    Extract the target of HEAD from `git ls-remote --symref <remote> HEAD`.

    The advertisement looks like ``ref: refs/heads/main<TAB>HEAD`` followed by
    the object line. Returns the full ref name (``refs/heads/main``) or None.
    """
    for line in output.splitlines():
        if not line.startswith("ref: "):
            continue
        target, _, name = line[len("ref: "):].partition("\t")
        if name.strip() == "HEAD" and target.startswith("refs/heads/"):
            return target.strip()
    return None


class VersionControl(ABC):
    """
    The git capabilities the mirror workflows depend on.

    Everything above this layer talks to git only through these methods, so a
    test double or a library-backed implementation can be dropped in.
    """

    @abstractmethod
    def is_git_repository(self, path: Path) -> bool:
        """Check if a directory is a git repository (bare or not)."""

    @abstractmethod
    def is_bare_repository(self, path: Path) -> bool:
        """Check if a directory is a bare repository, which is what a mirror clone is."""

    @abstractmethod
    def clone_mirror(self, url: str, dest_path: Path) -> tuple[bool, str]:
        """Mirror-clone `url` into `dest_path` (all refs, no work tree)."""

    @abstractmethod
    def fetch(self, path: Path, remote: str | None = None, prune: bool = False) -> tuple[bool, str]:
        """Fetch `remote`, or every remote when `remote` is None."""

    @abstractmethod
    def list_refs(self, path: Path) -> list[str]:
        """List every ref name in the repository."""

    @abstractmethod
    def delete_ref(self, path: Path, ref: str) -> None:
        """Delete a single ref."""

    @abstractmethod
    def list_remotes(self, path: Path) -> list[str]:
        """List configured remote names."""

    @abstractmethod
    def get_remote_url(self, path: Path, remote: str = "origin") -> str | None:
        """Get the fetch URL of a remote, or None if it does not exist."""

    @abstractmethod
    def add_remote(self, path: Path, remote: str, url: str) -> None:
        """Add a new remote."""

    @abstractmethod
    def set_remote_url(self, path: Path, remote: str, url: str) -> None:
        """Point an existing remote at a new fetch URL."""

    @abstractmethod
    def get_push_url(self, path: Path, remote: str) -> str | None:
        """Get the explicit push URL of a remote, if one is configured."""

    @abstractmethod
    def set_push_url(self, path: Path, remote: str, url: str) -> None:
        """Set the explicit push URL of a remote."""

    @abstractmethod
    def read_symbolic_ref(self, path: Path, remote: str) -> str | None:
        """Ask `remote` which ref its HEAD points to (e.g. ``refs/heads/main``)."""

    @abstractmethod
    def update_ref(self, path: Path, ref: str, target: str) -> None:
        """Point `ref` at whatever `target` resolves to."""

    @abstractmethod
    def checkout_tree(self, path: Path, work_tree: Path, index_file: Path) -> bool:
        """
        Write HEAD's tree into `work_tree` using a private index.

        Returns False when HEAD has no commit yet (nothing was written).
        """

    @abstractmethod
    def commit_work_tree(self, path: Path, work_tree: Path, index_file: Path, message: str) -> bool:
        """
        Stage `work_tree` and commit it if it differs from HEAD.

        Returns True if a commit was created.
        """

    @abstractmethod
    def push_mirror(self, path: Path, remote: str = "origin") -> tuple[bool, str]:
        """Push the whole ref namespace to `remote` in mirror mode."""

    def has_remote(self, path: Path, remote: str) -> bool:
        """Check whether a remote with this name is configured."""
        return remote in self.list_remotes(path)


class GitOperations(VersionControl):
    """
    VersionControl implementation that shells out to the git binary.

    "Every git command is a leap of faith. Make backups." — schema.cx
    """

    CLONE_TIMEOUT = 600
    FETCH_TIMEOUT = 300
    PUSH_TIMEOUT = 600
    LOCAL_TIMEOUT = 60

    def _run(
        self,
        args: list[str],
        cwd: Path | None = None,
        timeout: int = LOCAL_TIMEOUT,
        check: bool = True,
        env: dict[str, str] | None = None,
    ) -> subprocess.CompletedProcess:
        """Run a git command and raise GitError if it fails."""
        cmd = ["git", *args]
        try:
            return subprocess.run(
                cmd,
                cwd=cwd,
                capture_output=True,
                text=True,
                check=check,
                timeout=timeout,
                env=env,
            )
        except subprocess.TimeoutExpired as e:
            raise GitError(f"git {args[0]} timed out after {timeout}s", cmd) from e
        except subprocess.CalledProcessError as e:
            error_msg = e.stderr.strip() if e.stderr else str(e)
            raise GitError(f"git {args[0]} failed: {error_msg}", cmd, error_msg) from e
        except FileNotFoundError as e:
            raise GitError("git executable not found in PATH", cmd) from e

    @staticmethod
    def _scratch_env(index_file: Path) -> dict[str, str]:
        env = os.environ.copy()
        env["GIT_INDEX_FILE"] = str(index_file)
        return env

    @staticmethod
    def _scratch_args(path: Path, work_tree: Path) -> list[str]:
        # Scratch commands run from inside the work tree, so both must be absolute
        return [f"--git-dir={path.resolve()}", f"--work-tree={work_tree.resolve()}"]

    def is_git_repository(self, path: Path) -> bool:
        """Check if a directory is a git repository."""
        git_dir = path / ".git"
        # Also check for bare repositories (no .git folder, but has HEAD)
        bare_head = path / "HEAD"
        return (git_dir.exists() and git_dir.is_dir()) or (bare_head.exists() and (path / "objects").exists())

    def is_bare_repository(self, path: Path) -> bool:
        return (
            not (path / ".git").exists()
            and (path / "HEAD").is_file()
            and (path / "objects").is_dir()
        )

    def clone_mirror(self, url: str, dest_path: Path) -> tuple[bool, str]:
        """
        Clone a repository as a mirror.

        Args:
            url: Source repository URL
            dest_path: Destination path for the clone

        Returns:
            Tuple of (success, message)
        """
        dest_path.parent.mkdir(parents=True, exist_ok=True)

        try:
            self._run(["clone", "--mirror", url, str(dest_path)], timeout=self.CLONE_TIMEOUT)
            return True, "Cloned successfully (mirror)"
        except GitError as e:
            if "timed out" in str(e):
                return False, "Clone operation timed out"
            return False, f"Clone failed: {e.stderr or e}"

    def fetch(self, path: Path, remote: str | None = None, prune: bool = False) -> tuple[bool, str]:
        """
        Fetch updates from one remote or all of them.

        Args:
            path: Path to the git repository
            remote: Remote to fetch; every remote when None
            prune: Whether to prune refs deleted on the remote

        Returns:
            Tuple of (success, message)
        """
        if not self.is_git_repository(path):
            return False, "Not a git repository"

        cmd = ["fetch"]
        if prune:
            cmd.append("--prune")
        cmd.append(remote if remote else "--all")

        try:
            self._run(cmd, cwd=path, timeout=self.FETCH_TIMEOUT)
            return True, "Fetched successfully"
        except GitError as e:
            if "timed out" in str(e):
                return False, "Fetch operation timed out"
            return False, f"Fetch failed: {e.stderr or e}"

    def list_refs(self, path: Path) -> list[str]:
        result = self._run(["for-each-ref", "--format=%(refname)"], cwd=path)
        return [line.strip() for line in result.stdout.splitlines() if line.strip()]

    def delete_ref(self, path: Path, ref: str) -> None:
        self._run(["update-ref", "-d", ref], cwd=path)

    def list_remotes(self, path: Path) -> list[str]:
        result = self._run(["remote"], cwd=path)
        return [line.strip() for line in result.stdout.splitlines() if line.strip()]

    def get_remote_url(self, path: Path, remote: str = "origin") -> str | None:
        """Get the remote URL of a git repository."""
        if not self.is_git_repository(path):
            return None

        try:
            result = self._run(["remote", "get-url", remote], cwd=path, timeout=10)
            return result.stdout.strip() or None
        except GitError:
            return None

    def add_remote(self, path: Path, remote: str, url: str) -> None:
        self._run(["remote", "add", remote, url], cwd=path)

    def set_remote_url(self, path: Path, remote: str, url: str) -> None:
        self._run(["remote", "set-url", remote, url], cwd=path)

    def get_push_url(self, path: Path, remote: str) -> str | None:
        # `git config --get` exits 1 when the key is unset
        result = self._run(["config", "--get", f"remote.{remote}.pushurl"], cwd=path, check=False)
        if result.returncode != 0:
            return None
        return result.stdout.strip() or None

    def set_push_url(self, path: Path, remote: str, url: str) -> None:
        self._run(["config", f"remote.{remote}.pushurl", url], cwd=path)

    def read_symbolic_ref(self, path: Path, remote: str) -> str | None:
        """
        Query the symbolic HEAD advertised by a remote.

        Returns None if the remote cannot be reached or advertises no symref.
        """
        try:
            result = self._run(["ls-remote", "--symref", remote, "HEAD"], cwd=path, timeout=self.FETCH_TIMEOUT)
        except GitError:
            return None
        return parse_symref_output(result.stdout)

    def update_ref(self, path: Path, ref: str, target: str) -> None:
        self._run(["update-ref", ref, target], cwd=path)

    def checkout_tree(self, path: Path, work_tree: Path, index_file: Path) -> bool:
        """
        Materialize HEAD into a scratch work tree.

        The repository keeps no work tree of its own, so HEAD is read into a
        private index and checked out from there.
        """
        head = self._run(["rev-parse", "--verify", "--quiet", "HEAD^{commit}"], cwd=path, check=False)
        if head.returncode != 0:
            # Unborn HEAD: empty repository
            return False

        env = self._scratch_env(index_file)
        git_args = self._scratch_args(path, work_tree)
        self._run([*git_args, "read-tree", "HEAD"], cwd=work_tree, env=env)
        self._run([*git_args, "checkout-index", "--all", "--force"], cwd=work_tree, env=env)
        return True

    def commit_work_tree(self, path: Path, work_tree: Path, index_file: Path, message: str) -> bool:
        env = self._scratch_env(index_file)
        git_args = self._scratch_args(path, work_tree)

        self._run([*git_args, "add", "--all", "."], cwd=work_tree, env=env)

        # Exit code 1 means the staged tree differs from HEAD
        diff = self._run([*git_args, "diff", "--cached", "--quiet"], cwd=work_tree, check=False, env=env)
        if diff.returncode == 0:
            return False
        if diff.returncode != 1:
            raise GitError(f"git diff failed: {diff.stderr.strip()}", ["git", "diff"], diff.stderr)

        self._run([*git_args, "commit", "--quiet", "-m", message], cwd=work_tree, env=env)
        return True

    def push_mirror(self, path: Path, remote: str = "origin") -> tuple[bool, str]:
        """
        Push every ref to a remote in mirror mode.

        Returns:
            Tuple of (success, message)
        """
        try:
            self._run(["push", "--mirror", remote], cwd=path, timeout=self.PUSH_TIMEOUT)
            return True, "Pushed successfully (mirror)"
        except GitError as e:
            if "timed out" in str(e):
                return False, "Push operation timed out"
            return False, f"Push failed: {e.stderr or e}"
