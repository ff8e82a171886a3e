"""
Mirror lifecycle orchestration: Create and Sync-All.

"Orchestration is just delegation with a fancy name." — schema.cx

Everything runs sequentially, one repository at a time. Two instances working
on the same mirror directory at once is not supported.
"""

import time
from typing import Callable

from rich.progress import Progress, SpinnerColumn, TextColumn

from .annotate import add_mirror_notice
from .git_utils import GitError, GitOperations, VersionControl
from .github_api import GitHubAPIClient, HostingAPI, RepositoryExistsError
from .models import (
    ORIGIN_REMOTE,
    UPSTREAM_REMOTE,
    Config,
    CreateResult,
    MirrorEntry,
    SyncResult,
    SyncSummary,
)
from .refs import resolve_default_branch, sanitize_refs
from .remotes import block_upstream_push, configure_remotes, is_push_blocked, read_entry
from .rich_utils import (
    console,
    create_summary_table,
    format_action,
    format_repo_name,
    print_info,
    print_key_value,
    print_success,
    print_warning,
)
from .store import MirrorStore
from .validation import check_not_self_mirror, extract_repo_name, validate_repo_name


class MirrorError(Exception):
    """A mirror workflow could not be completed."""

    pass


class MirrorOrchestrator:
    """
    Orchestrates mirror creation and synchronization.

    Git, the hosting API and the store are injected so the workflows can run
    against doubles. Defaults talk to the real git binary and GitHub.
    """

    def __init__(
        self,
        config: Config,
        git_ops: VersionControl | None = None,
        hosting: HostingAPI | None = None,
        store: MirrorStore | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        """Initialize the mirror orchestrator."""
        self.config = config
        self.git_ops = git_ops or GitOperations()
        self.store = store or MirrorStore(config.mirror_dir)
        self._hosting = hosting
        self._sleep = sleep

    @property
    def hosting(self) -> HostingAPI:
        # Sync never talks to the API, so the client is only built on demand
        if self._hosting is None:
            self._hosting = GitHubAPIClient(self.config)
        return self._hosting

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    def create(self, source_url: str, target_name: str | None = None) -> CreateResult:
        """
        Create (or resume creating) a mirror of `source_url`.

        Every step is idempotent, so re-running after a partial failure is
        safe: an existing hosted repository is reused and an existing local
        clone is fetched rather than re-cloned.

        Raises:
            ValidationError: Bad target name or attempt to mirror your own repo
            GitHubAPIError: Hosting API failure other than "already exists"
            MirrorError: Clone, fetch or push failure
            GitError: Remote configuration or annotation failure
        """
        name = validate_repo_name(target_name or extract_repo_name(source_url))

        # Must run before anything touches the network or the disk
        if not check_not_self_mirror(source_url, self.config.username, self.config.github_host):
            print_warning("Could not parse GitHub URL format. Proceeding with caution...")

        repo_path = self.store.path_for(name)
        origin_url = self.config.origin_url(name)
        entry = MirrorEntry(name=name, local_path=repo_path, origin_url=origin_url, upstream_url=source_url)
        result = CreateResult(entry=entry)

        console.print(f"\n[cyan]Starting mirror process for {format_repo_name(name)}[/cyan]")
        print_key_value("Source", source_url)
        print_key_value("Target", origin_url)
        print_key_value("Mirror directory", str(self.store.root))

        result.hosted_created = self._ensure_hosted_repo(name, source_url)
        result.cloned = self._clone_or_fetch(source_url, entry)

        print_info("Configuring remotes...")
        configure_remotes(self.git_ops, repo_path, origin_url, source_url)

        print_info("Adding mirror notice to README files...")
        result.annotated = add_mirror_notice(self.git_ops, repo_path).committed

        print_info("Cleaning up problematic references...")
        result.pruned_refs = sanitize_refs(self.git_ops, repo_path)

        print_info("Pushing to your GitHub repository...")
        success, message = self.git_ops.push_mirror(repo_path, ORIGIN_REMOTE)
        if not success:
            raise MirrorError(f"Failed to push mirror {name}: {message}")

        print_success(f"Mirror ready: https://{self.config.github_host}/{self.config.username}/{name}")
        print_key_value("Repository location", str(repo_path))
        print_key_value("Upstream", source_url)
        return result

    def _ensure_hosted_repo(self, name: str, source_url: str) -> bool:
        """
        Make sure the personal repository exists.

        Returns:
            True if it was created by this call, False if it already existed
        """
        owner = self.config.username
        print_info(f"Checking GitHub repository: {owner}/{name}")

        if self.hosting.repository_exists(owner, name):
            print_warning(f"Repository {name} already exists on your GitHub account, continuing...")
            return False

        try:
            self.hosting.create_repository(
                name,
                description=f"Mirror of {source_url}",
                private=False,
                auto_init=False,
            )
        except RepositoryExistsError:
            print_warning(f"Repository {name} already exists on your GitHub account, continuing...")
            return False

        print_success("GitHub repository created successfully")
        return True

    def _clone_or_fetch(self, source_url: str, entry: MirrorEntry) -> bool:
        """
        Mirror-clone the source, or fetch if a local clone is already there.

        Returns:
            True if a fresh clone was made
        """
        self.store.ensure_root()
        repo_path = entry.local_path

        if not self.store.has(entry.name):
            print_info("Cloning repository...")
            success, message = self.git_ops.clone_mirror(source_url, repo_path)
            if not success:
                raise MirrorError(f"Failed to clone {source_url}: {message}")
            return True

        if self.git_ops.is_git_repository(repo_path) and not self.git_ops.is_bare_repository(repo_path):
            raise MirrorError(f"{repo_path} exists but is not a mirror clone (it has a working tree)")

        print_warning(f"Repository already exists at {repo_path}. Attempting to update...")
        success, message = self.git_ops.fetch(repo_path)
        if not success:
            raise MirrorError(f"Failed to update {repo_path}: {message}")
        return False

    # ------------------------------------------------------------------
    # Sync-All
    # ------------------------------------------------------------------

    def sync_all(self) -> SyncSummary:
        """
        Re-synchronize every mirror in the store.

        A repository that fails is recorded and the batch moves on.

        Raises:
            MirrorError: If the mirror directory does not exist
        """
        if not self.store.exists():
            raise MirrorError(f"Mirror directory does not exist: {self.store.root}")

        console.print(f"\n[cyan]Starting mirror update process in {self.store.root}[/cyan]")
        entries = self.store.entries()
        summary = SyncSummary()

        if not entries:
            print_warning("No mirrors found.")
            self._print_summary(summary)
            return summary

        if self.config.dry_run:
            console.print("[yellow]DRY RUN MODE - No actual operations will be performed[/yellow]\n")
            self._dry_run_entries(entries, summary)
        else:
            self._sync_entries(entries, summary)

        self._print_summary(summary)
        return summary

    def _sync_entries(self, entries: list[MirrorEntry], summary: SyncSummary) -> None:
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            console=console,
        ) as progress:
            task = progress.add_task("Syncing mirrors...", total=len(entries))

            for index, entry in enumerate(entries):
                if index:
                    # Keep the hosting service happy
                    self._sleep(self.config.sync_delay)

                progress.update(task, description=f"Syncing {entry.name}...")
                result = self.sync_one(entry)
                summary.add_result(result)
                self._print_result(result)
                progress.advance(task)

    def _dry_run_entries(self, entries: list[MirrorEntry], summary: SyncSummary) -> None:
        """Perform a dry run (just print what would be done)."""
        for entry in entries:
            path = entry.local_path
            upstream = None
            if self.git_ops.is_git_repository(path) and self.git_ops.is_bare_repository(path):
                upstream = self.git_ops.get_remote_url(path, UPSTREAM_REMOTE)

            if upstream:
                result = SyncResult(
                    name=entry.name,
                    success=True,
                    action="planned",
                    message=f"Would sync from {upstream}",
                )
            else:
                result = SyncResult(name=entry.name, success=True, action="skipped", message="Not a mirror")
            summary.add_result(result)
            self._print_result(result)

    def sync_one(self, entry: MirrorEntry) -> SyncResult:
        """
        Sync a single mirror with its upstream and push it to origin.

        Non-mirrors are skipped. Any git failure marks the repository failed
        without raising.
        """
        name = entry.name
        path = entry.local_path

        if not self.git_ops.is_git_repository(path):
            print_warning(f"Skipping {name} - not a git repository")
            return SyncResult(name=name, success=True, action="skipped", message="Not a git repository")

        if not self.git_ops.is_bare_repository(path):
            # Annotation and push --mirror only make sense on a mirror clone
            print_warning(f"Skipping {name} - has a working tree, not a mirror clone")
            return SyncResult(name=name, success=True, action="skipped", message="Not a mirror clone")

        try:
            if not self.git_ops.has_remote(path, UPSTREAM_REMOTE):
                print_warning(f"Skipping {name} - no upstream remote found")
                return SyncResult(name=name, success=True, action="skipped", message="No upstream remote")

            # Remote config can be rewritten by other tools; re-assert every time
            block_upstream_push(self.git_ops, path)

            print_info(f"Fetching latest changes for {name} from upstream...")
            success, message = self.git_ops.fetch(path, UPSTREAM_REMOTE, prune=True)
            if not success:
                return SyncResult(name=name, success=False, action="failed", error=message)

            branch = resolve_default_branch(
                self.git_ops,
                path,
                remote=UPSTREAM_REMOTE,
                fallback=self.config.fallback_branch,
            )
            self._repoint_head(entry, branch)

            add_mirror_notice(self.git_ops, path)
            sanitize_refs(self.git_ops, path)

            success, message = self.git_ops.push_mirror(path, ORIGIN_REMOTE)
            if not success:
                return SyncResult(
                    name=name,
                    success=False,
                    action="failed",
                    error=f"Failed to push updates: {message}",
                    default_branch=branch,
                )
        except GitError as e:
            return SyncResult(name=name, success=False, action="failed", error=str(e))

        return SyncResult(name=name, success=True, action="synced", message=f"Synced {branch}", default_branch=branch)

    def _repoint_head(self, entry: MirrorEntry, branch: str) -> None:
        """Reset the mirror's HEAD to upstream's default branch."""
        target = f"refs/remotes/{UPSTREAM_REMOTE}/{branch}"
        try:
            self.git_ops.update_ref(entry.local_path, "HEAD", target)
        except GitError as e:
            # A wrong fallback guess must not stall the pipeline
            print_warning(f"Could not reset {entry.name} to {UPSTREAM_REMOTE}/{branch}: {e}")

    # ------------------------------------------------------------------
    # Inspection
    # ------------------------------------------------------------------

    def describe_mirrors(self) -> list[tuple[MirrorEntry, bool]]:
        """
        Read remote details for every git repository in the store.

        Returns:
            List of (entry, upstream push blocked) pairs
        """
        described = []
        for entry in self.store.entries():
            if not self.git_ops.is_git_repository(entry.local_path):
                continue
            full = read_entry(self.git_ops, entry.name, entry.local_path)
            described.append((full, is_push_blocked(self.git_ops, entry.local_path)))
        return described

    # ------------------------------------------------------------------
    # Output
    # ------------------------------------------------------------------

    def _print_result(self, result: SyncResult) -> None:
        """Print the result of a sync operation."""
        if result.success:
            detail = result.message
        else:
            detail = result.error
        console.print(f"{format_action(result.action)} {result.name} ({detail})")

    def _print_summary(self, summary: SyncSummary) -> None:
        """
        Print operation summary.

        "Numbers tell the story. Make sure it's a good one." — schema.cx
        """
        table = create_summary_table("Summary")
        table.add_column("Result")
        table.add_column("Repositories", justify="right")
        table.add_row("Total", str(summary.total))
        table.add_row("[green]✓ Synced[/green]", str(summary.succeeded))
        table.add_row("[yellow]⊘ Skipped[/yellow]", str(summary.skipped))
        if summary.planned:
            table.add_row("[cyan]→ Planned[/cyan]", str(summary.planned))
        table.add_row("[red]✗ Failed[/red]", str(summary.failed))

        console.print()
        console.print(table)

        if summary.errors:
            console.print("\n[bold red]Errors:[/bold red]")
            for error in summary.errors:
                console.print(f"  • {error}")
        console.print()
