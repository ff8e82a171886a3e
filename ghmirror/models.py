"""
Data models for gh-mirror.

"A mirror only reflects. It never talks back." — schema.cx
"""

from dataclasses import dataclass, field
from pathlib import Path

DEFAULT_GITHUB_HOST = "github.com"
DEFAULT_MIRROR_DIR = Path.home() / "gh-mirrors"
DEFAULT_FALLBACK_BRANCH = "main"
DEFAULT_SYNC_DELAY = 1.0

# Remote names of the two-remote topology
ORIGIN_REMOTE = "origin"
UPSTREAM_REMOTE = "upstream"

# Push URL sentinel for the upstream remote. It never resolves to a real remote.
NO_PUSH_URL = "no_push"


@dataclass
class Config:
    """
    Configuration for mirror operations.

    Built once at process start and handed to every component. Nothing in the
    core reads the environment on its own.
    """

    username: str
    token: str
    mirror_dir: Path = DEFAULT_MIRROR_DIR
    github_host: str = DEFAULT_GITHUB_HOST

    # Sync-All behaviour
    sync_delay: float = DEFAULT_SYNC_DELAY
    fallback_branch: str = DEFAULT_FALLBACK_BRANCH
    dry_run: bool = False
    strict: bool = False  # Exit non-zero when any repo failed to sync

    def __post_init__(self) -> None:
        """Validate and normalize configuration."""
        if not isinstance(self.mirror_dir, Path):
            self.mirror_dir = Path(self.mirror_dir)
        self.mirror_dir = self.mirror_dir.expanduser().resolve()

        self.github_host = (self.github_host or DEFAULT_GITHUB_HOST).strip().rstrip("/")
        if self.sync_delay < 0:
            self.sync_delay = 0.0

    @property
    def api_url(self) -> str:
        """REST API root for the configured host (GitHub Enterprise aware)."""
        if self.github_host == DEFAULT_GITHUB_HOST:
            return "https://api.github.com"
        return f"https://{self.github_host}/api/v3"

    def origin_url(self, name: str) -> str:
        """URL of the personal mirror repository called `name`."""
        return f"https://{self.github_host}/{self.username}/{name}.git"


@dataclass
class MirrorEntry:
    """
    One mirror in the repository store.

    "Every mirror has two faces. Only one of them takes pushes." — schema.cx
    """

    name: str
    local_path: Path
    origin_url: str | None = None
    upstream_url: str | None = None


@dataclass
class AnnotationResult:
    """Outcome of a README annotation pass."""

    readme: str | None = None
    committed: bool = False
    skipped: bool = False
    reason: str = ""


@dataclass
class CreateResult:
    """What a single Create invocation actually did."""

    entry: MirrorEntry
    hosted_created: bool = False
    cloned: bool = False
    annotated: bool = False
    pruned_refs: list[str] = field(default_factory=list)


@dataclass
class SyncResult:
    """
    Result of syncing a single mirror.

    "Success is just failure that hasn't happened yet. Log everything." — schema.cx
    """

    name: str
    success: bool
    action: str  # "synced", "skipped", "failed", "planned"
    message: str = ""
    error: str | None = None
    default_branch: str | None = None


@dataclass
class SyncSummary:
    """Counters accumulated across a Sync-All run."""

    total: int = 0
    succeeded: int = 0
    failed: int = 0
    skipped: int = 0
    planned: int = 0  # Dry run only
    results: list[SyncResult] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)

    def add_result(self, result: SyncResult) -> None:
        """Add a result to the summary."""
        self.total += 1
        self.results.append(result)

        if result.success:
            if result.action == "skipped":
                self.skipped += 1
            elif result.action == "planned":
                self.planned += 1
            else:
                self.succeeded += 1
        else:
            self.failed += 1
            if result.error:
                self.errors.append(f"{result.name}: {result.error}")

    @property
    def has_failures(self) -> bool:
        """Check if any repository failed to sync."""
        return self.failed > 0

    @property
    def failed_names(self) -> list[str]:
        return [r.name for r in self.results if not r.success]
