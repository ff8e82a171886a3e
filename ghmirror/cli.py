"""
gh-mirror CLI interface.

"The command line is where the real work happens. Everything else is just theater." — schema.cx
"""

import sys
from pathlib import Path

import typer

from .config import ConfigError, load_config
from .git_utils import GitError
from .github_api import GitHubAPIClient, GitHubAPIError
from .mirror import MirrorError, MirrorOrchestrator
from .models import Config
from .rich_utils import (
    console,
    create_data_table,
    print_error,
    print_success,
    print_warning,
    set_verbose,
)
from .validation import ValidationError

app = typer.Typer(
    name="gh-mirror",
    help="🪞 gh-mirror - Keep one-way mirrors of upstream repositories on your GitHub account.",
    add_completion=False,
)


def _load_config(**overrides) -> Config:
    """Build the Config or exit with an error message."""
    try:
        return load_config(**overrides)
    except ConfigError as e:
        print_error(str(e))
        sys.exit(1)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        from . import __version__
        console.print(f"gh-mirror version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool | None = typer.Option(
        None,
        "--version",
        "-v",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        help="Show detailed output, including best-effort cleanup failures.",
    ),
) -> None:
    """
    🪞 gh-mirror - Keep one-way mirrors of upstream repositories on your GitHub account.

    Configuration is read from ~/.config/gh-auto-mirror/.env (or ./.env):
    GITHUB_USERNAME, GITHUB_TOKEN and MIRROR_DIR (default ~/gh-mirrors).

    Do not run two gh-mirror processes against the same mirror directory.
    """
    set_verbose(verbose)


@app.command()
def create(
    source_url: str = typer.Argument(..., help="URL of the repository to mirror"),
    target_name: str | None = typer.Argument(
        None,
        help="Name for the mirror repository (defaults to the source repository name)",
    ),
    mirror_dir: Path | None = typer.Option(
        None,
        "--mirror-dir",
        "-d",
        help="Directory holding the mirror clones (default: ~/gh-mirrors)",
    ),
    username: str | None = typer.Option(
        None,
        "--username",
        "-u",
        help="Your GitHub username (prefer GITHUB_USERNAME env var)",
    ),
    token: str | None = typer.Option(
        None,
        "--token",
        "-t",
        help="GitHub Personal Access Token (prefer GITHUB_TOKEN env var)",
    ),
    github_host: str | None = typer.Option(
        None,
        "--github-host",
        "-H",
        help="GitHub Enterprise hostname (e.g., github.mycompany.com)",
    ),
) -> None:
    """
    Create a mirror of SOURCE_URL on your GitHub account.

    Safe to re-run: an existing GitHub repository is reused and an existing
    local clone is updated instead of re-cloned.

    Example:
        gh-mirror create https://github.com/username/repo
        gh-mirror create https://github.com/username/repo my-fork
    """
    if token:
        console.print(
            "[yellow]⚠ Warning: Passing tokens via CLI flags exposes them in shell history. "
            "Use GITHUB_TOKEN environment variable instead.[/yellow]\n"
        )

    config = _load_config(
        username=username,
        token=token,
        mirror_dir=mirror_dir,
        github_host=github_host,
    )

    with GitHubAPIClient(config) as client:
        orchestrator = MirrorOrchestrator(config, hosting=client)
        try:
            orchestrator.create(source_url, target_name)
        except (ValidationError, GitHubAPIError, MirrorError, GitError) as e:
            print_error(str(e))
            sys.exit(1)

    print_success("Mirror setup completed successfully!")
    sys.exit(0)


@app.command()
def sync(
    mirror_dir: Path | None = typer.Option(
        None,
        "--mirror-dir",
        "-d",
        help="Directory holding the mirror clones (default: ~/gh-mirrors)",
    ),
    delay: float | None = typer.Option(
        None,
        "--delay",
        help="Seconds to pause between repositories (default: 1)",
        min=0,
    ),
    fallback_branch: str | None = typer.Option(
        None,
        "--fallback-branch",
        help="Branch to use when upstream's default branch can't be determined (default: main)",
    ),
    strict: bool = typer.Option(
        False,
        "--strict",
        help="Exit with status 1 if any repository failed to sync",
    ),
    dry_run: bool = typer.Option(
        False,
        "--dry-run",
        help="Preview actions without executing",
    ),
    username: str | None = typer.Option(
        None,
        "--username",
        "-u",
        help="Your GitHub username (prefer GITHUB_USERNAME env var)",
    ),
    token: str | None = typer.Option(
        None,
        "--token",
        "-t",
        help="GitHub Personal Access Token (prefer GITHUB_TOKEN env var)",
    ),
) -> None:
    """
    Update every mirror from its upstream and push it to your account.

    Each repository is fetched from upstream, reset to upstream's default
    branch, annotated, cleaned of pull request refs and mirror-pushed. A
    failing repository does not stop the others.

    Example:
        gh-mirror sync
        gh-mirror sync --strict --delay 2
    """
    config = _load_config(
        username=username,
        token=token,
        mirror_dir=mirror_dir,
        sync_delay=delay,
        fallback_branch=fallback_branch,
        dry_run=dry_run,
        strict=strict,
    )

    orchestrator = MirrorOrchestrator(config)
    try:
        summary = orchestrator.sync_all()
    except MirrorError as e:
        print_error(str(e))
        sys.exit(1)

    if summary.has_failures:
        print_warning(f"Failed to update: {summary.failed} ({', '.join(summary.failed_names)})")
        if config.strict:
            sys.exit(1)
    # Exit 0 even if some repos failed but were reported
    sys.exit(0)


@app.command("list")
def list_mirrors(
    mirror_dir: Path | None = typer.Option(
        None,
        "--mirror-dir",
        "-d",
        help="Directory holding the mirror clones (default: ~/gh-mirrors)",
    ),
) -> None:
    """
    Show every mirror with its upstream and whether upstream pushes are blocked.
    """
    config = _load_config(mirror_dir=mirror_dir)
    orchestrator = MirrorOrchestrator(config)

    if not orchestrator.store.exists():
        print_error(f"Mirror directory does not exist: {orchestrator.store.root}")
        sys.exit(1)

    mirrors = orchestrator.describe_mirrors()
    if not mirrors:
        print_warning("No mirrors found.")
        return

    table = create_data_table(title=f"Mirrors in {orchestrator.store.root}")
    table.add_column("Name", style="bold")
    table.add_column("Upstream")
    table.add_column("Origin")
    table.add_column("Push blocked", justify="center")

    for entry, blocked in mirrors:
        table.add_row(
            entry.name,
            entry.upstream_url or "[yellow]none[/yellow]",
            entry.origin_url or "[yellow]none[/yellow]",
            "[green]yes[/green]" if blocked else "[red]no[/red]",
        )

    console.print(table)


if __name__ == "__main__":
    app()
