"""
Provenance notice for mirrored READMEs.

"If you copy something, at least say where it came from." — schema.cx

Mirror clones have no work tree, so the notice is written into a throwaway
checkout of HEAD, committed from there, and the checkout is discarded.
"""

import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from .git_utils import VersionControl
from .models import UPSTREAM_REMOTE, AnnotationResult
from .rich_utils import print_debug, print_info, print_warning

# Already-annotated mirrors are recognised by this exact substring. Never change it.
MIRROR_MARKER = "This is a mirror. See upstream:"
NOTICE_TEMPLATE = "*" + MIRROR_MARKER + " {url}*"

COMMIT_MESSAGE = "Add readme mirror line"

# First existing file wins
README_CANDIDATES = ("README.md", "README.rst", "README.txt", "README")
DEFAULT_README = "README.md"

# Round-trips arbitrary bytes through str
_ENCODING = "utf-8"
_ERRORS = "surrogateescape"


def build_notice(upstream_url: str) -> str:
    """Render the one-line provenance notice."""
    return NOTICE_TEMPLATE.format(url=upstream_url)


def has_mirror_notice(text: str) -> bool:
    return MIRROR_MARKER in text


def annotate_text(text: str | None, upstream_url: str) -> str | None:
    """
    Prepend the notice to README content.

    Args:
        text: Current README content, or None if the file doesn't exist
        upstream_url: URL the notice points at

    Returns:
        The new content, or None if the notice is already there
    """
    if text is not None and has_mirror_notice(text):
        return None

    notice = build_notice(upstream_url)
    if text is None:
        return notice + "\n"
    return notice + "\n\n" + text


def select_readme(work_tree: Path) -> tuple[str, bool]:
    """
    Pick the file to annotate.

    Symlinked candidates are passed over. If none is usable the default name
    is returned as a file to create.

    Returns:
        Tuple of (filename, exists)
    """
    for candidate in README_CANDIDATES:
        path = work_tree / candidate
        # A link may point anywhere on this machine; never follow it
        if path.is_symlink():
            continue
        if path.is_file():
            return candidate, True
    return DEFAULT_README, False


@contextmanager
def scratch_checkout() -> Iterator[tuple[Path, Path]]:
    """
    Yield a private (work_tree, index_file) pair, removed on exit.
    """
    with tempfile.TemporaryDirectory(prefix="gh-mirror-") as tmp:
        root = Path(tmp)
        work_tree = root / "tree"
        work_tree.mkdir()
        yield work_tree, root / "index"


def add_mirror_notice(
    git: VersionControl,
    repo_path: Path,
    message: str = COMMIT_MESSAGE,
) -> AnnotationResult:
    """
    Add the provenance notice to the mirror's README, committing at most once.

    A repository without an upstream remote is skipped with a warning. Git
    failures while checking out or committing propagate as GitError.
    """
    upstream_url = git.get_remote_url(repo_path, UPSTREAM_REMOTE)
    if not upstream_url:
        print_warning(f"No upstream remote found for {repo_path.name}, skipping mirror notice")
        return AnnotationResult(skipped=True, reason="no upstream remote")

    with scratch_checkout() as (work_tree, index_file):
        if not git.checkout_tree(repo_path, work_tree, index_file):
            print_debug("Repository has no commits yet")

        readme, exists = select_readme(work_tree)
        readme_path = work_tree / readme
        if not exists:
            print_info(f"No README found, creating {readme}...")
            if readme_path.is_symlink():
                # Replace the link with a regular file instead of writing through it
                readme_path.unlink()

        current = readme_path.read_bytes().decode(_ENCODING, _ERRORS) if exists else None
        updated = annotate_text(current, upstream_url)
        if updated is None:
            print_debug(f"Mirror notice already exists in {readme}")
            return AnnotationResult(readme=readme, reason="notice already present")

        readme_path.write_bytes(updated.encode(_ENCODING, _ERRORS))
        print_debug(f"Added mirror notice to {readme}")

        committed = git.commit_work_tree(repo_path, work_tree, index_file, message)
        if committed:
            print_info(f"Committed mirror notice in {readme}")

    return AnnotationResult(readme=readme, committed=committed)
