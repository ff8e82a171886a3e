"""
The on-disk collection of mirrors.

"A directory is just a database that never asked to be one." — schema.cx
"""

from pathlib import Path
from typing import Callable, Iterable

from .models import MirrorEntry

# Produces the entry names held by a store rooted at the given path
Enumerator = Callable[[Path], Iterable[str]]


def list_subdirectories(root: Path) -> list[str]:
    """Default enumerator: every immediate, non-hidden subdirectory, sorted."""
    return sorted(
        child.name
        for child in root.iterdir()
        if child.is_dir() and not child.name.startswith(".")
    )


class MirrorStore:
    """
    Repository store: one directory per mirror, addressed by name.

    The set of entries comes from a pluggable enumerator so that something
    other than a directory listing can decide what gets synced.
    """

    def __init__(self, root: Path, enumerator: Enumerator | None = None) -> None:
        self.root = Path(root).expanduser().resolve()
        self._enumerate = enumerator or list_subdirectories

    def exists(self) -> bool:
        """Check whether the store root exists."""
        return self.root.is_dir()

    def ensure_root(self) -> None:
        self.root.mkdir(parents=True, exist_ok=True)

    def path_for(self, name: str) -> Path:
        """Directory of the mirror called `name`."""
        return self.root / name

    def has(self, name: str) -> bool:
        return self.path_for(name).exists()

    def names(self) -> list[str]:
        """Entry names in processing order."""
        if not self.exists():
            return []
        return list(self._enumerate(self.root))

    def entries(self) -> list[MirrorEntry]:
        """Entries without remote details (those are read lazily by callers)."""
        return [MirrorEntry(name=name, local_path=self.path_for(name)) for name in self.names()]
