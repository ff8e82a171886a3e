"""
Tests for the mirror store.
"""

from pathlib import Path

from ghmirror.store import MirrorStore, list_subdirectories


def test_list_subdirectories(tmp_path: Path) -> None:
    """Only visible directories are listed, sorted by name."""
    for name in ("zeta", "alpha", ".cache"):
        (tmp_path / name).mkdir()
    (tmp_path / "notes.txt").write_text("not a mirror")

    assert list_subdirectories(tmp_path) == ["alpha", "zeta"]


def test_missing_root(tmp_path: Path) -> None:
    store = MirrorStore(tmp_path / "nope")

    assert store.exists() is False
    assert store.names() == []
    assert store.entries() == []


def test_ensure_root(tmp_path: Path) -> None:
    store = MirrorStore(tmp_path / "a" / "b")

    store.ensure_root()
    store.ensure_root()

    assert store.exists() is True


def test_entries(tmp_path: Path) -> None:
    (tmp_path / "foo").mkdir()
    store = MirrorStore(tmp_path)

    entries = store.entries()

    assert [e.name for e in entries] == ["foo"]
    assert entries[0].local_path == tmp_path / "foo"
    assert entries[0].upstream_url is None
    assert store.has("foo") is True
    assert store.has("bar") is False


def test_custom_enumerator(tmp_path: Path) -> None:
    """Something other than a directory listing can pick the entries."""
    store = MirrorStore(tmp_path, enumerator=lambda root: ["b", "a"])

    assert store.names() == ["b", "a"]
    assert store.path_for("a") == tmp_path / "a"


def test_root_expands_user() -> None:
    store = MirrorStore(Path("~/gh-mirrors"))

    assert "~" not in str(store.root)
