"""Layered directory merging.

``merge_tree`` composes one fragment directory into the destination tree
under two policies: an exclusion predicate (entries never copied) and a
force-overwrite predicate (files that replace existing destination content).
Everything else follows "first fragment wins, later fragments fill gaps".

Sibling subdirectories are merged concurrently.  A failure does not roll
back files already written; the composer owns cleanup.
"""

from __future__ import annotations

import asyncio
import os
import shutil
from collections.abc import Iterable
from fnmatch import fnmatchcase
from pathlib import Path, PurePosixPath

from arsi_scaffold.errors import NotFoundError, ScaffoldIOError

_GLOB_CHARS = frozenset("*?[")


# ---------------------------------------------------------------------------
# Path predicates
# ---------------------------------------------------------------------------


class PathPredicate:
    """An ordered set of exact names and glob patterns.

    A pattern matches a fragment-relative path when it equals the entry name
    or the full POSIX path, or when it is a glob matching either of them.
    """

    def __init__(self, patterns: Iterable[str] = ()) -> None:
        self.patterns: tuple[str, ...] = tuple(dict.fromkeys(p for p in patterns if p))

    def matches(self, rel_path: PurePosixPath | str) -> bool:
        rel = PurePosixPath(rel_path)
        posix = rel.as_posix()
        name = rel.name
        for pattern in self.patterns:
            if pattern in (name, posix):
                return True
            if _GLOB_CHARS.intersection(pattern) and (
                fnmatchcase(posix, pattern) or fnmatchcase(name, pattern)
            ):
                return True
        return False

    def union(self, other: Iterable[str] | "PathPredicate") -> "PathPredicate":
        extra = other.patterns if isinstance(other, PathPredicate) else tuple(other)
        return PathPredicate((*self.patterns, *extra))

    def __bool__(self) -> bool:
        return bool(self.patterns)

    def __repr__(self) -> str:
        return f"PathPredicate({list(self.patterns)!r})"


# ---------------------------------------------------------------------------
# Merging
# ---------------------------------------------------------------------------


async def merge_tree(
    source_root: str | Path,
    dest_root: str | Path,
    exclude: PathPredicate | None = None,
    force_overwrite: PathPredicate | None = None,
) -> list[Path]:
    """Recursively merge *source_root* into *dest_root*.

    Args:
        source_root: Fragment directory to read from.
        dest_root: Destination tree, created if absent.
        exclude: Entries (files or directories) skipped entirely.
        force_overwrite: Files copied even when the destination exists.

    Returns:
        Sorted list of destination files written by this call.

    Raises:
        NotFoundError: If *source_root* is not a directory.
        ScaffoldIOError: On the first unreadable source or unwritable
            destination.
    """
    source = Path(source_root)
    if not source.is_dir():
        raise NotFoundError(f"Source directory not found: {source}", source)
    written = await _merge_dir(
        source,
        Path(dest_root),
        PurePosixPath(),
        exclude or PathPredicate(),
        force_overwrite or PathPredicate(),
    )
    return sorted(written)


async def copy_tree(
    source_root: str | Path,
    dest_root: str | Path,
    exclude: PathPredicate | None = None,
) -> list[Path]:
    """Merge with no force-overwrite set (used for the first fragment)."""
    return await merge_tree(source_root, dest_root, exclude, None)


async def _merge_dir(
    source_root: Path,
    dest_root: Path,
    rel: PurePosixPath,
    exclude: PathPredicate,
    force_overwrite: PathPredicate,
) -> list[Path]:
    src_dir = source_root / rel
    dest_dir = dest_root / rel

    try:
        await asyncio.to_thread(dest_dir.mkdir, parents=True, exist_ok=True)
    except OSError as exc:
        raise ScaffoldIOError.from_os_error("create directory", dest_dir, exc) from exc

    try:
        entries = await asyncio.to_thread(_list_entries, src_dir)
    except OSError as exc:
        raise ScaffoldIOError.from_os_error("read directory", src_dir, exc) from exc

    written: list[Path] = []
    subdirs: list[PurePosixPath] = []
    for name, is_dir in entries:
        child = rel / name
        if exclude.matches(child):
            continue
        if is_dir:
            subdirs.append(child)
            continue
        target = dest_root / child
        copied = await asyncio.to_thread(
            _copy_file, source_root / child, target, force_overwrite.matches(child)
        )
        if copied:
            written.append(target)

    # Every sibling finishes before the first error is raised, so nothing
    # is still writing once the caller starts cleaning up.
    results = await asyncio.gather(
        *(_merge_dir(source_root, dest_root, d, exclude, force_overwrite) for d in subdirs),
        return_exceptions=True,
    )
    for result in results:
        if isinstance(result, BaseException):
            raise result
        written.extend(result)
    return written


def _list_entries(directory: Path) -> list[tuple[str, bool]]:
    with os.scandir(directory) as it:
        return sorted((entry.name, entry.is_dir()) for entry in it)


def _copy_file(source: Path, target: Path, overwrite: bool) -> bool:
    """Copy *source* to *target* unless *target* exists and *overwrite* is off."""
    if os.path.lexists(target) and not overwrite:
        return False
    if target.is_dir():
        raise ScaffoldIOError(f"Failed to copy {source}: {target} is a directory", target)
    try:
        shutil.copy(source, target)
    except OSError as exc:
        raise ScaffoldIOError.from_os_error("copy", source, exc) from exc
    return True
