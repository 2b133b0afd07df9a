"""In-memory file set produced by a renderer, and its disk commit.

A :class:`VirtualFS` maps normalized relative paths to file bytes. Writing
the same path twice is a renderer bug and raises
:class:`~oasgen.exceptions.VfsWriteConflict`; there is no overwrite.

:func:`commit_vfs` materializes a VFS under a base directory. It stages every
file into a temporary directory next to the target first, so a failure while
writing content leaves the target untouched. The final moves are individual
``os.replace`` calls: a failure there raises
:class:`~oasgen.exceptions.CommitError` and may leave some files in place, so
atomicity is best-effort only and callers must treat any ``CommitError`` as
a total failure.
"""

from __future__ import annotations

import logging
import os
import posixpath
import shutil
import tempfile
from pathlib import Path
from typing import Iterator, Union

from oasgen.exceptions import CommitError, InvalidPathError, VfsWriteConflict

logger = logging.getLogger(__name__)

Content = Union[str, bytes]


def normalize_path(path: str) -> str:
    """Return the canonical form of a VFS path.

    Backslashes become ``/``, duplicate slashes and ``.`` segments collapse,
    and ``..`` segments are resolved.

    Raises:
        InvalidPathError: If the path is empty, absolute (including drive
            letters), or escapes the root.
    """
    if not isinstance(path, str) or not path.strip():
        raise InvalidPathError("VFS path must be a non-empty string")
    candidate = path.replace("\\", "/")
    if candidate.startswith("/") or (len(candidate) > 1 and candidate[1] == ":"):
        raise InvalidPathError(f"VFS path must be relative: {path!r}")
    normalized = posixpath.normpath(candidate)
    if normalized == "." or normalized == ".." or normalized.startswith("../"):
        raise InvalidPathError(f"VFS path escapes the output root: {path!r}")
    return normalized


class VirtualFS:
    """A path-keyed set of generated files.

    Example::

        vfs = VirtualFS()
        vfs.write("src/index.ts", "export {};\\n")
        "src/index.ts" in vfs      # True
        vfs.read_text("src\\\\index.ts")
    """

    def __init__(self) -> None:
        self._files: dict[str, bytes] = {}

    def write(self, path: str, content: Content) -> str:
        """Add a file and return its normalized path.

        Text content is encoded as UTF-8.

        Raises:
            InvalidPathError: If *path* is not a valid relative path.
            VfsWriteConflict: If the normalized path was already written.
        """
        key = normalize_path(path)
        if key in self._files:
            raise VfsWriteConflict(key)
        self._files[key] = content.encode("utf-8") if isinstance(content, str) else bytes(content)
        logger.debug("VFS write %s (%d bytes)", key, len(self._files[key]))
        return key

    def contains(self, path: str) -> bool:
        try:
            return normalize_path(path) in self._files
        except InvalidPathError:
            return False

    def __contains__(self, path: object) -> bool:
        return isinstance(path, str) and self.contains(path)

    def __len__(self) -> int:
        return len(self._files)

    def __iter__(self) -> Iterator[str]:
        return iter(self.paths())

    def read(self, path: str) -> bytes:
        """Return the bytes stored at *path*.

        Raises:
            KeyError: If no file exists at *path*.
        """
        key = normalize_path(path)
        if key not in self._files:
            raise KeyError(key)
        return self._files[key]

    def read_text(self, path: str) -> str:
        return self.read(path).decode("utf-8")

    def paths(self) -> list[str]:
        """All paths, sorted."""
        return sorted(self._files)

    def files(self) -> list[tuple[str, bytes]]:
        """All ``(path, content)`` pairs, sorted by path."""
        return [(path, self._files[path]) for path in self.paths()]

    def as_dict(self) -> dict[str, bytes]:
        return dict(self.files())

    def total_bytes(self) -> int:
        return sum(len(content) for content in self._files.values())


def commit_vfs(vfs: VirtualFS, base_dir: Union[str, Path]) -> list[Path]:
    """Write every file of *vfs* under *base_dir*.

    Args:
        vfs: The files to write.
        base_dir: Target directory, created if missing.

    Returns:
        The absolute paths written, sorted.

    Raises:
        CommitError: If staging or moving any file fails. ``written`` on the
            exception lists files already moved into place.
    """
    base = Path(base_dir).resolve()
    try:
        base.mkdir(parents=True, exist_ok=True)
        staging = Path(tempfile.mkdtemp(prefix=".oasgen-", dir=base.parent))
    except OSError as exc:
        raise CommitError(f"Cannot prepare output directory {base}: {exc}") from exc

    written: list[Path] = []
    try:
        try:
            for rel_path, content in vfs.files():
                _stage_file(staging / rel_path, content)
        except OSError as exc:
            raise CommitError(f"Failed to stage generated files: {exc}") from exc

        for rel_path, _ in vfs.files():
            target = base / rel_path
            try:
                target.parent.mkdir(parents=True, exist_ok=True)
                os.replace(staging / rel_path, target)
            except OSError as exc:
                raise CommitError(
                    f"Failed to write {target} after {len(written)} of {len(vfs)} files: {exc}",
                    written=written,
                ) from exc
            written.append(target)
    finally:
        shutil.rmtree(staging, ignore_errors=True)

    logger.info("Committed %d files to %s", len(written), base)
    return written


def _stage_file(path: Path, content: bytes) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "wb") as f:
        f.write(content)
        f.flush()
        os.fsync(f.fileno())
