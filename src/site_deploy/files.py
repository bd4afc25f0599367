"""Local content tree enumeration.

Entries are classified with stat(), which follows symlinks.  Anything that
cannot be stat'ed (broken link, permission denied) fails the whole walk, as
does a symlink that loops back into a directory already being walked.
"""

from __future__ import annotations

import errno
import stat
from pathlib import Path

from site_deploy.exceptions import NotFoundError


def walk_files(root: str | Path) -> list[Path]:
    """Return every regular file under root as an absolute path.

    Directory entries are visited in name order; a subdirectory's files are
    appended before the walk continues with the next entry.
    """
    root_path = Path(root).absolute()
    if not root_path.exists():
        raise NotFoundError(f"Local path does not exist: {root_path}")
    if not root_path.is_dir():
        raise NotADirectoryError(errno.ENOTDIR, "Not a directory", str(root_path))

    files: list[Path] = []
    _walk(root_path, files, active=set())
    return files


def _walk(directory: Path, files: list[Path], *, active: set[Path]) -> None:
    real = directory.resolve()
    if real in active:
        raise OSError(errno.ELOOP, "Symlink cycle detected", str(directory))
    active.add(real)
    try:
        for entry in sorted(directory.iterdir(), key=lambda p: p.name):
            mode = entry.stat().st_mode
            if stat.S_ISDIR(mode):
                _walk(entry, files, active=active)
            elif stat.S_ISREG(mode):
                files.append(entry)
            else:
                raise OSError(errno.EINVAL, "Not a regular file or directory", str(entry))
    finally:
        active.discard(real)
