"""Path resolution and directory listing inside the upload root.

User-facing paths are always relative to a single upload root. Resolution is
lexical (``normpath`` + ``commonpath``): anything that would step outside the
root raises ``PermissionError('path_not_allowed')``. Operations that read
through a path (listing, downloads, archiving) also pass ``follow=True`` so a
symlink cannot lead them out of the root.
"""

from __future__ import annotations

import enum
import os
import posixpath
import stat
from dataclasses import dataclass
from typing import List


class EntryKind(str, enum.Enum):
    FILE = "file"
    FOLDER = "folder"


@dataclass(frozen=True)
class DirectoryEntry:
    name: str
    kind: EntryKind
    relative_path: str

    @property
    def is_folder(self) -> bool:
        return self.kind is EntryKind.FOLDER


def _norm_rel(rel_path: str) -> str:
    # Browsers may send either separator; the root is the only anchor we accept.
    # Whitespace is part of a name and is kept.
    p = (rel_path or "").replace("\\", "/")
    return p.lstrip("/")


def _is_within(path: str, root: str) -> bool:
    try:
        return os.path.commonpath([path, root]) == root
    except ValueError:
        return False


def resolve(root: str, rel_path: str, *, follow: bool = False) -> str:
    """Map a URL-decoded relative path to an absolute path under ``root``.

    Existence is not checked here. With ``follow`` the symlink-resolved
    target must stay under the (resolved) root as well.
    """
    root_abs = os.path.abspath(root)
    ap = os.path.normpath(os.path.join(root_abs, _norm_rel(rel_path)))
    if not _is_within(ap, root_abs):
        raise PermissionError("path_not_allowed")
    if follow and not _is_within(os.path.realpath(ap), os.path.realpath(root_abs)):
        raise PermissionError("path_not_allowed")
    return ap


def resolve_child(root: str, rel_path: str, name: str, *, follow: bool = False) -> str:
    """Resolve ``name`` inside the directory ``rel_path``.

    The directory itself must really live under the root. The child is only
    followed with ``follow``: delete and rename act on a link, not its target.
    """
    resolve(root, rel_path, follow=True)
    return resolve(root, join_rel(rel_path, name), follow=follow)


def join_rel(rel_path: str, name: str) -> str:
    """Join a relative directory path and a child name with ``/``."""
    base = _norm_rel(rel_path).rstrip("/")
    if not base:
        return name
    return f"{base}/{name}"


def parent_of(rel_path: str) -> str:
    """Relative path of the parent directory ("" at the top level)."""
    p = _norm_rel(rel_path).rstrip("/")
    parent = posixpath.dirname(p)
    return "" if parent in ("", ".") else parent


def validate_name(name: str) -> str:
    """Return ``name`` unchanged if it is usable as a single path segment.

    Leading and trailing spaces are legal in file names, so they are kept;
    only a blank name is refused.
    """
    n = name or ""
    if not n.strip():
        raise ValueError("name_required")
    if n in (".", "..") or "/" in n or "\\" in n or "\x00" in n:
        raise ValueError("invalid_name")
    return n


def list_directory(root: str, rel_path: str) -> List[DirectoryEntry]:
    """List the immediate children of ``rel_path``.

    Each child is classified with a stat call: regular files are FILE,
    everything else is FOLDER. Raises ``FileNotFoundError`` when the path is
    missing or is not a directory.
    """
    rp = resolve(root, rel_path, follow=True)
    if not os.path.isdir(rp):
        raise FileNotFoundError(rel_path)

    items: List[DirectoryEntry] = []
    for name in sorted(os.listdir(rp)):
        full = os.path.join(rp, name)
        try:
            st = os.stat(full)
        except FileNotFoundError:
            # Removed (or a dangling symlink) between listdir and stat.
            continue
        kind = EntryKind.FILE if stat.S_ISREG(st.st_mode) else EntryKind.FOLDER
        items.append(DirectoryEntry(name=name, kind=kind, relative_path=join_rel(rel_path, name)))
    return items