"""Folder-to-ZIP export.

The archive root is the folder's *contents*: ``docs/a.txt`` is stored as
``a.txt``, ``docs/sub/b.txt`` as ``sub/b.txt``. Symlinks are never archived,
so a link cannot pull files from outside the upload root into a download.
"""

from __future__ import annotations

import os
import zipfile

from services.logging_setup import core_log


ZIP_COMPRESSION = zipfile.ZIP_DEFLATED
ZIP_COMPRESSLEVEL = 9


def zip_output_path(zip_dir: str, folder_name: str) -> str:
    """Where the archive for ``folder_name`` lives (overwritten on every export).

    ``folder_name`` must be a single path segment; distinct folders always map
    to distinct archives.
    """
    if not folder_name or folder_name in (".", "..") or "/" in folder_name or "\\" in folder_name:
        raise ValueError("invalid_name")
    return os.path.join(zip_dir, folder_name + ".zip")


def download_name_for(zip_path: str) -> str:
    # Header-safe name for Content-Disposition; the file on disk keeps its name.
    name = os.path.basename(zip_path)
    return name.replace("\r", "").replace("\n", "").replace('"', "") or "download.zip"


def _warn_vanished(path: str, err: OSError) -> None:
    core_log("warning", "archive.warning", path=path, error=err)


def zip_directory(src_dir: str, zip_path: str) -> int:
    """Write every file under ``src_dir`` into ``zip_path`` and return the file count.

    - Entries are relative to ``src_dir`` (no wrapper directory).
    - Empty subdirectories are kept as ``name/`` entries.
    - Symlinked files and directories are skipped.
    - Paths that vanish during the walk are logged and skipped; any other
      error aborts the export.
    """
    src_dir = os.path.abspath(src_dir)
    if not os.path.isdir(src_dir):
        raise FileNotFoundError(src_dir)

    os.makedirs(os.path.dirname(zip_path) or ".", exist_ok=True)

    def _onerror(err: OSError) -> None:
        if isinstance(err, FileNotFoundError):
            _warn_vanished(getattr(err, "filename", "") or "", err)
            return
        raise err

    count = 0
    with zipfile.ZipFile(
        zip_path,
        "w",
        compression=ZIP_COMPRESSION,
        compresslevel=ZIP_COMPRESSLEVEL,
        allowZip64=True,
    ) as zf:
        for dirpath, dirnames, filenames in os.walk(src_dir, topdown=True, onerror=_onerror):
            # Pruning here keeps os.walk out of linked directories.
            dirnames[:] = sorted(d for d in dirnames if not os.path.islink(os.path.join(dirpath, d)))
            files = [f for f in sorted(filenames) if not os.path.islink(os.path.join(dirpath, f))]
            rel_dir = os.path.relpath(dirpath, src_dir)
            rel_dir = "" if rel_dir == "." else rel_dir

            if rel_dir and not files and not dirnames:
                zf.writestr(rel_dir.replace(os.sep, "/") + "/", b"")

            for fn in files:
                fp = os.path.join(dirpath, fn)
                arc = os.path.join(rel_dir, fn).replace(os.sep, "/")
                try:
                    zf.write(fp, arc)
                except FileNotFoundError as e:
                    _warn_vanished(fp, e)
                    continue
                count += 1

    core_log("info", "archive.done", src=src_dir, zip=zip_path, files=count)
    return count
