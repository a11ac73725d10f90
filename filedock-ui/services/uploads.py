"""Helpers for multipart uploads (filename decoding, atomic save)."""

from __future__ import annotations

import os
import uuid
from typing import Any


CHUNK_SIZE = 64 * 1024


def decode_upload_filename(name: str) -> str:
    """Reinterpret a filename read as single-byte (latin-1) text as UTF-8.

    Browsers send UTF-8 filenames; some multipart stacks hand them over as
    latin-1 text, which turns ``日本語.txt`` into mojibake. Names that are
    already proper text (not latin-1 encodable) or whose bytes are not valid
    UTF-8 are returned unchanged.
    """
    s = name or ""
    try:
        return s.encode("latin-1").decode("utf-8")
    except (UnicodeEncodeError, UnicodeDecodeError):
        return s


def split_upload_path(name: str) -> list[str]:
    """Split a (decoded) folder-upload filename into safe path segments."""
    parts = [p for p in (name or "").replace("\\", "/").split("/") if p not in ("", ".")]
    if not parts or ".." in parts:
        raise ValueError("invalid_name")
    return parts


def save_upload(storage: Any, dest_path: str) -> int:
    """Stream an uploaded file into ``dest_path`` and return the byte count.

    Data goes to a temp sibling first and is moved into place with
    ``os.replace``; an existing file at ``dest_path`` is overwritten.
    """
    tmp_path = f"{dest_path}.upload.{uuid.uuid4().hex}.tmp"
    total = 0
    try:
        with open(tmp_path, "wb") as outfp:
            while True:
                chunk = storage.stream.read(CHUNK_SIZE)
                if not chunk:
                    break
                total += len(chunk)
                outfp.write(chunk)
        os.replace(tmp_path, dest_path)
    except BaseException:
        try:
            os.remove(tmp_path)
        except OSError:
            pass
        raise
    return total
