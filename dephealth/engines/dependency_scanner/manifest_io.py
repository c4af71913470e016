"""Manifest file I/O: whole-file reads and atomic replace-on-write."""

from __future__ import annotations

import os
import tempfile
from pathlib import Path

from dephealth.exceptions import ManifestReadError, ManifestWriteError


def read_manifest(path: Path) -> str:
    """Read a manifest as UTF-8, raising :class:`ManifestReadError` on failure.

    Line endings are returned untranslated so rewrites can keep untouched
    lines byte-identical.
    """
    try:
        with path.open(encoding="utf-8", newline="") as f:
            return f.read()
    except (OSError, UnicodeDecodeError) as exc:
        raise ManifestReadError(str(path), str(exc)) from exc


def write_manifest_atomic(path: Path, content: str) -> None:
    """Replace *path* with *content* in one step.

    The new content is written to a temp file in the same directory and
    moved over the original with :func:`os.replace`, so a failed write
    never leaves a truncated manifest behind.
    """
    tmp_name: str | None = None
    try:
        mode = path.stat().st_mode & 0o777 if path.exists() else None
        with tempfile.NamedTemporaryFile(
            "w",
            encoding="utf-8",
            dir=path.parent,
            prefix=f".{path.name}.",
            suffix=".tmp",
            delete=False,
            newline="",
        ) as tmp:
            tmp_name = tmp.name
            tmp.write(content)
            tmp.flush()
            os.fsync(tmp.fileno())
        if mode is not None:
            os.chmod(tmp_name, mode)
        os.replace(tmp_name, path)
    except OSError as exc:
        if tmp_name is not None and os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise ManifestWriteError(str(path), str(exc)) from exc
