"""Path helpers shared by the skill registry and the installer."""

from __future__ import annotations

import re
from pathlib import Path


def last_path_segment(path: str) -> str:
    """Return the final non-empty ``/``-separated segment of *path*.

    Falls back to *path* itself when there is no non-empty segment, so
    ``"a/b/c/" -> "c"``, ``"." -> "."`` and ``"" -> ""``.
    """
    segments = [s for s in path.split("/") if s]
    return segments[-1] if segments else path


def is_safe_segment(name: str) -> bool:
    """True if *name* can be used as a single directory name under a root."""
    return bool(name) and name not in (".", "..") and "/" not in name and "\\" not in name


def slugify(value: str) -> str:
    return re.sub(r"[^a-z0-9]+", "-", value.lower()).strip("-")


def is_within(path: Path, root: Path) -> bool:
    """True if *path* is *root* or a descendant, after resolving symlinks and ``..``.

    A path that cannot be resolved (symlink loop) is never inside *root*.
    """
    try:
        resolved = path.resolve()
        resolved_root = root.resolve()
    except (OSError, RuntimeError):
        return False
    return resolved == resolved_root or resolved.is_relative_to(resolved_root)
