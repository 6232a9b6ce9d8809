"""Skill scanner — discovers SKILL.md bundles inside a repository checkout."""

from __future__ import annotations

import asyncio
import logging
import os
from collections.abc import Iterator
from dataclasses import dataclass
from pathlib import Path

from app.services.repo_cache import RepoCache
from app.utils.markdown import read_skill_description

logger = logging.getLogger(__name__)

SKILL_MARKER = "SKILL.md"

# Version-control metadata and dependency caches are never skill bundles
SKIP_DIRS = frozenset({".git", "node_modules"})


@dataclass
class ScanResult:
    name: str
    git_path: str  # relative to the checkout root, "." for the root itself
    description: str | None = None


def iter_skill_dirs(root: Path) -> Iterator[Path]:
    """Yield every directory below *root* that contains a SKILL.md.

    The root itself is not considered.  Uses an explicit stack instead of
    recursion so very deep trees cannot exhaust the call stack; bundles
    nested inside other bundles are reported as well.  Symlinked
    directories are not followed.
    """
    stack = [root]
    while stack:
        current = stack.pop()
        try:
            entries = sorted(os.scandir(current), key=lambda e: e.name, reverse=True)
        except OSError as exc:
            logger.warning("Skipping unreadable directory %s: %s", current, exc)
            continue

        for entry in entries:
            if entry.name in SKIP_DIRS or not entry.is_dir(follow_symlinks=False):
                continue
            path = Path(entry.path)
            if (path / SKILL_MARKER).is_file():
                yield path
            stack.append(path)


def scan_checkout(root: Path) -> Iterator[ScanResult]:
    """Lazily describe the skill bundles inside an existing checkout."""
    root_marker = root / SKILL_MARKER
    if root_marker.is_file():
        yield ScanResult(
            name=root.name,
            git_path=".",
            description=read_skill_description(root_marker),
        )

    for skill_dir in iter_skill_dirs(root):
        yield ScanResult(
            name=skill_dir.name,
            git_path=skill_dir.relative_to(root).as_posix(),
            description=read_skill_description(skill_dir / SKILL_MARKER),
        )


class SkillScanner:
    def __init__(self, cache: RepoCache):
        self.cache = cache

    async def scan(self, git_url: str) -> list[ScanResult]:
        """Clone/update *git_url* and list the skill bundles it contains.

        InvalidSourceError and RepoSyncError from the cache propagate.
        """
        root = await self.cache.resolve_checkout(git_url)
        results = await asyncio.to_thread(lambda: list(scan_checkout(root)))
        logger.info("Scanned %s: %d skill(s) found", git_url, len(results))
        return results
