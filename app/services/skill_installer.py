"""Skill installer — materializes an owner's skill sandbox from cached repos.

The destination ``<data_dir>/gateways/<owner_id>/skills`` is owned entirely
by this module: every install wipes it and rebuilds it from the given skill
list, so the result never carries residue from a previous call.
"""

from __future__ import annotations

import asyncio
import logging
import shutil
from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol

from app.services.errors import InstallationError, InvalidSourceError, RepoSyncError
from app.services.repo_cache import RepoCache
from app.utils.locks import KeyedLocks
from app.utils.paths import is_safe_segment, is_within, last_path_segment, slugify

logger = logging.getLogger(__name__)


class SkillSource(Protocol):
    name: str
    git_url: str | None
    git_path: str | None


@dataclass
class InstallReport:
    installed: list[str] = field(default_factory=list)
    skipped: list[tuple[str, str]] = field(default_factory=list)  # (skill name, reason)


def install_dir_name(skill: SkillSource, checkout: Path) -> str:
    """Directory name for *skill* under the owner's skills root.

    Normally the last segment of ``git_path``; a repo-root skill (``"."``)
    falls back to its slugified name, then to the checkout key.
    """
    name = last_path_segment(skill.git_path or "")
    if is_safe_segment(name):
        return name
    return slugify(skill.name) or checkout.name


def _copy_filter(checkout: Path):
    """shutil.copytree ignore-callback.

    Drops .git, symlinks leaving *checkout* and symlinks pointing at their own
    directory or an ancestor of it, which copytree would follow forever.
    """

    def _ignore(directory: str, names: list[str]) -> set[str]:
        ignored = {".git"} & set(names)
        for name in names:
            entry = Path(directory) / name
            if not entry.is_symlink():
                continue
            if not is_within(entry, checkout):
                logger.warning("Not copying symlink escaping the repository: %s", entry)
                ignored.add(name)
            elif is_within(Path(directory), entry):
                logger.warning("Not copying symlink that loops back to its parent: %s", entry)
                ignored.add(name)
        return ignored

    return _ignore


class SkillInstaller:
    def __init__(self, data_dir: Path, cache: RepoCache):
        self.gateways_dir = (data_dir / "gateways").resolve()
        self.cache = cache
        # Installs for one owner delete-then-recreate the same tree
        self._locks = KeyedLocks()

    def skills_dir(self, owner_id: str) -> Path:
        if not is_safe_segment(owner_id):
            raise InstallationError(f"Invalid owner id: {owner_id!r}")
        return self.gateways_dir / owner_id / "skills"

    async def install_all(self, owner_id: str, skills: Iterable[SkillSource]) -> InstallReport:
        """Replace *owner_id*'s installed skills with exactly *skills*.

        Skills without a source, escaping their repository, whose source is
        missing or whose repository cannot be synced are skipped with a
        warning.  Filesystem failures abort with InstallationError.
        """
        dest_root = self.skills_dir(owner_id)

        async with self._locks.hold(owner_id):
            try:
                await asyncio.to_thread(self._reset, dest_root)
            except OSError as exc:
                raise InstallationError(f"Could not prepare {dest_root}: {exc}") from exc

            report = InstallReport()
            for skill in skills:
                if not skill.git_url or not skill.git_path:
                    logger.debug("Skill '%s' has no git source; nothing to install", skill.name)
                    continue
                reason = await self._install_one(skill, dest_root, report)
                if reason:
                    logger.warning("Skipping skill '%s' for %s: %s", skill.name, owner_id, reason)
                    report.skipped.append((skill.name, reason))

        logger.info(
            "Installed %d skill(s) for %s (%d skipped)",
            len(report.installed), owner_id, len(report.skipped),
        )
        return report

    async def _install_one(self, skill: SkillSource, dest_root: Path, report: InstallReport) -> str | None:
        """Install a single skill; return a skip reason or None on success."""
        try:
            checkout = await self.cache.resolve_checkout(skill.git_url)
        except (InvalidSourceError, RepoSyncError) as exc:
            return str(exc)

        source = checkout / skill.git_path
        if not is_within(source, checkout):
            return f"path traversal blocked: {skill.git_path}"
        if not source.is_dir():
            return f"source not found: {source}"

        name = install_dir_name(skill, checkout)
        dest = dest_root / name
        if dest.exists():
            return f"another skill is already installed as '{name}'"

        try:
            await asyncio.to_thread(
                shutil.copytree, source.resolve(), dest,
                ignore=_copy_filter(checkout), ignore_dangling_symlinks=True,
            )
        except OSError as exc:
            raise InstallationError(f"Copying '{skill.name}' into {dest} failed: {exc}") from exc

        report.installed.append(name)
        return None

    @staticmethod
    def _reset(dest_root: Path) -> None:
        if dest_root.is_symlink():
            dest_root.unlink()
        elif dest_root.exists():
            shutil.rmtree(dest_root)
        dest_root.mkdir(parents=True)
