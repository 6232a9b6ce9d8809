"""git CLI adapter — shallow clone / pull through asyncio subprocesses."""

from __future__ import annotations

import logging
from pathlib import Path

from app.adapters.base import GitClient
from app.services.errors import RepoSyncError
from app.utils.process import run

logger = logging.getLogger(__name__)

# Never prompt for credentials; a private repo without access fails fast
_GIT_ENV = {"GIT_TERMINAL_PROMPT": "0"}


class CliGitClient(GitClient):
    """Shells out to the ``git`` binary on PATH."""

    def __init__(self, binary: str = "git"):
        self.binary = binary

    async def clone(self, url: str, dest: Path, *, depth: int = 1, timeout: float = 60.0) -> None:
        logger.info("Cloning %s → %s", url, dest)
        rc, _, err = await run(
            [self.binary, "clone", "--depth", str(depth), url, str(dest)],
            timeout=timeout,
            env_extra=_GIT_ENV,
        )
        if rc != 0:
            raise RepoSyncError("git clone failed", err)

    async def pull(self, directory: Path, *, timeout: float = 30.0) -> None:
        logger.info("Pulling %s", directory)
        rc, _, err = await run(
            [self.binary, "pull"],
            cwd=directory,
            timeout=timeout,
            env_extra=_GIT_ENV,
        )
        if rc != 0:
            raise RepoSyncError("git pull failed", err)
