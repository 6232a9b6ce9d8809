"""Content-addressed cache of skill repository checkouts.

Each distinct git URL maps to ``<data_dir>/skill-repos/<key>`` where the key
is the first 16 hex characters of SHA-256(url).  The first resolve clones,
later resolves pull in place.  Checkouts are shared by every skill sourced
from the same URL and are never garbage-collected here.
"""

from __future__ import annotations

import hashlib
import logging
import re
import shutil
from pathlib import Path

from app.adapters.base import GitClient
from app.services.errors import InvalidSourceError
from app.utils.locks import KeyedLocks

logger = logging.getLogger(__name__)

_ACCEPTED_URL = re.compile(r"^(https?://|git@)")


def validate_git_url(git_url: str) -> None:
    """Raise InvalidSourceError unless *git_url* is http(s):// or git@..."""
    if not isinstance(git_url, str) or not _ACCEPTED_URL.match(git_url):
        raise InvalidSourceError(f"Invalid git URL: {git_url}")


def cache_key(git_url: str) -> str:
    return hashlib.sha256(git_url.encode()).hexdigest()[:16]


class RepoCache:
    def __init__(
        self,
        data_dir: Path,
        git: GitClient,
        *,
        clone_timeout: float = 60.0,
        pull_timeout: float = 30.0,
    ):
        self.root = (data_dir / "skill-repos").resolve()
        self.git = git
        self.clone_timeout = clone_timeout
        self.pull_timeout = pull_timeout
        # One mutex per checkout so concurrent clones/pulls never share a directory
        self._locks = KeyedLocks()

    def checkout_path(self, git_url: str) -> Path:
        return self.root / cache_key(git_url)

    async def resolve_checkout(self, git_url: str) -> Path:
        """Clone or update *git_url* and return the absolute checkout path.

        Raises InvalidSourceError for a disallowed URL (before any I/O) and
        RepoSyncError when git fails or times out.
        """
        validate_git_url(git_url)

        key = cache_key(git_url)
        repo_dir = self.root / key

        async with self._locks.hold(key):
            if (repo_dir / ".git").exists():
                logger.debug("Updating cached checkout %s for %s", key, git_url)
                await self.git.pull(repo_dir, timeout=self.pull_timeout)
            else:
                if repo_dir.exists():
                    # Leftover from an interrupted clone; git refuses non-empty targets
                    logger.warning("Removing incomplete checkout %s", repo_dir)
                    shutil.rmtree(repo_dir)
                repo_dir.parent.mkdir(parents=True, exist_ok=True)
                await self.git.clone(git_url, repo_dir, depth=1, timeout=self.clone_timeout)

        return repo_dir
