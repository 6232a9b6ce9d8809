"""Abstract interfaces for the external tools the control plane drives.

Swap the git CLI or the OpenClaw runtime by implementing these contracts;
the test suite does exactly that with in-process fakes.
"""

from abc import ABC, abstractmethod
from pathlib import Path


class GitClient(ABC):
    """Minimal version-control operations needed by the repo cache."""

    @abstractmethod
    async def clone(self, url: str, dest: Path, *, depth: int = 1, timeout: float = 60.0) -> None:
        """Shallow-clone *url* into *dest*. Raises RepoSyncError on failure."""

    @abstractmethod
    async def pull(self, directory: Path, *, timeout: float = 30.0) -> None:
        """Update the checkout at *directory* in place. Raises RepoSyncError on failure."""


class GatewayRuntime(ABC):
    """Process manager for a single member's gateway."""

    @abstractmethod
    async def start(self, gateway_dir: Path, *, port: int, token: str, env: dict[str, str]) -> None:
        """Launch the gateway rooted at *gateway_dir*. Raises GatewayError on failure."""

    @abstractmethod
    async def stop(self, gateway_dir: Path) -> None:
        """Stop the gateway rooted at *gateway_dir*; a no-op if it is not running."""

    @abstractmethod
    async def is_running(self, port: int) -> bool:
        """Return True if a gateway is accepting connections on *port*."""
