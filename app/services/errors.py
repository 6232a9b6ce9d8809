"""Service-level exceptions translated to HTTP errors by the routers."""


class SkillError(Exception):
    """Base class for skill scanning / installation failures."""


class InvalidSourceError(SkillError):
    """The git URL is malformed or uses a disallowed scheme."""


class RepoSyncError(SkillError):
    """``git clone`` / ``git pull`` failed or timed out."""

    def __init__(self, message: str, stderr: str = ""):
        super().__init__(f"{message}: {stderr}" if stderr else message)
        self.stderr = stderr


class InstallationError(SkillError):
    """Unexpected filesystem failure while materializing an owner's skills."""


class GatewayError(Exception):
    """The gateway runtime could not be started or stopped."""
