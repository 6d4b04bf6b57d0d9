"""Exception hierarchy shared across difftargets."""


class DiffTargetsError(Exception):
    """Base class for all difftargets errors."""


class ConfigError(DiffTargetsError):
    """Raised when a configuration value has the wrong shape."""


class GitHubError(DiffTargetsError):
    """Raised when a GitHub API call fails after all retries."""

    def __init__(self, message: str, status: int | None = None):
        super().__init__(message)
        self.status = status
