"""Error codes for CLI exit status.

These values are used as process exit codes and should remain stable:
- 0: Success (including dry runs)
- 1: User error (bad flags, detached HEAD for semver releases)
- 2: Environment error (not a repository, remote not configured)
- 3: Release error (at least one tag could not be created)
- 4: Network error (tags created but at least one push failed)
"""

from enum import IntEnum

__all__ = ["ErrorCode"]


class ErrorCode(IntEnum):
    """Exit codes for the relman CLI."""

    OK = 0
    USER_ERROR = 1
    ENV_ERROR = 2
    RELEASE_ERROR = 3
    NETWORK_ERROR = 4

    def __str__(self) -> str:
        """Return human-readable name."""
        return self.name.lower().replace("_", " ")

    @property
    def is_success(self) -> bool:
        return self == ErrorCode.OK
