from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

from relman.git.repository import GitError

ReleaseErrorKind = Literal[
    "not_a_repository",
    "remote_not_configured",
    "detached_head",
    "tag_exists",
    "missing_identity",
    "push_failed",
    "remote_tag_conflict",
    "git_failed",
]


@dataclass(frozen=True, slots=True)
class ReleaseError:
    kind: ReleaseErrorKind
    message: str
    hint: str | None = None

    def pretty(self) -> str:
        if self.hint:
            return f"{self.message} (hint: {self.hint})"
        return self.message


def from_git_error(error: GitError, *, hint: str | None = None) -> ReleaseError:
    """Lift a GitError into the release error vocabulary."""
    match error.kind:
        case "not_a_repository" | "remote_not_configured" | "detached_head" | "tag_exists":
            return ReleaseError(kind=error.kind, message=error.message, hint=hint)
        case _:
            return ReleaseError(kind="git_failed", message=error.message, hint=hint)
