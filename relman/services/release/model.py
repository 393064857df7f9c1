from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Literal

from relman.core.config import DEFAULT_PRIMARY_BRANCHES, DEFAULT_REMOTE, ReleaseScheme
from relman.git.identity import Identity
from relman.services.release.errors import ReleaseError

ReleaseBump = Literal["major", "minor", "patch"]


class ReleaseState(Enum):
    """Lifecycle of one release: PROPOSED -> CREATED -> PUSHED | PUSH_FAILED.

    PROPOSED is the implicit starting state of every name computed for a module;
    a dry run stops there and no ModuleRelease is recorded with it.
    CREATE_FAILED ends a proposal that could not be recorded as a tag.
    PUSH_FAILED never rolls back CREATED: the tag stays in the local repo.
    """

    PROPOSED = "proposed"
    CREATED = "created"
    PUSHED = "pushed"
    PUSH_FAILED = "push_failed"
    CREATE_FAILED = "create_failed"


@dataclass(frozen=True, slots=True)
class TagRef:
    name: str
    commit: str
    annotated: bool


@dataclass(frozen=True, slots=True)
class ReleaseRequest:
    """Everything one invocation needs, resolved from flags and config."""

    modules: tuple[str, ...] = ("",)
    scheme: ReleaseScheme = "date"
    inc_major: bool = False
    inc_minor: bool = False
    inc_patch: bool = False
    message: str = ""
    identity: Identity = field(default_factory=Identity)
    push: bool = False
    remote: str = DEFAULT_REMOTE
    ssh_key: Path | None = None
    primary_branches: tuple[str, ...] = DEFAULT_PRIMARY_BRANCHES


@dataclass(frozen=True, slots=True)
class ModuleRelease:
    """Outcome for one module of a batch."""

    module: str
    name: str
    state: ReleaseState
    tag: TagRef | None = None
    push_message: str | None = None
    error: ReleaseError | None = None

    @property
    def failed(self) -> bool:
        return self.state in (ReleaseState.CREATE_FAILED, ReleaseState.PUSH_FAILED)


@dataclass(frozen=True, slots=True)
class ReleaseBatch:
    releases: tuple[ModuleRelease, ...] = ()

    @property
    def names(self) -> tuple[str, ...]:
        return tuple(r.name for r in self.releases)

    @property
    def created(self) -> tuple[ModuleRelease, ...]:
        return tuple(r for r in self.releases if r.tag is not None)

    @property
    def create_failures(self) -> tuple[ModuleRelease, ...]:
        return tuple(r for r in self.releases if r.state is ReleaseState.CREATE_FAILED)

    @property
    def push_failures(self) -> tuple[ModuleRelease, ...]:
        return tuple(r for r in self.releases if r.state is ReleaseState.PUSH_FAILED)

    @property
    def ok(self) -> bool:
        return not any(r.failed for r in self.releases)
