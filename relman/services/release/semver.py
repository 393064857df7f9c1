from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass

from relman.core.config import DEFAULT_PRIMARY_BRANCHES
from relman.services.release.model import ReleaseBump


_SEMVER_RE = re.compile(
    r"^v?(0|[1-9]\d*)\.(0|[1-9]\d*)\.(0|[1-9]\d*)"
    r"(?:-([0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*))?"
    r"(?:\+[0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*)?$"
)
_BRANCH_UNSAFE_RE = re.compile(r"[^0-9A-Za-z-]+")
_DASH_RUN_RE = re.compile(r"-{2,}")


def _identifier_key(identifier: str) -> tuple[int, int, str]:
    # numeric identifiers sort before alphanumeric ones
    if identifier.isdigit():
        return (0, int(identifier), "")
    return (1, 0, identifier)


@dataclass(frozen=True, slots=True)
class SemVer:
    """A parsed version; build metadata is dropped on parse."""

    major: int
    minor: int
    patch: int
    prerelease: tuple[str, ...] = ()

    @property
    def is_prerelease(self) -> bool:
        return bool(self.prerelease)

    def precedence_key(self) -> tuple[object, ...]:
        """Sort key implementing semver precedence (a release beats its pre-releases)."""
        return (
            self.major,
            self.minor,
            self.patch,
            0 if self.prerelease else 1,
            tuple(_identifier_key(p) for p in self.prerelease),
        )

    def __lt__(self, other: SemVer) -> bool:
        return self.precedence_key() < other.precedence_key()

    def __le__(self, other: SemVer) -> bool:
        return self.precedence_key() <= other.precedence_key()

    def __gt__(self, other: SemVer) -> bool:
        return self.precedence_key() > other.precedence_key()

    def __ge__(self, other: SemVer) -> bool:
        return self.precedence_key() >= other.precedence_key()

    def core(self) -> str:
        return f"{self.major}.{self.minor}.{self.patch}"

    def __str__(self) -> str:
        if self.prerelease:
            return f"{self.core()}-{'.'.join(self.prerelease)}"
        return self.core()


ZERO = SemVer(0, 0, 0)


def parse_version(tag: str) -> SemVer | None:
    """Parse `[v]MAJOR.MINOR.PATCH[-pre][+build]`; None if the tag is not a version."""
    m = _SEMVER_RE.match(tag.strip())
    if m is None:
        return None
    prerelease = tuple(m.group(4).split(".")) if m.group(4) else ()
    return SemVer(int(m.group(1)), int(m.group(2)), int(m.group(3)), prerelease)


def latest_version(tags: Iterable[str]) -> SemVer:
    """Highest version among `tags`, 0.0.0 when none of them parses."""
    versions = [v for v in (parse_version(t) for t in tags) if v is not None]
    if not versions:
        return ZERO
    return max(versions, key=SemVer.precedence_key)


def branch_suffix(branch: str) -> str:
    """Make a branch name safe for a tag suffix: `feature/x` -> `feature-x`."""
    safe = _BRANCH_UNSAFE_RE.sub("-", branch)
    return _DASH_RUN_RE.sub("-", safe).strip("-")


@dataclass(slots=True)
class ProposedVersion:
    """Next semver release, built from the latest existing version.

    At most one increment is applied; a higher component resets the lower ones.
    """

    major: int = 0
    minor: int = 0
    patch: int = 0
    bump: ReleaseBump | None = None

    @classmethod
    def from_version(cls, version: SemVer) -> ProposedVersion:
        return cls(version.major, version.minor, version.patch)

    def increment(self, major: bool = False, minor: bool = False, patch: bool = False) -> None:
        """Apply the highest requested increment in place; no flag leaves it unchanged.

        Raises:
            ValueError: If an increment was already applied.
        """
        kind: ReleaseBump | None
        if major:
            kind = "major"
        elif minor:
            kind = "minor"
        elif patch:
            kind = "patch"
        else:
            return

        if self.bump is not None:
            raise ValueError(f"version already incremented ({self.bump})")

        match kind:
            case "major":
                self.major, self.minor, self.patch = self.major + 1, 0, 0
            case "minor":
                self.minor, self.patch = self.minor + 1, 0
            case "patch":
                self.patch += 1
        self.bump = kind

    def version(self) -> str:
        return f"{self.major}.{self.minor}.{self.patch}"

    def format_release(
        self,
        module: str = "",
        branch: str = "",
        primary_branches: tuple[str, ...] = DEFAULT_PRIMARY_BRANCHES,
    ) -> str:
        """Render `MAJOR.MINOR.PATCH[-module][-branch]`.

        The module always comes before the branch. Releases cut from a primary
        branch carry no branch part.
        """
        parts = [self.version()]
        if module:
            parts.append(module)
        if branch and branch not in primary_branches:
            suffix = branch_suffix(branch)
            if suffix:
                parts.append(suffix)
        return "-".join(parts)


def propose_semver(tags: Iterable[str]) -> ProposedVersion:
    return ProposedVersion.from_version(latest_version(tags))
