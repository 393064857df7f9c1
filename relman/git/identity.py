"""Tagger identity resolution.

Annotated tags need a name and an email. They come from explicit overrides
(--user/--email or .relman.toml) and fall back to the global git config.
A missing global identity is not an error here: it only matters once an
annotated tag is actually created.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from relman.core.result import Err, Ok, Result
from relman.platform.process import run as run_process

_GIT_CONFIG_TIMEOUT_SECONDS = 10.0

__all__ = ["Identity", "IdentityError", "load_global_identity", "resolve_identity"]


@dataclass(frozen=True, slots=True)
class Identity:
    """Tagger identity; empty strings mean unknown."""

    name: str = ""
    email: str = ""

    @property
    def is_complete(self) -> bool:
        return bool(self.name and self.email)


@dataclass(frozen=True, slots=True)
class IdentityError:
    message: str


def _global_value(key: str, cwd: Path) -> Result[str, IdentityError]:
    result = run_process(
        ["git", "config", "--global", "--get", key],
        cwd=cwd,
        timeout=_GIT_CONFIG_TIMEOUT_SECONDS,
    )
    match result:
        case Ok(stdout):
            return Ok(stdout.strip())
        case Err(e):
            # exit 1 means "key not set"
            if e.returncode == 1 and not e.stderr.strip():
                return Ok("")
            return Err(IdentityError(e.stderr.strip() or str(e)))


def load_global_identity(cwd: Path) -> Result[Identity, IdentityError]:
    """Read user.name and user.email from the global git configuration."""
    name = _global_value("user.name", cwd)
    if isinstance(name, Err):
        return name
    email = _global_value("user.email", cwd)
    if isinstance(email, Err):
        return email
    return Ok(Identity(name=name.value, email=email.value))


def resolve_identity(
    user: str | None,
    email: str | None,
    fallback: Identity | None = None,
) -> Identity:
    """Merge explicit overrides with a fallback identity, field by field."""
    base = fallback or Identity()
    return Identity(
        name=(user or "").strip() or base.name,
        email=(email or "").strip() or base.email,
    )
