"""Typed configuration loading and access.

Configuration is an explicit value: it is loaded once by the CLI context from
`<repo>/.relman.toml` (optional), overridden by command line flags and then
passed to the services that need it. Nothing reads it from global state.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Literal

from .result import Err, Ok, Result
from .structured import StrDict, as_str_dict, get_str, get_str_list, get_table

__all__ = [
    "CONFIG_FILENAME",
    "DEFAULT_PRIMARY_BRANCHES",
    "DEFAULT_REMOTE",
    "ConfigError",
    "ReleaseConfig",
    "ReleaseScheme",
    "load_config",
]

CONFIG_FILENAME = ".relman.toml"

DEFAULT_REMOTE = "origin"
DEFAULT_PRIMARY_BRANCHES = ("main", "master")

ReleaseScheme = Literal["date", "semver"]


@dataclass(frozen=True, slots=True)
class ConfigError:
    """Error when config cannot be loaded or parsed."""

    message: str
    path: Path | None = None


@dataclass(frozen=True, slots=True)
class ReleaseConfig:
    """Settings shared by every release of one invocation.

    Attributes:
        remote: Remote name used for --push
        scheme: Default naming scheme when --semver is not given
        primary_branches: Branches whose semver releases carry no branch suffix
        ssh_key: Private key used for ssh pushes (None: ~/.ssh/id_rsa)
        user: Tagger name override (beats global git config)
        email: Tagger email override (beats global git config)
    """

    remote: str = DEFAULT_REMOTE
    scheme: ReleaseScheme = "date"
    primary_branches: tuple[str, ...] = DEFAULT_PRIMARY_BRANCHES
    ssh_key: Path | None = None
    user: str | None = None
    email: str | None = None

    @classmethod
    def from_dict(cls, data: Mapping[str, object]) -> ReleaseConfig:
        """Create ReleaseConfig from a mapping (parsed TOML).

        Raises:
            ValueError: If `release.scheme` is not "date" or "semver".
        """
        release: StrDict = get_table(data, "release") or {}
        identity: StrDict = get_table(data, "identity") or {}

        scheme = get_str(release, "scheme") or "date"
        if scheme not in ("date", "semver"):
            raise ValueError(f"unknown release.scheme '{scheme}' (expected 'date' or 'semver')")

        ssh_key = get_str(release, "ssh_key")

        return cls(
            remote=get_str(release, "remote") or DEFAULT_REMOTE,
            scheme="semver" if scheme == "semver" else "date",
            primary_branches=get_str_list(release, "primary_branches")
            or DEFAULT_PRIMARY_BRANCHES,
            ssh_key=Path(ssh_key).expanduser() if ssh_key else None,
            user=get_str(identity, "name"),
            email=get_str(identity, "email"),
        )

    def with_overrides(
        self,
        *,
        remote: str | None = None,
        ssh_key: Path | None = None,
        user: str | None = None,
        email: str | None = None,
    ) -> ReleaseConfig:
        """Return a copy where every non-empty argument replaces the stored value."""
        return replace(
            self,
            remote=remote or self.remote,
            ssh_key=ssh_key or self.ssh_key,
            user=user or self.user,
            email=email or self.email,
        )


def _parse_toml(path: Path) -> Result[StrDict, ConfigError]:
    """Parse a TOML file, handling read and parse errors."""
    import tomllib

    try:
        content = path.read_bytes()
        data_obj: object = tomllib.loads(content.decode("utf-8"))
        data = as_str_dict(data_obj)
        if data is None:
            return Err(ConfigError("Config root must be a TOML table", path=path))
        return Ok(data)
    except FileNotFoundError:
        return Err(ConfigError(f"Config file not found: {path}", path=path))
    except PermissionError:
        return Err(ConfigError(f"Permission denied reading: {path}", path=path))
    except tomllib.TOMLDecodeError as e:
        return Err(ConfigError(f"Invalid TOML syntax: {e}", path=path))
    except UnicodeDecodeError as e:
        return Err(ConfigError(f"Error reading config: {e}", path=path))


def load_config(path: Path) -> Result[ReleaseConfig, ConfigError]:
    """Load and parse configuration from a TOML file.

    Args:
        path: Path to .relman.toml

    Returns:
        Ok(ReleaseConfig) on success, Err(ConfigError) on failure
    """
    result = _parse_toml(path)
    if isinstance(result, Err):
        return result

    try:
        return Ok(ReleaseConfig.from_dict(result.value))
    except (KeyError, TypeError, ValueError) as e:
        return Err(ConfigError(f"Invalid config structure: {e}", path=path))

