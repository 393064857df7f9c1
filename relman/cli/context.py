from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from pathlib import Path

import typer

from relman.core.config import CONFIG_FILENAME, ReleaseConfig, load_config
from relman.core.errors import ErrorCode
from relman.core.result import Err
from relman.git.identity import Identity, load_global_identity
from relman.git.repository import Repository
from relman.output.console import ConsoleProtocol, RichConsole


@dataclass(frozen=True, slots=True)
class CLIContext:
    repo: Repository
    config: ReleaseConfig
    global_identity: Identity
    console: ConsoleProtocol
    today: date


def today() -> date:
    """Clock used for date releases (patched in tests)."""
    return date.today()


def _load_repo_config(repo: Repository, console: ConsoleProtocol) -> ReleaseConfig:
    path = repo.path / CONFIG_FILENAME
    if not path.exists():
        console.debug(f"no {CONFIG_FILENAME} in {repo.path}, using defaults")
        return ReleaseConfig()

    result = load_config(path)
    if isinstance(result, Err):
        console.debug(f"ignoring {path}: {result.error.message}")
        return ReleaseConfig()
    console.debug(f"loaded config from {path}")
    return result.value


def build_context(
    *,
    repo_path: Path,
    verbose: bool = False,
    console: ConsoleProtocol | None = None,
) -> CLIContext:
    out = console or RichConsole(verbose=verbose)

    repo_result = Repository.open(repo_path.expanduser())
    if isinstance(repo_result, Err):
        out.error(f"not a git repository: {repo_path} ({repo_result.error.message})")
        raise typer.Exit(code=int(ErrorCode.ENV_ERROR))
    repo = repo_result.value
    out.debug(f"repository: {repo.path}")

    identity = Identity()
    identity_result = load_global_identity(repo.path)
    if isinstance(identity_result, Err):
        # only a problem once an annotated tag is requested
        out.debug(
            f"unable to load git config ({identity_result.error.message}), "
            "this is only a problem for annotated tags"
        )
    else:
        identity = identity_result.value

    return CLIContext(
        repo=repo,
        config=_load_repo_config(repo, out),
        global_identity=identity,
        console=out,
        today=today(),
    )
