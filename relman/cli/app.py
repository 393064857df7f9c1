from __future__ import annotations

from pathlib import Path
from typing import NoReturn

import typer

from relman import __version__
from relman.cli.context import CLIContext, build_context
from relman.core.config import ReleaseScheme
from relman.core.errors import ErrorCode
from relman.core.result import Err
from relman.git.identity import resolve_identity
from relman.services.release.errors import ReleaseError
from relman.services.release.model import ReleaseBatch, ReleaseRequest
from relman.services.release.service import propose_releases, run_release


app = typer.Typer(
    add_completion=False,
    no_args_is_help=False,
    rich_markup_mode="rich",
)


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"relman {__version__}", err=True)
        raise typer.Exit(code=0)


def release_error_code(error: ReleaseError) -> ErrorCode:
    if error.kind in {"not_a_repository", "remote_not_configured"}:
        return ErrorCode.ENV_ERROR
    if error.kind in {"detached_head"}:
        return ErrorCode.USER_ERROR
    return ErrorCode.RELEASE_ERROR


def _exit(ctx: CLIContext, error: ReleaseError) -> NoReturn:
    ctx.console.error(error.pretty())
    raise typer.Exit(code=int(release_error_code(error)))


def _plural(names: tuple[str, ...]) -> str:
    return "s" if len(names) > 1 else ""


def _finish(ctx: CLIContext, request: ReleaseRequest, batch: ReleaseBatch) -> None:
    if not batch.ok:
        push_msg = "/push" if request.push else ""
        ctx.console.error(f"at least one tag failed to create{push_msg}, see above. exiting...")
        code = ErrorCode.RELEASE_ERROR if batch.create_failures else ErrorCode.NETWORK_ERROR
        raise typer.Exit(code=int(code))

    if not request.push:
        names = tuple(r.name for r in batch.created)
        ctx.console.print(
            f"tag{_plural(names)} ({', '.join(names)}) not pushed (--push not set), push it with:"
        )
        ctx.console.print(f" git push {request.remote} {' '.join(names)}")


@app.command()
def release(
    modules: list[str] | None = typer.Argument(
        None,
        help="Components to release (same as --component)",
        show_default=False,
    ),
    component: list[str] = typer.Option(
        [],
        "--component",
        "-c",
        help="Component to release; repeatable. Without any, one unnamed release is created",
    ),
    remote: str | None = typer.Option(
        None,
        "--remote",
        "-r",
        help="git remote to push to (default: origin, or release.remote in .relman.toml)",
        show_default=False,
    ),
    message: str = typer.Option(
        "", "--msg", "-m", help="Release message, creates an annotated tag"
    ),
    user: str = typer.Option("", "--user", help="Override user.name from ~/.gitconfig"),
    email: str = typer.Option("", "--email", help="Override user.email from ~/.gitconfig"),
    semver: bool = typer.Option(
        False, "--semver", help="Use semantic versioning <major>.<minor>.<patch>"
    ),
    inc_major: bool = typer.Option(False, "--inc-major", help="Increment the major version"),
    inc_minor: bool = typer.Option(False, "--inc-minor", help="Increment the minor version"),
    inc_patch: bool = typer.Option(False, "--inc-patch", help="Increment the patch version"),
    push: bool = typer.Option(False, "--push", help="Push the tag to the remote"),
    dry_run: bool = typer.Option(
        False, "--dry-run", "-n", help="Print what would be released without creating tags"
    ),
    ssh_key: Path | None = typer.Option(
        None,
        "--ssh-key",
        help="Private key for ssh remotes (default: ~/.ssh/id_rsa)",
        show_default=False,
    ),
    repo_path: Path = typer.Option(Path("."), "--repo", help="Repository path"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable more output"),
    version: bool = typer.Option(
        False,
        "--version",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
) -> None:
    """Create the next release tag (date based by default) and optionally push it."""
    ctx = build_context(repo_path=repo_path, verbose=verbose)

    names = [*component, *(modules or [])]
    config = ctx.config.with_overrides(remote=remote, ssh_key=ssh_key, user=user, email=email)
    scheme: ReleaseScheme = "semver" if semver else config.scheme

    if scheme != "semver" and (inc_major or inc_minor or inc_patch):
        ctx.console.warning("--inc-major/--inc-minor/--inc-patch only apply to --semver releases")

    request = ReleaseRequest(
        modules=tuple(names) or ("",),
        scheme=scheme,
        inc_major=inc_major,
        inc_minor=inc_minor,
        inc_patch=inc_patch,
        message=message,
        identity=resolve_identity(config.user, config.email, ctx.global_identity),
        push=push,
        remote=config.remote,
        ssh_key=config.ssh_key,
        primary_branches=config.primary_branches,
    )

    if dry_run:
        proposed = propose_releases(ctx.repo, request, today=ctx.today, console=ctx.console)
        if isinstance(proposed, Err):
            _exit(ctx, proposed.error)
        ctx.console.print(f"would create release{_plural(proposed.value)}:")
        ctx.console.print(", ".join(proposed.value))
        return

    result = run_release(ctx.repo, request, today=ctx.today, console=ctx.console)
    if isinstance(result, Err):
        _exit(ctx, result.error)
    _finish(ctx, request, result.value)


def main() -> None:
    app()
