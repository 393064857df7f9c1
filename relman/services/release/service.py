"""Release batch: propose, create and push one release per module.

Modules are handled sequentially. Fatal problems (no such remote when pushing,
detached HEAD for semver releases) stop the batch before any tag exists.
Per-module failures are recorded in the returned ReleaseBatch and never stop
the remaining modules.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import date

from relman.core.result import Err, Ok, Result
from relman.git.auth import AuthError, PushAuth, auth_for_remote
from relman.git.repository import Remote, Repository
from relman.output.console import ConsoleProtocol
from relman.platform.paths import default_ssh_key
from relman.services.release.date_scheme import propose_date_release
from relman.services.release.errors import ReleaseError, from_git_error
from relman.services.release.model import (
    ModuleRelease,
    ReleaseBatch,
    ReleaseRequest,
    ReleaseState,
)
from relman.services.release.semver import ProposedVersion, propose_semver
from relman.services.release.tags import create_tag, push_tag_to_remote


def check_push_remote(
    repo: Repository,
    request: ReleaseRequest,
) -> Result[Remote | None, ReleaseError]:
    """Validate the push remote up front; Ok(None) when not pushing."""
    if not request.push:
        return Ok(None)
    remote = repo.check_remote(request.remote)
    if isinstance(remote, Err):
        return Err(
            from_git_error(
                remote.error,
                hint="omit --push or fix the remote with `git remote add`",
            )
        )
    return Ok(remote.value)


def _list_tags(repo: Repository) -> Result[frozenset[str], ReleaseError]:
    tags = repo.list_tags()
    if isinstance(tags, Err):
        return Err(from_git_error(tags.error))
    return Ok(tags.value)


def _semver_plan(
    repo: Repository,
    request: ReleaseRequest,
    console: ConsoleProtocol,
) -> Result[tuple[ProposedVersion, str], ReleaseError]:
    branch = repo.current_branch()
    if isinstance(branch, Err):
        return Err(
            from_git_error(
                branch.error,
                hint="check out a branch before cutting a semver release",
            )
        )

    tags = _list_tags(repo)
    if isinstance(tags, Err):
        return tags

    proposed = propose_semver(tags.value)
    console.debug(f"latest version: {proposed.version()} (branch {branch.value})")
    proposed.increment(request.inc_major, request.inc_minor, request.inc_patch)
    return Ok((proposed, branch.value))


def _propose_dates(today: date, tags: Iterable[str], modules: Iterable[str]) -> tuple[str, ...]:
    # proposals join the working set so repeated modules keep counting up
    working = set(tags)
    names: list[str] = []
    for module in modules:
        name = propose_date_release(today, working, module)
        working.add(name)
        names.append(name)
    return tuple(names)


def propose_releases(
    repo: Repository,
    request: ReleaseRequest,
    *,
    today: date,
    console: ConsoleProtocol,
) -> Result[tuple[str, ...], ReleaseError]:
    """Compute every release name without touching the repository (dry run)."""
    remote = check_push_remote(repo, request)
    if isinstance(remote, Err):
        return remote

    if request.scheme == "semver":
        plan = _semver_plan(repo, request, console)
        if isinstance(plan, Err):
            return plan
        proposed, branch = plan.value
        return Ok(
            tuple(
                proposed.format_release(module, branch, request.primary_branches)
                for module in request.modules
            )
        )

    tags = _list_tags(repo)
    if isinstance(tags, Err):
        return tags
    return Ok(_propose_dates(today, tags.value, request.modules))


class _LazyAuth:
    """Loads the push credential on first use and remembers the outcome."""

    def __init__(self, remote: Remote, request: ReleaseRequest) -> None:
        self._remote = remote
        self._key = request.ssh_key or default_ssh_key()
        self._result: Result[PushAuth, AuthError] | None = None

    def get(self) -> Result[PushAuth, AuthError]:
        if self._result is None:
            self._result = auth_for_remote(self._remote, self._key)
        return self._result


def _push(
    repo: Repository,
    name: str,
    request: ReleaseRequest,
    auth: _LazyAuth,
) -> Result[str, ReleaseError]:
    credential = auth.get()
    if isinstance(credential, Err):
        return Err(
            ReleaseError(
                kind="push_failed",
                message=f"failed to push tag {name}: {credential.error.message}",
                hint="pass --ssh-key with a readable private key",
            )
        )
    return push_tag_to_remote(repo, name, request.remote, credential.value)


def run_release(
    repo: Repository,
    request: ReleaseRequest,
    *,
    today: date,
    console: ConsoleProtocol,
) -> Result[ReleaseBatch, ReleaseError]:
    """Create (and optionally push) one release per requested module.

    Returns:
        Err(ReleaseError) for failures detected before any tag was created,
        Ok(ReleaseBatch) otherwise, holding one ModuleRelease per module.
    """
    remote = check_push_remote(repo, request)
    if isinstance(remote, Err):
        return remote

    plan: tuple[ProposedVersion, str] | None = None
    if request.scheme == "semver":
        semver_plan = _semver_plan(repo, request, console)
        if isinstance(semver_plan, Err):
            return semver_plan
        plan = semver_plan.value

    auth = _LazyAuth(remote.value, request) if remote.value is not None else None
    releases: list[ModuleRelease] = []

    for module in request.modules:
        if plan is not None:
            proposed, branch = plan
            name = proposed.format_release(module, branch, request.primary_branches)
        else:
            # re-read: tags created earlier in this run take their numbers
            tags = _list_tags(repo)
            if isinstance(tags, Err):
                console.error(tags.error.pretty())
                releases.append(
                    ModuleRelease(
                        module=module,
                        name="",
                        state=ReleaseState.CREATE_FAILED,
                        error=tags.error,
                    )
                )
                continue
            name = propose_date_release(today, tags.value, module)

        console.debug(f"proposed release {name}" + (f" for {module}" if module else ""))

        created = create_tag(repo, name, request.message, request.identity)
        if isinstance(created, Err):
            console.error(f"failed to create tag {name}: {created.error.pretty()}")
            releases.append(
                ModuleRelease(
                    module=module,
                    name=name,
                    state=ReleaseState.CREATE_FAILED,
                    error=created.error,
                )
            )
            continue

        tag = created.value
        console.success(f"created release: {name}")

        if auth is None:
            releases.append(
                ModuleRelease(module=module, name=name, state=ReleaseState.CREATED, tag=tag)
            )
            continue

        pushed = _push(repo, name, request, auth)
        match pushed:
            case Ok(status):
                console.print(status)
                releases.append(
                    ModuleRelease(
                        module=module,
                        name=name,
                        state=ReleaseState.PUSHED,
                        tag=tag,
                        push_message=status,
                    )
                )
            case Err(error):
                console.error(error.pretty())
                console.print(
                    f"the tag will still be in the local repo, delete it with "
                    f"`git tag -d {name}` or push it with `git push {request.remote} {name}` "
                    "once you have resolved the issue preventing push"
                )
                releases.append(
                    ModuleRelease(
                        module=module,
                        name=name,
                        state=ReleaseState.PUSH_FAILED,
                        tag=tag,
                        error=error,
                    )
                )

    return Ok(ReleaseBatch(tuple(releases)))
