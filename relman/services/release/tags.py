"""Tag lifecycle: create one release tag, then optionally push it.

A tag is created at most once and never overwritten. A failed push leaves the
local tag in place; the caller decides how to report that.
"""

from __future__ import annotations

from relman.core.result import Err, Ok, Result
from relman.git.auth import PushAuth
from relman.git.identity import Identity
from relman.git.repository import Repository
from relman.services.release.errors import ReleaseError, from_git_error
from relman.services.release.model import TagRef

_CONFLICT_MARKERS = ("already exists", "would clobber existing tag", "[rejected]")

_IDENTITY_HINT = (
    "pass --user/--email, or run `git config --global user.name ...` "
    "and `git config --global user.email ...`"
)


def tag_refspec(name: str) -> str:
    return f"refs/tags/{name}:refs/tags/{name}"


def create_tag(
    repo: Repository,
    name: str,
    message: str = "",
    identity: Identity | None = None,
) -> Result[TagRef, ReleaseError]:
    """Create `name` at HEAD.

    Annotated when a message is given or the identity is complete, lightweight
    otherwise. An annotated tag without a message uses the tag name as its message.

    Returns:
        Ok(TagRef) for the new tag
        Err(ReleaseError) with kind "tag_exists" or "missing_identity", or
        "git_failed" when git itself refuses
    """
    who = identity or Identity()

    tags = repo.list_tags()
    if isinstance(tags, Err):
        return Err(from_git_error(tags.error))
    if name in tags.value:
        return Err(
            ReleaseError(
                kind="tag_exists",
                message=f"tag {name} already exists",
                hint=f"delete it with `git tag -d {name}` if it is stale",
            )
        )

    annotated = bool(message) or who.is_complete
    if annotated and not who.is_complete:
        missing = "name" if not who.name else "email"
        return Err(
            ReleaseError(
                kind="missing_identity",
                message=f"annotated tag {name} needs a tagger {missing}",
                hint=_IDENTITY_HINT,
            )
        )

    if annotated:
        created = repo.create_tag(name, message=message or name, identity=who)
    else:
        created = repo.create_tag(name)
    if isinstance(created, Err):
        return Err(from_git_error(created.error))

    commit = repo.tag_commit(name)
    return Ok(TagRef(name=name, commit=commit.unwrap_or(""), annotated=annotated))


def _is_remote_conflict(output: str) -> bool:
    lowered = output.lower()
    return any(marker in lowered for marker in _CONFLICT_MARKERS)


def push_tag_to_remote(
    repo: Repository,
    name: str,
    remote: str,
    auth: PushAuth,
) -> Result[str, ReleaseError]:
    """Push exactly one tag to `remote`.

    Returns:
        Ok(status message) when the remote has the tag afterwards
        Err(ReleaseError) with kind "remote_tag_conflict" when the remote holds
        a different tag with that name, "push_failed" for any other failure.
        The local tag is left untouched either way.
    """
    result = repo.push_ref(remote, tag_refspec(name), env=auth.env())
    match result:
        case Ok(output):
            if "[up to date]" in output:
                return Ok(f"tag {name} already on {remote} (up to date)")
            return Ok(f"pushed tag {name} to {remote}")
        case Err(e):
            if _is_remote_conflict(e.message):
                return Err(
                    ReleaseError(
                        kind="remote_tag_conflict",
                        message=f"remote '{remote}' already has a different tag {name}",
                        hint=e.message,
                    )
                )
            return Err(
                ReleaseError(
                    kind="push_failed",
                    message=f"failed to push tag {name} to {remote}: {e.message}",
                )
            )
