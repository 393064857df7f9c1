"""Git repository abstraction.

This module provides the Repository class used by the release services:
open a work tree, inspect tags, branch and remotes, create a tag and push a
ref. All operations shell out to git and return Result types.

Usage:
    match Repository.open(Path.cwd()):
        case Ok(repo):
            tags = repo.list_tags()
        case Err(e):
            print(f"error: {e.message}")
"""

from __future__ import annotations

import os
import re
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Literal

from relman.core.result import Err, Ok, Result
from relman.git.identity import Identity
from relman.platform.process import ProcessError
from relman.platform.process import run as run_process

_GIT_TIMEOUT_SECONDS = 30.0
_GIT_NETWORK_TIMEOUT_SECONDS = 3 * 60.0

# user@host:path (scp-like syntax), excluding Windows drive letters
_SCP_LIKE_RE = re.compile(r"^(?:[^@/\s]+@)?[^/\\:\s]{2,}:(?!//)")

__all__ = [
    "GitError",
    "GitErrorKind",
    "Remote",
    "Repository",
    "Transport",
]

GitErrorKind = Literal[
    "not_a_repository",
    "detached_head",
    "remote_not_configured",
    "tag_exists",
    "git_failed",
]

Transport = Literal["ssh", "http", "git", "file"]


@dataclass(frozen=True, slots=True)
class GitError:
    """Error from a git operation.

    Attributes:
        command: The git command that failed
        message: Error message
        kind: Failure category callers can branch on
        returncode: Process return code
    """

    command: str
    message: str
    kind: GitErrorKind = "git_failed"
    returncode: int = 1


@dataclass(frozen=True, slots=True)
class Remote:
    """A configured remote (never created or edited by relman)."""

    name: str
    url: str

    @property
    def transport(self) -> Transport:
        """Transport kind derived from the URL."""
        url = self.url.strip()
        lowered = url.lower()
        if lowered.startswith(("ssh://", "git+ssh://", "ssh+git://")):
            return "ssh"
        if lowered.startswith(("http://", "https://")):
            return "http"
        if lowered.startswith("git://"):
            return "git"
        if lowered.startswith("file://"):
            return "file"
        if _SCP_LIKE_RE.match(url):
            return "ssh"
        return "file"


class Repository:
    """Git repository abstraction.

    Attributes:
        path: Path to the work tree root
    """

    def __init__(self, path: Path) -> None:
        self.path = path

    @classmethod
    def open(cls, path: Path) -> Result[Repository, GitError]:
        """Open the repository containing `path` (or one of its ancestors).

        Returns:
            Ok(Repository) rooted at the work tree top level
            Err(GitError) with kind "not_a_repository" otherwise
        """
        if not path.is_dir():
            return Err(
                GitError(
                    command="rev-parse --show-toplevel",
                    message=f"not a directory: {path}",
                    kind="not_a_repository",
                )
            )

        result = run_process(
            ["git", "rev-parse", "--show-toplevel"],
            cwd=path,
            timeout=_GIT_TIMEOUT_SECONDS,
        )
        match result:
            case Err(e):
                return Err(
                    GitError(
                        command="rev-parse --show-toplevel",
                        message=e.stderr.strip() or f"not a git repository: {path}",
                        kind="not_a_repository",
                        returncode=e.returncode,
                    )
                )
            case Ok(stdout):
                return Ok(cls(Path(stdout.strip())))

    def list_tags(self) -> Result[frozenset[str], GitError]:
        """List every tag name.

        Re-read on each call: tags created earlier in the run must be visible.
        """
        result = self._run(["tag", "--list"])
        match result:
            case Err(e):
                return Err(self._error("tag --list", e, "listing tags failed"))
            case Ok(stdout):
                return Ok(frozenset(ln.strip() for ln in stdout.splitlines() if ln.strip()))

    def has_tag(self, name: str) -> bool:
        """True if `refs/tags/<name>` exists."""
        result = self._run(["rev-parse", "--verify", "--quiet", f"refs/tags/{name}"])
        return isinstance(result, Ok)

    def current_branch(self) -> Result[str, GitError]:
        """Get current branch name.

        Returns:
            Ok(branch) when HEAD points at a branch (even an unborn one)
            Err(GitError) with kind "detached_head" otherwise
        """
        result = self._run(["symbolic-ref", "--quiet", "--short", "HEAD"])
        match result:
            case Ok(stdout) if stdout.strip():
                return Ok(stdout.strip())
            case Ok(_):
                return Err(
                    GitError(
                        command="symbolic-ref HEAD",
                        message="HEAD does not name a branch",
                        kind="detached_head",
                    )
                )
            case Err(e):
                return Err(
                    GitError(
                        command="symbolic-ref HEAD",
                        message=e.stderr.strip() or "HEAD is detached",
                        kind="detached_head",
                        returncode=e.returncode,
                    )
                )

    def head_commit(self) -> Result[str, GitError]:
        """Full SHA of the commit HEAD points at."""
        result = self._run(["rev-parse", "--verify", "HEAD^{commit}"])
        match result:
            case Err(e):
                return Err(self._error("rev-parse HEAD", e, "HEAD has no commit"))
            case Ok(stdout):
                return Ok(stdout.strip())

    def tag_commit(self, name: str) -> Result[str, GitError]:
        """Full SHA of the commit a tag points at (annotated tags are peeled)."""
        result = self._run(["rev-parse", "--verify", f"refs/tags/{name}^{{commit}}"])
        match result:
            case Err(e):
                return Err(self._error(f"rev-parse {name}", e, f"unknown tag: {name}"))
            case Ok(stdout):
                return Ok(stdout.strip())

    def remotes(self) -> Result[tuple[Remote, ...], GitError]:
        """All configured remotes that have a URL."""
        result = self._run(["config", "--get-regexp", r"^remote\..*\.url$"])
        match result:
            case Err(e) if e.returncode == 1 and not e.stderr.strip():
                # exit 1 without message: no remote configured
                return Ok(())
            case Err(e):
                return Err(self._error("config remote.*.url", e, "reading remotes failed"))
            case Ok(stdout):
                return Ok(self._parse_remotes(stdout))

    def remote(self, name: str) -> Result[Remote | None, GitError]:
        """Look up a configured remote by name (Ok(None) if absent)."""
        remotes = self.remotes()
        if isinstance(remotes, Err):
            return remotes
        return Ok(next((r for r in remotes.value if r.name == name), None))

    def check_remote(self, name: str) -> Result[Remote, GitError]:
        """Validate that `name` is a configured remote.

        Returns:
            Ok(Remote) if configured
            Err(GitError) with kind "remote_not_configured" otherwise
        """
        remotes = self.remotes()
        if isinstance(remotes, Err):
            return remotes

        for remote in remotes.value:
            if remote.name == name:
                return Ok(remote)

        known = ", ".join(r.name for r in remotes.value) or "none"
        return Err(
            GitError(
                command=f"remote {name}",
                message=f"remote '{name}' is not configured (configured: {known})",
                kind="remote_not_configured",
            )
        )

    def create_tag(
        self,
        name: str,
        *,
        message: str | None = None,
        identity: Identity | None = None,
    ) -> Result[None, GitError]:
        """Create a tag at HEAD; never overwrites an existing one.

        Without a message a lightweight tag is created. With a message an
        annotated tag is created, tagged by `identity` when given.
        """
        args: list[str] = []
        if identity is not None:
            args += ["-c", f"user.name={identity.name}", "-c", f"user.email={identity.email}"]

        if message is None:
            args += ["tag", name]
        else:
            args += ["tag", "-a", name, "-m", message]

        result = self._run(args)
        match result:
            case Ok(_):
                return Ok(None)
            case Err(e):
                stderr = e.stderr.strip()
                if "already exists" in stderr:
                    return Err(
                        GitError(
                            command=f"tag {name}",
                            message=stderr,
                            kind="tag_exists",
                            returncode=e.returncode,
                        )
                    )
                return Err(self._error(f"tag {name}", e, f"creating tag {name} failed"))

    def push_ref(
        self,
        remote: str,
        refspec: str,
        *,
        env: Mapping[str, str] | None = None,
    ) -> Result[str, GitError]:
        """Push a single refspec to a remote.

        Args:
            remote: Remote name
            refspec: e.g. "refs/tags/1.2.3:refs/tags/1.2.3"
            env: Extra environment (credentials) for the git process

        Returns:
            Ok(output) with git's combined output on success
            Err(GitError) whose message is git's combined output on failure
        """
        push_env = {**os.environ, "GIT_TERMINAL_PROMPT": "0", **(env or {})}
        result = self._run(
            ["push", "--porcelain", remote, refspec],
            env=push_env,
            timeout=_GIT_NETWORK_TIMEOUT_SECONDS,
        )
        match result:
            case Err(e):
                return Err(
                    GitError(
                        command=f"push {remote} {refspec}",
                        message=e.output or "push failed",
                        returncode=e.returncode,
                    )
                )
            case Ok(stdout):
                return Ok(stdout.strip())

    def _run(
        self,
        args: list[str],
        *,
        env: Mapping[str, str] | None = None,
        timeout: float = _GIT_TIMEOUT_SECONDS,
    ) -> Result[str, ProcessError]:
        """Run a git command in this repository."""
        return run_process(
            ["git", "-C", str(self.path), *args],
            cwd=self.path,
            env=env,
            timeout=timeout,
        )

    def _error(self, command: str, error: ProcessError, fallback: str) -> GitError:
        return GitError(
            command=command,
            message=error.stderr.strip() or fallback,
            returncode=error.returncode,
        )

    def _parse_remotes(self, output: str) -> tuple[Remote, ...]:
        """Parse `remote.<name>.url <url>` lines."""
        remotes: list[Remote] = []
        for line in output.splitlines():
            key, _, url = line.strip().partition(" ")
            if not key.startswith("remote.") or not key.endswith(".url"):
                continue
            name = key[len("remote.") : -len(".url")]
            if name and url.strip():
                remotes.append(Remote(name=name, url=url.strip()))
        return tuple(remotes)
