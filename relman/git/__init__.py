"""Git operations module.

- Repository: tag, branch and remote operations on one work tree
- Identity: tagger identity from overrides and global git config
- SshKeyAuth / NoAuth: credentials for pushing tags

Usage:
    from relman.git import Repository

    repo = Repository.open(Path.cwd()).unwrap()
    tags = repo.list_tags()
"""

from relman.git.auth import (
    AuthError,
    NoAuth,
    PushAuth,
    SshKeyAuth,
    auth_for_remote,
    load_ssh_key,
)
from relman.git.identity import Identity, IdentityError, load_global_identity, resolve_identity
from relman.git.repository import GitError, GitErrorKind, Remote, Repository, Transport

__all__ = [
    # Repository
    "GitError",
    "GitErrorKind",
    "Remote",
    "Repository",
    "Transport",
    # Identity
    "Identity",
    "IdentityError",
    "load_global_identity",
    "resolve_identity",
    # Auth
    "AuthError",
    "NoAuth",
    "PushAuth",
    "SshKeyAuth",
    "auth_for_remote",
    "load_ssh_key",
]
