"""User-level path helpers."""

from __future__ import annotations

import os
import sys
from pathlib import Path

__all__ = ["default_ssh_key", "home"]


def home() -> Path:
    """Get user's home directory.

    Uses USERPROFILE on Windows, HOME on Unix, so CI and containers can
    redirect it. Falls back to Path.home().
    """
    var = "USERPROFILE" if sys.platform == "win32" else "HOME"
    value = os.environ.get(var)
    if value:
        return Path(value)
    return Path.home()


def default_ssh_key() -> Path:
    """Default private key used for ssh pushes (~/.ssh/id_rsa)."""
    return home() / ".ssh" / "id_rsa"
