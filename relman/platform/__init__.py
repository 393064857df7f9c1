"""Platform abstraction layer."""

from .paths import default_ssh_key, home
from .process import ProcessError, run

__all__ = [
    "ProcessError",
    "default_ssh_key",
    "home",
    "run",
]
