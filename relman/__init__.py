"""relman - compute, tag and publish release identifiers for git repositories."""

__version__ = "0.1.0"
