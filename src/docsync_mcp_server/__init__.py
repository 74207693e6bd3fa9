"""Local-first document cache synchronised with a GitHub-style contents API."""

__version__ = "0.3.0"
