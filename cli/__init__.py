"""CLI package for the SpecManager host

Subcommands: serve, login, logout, status, watch.
"""

from cli.main import main

__all__ = [
    "main",
]
