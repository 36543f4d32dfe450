"""Command-line interface for launcher-auth.

Provides commands for inspecting stored credentials, negotiating premium game
sessions, issuing offline tokens and managing issuer key sets.
"""

from .main import cli, main

__all__ = ["cli", "main"]
