"""CLI module for ropee."""

from ropee.cli.main import app, main_cli

__all__ = ["app", "main_cli"]
