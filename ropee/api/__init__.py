"""HTTP API for the ropee gateway."""

from ropee.api.app import create_app

__all__ = ["create_app"]
