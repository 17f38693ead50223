"""HTTP API exposing the root, menu and skill bots."""

from skillrelay.api.app import create_app

__all__ = ["create_app"]
