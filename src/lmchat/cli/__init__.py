"""Command-line interface for lmchat."""

from .app import app, main

__all__ = ["app", "main"]
