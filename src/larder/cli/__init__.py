"""Command line interface for Larder."""

from .typer_app import app

__all__ = ["app"]
