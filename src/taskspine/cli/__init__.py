"""
taskspine CLI - typer commands a host mounts for its own container.

Usage::

    from taskspine.cli import create_app
    create_app(container)()
"""

from taskspine.cli.app import create_app

__all__ = ["create_app"]
