"""Shared FastAPI dependencies."""

from fastapi import Request

from ..commands import CommandSurface


def get_commands(request: Request) -> CommandSurface:
    """The process-wide command surface built during app startup."""
    return request.app.state.commands
