"""Version API endpoints."""

from fastapi import APIRouter, Depends

from ..commands import CommandSurface
from .dependencies import get_commands

router = APIRouter(prefix="/api/diagrams/{diagram_id}/versions", tags=["versions"])


@router.get("")
async def list_versions(diagram_id: str, commands: CommandSurface = Depends(get_commands)):
    """List all versions for a diagram, newest first."""
    return (await commands.list_versions(diagram_id)).to_payload()


@router.get("/{version_id}")
async def get_version(diagram_id: str, version_id: str, commands: CommandSurface = Depends(get_commands)):
    """Get specific version; ``data`` is null when it does not exist."""
    return (await commands.get_version(diagram_id, version_id)).to_payload()


@router.post("/{version_id}/restore")
async def restore_version(diagram_id: str, version_id: str, commands: CommandSurface = Depends(get_commands)):
    """Make a version's content current again (recorded as a new version)."""
    return (await commands.restore_version(diagram_id, version_id)).to_payload()
