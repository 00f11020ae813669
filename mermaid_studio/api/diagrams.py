"""Diagram API endpoints.

Endpoints are thin: each one calls a single command and returns its
envelope. Failures are reported in the envelope, so every response is 200.
"""

from fastapi import APIRouter, Depends

from ..commands import CommandSurface
from ..schemas.diagram import DiagramCreate, DiagramRename, DiagramUpdate, GenerateRequest
from .dependencies import get_commands

router = APIRouter(prefix="/api/diagrams", tags=["diagrams"])


@router.get("")
async def list_diagrams(commands: CommandSurface = Depends(get_commands)):
    """List all diagrams, most recently updated first."""
    return (await commands.list_diagrams()).to_payload()


@router.post("")
async def create_diagram(diagram: DiagramCreate, commands: CommandSurface = Depends(get_commands)):
    """Create a diagram and its first version."""
    return (await commands.create_diagram(diagram.name, diagram.content, diagram.prompt)).to_payload()


@router.post("/generate")
async def generate_diagram(request: GenerateRequest, commands: CommandSurface = Depends(get_commands)):
    """Generate Mermaid text from an instruction. Nothing is saved."""
    return (await commands.generate_diagram(request.prompt, request.existing_content)).to_payload()


@router.get("/location")
async def data_location(commands: CommandSurface = Depends(get_commands)):
    """Filesystem path of the diagrams folder."""
    return (await commands.data_location()).to_payload()


@router.get("/{diagram_id}")
async def get_diagram(diagram_id: str, commands: CommandSurface = Depends(get_commands)):
    """Get a diagram; ``data`` is null when it does not exist."""
    return (await commands.get_diagram(diagram_id)).to_payload()


@router.put("/{diagram_id}")
async def update_diagram(diagram_id: str, update: DiagramUpdate, commands: CommandSurface = Depends(get_commands)):
    """Replace a diagram's content, recording a new version."""
    return (await commands.update_diagram(diagram_id, update.content, update.prompt)).to_payload()


@router.delete("/{diagram_id}")
async def delete_diagram(diagram_id: str, commands: CommandSurface = Depends(get_commands)):
    """Delete a diagram and all of its versions."""
    return (await commands.delete_diagram(diagram_id)).to_payload()


@router.post("/{diagram_id}/rename")
async def rename_diagram(diagram_id: str, rename: DiagramRename, commands: CommandSurface = Depends(get_commands)):
    """Rename a diagram without creating a version."""
    return (await commands.rename_diagram(diagram_id, rename.new_name)).to_payload()
