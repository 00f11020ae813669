"""Mermaid Studio MCP Server: read, write, and generate diagrams from AI editors.

Exposes the command surface as MCP tools over stdio transport for use with
Claude Code, Cursor, or any MCP-compatible client. Tools return markdown.
"""

from typing import Optional

from mcp.server.fastmcp import FastMCP

from .commands import CommandSurface, build_command_surface
from .core.config import Settings
from .formatters import (
    format_diagram,
    format_diagram_list,
    format_error,
    format_version_list,
    format_write_result,
)

mcp = FastMCP("Mermaid Studio")

_commands: Optional[CommandSurface] = None


def configure(commands: CommandSurface) -> None:
    """Install the command surface the tools operate on."""
    global _commands
    _commands = commands


def _get_commands() -> CommandSurface:
    global _commands
    if _commands is None:
        _commands = build_command_surface(Settings())
    return _commands


@mcp.tool()
async def list_diagrams() -> str:
    """List saved Mermaid diagrams, most recently updated first."""
    payload = (await _get_commands().list_diagrams()).to_payload()
    if not payload["success"]:
        return format_error(payload)
    return format_diagram_list(payload["data"])


@mcp.tool()
async def get_diagram(diagram_id: str) -> str:
    """Get the full Mermaid source of a diagram.

    Args:
        diagram_id: Diagram ID (use list_diagrams to find it)
    """
    payload = (await _get_commands().get_diagram(diagram_id)).to_payload()
    if not payload["success"]:
        return format_error(payload)
    if payload["data"] is None:
        return f"Diagram not found: '{diagram_id}'. Use list_diagrams to find the correct ID."
    return format_diagram(payload["data"])


@mcp.tool()
async def create_diagram(name: str, content: str, prompt: Optional[str] = None) -> str:
    """Save a new diagram.

    Args:
        name: Display name (e.g. "Checkout flow")
        content: Mermaid source
        prompt: Optional instruction that produced the source
    """
    payload = (await _get_commands().create_diagram(name, content, prompt)).to_payload()
    if not payload["success"]:
        return format_error(payload)
    return format_write_result(payload["data"], "Created")


@mcp.tool()
async def update_diagram(diagram_id: str, content: str, prompt: Optional[str] = None) -> str:
    """Replace a diagram's Mermaid source. The previous source stays in version history.

    Args:
        diagram_id: Diagram ID
        content: New full Mermaid source
        prompt: Optional instruction that produced the source
    """
    payload = (await _get_commands().update_diagram(diagram_id, content, prompt)).to_payload()
    if not payload["success"]:
        return format_error(payload)
    return format_write_result(payload["data"], "Updated")


@mcp.tool()
async def generate_diagram(prompt: str, existing_content: Optional[str] = None) -> str:
    """Generate Mermaid source from a description, or modify existing source.

    The result is returned, not saved. Use create_diagram or update_diagram
    to keep it.

    Args:
        prompt: What to draw or change (e.g. "add a retry loop after payment")
        existing_content: Optional Mermaid source to modify
    """
    payload = (await _get_commands().generate_diagram(prompt, existing_content)).to_payload()
    if not payload["success"]:
        return format_error(payload)
    return f"```mermaid\n{payload['data']}\n```"


@mcp.tool()
async def list_versions(diagram_id: str) -> str:
    """List the version history of a diagram.

    Args:
        diagram_id: Diagram ID
    """
    payload = (await _get_commands().list_versions(diagram_id)).to_payload()
    if not payload["success"]:
        return format_error(payload)
    return format_version_list(diagram_id, payload["data"])


@mcp.tool()
async def restore_version(diagram_id: str, version_id: str) -> str:
    """Make an earlier version current. Recorded as a new version; nothing is lost.

    Args:
        diagram_id: Diagram ID
        version_id: Version ID from list_versions
    """
    payload = (await _get_commands().restore_version(diagram_id, version_id)).to_payload()
    if not payload["success"]:
        return format_error(payload)
    return format_write_result(payload["data"], "Restored")


def main() -> None:
    """Run the MCP server over stdio."""
    mcp.run(transport="stdio")


if __name__ == "__main__":
    main()
