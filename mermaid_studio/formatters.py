"""Format command envelopes as markdown for LLM consumption."""

from datetime import datetime, timezone


def _format_ms(ms) -> str:
    if not ms:
        return ""
    return datetime.fromtimestamp(ms / 1000, tz=timezone.utc).strftime("%Y-%m-%d %H:%M UTC")


def format_error(payload: dict) -> str:
    """Format a failed envelope as a one-line message."""
    error = payload.get("error") or {}
    return f"Error ({error.get('code', 'UNKNOWN')}): {error.get('message', 'unknown error')}"


def format_diagram(diagram: dict) -> str:
    """Format a full diagram with metadata header and fenced source."""
    name = diagram.get("name", "Untitled")
    lines = [f"# {name}\n"]
    lines.append(f"**ID:** `{diagram.get('id', '')}`  ")
    lines.append(f"**Updated:** {_format_ms(diagram.get('updatedAt'))}  ")
    if diagram.get("prompt"):
        lines.append(f"**Prompt:** {diagram['prompt']}  ")
    lines.append("\n```mermaid")
    lines.append(diagram.get("content", ""))
    lines.append("```")
    return "\n".join(lines)


def format_diagram_list(diagrams: list[dict]) -> str:
    """Format a diagram list with names, ids, and first source line."""
    if not diagrams:
        return "No diagrams found."

    lines = [f"Found {len(diagrams)} diagram(s):\n"]
    for i, d in enumerate(diagrams, 1):
        first_line = (d.get("content") or "").strip().splitlines()[:1]
        lines.append(f"### {i}. {d.get('name', 'Untitled')}")
        lines.append(f"- **ID:** `{d.get('id', '')}`")
        lines.append(f"- **Updated:** {_format_ms(d.get('updatedAt'))}")
        if first_line:
            lines.append(f"- **Type:** {first_line[0][:80]}")
        lines.append("")
    return "\n".join(lines)


def format_version_list(diagram_id: str, versions: list[dict]) -> str:
    """Format version history, newest first."""
    if not versions:
        return f"No versions found for `{diagram_id}`."

    lines = [f"{len(versions)} version(s) of `{diagram_id}` (newest first):\n"]
    lines.append("| Version | Created | Prompt |")
    lines.append("|---------|---------|--------|")
    for v in versions:
        prompt = (v.get("prompt") or "—").replace("|", "\\|").replace("\n", " ")
        lines.append(f"| `{v.get('id', '')}` | {_format_ms(v.get('createdAt'))} | {prompt[:80]} |")
    return "\n".join(lines)


def format_write_result(diagram: dict, action: str) -> str:
    """Format a create/update/restore confirmation message."""
    lines = [f"**{action}:** {diagram.get('name', 'Untitled')}\n"]
    lines.append(f"- **ID:** `{diagram.get('id', '')}`")
    lines.append(f"- **Updated:** {_format_ms(diagram.get('updatedAt'))}")
    return "\n".join(lines)
