"""
Mermaid Studio
==============

Local service for authoring, versioning, and AI-generating Mermaid diagrams.

- Diagram store: flat files with append-only version history
- Settings store with OS-encrypted API key
- Generation client over LiteLLM
- Command surface over HTTP (FastAPI) and MCP
"""

__version__ = "0.1.0"
