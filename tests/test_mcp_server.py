"""Tests for the MCP tool functions, called directly against a test command surface."""

import asyncio
from unittest.mock import patch

import pytest

from mermaid_studio import mcp_server
from tests.conftest import make_completion


@pytest.fixture(autouse=True)
def wired(commands):
    mcp_server.configure(commands)
    yield
    mcp_server.configure(None)


def run(coro):
    return asyncio.run(coro)


def test_empty_list():
    assert run(mcp_server.list_diagrams()) == "No diagrams found."


def test_create_then_get(commands):
    result = run(mcp_server.create_diagram("Checkout", "flowchart TD\n  A-->B", "cart flow"))
    assert result.startswith("**Created:** Checkout")

    diagram_id = run(commands.list_diagrams()).data[0].id
    text = run(mcp_server.get_diagram(diagram_id))
    assert "```mermaid\nflowchart TD\n  A-->B\n```" in text
    assert "cart flow" in text


def test_get_missing():
    assert "Diagram not found: '1-missing'" in run(mcp_server.get_diagram("1-missing"))


def test_update_missing_reports_error():
    assert run(mcp_server.update_diagram("1-missing", "pie")).startswith("Error (DIAGRAM_UPDATE_ERROR)")


def test_versions_and_restore(commands):
    created = run(commands.create_diagram("A", "v1")).data
    run(commands.update_diagram(created.id, "v2"))
    oldest = run(commands.list_versions(created.id)).data[-1]

    assert "2 version(s)" in run(mcp_server.list_versions(created.id))
    assert run(mcp_server.restore_version(created.id, oldest.id)).startswith("**Restored:** A")
    assert "3 version(s)" in run(mcp_server.list_versions(created.id))


def test_generate(commands):
    run(commands.set_setting("api_key", "sk-test-0123456789abcdefghijklmnop"))
    with patch("litellm.completion", return_value=make_completion("pie\n  \"A\": 1")):
        assert run(mcp_server.generate_diagram("a pie")) == "```mermaid\npie\n  \"A\": 1\n```"


def test_generate_without_key():
    text = run(mcp_server.generate_diagram("a pie"))
    assert text.startswith("Error (DIAGRAM_GENERATE_ERROR)")
    assert "API key not configured" in text
