"""Tests for the FastMCP host adapter."""

import pytest
from fastmcp import Client
from fastmcp.exceptions import ToolError

from openapi_mcp_bridge.catalog import build_catalog
from openapi_mcp_bridge.models import Credentials, GenerationOptions, ToolResult
from openapi_mcp_bridge.operations import extract_operations
from openapi_mcp_bridge.server import FastMCPHost, to_protocol_result


@pytest.fixture
def host(petstore):
    host = FastMCPHost("petstore", credentials=Credentials(api_key="k"))
    build_catalog(extract_operations(petstore), petstore, GenerationOptions(version="3.0.0"), host=host)
    return host


@pytest.mark.asyncio
async def test_tools_are_listed_with_raw_schemas(host):
    async with Client(host.mcp) as client:
        tools = {tool.name: tool for tool in await client.list_tools()}

    assert set(tools) == {"listPets", "createPet", "getPet", "deletePet", "info", "describe"}
    assert tools["getPet"].inputSchema["required"] == ["petId"]
    assert tools["listPets"].annotations.readOnlyHint is True
    assert tools["deletePet"].annotations.destructiveHint is True


@pytest.mark.asyncio
async def test_meta_tool_call(host):
    async with Client(host.mcp) as client:
        result = await client.call_tool("info", {})

    assert result.content[0].text.startswith("Title: Petstore")


@pytest.mark.asyncio
async def test_confirmation_passes_through(host):
    async with Client(host.mcp) as client:
        result = await client.call_tool("deletePet", {"petId": 1})

    assert "CONFIRMATION REQUIRED" in result.content[0].text


def test_error_results_become_protocol_errors():
    with pytest.raises(ToolError, match="boom"):
        to_protocol_result(ToolResult(text="boom", is_error=True))


def test_partial_results_carry_resume_token():
    result = to_protocol_result(ToolResult(kind="partial", text="x", partial=True, resume_token="stream-1"))
    assert result.structured_content == {"partial": True, "resume_token": "stream-1"}
