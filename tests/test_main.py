from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest
from fastmcp import Client
from fastmcp.exceptions import ToolError
from fastmcp.tools.tool import ToolResult
from loguru import logger
from mcp.types import TextContent

from gemini_mcp.exceptions import ProviderError
from gemini_mcp.main import SERVER_NAME, _handle_tool_error, create_app, main
from gemini_mcp.schema import GenerateRequest
from gemini_mcp.shard.instructions import CAPABILITY_TOOLS, TOOL_SETUP


def _fake_dispatcher() -> MagicMock:
    dispatcher = MagicMock()
    dispatcher.generate = AsyncMock(return_value=ToolResult(content=[TextContent(type="text", text="Hello!")]))
    return dispatcher


def test_app_name(settings):
    assert create_app(settings).name == SERVER_NAME == "gemini-mcp"


async def test_unconfigured_server_only_offers_setup(unconfigured_settings):
    app = create_app(unconfigured_settings)

    async with Client(app) as client:
        tools = await client.list_tools()
        result = await client.call_tool(TOOL_SETUP, {})

    assert [t.name for t in tools] == [TOOL_SETUP]
    assert "GEMINI_API_KEY" in result.content[0].text


async def test_unconfigured_server_rejects_capability_tools(unconfigured_settings):
    app = create_app(unconfigured_settings)

    async with Client(app) as client:
        with pytest.raises(ToolError, match="Unknown tool: gemini_generate"):
            await client.call_tool("gemini_generate", {"prompt": "Say hello"})


async def test_configured_server_offers_capability_tools(settings):
    app = create_app(settings)

    async with Client(app) as client:
        tools = await client.list_tools()

    names = {t.name for t in tools}
    assert names == set(CAPABILITY_TOOLS)
    assert TOOL_SETUP not in names


async def test_tool_call_reaches_dispatcher(settings):
    dispatcher = _fake_dispatcher()
    app = create_app(settings, dispatcher)

    async with Client(app) as client:
        result = await client.call_tool("gemini_generate", {"prompt": "Say hello", "temperature": 0.5})

    assert result.content[0].text == "Hello!"
    req = dispatcher.generate.call_args.args[0]
    assert isinstance(req, GenerateRequest)
    assert req.prompt == "Say hello"
    assert req.temperature == 0.5
    assert req.model == "gemini-3-pro-preview"


@pytest.mark.parametrize(
    "arguments",
    [
        {"prompt": "x", "temperature": 5},
        {"prompt": "x", "top_p": -1},
        {"prompt": "x", "thinking_level": "extreme"},
        {"temperature": 0.5},
    ],
)
async def test_invalid_arguments_never_reach_dispatcher(settings, arguments):
    dispatcher = _fake_dispatcher()
    app = create_app(settings, dispatcher)

    async with Client(app) as client:
        with pytest.raises(ToolError):
            await client.call_tool("gemini_generate", arguments)

    dispatcher.generate.assert_not_called()


async def test_domain_errors_become_tool_errors(settings):
    dispatcher = _fake_dispatcher()
    dispatcher.generate = AsyncMock(side_effect=ProviderError("quota exceeded", "gemini-3-pro-preview"))
    app = create_app(settings, dispatcher)

    async with Client(app) as client:
        with pytest.raises(ToolError, match="Gemini API error: quota exceeded"):
            await client.call_tool("gemini_generate", {"prompt": "x"})


def test_handle_tool_error_wraps_unexpected_exceptions():
    with pytest.raises(ToolError, match="Unexpected error: boom"):
        _handle_tool_error(RuntimeError("boom"))


def test_main_rejects_unknown_transport(monkeypatch):
    monkeypatch.setattr("sys.argv", ["gemini-mcp", "--transport", "carrier-pigeon"])

    with pytest.raises(SystemExit):
        main()


@pytest.mark.parametrize(
    "tool,arguments,method",
    [
        ("gemini_upscale", {"input_image": "in.png", "jpeg_quality": 101}, "upscale"),
        ("gemini_edit", {"prompt": "p", "input_image": "in.png", "num_images": 5}, "edit"),
        ("gemini_image", {"prompt": "p", "num_images": 0}, "image"),
        ("gemini_messages", {"messages": [{"role": "user", "content": "hi"}], "max_tokens": 0}, "messages"),
    ],
)
async def test_bounded_arguments_rejected_at_tool_surface(settings, tool, arguments, method):
    dispatcher = _fake_dispatcher()
    setattr(dispatcher, method, AsyncMock())
    app = create_app(settings, dispatcher)

    async with Client(app) as client:
        with pytest.raises(ToolError):
            await client.call_tool(tool, arguments)

    getattr(dispatcher, method).assert_not_called()


async def test_tool_schema_carries_shared_bounds(settings):
    app = create_app(settings)

    async with Client(app) as client:
        tools = {t.name: t for t in await client.list_tools()}

    quality = tools["gemini_upscale"].inputSchema["properties"]["jpeg_quality"]
    integer = next(option for option in quality.get("anyOf", [quality]) if option.get("type") == "integer")
    assert (integer["minimum"], integer["maximum"]) == (0, 100)


def test_handle_tool_error_logs_details():
    messages: list[str] = []
    handler_id = logger.add(messages.append, level="WARNING", format="{message}")
    try:
        with pytest.raises(ToolError, match="Gemini API error: boom"):
            _handle_tool_error(ProviderError("boom", "imagen-3.0-generate-002"))
    finally:
        logger.remove(handler_id)

    assert len(messages) == 1
    assert "provider_error" in messages[0]
    assert "'model': 'imagen-3.0-generate-002'" in messages[0]
