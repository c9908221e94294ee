"""
Integration tests for the FastMCP server.

Exercises the tool, resources and prompt through an in-memory MCP client
with the vision invoker mocked.
"""

import json
from typing import Iterator
from unittest.mock import AsyncMock

import pytest
from fastmcp import Client

from calorie_analyzer.application.analysis_service import FoodImageAnalysisService
from calorie_analyzer.mcp_server import server_fastmcp
from calorie_analyzer.mcp_server.server_fastmcp import configure_service, mcp


@pytest.fixture
def wired_service(service: FoodImageAnalysisService) -> Iterator[FoodImageAnalysisService]:
    configure_service(service)
    yield service
    configure_service(None)


class TestToolListing:
    """Test tool discovery."""

    @pytest.mark.asyncio
    async def test_analyze_food_image_listed(self) -> None:
        async with Client(mcp) as client:
            tools = await client.list_tools()

        tool = next(t for t in tools if t.name == "analyze_food_image")
        schema = tool.inputSchema
        assert set(schema["required"]) == {"image_data", "image_type"}
        assert schema["properties"]["image_type"]["enum"] == [
            "image/jpeg",
            "image/png",
            "image/webp",
            "image/gif",
        ]
        assert schema["properties"]["detail_level"]["enum"] == ["basic", "detailed"]


class TestAnalyzeFoodImageTool:
    """Test tool calls."""

    @pytest.mark.asyncio
    async def test_success(self, wired_service: FoodImageAnalysisService) -> None:
        async with Client(mcp) as client:
            result = await client.call_tool(
                "analyze_food_image",
                {"image_data": "/9j/4AAQSkZJRgABAQ==", "image_type": "image/jpeg"},
            )

        summary = 'Analyzed "Apple": 80 calories, 0.3g fat, 0.4g protein. Confidence: 90%'
        assert result.content[0].text == summary
        assert result.structured_content["summary"] == summary
        assert result.structured_content["analysis"]["food_items"][0]["name"] == "Apple"
        assert "error" not in result.structured_content

    @pytest.mark.asyncio
    async def test_validation_error_is_a_normal_result(
        self, wired_service: FoodImageAnalysisService
    ) -> None:
        async with Client(mcp) as client:
            result = await client.call_tool(
                "analyze_food_image",
                {"image_data": "aGVsbG8=", "image_type": "image/bmp", "detail_level": "basic"},
            )

        assert result.structured_content["error"]["code"] == "VALIDATION_ERROR"
        assert result.content[0].text.startswith("Error: Unsupported image type")
        wired_service.invoker.invoke.assert_not_called()

    @pytest.mark.asyncio
    async def test_parse_error_carries_raw_response(
        self, wired_service: FoodImageAnalysisService
    ) -> None:
        wired_service.invoker.invoke.return_value = "not json at all"

        async with Client(mcp) as client:
            result = await client.call_tool(
                "analyze_food_image",
                {"image_data": "aGVsbG8=", "image_type": "image/png", "detail_level": "detailed"},
            )

        assert result.structured_content["error"]["code"] == "PARSE_ERROR"
        assert result.structured_content["raw_response"] == "not json at all"


class TestResourcesAndPrompts:
    """Test resources and prompt."""

    @pytest.mark.asyncio
    async def test_common_foods_resource(self) -> None:
        async with Client(mcp) as client:
            contents = await client.read_resource("calorie-analyzer://reference/common-foods")

        foods = json.loads(contents[0].text)
        assert {food["name"] for food in foods} >= {"Apple", "Banana", "Rice"}

    @pytest.mark.asyncio
    async def test_schema_resource(self) -> None:
        async with Client(mcp) as client:
            contents = await client.read_resource(
                "calorie-analyzer://schema/nutritional-analysis"
            )

        schema = json.loads(contents[0].text)
        assert "food_items" in schema["properties"]
        assert "food_items" in schema["required"]

    @pytest.mark.asyncio
    async def test_assistant_prompt(self) -> None:
        async with Client(mcp) as client:
            prompt = await client.get_prompt("food_photo_assistant")

        assert "analyze_food_image" in prompt.messages[0].content.text


def test_get_service_builds_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("OPENAI_API_KEY", "sk-env")
    monkeypatch.setenv("OPENAI_VISION_MODEL", "gpt-4o-mini")
    monkeypatch.setenv("MCP_TRANSPORT", "stdio")
    configure_service(None)

    try:
        built = server_fastmcp.get_service()
        assert built.invoker.api_key == "sk-env"
        assert built.invoker.model == "gpt-4o-mini"
        assert server_fastmcp.get_service() is built
    finally:
        configure_service(None)


def test_configure_service_replaces_instance() -> None:
    custom = FoodImageAnalysisService(invoker=AsyncMock())
    configure_service(custom)
    try:
        assert server_fastmcp.get_service() is custom
    finally:
        configure_service(None)
