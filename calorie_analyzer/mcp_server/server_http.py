#!/usr/bin/env python3
"""
Calorie Analyzer MCP Server - HTTP Mode

Exposes the analyze_food_image tool as plain REST endpoints for clients
that cannot speak an MCP transport.
"""

from typing import Any, Awaitable, Callable, Dict, List

import structlog
import uvicorn
from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field, ValidationError

from calorie_analyzer.config import Settings
from calorie_analyzer.domain.analysis.models import AnalysisToolResult, DetailLevel
from calorie_analyzer.domain.analysis.validator import (
    SUPPORTED_DETAIL_LEVELS,
    SUPPORTED_IMAGE_TYPES,
)
from calorie_analyzer.logging_config import configure_logging
from calorie_analyzer.mcp_server.server_fastmcp import (
    SERVER_NAME,
    SERVER_VERSION,
    TOOL_DESCRIPTION,
    TOOL_NAME,
    build_service,
    configure_service,
    run_analyze_food_image,
)

logger = structlog.get_logger(__name__)


# FastAPI app
app = FastAPI(
    title="Calorie Analyzer MCP Server",
    description="HTTP MCP server for food photo nutrition analysis",
    version=SERVER_VERSION,
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Request/Response models
class ToolCallRequest(BaseModel):
    """Request body for a tool call."""
    arguments: Dict[str, Any]


class ToolCallResponse(BaseModel):
    """Response of a tool call."""
    result: Any
    error: str | None = None


class ToolInfo(BaseModel):
    """Tool description."""
    name: str
    description: str
    parameters: Dict[str, Any]


class AnalyzeFoodImageArguments(BaseModel):
    """Arguments of analyze_food_image."""
    image_data: str = Field(description="Raw base64 encoded image data (without data URI prefix)")
    image_type: str = Field(
        description="MIME type of the image",
        json_schema_extra={"enum": list(SUPPORTED_IMAGE_TYPES)},
    )
    detail_level: str = Field(
        DetailLevel.BASIC.value,
        description="Analysis detail level (default: basic)",
        json_schema_extra={"enum": list(SUPPORTED_DETAIL_LEVELS)},
    )


async def _call_analyze_food_image(arguments: AnalyzeFoodImageArguments) -> AnalysisToolResult:
    return await run_analyze_food_image(
        arguments.image_data,
        arguments.image_type,
        arguments.detail_level,
    )


# Tool registry - name → (arguments model, handler, description)
TOOL_REGISTRY: Dict[
    str, tuple[type[BaseModel], Callable[[Any], Awaitable[AnalysisToolResult]], str]
] = {
    TOOL_NAME: (AnalyzeFoodImageArguments, _call_analyze_food_image, TOOL_DESCRIPTION),
}


# === ENDPOINTS ===

@app.get("/")
async def root():
    """Health check."""
    return {
        "service": SERVER_NAME,
        "status": "healthy",
        "version": SERVER_VERSION,
        "transport": "http",
        "tools": len(TOOL_REGISTRY),
    }


@app.get("/health")
async def health():
    """Detailed health check."""
    return {
        "status": "healthy",
        "tools_available": list(TOOL_REGISTRY.keys()),
        "tools_count": len(TOOL_REGISTRY),
    }


@app.get("/tools", response_model=List[ToolInfo])
async def list_tools():
    """List all available tools with their schemas."""
    return [
        ToolInfo(name=name, description=description, parameters=model.model_json_schema())
        for name, (model, _, description) in TOOL_REGISTRY.items()
    ]


@app.post("/tools/{tool_name}", response_model=ToolCallResponse)
async def call_tool(tool_name: str, request: ToolCallRequest):
    """Execute a tool with provided arguments."""

    # Check if tool exists
    if tool_name not in TOOL_REGISTRY:
        raise HTTPException(
            status_code=404,
            detail=f"Tool '{tool_name}' not found. Available: {list(TOOL_REGISTRY.keys())}"
        )

    model, handler, _ = TOOL_REGISTRY[tool_name]

    try:
        arguments = model.model_validate(request.arguments)
    except ValidationError as e:
        raise HTTPException(
            status_code=422,
            detail=f"Invalid arguments for tool '{tool_name}': {e}"
        )

    logger.info("HTTP tool call", tool=tool_name)
    result = await handler(arguments)

    return ToolCallResponse(
        result=result.to_payload(),
        error=result.error.message if result.error else None,
    )


# === STARTUP ===

def main() -> None:
    """Run the HTTP server."""
    settings = Settings.from_env()
    configure_logging(settings.log_level, settings.log_format)
    configure_service(build_service(settings))

    logger.info("Starting HTTP server", host=settings.host, port=settings.port)
    uvicorn.run(app, host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
