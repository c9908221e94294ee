"""
Calorie Analyzer.

Food photo nutrition estimation exposed as an MCP tool.

Structure:
- domain/: Analysis models, prompts, validation and parsing
- infrastructure/: Vision model provider adapters
- application/: The analyze_food_image use case
- mcp_server/: MCP (FastMCP) and HTTP entry points
"""

__version__ = "1.0.0"
