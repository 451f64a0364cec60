from clickhouse_mcp.app.tools.base import BaseTool, ToolDescriptor, ToolResult
from clickhouse_mcp.app.tools.registry import ToolArgumentError, ToolNotFoundError, ToolRegistry

__all__ = [
    "BaseTool",
    "ToolArgumentError",
    "ToolDescriptor",
    "ToolNotFoundError",
    "ToolRegistry",
    "ToolResult",
]
