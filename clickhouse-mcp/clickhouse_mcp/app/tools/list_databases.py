"""ClickHouse 인스턴스의 데이터베이스 목록을 보여주는 도구예요."""

from __future__ import annotations

from typing import Any

from clickhouse_mcp.app.tools.base import BaseTool, SchemaCatalogProtocol, ToolResult


class ListDatabasesTool(BaseTool):
    def __init__(self, catalog: SchemaCatalogProtocol) -> None:
        self._catalog = catalog

    @property
    def name(self) -> str:
        return "list_databases"

    @property
    def description(self) -> str:
        return "List all databases in the ClickHouse instance"

    @property
    def input_schema(self) -> dict[str, Any]:
        return {
            "type": "object",
            "properties": {},
            "required": [],
        }

    async def execute(self, arguments: dict[str, Any]) -> ToolResult:
        del arguments
        databases = await self._catalog.list_databases()
        lines = ["Available databases:"]
        lines.extend(f"- {database.name}" for database in databases)
        return ToolResult(
            ok=True,
            output="\n".join(lines) + "\n",
            metadata={"database_count": len(databases)},
        )
