"""한 데이터베이스의 테이블 목록을 보여주는 도구예요."""

from __future__ import annotations

from typing import Any

from clickhouse_mcp.app.tools.base import BaseTool, SchemaCatalogProtocol, ToolResult


class ListTablesTool(BaseTool):
    def __init__(self, catalog: SchemaCatalogProtocol) -> None:
        self._catalog = catalog

    @property
    def name(self) -> str:
        return "list_tables"

    @property
    def description(self) -> str:
        return "List all tables in a specific database"

    @property
    def input_schema(self) -> dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "database": {
                    "type": "string",
                    "description": "The database name to list tables from",
                },
            },
            "required": ["database"],
        }

    async def execute(self, arguments: dict[str, Any]) -> ToolResult:
        database = arguments["database"]
        tables = await self._catalog.list_tables(database)
        lines = [f"Tables in database '{database}':"]
        lines.extend(f"- {table.name} (Engine: {table.engine})" for table in tables)
        return ToolResult(
            ok=True,
            output="\n".join(lines) + "\n",
            metadata={"table_count": len(tables)},
        )
