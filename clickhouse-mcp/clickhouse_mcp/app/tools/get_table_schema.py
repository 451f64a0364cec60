"""테이블 컬럼 구성을 보여주는 도구예요."""

from __future__ import annotations

from typing import Any

from clickhouse_mcp.app.clickhouse.models import ColumnInfo
from clickhouse_mcp.app.tools.base import BaseTool, SchemaCatalogProtocol, ToolResult


def format_column(column: ColumnInfo) -> str:
    """`- name: Type -- comment [PRIMARY KEY, SORTING KEY]` 형태의 한 줄이에요."""
    line = f"- {column.name}: {column.column_type}"
    if column.comment:
        line += f" -- {column.comment}"
    flags = column.flags
    if flags:
        line += f" [{', '.join(flags)}]"
    return line


class GetTableSchemaTool(BaseTool):
    def __init__(self, catalog: SchemaCatalogProtocol) -> None:
        self._catalog = catalog

    @property
    def name(self) -> str:
        return "get_table_schema"

    @property
    def description(self) -> str:
        return "Get the schema (columns) of a specific table"

    @property
    def input_schema(self) -> dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "database": {
                    "type": "string",
                    "description": "The database name",
                },
                "table": {
                    "type": "string",
                    "description": "The table name",
                },
            },
            "required": ["database", "table"],
        }

    async def execute(self, arguments: dict[str, Any]) -> ToolResult:
        database = arguments["database"]
        table = arguments["table"]
        columns = await self._catalog.get_table_schema(database, table)

        lines = [f"Schema for table '{database}.{table}':", "", "Columns:"]
        lines.extend(format_column(column) for column in columns)
        return ToolResult(
            ok=True,
            output="\n".join(lines) + "\n",
            metadata={"column_count": len(columns)},
        )
