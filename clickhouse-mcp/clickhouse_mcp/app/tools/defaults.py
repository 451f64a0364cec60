"""기본 ClickHouse 도구를 등록한 ToolRegistry를 생성하는 팩토리예요."""

from __future__ import annotations

from clickhouse_mcp.app.tools.base import SchemaCatalogProtocol
from clickhouse_mcp.app.tools.get_table_schema import GetTableSchemaTool
from clickhouse_mcp.app.tools.list_databases import ListDatabasesTool
from clickhouse_mcp.app.tools.list_tables import ListTablesTool
from clickhouse_mcp.app.tools.registry import ToolRegistry


def build_default_tool_registry(catalog: SchemaCatalogProtocol) -> ToolRegistry:
    """기본 도구 3개가 등록된 `ToolRegistry`를 생성해요.

    Args:
        catalog: 도구가 공유하는 데이터베이스 협력자예요. 보통 `ClickHouseClient`예요.

    Returns:
        `list_databases`, `list_tables`, `get_table_schema` 순서로 등록된 레지스트리예요.
    """
    registry = ToolRegistry()
    registry.register(ListDatabasesTool(catalog))
    registry.register(ListTablesTool(catalog))
    registry.register(GetTableSchemaTool(catalog))
    return registry
