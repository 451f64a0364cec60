from __future__ import annotations

import pytest

from clickhouse_mcp.app.clickhouse.models import ColumnInfo, DatabaseInfo, TableInfo
from clickhouse_mcp.app.dispatcher import McpDispatcher
from clickhouse_mcp.app.session import SessionState
from clickhouse_mcp.app.tools.defaults import build_default_tool_registry
from clickhouse_mcp.app.tools.registry import ToolRegistry


class FakeCatalog:
    """ClickHouse 대신 메모리 데이터를 돌려주는 협력자예요. `error`를 넣으면 모든 호출이 실패해요."""

    def __init__(self) -> None:
        self.databases: list[str] = ["default", "system"]
        self.tables: dict[str, list[TableInfo]] = {
            "default": [
                TableInfo(name="events", database="default", engine="MergeTree"),
                TableInfo(name="users", database="default", engine="ReplacingMergeTree"),
            ],
        }
        self.columns: dict[tuple[str, str], list[ColumnInfo]] = {
            ("default", "events"): [
                ColumnInfo.model_validate(
                    {
                        "name": "id",
                        "type": "UInt64",
                        "comment": "event id",
                        "is_in_primary_key": 1,
                        "is_in_sorting_key": 1,
                    }
                ),
                ColumnInfo.model_validate({"name": "payload", "type": "String"}),
            ],
        }
        self.error: Exception | None = None
        self.calls: list[tuple[str, ...]] = []

    def _raise_if_failing(self) -> None:
        if self.error is not None:
            raise self.error

    async def list_databases(self) -> list[DatabaseInfo]:
        self.calls.append(("list_databases",))
        self._raise_if_failing()
        return [DatabaseInfo(name=name) for name in self.databases]

    async def list_tables(self, database: str) -> list[TableInfo]:
        self.calls.append(("list_tables", database))
        self._raise_if_failing()
        return list(self.tables.get(database, []))

    async def get_table_schema(self, database: str, table: str) -> list[ColumnInfo]:
        self.calls.append(("get_table_schema", database, table))
        self._raise_if_failing()
        return list(self.columns.get((database, table), []))


@pytest.fixture
def catalog() -> FakeCatalog:
    """각 테스트용으로 새로 만든 FakeCatalog예요."""
    return FakeCatalog()


@pytest.fixture
def registry(catalog: FakeCatalog) -> ToolRegistry:
    return build_default_tool_registry(catalog)


@pytest.fixture
def dispatcher(registry: ToolRegistry) -> McpDispatcher:
    return McpDispatcher(
        registry=registry,
        server_name="clickhouse-mcp",
        server_version="0.1.0",
    )


@pytest.fixture
def initialized_state() -> SessionState:
    """initialize 핸드셰이크를 마친 세션 상태예요."""
    return SessionState().with_initialized(
        protocol_version="2024-11-05",
        client_name="t",
        client_version="1",
        client_capabilities={},
    )
