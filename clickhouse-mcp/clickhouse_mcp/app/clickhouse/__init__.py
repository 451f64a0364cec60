from clickhouse_mcp.app.clickhouse.client import ClickHouseClient
from clickhouse_mcp.app.clickhouse.errors import ClickHouseError
from clickhouse_mcp.app.clickhouse.models import ColumnInfo, DatabaseInfo, TableInfo

__all__ = [
    "ClickHouseClient",
    "ClickHouseError",
    "ColumnInfo",
    "DatabaseInfo",
    "TableInfo",
]
