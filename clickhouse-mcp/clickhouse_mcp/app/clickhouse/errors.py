from __future__ import annotations

from libs.common.errors import DomainError


class ClickHouseError(DomainError):
    """ClickHouse 호출 실패의 공통 부모예요."""


class ConnectionFailedError(ClickHouseError):
    def __init__(self, message: str) -> None:
        super().__init__("CLICKHOUSE_CONNECTION_FAILED", f"Connection failed: {message}", retryable=True)


class DatabaseNotFoundError(ClickHouseError):
    def __init__(self, database: str) -> None:
        super().__init__("CLICKHOUSE_DATABASE_NOT_FOUND", f"Database '{database}' not found")
        self.database = database


class TableNotFoundError(ClickHouseError):
    def __init__(self, database: str, table: str) -> None:
        super().__init__(
            "CLICKHOUSE_TABLE_NOT_FOUND",
            f"Table '{table}' not found in database '{database}'",
        )
        self.database = database
        self.table = table


class PermissionDeniedError(ClickHouseError):
    def __init__(self, operation: str) -> None:
        super().__init__("CLICKHOUSE_PERMISSION_DENIED", f"Permission denied for operation: {operation}")
        self.operation = operation


class QueryTimeoutError(ClickHouseError):
    def __init__(self, timeout_seconds: float) -> None:
        super().__init__(
            "CLICKHOUSE_QUERY_TIMEOUT",
            f"Query timeout after {timeout_seconds:g}s",
            retryable=True,
        )
        self.timeout_seconds = timeout_seconds


class InvalidIdentifierError(ClickHouseError):
    def __init__(self, identifier: str, reason: str) -> None:
        super().__init__("CLICKHOUSE_INVALID_IDENTIFIER", f"Invalid identifier '{identifier}': {reason}")
        self.identifier = identifier
        self.reason = reason


class NetworkError(ClickHouseError):
    def __init__(self, message: str) -> None:
        super().__init__("CLICKHOUSE_NETWORK_ERROR", f"Network error: {message}", retryable=True)


class AuthenticationFailedError(ClickHouseError):
    def __init__(self, message: str) -> None:
        super().__init__("CLICKHOUSE_AUTH_FAILED", f"Authentication failed: {message}")


class QueryFailedError(ClickHouseError):
    def __init__(self, message: str) -> None:
        super().__init__("CLICKHOUSE_QUERY_FAILED", f"Query failed: {message}")


class ServiceUnavailableError(ClickHouseError):
    def __init__(self, message: str) -> None:
        super().__init__("CLICKHOUSE_UNAVAILABLE", f"Service unavailable: {message}", retryable=True)


class ClickHouseInternalError(ClickHouseError):
    def __init__(self, message: str) -> None:
        super().__init__("CLICKHOUSE_INTERNAL_ERROR", f"Internal error: {message}")
