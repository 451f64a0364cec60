"""ClickHouse HTTP 인터페이스로 메타데이터를 조회하는 클라이언트예요.

MCP 코어가 보기에는 "데이터베이스/테이블/컬럼 목록을 주거나 실패한다"는
협력자예요. 쿼리 값은 모두 서버 측 쿼리 파라미터(`{name:String}`)로 바인딩해요.
"""

from __future__ import annotations

from typing import Any

import httpx

from clickhouse_mcp.app.clickhouse.errors import (
    AuthenticationFailedError,
    ClickHouseError,
    ClickHouseInternalError,
    ConnectionFailedError,
    DatabaseNotFoundError,
    InvalidIdentifierError,
    NetworkError,
    PermissionDeniedError,
    QueryFailedError,
    QueryTimeoutError,
    ServiceUnavailableError,
    TableNotFoundError,
)
from clickhouse_mcp.app.clickhouse.models import ColumnInfo, DatabaseInfo, TableInfo
from clickhouse_mcp.app.settings import ClickHouseSettings
from libs.common.logging import get_logger
from libs.common.retry import retry_async

logger = get_logger("clickhouse_mcp.clickhouse")

MAX_IDENTIFIER_LENGTH = 64
MAX_RETRY_DELAY_SECONDS = 5.0
_ERROR_SNIPPET_LENGTH = 500


def _is_retryable(exc: Exception) -> bool:
    return isinstance(exc, ClickHouseError) and exc.retryable


def _error_snippet(text: str) -> str:
    text = text.strip()
    first_line = text.splitlines()[0] if text else ""
    return first_line[:_ERROR_SNIPPET_LENGTH] or "empty response"


class ClickHouseClient:
    def __init__(
        self,
        *,
        url: str,
        database: str,
        username: str,
        password: str,
        timeout_seconds: float = 30.0,
        max_retries: int = 3,
        base_delay_seconds: float = 0.1,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._url = url.rstrip("/")
        self._database = database
        self._username = username
        self._password = password
        self._timeout_seconds = timeout_seconds
        self._max_retries = max_retries
        self._base_delay_seconds = base_delay_seconds
        self._client = http_client or httpx.AsyncClient(timeout=self._timeout_seconds)

    @classmethod
    def from_settings(cls, settings: ClickHouseSettings) -> "ClickHouseClient":
        return cls(
            url=settings.url,
            database=settings.database,
            username=settings.username,
            password=settings.password,
            timeout_seconds=settings.timeout_seconds,
            max_retries=settings.max_retries,
            base_delay_seconds=settings.retry_base_delay_seconds,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    @staticmethod
    def validate_identifier(identifier: str) -> None:
        """쿼리 전에 데이터베이스/테이블 이름 형태를 검사해요.

        Raises:
            InvalidIdentifierError: 비어 있거나, 64자를 넘거나, 영숫자/`_`/`-`
                외의 문자가 있거나, 숫자로 시작할 때예요.
        """
        if not identifier:
            raise InvalidIdentifierError(identifier, "Identifier cannot be empty")
        if len(identifier) > MAX_IDENTIFIER_LENGTH:
            raise InvalidIdentifierError(
                identifier,
                f"Identifier cannot be longer than {MAX_IDENTIFIER_LENGTH} characters",
            )
        if not all(char.isalnum() or char in "_-" for char in identifier):
            raise InvalidIdentifierError(
                identifier,
                "Identifier can only contain alphanumeric characters, underscore, and hyphen",
            )
        if identifier[0].isdigit():
            raise InvalidIdentifierError(identifier, "Identifier cannot start with a digit")

    async def health_check(self) -> None:
        logger.info("clickhouse_health_check", url=self._url)
        await self._query("SELECT 1 AS ok")
        logger.info("clickhouse_health_check_passed")

    async def list_databases(self) -> list[DatabaseInfo]:
        logger.info("clickhouse_list_databases")
        rows = await self._query("SELECT name FROM system.databases ORDER BY name")
        databases = [DatabaseInfo.model_validate(row) for row in rows]
        logger.debug("clickhouse_databases_found", count=len(databases))
        return databases

    async def list_tables(self, database: str) -> list[TableInfo]:
        self.validate_identifier(database)
        logger.info("clickhouse_list_tables", database=database)

        if not await self._database_exists(database):
            raise DatabaseNotFoundError(database)

        rows = await self._query(
            "SELECT name, database, engine FROM system.tables "
            "WHERE database = {database:String} ORDER BY name",
            params={"database": database},
            database=database,
        )
        tables = [TableInfo.model_validate(row) for row in rows]
        logger.debug("clickhouse_tables_found", database=database, count=len(tables))
        return tables

    async def get_table_schema(self, database: str, table: str) -> list[ColumnInfo]:
        self.validate_identifier(database)
        self.validate_identifier(table)
        logger.info("clickhouse_get_table_schema", database=database, table=table)

        if not await self._database_exists(database):
            raise DatabaseNotFoundError(database)
        if not await self._table_exists(database, table):
            raise TableNotFoundError(database, table)

        rows = await self._query(
            "SELECT name, type, default_kind AS default_type, default_expression, comment, "
            "is_in_partition_key, is_in_sorting_key, is_in_primary_key, is_in_sampling_key "
            "FROM system.columns WHERE database = {database:String} AND table = {table:String} "
            "ORDER BY position",
            params={"database": database, "table": table},
            database=database,
            table=table,
        )
        if not rows:
            raise TableNotFoundError(database, table)

        columns = [ColumnInfo.model_validate(row) for row in rows]
        logger.debug("clickhouse_columns_found", database=database, table=table, count=len(columns))
        return columns

    async def _database_exists(self, database: str) -> bool:
        rows = await self._query(
            "SELECT count() > 0 AS found FROM system.databases WHERE name = {database:String}",
            params={"database": database},
            database=database,
        )
        return bool(rows and rows[0].get("found"))

    async def _table_exists(self, database: str, table: str) -> bool:
        rows = await self._query(
            "SELECT count() > 0 AS found FROM system.tables "
            "WHERE database = {database:String} AND name = {table:String}",
            params={"database": database, "table": table},
            database=database,
            table=table,
        )
        return bool(rows and rows[0].get("found"))

    async def _query(
        self,
        sql: str,
        *,
        params: dict[str, str] | None = None,
        database: str | None = None,
        table: str | None = None,
    ) -> list[dict[str, Any]]:
        def _log_retry(attempt: int, exc: Exception, delay: float) -> None:
            logger.warning(
                "clickhouse_retry",
                attempt=attempt,
                delay_ms=round(delay * 1000),
                error=str(exc),
            )

        return await retry_async(
            lambda: self._query_once(sql, params=params, database=database, table=table),
            retries=self._max_retries,
            base_delay_seconds=self._base_delay_seconds,
            max_delay_seconds=MAX_RETRY_DELAY_SECONDS,
            retry_filter=_is_retryable,
            on_retry=_log_retry,
        )

    async def _query_once(
        self,
        sql: str,
        *,
        params: dict[str, str] | None,
        database: str | None,
        table: str | None,
    ) -> list[dict[str, Any]]:
        query_params: dict[str, str] = {"database": self._database}
        for key, value in (params or {}).items():
            query_params[f"param_{key}"] = value

        headers = {"X-ClickHouse-User": self._username}
        if self._password:
            headers["X-ClickHouse-Key"] = self._password

        try:
            response = await self._client.post(
                self._url,
                params=query_params,
                content=f"{sql} FORMAT JSON",
                headers=headers,
            )
        except httpx.TimeoutException as exc:
            raise QueryTimeoutError(self._timeout_seconds) from exc
        except httpx.ConnectError as exc:
            raise ConnectionFailedError(str(exc) or self._url) from exc
        except httpx.HTTPError as exc:
            raise NetworkError(str(exc) or type(exc).__name__) from exc

        if response.status_code >= 400:
            raise self._convert_error_response(response, database=database, table=table)

        try:
            body = response.json()
        except ValueError as exc:
            raise ClickHouseInternalError("ClickHouse returned a non-JSON response") from exc
        if not isinstance(body, dict) or not isinstance(body.get("data"), list):
            raise ClickHouseInternalError("ClickHouse response has no data rows")
        return [row for row in body["data"] if isinstance(row, dict)]

    def _convert_error_response(
        self,
        response: httpx.Response,
        *,
        database: str | None,
        table: str | None,
    ) -> ClickHouseError:
        text = response.text
        status = response.status_code

        if "AUTHENTICATION_FAILED" in text or "Authentication failed" in text:
            return AuthenticationFailedError(_error_snippet(text))
        if "ACCESS_DENIED" in text or "Access denied" in text or "Not enough privileges" in text:
            return PermissionDeniedError("query")
        if "UNKNOWN_DATABASE" in text or ("Database" in text and "doesn't exist" in text):
            return DatabaseNotFoundError(database or "unknown")
        if "UNKNOWN_TABLE" in text or "doesn't exist" in text:
            return TableNotFoundError(database or "unknown", table or "unknown")
        if "TIMEOUT_EXCEEDED" in text:
            return QueryTimeoutError(self._timeout_seconds)
        if status in (401, 403, 516):
            return AuthenticationFailedError(_error_snippet(text))
        if status in (502, 503, 504):
            return ServiceUnavailableError(f"HTTP {status}")
        return QueryFailedError(_error_snippet(text))
