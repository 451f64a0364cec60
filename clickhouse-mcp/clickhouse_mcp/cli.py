from __future__ import annotations

import asyncio
import io
import sys

from pydantic import ValidationError as PydanticValidationError

from clickhouse_mcp.app.clickhouse.client import ClickHouseClient
from clickhouse_mcp.app.clickhouse.errors import ClickHouseError
from clickhouse_mcp.app.dispatcher import McpDispatcher
from clickhouse_mcp.app.settings import ClickHouseSettings, ServerSettings
from clickhouse_mcp.app.stdio_server import LineReader, McpStdioServer, ResponseWriter
from clickhouse_mcp.app.tools.defaults import build_default_tool_registry
from libs.common.logging import configure_logging, get_logger

logger = get_logger("clickhouse_mcp.cli")

EXIT_OK = 0
EXIT_STARTUP_FAILURE = 1


def _configure_stdio() -> None:
    # stdin은 바이트로 읽고 줄마다 디코딩해요.
    if isinstance(sys.stdout, io.TextIOWrapper):
        sys.stdout.reconfigure(encoding="utf-8", errors="strict")


async def _serve(server_settings: ServerSettings, clickhouse_settings: ClickHouseSettings) -> int:
    client = ClickHouseClient.from_settings(clickhouse_settings)
    try:
        if server_settings.startup_health_check:
            try:
                await client.health_check()
            except ClickHouseError as exc:
                # 도구 호출 시점에 다시 시도하니 시작은 계속해요.
                logger.warning("clickhouse_unreachable_at_startup", error_code=exc.error_code, message=exc.message)

        dispatcher = McpDispatcher(
            registry=build_default_tool_registry(client),
            server_name=server_settings.server_name,
            server_version=server_settings.server_version,
            require_initialized_notification=server_settings.require_initialized_notification,
        )
        server = McpStdioServer(
            dispatcher=dispatcher,
            reader=LineReader(sys.stdin.buffer),
            writer=ResponseWriter(sys.stdout),
        )
        await server.serve()
    finally:
        await client.aclose()
    return EXIT_OK


def run() -> int:
    try:
        server_settings = ServerSettings()
        clickhouse_settings = ClickHouseSettings()
    except PydanticValidationError as exc:
        configure_logging()
        logger.error("startup_configuration_invalid", error=str(exc))
        return EXIT_STARTUP_FAILURE

    configure_logging(server_settings.log_level)
    _configure_stdio()
    logger.info(
        "mcp_server_starting",
        server_name=server_settings.server_name,
        server_version=server_settings.server_version,
        clickhouse_url=clickhouse_settings.url,
        clickhouse_database=clickhouse_settings.database,
    )

    try:
        return asyncio.run(_serve(server_settings, clickhouse_settings))
    except KeyboardInterrupt:
        logger.info("mcp_server_interrupted")
        return EXIT_OK
    except BrokenPipeError:
        logger.info("mcp_server_output_closed")
        return EXIT_OK


def main() -> None:
    sys.exit(run())
