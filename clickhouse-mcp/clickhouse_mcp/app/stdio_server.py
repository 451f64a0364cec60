"""stdin/stdout 위에서 줄 단위 JSON-RPC를 주고받는 서버 루프예요.

한 줄 읽기 → 파싱 → 디스패치 → 한 줄 쓰기를 순서대로 반복해요. 요청을
동시에 처리하지 않으니 응답 순서는 항상 요청 순서와 같아요.
"""

from __future__ import annotations

import asyncio
import json
from typing import BinaryIO, TextIO

from clickhouse_mcp.app.dispatcher import McpDispatcher
from clickhouse_mcp.app.jsonrpc import (
    JsonRpcError,
    JsonRpcFailure,
    JsonRpcResponse,
    parse_envelope,
    parse_line,
)
from clickhouse_mcp.app.session import SessionState
from libs.common.logging import get_logger

logger = get_logger("clickhouse_mcp.stdio_server")

_LOG_LINE_LIMIT = 200


class LineReader:
    """바이너리 스트림에서 줄을 바이트 그대로 읽어요. 디코딩은 `parse_line` 몫이에요."""

    def __init__(self, stream: BinaryIO) -> None:
        self._stream = stream

    async def read_line(self) -> bytes | None:
        """다음 줄을 읽어요. 입력이 끝나면 None이에요."""
        # 블로킹 readline이 이벤트 루프를 막지 않도록 스레드로 넘겨요.
        line = await asyncio.to_thread(self._stream.readline)
        if line == b"":
            return None
        return line


class ResponseWriter:
    def __init__(self, stream: TextIO) -> None:
        self._stream = stream

    def write(self, response: JsonRpcResponse) -> None:
        """응답 하나를 JSON 한 줄로 쓰고 바로 flush해요."""
        line = json.dumps(response.to_dict(), ensure_ascii=False, separators=(",", ":"))
        self._stream.write(line + "\n")
        self._stream.flush()


class McpStdioServer:
    def __init__(
        self,
        *,
        dispatcher: McpDispatcher,
        reader: LineReader,
        writer: ResponseWriter,
        state: SessionState | None = None,
    ) -> None:
        self._dispatcher = dispatcher
        self._reader = reader
        self._writer = writer
        self._state = state or SessionState()

    @property
    def state(self) -> SessionState:
        return self._state

    async def serve(self) -> None:
        """입력이 끝날 때까지 요청을 처리해요. 요청 하나의 실패로 루프가 끝나지 않아요."""
        logger.info("mcp_server_loop_started")
        while True:
            line = await self._reader.read_line()
            if line is None:
                logger.info("mcp_server_input_closed")
                return

            line = line.strip()
            if not line:
                continue

            response = await self.handle_line(line)
            if response is not None:
                self._writer.write(response)

    async def handle_line(self, line: str | bytes) -> JsonRpcResponse | None:
        try:
            request = parse_envelope(parse_line(line))
        except JsonRpcError as exc:
            if exc.is_notification:
                logger.warning("mcp_notification_malformed", message=exc.message)
                return None
            if isinstance(line, bytes):
                line = line.decode("utf-8", errors="replace")
            logger.warning(
                "mcp_message_malformed",
                code=exc.code,
                message=exc.message,
                line=line[:_LOG_LINE_LIMIT],
            )
            return JsonRpcFailure.from_error(exc)

        result = await self._dispatcher.dispatch(self._state, request)
        self._state = result.state
        return result.response
