"""세션 단계에 따라 JSON-RPC 요청을 핸들러로 보내는 디스패처예요.

상태 전이는 `UNINITIALIZED → INITIALIZED` 하나뿐이에요. 세션 상태는 숨은
전역이 아니라 `dispatch`에 값으로 들어가고 `DispatchResult.state`로 나와요.

오류 분류:
    - 봉투/파라미터 형태 오류, 알 수 없는 메서드·도구, 초기화 전 요청은
      JSON-RPC 오류 응답이 돼요.
    - 도구 실행 실패는 `isError: true`가 담긴 성공 응답이 돼요.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from clickhouse_mcp.app.jsonrpc import (
    InternalError,
    InvalidParamsError,
    InvalidRequestError,
    JsonRpcError,
    JsonRpcFailure,
    JsonRpcRequest,
    JsonRpcResponse,
    JsonRpcSuccess,
    MethodNotFoundError,
    ServerNotInitializedError,
)
from clickhouse_mcp.app.mcp_protocol import (
    METHOD_INITIALIZE,
    InitializedNotification,
    InitializeRequest,
    McpRequest,
    ToolsCallRequest,
    ToolsListRequest,
    build_server_capabilities,
    validate_request,
)
from clickhouse_mcp.app.session import SessionState
from clickhouse_mcp.app.tools.registry import ToolArgumentError, ToolNotFoundError, ToolRegistry
from libs.common.logging import get_logger

logger = get_logger("clickhouse_mcp.dispatcher")


@dataclass(slots=True, frozen=True)
class DispatchResult:
    state: SessionState
    # 알림이면 None이에요.
    response: JsonRpcResponse | None


class McpDispatcher:
    def __init__(
        self,
        *,
        registry: ToolRegistry,
        server_name: str,
        server_version: str,
        require_initialized_notification: bool = False,
    ) -> None:
        self._registry = registry
        self._server_name = server_name
        self._server_version = server_version
        self._require_initialized_notification = require_initialized_notification

    async def dispatch(self, state: SessionState, request: JsonRpcRequest) -> DispatchResult:
        """요청 하나를 처리하고 새 세션 상태와 응답을 돌려줘요.

        프로토콜 오류와 예상하지 못한 예외 모두 이 안에서 응답으로 바꿔요.
        알림(id 없음)에는 어떤 경우에도 응답을 만들지 않아요.
        """
        logger.debug(
            "mcp_request_received",
            method=request.method,
            request_id=request.id,
            notification=request.is_notification,
        )
        try:
            self._check_session_gate(state, request)
            mcp_request = validate_request(request)
            new_state, result = await self._handle(state, mcp_request)
        except JsonRpcError as exc:
            return DispatchResult(state=state, response=self._error_response(request, exc))
        except Exception as exc:
            logger.exception(
                "mcp_request_crashed",
                method=request.method,
                request_id=request.id,
                error=str(exc),
            )
            internal = InternalError(f"Internal error: {exc}", request_id=request.id)
            return DispatchResult(state=state, response=self._error_response(request, internal))

        if request.is_notification or result is None:
            return DispatchResult(state=new_state, response=None)
        return DispatchResult(state=new_state, response=JsonRpcSuccess(id=request.id, result=result))

    def _check_session_gate(self, state: SessionState, request: JsonRpcRequest) -> None:
        if request.method == METHOD_INITIALIZE:
            if state.is_initialized:
                raise InvalidRequestError(
                    "Server already initialized",
                    request_id=request.id,
                    is_notification=request.is_notification,
                )
            return

        if not state.is_initialized:
            raise ServerNotInitializedError(
                "Server not initialized: send initialize first",
                request_id=request.id,
                is_notification=request.is_notification,
            )

    def _error_response(self, request: JsonRpcRequest, exc: JsonRpcError) -> JsonRpcResponse | None:
        if request.is_notification or exc.is_notification:
            logger.warning(
                "mcp_notification_rejected",
                method=request.method,
                code=exc.code,
                message=exc.message,
            )
            return None
        logger.warning(
            "mcp_request_rejected",
            method=request.method,
            request_id=request.id,
            code=exc.code,
            message=exc.message,
        )
        return JsonRpcFailure.from_error(exc, request_id=request.id)

    async def _handle(
        self,
        state: SessionState,
        mcp_request: McpRequest,
    ) -> tuple[SessionState, dict[str, Any] | None]:
        if isinstance(mcp_request, InitializeRequest):
            return self._handle_initialize(state, mcp_request)
        if isinstance(mcp_request, InitializedNotification):
            return self._handle_initialized(state, mcp_request)

        if self._require_initialized_notification and not state.client_ready:
            raise ServerNotInitializedError(
                "Server not initialized: waiting for initialized notification",
                request_id=mcp_request.id,
            )

        if isinstance(mcp_request, ToolsListRequest):
            return state, self._handle_tools_list()
        return state, await self._handle_tools_call(mcp_request)

    def _handle_initialize(
        self,
        state: SessionState,
        mcp_request: InitializeRequest,
    ) -> tuple[SessionState, dict[str, Any]]:
        params = mcp_request.params
        new_state = state.with_initialized(
            protocol_version=params.protocol_version,
            client_name=params.client_info.name,
            client_version=params.client_info.version,
            client_capabilities=params.capabilities,
        )
        logger.info(
            "mcp_initialized",
            protocol_version=params.protocol_version,
            client_name=params.client_info.name,
            client_version=params.client_info.version,
        )
        return new_state, {
            "protocolVersion": params.protocol_version,
            "capabilities": build_server_capabilities(),
            "serverInfo": {
                "name": self._server_name,
                "version": self._server_version,
            },
        }

    def _handle_initialized(
        self,
        state: SessionState,
        mcp_request: InitializedNotification,
    ) -> tuple[SessionState, dict[str, Any] | None]:
        logger.info("mcp_client_ready")
        new_state = state.with_client_ready()
        if mcp_request.has_id:
            return new_state, {}
        return new_state, None

    def _handle_tools_list(self) -> dict[str, Any]:
        descriptors = self._registry.list_descriptors()
        logger.debug("mcp_tools_listed", count=len(descriptors))
        return {"tools": [descriptor.to_dict() for descriptor in descriptors]}

    async def _handle_tools_call(self, mcp_request: ToolsCallRequest) -> dict[str, Any]:
        invocation = mcp_request.invocation
        try:
            result = await self._registry.invoke(invocation.name, invocation.arguments)
        except ToolNotFoundError as exc:
            raise MethodNotFoundError(
                exc.message,
                data={"name": exc.name},
                request_id=mcp_request.id,
            ) from exc
        except ToolArgumentError as exc:
            raise InvalidParamsError(
                exc.message,
                data={"name": exc.name, "errors": exc.problems},
                request_id=mcp_request.id,
            ) from exc

        logger.info("mcp_tool_called", tool=invocation.name, is_error=not result.ok)
        return result.to_call_result()
