from __future__ import annotations

from typing import Any

import pytest

from clickhouse_mcp.app.clickhouse.errors import ServiceUnavailableError
from clickhouse_mcp.app.dispatcher import McpDispatcher
from clickhouse_mcp.app.jsonrpc import JsonRpcFailure, JsonRpcRequest, JsonRpcSuccess
from clickhouse_mcp.app.session import SessionPhase, SessionState
from clickhouse_mcp.app.tools.registry import ToolRegistry


def _request(method: str, params: Any = None, request_id: int | str | None = 1) -> JsonRpcRequest:
    return JsonRpcRequest(method=method, params=params, id=request_id, has_id=request_id is not None)


def _initialize(request_id: int = 1, protocol_version: str = "2024-11-05") -> JsonRpcRequest:
    return _request(
        "initialize",
        {
            "protocolVersion": protocol_version,
            "capabilities": {"roots": {}},
            "clientInfo": {"name": "t", "version": "1"},
        },
        request_id,
    )


def _error(response: Any) -> dict[str, Any]:
    assert isinstance(response, JsonRpcFailure)
    return response.to_dict()["error"]


@pytest.mark.asyncio
async def test_tools_list_before_initialize_is_rejected(dispatcher: McpDispatcher) -> None:
    result = await dispatcher.dispatch(SessionState(), _request("tools/list", request_id=4))
    assert result.response is not None
    assert result.response.to_dict()["id"] == 4
    assert _error(result.response)["code"] == -32002
    assert result.state.phase is SessionPhase.UNINITIALIZED


@pytest.mark.asyncio
async def test_unknown_method_before_initialize_reports_not_initialized(dispatcher: McpDispatcher) -> None:
    result = await dispatcher.dispatch(SessionState(), _request("resources/list"))
    assert _error(result.response)["code"] == -32002


@pytest.mark.asyncio
async def test_initialize_moves_session_and_echoes_version(dispatcher: McpDispatcher) -> None:
    result = await dispatcher.dispatch(SessionState(), _initialize(protocol_version="2025-03-26"))
    assert isinstance(result.response, JsonRpcSuccess)
    payload = result.response.to_dict()["result"]
    assert payload["protocolVersion"] == "2025-03-26"
    assert payload["serverInfo"] == {"name": "clickhouse-mcp", "version": "0.1.0"}
    assert payload["capabilities"]["tools"] == {"listChanged": False}

    assert result.state.is_initialized
    assert result.state.client_name == "t"
    assert result.state.client_capabilities == {"roots": {}}
    assert result.state.client_ready is False


@pytest.mark.asyncio
async def test_second_initialize_is_invalid_request(
    dispatcher: McpDispatcher,
    initialized_state: SessionState,
) -> None:
    result = await dispatcher.dispatch(initialized_state, _initialize(request_id=9))
    assert _error(result.response)["code"] == -32600
    assert result.state == initialized_state


@pytest.mark.asyncio
async def test_bad_initialize_params_keep_session_uninitialized(dispatcher: McpDispatcher) -> None:
    result = await dispatcher.dispatch(SessionState(), _request("initialize", {"capabilities": {}}))
    assert _error(result.response)["code"] == -32602
    assert not result.state.is_initialized


@pytest.mark.asyncio
async def test_unknown_method_after_initialize(
    dispatcher: McpDispatcher,
    initialized_state: SessionState,
) -> None:
    result = await dispatcher.dispatch(initialized_state, _request("prompts/list"))
    error = _error(result.response)
    assert error["code"] == -32601
    assert error["data"] == {"method": "prompts/list"}


@pytest.mark.asyncio
async def test_tools_list_returns_descriptors(
    dispatcher: McpDispatcher,
    initialized_state: SessionState,
) -> None:
    result = await dispatcher.dispatch(initialized_state, _request("tools/list", {"cursor": "x"}))
    assert isinstance(result.response, JsonRpcSuccess)
    tools = result.response.result["tools"]
    assert [tool["name"] for tool in tools] == ["list_databases", "list_tables", "get_table_schema"]
    assert all("inputSchema" in tool for tool in tools)


@pytest.mark.asyncio
async def test_tools_call_success(dispatcher: McpDispatcher, initialized_state: SessionState) -> None:
    result = await dispatcher.dispatch(
        initialized_state,
        _request("tools/call", {"name": "list_databases", "arguments": {}}, request_id="call-1"),
    )
    assert isinstance(result.response, JsonRpcSuccess)
    assert result.response.id == "call-1"
    assert result.response.result == {
        "content": [{"type": "text", "text": "Available databases:\n- default\n- system\n"}],
        "isError": False,
    }


@pytest.mark.asyncio
async def test_tools_call_unknown_tool(dispatcher: McpDispatcher, initialized_state: SessionState) -> None:
    result = await dispatcher.dispatch(initialized_state, _request("tools/call", {"name": "drop_table"}))
    error = _error(result.response)
    assert error["code"] == -32601
    assert error["data"] == {"name": "drop_table"}


@pytest.mark.asyncio
async def test_tools_call_missing_argument(
    dispatcher: McpDispatcher,
    initialized_state: SessionState,
    catalog: Any,
) -> None:
    result = await dispatcher.dispatch(
        initialized_state,
        _request("tools/call", {"name": "list_tables", "arguments": {}}),
    )
    error = _error(result.response)
    assert error["code"] == -32602
    assert error["data"]["name"] == "list_tables"
    assert error["data"]["errors"] == ["missing required argument 'database'"]
    assert catalog.calls == []


@pytest.mark.asyncio
async def test_tools_call_collaborator_failure_is_tool_error(
    dispatcher: McpDispatcher,
    initialized_state: SessionState,
    catalog: Any,
) -> None:
    catalog.error = ServiceUnavailableError("HTTP 503")
    result = await dispatcher.dispatch(
        initialized_state,
        _request("tools/call", {"name": "list_tables", "arguments": {"database": "default"}}),
    )
    assert isinstance(result.response, JsonRpcSuccess)
    assert result.response.result["isError"] is True
    text = result.response.result["content"][0]["text"]
    assert text == "Tool execution failed: Service unavailable: HTTP 503"


@pytest.mark.asyncio
async def test_notifications_never_get_responses(dispatcher: McpDispatcher) -> None:
    # 초기화 전 tools/list 알림도 오류 응답 없이 버려져요.
    result = await dispatcher.dispatch(SessionState(), _request("tools/list", request_id=None))
    assert result.response is None

    result = await dispatcher.dispatch(SessionState(), _request("unknown/thing", request_id=None))
    assert result.response is None


@pytest.mark.asyncio
async def test_initialized_notification_marks_client_ready(
    dispatcher: McpDispatcher,
    initialized_state: SessionState,
) -> None:
    result = await dispatcher.dispatch(initialized_state, _request("notifications/initialized", request_id=None))
    assert result.response is None
    assert result.state.client_ready is True


@pytest.mark.asyncio
async def test_initialized_with_id_gets_empty_result(
    dispatcher: McpDispatcher,
    initialized_state: SessionState,
) -> None:
    result = await dispatcher.dispatch(initialized_state, _request("initialized", request_id=5))
    assert isinstance(result.response, JsonRpcSuccess)
    assert result.response.to_dict() == {"jsonrpc": "2.0", "id": 5, "result": {}}


@pytest.mark.asyncio
async def test_strict_mode_waits_for_initialized_notification(
    registry: ToolRegistry,
    initialized_state: SessionState,
) -> None:
    dispatcher = McpDispatcher(
        registry=registry,
        server_name="clickhouse-mcp",
        server_version="0.1.0",
        require_initialized_notification=True,
    )
    result = await dispatcher.dispatch(initialized_state, _request("tools/list"))
    assert _error(result.response)["code"] == -32002

    ready = await dispatcher.dispatch(initialized_state, _request("initialized", request_id=None))
    result = await dispatcher.dispatch(ready.state, _request("tools/list", request_id=2))
    assert isinstance(result.response, JsonRpcSuccess)


@pytest.mark.asyncio
async def test_unexpected_exception_becomes_internal_error(
    dispatcher: McpDispatcher,
    initialized_state: SessionState,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    def _explode() -> dict[str, Any]:
        raise RuntimeError("registry broke")

    monkeypatch.setattr(dispatcher, "_handle_tools_list", _explode)
    result = await dispatcher.dispatch(initialized_state, _request("tools/list", request_id=3))
    error = _error(result.response)
    assert error["code"] == -32603
    assert "registry broke" in error["message"]
