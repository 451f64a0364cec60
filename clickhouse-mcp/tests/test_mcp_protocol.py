from __future__ import annotations

from typing import Any

import pytest

from clickhouse_mcp.app.jsonrpc import (
    INVALID_PARAMS,
    InvalidParamsError,
    JsonRpcRequest,
    MethodNotFoundError,
)
from clickhouse_mcp.app.mcp_protocol import (
    InitializedNotification,
    InitializeRequest,
    ToolsCallRequest,
    ToolsListRequest,
    validate_request,
)


def _request(method: str, params: Any = None, request_id: int | None = 1) -> JsonRpcRequest:
    return JsonRpcRequest(method=method, params=params, id=request_id, has_id=request_id is not None)


def _initialize_params(**overrides: Any) -> dict[str, Any]:
    params: dict[str, Any] = {
        "protocolVersion": "2024-11-05",
        "capabilities": {},
        "clientInfo": {"name": "t", "version": "1"},
    }
    params.update(overrides)
    return params


def test_validate_initialize() -> None:
    validated = validate_request(_request("initialize", _initialize_params()))
    assert isinstance(validated, InitializeRequest)
    assert validated.params.protocol_version == "2024-11-05"
    assert validated.params.client_info.name == "t"


@pytest.mark.parametrize(
    "params",
    [
        {"capabilities": {}, "clientInfo": {"name": "t", "version": "1"}},
        _initialize_params(protocolVersion=20241105),
        _initialize_params(capabilities="all"),
        _initialize_params(clientInfo={"name": "t"}),
        _initialize_params(clientInfo={"name": "t", "version": 1}),
        _initialize_params(clientInfo="t"),
    ],
)
def test_validate_initialize_rejects_bad_params(params: dict[str, Any]) -> None:
    with pytest.raises(InvalidParamsError) as exc_info:
        validate_request(_request("initialize", params))
    assert exc_info.value.code == INVALID_PARAMS
    assert exc_info.value.request_id == 1
    assert exc_info.value.data["errors"]


def test_validate_rejects_positional_params() -> None:
    with pytest.raises(InvalidParamsError):
        validate_request(_request("initialize", ["2024-11-05"]))


def test_validate_unknown_method() -> None:
    with pytest.raises(MethodNotFoundError) as exc_info:
        validate_request(_request("resources/list"))
    assert exc_info.value.data == {"method": "resources/list"}


def test_validate_initialized_aliases() -> None:
    plain = validate_request(_request("initialized", request_id=None))
    standard = validate_request(_request("notifications/initialized", request_id=None))
    assert isinstance(plain, InitializedNotification)
    assert isinstance(standard, InitializedNotification)
    assert plain.has_id is False


def test_validate_tools_list_ignores_cursor() -> None:
    validated = validate_request(_request("tools/list", {"cursor": "next"}))
    assert isinstance(validated, ToolsListRequest)


def test_validate_tools_call_defaults_arguments() -> None:
    validated = validate_request(_request("tools/call", {"name": "list_databases"}))
    assert isinstance(validated, ToolsCallRequest)
    assert validated.invocation.name == "list_databases"
    assert validated.invocation.arguments == {}


@pytest.mark.parametrize(
    "params",
    [
        {},
        {"name": ""},
        {"name": 3},
        {"name": "list_tables", "arguments": ["default"]},
    ],
)
def test_validate_tools_call_rejects_bad_params(params: dict[str, Any]) -> None:
    with pytest.raises(InvalidParamsError):
        validate_request(_request("tools/call", params))
