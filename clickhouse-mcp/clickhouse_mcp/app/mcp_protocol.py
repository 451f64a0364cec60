from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Union

from pydantic import BaseModel, ConfigDict, Field, StrictStr
from pydantic import ValidationError as PydanticValidationError

from clickhouse_mcp.app.jsonrpc import (
    InvalidParamsError,
    JsonRpcRequest,
    MethodNotFoundError,
    RequestId,
)

MCP_PROTOCOL_VERSION = "2024-11-05"

METHOD_INITIALIZE = "initialize"
METHOD_INITIALIZED = "initialized"
# 표준 MCP 클라이언트는 이 이름으로 보내요.
METHOD_NOTIFICATIONS_INITIALIZED = "notifications/initialized"
METHOD_TOOLS_LIST = "tools/list"
METHOD_TOOLS_CALL = "tools/call"

KNOWN_METHODS = frozenset(
    {
        METHOD_INITIALIZE,
        METHOD_INITIALIZED,
        METHOD_NOTIFICATIONS_INITIALIZED,
        METHOD_TOOLS_LIST,
        METHOD_TOOLS_CALL,
    }
)


class ClientInfo(BaseModel):
    model_config = ConfigDict(extra="allow")

    name: StrictStr
    version: StrictStr


class InitializeParams(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    protocol_version: StrictStr = Field(alias="protocolVersion", min_length=1)
    capabilities: dict[str, Any]
    client_info: ClientInfo = Field(alias="clientInfo")


class ToolCallParams(BaseModel):
    model_config = ConfigDict(extra="allow")

    name: StrictStr = Field(min_length=1)
    arguments: dict[str, Any] | None = None


@dataclass(slots=True, frozen=True)
class ToolInvocation:
    name: str
    arguments: dict[str, Any] = field(default_factory=dict)


@dataclass(slots=True, frozen=True)
class InitializeRequest:
    id: RequestId | None
    params: InitializeParams


@dataclass(slots=True, frozen=True)
class InitializedNotification:
    # 알림이 id를 달고 요청으로 들어오면 빈 결과로 응답해요.
    id: RequestId | None
    has_id: bool = False


@dataclass(slots=True, frozen=True)
class ToolsListRequest:
    id: RequestId | None


@dataclass(slots=True, frozen=True)
class ToolsCallRequest:
    id: RequestId | None
    invocation: ToolInvocation


McpRequest = Union[InitializeRequest, InitializedNotification, ToolsListRequest, ToolsCallRequest]


def build_server_capabilities() -> dict[str, Any]:
    return {
        "tools": {"listChanged": False},
        "resources": {},
        "prompts": {},
    }


def _summarize_errors(exc: PydanticValidationError) -> list[dict[str, str]]:
    return [
        {
            "loc": ".".join(str(part) for part in error["loc"]),
            "msg": error["msg"],
        }
        for error in exc.errors(include_url=False)
    ]


def _params_object(request: JsonRpcRequest) -> dict[str, Any]:
    if request.params is None:
        return {}
    if not isinstance(request.params, dict):
        raise InvalidParamsError(
            f"{request.method} params must be an object",
            request_id=request.id,
            is_notification=request.is_notification,
        )
    return request.params


def validate_request(request: JsonRpcRequest) -> McpRequest:
    """봉투 검사를 통과한 요청을 메서드별 변형 타입으로 바꿔요.

    알려진 메서드가 아니면 `MethodNotFoundError`, 파라미터 형태가 맞지 않으면
    `InvalidParamsError`를 던져요. 세션 상태는 건드리지 않아요.
    """
    method = request.method
    if method not in KNOWN_METHODS:
        raise MethodNotFoundError(
            f"Method not found: {method}",
            data={"method": method},
            request_id=request.id,
            is_notification=request.is_notification,
        )

    params = _params_object(request)

    if method == METHOD_INITIALIZE:
        try:
            initialize_params = InitializeParams.model_validate(params)
        except PydanticValidationError as exc:
            raise InvalidParamsError(
                "Invalid initialize params",
                data={"errors": _summarize_errors(exc)},
                request_id=request.id,
                is_notification=request.is_notification,
            ) from exc
        return InitializeRequest(id=request.id, params=initialize_params)

    if method in (METHOD_INITIALIZED, METHOD_NOTIFICATIONS_INITIALIZED):
        return InitializedNotification(id=request.id, has_id=request.has_id)

    if method == METHOD_TOOLS_LIST:
        # cursor가 와도 페이지가 하나뿐이라 무시해요.
        return ToolsListRequest(id=request.id)

    try:
        call_params = ToolCallParams.model_validate(params)
    except PydanticValidationError as exc:
        raise InvalidParamsError(
            "Invalid tools/call params",
            data={"errors": _summarize_errors(exc)},
            request_id=request.id,
            is_notification=request.is_notification,
        ) from exc
    return ToolsCallRequest(
        id=request.id,
        invocation=ToolInvocation(name=call_params.name, arguments=call_params.arguments or {}),
    )
