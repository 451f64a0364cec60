"""JSON-RPC 2.0 메시지 파싱, 오류 코드, 응답 타입을 정의해요.

입력 한 줄을 `parse_line`으로 JSON 값으로 바꾸고, `parse_envelope`로
봉투(`jsonrpc`, `method`, `params`, `id`) 형태를 검사해 `JsonRpcRequest`를
만들어요. 프로토콜 수준 문제는 모두 `JsonRpcError` 계열 예외로 표현해요.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Union

JSONRPC_VERSION = "2.0"

PARSE_ERROR = -32700
INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
INTERNAL_ERROR = -32603
SERVER_NOT_INITIALIZED = -32002

RequestId = Union[str, int]


class JsonRpcError(Exception):
    """JSON-RPC 오류 응답으로 바뀌는 예외예요.

    `is_notification`이 True면 응답을 쓰지 않고 로그만 남겨요.
    """

    code = INTERNAL_ERROR
    default_message = "Internal error"

    def __init__(
        self,
        message: str | None = None,
        *,
        data: Any = None,
        request_id: RequestId | None = None,
        is_notification: bool = False,
    ) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)
        self.data = data
        self.request_id = request_id
        self.is_notification = is_notification

    def to_error_object(self) -> dict[str, Any]:
        error: dict[str, Any] = {"code": self.code, "message": self.message}
        if self.data is not None:
            error["data"] = self.data
        return error


class ParseError(JsonRpcError):
    code = PARSE_ERROR
    default_message = "Parse error"


class InvalidRequestError(JsonRpcError):
    code = INVALID_REQUEST
    default_message = "Invalid Request"


class MethodNotFoundError(JsonRpcError):
    code = METHOD_NOT_FOUND
    default_message = "Method not found"


class InvalidParamsError(JsonRpcError):
    code = INVALID_PARAMS
    default_message = "Invalid params"


class InternalError(JsonRpcError):
    code = INTERNAL_ERROR
    default_message = "Internal error"


class ServerNotInitializedError(JsonRpcError):
    code = SERVER_NOT_INITIALIZED
    default_message = "Server not initialized"


@dataclass(slots=True)
class JsonRpcRequest:
    method: str
    params: dict[str, Any] | list[Any] | None = None
    id: RequestId | None = None
    has_id: bool = False

    @property
    def is_notification(self) -> bool:
        return not self.has_id


@dataclass(slots=True)
class JsonRpcSuccess:
    id: RequestId | None
    result: dict[str, Any]

    def to_dict(self) -> dict[str, Any]:
        return {"jsonrpc": JSONRPC_VERSION, "id": self.id, "result": self.result}


@dataclass(slots=True)
class JsonRpcFailure:
    id: RequestId | None
    error: dict[str, Any]

    @classmethod
    def from_error(cls, exc: JsonRpcError, request_id: RequestId | None = None) -> "JsonRpcFailure":
        return cls(
            id=request_id if request_id is not None else exc.request_id,
            error=exc.to_error_object(),
        )

    def to_dict(self) -> dict[str, Any]:
        return {"jsonrpc": JSONRPC_VERSION, "id": self.id, "error": self.error}


JsonRpcResponse = Union[JsonRpcSuccess, JsonRpcFailure]


def _is_valid_id(value: Any) -> bool:
    # bool은 int의 하위 타입이라 따로 걸러내요.
    if isinstance(value, bool):
        return False
    return isinstance(value, (str, int))


def parse_line(line: str | bytes) -> Any:
    """한 줄을 JSON 값으로 파싱해요.

    바이트로 들어오면 UTF-8로 디코딩해요. 디코딩 실패, 문법 오류, 너무 깊은
    중첩은 모두 id 없는 `ParseError`예요.
    """
    if isinstance(line, bytes):
        try:
            line = line.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise ParseError(data={"detail": f"invalid UTF-8: {exc}"}) from exc
    try:
        return json.loads(line)
    except json.JSONDecodeError as exc:
        raise ParseError(data={"detail": str(exc)}) from exc
    except RecursionError as exc:
        raise ParseError(data={"detail": "nesting too deep"}) from exc


def parse_envelope(value: Any) -> JsonRpcRequest:
    """파싱된 JSON 값이 JSON-RPC 2.0 요청 봉투인지 검사해요.

    Args:
        value: `parse_line`이 돌려준 임의의 JSON 값이에요.

    Returns:
        봉투 검사를 통과한 `JsonRpcRequest`예요.

    Raises:
        InvalidRequestError: 객체가 아니거나, `id`/`jsonrpc`/`method`/`params`
            형태가 올바르지 않을 때예요. `id`를 꺼낼 수 있으면 함께 담아요.
    """
    if not isinstance(value, dict):
        raise InvalidRequestError("Request must be a JSON object")

    has_id = "id" in value
    raw_id = value.get("id")
    if has_id and not _is_valid_id(raw_id):
        raise InvalidRequestError("Request id must be a string or an integer")
    request_id: RequestId | None = raw_id if has_id else None
    is_notification = not has_id

    if value.get("jsonrpc") != JSONRPC_VERSION:
        raise InvalidRequestError(
            f'jsonrpc must be exactly "{JSONRPC_VERSION}"',
            request_id=request_id,
            is_notification=is_notification,
        )

    method = value.get("method")
    if not isinstance(method, str) or not method.strip():
        raise InvalidRequestError(
            "method must be a non-empty string",
            request_id=request_id,
            is_notification=is_notification,
        )

    params = value.get("params")
    if params is not None and not isinstance(params, (dict, list)):
        raise InvalidRequestError(
            "params must be an object or an array",
            request_id=request_id,
            is_notification=is_notification,
        )

    return JsonRpcRequest(method=method, params=params, id=request_id, has_id=has_id)
