"""도구를 등록하고 조회하고 실행하는 레지스트리예요."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from clickhouse_mcp.app.tools.base import BaseTool, ToolDescriptor, ToolResult
from libs.common.errors import DomainError, NotFoundError, ValidationError
from libs.common.logging import get_logger

logger = get_logger("clickhouse_mcp.tools.registry")

_JSON_TYPE_CHECKS: dict[str, Callable[[Any], bool]] = {
    "string": lambda value: isinstance(value, str),
    "integer": lambda value: isinstance(value, int) and not isinstance(value, bool),
    "number": lambda value: isinstance(value, (int, float)) and not isinstance(value, bool),
    "boolean": lambda value: isinstance(value, bool),
    "object": lambda value: isinstance(value, dict),
    "array": lambda value: isinstance(value, list),
    "null": lambda value: value is None,
}


class ToolNotFoundError(NotFoundError):
    """등록되지 않은 도구 이름이에요."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Unknown tool: {name}")
        self.name = name


class ToolArgumentError(ValidationError):
    """도구 인자가 입력 스키마와 맞지 않아요."""

    def __init__(self, name: str, problems: list[str]) -> None:
        super().__init__(f"Invalid arguments for tool {name}: {'; '.join(problems)}")
        self.name = name
        self.problems = problems


def _matches_type(value: Any, declared: Any) -> bool:
    if isinstance(declared, str):
        declared = [declared]
    if not isinstance(declared, list):
        return True
    checks = [_JSON_TYPE_CHECKS[item] for item in declared if item in _JSON_TYPE_CHECKS]
    if not checks:
        return True
    return any(check(value) for check in checks)


class ToolRegistry:
    """도구를 이름으로 관리하는 중앙 레지스트리예요.

    등록 순서를 그대로 유지해서 `tools/list`에 내보내요. 시작할 때 채운 뒤로는
    바뀌지 않아요.

    사용법::

        registry = ToolRegistry()
        registry.register(ListDatabasesTool(client))

        descriptors = registry.list_descriptors()
        result = await registry.invoke("list_databases", {})
    """

    def __init__(self) -> None:
        self._tools: dict[str, BaseTool] = {}

    def register(self, tool: BaseTool) -> None:
        """도구를 레지스트리에 등록해요. 이름이 겹치면 `ValueError`예요."""
        if tool.name in self._tools:
            raise ValueError(f"이미 등록된 도구 이름이에요: {tool.name}")
        self._tools[tool.name] = tool

    def get(self, name: str) -> BaseTool | None:
        """이름으로 도구를 조회해요."""
        return self._tools.get(name)

    def list_names(self) -> list[str]:
        return list(self._tools.keys())

    def list_descriptors(self) -> list[ToolDescriptor]:
        """등록 순서대로 도구 설명 목록을 반환해요."""
        return [tool.descriptor for tool in self._tools.values()]

    def check_arguments(self, name: str, arguments: Any) -> list[str]:
        """인자를 도구의 입력 스키마와 구조 수준에서 비교해요.

        필수 키 존재 여부와 선언된 기본 타입만 봐요. 중첩 스키마는 검사하지 않아요.

        Args:
            name: 검사할 도구 이름이에요.
            arguments: `tools/call`로 들어온 인자 값이에요.

        Returns:
            문제 설명 목록이에요. 비어 있으면 통과예요.

        Raises:
            ToolNotFoundError: 등록되지 않은 도구일 때예요.
        """
        tool = self._tools.get(name)
        if tool is None:
            raise ToolNotFoundError(name)
        if not isinstance(arguments, dict):
            return ["arguments must be an object"]

        schema = tool.input_schema
        properties = schema.get("properties")
        if not isinstance(properties, dict):
            properties = {}

        problems: list[str] = []
        required = schema.get("required")
        if isinstance(required, list):
            for key in required:
                if key not in arguments:
                    problems.append(f"missing required argument '{key}'")

        for key, value in arguments.items():
            property_schema = properties.get(key)
            if property_schema is None:
                if schema.get("additionalProperties") is False:
                    problems.append(f"unexpected argument '{key}'")
                continue
            if isinstance(property_schema, dict) and not _matches_type(value, property_schema.get("type")):
                problems.append(f"argument '{key}' must be of type {property_schema.get('type')}")
        return problems

    async def invoke(self, name: str, arguments: dict[str, Any]) -> ToolResult:
        """이름으로 도구를 찾아 실행해요.

        이름이 없거나 인자가 맞지 않으면 예외를 던지고, 실행 중 실패는
        `ok=False`인 `ToolResult`로 감싸서 돌려줘요.

        Raises:
            ToolNotFoundError: 등록되지 않은 도구일 때예요.
            ToolArgumentError: 인자 구조 검사에 실패했을 때예요.
        """
        problems = self.check_arguments(name, arguments)
        if problems:
            raise ToolArgumentError(name, problems)

        tool = self._tools[name]
        try:
            return await tool.execute(arguments)
        except DomainError as exc:
            logger.warning(
                "tool_call_failed",
                tool=name,
                error_code=exc.error_code,
                message=exc.message,
                retryable=exc.retryable,
            )
            return ToolResult(
                ok=False,
                error=f"Tool execution failed: {exc.message}",
                metadata={"error_code": exc.error_code},
            )
        except Exception as exc:
            logger.exception("tool_call_crashed", tool=name, error=str(exc))
            return ToolResult(
                ok=False,
                error=f"Tool execution failed: {exc}",
                metadata={"error_code": "INTERNAL_ERROR"},
            )

    def __len__(self) -> int:
        return len(self._tools)

    def __contains__(self, name: object) -> bool:
        return name in self._tools
