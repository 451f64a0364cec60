"""MCP 도구의 추상 기반 클래스예요.

새 도구를 추가하려면 `BaseTool`을 상속하고 `name`, `description`,
`input_schema`, `execute`를 구현한 다음 `ToolRegistry.register()`로 등록하면 돼요.
디스패처 쪽 분기는 건드릴 필요가 없어요.
"""

from __future__ import annotations

import abc
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any, Protocol

from clickhouse_mcp.app.clickhouse.models import ColumnInfo, DatabaseInfo, TableInfo


class SchemaCatalogProtocol(Protocol):
    """도구가 기대하는 데이터베이스 쪽 협력자예요."""

    async def list_databases(self) -> Sequence[DatabaseInfo]: ...
    async def list_tables(self, database: str) -> Sequence[TableInfo]: ...
    async def get_table_schema(self, database: str, table: str) -> Sequence[ColumnInfo]: ...


@dataclass(slots=True, frozen=True)
class ToolDescriptor:
    """`tools/list`에 그대로 나가는 도구 설명이에요."""

    name: str
    description: str
    input_schema: dict[str, Any]

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "inputSchema": self.input_schema,
        }


@dataclass(slots=True)
class ToolResult:
    """도구 실행 결과를 담는 컨테이너예요."""

    ok: bool
    """실행 성공 여부예요. False면 `isError: true`로 나가요."""

    output: str = ""
    """성공 시 텍스트 결과예요."""

    error: str = ""
    """실패 시 오류 메시지예요."""

    metadata: dict[str, Any] = field(default_factory=dict)
    """추가 메타데이터 (행 수 등)예요. 응답에는 포함하지 않아요."""

    def to_call_result(self) -> dict[str, Any]:
        """`tools/call` 응답의 `result` 형태로 바꿔요."""
        text = self.output if self.ok else self.error
        return {
            "content": [{"type": "text", "text": text}],
            "isError": not self.ok,
        }


class BaseTool(abc.ABC):
    """모든 도구가 구현해야 하는 추상 클래스예요."""

    @property
    @abc.abstractmethod
    def name(self) -> str:
        """도구의 고유 이름이에요. `tools/call`의 `name`과 비교돼요."""

    @property
    @abc.abstractmethod
    def description(self) -> str:
        """도구가 무엇을 하는지 설명하는 문장이에요."""

    @property
    @abc.abstractmethod
    def input_schema(self) -> dict[str, Any]:
        """JSON Schema 형식의 입력 파라미터 정의예요.

        예시::

            {
                "type": "object",
                "properties": {
                    "database": {"type": "string", "description": "데이터베이스 이름이에요."},
                },
                "required": ["database"],
            }
        """

    @abc.abstractmethod
    async def execute(self, arguments: dict[str, Any]) -> ToolResult:
        """도구를 실행하고 결과를 반환해요.

        Args:
            arguments: 레지스트리가 `input_schema`로 구조 검사를 마친 딕셔너리예요.

        Returns:
            실행 결과를 담은 `ToolResult` 인스턴스예요.

        Raises:
            Exception: 외부 시스템 실패는 그대로 던져도 돼요. 레지스트리가
                실패 `ToolResult`로 바꿔요.
        """

    @property
    def descriptor(self) -> ToolDescriptor:
        return ToolDescriptor(
            name=self.name,
            description=self.description,
            input_schema=self.input_schema,
        )
