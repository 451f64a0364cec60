from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any


class SessionPhase(str, Enum):
    UNINITIALIZED = "uninitialized"
    INITIALIZED = "initialized"


@dataclass(slots=True, frozen=True)
class SessionState:
    """프로세스 수명 동안 이어지는 MCP 세션 상태예요.

    디스패처가 값으로 받아서 새 값으로 돌려줘요. `initialize` 성공으로만
    `INITIALIZED`로 바뀌고, 그 뒤로는 `client_ready` 플래그만 바뀌어요.
    """

    phase: SessionPhase = SessionPhase.UNINITIALIZED
    protocol_version: str | None = None
    client_name: str | None = None
    client_version: str | None = None
    client_capabilities: dict[str, Any] = field(default_factory=dict)
    client_ready: bool = False

    @property
    def is_initialized(self) -> bool:
        return self.phase is SessionPhase.INITIALIZED

    def with_initialized(
        self,
        *,
        protocol_version: str,
        client_name: str,
        client_version: str,
        client_capabilities: dict[str, Any],
    ) -> "SessionState":
        return replace(
            self,
            phase=SessionPhase.INITIALIZED,
            protocol_version=protocol_version,
            client_name=client_name,
            client_version=client_version,
            client_capabilities=dict(client_capabilities),
        )

    def with_client_ready(self) -> "SessionState":
        return replace(self, client_ready=True)
