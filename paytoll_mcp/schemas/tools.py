"""Host-facing tool records produced by the registrar."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, Mapping


@dataclass(frozen=True)
class ToolOutcome:
    """Result of one tool invocation as handed to the agent host."""

    text: str
    is_error: bool = False


ToolHandler = Callable[[Mapping[str, Any]], Awaitable[ToolOutcome]]


@dataclass(frozen=True)
class RegisteredTool:
    """One callable tool wrapping a single API endpoint."""

    name: str
    description: str
    input_schema: Dict[str, Any]
    handler: ToolHandler = field(repr=False)
    wallet_injected: bool = False

    async def invoke(self, arguments: Mapping[str, Any]) -> ToolOutcome:
        return await self.handler(arguments)
