"""MCP host adapter.

Tools are discovered at runtime, so they are served through the low-level
`mcp.server.lowlevel.Server` API (explicit `list_tools`/`call_tool` handlers)
rather than decorated Python functions. The adapter also exposes the
`paytoll://info` discovery resource.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, List, Optional

import mcp.types as types
from mcp.server.lowlevel import Server
from mcp.server.lowlevel.helper_types import ReadResourceContents
from mcp.server.stdio import stdio_server

from paytoll_mcp import __version__
from paytoll_mcp.errors import ToolResultError
from paytoll_mcp.schemas.meta import ServiceMetadata
from paytoll_mcp.schemas.tools import RegisteredTool, ToolOutcome

logger = logging.getLogger(__name__)

INFO_URI = "paytoll://info"
INFO_NAME = "PayToll MCP Server"
INFO_DESCRIPTION = "Micro-payment API platform on x402 protocol. AI agents pay per call using stablecoins."


class McpToolHost:
    """`ToolHost` backed by an MCP server.

    Args:
        name: Server name announced during MCP initialization.
        version: Server version announced during MCP initialization.
    """

    def __init__(self, name: str = "paytoll", version: str = __version__) -> None:
        self.server: Server = Server(name, version=version)
        self._tools: Dict[str, RegisteredTool] = {}
        self._info: Dict[str, Any] = {"name": INFO_NAME, "description": INFO_DESCRIPTION}
        self._register_handlers()

    @property
    def tools(self) -> List[RegisteredTool]:
        return list(self._tools.values())

    def add_tool(self, tool: RegisteredTool) -> None:
        if tool.name in self._tools:
            raise ValueError(f"Tool already registered: {tool.name}")
        self._tools[tool.name] = tool

    def set_info(
        self,
        *,
        api_url: str,
        metadata: Optional[ServiceMetadata] = None,
        wallet_address: Optional[str] = None,
        free_tier_daily_calls: Optional[int] = None,
    ) -> None:
        """Fill the `paytoll://info` payload."""
        info: Dict[str, Any] = {"name": INFO_NAME, "description": INFO_DESCRIPTION, "apiUrl": api_url}
        if metadata is not None:
            info["service"] = metadata.service
            info["version"] = metadata.version
            info["categories"] = list(metadata.categories)
            if metadata.x402 is not None:
                info["x402"] = metadata.x402.to_wire()
        if wallet_address is not None:
            info["wallet"] = wallet_address
        else:
            info["freeTierDailyCalls"] = free_tier_daily_calls
        self._info = info

    def info_json(self) -> str:
        return json.dumps(self._info)

    async def list_tools(self) -> List[types.Tool]:
        return [
            types.Tool(name=t.name, description=t.description, inputSchema=t.input_schema)
            for t in self._tools.values()
        ]

    async def call_tool(self, name: str, arguments: Optional[Dict[str, Any]]) -> List[types.TextContent]:
        """Run one tool; error outcomes are raised as `ToolResultError`."""
        tool = self._tools.get(name)
        if tool is None:
            raise ToolResultError(f"Unknown tool: {name}")
        outcome: ToolOutcome = await tool.invoke(arguments or {})
        if outcome.is_error:
            raise ToolResultError(outcome.text)
        return [types.TextContent(type="text", text=outcome.text)]

    async def list_resources(self) -> List[types.Resource]:
        return [
            types.Resource(
                uri=INFO_URI,
                name="info",
                description="PayToll service discovery information",
                mimeType="application/json",
            )
        ]

    async def read_resource(self, uri: Any) -> List[ReadResourceContents]:
        if str(uri) != INFO_URI:
            raise ValueError(f"Unknown resource: {uri}")
        return [ReadResourceContents(content=self.info_json(), mime_type="application/json")]

    async def run_stdio(self) -> None:
        logger.info("Server running on stdio")
        async with stdio_server() as (read_stream, write_stream):
            await self.server.run(read_stream, write_stream, self.server.create_initialization_options())

    def _register_handlers(self) -> None:
        self.server.list_tools()(self.list_tools)
        # Arguments are validated by each tool's own parameters model.
        self.server.call_tool(validate_input=False)(self.call_tool)
        self.server.list_resources()(self.list_resources)
        self.server.read_resource()(self.read_resource)
