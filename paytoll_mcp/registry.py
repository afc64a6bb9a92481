"""Tool registration: one agent-facing tool per discovered PayToll endpoint.

The endpoint list is fetched once at startup and turned into a fixed set of
tools. Each tool handler runs the same pipeline::

    validate args -> inject wallet fields -> call endpoint (x402) -> execute tx -> JSON text

and converts any failure into an error-flagged `ToolOutcome` so that a single
broken invocation never affects the host process or later calls.
"""

from __future__ import annotations

import json
import logging
from typing import Any, List, Mapping, Optional, Protocol, Sequence, Type, runtime_checkable

from pydantic import BaseModel, ValidationError

from paytoll_mcp.client import PayTollClient
from paytoll_mcp.executor import TransactionExecutor
from paytoll_mcp.schema_translator import build_parameters_model, parameters_json_schema
from paytoll_mcp.schemas.meta import EndpointDescriptor, InputSchema, ServiceMetadata
from paytoll_mcp.schemas.tools import RegisteredTool, ToolHandler, ToolOutcome
from paytoll_mcp.wallet import WalletIdentity
from paytoll_mcp.wallet_fields import (
    WALLET_INJECTED_FIELDS,
    enrich_params,
    hidden_fields_in,
    schema_visible_to_caller,
)

logger = logging.getLogger(__name__)


@runtime_checkable
class ToolHost(Protocol):
    """Anything tools can be registered with (the MCP server adapter, a test double...)."""

    def add_tool(self, tool: RegisteredTool) -> None: ...


class ToolRegistrar:
    """Discovers endpoints and registers one tool per endpoint with a `ToolHost`.

    Args:
        client: PayToll API client.
        executor: Post-processor for on-chain action results.
        wallet: Active wallet identity, or None in free-tier mode.
        hidden_fields: Input fields injected from the wallet and hidden from the agent.
    """

    def __init__(
        self,
        client: PayTollClient,
        executor: TransactionExecutor,
        wallet: Optional[WalletIdentity] = None,
        *,
        hidden_fields: Sequence[str] = WALLET_INJECTED_FIELDS,
    ) -> None:
        self._client = client
        self._executor = executor
        self._wallet = wallet
        self._hidden_fields = tuple(hidden_fields)
        self.metadata: Optional[ServiceMetadata] = None

    async def register_all(self, host: ToolHost) -> List[RegisteredTool]:
        """Fetch metadata and register every endpoint with a usable schema.

        Duplicate endpoint names are resolved in favour of the first one
        registered; later duplicates are skipped with a warning.

        Raises:
            TransportError: If the metadata cannot be fetched (fatal at startup).
        """
        meta = await self._client.fetch_meta()
        self.metadata = meta
        logger.info("Found %d endpoints", len(meta.endpoints))
        if self._wallet is not None:
            logger.info(
                "Wallet auto-inject for: %s -> %s", ", ".join(self._hidden_fields), self._wallet.address
            )
        else:
            logger.info("Wallet auto-inject disabled (no wallet configured)")

        registered: List[RegisteredTool] = []
        names: set = set()
        for endpoint in meta.endpoints:
            if endpoint.name in names:
                logger.warning(
                    "Skipping %s (%s %s): a tool with this name is already registered",
                    endpoint.name,
                    endpoint.method,
                    endpoint.path,
                )
                continue
            tool = self.build_tool(endpoint)
            if tool is None:
                continue
            host.add_tool(tool)
            names.add(tool.name)
            registered.append(tool)
            logger.info(
                "Registered tool: %s (%s %s)%s",
                tool.name,
                endpoint.method,
                endpoint.path,
                " [wallet auto-inject]" if tool.wallet_injected else "",
            )

        logger.info("Registered %d tools", len(registered))
        return registered

    def build_tool(self, endpoint: EndpointDescriptor) -> Optional[RegisteredTool]:
        """Build the tool for one endpoint, or None when it has no usable input schema."""
        if endpoint.input_schema is None:
            logger.info("Skipping %s: no inputSchema", endpoint.name)
            return None
        try:
            declared = endpoint.parse_input_schema()
        except ValidationError as e:
            logger.warning("Skipping %s: unusable inputSchema (%d validation errors)", endpoint.name, e.error_count())
            return None

        visible = schema_visible_to_caller(declared, self._hidden_fields)
        try:
            model = build_parameters_model(endpoint.name, visible)
            input_schema = parameters_json_schema(model)
        except Exception as e:
            logger.warning("Skipping %s: cannot build parameter validator: %s", endpoint.name, e)
            return None

        return RegisteredTool(
            name=endpoint.name,
            description=f"{endpoint.description} (Price: {endpoint.price})",
            input_schema=input_schema,
            handler=self._make_handler(endpoint, declared, model),
            wallet_injected=bool(hidden_fields_in(declared, self._hidden_fields)),
        )

    def _make_handler(
        self,
        endpoint: EndpointDescriptor,
        declared: InputSchema,
        model: Type[BaseModel],
    ) -> ToolHandler:
        async def handle(arguments: Mapping[str, Any]) -> ToolOutcome:
            try:
                params = model.model_validate(dict(arguments or {})).model_dump(
                    by_alias=True, exclude_unset=True, mode="json"
                )
                enriched = enrich_params(
                    declared,
                    params,
                    self._wallet,
                    endpoint_name=endpoint.name,
                    hidden_fields=self._hidden_fields,
                )
                raw = await self._client.call_endpoint(endpoint.path, endpoint.method, enriched)
                result = await self._executor.execute(raw)
                return ToolOutcome(text=json.dumps(result, indent=2))
            except Exception as e:
                logger.warning("Tool %s failed: %s", endpoint.name, e)
                return ToolOutcome(text=f"Error calling {endpoint.name}: {e}", is_error=True)

        return handle
