"""PayToll MCP bridge.

Exposes every endpoint of the PayToll micro-payment API as an MCP tool.

Overview
--------

- ``paytoll_mcp.client``: discovery (``GET /v1/meta``) and endpoint invocation,
  paying per call through the x402 protocol when a wallet is configured.
- ``paytoll_mcp.schema_translator``: turns the advertised input schemas into
  pydantic validators and agent-facing JSON schemas.
- ``paytoll_mcp.wallet_fields``: hides wallet-derived inputs (``userAddress``)
  from the agent and fills them from the wallet identity.
- ``paytoll_mcp.executor``: signs and submits unsigned transactions returned by
  on-chain action endpoints.
- ``paytoll_mcp.registry`` / ``paytoll_mcp.server``: register one tool per
  endpoint and serve them over MCP stdio.
"""

__version__ = "1.0.0"
