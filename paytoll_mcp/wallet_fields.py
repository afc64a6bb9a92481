"""Wallet-derived input fields.

Some endpoints take the caller's wallet address as an input. The agent never
sees those fields: they are stripped from the schema once at registration time
and filled in from the configured wallet identity on every call.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Mapping, Optional, Sequence

from paytoll_mcp.errors import WalletRequiredError
from paytoll_mcp.schemas.meta import InputSchema
from paytoll_mcp.wallet import WalletIdentity

logger = logging.getLogger(__name__)

#: Fields auto-injected from the wallet and hidden from the agent-facing schema.
WALLET_INJECTED_FIELDS: Sequence[str] = ("userAddress",)


def hidden_fields_in(schema: InputSchema, hidden_fields: Sequence[str] = WALLET_INJECTED_FIELDS) -> list:
    """Return the hidden fields declared by `schema`, in `hidden_fields` order."""
    return [f for f in hidden_fields if f in schema.properties]


def schema_visible_to_caller(
    schema: InputSchema,
    hidden_fields: Sequence[str] = WALLET_INJECTED_FIELDS,
) -> InputSchema:
    """Return a copy of `schema` without the hidden fields.

    Hidden fields are removed from both `properties` and `required`. When none
    of them occurs the schema itself is returned unchanged.
    """
    present = set(hidden_fields_in(schema, hidden_fields))
    if not present:
        return schema
    return schema.model_copy(
        update={
            "properties": {k: v for k, v in schema.properties.items() if k not in present},
            "required": [r for r in schema.required if r not in present],
        }
    )


def enrich_params(
    declared_schema: InputSchema,
    caller_params: Mapping[str, Any],
    wallet: Optional[WalletIdentity],
    *,
    endpoint_name: str = "endpoint",
    hidden_fields: Sequence[str] = WALLET_INJECTED_FIELDS,
) -> Dict[str, Any]:
    """Fill the hidden fields of `declared_schema` from the wallet identity.

    Args:
        declared_schema: The endpoint's full schema (before stripping).
        caller_params: Arguments supplied by the agent.
        wallet: Active wallet identity, or None in free-tier mode.
        endpoint_name: Used in the error message when no wallet is configured.
        hidden_fields: Names of the wallet-injected fields.

    Returns:
        A new dict; `caller_params` is never mutated.

    Raises:
        WalletRequiredError: If the schema needs a hidden field and no wallet is configured.
    """
    params = dict(caller_params)
    needed = hidden_fields_in(declared_schema, hidden_fields)
    if not needed:
        return params
    if wallet is None:
        raise WalletRequiredError(endpoint_name)
    for name in needed:
        params[name] = wallet.address
    return params
