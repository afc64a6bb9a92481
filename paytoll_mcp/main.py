"""
Process entry point.

Startup sequence:
1. configure logging (stderr only; stdout carries the MCP stream)
2. resolve the wallet secret and build the wallet identity, or fall back to free-tier mode
3. discover the PayToll endpoints and register one tool per endpoint
4. serve over MCP stdio

Configuration and discovery failures are fatal: they are logged with guidance
and the process exits with status 1 instead of serving zero tools.
"""

from __future__ import annotations

import asyncio
import sys
from typing import Optional

from paytoll_mcp.client import PayTollClient
from paytoll_mcp.core.config import Settings, settings
from paytoll_mcp.core.logging_config import get_logger, setup_logging
from paytoll_mcp.core.secret_sources import Runner, build_secret_sources, resolve_secret
from paytoll_mcp.errors import ConfigurationError, TransportError
from paytoll_mcp.executor import TransactionExecutor
from paytoll_mcp.registry import ToolRegistrar
from paytoll_mcp.server import McpToolHost
from paytoll_mcp.wallet import WalletIdentity

logger = get_logger(__name__)


def load_wallet(
    config: Settings,
    *,
    runner: Optional[Runner] = None,
    platform: Optional[str] = None,
) -> Optional[WalletIdentity]:
    """Resolve the wallet identity from the configured secret sources.

    Raises:
        ConfigurationError: If a source fails, the key is malformed, or a wallet
            is required but none is configured.
    """
    sources = build_secret_sources(config.secret_sources, runner=runner, platform=platform)
    wallet = WalletIdentity.from_secret(resolve_secret(sources))
    if wallet is None:
        if config.require_wallet:
            raise ConfigurationError(
                "No wallet key found and PAYTOLL_REQUIRE_WALLET is enabled. Configure PRIVATE_KEY "
                "(or PAYTOLL_KEYCHAIN_SERVICE, PAYTOLL_SECRET_SERVICE_SERVICE or PAYTOLL_PRIVATE_KEY_COMMAND)."
            )
        logger.info(
            "No wallet configured: running in free-tier mode (%d calls/day, paid calls will be rejected)",
            config.free_tier_daily_calls,
        )
    return wallet


async def build_host(
    config: Settings,
    client: PayTollClient,
    executor: TransactionExecutor,
    wallet: Optional[WalletIdentity] = None,
) -> McpToolHost:
    """Create the MCP host and register every discovered endpoint as a tool."""
    host = McpToolHost()
    registrar = ToolRegistrar(client, executor, wallet)
    await registrar.register_all(host)
    host.set_info(
        api_url=config.api_url,
        metadata=registrar.metadata,
        wallet_address=wallet.address if wallet is not None else None,
        free_tier_daily_calls=config.free_tier_daily_calls,
    )
    return host


async def serve(config: Settings) -> None:
    wallet = load_wallet(config)
    chain = config.chain
    executor = TransactionExecutor(
        wallet,
        rpc_urls=chain.rpc_urls,
        confirmation_timeout=chain.tx_confirmation_timeout,
    )
    async with PayTollClient(config.api_url, wallet, timeout=config.request_timeout) as client:
        host = await build_host(config, client, executor, wallet)
        await host.run_stdio()


def main(config: Optional[Settings] = None) -> None:
    config = config or settings
    setup_logging(log_level=config.log_level)
    logger.info("Starting PayToll MCP server (API: %s)", config.api_url)
    try:
        asyncio.run(serve(config))
    except ConfigurationError as e:
        logger.error("Configuration error: %s", e)
        sys.exit(1)
    except TransportError as e:
        logger.error("Failed to register tools: %s. Is the PayToll API reachable at %s?", e, config.api_url)
        sys.exit(1)


if __name__ == "__main__":
    main()
