"""Supported EVM chains and the web3-backed transaction sender."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Mapping, Optional, Protocol, runtime_checkable

from eth_account.signers.local import LocalAccount
from web3 import AsyncHTTPProvider, AsyncWeb3
from web3.middleware import SignAndSendRawMiddlewareBuilder

from paytoll_mcp.schemas.execution import ReceiptSummary, SentTransaction, TransactionSpec

logger = logging.getLogger(__name__)

DEFAULT_CONFIRMATION_TIMEOUT = 60.0


@dataclass(frozen=True)
class ChainInfo:
    chain_id: int
    name: str
    rpc_url: str


SUPPORTED_CHAINS: Mapping[int, ChainInfo] = {
    1: ChainInfo(1, "Ethereum", "https://eth.merkle.io"),
    137: ChainInfo(137, "Polygon", "https://polygon-rpc.com"),
    42161: ChainInfo(42161, "Arbitrum One", "https://arb1.arbitrum.io/rpc"),
    10: ChainInfo(10, "OP Mainnet", "https://mainnet.optimism.io"),
    8453: ChainInfo(8453, "Base", "https://mainnet.base.org"),
    43114: ChainInfo(43114, "Avalanche", "https://api.avax.network/ext/bc/C/rpc"),
}


def chains_with_overrides(rpc_urls: Optional[Mapping[int, str]] = None) -> Dict[int, ChainInfo]:
    """Return the supported chain table with configured RPC URLs applied.

    Overrides for chain ids outside the supported table are ignored.
    """
    chains = dict(SUPPORTED_CHAINS)
    for chain_id, url in (rpc_urls or {}).items():
        base = chains.get(int(chain_id))
        if base is None:
            logger.warning("Ignoring RPC override for unsupported chain id %s", chain_id)
            continue
        chains[base.chain_id] = ChainInfo(base.chain_id, base.name, url)
    return chains


@runtime_checkable
class TransactionSender(Protocol):
    """Signs, submits and awaits confirmation of one transaction on one chain."""

    async def send_and_wait(self, tx: TransactionSpec) -> SentTransaction: ...


class Web3TransactionSender:
    """`TransactionSender` backed by an `AsyncWeb3` HTTP provider.

    Nonce, gas and fee fields are filled by web3's sign-and-send middleware, which
    signs locally with the wallet account and submits via `eth_sendRawTransaction`.
    """

    def __init__(
        self,
        account: LocalAccount,
        chain: ChainInfo,
        *,
        timeout: float = DEFAULT_CONFIRMATION_TIMEOUT,
        web3: Optional[AsyncWeb3] = None,
    ) -> None:
        self._account = account
        self.chain = chain
        self._timeout = timeout
        self._w3 = web3 or AsyncWeb3(AsyncHTTPProvider(chain.rpc_url))
        self._w3.middleware_onion.inject(SignAndSendRawMiddlewareBuilder.build(account), layer=0)

    async def send_and_wait(self, tx: TransactionSpec) -> SentTransaction:
        tx_hash = await self._w3.eth.send_transaction(
            {
                "from": self._account.address,
                "to": AsyncWeb3.to_checksum_address(tx.to),
                "data": tx.data,
                "value": tx.value_wei(),
                "chainId": self.chain.chain_id,
            }
        )
        hex_hash = AsyncWeb3.to_hex(tx_hash)
        logger.debug("Submitted %s on %s, waiting up to %.0fs", hex_hash, self.chain.name, self._timeout)
        receipt = await self._w3.eth.wait_for_transaction_receipt(tx_hash, timeout=self._timeout)
        return SentTransaction(
            tx_hash=hex_hash,
            receipt=ReceiptSummary(
                status="success" if receipt["status"] == 1 else "reverted",
                block_number=str(receipt["blockNumber"]),
                gas_used=str(receipt["gasUsed"]),
            ),
        )
