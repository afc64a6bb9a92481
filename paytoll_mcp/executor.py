"""Transaction execution for "needs on-chain action" tool results.

Some PayToll endpoints (e.g. lending supply/borrow/repay/withdraw) do not act
on-chain themselves: they return an unsigned transaction for the caller to
submit. This module recognizes those results, signs and submits the
transaction(s) with the configured wallet, waits for confirmation and attaches
an `execution` record next to the original payload.

State machine::

    classify -> PlainResult | InsufficientBalance   (returned unmodified)
             -> ReadyTransaction                    -> executing -> succeeded | failed
             -> ApprovalRequiredTransaction         -> executing -> succeeded | failed

Failures never raise out of `TransactionExecutor.execute`; the business payload
is always returned together with the outcome.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Mapping, Optional

from pydantic import ValidationError

from paytoll_mcp.chains import (
    DEFAULT_CONFIRMATION_TIMEOUT,
    ChainInfo,
    TransactionSender,
    Web3TransactionSender,
    chains_with_overrides,
)
from paytoll_mcp.schemas.execution import (
    ApprovalRequiredTransaction,
    ExecutableResult,
    ExecutionOutcome,
    InsufficientBalance,
    PlainResult,
    ReadyTransaction,
    TransactionSpec,
)
from paytoll_mcp.wallet import WalletIdentity

logger = logging.getLogger(__name__)

MISSING_WALLET_ERROR = "Missing wallet: transaction execution requires a configured wallet (PRIVATE_KEY)."

SenderFactory = Callable[[WalletIdentity, ChainInfo, float], TransactionSender]


def classify(raw: Any) -> ExecutableResult:
    """Map any JSON value onto exactly one `ExecutableResult` variant."""
    if not isinstance(raw, dict):
        return PlainResult(raw=raw)
    tag = raw.get("type")
    if tag == "ready":
        tx = _parse_transaction(raw.get("transaction"))
        if tx is not None:
            return ReadyTransaction(raw=raw, transaction=tx)
    elif tag == "approval_required":
        approval = _parse_transaction(raw.get("approval"))
        tx = _parse_transaction(raw.get("transaction"))
        if approval is not None and tx is not None:
            return ApprovalRequiredTransaction(raw=raw, approval=approval, transaction=tx)
    elif tag == "insufficient_balance":
        return InsufficientBalance(raw=raw)
    return PlainResult(raw=raw)


def _parse_transaction(value: Any) -> Optional[TransactionSpec]:
    if not isinstance(value, dict):
        return None
    try:
        return TransactionSpec.model_validate(value)
    except ValidationError:
        return None


def _default_sender_factory(wallet: WalletIdentity, chain: ChainInfo, timeout: float) -> TransactionSender:
    return Web3TransactionSender(wallet.account, chain, timeout=timeout)


class TransactionExecutor:
    """Signs, submits and confirms transactions requested by tool results.

    Args:
        wallet: Wallet identity used for signing, or None in free-tier mode.
        sender_factory: Builds the `TransactionSender` for a chain; defaults to web3.
        rpc_urls: Optional chain id to RPC URL overrides.
        confirmation_timeout: Seconds to wait for each receipt.
    """

    def __init__(
        self,
        wallet: Optional[WalletIdentity],
        *,
        sender_factory: Optional[SenderFactory] = None,
        rpc_urls: Optional[Mapping[int, str]] = None,
        confirmation_timeout: float = DEFAULT_CONFIRMATION_TIMEOUT,
    ) -> None:
        self._wallet = wallet
        self._sender_factory = sender_factory or _default_sender_factory
        self._chains = chains_with_overrides(rpc_urls)
        self._timeout = confirmation_timeout

    async def execute(self, raw: Any) -> Any:
        result = classify(raw)
        if isinstance(result, (PlainResult, InsufficientBalance)):
            return raw

        if self._wallet is None:
            return _attach(result, ExecutionOutcome(executed=False, error=MISSING_WALLET_ERROR))

        chain_id = result.transaction.chain_id
        chain = self._chains.get(chain_id)
        if chain is None:
            return _attach(result, ExecutionOutcome(executed=False, error=f"Unsupported chain ID: {chain_id}"))

        logger.info("Executing on-chain tx (chainId=%d, type=%s)", chain_id, result.kind)
        stage = "approval_or_main" if isinstance(result, ApprovalRequiredTransaction) else "main"
        try:
            sender = self._sender_factory(self._wallet, chain, self._timeout)
            if isinstance(result, ApprovalRequiredTransaction):
                outcome = await self._run_approval_flow(sender, result)
            else:
                outcome = await self._run_single(sender, result)
        except Exception as e:
            message = str(e) or type(e).__name__
            logger.warning("Tx execution failed (stage=%s): %s", stage, message)
            outcome = ExecutionOutcome(executed=False, error=message, stage=stage)
        return _attach(result, outcome)

    async def _run_single(self, sender: TransactionSender, result: ReadyTransaction) -> ExecutionOutcome:
        logger.info("Sending transaction...")
        main = await sender.send_and_wait(result.transaction)
        logger.info("Tx confirmed: %s", main.tx_hash)
        return ExecutionOutcome(executed=True, tx_hash=main.tx_hash, receipt=main.receipt)

    async def _run_approval_flow(
        self, sender: TransactionSender, result: ApprovalRequiredTransaction
    ) -> ExecutionOutcome:
        # The main transaction depends on the allowance; it is only sent once the approval is mined.
        logger.info("Sending approval transaction...")
        approval = await sender.send_and_wait(result.approval)
        if approval.receipt.status != "success":
            logger.warning("Approval %s reverted; main transaction not sent", approval.tx_hash)
            return ExecutionOutcome(
                executed=False,
                approval_tx_hash=approval.tx_hash,
                approval_receipt=approval.receipt,
                error=f"Approval transaction {approval.tx_hash} reverted",
                stage="approval_or_main",
            )
        logger.info("Approval confirmed: %s", approval.tx_hash)

        logger.info("Sending main transaction...")
        main = await sender.send_and_wait(result.transaction)
        logger.info("Main tx confirmed: %s", main.tx_hash)
        return ExecutionOutcome(
            executed=True,
            approval_tx_hash=approval.tx_hash,
            approval_receipt=approval.receipt,
            tx_hash=main.tx_hash,
            receipt=main.receipt,
        )


def _attach(result: ExecutableResult, outcome: ExecutionOutcome) -> dict:
    return {**result.raw, "execution": outcome.to_wire()}
