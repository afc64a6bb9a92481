"""Models for on-chain action responses and their execution outcome.

A tool result returned by the API is either a plain business payload or one of
a small, closed set of "needs on-chain action" shapes. `ExecutableResult` is the
tagged union over those shapes; `paytoll_mcp.executor.classify` maps any JSON
value onto exactly one member.
"""

from __future__ import annotations

from typing import Any, Dict, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, StrictInt, StrictStr, field_validator

from .base import BaseSchema


class TransactionSpec(BaseSchema):
    """One unsigned EVM call as prepared by the API."""

    to: StrictStr = Field(..., description="Target contract or account address.", examples=["0xA0b8...eB48"])
    from_: Optional[str] = Field(
        default=None, alias="from", description="Sender the API prepared the call for (informational)."
    )
    data: StrictStr = Field(..., description="Hex-encoded calldata.", examples=["0x095ea7b3..."])
    value: str = Field(default="0", description="Wei amount as decimal text.", examples=["0"])
    chain_id: StrictInt = Field(..., description="EIP-155 chain id.", examples=[8453])

    @field_validator("value", mode="before")
    @classmethod
    def _value_as_text(cls, v: Any) -> Any:
        if v is None or v == "":
            return "0"
        if isinstance(v, int) and not isinstance(v, bool):
            return str(v)
        return v

    def value_wei(self) -> int:
        """Return `value` as an integer; accepts decimal or 0x-prefixed hex text."""
        v = self.value.strip()
        if v.lower().startswith("0x"):
            return int(v, 16)
        return int(v)


class PlainResult(BaseModel):
    kind: Literal["plain"] = "plain"
    raw: Any = None


class InsufficientBalance(BaseModel):
    kind: Literal["insufficient_balance"] = "insufficient_balance"
    raw: Dict[str, Any]


class ReadyTransaction(BaseModel):
    kind: Literal["ready"] = "ready"
    raw: Dict[str, Any]
    transaction: TransactionSpec


class ApprovalRequiredTransaction(BaseModel):
    kind: Literal["approval_required"] = "approval_required"
    raw: Dict[str, Any]
    approval: TransactionSpec
    transaction: TransactionSpec


ExecutableResult = Union[PlainResult, InsufficientBalance, ReadyTransaction, ApprovalRequiredTransaction]


class ReceiptSummary(BaseSchema):
    """Receipt fields surfaced to the agent; numbers as decimal text to avoid precision loss."""

    status: Literal["success", "reverted"] = Field(..., description="Execution status of the mined transaction.")
    block_number: str = Field(..., description="Block the transaction was included in.", examples=["19000000"])
    gas_used: str = Field(..., description="Gas consumed by the transaction.", examples=["46109"])


class SentTransaction(BaseModel):
    """Hash and receipt of one confirmed transaction."""

    model_config = ConfigDict(frozen=True)

    tx_hash: str
    receipt: ReceiptSummary


class ExecutionOutcome(BaseSchema):
    """Sibling record attached as `execution` next to the original result."""

    executed: bool = Field(..., description="Whether every required transaction was mined.")
    tx_hash: Optional[str] = Field(default=None, description="Hash of the main transaction.")
    receipt: Optional[ReceiptSummary] = Field(default=None, description="Receipt of the main transaction.")
    approval_tx_hash: Optional[str] = Field(default=None, description="Hash of the approval transaction.")
    approval_receipt: Optional[ReceiptSummary] = Field(default=None, description="Receipt of the approval transaction.")
    error: Optional[str] = Field(default=None, description="Failure description when not executed.")
    stage: Optional[Literal["main", "approval_or_main"]] = Field(
        default=None, description="Which leg failed; approval flows report 'approval_or_main'."
    )
