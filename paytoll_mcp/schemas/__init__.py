from .execution import (
    ApprovalRequiredTransaction,
    ExecutableResult,
    ExecutionOutcome,
    InsufficientBalance,
    PlainResult,
    ReadyTransaction,
    ReceiptSummary,
    SentTransaction,
    TransactionSpec,
)
from .meta import EndpointDescriptor, InputSchema, PropertySchema, ServiceMetadata, X402Descriptor
from .tools import RegisteredTool, ToolOutcome

__all__ = [
    "ApprovalRequiredTransaction",
    "EndpointDescriptor",
    "ExecutableResult",
    "ExecutionOutcome",
    "InputSchema",
    "InsufficientBalance",
    "PlainResult",
    "PropertySchema",
    "ReadyTransaction",
    "ReceiptSummary",
    "RegisteredTool",
    "SentTransaction",
    "ServiceMetadata",
    "ToolOutcome",
    "TransactionSpec",
    "X402Descriptor",
]
