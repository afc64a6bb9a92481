"""Error types raised by the PayToll bridge.

Purpose:
- Give each failure class of the bridge its own exception type so startup code
  and the tool handler boundary can tell them apart.
- Expose HTTP-oriented context (status code, response body) for diagnosis.

Usage:
- `ConfigurationError` and `TransportError` raised during startup are fatal.
- Every other error raised while serving a tool call is caught by the tool
  handler and reported to the agent as an error-flagged result.
"""

from __future__ import annotations

from typing import Any, Optional

_WALLET_HINT = (
    "Configure PRIVATE_KEY (or PAYTOLL_KEYCHAIN_SERVICE, PAYTOLL_SECRET_SERVICE_SERVICE "
    "or PAYTOLL_PRIVATE_KEY_COMMAND)."
)


class PayTollError(Exception):
    pass


class ConfigurationError(PayTollError):
    """Missing or malformed configuration; fatal at startup."""


class TransportError(PayTollError):
    """Failure to talk to the PayToll API at the HTTP level.

    Args:
        message: Human-readable error description.
        status_code: Optional HTTP status code associated with the failure.
        details: Optional payload from the server (e.g., response text).
    """

    def __init__(self, message: str, *, status_code: Optional[int] = None, details: Optional[Any] = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.details = details


class ApiError(PayTollError):
    """Non-success response from a tool invocation.

    Args:
        status_code: HTTP status code returned by the API.
        message: Error text extracted from the body (its `error` field or the serialized body).
        details: The decoded response body.
    """

    def __init__(self, status_code: int, message: str, *, details: Optional[Any] = None) -> None:
        super().__init__(f"API error {status_code}: {message}")
        self.status_code = status_code
        self.details = details


class PaymentRequiredError(ApiError):
    """HTTP 402 received while no wallet is configured to pay for the call."""

    def __init__(self, path: str, *, details: Optional[Any] = None) -> None:
        super().__init__(
            402,
            f"Payment required for {path} but no wallet is configured. The free tier allowance is "
            f"exhausted or the endpoint is paid-only. {_WALLET_HINT}",
            details=details,
        )
        self.path = path


class WalletRequiredError(PayTollError):
    def __init__(self, endpoint_name: str) -> None:
        super().__init__(f"{endpoint_name} requires wallet context. {_WALLET_HINT}")
        self.endpoint_name = endpoint_name


class ToolResultError(PayTollError):
    """Raised by the MCP host adapter so the server reports an `isError` tool result."""
