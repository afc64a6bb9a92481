"""HTTP client for the PayToll API.

Responsibilities:
- fetch_meta / fetch_metadata: unauthenticated endpoint discovery
- call_endpoint: invoke one endpoint, paying through x402 when a wallet is configured

Note: This client performs no retries. Payment negotiation (HTTP 402 ->
signed `X-PAYMENT` header -> retry) happens inside `x402HttpxClient`; transient
network failures during tool calls propagate to the caller as-is.
"""

from __future__ import annotations

import json
import logging
from typing import Any, List, Mapping, Optional

import httpx
from pydantic import ValidationError
from x402.clients.httpx import x402HttpxClient

from .errors import ApiError, PaymentRequiredError, TransportError
from .schemas.meta import EndpointDescriptor, ServiceMetadata
from .wallet import WalletIdentity

_NOT_JSON = object()
_QUERY_METHODS = ("GET", "HEAD")


class PayTollClient:
    """
    Thin async client for the PayToll API.

    Two transports are kept side by side:
    - a plain `httpx.AsyncClient` for discovery and free-tier calls,
    - an x402 payment-aware `x402HttpxClient` when a wallet identity exists.
    Both can be injected (e.g. clients backed by `httpx.MockTransport` in tests).
    """

    META_PATH = "/v1/meta"

    def __init__(
        self,
        api_url: str,
        wallet: Optional[WalletIdentity] = None,
        *,
        timeout: float = 30.0,
        http_client: Optional[httpx.AsyncClient] = None,
        paid_client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.api_url = api_url.rstrip("/")
        self.wallet = wallet
        self._logger = logging.getLogger(__name__)
        self._owned: List[httpx.AsyncClient] = []
        if http_client is None:
            http_client = httpx.AsyncClient(timeout=timeout, follow_redirects=True)
            self._owned.append(http_client)
        self._http = http_client
        if wallet is not None and paid_client is None:
            paid_client = x402HttpxClient(account=wallet.account, timeout=timeout, follow_redirects=True)
            self._owned.append(paid_client)
        self._paid = paid_client if wallet is not None else None

    @property
    def paid(self) -> bool:
        """Whether calls go through the x402 payment-aware transport."""
        return self._paid is not None

    async def fetch_meta(self) -> ServiceMetadata:
        url = f"{self.api_url}{self.META_PATH}"
        self._logger.info("Fetching metadata from %s?detailed=true", url)
        try:
            r = await self._http.get(url, params={"detailed": "true"})
        except httpx.RequestError as e:
            raise TransportError(f"Failed to fetch metadata: {e}") from e
        if not r.is_success:
            raise TransportError(
                f"Failed to fetch metadata: {r.status_code} {r.reason_phrase}",
                status_code=r.status_code,
                details=r.text,
            )
        try:
            meta = ServiceMetadata.model_validate(r.json())
        except ValueError as e:
            # json.JSONDecodeError and pydantic.ValidationError are both ValueErrors
            kind = "invalid" if isinstance(e, ValidationError) else "undecodable"
            raise TransportError(
                f"Failed to fetch metadata: {kind} response body", status_code=r.status_code, details=r.text
            ) from e
        self._logger.debug("PayTollClient.fetch_meta: got %d endpoints", len(meta.endpoints))
        return meta

    async def fetch_metadata(self) -> List[EndpointDescriptor]:
        meta = await self.fetch_meta()
        return list(meta.endpoints)

    async def call_endpoint(self, path: str, method: str, body: Mapping[str, Any]) -> Any:
        """Invoke one endpoint and return its decoded JSON body.

        Args:
            path: Endpoint path, appended to the API base URL.
            method: HTTP method. GET/HEAD send the parameters as a query string.
            body: Enriched parameters.

        Raises:
            PaymentRequiredError: On HTTP 402 when no wallet is configured.
            ApiError: On any other non-success status, or a non-JSON success body.
            httpx.RequestError: On network failures.
        """
        url = f"{self.api_url}{path}"
        verb = method.upper()
        client = self._paid if self._paid is not None else self._http
        self._logger.debug(
            "PayTollClient.call_endpoint: %s %s paid=%s param_keys=%s", verb, url, self.paid, list(body.keys())
        )
        if verb in _QUERY_METHODS:
            r = await client.request(verb, url, params=_query_params(body))
        else:
            r = await client.request(verb, url, json=dict(body), headers={"Content-Type": "application/json"})

        data = _decode(r)
        if r.status_code == 402 and self.wallet is None:
            raise PaymentRequiredError(path, details=None if data is _NOT_JSON else data)
        if not r.is_success:
            message = r.text if data is _NOT_JSON else _error_text(data)
            raise ApiError(r.status_code, message, details=None if data is _NOT_JSON else data)
        if data is _NOT_JSON:
            raise ApiError(r.status_code, "response body is not valid JSON", details=r.text)
        self._logger.debug("PayTollClient.call_endpoint: %s %s -> %d", verb, url, r.status_code)
        return data

    async def aclose(self) -> None:
        for client in self._owned:
            await client.aclose()
        self._owned.clear()

    async def __aenter__(self) -> "PayTollClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()


def _decode(r: httpx.Response) -> Any:
    try:
        return r.json()
    except ValueError:
        return _NOT_JSON


def _error_text(data: Any) -> str:
    if isinstance(data, dict) and "error" in data:
        err = data["error"]
        return err if isinstance(err, str) else json.dumps(err)
    return json.dumps(data)


def _query_params(body: Mapping[str, Any]) -> dict:
    params = {}
    for k, v in body.items():
        if isinstance(v, str):
            params[k] = v
        elif isinstance(v, bool):
            params[k] = "true" if v else "false"
        elif isinstance(v, (int, float)):
            params[k] = str(v)
        else:
            params[k] = json.dumps(v)
    return params
