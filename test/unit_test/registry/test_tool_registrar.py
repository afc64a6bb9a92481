from __future__ import annotations

import json as _json
from typing import Any, Dict, List

import httpx
import pytest

from paytoll_mcp.client import PayTollClient
from paytoll_mcp.errors import TransportError
from paytoll_mcp.executor import TransactionExecutor
from paytoll_mcp.registry import ToolHost, ToolRegistrar
from paytoll_mcp.schemas.execution import ReceiptSummary, SentTransaction
from paytoll_mcp.schemas.meta import EndpointDescriptor
from paytoll_mcp.schemas.tools import RegisteredTool

POOL = "0x" + "11" * 20

META = {
    "service": "paytoll",
    "version": "2.0.0",
    "endpoints": [
        {
            "name": "crypto-price",
            "method": "POST",
            "path": "/v1/crypto/price",
            "price": "$0.001",
            "description": "Get token price",
            "inputSchema": {
                "type": "object",
                "properties": {"symbol": {"type": "string", "pattern": "^[A-Z]+$"}},
                "required": ["symbol"],
            },
        },
        {"name": "health", "method": "GET", "path": "/v1/health", "price": "$0", "description": "Health"},
        {
            "name": "crypto-price",
            "method": "POST",
            "path": "/v2/crypto/price",
            "price": "$0.002",
            "description": "Duplicate",
            "inputSchema": {"type": "object", "properties": {}},
        },
        {
            "name": "aave-supply",
            "method": "POST",
            "path": "/v1/aave/supply",
            "price": "$0.01",
            "description": "Build an Aave supply transaction",
            "inputSchema": {
                "type": "object",
                "properties": {
                    "userAddress": {"type": "string"},
                    "asset": {"type": "string"},
                    "amount": {"type": "string"},
                },
                "required": ["userAddress", "asset", "amount"],
            },
        },
        {
            "name": "broken-schema",
            "method": "POST",
            "path": "/v1/broken",
            "price": "$0.001",
            "description": "Required name not declared",
            "inputSchema": {"type": "object", "properties": {"a": {"type": "string"}}, "required": ["b"]},
        },
    ],
}


class FakeHost:
    def __init__(self) -> None:
        self.tools: List[RegisteredTool] = []

    def add_tool(self, tool: RegisteredTool) -> None:
        self.tools.append(tool)


class RecordingApi:
    """MockTransport handler serving metadata and recording endpoint calls."""

    def __init__(self, responses: Dict[str, httpx.Response]) -> None:
        self.responses = responses
        self.calls: List[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        if request.url.path == "/v1/meta":
            return httpx.Response(200, json=META)
        self.calls.append(request)
        return self.responses.get(request.url.path, httpx.Response(404, json={"error": "not found"}))


class OneShotSender:
    def __init__(self) -> None:
        self.sent: List[Any] = []

    async def send_and_wait(self, tx: Any) -> SentTransaction:
        self.sent.append(tx)
        return SentTransaction(
            tx_hash="0xfeed", receipt=ReceiptSummary(status="success", block_number="1", gas_used="2")
        )


def _registrar(api: RecordingApi, wallet=None, sender=None) -> ToolRegistrar:
    http = httpx.AsyncClient(transport=httpx.MockTransport(api))
    client = PayTollClient("http://mock", wallet, http_client=http, paid_client=http if wallet else None)
    executor = TransactionExecutor(wallet, sender_factory=lambda w, chain, timeout: sender or OneShotSender())
    return ToolRegistrar(client, executor, wallet)


async def _register(api: RecordingApi, wallet=None, sender=None) -> Dict[str, RegisteredTool]:
    host = FakeHost()
    assert isinstance(host, ToolHost)
    await _registrar(api, wallet, sender).register_all(host)
    return {t.name: t for t in host.tools}


@pytest.mark.asyncio
async def test_registers_one_tool_per_usable_endpoint() -> None:
    host = FakeHost()
    registrar = _registrar(RecordingApi({}))
    registered = await registrar.register_all(host)

    assert [t.name for t in registered] == ["crypto-price", "aave-supply"]
    assert host.tools == registered
    assert registrar.metadata is not None and registrar.metadata.service == "paytoll"


@pytest.mark.asyncio
async def test_first_registration_wins_on_duplicate_names(caplog: pytest.LogCaptureFixture) -> None:
    api = RecordingApi({"/v1/crypto/price": httpx.Response(200, json={"price": 1})})
    tools = await _register(api)

    tool = tools["crypto-price"]
    assert tool.description == "Get token price (Price: $0.001)"
    await tool.invoke({"symbol": "ETH"})
    assert [r.url.path for r in api.calls] == ["/v1/crypto/price"]
    assert "already registered" in caplog.text


@pytest.mark.asyncio
async def test_wallet_field_is_hidden_from_the_agent_schema() -> None:
    tools = await _register(RecordingApi({}))
    supply = tools["aave-supply"]
    assert supply.wallet_injected is True
    assert set(supply.input_schema["properties"]) == {"asset", "amount"}
    assert set(supply.input_schema["required"]) == {"asset", "amount"}
    assert tools["crypto-price"].wallet_injected is False


@pytest.mark.asyncio
async def test_successful_call_returns_indented_json() -> None:
    api = RecordingApi({"/v1/crypto/price": httpx.Response(200, json={"symbol": "ETH", "price": 3000})})
    tools = await _register(api)

    outcome = await tools["crypto-price"].invoke({"symbol": "ETH"})

    assert outcome.is_error is False
    assert outcome.text == _json.dumps({"symbol": "ETH", "price": 3000}, indent=2)
    assert _json.loads(api.calls[0].content) == {"symbol": "ETH"}


@pytest.mark.asyncio
@pytest.mark.parametrize("arguments", [{}, {"symbol": "eth"}, {"symbol": 1}])
async def test_invalid_arguments_become_error_outcome_without_calling_api(arguments: Dict[str, Any]) -> None:
    api = RecordingApi({})
    tools = await _register(api)
    outcome = await tools["crypto-price"].invoke(arguments)
    assert outcome.is_error is True
    assert outcome.text.startswith("Error calling crypto-price: ")
    assert api.calls == []


@pytest.mark.asyncio
async def test_api_error_becomes_error_outcome() -> None:
    api = RecordingApi({"/v1/crypto/price": httpx.Response(400, json={"error": "Unknown symbol"})})
    tools = await _register(api)
    outcome = await tools["crypto-price"].invoke({"symbol": "XYZ"})
    assert outcome.is_error is True
    assert outcome.text == "Error calling crypto-price: API error 400: Unknown symbol"


@pytest.mark.asyncio
async def test_payment_required_without_wallet_becomes_error_outcome() -> None:
    api = RecordingApi({"/v1/crypto/price": httpx.Response(402, json={})})
    tools = await _register(api)
    outcome = await tools["crypto-price"].invoke({"symbol": "ETH"})
    assert outcome.is_error is True
    assert "Payment required for /v1/crypto/price" in outcome.text


@pytest.mark.asyncio
async def test_wallet_endpoint_without_wallet_fails_before_any_request() -> None:
    api = RecordingApi({})
    tools = await _register(api)
    outcome = await tools["aave-supply"].invoke({"asset": "USDC", "amount": "10"})
    assert outcome.is_error is True
    assert "aave-supply requires wallet context" in outcome.text
    assert api.calls == []


@pytest.mark.asyncio
async def test_wallet_endpoint_injects_address_and_executes_transaction(wallet) -> None:
    ready = {
        "type": "ready",
        "transaction": {"to": POOL, "data": "0x617ba037", "value": "0", "chainId": 8453},
    }
    api = RecordingApi({"/v1/aave/supply": httpx.Response(200, json=ready)})
    sender = OneShotSender()
    tools = await _register(api, wallet=wallet, sender=sender)

    outcome = await tools["aave-supply"].invoke({"asset": "USDC", "amount": "10"})

    assert outcome.is_error is False
    assert _json.loads(api.calls[0].content) == {"asset": "USDC", "amount": "10", "userAddress": wallet.address}
    result = _json.loads(outcome.text)
    assert result["type"] == "ready"
    assert result["execution"]["executed"] is True
    assert result["execution"]["txHash"] == "0xfeed"
    assert len(sender.sent) == 1


@pytest.mark.asyncio
async def test_metadata_failure_propagates() -> None:
    http = httpx.AsyncClient(transport=httpx.MockTransport(lambda r: httpx.Response(500, text="down")))
    registrar = ToolRegistrar(PayTollClient("http://mock", http_client=http), TransactionExecutor(None))
    host = FakeHost()
    with pytest.raises(TransportError):
        await registrar.register_all(host)
    assert host.tools == []


@pytest.mark.parametrize(
    "prop",
    [
        {"type": "array", "items": [{"type": "string"}]},
        {"type": "string", "enum": "a"},
        {"type": "string", "minLength": "x"},
        {"type": "object", "properties": {"a": {"type": "string"}}, "required": True},
        {"type": "string", "pattern": 5},
        True,
    ],
)
def test_ill_typed_schema_keywords_do_not_skip_the_endpoint(prop: Any, caplog: pytest.LogCaptureFixture) -> None:
    endpoint = EndpointDescriptor.model_validate(
        {
            "name": "lenient",
            "method": "POST",
            "path": "/v1/lenient",
            "price": "$0.001",
            "description": "Forward-incompatible schema",
            "inputSchema": {"type": "object", "properties": {"x": prop}, "required": ["x"]},
        }
    )

    tool = _registrar(RecordingApi({})).build_tool(endpoint)

    assert tool is not None
    assert "x" in tool.input_schema["properties"]
    assert tool.input_schema["required"] == ["x"]
    assert "Skipping lenient" not in caplog.text
