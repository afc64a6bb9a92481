from __future__ import annotations

import json as _json
import subprocess
from typing import Any

import httpx
import pytest

import paytoll_mcp.main as entrypoint
from paytoll_mcp.client import PayTollClient
from paytoll_mcp.core.config import Settings
from paytoll_mcp.errors import ConfigurationError, TransportError
from paytoll_mcp.executor import TransactionExecutor
from paytoll_mcp.main import build_host, load_wallet, main

META = {
    "service": "paytoll",
    "version": "2.0.0",
    "categories": ["market-data"],
    "endpoints": [
        {
            "name": "crypto-price",
            "method": "POST",
            "path": "/v1/crypto/price",
            "price": "$0.001",
            "description": "Get token price",
            "inputSchema": {"type": "object", "properties": {"symbol": {"type": "string"}}},
        }
    ],
}


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ("PRIVATE_KEY", "PAYTOLL_PRIVATE_KEY_COMMAND", "PAYTOLL_KEYCHAIN_SERVICE", "PAYTOLL_REQUIRE_WALLET"):
        monkeypatch.delenv(name, raising=False)


def _settings(**values: Any) -> Settings:
    return Settings(_env_file=None, **values)


def test_load_wallet_from_private_key(private_key: str) -> None:
    wallet = load_wallet(_settings(PRIVATE_KEY=private_key))
    assert wallet is not None
    assert wallet.address == "0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266"


def test_load_wallet_from_command(private_key: str) -> None:
    def runner(args: Any, *, shell: bool = False) -> "subprocess.CompletedProcess[str]":
        return subprocess.CompletedProcess(args, 0, stdout=f"{private_key}\n", stderr="")

    wallet = load_wallet(_settings(PAYTOLL_PRIVATE_KEY_COMMAND="pass show paytoll"), runner=runner)
    assert wallet is not None


def test_load_wallet_without_secret_is_free_tier(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level("INFO", logger="paytoll_mcp")
    assert load_wallet(_settings()) is None
    assert "free-tier mode (5 calls/day" in caplog.text


def test_load_wallet_required_but_missing() -> None:
    with pytest.raises(ConfigurationError, match="PAYTOLL_REQUIRE_WALLET"):
        load_wallet(_settings(PAYTOLL_REQUIRE_WALLET=True))


def test_load_wallet_with_malformed_key() -> None:
    with pytest.raises(ConfigurationError):
        load_wallet(_settings(PRIVATE_KEY="not-a-key"))


@pytest.mark.asyncio
async def test_build_host_registers_tools_and_info() -> None:
    http = httpx.AsyncClient(transport=httpx.MockTransport(lambda r: httpx.Response(200, json=META)))
    config = _settings(PAYTOLL_API_URL="http://mock")
    client = PayTollClient(config.api_url, http_client=http)

    host = await build_host(config, client, TransactionExecutor(None))

    assert [t.name for t in host.tools] == ["crypto-price"]
    info = _json.loads(host.info_json())
    assert info["apiUrl"] == "http://mock"
    assert info["service"] == "paytoll"
    assert info["freeTierDailyCalls"] == 5


@pytest.mark.parametrize(
    "error",
    [TransportError("Failed to fetch metadata: 503 Service Unavailable"), ConfigurationError("bad key")],
)
def test_main_exits_with_status_1_on_fatal_startup_errors(monkeypatch: pytest.MonkeyPatch, error: Exception) -> None:
    async def failing_serve(config: Settings) -> None:
        raise error

    monkeypatch.setattr(entrypoint, "serve", failing_serve)
    monkeypatch.setattr(entrypoint, "setup_logging", lambda **kwargs: None)

    with pytest.raises(SystemExit) as exc_info:
        main(_settings())
    assert exc_info.value.code == 1
