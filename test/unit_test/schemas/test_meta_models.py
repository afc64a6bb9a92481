from __future__ import annotations

import pytest
from pydantic import ValidationError

from paytoll_mcp.schemas.meta import EndpointDescriptor, InputSchema, ServiceMetadata


def _endpoint(**overrides):
    data = {
        "name": "crypto-price",
        "method": "POST",
        "path": "/v1/crypto/price",
        "price": "$0.001",
        "description": "Get token price",
        "inputSchema": {"type": "object", "properties": {"symbol": {"type": "string"}}, "required": ["symbol"]},
    }
    data.update(overrides)
    return data


def test_service_metadata_parses_discovery_payload() -> None:
    meta = ServiceMetadata.model_validate(
        {
            "service": "paytoll",
            "version": "2.1.0",
            "x402": {"scheme": "exact", "networks": ["base"], "facilitator": "https://x402.org/facilitator"},
            "pluginCount": 12,
            "endpoints": [_endpoint()],
            "categories": ["market-data"],
        }
    )
    assert meta.plugin_count == 12
    assert meta.x402 is not None and meta.x402.networks == ["base"]
    ep = meta.endpoints[0]
    assert ep.name == "crypto-price"
    assert ep.parse_input_schema().required == ["symbol"]


def test_malformed_endpoints_are_dropped_individually(caplog: pytest.LogCaptureFixture) -> None:
    meta = ServiceMetadata.model_validate(
        {"endpoints": [_endpoint(), {"name": "no-path"}, "garbage", _endpoint(name="defi-tvl", path="/v1/defi/tvl")]}
    )
    assert [e.name for e in meta.endpoints] == ["crypto-price", "defi-tvl"]
    assert "Dropping malformed endpoint descriptor" in caplog.text


def test_numeric_price_is_kept_as_text() -> None:
    assert EndpointDescriptor.model_validate(_endpoint(price=0.002)).price == "0.002"


def test_missing_input_schema_cannot_be_parsed() -> None:
    ep = EndpointDescriptor.model_validate(_endpoint(inputSchema=None))
    with pytest.raises(ValueError):
        ep.parse_input_schema()


@pytest.mark.parametrize(
    "schema",
    [
        {"type": "object", "properties": {"a": {"type": "string"}}, "required": ["b"]},
        {"type": "array", "items": {"type": "string"}},
    ],
)
def test_structurally_invalid_input_schema_is_rejected(schema) -> None:
    with pytest.raises(ValidationError):
        InputSchema.model_validate(schema)


def test_unknown_schema_keywords_are_ignored() -> None:
    schema = InputSchema.model_validate(
        {
            "type": "object",
            "properties": {"a": {"type": "string", "format": "uri", "x-vendor": {"anything": True}}},
            "$schema": "http://json-schema.org/draft-07/schema#",
        }
    )
    assert schema.properties["a"].type == "string"
    assert schema.required == []


def test_ill_typed_keywords_are_dropped_with_a_warning(caplog: pytest.LogCaptureFixture) -> None:
    schema = InputSchema.model_validate(
        {
            "type": "object",
            "properties": {
                "tags": {"type": "array", "items": [{"type": "string"}], "minItems": "1"},
                "side": {"type": "string", "enum": "buy", "pattern": 5, "maxLength": True},
                "filter": {"type": "object", "properties": {"a": {"type": "string"}}, "required": True},
                "free": False,
            },
            "required": ["tags", 7],
            "additionalProperties": {"type": "string"},
        }
    )

    tags = schema.properties["tags"]
    assert tags.items is None and tags.min_items is None
    side = schema.properties["side"]
    assert (side.enum, side.pattern, side.max_length) == (None, None, None)
    assert schema.properties["filter"].required is None
    assert schema.properties["free"].type is None
    assert schema.required == ["tags"]
    assert schema.additional_properties is None
    assert "Ignoring ill-typed schema keyword" in caplog.text
