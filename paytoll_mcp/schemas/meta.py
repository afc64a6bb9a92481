"""Wire models for the PayToll discovery endpoint (`GET /v1/meta?detailed=true`).

The input schema models intentionally keep `type` loosely typed, ignore
unknown keywords and drop known keywords carrying a value of the wrong JSON
type: a forward-incompatible schema extension must never break metadata
ingestion. Only a structurally broken `inputSchema` (e.g. `required`
naming an undeclared property) fails validation, in which case the registrar
skips that single endpoint.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Iterable, List, Optional, Union

from pydantic import ConfigDict, Field, ValidationError, field_validator, model_validator

from .base import BaseSchema

logger = logging.getLogger(__name__)

Number = Union[int, float]


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _is_str(value: Any) -> bool:
    return isinstance(value, str)


_KEYWORD_CHECKS: Dict[str, Callable[[Any], bool]] = {
    "description": _is_str,
    "pattern": _is_str,
    "minLength": _is_int,
    "maxLength": _is_int,
    "minimum": _is_number,
    "maximum": _is_number,
    "enum": lambda v: isinstance(v, list),
    "items": lambda v: isinstance(v, (dict, PropertySchema)),
    "properties": lambda v: isinstance(v, dict),
    "required": lambda v: isinstance(v, list),
    "additionalProperties": lambda v: isinstance(v, bool),
    "minItems": _is_int,
    "maxItems": _is_int,
}


def _drop_ill_typed_keywords(data: Any, keywords: Iterable[str]) -> Any:
    """Remove keyword values whose JSON type cannot be honored.

    A dropped keyword behaves as if it was never declared: tuple-form `items`
    leaves the item type open, a non-list `required` requires nothing.
    """
    if not isinstance(data, dict):
        return data
    cleaned = dict(data)
    for key in keywords:
        if key not in cleaned:
            continue
        value = cleaned[key]
        if value is None or not _KEYWORD_CHECKS[key](value):
            if value is not None:
                logger.warning("Ignoring ill-typed schema keyword %s=%r", key, value)
            del cleaned[key]
    if "properties" in cleaned:
        properties: Dict[str, Any] = {}
        for name, prop in cleaned["properties"].items():
            if not isinstance(prop, (dict, PropertySchema)):
                logger.warning("Property %r has a non-object schema %r; accepting any value", name, prop)
                prop = {}
            properties[name] = prop
        cleaned["properties"] = properties
    if "required" in cleaned:
        cleaned["required"] = [name for name in cleaned["required"] if isinstance(name, str)]
    return cleaned


class PropertySchema(BaseSchema):
    """One JSON-Schema-like property description (recursive through items/properties)."""

    type: Any = Field(
        default=None,
        description="Base type tag: string, number, integer, boolean, array or object. Anything else is accepted as-is.",
        examples=["string", "integer"],
    )
    description: Optional[str] = Field(default=None, description="Human-readable description shown to the agent.")
    pattern: Optional[str] = Field(default=None, description="Regular expression a string value must contain.")
    min_length: Optional[int] = Field(default=None, description="Minimum string length.")
    max_length: Optional[int] = Field(default=None, description="Maximum string length.")
    minimum: Optional[Number] = Field(default=None, description="Inclusive lower bound for numbers.")
    maximum: Optional[Number] = Field(default=None, description="Inclusive upper bound for numbers.")
    enum: Optional[List[Any]] = Field(default=None, description="Closed set of accepted literal values.")
    default: Any = Field(default=None, description="Server-side default value (informational).")
    items: Optional[PropertySchema] = Field(default=None, description="Item schema for arrays.")
    properties: Optional[Dict[str, PropertySchema]] = Field(
        default=None, description="Nested property schemas for objects."
    )
    required: Optional[List[str]] = Field(default=None, description="Required nested property names.")
    additional_properties: Optional[bool] = Field(default=None, description="Whether undeclared keys are allowed.")
    min_items: Optional[int] = Field(default=None, description="Minimum array length.")
    max_items: Optional[int] = Field(default=None, description="Maximum array length.")

    @model_validator(mode="before")
    @classmethod
    def _ignore_ill_typed_keywords(cls, data: Any) -> Any:
        return _drop_ill_typed_keywords(data, _KEYWORD_CHECKS)


class InputSchema(BaseSchema):
    """Top-level input description of an endpoint: always an object schema."""

    type: str = Field(default="object", description="Always 'object' for endpoint inputs.")
    properties: Dict[str, PropertySchema] = Field(
        default_factory=dict, description="Mapping of parameter name to its schema."
    )
    required: List[str] = Field(default_factory=list, description="Names of required parameters.")
    additional_properties: Optional[bool] = Field(
        default=None, description="When False, undeclared parameters are rejected."
    )

    @model_validator(mode="before")
    @classmethod
    def _ignore_ill_typed_keywords(cls, data: Any) -> Any:
        return _drop_ill_typed_keywords(data, ("properties", "required", "additionalProperties"))

    @model_validator(mode="after")
    def _check_shape(self) -> "InputSchema":
        if self.type != "object":
            raise ValueError(f"inputSchema must describe an object, got type={self.type!r}")
        missing = [name for name in self.required if name not in self.properties]
        if missing:
            raise ValueError(f"required names not declared in properties: {missing}")
        return self


class EndpointDescriptor(BaseSchema):
    """One priced API operation as advertised by the metadata endpoint."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1, description="Unique tool name.", examples=["crypto-price"])
    method: str = Field(default="POST", description="HTTP method used to invoke the endpoint.", examples=["POST"])
    path: str = Field(..., min_length=1, description="Path appended to the API base URL.", examples=["/v1/crypto/price"])
    price: str = Field(default="", description="Display price per call.", examples=["$0.001"])
    description: str = Field(default="", description="Human-readable description of the endpoint.")
    category: Optional[str] = Field(default=None, description="Catalog category.", examples=["defi"])
    version: Optional[str] = Field(default=None, description="Endpoint version.", examples=["1.0.0"])
    input_schema: Optional[Dict[str, Any]] = Field(
        default=None,
        description="Raw JSON-Schema-like input description. Parsed lazily into `InputSchema`.",
    )

    @field_validator("price", mode="before")
    @classmethod
    def _price_as_text(cls, v: Any) -> Any:
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return str(v)
        return v

    def parse_input_schema(self) -> InputSchema:
        """Parse `input_schema` into an `InputSchema`.

        Raises:
            ValueError: If the schema is absent.
            pydantic.ValidationError: If the schema is structurally invalid.
        """
        if self.input_schema is None:
            raise ValueError(f"endpoint {self.name!r} declares no inputSchema")
        return InputSchema.model_validate(self.input_schema)


class X402Descriptor(BaseSchema):
    """Payment scheme advertised by the API."""

    scheme: Optional[str] = Field(default=None, examples=["exact"])
    networks: List[str] = Field(default_factory=list, examples=[["base", "base-sepolia"]])
    facilitator: Optional[str] = Field(default=None, examples=["https://x402.org/facilitator"])


class ServiceMetadata(BaseSchema):
    """Full discovery payload."""

    service: str = Field(default="", description="Service name.", examples=["paytoll"])
    version: str = Field(default="", description="Service version.")
    x402: Optional[X402Descriptor] = Field(default=None, description="Payment scheme descriptor.")
    plugin_count: Optional[int] = Field(default=None, description="Number of plugins behind the API.")
    endpoints: List[EndpointDescriptor] = Field(default_factory=list, description="Discovered endpoints.")
    categories: List[str] = Field(default_factory=list, description="Catalog categories.")

    @field_validator("endpoints", mode="before")
    @classmethod
    def _drop_malformed_endpoints(cls, v: Any) -> Any:
        # Broken descriptors are dropped one by one; the rest of the catalog survives.
        if not isinstance(v, list):
            return v
        kept: List[Any] = []
        for item in v:
            try:
                kept.append(EndpointDescriptor.model_validate(item))
            except ValidationError as e:
                name = item.get("name") if isinstance(item, dict) else None
                logger.warning("Dropping malformed endpoint descriptor %r (%d validation errors)", name, e.error_count())
        return kept
