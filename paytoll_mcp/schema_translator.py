"""Translate server-supplied JSON-Schema-like input descriptions into pydantic validators.

The PayToll metadata endpoint describes each endpoint's input with a small
JSON Schema dialect (see `paytoll_mcp.schemas.meta.PropertySchema`). This module
turns such a description into:

- a mapping of parameter name to `FieldSpec` (`translate`), and
- a pydantic model class validating a full argument object
  (`build_parameters_model`), whose JSON schema is what the agent sees.

Translation rules:
- string: strict `str` with optional `pattern` (search semantics, Python `re`),
  `minLength`/`maxLength`; a non-empty `enum` wins over pattern and length.
- number / integer: numbers with optional `minimum`/`maximum`; booleans and
  text are rejected, and `integer` accepts integral floats such as `5.0`
  (forwarded as `5`). A non-empty `enum` becomes a `Literal` over exactly the
  listed values whose type matches the base type.
- boolean: strict `bool`.
- array: list of the translated item type (`Any` if undeclared) with
  `minItems`/`maxItems`.
- object: nested model when `properties` is declared, else `Dict[str, Any]`.
- anything else: `Any`. Unknown schema extensions must never fail ingestion,
  so malformed constraints are dropped with a warning instead of raising.

Property names are kept as field aliases, so keys that are not valid Python
identifiers (or that collide with pydantic attributes) still round-trip.
"""

from __future__ import annotations

import keyword
import logging
import re
from dataclasses import dataclass
from typing import Annotated, Any, Callable, Dict, Iterable, List, Literal, Optional, Tuple, Type, Union

from pydantic import (
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    StrictBool,
    StrictFloat,
    StrictInt,
    StringConstraints,
    conint,
    create_model,
)
from pydantic.fields import FieldInfo

from paytoll_mcp.schemas.meta import InputSchema, PropertySchema

logger = logging.getLogger(__name__)

_RESERVED_NAMES = frozenset(dir(BaseModel))


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _is_integral(value: Any) -> bool:
    if isinstance(value, float):
        return value.is_integer()
    return _is_number(value)


def _integral_float_as_int(value: Any) -> Any:
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value


def _numeric_enum_input(value: Any) -> Any:
    if not _is_number(value):
        raise ValueError("Input should be a number")
    return value


def _integer_enum_input(value: Any) -> Any:
    return _integral_float_as_int(_numeric_enum_input(value))


@dataclass(frozen=True)
class FieldSpec:
    """Validator for one parameter: its type annotation and whether it may be absent."""

    annotation: Any
    required: bool
    description: Optional[str] = None

    def to_field_definition(self, alias: str) -> Tuple[Any, FieldInfo]:
        """Return a `(annotation, FieldInfo)` pair usable with `pydantic.create_model`."""
        default = ... if self.required else None
        return self.annotation, Field(default, alias=alias, description=self.description)


def translate(schema: InputSchema) -> Dict[str, FieldSpec]:
    """Translate a top-level input schema into one `FieldSpec` per declared property."""
    return _translate_properties(schema.properties, schema.required, owner="Params")


def translate_property(prop: PropertySchema, name: str = "Value") -> Any:
    """Translate one property schema into a pydantic-compatible type annotation.

    Args:
        prop: The property description.
        name: Name hint used for nested models generated for object properties.

    Returns:
        A type annotation carrying the property's constraints and description.
    """
    type_tag = prop.type
    annotation: Any
    if type_tag == "string":
        annotation = _string_type(prop)
    elif type_tag in ("number", "integer"):
        annotation = _numeric_type(prop, integer=type_tag == "integer")
    elif type_tag == "boolean":
        annotation = StrictBool
    elif type_tag == "array":
        annotation = _array_type(prop, name)
    elif type_tag == "object":
        annotation = _object_type(prop, name)
    else:
        annotation = Any

    if prop.description:
        annotation = Annotated[annotation, Field(description=prop.description)]
    return annotation


def build_parameters_model(name: str, schema: InputSchema) -> Type[BaseModel]:
    """Build the pydantic model validating the argument object of one endpoint."""
    return _build_model(
        _model_name(name, suffix="Params"),
        schema.properties,
        schema.required,
        schema.additional_properties,
    )


def parameters_json_schema(model: Type[BaseModel]) -> Dict[str, Any]:
    """Return the model's JSON schema with every `$ref` inlined.

    Tool-calling clients differ in how well they follow `$defs` references, and
    the generated schemas are finite trees, so inlining is always possible.
    """
    schema = model.model_json_schema(by_alias=True)
    defs = schema.pop("$defs", {})
    return _inline_refs(schema, defs)


def _translate_properties(
    properties: Dict[str, PropertySchema],
    required: Iterable[str],
    owner: str,
) -> Dict[str, FieldSpec]:
    required_names = set(required or [])
    specs: Dict[str, FieldSpec] = {}
    for key, prop in properties.items():
        specs[key] = FieldSpec(
            annotation=translate_property(prop, _model_name(f"{owner}_{key}")),
            required=key in required_names,
            description=prop.description,
        )
    return specs


def _build_model(
    model_name: str,
    properties: Dict[str, PropertySchema],
    required: Iterable[str],
    additional_properties: Optional[bool],
) -> Type[BaseModel]:
    specs = _translate_properties(properties, required, owner=model_name)
    fields: Dict[str, Any] = {}
    taken: set = set()
    for key, spec in specs.items():
        python_name = _python_name(key, taken)
        taken.add(python_name)
        fields[python_name] = spec.to_field_definition(alias=key)
    config = ConfigDict(
        extra="forbid" if additional_properties is False else "ignore",
        regex_engine="python-re",
        protected_namespaces=(),
    )
    return create_model(model_name, __config__=config, **fields)


def _string_type(prop: PropertySchema) -> Any:
    literal = _literal_type(prop.enum, lambda v: isinstance(v, str))
    if literal is not None:
        return literal
    constraints: Dict[str, Any] = {}
    if prop.pattern is not None and _is_valid_regex(prop.pattern):
        constraints["pattern"] = prop.pattern
    min_length = _non_negative(prop.min_length, "minLength")
    if min_length is not None:
        constraints["min_length"] = min_length
    max_length = _non_negative(prop.max_length, "maxLength")
    if max_length is not None:
        constraints["max_length"] = max_length
    return Annotated[str, StringConstraints(strict=True, **constraints)]


def _numeric_type(prop: PropertySchema, *, integer: bool) -> Any:
    if integer:
        literal = _literal_type(prop.enum, _is_integral, convert=_integral_float_as_int)
        if literal is not None:
            return Annotated[literal, BeforeValidator(_integer_enum_input)]
    else:
        literal = _literal_type(prop.enum, _is_number)
        if literal is not None:
            return Annotated[literal, BeforeValidator(_numeric_enum_input)]
    bounds: Dict[str, Any] = {}
    if prop.minimum is not None:
        bounds["ge"] = prop.minimum
    if prop.maximum is not None:
        bounds["le"] = prop.maximum
    if integer:
        return Annotated[conint(strict=True, **bounds), BeforeValidator(_integral_float_as_int)]
    if not bounds:
        return Union[StrictInt, StrictFloat]
    # int first so integral inputs keep their type in the forwarded payload
    return Union[Annotated[StrictInt, Field(**bounds)], Annotated[StrictFloat, Field(**bounds)]]


def _array_type(prop: PropertySchema, name: str) -> Any:
    item: Any = translate_property(prop.items, f"{name}Item") if prop.items is not None else Any
    constraints: Dict[str, Any] = {}
    min_items = _non_negative(prop.min_items, "minItems")
    if min_items is not None:
        constraints["min_length"] = min_items
    max_items = _non_negative(prop.max_items, "maxItems")
    if max_items is not None:
        constraints["max_length"] = max_items
    if constraints:
        return Annotated[List[item], Field(**constraints)]
    return List[item]


def _object_type(prop: PropertySchema, name: str) -> Any:
    if prop.properties is None:
        return Dict[str, Any]
    return _build_model(name, prop.properties, prop.required or [], prop.additional_properties)


def _literal_type(
    values: Optional[List[Any]],
    accepts: Callable[[Any], bool],
    convert: Callable[[Any], Any] = lambda v: v,
) -> Any:
    if not values:
        return None
    usable = tuple(convert(v) for v in values if accepts(v))
    if len(usable) != len(values):
        logger.warning("Ignoring enum values not matching the declared type in %r", values)
    if not usable:
        return None
    return Literal[usable]


def _is_valid_regex(pattern: str) -> bool:
    try:
        re.compile(pattern)
    except re.error as e:
        logger.warning("Dropping invalid pattern %r: %s", pattern, e)
        return False
    return True


def _non_negative(value: Optional[int], label: str) -> Optional[int]:
    if value is None:
        return None
    if value < 0:
        logger.warning("Dropping negative %s=%d", label, value)
        return None
    return value


def _python_name(key: str, taken: set) -> str:
    candidate = re.sub(r"\W", "_", key)
    if (
        not candidate.isidentifier()
        or keyword.iskeyword(candidate)
        or candidate.startswith("_")
        or candidate.startswith("model_")
        or candidate in _RESERVED_NAMES
        or candidate in taken
    ):
        index = len(taken)
        candidate = f"field_{index}"
        while candidate in taken:
            index += 1
            candidate = f"field_{index}"
    return candidate


def _model_name(raw: str, suffix: str = "") -> str:
    parts = [p for p in re.split(r"[^0-9A-Za-z]+", raw) if p]
    name = "".join(p[:1].upper() + p[1:] for p in parts) or "Model"
    if name[0].isdigit():
        name = f"M{name}"
    return f"{name}{suffix}"


def _inline_refs(node: Any, defs: Dict[str, Any]) -> Any:
    if isinstance(node, dict):
        ref = node.get("$ref")
        if isinstance(ref, str) and ref.startswith("#/$defs/"):
            target = defs[ref[len("#/$defs/"):]]
            merged = {k: v for k, v in node.items() if k != "$ref"}
            resolved = _inline_refs(target, defs)
            return {**resolved, **{k: _inline_refs(v, defs) for k, v in merged.items()}}
        return {k: _inline_refs(v, defs) for k, v in node.items()}
    if isinstance(node, list):
        return [_inline_refs(v, defs) for v in node]
    return node
